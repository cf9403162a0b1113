"""
Textual progress bar for batch sync operations.
"""

import threading

PROGRESS_WIDTH = 50

PROGRESS_EMOJI = (
    "😱",  # face screaming in fear
    "😢",  # crying face
    "😞",  # disappointed face
    "😒",  # unamused face
    "😕",  # confused face
    "😐",  # neutral face
    "😬",  # grimacing face
    "😌",  # relieved face
    "😏",  # smirking face
    "😋",  # face savouring delicious food
    "😊",  # smiling face with smiling eyes
    "😍",  # smiling face with heart shaped eyes
    "😎",  # smiling face with sunglasses
)


def _clamp(percent_done: float) -> float:
    return min(max(percent_done, 0.0), 1.0)


def percent_done_to_emoji(percent_done: float) -> str:
    # round half up
    return PROGRESS_EMOJI[int(_clamp(percent_done) * (len(PROGRESS_EMOJI) - 1) + 0.5)]


def progress_bar(completed: int, total: int, width: int = PROGRESS_WIDTH) -> str:
    """
    Render progress as a bar, a mood and a percentage.

        >>> progress_bar(10, 40)
        '[************······································] 😒   25%'
    """
    percent_done = _clamp(completed / total)
    filled = int(percent_done * width)
    blanks = width - filled
    return (
        f"[{'*' * filled}{'·' * blanks}] "
        f"{percent_done_to_emoji(percent_done)}  {int(percent_done * 100 + 0.5):3d}%"
    )


class ProgressReporter:
    """
    Callable that advances an internal counter and renders the bar.

        reporter = ProgressReporter(len(tables))
        for table in tables:
            ...
            logger.info(f"{reporter()} Synced {table.log_name}")
    """

    def __init__(self, total: int, width: int = PROGRESS_WIDTH):
        if total <= 0:
            raise ValueError(f"Progress total must be positive, got {total}")
        if width <= 0:
            raise ValueError(f"Progress width must be positive, got {width}")
        self.total = total
        self.width = width
        self._completed = 0
        self._lock = threading.Lock()

    @property
    def completed(self) -> int:
        return self._completed

    def __call__(self) -> str:
        with self._lock:
            self._completed += 1
            completed = self._completed
        return progress_bar(completed, self.total, self.width)
