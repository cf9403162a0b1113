"""
Display-name generation for catalog fields.
"""

import re

_TRAILING_ID = re.compile(r"(?:-|_id)$", re.IGNORECASE)
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_SEPARATORS = re.compile(r"[_\-\s]+")


def name_to_display_name(raw_name: str) -> str:
    """
    Turn a raw column name into something a person would read.

        >>> name_to_display_name("venue_id")
        'Venue'
        >>> name_to_display_name("createdAt")
        'Created At'
    """
    if not raw_name:
        return raw_name
    if raw_name.lower() == "id":
        return "ID"

    name = _TRAILING_ID.sub("", raw_name)
    name = _CAMEL_BOUNDARY.sub(" ", name)
    words = [word for word in _SEPARATORS.split(name) if word]
    if not words:
        return raw_name
    return " ".join(word.capitalize() for word in words)
