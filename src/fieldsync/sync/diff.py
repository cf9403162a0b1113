"""
Case-insensitive set difference over field descriptors.
"""

from typing import Iterable, List

from ..models import FieldDescriptor


def diff_fields(
    a: Iterable[FieldDescriptor],
    b: Iterable[FieldDescriptor],
) -> List[FieldDescriptor]:
    """Return the descriptors in ``a`` whose lowercased name is not in ``b``."""
    names_in_b = {field.key for field in b}
    return [field for field in a if field.key not in names_in_b]
