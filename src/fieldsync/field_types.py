"""
Semantic type hierarchy for catalog fields.

Base types describe how a column is stored; special types describe what it
means. Both live in one ``type/<Name>`` namespace, and subtype relations are
declared in a table rather than through class inheritance.
"""

from enum import Enum
from typing import Dict, Optional, Set, Tuple, Union


class FieldType(str, Enum):
    """Known field types."""

    ANY = "type/*"

    # Base types
    NUMBER = "type/Number"
    INTEGER = "type/Integer"
    BIG_INTEGER = "type/BigInteger"
    FLOAT = "type/Float"
    DECIMAL = "type/Decimal"
    TEXT = "type/Text"
    BOOLEAN = "type/Boolean"
    TEMPORAL = "type/Temporal"
    DATE_TIME = "type/DateTime"
    DATE = "type/Date"
    TIME = "type/Time"
    UUID = "type/UUID"
    STRUCTURED = "type/Structured"
    DICTIONARY = "type/Dictionary"
    ARRAY = "type/Array"
    BINARY = "type/Binary"

    # Special types
    SPECIAL = "type/Special"
    PK = "type/PK"
    FK = "type/FK"
    CATEGORY = "type/Category"
    NAME = "type/Name"
    EMAIL = "type/Email"
    URL = "type/URL"
    DESCRIPTION = "type/Description"
    CREATION_TIMESTAMP = "type/CreationTimestamp"

    @classmethod
    def parse(cls, value: Union[str, "FieldType", None]) -> Optional["FieldType"]:
        """Coerce a stored value into a FieldType, leaving None alone."""
        if value is None or isinstance(value, FieldType):
            return value
        return cls(value)


# child -> direct parents
_PARENTS: Dict[FieldType, Tuple[FieldType, ...]] = {
    FieldType.NUMBER: (FieldType.ANY,),
    FieldType.INTEGER: (FieldType.NUMBER,),
    FieldType.BIG_INTEGER: (FieldType.INTEGER,),
    FieldType.FLOAT: (FieldType.NUMBER,),
    FieldType.DECIMAL: (FieldType.FLOAT,),
    FieldType.TEXT: (FieldType.ANY,),
    FieldType.BOOLEAN: (FieldType.ANY,),
    FieldType.TEMPORAL: (FieldType.ANY,),
    FieldType.DATE_TIME: (FieldType.TEMPORAL,),
    FieldType.DATE: (FieldType.DATE_TIME,),
    FieldType.TIME: (FieldType.DATE_TIME,),
    FieldType.UUID: (FieldType.TEXT,),
    FieldType.STRUCTURED: (FieldType.ANY,),
    FieldType.DICTIONARY: (FieldType.STRUCTURED,),
    FieldType.ARRAY: (FieldType.STRUCTURED,),
    FieldType.BINARY: (FieldType.ANY,),
    FieldType.SPECIAL: (FieldType.ANY,),
    FieldType.PK: (FieldType.SPECIAL,),
    FieldType.FK: (FieldType.SPECIAL,),
    FieldType.CATEGORY: (FieldType.SPECIAL,),
    FieldType.NAME: (FieldType.CATEGORY, FieldType.TEXT),
    FieldType.EMAIL: (FieldType.SPECIAL, FieldType.TEXT),
    FieldType.URL: (FieldType.SPECIAL, FieldType.TEXT),
    FieldType.DESCRIPTION: (FieldType.SPECIAL, FieldType.TEXT),
    FieldType.CREATION_TIMESTAMP: (FieldType.SPECIAL, FieldType.DATE_TIME),
}


def ancestors(field_type: FieldType) -> Set[FieldType]:
    """Return every type that ``field_type`` derives from, including itself."""
    seen: Set[FieldType] = set()
    pending = [field_type]
    while pending:
        current = pending.pop()
        if current in seen:
            continue
        seen.add(current)
        pending.extend(_PARENTS.get(current, ()))
    return seen


def isa(child: Optional[FieldType], parent: FieldType) -> bool:
    """Check whether ``child`` is ``parent`` or one of its declared subtypes."""
    if child is None:
        return False
    return parent in ancestors(FieldType(child))


def is_primary_key_type(field_type: Optional[FieldType]) -> bool:
    """Check if a special type marks a primary key."""
    return isa(field_type, FieldType.PK)
