"""
Data model for field synchronization.

Transient descriptors reported by a metadata source, plus the catalog's view
of databases, tables and persisted fields.
"""

from dataclasses import dataclass
from typing import Optional

from .field_types import FieldType, is_primary_key_type
from .humanization import name_to_display_name


@dataclass(frozen=True)
class DatabaseRef:
    """A physical database known to the catalog."""

    id: int
    name: str
    engine: str = "postgres"

    @property
    def log_name(self) -> str:
        return f"{self.engine} Database '{self.name}'"


@dataclass(frozen=True)
class TableRef:
    """A catalog table that takes part in sync."""

    id: int
    db_id: int
    schema: Optional[str]
    name: str
    active: bool = True
    visibility_type: Optional[str] = None

    @property
    def full_name(self) -> str:
        """Get the schema-qualified table name."""
        return f"{self.schema}.{self.name}" if self.schema else self.name

    @property
    def log_name(self) -> str:
        return f"Table '{self.full_name}'"


@dataclass(frozen=True)
class FieldDescriptor:
    """
    Shape of one column as reported by a metadata source.

    Two descriptors describe the same field when their lowercased names
    match; see :attr:`key`.
    """

    name: str
    base_type: FieldType
    special_type: Optional[FieldType] = None
    is_primary_key: bool = False
    parent_id: Optional[int] = None
    source_column_ref: Optional[str] = None
    display_name: Optional[str] = None

    @property
    def key(self) -> str:
        return self.name.lower()

    @property
    def log_name(self) -> str:
        return f"Field '{self.name}'"

    @property
    def resolved_special_type(self) -> Optional[FieldType]:
        """Declared special type, else PK when the source marks a primary key."""
        if self.special_type is not None:
            return self.special_type
        return FieldType.PK if self.is_primary_key else None


@dataclass
class PersistedField:
    """A field row in the catalog. Inactive rows are retired, never deleted."""

    id: int
    table_id: int
    name: str
    base_type: FieldType
    special_type: Optional[FieldType] = None
    display_name: Optional[str] = None
    parent_id: Optional[int] = None
    active: bool = True

    def __post_init__(self):
        if not self.display_name:
            self.display_name = name_to_display_name(self.name)

    @property
    def log_name(self) -> str:
        return f"Field '{self.name}'"

    def to_descriptor(self) -> FieldDescriptor:
        """Project onto the descriptor shape used for diffing."""
        return FieldDescriptor(
            name=self.name,
            base_type=self.base_type,
            special_type=self.special_type,
            is_primary_key=is_primary_key_type(self.special_type),
            parent_id=self.parent_id,
        )


@dataclass(frozen=True)
class NewField:
    """Attributes for a field about to be created in the catalog."""

    table_id: int
    name: str
    display_name: str
    base_type: FieldType
    special_type: Optional[FieldType] = None
    parent_id: Optional[int] = None
