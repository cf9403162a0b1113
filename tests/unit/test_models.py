"""
Tests for fieldsync.models module.
"""

from fieldsync.field_types import FieldType
from fieldsync.models import DatabaseRef, FieldDescriptor, PersistedField, TableRef


def test_log_names():
    assert DatabaseRef(id=1, name="warehouse").log_name == "postgres Database 'warehouse'"
    assert TableRef(id=1, db_id=1, schema="public", name="users").log_name == "Table 'public.users'"
    assert TableRef(id=1, db_id=1, schema=None, name="users").full_name == "users"


def test_descriptor_key_is_case_insensitive():
    a = FieldDescriptor(name="UserID", base_type=FieldType.INTEGER)
    b = FieldDescriptor(name="userid", base_type=FieldType.TEXT)
    assert a.key == b.key == "userid"


class TestResolvedSpecialType:
    """Declared special type wins over the primary key flag."""

    def test_declared(self):
        d = FieldDescriptor(
            name="email", base_type=FieldType.TEXT, special_type=FieldType.EMAIL, is_primary_key=True
        )
        assert d.resolved_special_type is FieldType.EMAIL

    def test_primary_key(self):
        d = FieldDescriptor(name="id", base_type=FieldType.INTEGER, is_primary_key=True)
        assert d.resolved_special_type is FieldType.PK

    def test_none(self):
        assert FieldDescriptor(name="x", base_type=FieldType.TEXT).resolved_special_type is None


class TestPersistedField:
    """Catalog rows."""

    def test_display_name_defaults_to_humanized(self):
        field = PersistedField(id=1, table_id=1, name="created_at", base_type=FieldType.DATE_TIME)
        assert field.display_name == "Created At"

    def test_explicit_display_name_kept(self):
        field = PersistedField(
            id=1, table_id=1, name="created_at", base_type=FieldType.DATE_TIME, display_name="Signup"
        )
        assert field.display_name == "Signup"

    def test_to_descriptor_marks_primary_key(self):
        field = PersistedField(
            id=1, table_id=1, name="id", base_type=FieldType.INTEGER, special_type=FieldType.PK, parent_id=None
        )
        descriptor = field.to_descriptor()

        assert descriptor.is_primary_key is True
        assert descriptor.special_type is FieldType.PK
        assert descriptor.key == "id"

    def test_to_descriptor_plain_field(self):
        field = PersistedField(
            id=2, table_id=1, name="kind", base_type=FieldType.TEXT, special_type=FieldType.CATEGORY
        )
        assert field.to_descriptor().is_primary_key is False
