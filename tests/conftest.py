"""
Pytest configuration and shared fixtures for fieldsync tests.
"""

import os
import tempfile
from typing import Any, Dict, List, Tuple

import pytest
import yaml

from fieldsync.catalog import InMemoryCatalogStore
from fieldsync.context import DEFAULT_CONTEXT
from fieldsync.field_types import FieldType
from fieldsync.models import DatabaseRef, FieldDescriptor, TableRef


class StaticMetadataSource:
    """Metadata source returning fixed descriptors per table id."""

    def __init__(self, fields_by_table: Dict[int, List[FieldDescriptor]] = None):
        self.fields_by_table = fields_by_table or {}
        self.calls: List[Tuple[DatabaseRef, TableRef]] = []
        self.contexts = []

    async def fetch(self, database, table, *, ctx=DEFAULT_CONTEXT):
        self.calls.append((database, table))
        self.contexts.append(ctx)
        return list(self.fields_by_table.get(table.id, []))


class RecordingEventPublisher:
    """Keeps published events in memory."""

    def __init__(self):
        self.events: List[Tuple[str, Dict[str, Any]]] = []

    async def publish(self, event_name, payload):
        self.events.append((event_name, payload))

    @property
    def names(self) -> List[str]:
        return [name for name, _ in self.events]


@pytest.fixture
def database() -> DatabaseRef:
    return DatabaseRef(id=1, name="warehouse")


@pytest.fixture
def other_database() -> DatabaseRef:
    return DatabaseRef(id=2, name="analytics")


@pytest.fixture
def table() -> TableRef:
    return TableRef(id=10, db_id=1, schema="public", name="users")


@pytest.fixture
def store(table) -> InMemoryCatalogStore:
    catalog = InMemoryCatalogStore()
    catalog.add_table(table)
    return catalog


@pytest.fixture
def source() -> StaticMetadataSource:
    return StaticMetadataSource()


@pytest.fixture
def publisher() -> RecordingEventPublisher:
    return RecordingEventPublisher()


@pytest.fixture
def users_columns() -> List[FieldDescriptor]:
    """Source columns of a simple users table."""
    return [
        FieldDescriptor(name="id", base_type=FieldType.INTEGER, is_primary_key=True),
        FieldDescriptor(name="name", base_type=FieldType.TEXT),
        FieldDescriptor(name="created_at", base_type=FieldType.DATE_TIME),
    ]


@pytest.fixture
def sample_config_data() -> Dict[str, Any]:
    return {
        "service_name": "fieldsync-test",
        "databases": [
            {
                "id": 1,
                "name": "warehouse",
                "connection": {
                    "host": "localhost",
                    "port": 5432,
                    "database": "warehouse",
                    "user": "test_user",
                    "password": "test_password",
                },
            },
            {
                "id": 2,
                "name": "analytics",
                "connection": {
                    "host": "localhost",
                    "database": "analytics",
                    "user": "test_user",
                },
            },
        ],
        "catalog": {
            "connection": {
                "host": "localhost",
                "database": "fieldsync",
                "user": "test_user",
                "password": "test_password",
            },
            "catalog_schema": "fieldsync_catalog",
        },
        "events": {"publisher": "log"},
    }


@pytest.fixture
def temp_config_file(sample_config_data):
    """Temporary configuration file for testing."""
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(sample_config_data, f)
    yield f.name
    os.unlink(f.name)
