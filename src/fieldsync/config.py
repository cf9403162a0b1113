"""
Configuration system for fieldsync using Pydantic.
"""

import os
from pathlib import Path
from typing import Any, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .catalog.schema import validate_identifier
from .database.connection import ConnectionConfig
from .exceptions import ConfigurationError
from .models import DatabaseRef


class DatabaseConfig(BaseModel):
    """A physical database whose columns are synced into the catalog."""

    id: int = Field(..., description="Catalog id of the database")
    name: str = Field(..., description="Database configuration name")
    engine: str = Field("postgres", description="Database engine")
    connection: ConnectionConfig = Field(..., description="Connection details")

    def to_ref(self) -> DatabaseRef:
        return DatabaseRef(id=self.id, name=self.name, engine=self.engine)


class CatalogConfig(BaseModel):
    """Where the field catalog lives."""

    connection: ConnectionConfig = Field(..., description="Catalog database connection")
    catalog_schema: str = Field("fieldsync_catalog", description="Catalog schema name")

    @field_validator("catalog_schema")
    @classmethod
    def check_schema_name(cls, v: str) -> str:
        return validate_identifier(v)


class EventsConfig(BaseModel):
    """Sync event publishing."""

    publisher: Literal["log", "notify"] = Field("log", description="Event publisher type")
    channel: str = Field("fieldsync_events", description="NOTIFY channel for events")


class SyncConfig(BaseModel):
    """Sync behaviour."""

    progress_width: int = Field(50, gt=0, description="Width of the progress bar")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "INFO", description="Log level"
    )
    format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    file: Optional[str] = Field(None, description="Log file path")
    max_size: int = Field(10485760, description="Max log file size in bytes")  # 10MB
    backup_count: int = Field(5, description="Number of backup log files")


class FieldSyncConfig(BaseSettings):
    """Main fieldsync configuration."""

    service_name: str = Field("fieldsync", description="Service name")
    debug: bool = Field(False, description="Enable debug mode")

    databases: List[DatabaseConfig] = Field(
        default_factory=list, description="Databases to sync"
    )
    catalog: Optional[CatalogConfig] = Field(None, description="Catalog configuration")
    events: EventsConfig = Field(
        default_factory=EventsConfig, description="Event configuration"
    )
    sync: SyncConfig = Field(default_factory=SyncConfig, description="Sync configuration")
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="FIELDSYNC_",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "FieldSyncConfig":
        """Load configuration from a YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

            data = cls._expand_env_vars(data)

            return cls(**data)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    @classmethod
    def _expand_env_vars(cls, data: Any) -> Any:
        """Recursively expand environment variables in configuration data."""
        if isinstance(data, dict):
            return {k: cls._expand_env_vars(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [cls._expand_env_vars(item) for item in data]
        elif isinstance(data, str):
            return os.path.expandvars(data)
        else:
            return data

    def get_database(self, name: str) -> DatabaseConfig:
        """Get database configuration by name."""
        for db in self.databases:
            if db.name == name:
                return db
        raise ConfigurationError(f"Database configuration '{name}' not found")

    def validate_config(self) -> None:
        """Validate the entire configuration for consistency."""
        if self.catalog is None:
            raise ConfigurationError("No catalog configured")

        seen_ids = set()
        seen_names = set()
        for db in self.databases:
            if db.id in seen_ids:
                raise ConfigurationError(f"Duplicate database id {db.id}")
            if db.name in seen_names:
                raise ConfigurationError(f"Duplicate database name '{db.name}'")
            seen_ids.add(db.id)
            seen_names.add(db.name)

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(mode="json", exclude_none=True),
                f,
                default_flow_style=False,
                indent=2,
                sort_keys=False,
            )
