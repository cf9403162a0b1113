"""
Command-line interface for fieldsync.
"""

import asyncio
import sys
from functools import wraps
from pathlib import Path
from typing import Dict, List, Tuple

import click
from rich.console import Console
from rich.table import Table

from . import __version__
from .catalog import CatalogSchemaManager, PostgresCatalogStore
from .config import CatalogConfig, DatabaseConfig, FieldSyncConfig
from .database import ConnectionConfig, ConnectionPool, DatabaseManager, PostgresMetadataSource
from .events import EventPublisher, LoggingEventPublisher, PgNotifyEventPublisher
from .exceptions import ConfigurationError, FieldSyncError
from .logging_setup import setup_logging
from .sync import FieldSyncService


console = Console()


def handle_errors(func):
    """Decorator to handle errors gracefully in CLI commands."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except FieldSyncError as e:
            console.print(f"[red]Error:[/red] {e}")
            sys.exit(1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted by user[/yellow]")
            sys.exit(0)
    return wrapper


def _load_config(path: str, debug: bool) -> FieldSyncConfig:
    config = FieldSyncConfig.from_yaml(path)
    config.validate_config()
    setup_logging(config.logging, debug=debug or config.debug)
    return config


@click.group()
@click.version_option(__version__)
@click.option("--debug", is_flag=True, help="Enable debug mode")
@click.pass_context
def main(ctx, debug):
    """fieldsync: keep a field catalog in step with live database schemas."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="fieldsync-config.yaml",
    help="Output configuration file path",
)
@handle_errors
def init(output: str):
    """Write a starter configuration file."""
    if Path(output).exists():
        if not click.confirm(f"Configuration file {output} already exists. Overwrite?"):
            return

    _create_default_config().to_yaml(output)
    console.print(f"[green]✓[/green] Configuration file created: {output}")
    console.print("\n[yellow]Next steps:[/yellow]")
    console.print("1. Edit the database and catalog connection details")
    console.print("2. Run: fieldsync setup-catalog --config your-config.yaml")
    console.print("3. Run: fieldsync sync-fields --config your-config.yaml")


@main.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    required=True,
    help="Configuration file path",
)
@handle_errors
def validate_config(config: str):
    """Validate configuration file."""
    console.print(f"Validating configuration: {config}")

    try:
        fieldsync_config = FieldSyncConfig.from_yaml(config)
        fieldsync_config.validate_config()
    except ConfigurationError as e:
        console.print(f"[red]✗[/red] Configuration error: {e}")
        sys.exit(1)

    console.print("[green]✓[/green] Configuration is valid")
    _display_config_summary(fieldsync_config)


@main.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    required=True,
    help="Configuration file path",
)
@click.pass_context
@handle_errors
def setup_catalog(ctx, config: str):
    """Create the catalog schema and tables."""
    fieldsync_config = _load_config(config, ctx.obj.get("debug", False))
    catalog = fieldsync_config.catalog

    async def run_setup():
        pool = ConnectionPool(catalog.connection)
        await pool.initialize()
        try:
            return await CatalogSchemaManager(pool, catalog.catalog_schema).setup()
        finally:
            await pool.close()

    results = asyncio.run(run_setup())
    for table_name in results["tables_created"]:
        console.print(f"[green]✓[/green] {table_name}")
    for error in results["errors"]:
        console.print(f"[red]✗[/red] {error}")
    if results["errors"]:
        sys.exit(1)


@main.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    required=True,
    help="Configuration file path",
)
@click.option(
    "--database",
    "-d",
    "database_names",
    multiple=True,
    help="Only sync these databases (repeatable)",
)
@click.pass_context
@handle_errors
def sync_fields(ctx, config: str, database_names: Tuple[str, ...]):
    """Sync catalog fields with the live schema of each database."""
    fieldsync_config = _load_config(config, ctx.obj.get("debug", False))

    if database_names:
        databases = [fieldsync_config.get_database(name) for name in database_names]
    else:
        databases = list(fieldsync_config.databases)

    if not databases:
        console.print("[yellow]No databases configured[/yellow]")
        return

    results = asyncio.run(_run_field_sync(fieldsync_config, databases))

    table = Table(title="Field Sync")
    table.add_column("Database", style="cyan")
    table.add_column("Result")
    for name, ok in results.items():
        table.add_row(name, "[green]ok[/green]" if ok else "[red]failed[/red]")
    console.print(table)

    if not all(results.values()):
        sys.exit(1)


def _build_publisher(config: FieldSyncConfig, catalog_pool: ConnectionPool) -> EventPublisher:
    if config.events.publisher == "notify":
        return PgNotifyEventPublisher(catalog_pool, config.events.channel)
    return LoggingEventPublisher()


async def _run_field_sync(
    config: FieldSyncConfig, databases: List[DatabaseConfig]
) -> Dict[str, bool]:
    catalog_pool = ConnectionPool(config.catalog.connection)
    await catalog_pool.initialize()

    manager = DatabaseManager()
    for db in databases:
        manager.add_database(db.name, db.connection)

    try:
        service = FieldSyncService(
            PostgresMetadataSource(manager),
            PostgresCatalogStore(catalog_pool, config.catalog.catalog_schema),
            _build_publisher(config, catalog_pool),
            progress_width=config.sync.progress_width,
        )
        return await service.sync_all([db.to_ref() for db in databases])
    finally:
        await manager.close_all()
        await catalog_pool.close()


def _create_default_config() -> FieldSyncConfig:
    """Create a default configuration."""
    return FieldSyncConfig(
        databases=[
            DatabaseConfig(
                id=1,
                name="warehouse",
                connection=ConnectionConfig(
                    host="localhost",
                    database="warehouse",
                    user="postgres",
                    password="${POSTGRES_PASSWORD}",
                ),
            )
        ],
        catalog=CatalogConfig(
            connection=ConnectionConfig(
                host="localhost",
                database="fieldsync",
                user="postgres",
                password="${POSTGRES_PASSWORD}",
            )
        ),
    )


def _display_config_summary(config: FieldSyncConfig):
    """Display configuration summary."""
    table = Table(title="Configuration Summary")
    table.add_column("Database", style="cyan")
    table.add_column("Id")
    table.add_column("Engine")
    table.add_column("Host", style="green")

    for db in config.databases:
        table.add_row(
            db.name,
            str(db.id),
            db.engine,
            f"{db.connection.host}:{db.connection.port}/{db.connection.database}",
        )

    console.print(table)
    if config.catalog:
        console.print(
            f"Catalog: {config.catalog.connection.host}/{config.catalog.connection.database}"
            f" (schema {config.catalog.catalog_schema})"
        )
    console.print(f"Events: {config.events.publisher}")


if __name__ == "__main__":
    main()
