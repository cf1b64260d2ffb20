from __future__ import annotations

import importlib
import sys
from typing import List, Optional, Type

import typer
from pydantic import BaseModel
from rich import box
from rich.console import Console
from rich.table import Table

from ormlet.config import Driver, Settings, get_settings
from ormlet.db import Database, connect
from ormlet.dialects import get_dialect
from ormlet.domain.metadata import introspect, table_name
from ormlet.errors import OrmError
from ormlet.sql.template import SQLTemplate
from ormlet.utils.logging import configure_logging

app = typer.Typer(help="ormlet CLI: inspect record types and migrate their tables.")
console = Console()


def load_model(path: str) -> Type[BaseModel]:
    """
    Import a record type from ``package.module:ClassName``.
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise typer.BadParameter(f"Expected 'package.module:ClassName', got '{path}'.")
    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise typer.BadParameter(f"Cannot import module '{module_name}': {exc}") from exc
    model = getattr(module, attr, None)
    if not (isinstance(model, type) and issubclass(model, BaseModel)):
        raise typer.BadParameter(f"'{path}' is not a pydantic record type.")
    return model


def _settings(url: Optional[str]) -> Settings:
    settings = get_settings()
    if url:
        settings = Settings(**{**settings.model_dump(), "url": url, "driver": None})
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)
    return settings


def _schema_table(db: Database, model: Type[BaseModel]) -> Table:
    snapshot = db.schema.refresh(model)
    table = Table(title=f"{table_name(model)} (live)", box=box.SIMPLE_HEAVY)
    table.add_column("Column", style="bold")
    table.add_column("Type")
    table.add_column("Indexes")
    for column, column_type in snapshot.columns.items():
        indexes = sorted(index for index, indexed in snapshot.indexes.items() if indexed == column)
        table.add_row(column, column_type, ", ".join(indexes))
    return table


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    try:
        driver = settings.resolved_driver().value
    except OrmError as exc:
        driver = f"invalid ({exc})"
    typer.echo(
        f"URL={settings.masked_url()} | driver={driver} | "
        f"pool init={settings.init_size} max={settings.max_size} "
        f"idle={settings.min_idle}..{settings.max_idle} timeout={settings.pool_timeout}s"
    )


@app.command()
def inspect(
    model: str = typer.Argument(..., help="Record type as package.module:ClassName."),
    driver: Optional[str] = typer.Option(
        None, "--driver", "-d", help="Dialect to render DDL for (sqlite, postgresql)."
    ),
) -> None:
    """
    Show a record type's column metadata and its CREATE TABLE statement.
    """
    record_type = load_model(model)
    settings = get_settings()
    try:
        dialect = get_dialect(Driver(driver) if driver else settings.resolved_driver())
        metadata = introspect(record_type)
    except (OrmError, ValueError) as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)

    table = Table(title=f"{record_type.__name__} -> {table_name(record_type)}", box=box.SIMPLE_HEAVY)
    table.add_column("Field", style="bold")
    table.add_column("Python type")
    table.add_column("Database type")
    table.add_column("Indexed", justify="center")
    for name, meta in metadata.items():
        python_type = getattr(meta.python_type, "__name__", str(meta.python_type))
        table.add_row(name, python_type, dialect.column_type(meta.db_type), "yes" if meta.index else "")
    console.print(table)
    typer.echo(SQLTemplate(dialect).create(record_type).render())


@app.command()
def migrate(
    models: List[str] = typer.Argument(..., help="Record types as package.module:ClassName."),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Override ORM_URL."),
) -> None:
    """
    Create and additively migrate the tables of the given record types.
    """
    record_types = [load_model(path) for path in models]
    settings = _settings(url)
    try:
        with connect(settings) as db:
            db.tables(*record_types)
            for record_type in record_types:
                console.print(_schema_table(db, record_type))
    except OrmError as exc:
        typer.echo(f"Migration failed: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Migrated {len(record_types)} table(s).")


@app.command()
def drop(
    models: List[str] = typer.Argument(..., help="Record types as package.module:ClassName."),
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Override ORM_URL."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """
    Drop the tables of the given record types.
    """
    record_types = [load_model(path) for path in models]
    names = ", ".join(table_name(record_type) for record_type in record_types)
    if not yes:
        typer.confirm(f"Drop table(s) {names}?", abort=True)
    settings = _settings(url)
    try:
        with connect(settings) as db:
            db.drop(*record_types)
    except OrmError as exc:
        typer.echo(f"Drop failed: {exc}", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Dropped {names}.")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
