"""
Database facade: the typed entry point applications use.

Usage:
    from ormlet import Options, Settings, connect

    with connect(Settings(url="sqlite:///app.db")) as db:
        db.tables(User, Book)
        user_id = db.insert(User(name="ada", age=36, vip=True))
        adults = db.find(User, lambda o: o.where("age >= ?", 18).order("age", Options.DESC))

Every call generates its statement with SQLTemplate and runs it through the
Runner; registration goes through TableManager.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Optional, Type, TypeVar, Union

from pydantic import BaseModel

from ormlet.config import Settings, get_settings
from ormlet.domain.metadata import PRIMARY_KEY
from ormlet.infrastructure.runner import Runner
from ormlet.schema import TableManager
from ormlet.sql.options import Options
from ormlet.sql.template import SQLTemplate
from ormlet.utils.logging import get_logger

log = get_logger(__name__)

T = TypeVar("T", bound=BaseModel)

OptionsArg = Union[Options, Callable[[Options], Any], None]


def _resolve_options(options: OptionsArg) -> Optional[Options]:
    if options is None or isinstance(options, Options):
        return options
    built = Options()
    options(built)
    return built


class Database:
    """
    Connected handle over one pooled database.

    Closing the handle (explicitly or by leaving a ``with`` block) releases the
    pool. Safe for concurrent use from several threads.
    """

    def __init__(self, settings: Settings, runner: Optional[Runner] = None) -> None:
        self.settings = settings
        self.runner = runner or Runner(settings)
        self.template = SQLTemplate(self.runner.dialect)
        self.schema = TableManager(self.runner, self.template)

    @property
    def dialect(self):
        return self.runner.dialect

    def close(self) -> None:
        self.runner.close()

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # Schema

    def tables(self, *models: Type[BaseModel]) -> None:
        """Register record types: create their tables and migrate them additively."""
        self.schema.register(*models)

    def drop(self, *models: Type[BaseModel]) -> None:
        self.schema.drop(*models)

    # Writes

    def insert(self, record: BaseModel) -> int:
        """Insert a record; returns the generated id, or -1 when nothing was inserted."""
        return self.runner.insert(self.template.insert(record))

    def update(self, record: BaseModel, predicate: Optional[str] = None, *args: Any) -> int:
        """
        Set every non-None field of ``record`` (except ``id``) on matching rows.

        Without a predicate every row is updated. Returns the affected row count.
        """
        statement = self.template.update(record, Options().where(predicate, *args))
        if statement is None:
            log.debug("Nothing to update", extra={"model": type(record).__name__})
            return 0
        return self.runner.execute_update(statement)

    def update_by_id(self, record: BaseModel, id: int) -> int:
        return self.update(record, f"{PRIMARY_KEY} = ?", id)

    def delete(self, model: Type[BaseModel], predicate: Optional[str] = None, *args: Any) -> int:
        """Delete matching rows; without a predicate the table is emptied."""
        statement = self.template.delete(model, Options().where(predicate, *args))
        return self.runner.execute_update(statement)

    def delete_by_ids(self, model: Type[BaseModel], ids: Iterable[int]) -> int:
        return self.delete(model, f"{PRIMARY_KEY} in(?)", list(ids))

    def delete_all(self, model: Type[BaseModel]) -> int:
        return self.delete(model, None)

    # Reads

    def find(self, model: Type[T], options: OptionsArg = None) -> List[T]:
        """
        Query records.

        ``options`` is an Options instance or a callable that configures a fresh
        one, e.g. ``lambda o: o.select("name").where("age > ?", 30).limit(5)``.
        """
        return self.runner.query(self.template.query(model, _resolve_options(options)), model)

    def find_by_ids(self, model: Type[T], ids: Iterable[int]) -> List[T]:
        return self.find(model, Options().where(f"{PRIMARY_KEY} in(?)", list(ids)))

    def find_all(self, model: Type[T]) -> List[T]:
        return self.find(model)

    def find_one(self, model: Type[T], predicate: Optional[str] = None, *args: Any) -> Optional[T]:
        records = self.find(model, Options().where(predicate, *args).limit(1))
        return records[0] if records else None

    def find_by_id(self, model: Type[T], id: int) -> Optional[T]:
        return self.find_one(model, f"{PRIMARY_KEY} = ?", id)

    def first(self, model: Type[T], predicate: Optional[str] = None, *args: Any) -> Optional[T]:
        """Lowest-id record matching the predicate."""
        records = self.find(
            model, Options().where(predicate, *args).order(PRIMARY_KEY, Options.ASC).limit(1)
        )
        return records[0] if records else None

    def last(self, model: Type[T], predicate: Optional[str] = None, *args: Any) -> Optional[T]:
        """Highest-id record matching the predicate."""
        records = self.find(
            model, Options().where(predicate, *args).order(PRIMARY_KEY, Options.DESC).limit(1)
        )
        return records[0] if records else None

    # Aggregates

    def _aggregate(
        self, model: Type[BaseModel], expression: str, predicate: Optional[str], args: tuple
    ) -> Any:
        statement = self.template.query(model, Options().select(expression).where(predicate, *args))
        return self.runner.scalar(statement)

    def count(self, model: Type[BaseModel], predicate: Optional[str] = None, *args: Any) -> int:
        value = self._aggregate(model, "count(*)", predicate, args)
        return int(value) if value is not None else 0

    def average(
        self, model: Type[BaseModel], column: str, predicate: Optional[str] = None, *args: Any
    ) -> float:
        """Mean of ``column``; 0.0 when no row matches."""
        value = self._aggregate(model, f"avg({column})", predicate, args)
        return float(value) if value is not None else 0.0

    def sum(
        self, model: Type[BaseModel], column: str, predicate: Optional[str] = None, *args: Any
    ) -> Any:
        """Sum of ``column``; None when no row matches."""
        return self._aggregate(model, f"sum({column})", predicate, args)

    def max(
        self, model: Type[BaseModel], column: str, predicate: Optional[str] = None, *args: Any
    ) -> Any:
        return self._aggregate(model, f"max({column})", predicate, args)

    def min(
        self, model: Type[BaseModel], column: str, predicate: Optional[str] = None, *args: Any
    ) -> Any:
        return self._aggregate(model, f"min({column})", predicate, args)


def connect(settings: Optional[Settings] = None, **overrides: Any) -> Database:
    """
    Open a Database from ``settings`` (default: environment via get_settings()).

    Keyword overrides are applied on top, e.g. ``connect(url="sqlite:///x.db")``.

    Raises
    ------
    ConfigurationError
        Unknown driver or malformed URL.
    SqlExecutionError
        The database could not be reached.
    """
    base = settings or get_settings()
    if overrides:
        base = Settings(**{**base.model_dump(), **overrides})
    return Database(base)


__all__ = ["Database", "connect"]
