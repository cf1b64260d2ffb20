"""
Fluent query specification.

Options only records intent (columns, predicate, ordering, paging); the SQL
generator turns it into a statement. The predicate is passed through verbatim
with ``?`` placeholders for its arguments.
"""
from __future__ import annotations

from typing import Any, Optional, Tuple


class Options:
    """
    Mutable builder consumed once by ``SQLTemplate.query``.

    Example
    -------
        opts = (
            Options()
            .select("name", "age")
            .where("age <= ? AND vip = ?", 50, True)
            .order("age", Options.DESC)
            .limit(5)
            .offset(0)
        )
    """

    ASC = "ASC"
    DESC = "DESC"

    def __init__(self) -> None:
        self.columns: Tuple[str, ...] = ()
        self.predicate: Optional[str] = None
        self.args: Tuple[Any, ...] = ()
        self.order_column: Optional[str] = None
        self.order_direction: str = self.ASC
        self.limit_value: Optional[int] = None
        self.offset_value: Optional[int] = None

    def select(self, *columns: str) -> "Options":
        self.columns = tuple(columns)
        return self

    def where(self, predicate: Optional[str], *args: Any) -> "Options":
        """Set the predicate; a None predicate clears it and drops ``args``."""
        if predicate is None:
            self.predicate, self.args = None, ()
        else:
            self.predicate, self.args = predicate, tuple(args)
        return self

    def order(self, column: str, direction: str = ASC) -> "Options":
        normalized = direction.upper()
        if normalized not in (self.ASC, self.DESC):
            raise ValueError(f"Order direction must be ASC or DESC, got {direction!r}")
        self.order_column, self.order_direction = column, normalized
        return self

    def limit(self, n: int) -> "Options":
        self.limit_value = _non_negative("limit", n)
        return self

    def offset(self, n: int) -> "Options":
        self.offset_value = _non_negative("offset", n)
        return self

    @property
    def selection(self) -> str:
        return ", ".join(self.columns) if self.columns else "*"

    def __repr__(self) -> str:
        return (
            f"Options(select={self.selection!r}, where={self.predicate!r}, args={self.args!r}, "
            f"order={self.order_column!r} {self.order_direction}, "
            f"limit={self.limit_value!r}, offset={self.offset_value!r})"
        )


def _non_negative(name: str, n: int) -> int:
    if isinstance(n, bool) or not isinstance(n, int) or n < 0:
        raise ValueError(f"{name} must be a non-negative integer, got {n!r}")
    return n


__all__ = ["Options"]
