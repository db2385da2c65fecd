"""Pydantic models for the query snapshots held by the fluent builders.

Each builder call produces a new snapshot with ``model_copy(update=...)``.
Unchanged tuples and expression nodes are shared between snapshots, never
copied, so a long chain stays linear in cost while every earlier snapshot
remains valid.
"""
from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from pgfluent.schema.expressions import JoinKind, SortDirection
from pgfluent.schema.identifiers import ColumnExpression, TableRef
from pgfluent.schema.nodes import ExpressionNode

_SNAPSHOT = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)


class JoinClause(BaseModel):
    """A single ``<kind> JOIN table ON left = right`` entry.

    Attributes:
        kind: SQL join type.
        table: The joined table.
        left: Left ON column as written by the caller.
        right: Right ON column as written by the caller.
    """

    model_config = _SNAPSHOT

    kind: JoinKind = JoinKind.INNER
    table: TableRef
    left: str
    right: str


class OrderByItem(BaseModel):
    """A single ORDER BY column.

    Attributes:
        column: Column reference or SELECT output alias.
        direction: Sort direction.
    """

    model_config = _SNAPSHOT

    column: str
    direction: SortDirection = SortDirection.ASC


class SelectQuery(BaseModel):
    """All clause state of a SELECT statement.

    Attributes:
        table: The FROM table.
        joins: Joins in call order.
        selections: Selected columns; empty means ``*``.
        where: Root of the WHERE tree, or ``None`` when never filtered.
        order_by: ORDER BY items in call order.
        limit: Optional LIMIT.
        offset: Optional OFFSET.
    """

    model_config = _SNAPSHOT

    table: TableRef
    joins: tuple[JoinClause, ...] = ()
    selections: tuple[ColumnExpression, ...] = ()
    where: ExpressionNode | None = None
    order_by: tuple[OrderByItem, ...] = ()
    limit: int | None = Field(default=None, ge=0)
    offset: int | None = Field(default=None, ge=0)

    @property
    def tables(self) -> tuple[TableRef, ...]:
        """FROM table followed by every joined table."""
        return (self.table,) + tuple(j.table for j in self.joins)


class OnConflictClause(BaseModel):
    """``ON CONFLICT`` target and action of an INSERT.

    Attributes:
        columns: Conflict target columns (``ON CONFLICT (a, b)``).
        constraint: Conflict target constraint name.
        action: ``"nothing"`` or ``"update"``.
        updates: ``SET`` assignments for ``DO UPDATE``.
    """

    model_config = _SNAPSHOT

    columns: tuple[str, ...] = ()
    constraint: str | None = None
    action: Literal["nothing", "update"] = "nothing"
    updates: dict[str, Any] = Field(default_factory=dict)


class InsertQuery(BaseModel):
    """All clause state of an INSERT statement.

    Attributes:
        table: Target table.
        rows: Row mappings in call order.
        on_conflict: Optional conflict handling.
        returning: RETURNING columns; ``*`` is stored as a star expression.
    """

    model_config = _SNAPSHOT

    table: TableRef
    rows: tuple[dict[str, Any], ...] = ()
    on_conflict: OnConflictClause | None = None
    returning: tuple[ColumnExpression, ...] = ()

    @property
    def columns(self) -> list[str]:
        """Union of row keys in first-seen order."""
        seen: dict[str, None] = {}
        for row in self.rows:
            for key in row:
                seen.setdefault(key, None)
        return list(seen)
