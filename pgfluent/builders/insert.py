"""Fluent INSERT builder with ON CONFLICT and RETURNING."""
from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pgfluent.builders.base import StatementBuilder, flatten_names
from pgfluent.compile.builder import StatementCompiler
from pgfluent.errors import EmptyIdentifierError, InvalidOperandError, MalformedExpressionError
from pgfluent.execution import Executor
from pgfluent.schema.identifiers import (
    ColumnExpression,
    is_identifier,
    parse_column_expression,
    parse_table_expression,
)
from pgfluent.schema.query import InsertQuery, OnConflictClause


class OnConflictBuilder:
    """Immutable description of an ``ON CONFLICT`` clause.

    Passed to the callback of :meth:`InsertQueryBuilder.on_conflict`::

        db.insert_into("users").values(row).on_conflict(
            lambda oc: oc.column("email").do_update({"name": ref("excluded.name")})
        )
    """

    def __init__(self, clause: OnConflictClause | None = None, action_set: bool = False) -> None:
        self._clause = clause or OnConflictClause()
        self._action_set = action_set

    def columns(self, *columns: str | list[str]) -> OnConflictBuilder:
        """Conflict target ``(a, b, ...)``; replaces any constraint target."""
        names = tuple(_column_name(c) for c in flatten_names(columns, "columns"))
        if not names:
            raise InvalidOperandError("columns() requires at least one column.", operator="columns")
        return self._with(columns=names, constraint=None)

    def column(self, column: str) -> OnConflictBuilder:
        return self.columns(column)

    def constraint(self, name: str) -> OnConflictBuilder:
        """Conflict target ``ON CONSTRAINT name``; replaces any column target."""
        if not isinstance(name, str):
            raise InvalidOperandError("constraint() expects a name.", operator="constraint", operand=name)
        return self._with(constraint=_column_name(name), columns=())

    def do_nothing(self) -> OnConflictBuilder:
        return self._with(action_set=True, action="nothing", updates={})

    def do_update(self, assignments: Mapping[str, Any]) -> OnConflictBuilder:
        """``DO UPDATE SET col = value, ...``.

        Values are bound as parameters unless they are column references
        (``ref("excluded.col")``) or raw fragments.
        """
        if not isinstance(assignments, Mapping) or not assignments:
            raise InvalidOperandError(
                "do_update() requires a non-empty mapping of column to value.",
                operator="do_update",
                operand=assignments,
            )
        updates = {_column_name(col): value for col, value in assignments.items()}
        return self._with(action_set=True, action="update", updates=updates)

    def build(self) -> OnConflictClause:
        if not self._action_set:
            raise InvalidOperandError(
                "on_conflict() callback must choose do_nothing() or do_update().", operator="on_conflict"
            )
        if self._clause.action == "update" and not (self._clause.columns or self._clause.constraint):
            raise InvalidOperandError(
                "ON CONFLICT DO UPDATE requires conflict columns or a constraint.", operator="do_update"
            )
        return self._clause

    def _with(self, action_set: bool | None = None, **updates: Any) -> OnConflictBuilder:
        return OnConflictBuilder(
            self._clause.model_copy(update=updates),
            self._action_set if action_set is None else action_set,
        )


class InsertQueryBuilder(StatementBuilder[InsertQuery]):
    """Immutable INSERT builder; every method returns a new builder.

    Rows may have different keys: the column list is the union of all keys
    and a row missing a column inserts ``DEFAULT`` there.
    """

    @classmethod
    def from_table(
        cls,
        table: str,
        compiler: StatementCompiler,
        executor: Executor | None = None,
    ) -> InsertQueryBuilder:
        return cls(InsertQuery(table=parse_table_expression(table)), compiler, executor)

    def values(self, rows: Mapping[str, Any] | list[Mapping[str, Any]]) -> InsertQueryBuilder:
        """Append one row (a mapping) or several rows (a list of mappings).

        Raises:
            InvalidOperandError: If no rows are given or a row is not a
                non-empty mapping.
            MalformedExpressionError: If a key is not a plain column name.
        """
        if isinstance(rows, Mapping):
            rows = [rows]
        if not isinstance(rows, (list, tuple)) or not rows:
            raise InvalidOperandError("values() requires at least one row.", operator="values", operand=rows)

        new_rows = []
        for row in rows:
            if not isinstance(row, Mapping) or not row:
                raise InvalidOperandError(
                    "values() rows must be non-empty mappings of column to value.",
                    operator="values",
                    operand=row,
                )
            new_rows.append({_column_name(key): value for key, value in row.items()})
        return self._with(rows=self._query.rows + tuple(new_rows))

    def returning(self, *columns: str | list[str]) -> InsertQueryBuilder:
        parsed = tuple(parse_column_expression(c) for c in flatten_names(columns, "returning"))
        return self._with(returning=self._query.returning + parsed)

    def returning_all(self) -> InsertQueryBuilder:
        return self._with(returning=self._query.returning + (ColumnExpression(name="*"),))

    def on_conflict(self, callback: Callable[[OnConflictBuilder], OnConflictBuilder]) -> InsertQueryBuilder:
        """Configure conflict handling through ``callback(oc)``."""
        result = callback(OnConflictBuilder())
        if not isinstance(result, OnConflictBuilder):
            raise InvalidOperandError(
                f"on_conflict() callback must return the conflict builder, got {type(result).__name__}.",
                operator="on_conflict",
                operand=result,
            )
        return self._with(on_conflict=result.build())

    def _with(self, **updates: Any) -> InsertQueryBuilder:
        return InsertQueryBuilder(self._query.model_copy(update=updates), self._compiler, self._executor)


def _column_name(name: Any) -> str:
    """An unqualified column name as used in INSERT and ON CONFLICT."""
    if not isinstance(name, str):
        raise InvalidOperandError(f"Column names must be strings, got {type(name).__name__}.", operand=name)
    stripped = name.strip()
    if not stripped:
        raise EmptyIdentifierError("column", name)
    if not is_identifier(stripped):
        raise MalformedExpressionError(name, "expected a plain column name")
    return stripped
