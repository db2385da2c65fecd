"""Clause-level SQL builders.

Each class handles exactly one SQL clause.  Builders that bind values
share the statement's :class:`~pgfluent.compile.predicate_builder.ValueBuilder`
so parameter numbers keep increasing across clauses.

Classes
-------
SelectClauseBuilder      ``SELECT <items>``
FromClauseBuilder        ``FROM table [AS alias]``
JoinClauseBuilder        ``<kind> JOIN table [AS alias] ON a = b``
OrderByClauseBuilder     ``ORDER BY col DIR, ...``
InsertClauseBuilder      ``INSERT INTO table (cols) VALUES (...), ...``
OnConflictClauseBuilder  ``ON CONFLICT ... DO NOTHING | DO UPDATE SET ...``
ReturningClauseBuilder   ``RETURNING cols | *``
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace

from pgfluent.compile.context import CompilationContext
from pgfluent.compile.predicate_builder import RuntimeContext, ValueBuilder
from pgfluent.errors import InvalidOperandError
from pgfluent.schema.identifiers import ColumnExpression, TableRef
from pgfluent.schema.query import InsertQuery, JoinClause, OnConflictClause, OrderByItem


def render_table(ctx: CompilationContext, table: TableRef) -> str:
    """``name`` or ``name AS alias``; ``AS`` is always uppercase."""
    name = ctx.compiler.quote_identifier(table.name)
    if table.alias:
        return f"{name} AS {ctx.compiler.quote_identifier(table.alias)}"
    return name


class SelectClauseBuilder:
    """Builds the ``SELECT …`` clause."""

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, selections: Sequence[ColumnExpression]) -> str:
        if not selections:
            return "SELECT *"
        return f"SELECT {', '.join(self._build_item(item) for item in selections)}"

    def _build_item(self, item: ColumnExpression) -> str:
        expr_sql = self._ctx.column_sql(item.name)
        if item.alias:
            return f"{expr_sql} AS {self._ctx.compiler.quote_identifier(item.alias)}"
        return expr_sql


class FromClauseBuilder:
    """Builds the ``FROM table [AS alias]`` fragment."""

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, table: TableRef) -> str:
        return f"FROM {render_table(self._ctx, table)}"


class JoinClauseBuilder:
    """Builds a single ``JOIN … ON …`` fragment.

    A bare left ON column is qualified with the FROM table's qualifier and
    a bare right ON column with the joined table's qualifier.
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, join: JoinClause) -> str:
        root = self._ctx.scope.root
        left_default = root.qualifier if root is not None else None
        left = self._ctx.column_sql(join.left, default_qualifier=left_default)
        right = self._ctx.column_sql(join.right, default_qualifier=join.table.qualifier)
        table_sql = render_table(self._ctx, join.table)
        return f"{join.kind.value} JOIN {table_sql} ON {left} = {right}"


class OrderByClauseBuilder:
    """Builds ``ORDER BY col DIR, …``.

    Bare names matching an output alias of the SELECT list are accepted
    as-is.
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, items: Sequence[OrderByItem], selections: Sequence[ColumnExpression]) -> str:
        output_names = {s.alias for s in selections if s.alias}
        parts = [
            f"{self._ctx.column_sql(item.column, extra_names=output_names)} {item.direction.value}"
            for item in items
        ]
        return f"ORDER BY {', '.join(parts)}"


class InsertClauseBuilder:
    """Builds ``INSERT INTO table (cols) VALUES (...), (...)``.

    Columns are the union of row keys in first-seen order; a row that lacks
    one of them gets ``DEFAULT`` in that position.
    """

    def __init__(self, ctx: CompilationContext, value_builder: ValueBuilder) -> None:
        self._ctx = ctx
        self._val = value_builder

    def build(self, query: InsertQuery) -> str:
        columns = query.columns
        if not query.rows or not columns:
            raise InvalidOperandError(
                "INSERT requires at least one row with at least one column.",
                operator="values",
                operand=list(query.rows),
            )
        column_sql = ", ".join(self._ctx.column_sql(c) for c in columns)
        rows_sql = ", ".join(self._build_row(row, columns) for row in query.rows)
        return f"INSERT INTO {render_table(self._ctx, query.table)} ({column_sql}) VALUES {rows_sql}"

    def _build_row(self, row: dict, columns: list[str]) -> str:
        values = [self._val.build(row[c]) if c in row else "DEFAULT" for c in columns]
        return f"({', '.join(values)})"


class OnConflictClauseBuilder:
    """Builds ``ON CONFLICT [target] DO NOTHING | DO UPDATE SET …``.

    ``DO UPDATE`` values may reference the proposed row through the
    ``excluded`` qualifier, e.g. ``ref("excluded.name")``.
    """

    EXCLUDED = "excluded"

    def __init__(self, ctx: CompilationContext, runtime: RuntimeContext) -> None:
        self._ctx = ctx
        value_ctx = ctx
        root = ctx.scope.root
        if root is not None and self.EXCLUDED not in ctx.scope.qualifiers:
            value_ctx = replace(ctx, scope=ctx.scope.add_table(TableRef(name=root.name, alias=self.EXCLUDED)))
        self._val = ValueBuilder(value_ctx, runtime)

    def build(self, clause: OnConflictClause) -> str:
        quote = self._ctx.compiler.quote_identifier
        parts = ["ON CONFLICT"]
        if clause.constraint:
            parts.append(f"ON CONSTRAINT {quote(clause.constraint)}")
        elif clause.columns:
            parts.append(f"({', '.join(self._ctx.column_sql(c) for c in clause.columns)})")

        if clause.action == "nothing":
            parts.append("DO NOTHING")
            return " ".join(parts)

        if len(parts) == 1:
            raise InvalidOperandError(
                "ON CONFLICT DO UPDATE requires conflict columns or a constraint.",
                operator="do_update",
            )
        if not clause.updates:
            raise InvalidOperandError(
                "ON CONFLICT DO UPDATE requires at least one assignment.", operator="do_update"
            )
        assignments = ", ".join(
            f"{self._ctx.column_sql(col)} = {self._val.build(value)}"
            for col, value in clause.updates.items()
        )
        parts.append(f"DO UPDATE SET {assignments}")
        return " ".join(parts)


class ReturningClauseBuilder:
    """Builds ``RETURNING col [AS alias], …`` or ``RETURNING *``."""

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, items: Sequence[ColumnExpression]) -> str:
        parts = []
        for item in items:
            expr_sql = self._ctx.column_sql(item.name)
            if item.alias:
                expr_sql = f"{expr_sql} AS {self._ctx.compiler.quote_identifier(item.alias)}"
            parts.append(expr_sql)
        return f"RETURNING {', '.join(parts)}"
