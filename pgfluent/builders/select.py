"""Fluent SELECT builder."""
from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pgfluent.builders.base import StatementBuilder, flatten_names, non_negative_int
from pgfluent.builders.expression import ExpressionBuilder, invoke_callback
from pgfluent.compile.builder import StatementCompiler
from pgfluent.errors import InvalidOperandError, MalformedExpressionError
from pgfluent.execution import Executor
from pgfluent.schema.column_reference import ColumnReference
from pgfluent.schema.expressions import JoinKind, LogicalOp, sort_direction
from pgfluent.schema.identifiers import ColumnExpression, parse_column_expression, parse_table_expression
from pgfluent.schema.nodes import ComparisonNode, LogicalNode, is_expression_node
from pgfluent.schema.query import JoinClause, OrderByItem, SelectQuery
from pgfluent.schema.scope import Scope

_EB = ExpressionBuilder()


class SelectQueryBuilder(StatementBuilder[SelectQuery]):
    """Immutable SELECT builder; every method returns a new builder.

    Created by :meth:`pgfluent.client.PgFluent.select_from`::

        users = db.select_from("users as u")
        active = users.where("u.active", "=", True)
        admins = active.where("u.role", "=", "admin")   # ``active`` is unchanged
    """

    def __init__(
        self,
        query: SelectQuery,
        compiler: StatementCompiler,
        executor: Executor | None = None,
        scope: Scope | None = None,
    ) -> None:
        super().__init__(query, compiler, executor)
        self._scope = scope if scope is not None else Scope().add_table(query.table)

    @classmethod
    def from_table(
        cls,
        table: str,
        compiler: StatementCompiler,
        executor: Executor | None = None,
    ) -> SelectQueryBuilder:
        return cls(SelectQuery(table=parse_table_expression(table)), compiler, executor)

    @property
    def scope(self) -> Scope:
        """Tables registered so far, keyed by qualifier."""
        return self._scope

    # ------------------------------------------------------------------
    # SELECT list
    # ------------------------------------------------------------------

    def select(self, *columns: str | list[str]) -> SelectQueryBuilder:
        """Append columns to the SELECT list (``"col"``, ``"u.col as name"``)."""
        parsed = tuple(parse_column_expression(c) for c in flatten_names(columns, "select"))
        return self._with(selections=self._query.selections + parsed)

    def select_all(self) -> SelectQueryBuilder:
        return self._with(selections=self._query.selections + (ColumnExpression(name="*"),))

    # ------------------------------------------------------------------
    # WHERE
    # ------------------------------------------------------------------

    def where(
        self,
        column_or_expression: str | Callable[..., Any] | Any,
        operator: str | None = None,
        value: Any = None,
    ) -> SelectQueryBuilder:
        """Add a condition; successive calls are combined with AND.

        Accepts ``where(column, operator, value)``, an expression node
        (including raw fragments), or a callback receiving an
        :class:`~pgfluent.builders.expression.ExpressionBuilder`.  A
        callback returning a list is an implicit AND of its items.

        Raises:
            InvalidOperandError: If the arguments have the wrong shape.
        """
        node = self._to_node(column_or_expression, operator, value)
        current = self._query.where
        if current is not None:
            node = LogicalNode(operator=LogicalOp.AND, children=(current, node))
        return self._with(where=node)

    def _to_node(self, target: Any, operator: str | None, value: Any) -> Any:
        if is_expression_node(target):
            return target
        if isinstance(target, str):
            if operator is None:
                raise InvalidOperandError(
                    "where(column, operator, value) requires an operator.", operator="where", operand=target
                )
            return ComparisonNode(column=target, operator=operator, value=value)
        if callable(target):
            node = invoke_callback(target, _EB)
            if not is_expression_node(node):
                raise InvalidOperandError(
                    f"where() callback must return an expression, got {type(node).__name__}.",
                    operator="where",
                    operand=node,
                )
            return node
        raise InvalidOperandError(
            f"where() cannot use a {type(target).__name__}.", operator="where", operand=target
        )

    # ------------------------------------------------------------------
    # JOIN
    # ------------------------------------------------------------------

    def inner_join(self, table: str, left: str, right: str) -> SelectQueryBuilder:
        """``INNER JOIN table ON left = right``.

        A bare ``left`` is qualified with the FROM table and a bare
        ``right`` with the joined table.

        Raises:
            DuplicateAliasError: If the table's qualifier is already used.
        """
        return self._join(JoinKind.INNER, table, left, right)

    def left_join(self, table: str, left: str, right: str) -> SelectQueryBuilder:
        return self._join(JoinKind.LEFT, table, left, right)

    def right_join(self, table: str, left: str, right: str) -> SelectQueryBuilder:
        return self._join(JoinKind.RIGHT, table, left, right)

    def full_join(self, table: str, left: str, right: str) -> SelectQueryBuilder:
        return self._join(JoinKind.FULL, table, left, right)

    def _join(self, kind: JoinKind, table: str, left: str, right: str) -> SelectQueryBuilder:
        ref = parse_table_expression(table)
        scope = self._scope.add_table(ref)
        on_columns = [_plain_column(c, "join") for c in (left, right)]
        join = JoinClause(kind=kind, table=ref, left=on_columns[0], right=on_columns[1])
        return self._with(scope=scope, joins=self._query.joins + (join,))

    # ------------------------------------------------------------------
    # ORDER BY / LIMIT / OFFSET
    # ------------------------------------------------------------------

    def order_by(self, column_or_items: Any, direction: str = "asc") -> SelectQueryBuilder:
        """Append ORDER BY items.

        Accepts ``order_by("name", "desc")`` or a list whose items are
        column names, ``(column, direction)`` pairs or
        ``{"column": ..., "direction": ...}`` mappings.
        """
        if isinstance(column_or_items, str):
            raw_items: list[Any] = [(column_or_items, direction)]
        elif isinstance(column_or_items, (list, tuple)):
            raw_items = list(column_or_items)
        else:
            raise InvalidOperandError(
                "order_by() expects a column or a list of items.", operator="order_by", operand=column_or_items
            )

        items = tuple(self._order_item(item) for item in raw_items)
        return self._with(order_by=self._query.order_by + items)

    @staticmethod
    def _order_item(item: Any) -> OrderByItem:
        if isinstance(item, str):
            column, direction = item, "asc"
        elif isinstance(item, Mapping):
            column, direction = item.get("column"), item.get("direction", "asc")
        elif isinstance(item, (list, tuple)) and len(item) == 2:
            column, direction = item
        else:
            raise InvalidOperandError("Invalid order_by() item.", operator="order_by", operand=item)
        return OrderByItem(column=_plain_column(column, "order_by"), direction=sort_direction(direction))

    def limit(self, count: int) -> SelectQueryBuilder:
        return self._with(limit=non_negative_int(count, "limit"))

    def offset(self, count: int) -> SelectQueryBuilder:
        return self._with(offset=non_negative_int(count, "offset"))

    # ------------------------------------------------------------------
    # Snapshot layering
    # ------------------------------------------------------------------

    def _with(self, scope: Scope | None = None, **updates: Any) -> SelectQueryBuilder:
        return SelectQueryBuilder(
            self._query.model_copy(update=updates),
            self._compiler,
            self._executor,
            scope=scope if scope is not None else self._scope,
        )


def _plain_column(column: Any, method: str) -> str:
    """A column reference without an ``AS`` rename."""
    if not isinstance(column, str):
        raise InvalidOperandError(
            f"{method}() expects a column name, got {type(column).__name__}.", operator=method, operand=column
        )
    parsed = parse_column_expression(column)
    if parsed.alias is not None:
        raise MalformedExpressionError(column, "a column rename is only allowed in a SELECT list")
    if parsed.is_star:
        raise MalformedExpressionError(column, "a star is only valid in a SELECT list")
    return str(ColumnReference.parse(parsed.name))
