"""Factories handed to ``where()`` callbacks.

Nothing here touches a database or a scope: every method builds and
returns an immutable expression node (see :mod:`pgfluent.schema.nodes`).
Column names are syntax-checked immediately; they are resolved against the
query's tables when the query is compiled.

Usage::

    query = db.select_from("users").where(
        lambda eb: eb.or_([
            eb("role", "=", "admin"),
            eb.and_([eb("active", "=", True), eb.array("tags").contains(["beta"])]),
        ])
    )

The same factories are available as module-level functions (``and_``,
``or_``, ``not_``, ``array``, ``jsonb``, ``ref``), and a callback that only
declares keyword-only parameters receives them by name::

    def only_beta(*, eb, array):
        return array("tags").contains(["beta"])
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable
from typing import Any

from pgfluent.errors import EmptyIdentifierError, InvalidOperandError
from pgfluent.raw import raw as _raw
from pgfluent.raw import sql as _sql
from pgfluent.schema.expressions import ArrayOp, LogicalOp, StructuredOp
from pgfluent.schema.nodes import (
    ArrayOpNode,
    ColumnRef,
    ComparisonNode,
    LogicalNode,
    NotNode,
    StructuredOpNode,
    is_expression_node,
    is_sequence_operand,
)


class ArrayExpressionBuilder:
    """Array operators for one array column."""

    def __init__(self, column: str, element_type: str | None = None) -> None:
        self._column = column
        self._element_type = element_type

    def contains(self, values: Iterable[Any]) -> ArrayOpNode:
        """``column @> ARRAY[...]``: the column holds every value."""
        return self._node(ArrayOp.CONTAINS, values)

    def is_contained_by(self, values: Iterable[Any]) -> ArrayOpNode:
        """``column <@ ARRAY[...]``: every element of the column is in values."""
        return self._node(ArrayOp.CONTAINED_BY, values)

    def overlaps(self, values: Iterable[Any]) -> ArrayOpNode:
        """``column && ARRAY[...]``: at least one value in common."""
        return self._node(ArrayOp.OVERLAPS, values)

    def has_any(self, value: Any) -> ArrayOpNode:
        """``$n = ANY(column)``."""
        return self._node(ArrayOp.HAS_ANY, value)

    def has_all(self, value: Any) -> ArrayOpNode:
        """``$n = ALL(column)``."""
        return self._node(ArrayOp.HAS_ALL, value)

    def _node(self, op: ArrayOp, operand: Any) -> ArrayOpNode:
        return ArrayOpNode(
            column=self._column,
            operator=op,
            operand=operand,
            element_type=self._element_type,
        )


class JsonbFieldExpression:
    """A field (or nested path) inside a jsonb column."""

    def __init__(self, column: str, path: tuple[str, ...]) -> None:
        self._column = column
        self._path = path

    def field(self, name: str) -> JsonbFieldExpression:
        return JsonbFieldExpression(self._column, self._path + (_key(name),))

    def equals(self, value: Any) -> StructuredOpNode:
        """Compare the field's text value (``->>``) to ``value``."""
        return self._node(StructuredOp.FIELD_EQUALS, value)

    def not_equals(self, value: Any) -> StructuredOpNode:
        return self._node(StructuredOp.FIELD_NOT_EQUALS, value)

    def contains(self, document: Any) -> StructuredOpNode:
        return self._node(StructuredOp.FIELD_CONTAINS, document)

    def exists(self) -> StructuredOpNode:
        """The last key of the path exists in its parent object."""
        return self._node(StructuredOp.FIELD_EXISTS)

    def is_null(self) -> StructuredOpNode:
        """The field is missing or JSON ``null``."""
        return self._node(StructuredOp.FIELD_IS_NULL)

    def _node(self, op: StructuredOp, operand: Any = None) -> StructuredOpNode:
        return StructuredOpNode(column=self._column, operator=op, path=self._path, operand=operand)


class JsonbExpressionBuilder:
    """Document operators for one jsonb column."""

    def __init__(self, column: str) -> None:
        self._column = column

    def contains(self, document: Any) -> StructuredOpNode:
        return self._node(StructuredOp.CONTAINS, document)

    def contained_by(self, document: Any) -> StructuredOpNode:
        return self._node(StructuredOp.CONTAINED_BY, document)

    def has_key(self, key: str) -> StructuredOpNode:
        return self._node(StructuredOp.HAS_KEY, key)

    def has_any_key(self, keys: Iterable[str]) -> StructuredOpNode:
        return self._node(StructuredOp.HAS_ANY_KEY, keys)

    def has_all_keys(self, keys: Iterable[str]) -> StructuredOpNode:
        return self._node(StructuredOp.HAS_ALL_KEYS, keys)

    def field(self, name: str) -> JsonbFieldExpression:
        return JsonbFieldExpression(self._column, (_key(name),))

    def path(self, keys: Iterable[str]) -> JsonbFieldExpression:
        """Walk ``keys`` in order; ``path(["a", "b"])`` is ``field("a").field("b")``."""
        if isinstance(keys, str) or not is_sequence_operand(keys):
            raise InvalidOperandError("path() requires a list of keys.", operator="path", operand=keys)
        path = tuple(_key(k) for k in keys)
        if not path:
            raise InvalidOperandError("path() requires at least one key.", operator="path", operand=keys)
        return JsonbFieldExpression(self._column, path)

    def _node(self, op: StructuredOp, operand: Any) -> StructuredOpNode:
        return StructuredOpNode(column=self._column, operator=op, operand=operand)


class ExpressionBuilder:
    """The ``eb`` object passed to ``where()`` callbacks.

    Calling it builds a comparison: ``eb("age", ">=", 18)``.
    """

    sql = staticmethod(_sql)
    raw = staticmethod(_raw)

    def __call__(self, column: str, operator: str, value: Any = None) -> ComparisonNode:
        return ComparisonNode(column=column, operator=operator, value=value)

    def and_(self, *nodes: Any) -> Any:
        """Conjunction; ``and_([])`` is ``true`` and ``and_([x])`` is ``x``."""
        return self._combine(LogicalOp.AND, nodes)

    def or_(self, *nodes: Any) -> Any:
        """Disjunction; ``or_([])`` is ``false`` and ``or_([x])`` is ``x``."""
        return self._combine(LogicalOp.OR, nodes)

    def not_(self, node: Any) -> NotNode:
        _check_node(node, "not_")
        return NotNode(child=node)

    def array(self, column: str, element_type: str | None = None) -> ArrayExpressionBuilder:
        return ArrayExpressionBuilder(column, element_type)

    def jsonb(self, column: str) -> JsonbExpressionBuilder:
        return JsonbExpressionBuilder(column)

    def ref(self, column: str) -> ColumnRef:
        """A column usable as the value side of a comparison."""
        return ColumnRef(name=column)

    def helpers(self) -> dict[str, Any]:
        """Factories by name, for callbacks declaring keyword-only parameters."""
        return {
            "eb": self,
            "and_": self.and_,
            "or_": self.or_,
            "not_": self.not_,
            "array": self.array,
            "jsonb": self.jsonb,
            "ref": self.ref,
            "sql": self.sql,
            "raw": self.raw,
        }

    def _combine(self, op: LogicalOp, nodes: tuple[Any, ...]) -> Any:
        if len(nodes) == 1 and is_sequence_operand(nodes[0]):
            nodes = tuple(nodes[0])
        for node in nodes:
            _check_node(node, op.value.lower() + "_")
        if len(nodes) == 1:
            return nodes[0]
        return LogicalNode(operator=op, children=nodes)


def invoke_callback(callback: Callable[..., Any], eb: ExpressionBuilder) -> Any:
    """Call a ``where()`` callback with ``eb`` or with named helpers.

    A list returned by the callback is combined with an implicit AND.
    """
    helpers = eb.helpers()
    try:
        params = inspect.signature(callback).parameters.values()
    except (TypeError, ValueError):
        params = ()
    keyword_only = [p.name for p in params if p.kind is inspect.Parameter.KEYWORD_ONLY]
    positional = [
        p for p in params
        if p.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
    ]
    if keyword_only and not positional and all(name in helpers for name in keyword_only):
        result = callback(**{name: helpers[name] for name in keyword_only})
    else:
        result = callback(eb)

    if isinstance(result, list):
        return eb.and_(result)
    return result


def _check_node(node: Any, operator: str) -> None:
    if not is_expression_node(node):
        raise InvalidOperandError(
            f"{operator}() expects expression nodes, got {type(node).__name__}.",
            operator=operator,
            operand=node,
        )


def _key(name: Any) -> str:
    if not isinstance(name, str):
        raise InvalidOperandError(f"jsonb keys must be strings, got {type(name).__name__}.", operand=name)
    if not name:
        raise EmptyIdentifierError("jsonb key")
    return name


# ---------------------------------------------------------------------------
# Module-level factories bound to a shared, stateless builder
# ---------------------------------------------------------------------------

eb = ExpressionBuilder()
and_ = eb.and_
or_ = eb.or_
not_ = eb.not_
array = eb.array
jsonb = eb.jsonb
ref = eb.ref
