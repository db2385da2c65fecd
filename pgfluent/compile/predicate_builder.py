"""WHERE-tree SQL compiler.

``PredicateBuilder`` walks an :data:`~pgfluent.schema.nodes.ExpressionNode`
tree and renders it to SQL, binding every literal through the shared
:class:`RuntimeContext` so placeholders are numbered in emission order.

Parenthesization
----------------
Logical (AND/OR) nodes are rendered according to their *position*:

``root``
    The top of the WHERE clause.  Two non-logical children render bare
    (``a AND b``); more than two children, or any logical child, wrap the
    whole group (``(a AND b AND c)``).
``nested``
    Inside another logical node: always wrapped.
``not``
    Directly under ``NOT``: the ``NOT (...)`` parentheses are reused.

Empty groups render their identity (``true`` for AND, ``false`` for OR)
and single-child groups render the child in the group's own position.
Leaves (comparisons, array/jsonb operators, raw fragments) never receive
their own parentheses.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Literal

from pgfluent.compile.context import CompilationContext
from pgfluent.errors import CompilationError, InvalidOperandError
from pgfluent.schema.expressions import (
    ARRAY_LITERAL_OPS,
    ARRAY_QUANTIFIER_OPS,
    MEMBERSHIP_OPS,
    NULL_OPS,
    STRUCTURED_CONTAINMENT_OPS,
    ArrayOp,
    StructuredOp,
)
from pgfluent.schema.nodes import (
    ArrayOpNode,
    ColumnRef,
    ComparisonNode,
    LogicalNode,
    NotNode,
    RawNode,
    StructuredOpNode,
)

Position = Literal["root", "nested", "not"]

# Quoted literals and identifiers match whole and are copied unchanged.
_RAW_PLACEHOLDER_RE = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|\$(\d+)")


# ---------------------------------------------------------------------------
# Runtime parameter accumulator (shared across all sub-builders in one run)
# ---------------------------------------------------------------------------


@dataclass
class RuntimeContext:
    """Accumulates positional parameters during a single compilation run.

    A single instance is threaded through every sub-builder so that the
    placeholder counter is monotonic across the whole statement.
    """

    params: list[Any] = field(default_factory=list)

    def add_value(self, value: Any) -> int:
        """Store a literal value and return its 1-based placeholder index."""
        self.params.append(value)
        return len(self.params)

    def add_raw(self, node: RawNode, placeholder) -> str:
        """Append a raw fragment's parameters and renumber its placeholders.

        ``$k`` (``1 <= k <= len(node.params)``) becomes the placeholder for
        ``offset + k``.  Any other ``$`` text, and anything inside quoted
        literals or identifiers, is left untouched.
        """
        offset = len(self.params)
        count = len(node.params)

        def renumber(match: re.Match[str]) -> str:
            if match.group(1) is None:
                return match.group(0)
            k = int(match.group(1))
            if 1 <= k <= count:
                return placeholder(offset + k)
            return match.group(0)

        sql = _RAW_PLACEHOLDER_RE.sub(renumber, node.sql)
        self.params.extend(node.params)
        return sql


# ---------------------------------------------------------------------------
# Value rendering
# ---------------------------------------------------------------------------


class ValueBuilder:
    """Renders a single operand: a bound parameter, a column or a raw fragment.

    Args:
        ctx: Static compilation context.
        runtime: Shared parameter accumulator for this statement.
    """

    def __init__(self, ctx: CompilationContext, runtime: RuntimeContext) -> None:
        self._ctx = ctx
        self._runtime = runtime

    def build(self, value: Any) -> str:
        if isinstance(value, ColumnRef):
            return self._ctx.column_sql(value.name)
        if isinstance(value, RawNode):
            return self.raw(value)
        return self.param(value)

    def param(self, value: Any) -> str:
        index = self._runtime.add_value(value)
        return self._ctx.compiler.param_placeholder(index)

    def raw(self, node: RawNode) -> str:
        return self._runtime.add_raw(node, self._ctx.compiler.param_placeholder)


# ---------------------------------------------------------------------------
# Predicate builder
# ---------------------------------------------------------------------------


class PredicateBuilder:
    """Compiles expression nodes (the WHERE tree) to SQL.

    Args:
        ctx: Static compilation context.
        runtime: Shared parameter accumulator.
        value_builder: Renders operands.
    """

    _ARRAY_SQL: dict[ArrayOp, str] = {
        ArrayOp.CONTAINS: "@>",
        ArrayOp.CONTAINED_BY: "<@",
        ArrayOp.OVERLAPS: "&&",
        ArrayOp.HAS_ANY: "ANY",
        ArrayOp.HAS_ALL: "ALL",
    }

    _KEY_SQL: dict[StructuredOp, str] = {
        StructuredOp.HAS_KEY: "?",
        StructuredOp.HAS_ANY_KEY: "?|",
        StructuredOp.HAS_ALL_KEYS: "?&",
    }

    def __init__(
        self,
        ctx: CompilationContext,
        runtime: RuntimeContext,
        value_builder: ValueBuilder,
    ) -> None:
        self._ctx = ctx
        self._runtime = runtime
        self._val = value_builder

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self, node: Any) -> str:
        """Compile the root of a WHERE tree to a SQL fragment."""
        return self._render(node, "root")

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def _render(self, node: Any, position: Position) -> str:
        if isinstance(node, LogicalNode):
            return self._logical(node, position)
        if isinstance(node, NotNode):
            return f"NOT ({self._render(node.child, 'not')})"
        if isinstance(node, ComparisonNode):
            return self._comparison(node)
        if isinstance(node, ArrayOpNode):
            return self._array(node)
        if isinstance(node, StructuredOpNode):
            return self._structured(node)
        if isinstance(node, RawNode):
            return self._val.raw(node)
        raise CompilationError(
            f"Unknown expression node type: {type(node).__name__}", clause="WHERE"
        )

    def _logical(self, node: LogicalNode, position: Position) -> str:
        children = node.children
        if not children:
            return node.operator.identity
        if len(children) == 1:
            return self._render(children[0], position)

        body = f" {node.operator.value} ".join(self._render(c, "nested") for c in children)
        if position == "not":
            return body
        if position == "nested":
            return f"({body})"
        if len(children) > 2 or any(isinstance(c, LogicalNode) for c in children):
            return f"({body})"
        return body

    # ------------------------------------------------------------------
    # Leaf compilers
    # ------------------------------------------------------------------

    def _comparison(self, node: ComparisonNode) -> str:
        column = self._ctx.column_sql(node.column)
        op = node.operator
        if op in NULL_OPS:
            return f"{column} {op.sql} NULL"
        if op in MEMBERSHIP_OPS:
            values = ", ".join(self._val.build(v) for v in node.value)
            return f"{column} {op.sql} ({values})"
        return f"{column} {op.sql} {self._val.build(node.value)}"

    def _array(self, node: ArrayOpNode) -> str:
        column = self._ctx.column_sql(node.column)
        sql_op = self._ARRAY_SQL[node.operator]
        if node.operator in ARRAY_LITERAL_OPS:
            items = [self._val.build(v) for v in node.operand]
            if items:
                literal = f"ARRAY[{', '.join(items)}]"
            else:
                element_type = node.element_type or self._ctx.array_element_type(node.column)
                literal = self._ctx.compiler.empty_array(element_type)
            return f"{column} {sql_op} {literal}"
        if node.operator in ARRAY_QUANTIFIER_OPS:
            return f"{self._val.build(node.operand)} = {sql_op}({column})"
        raise CompilationError(f"Unknown array operator '{node.operator}'.", clause="WHERE")

    def _structured(self, node: StructuredOpNode) -> str:
        column = self._ctx.column_sql(node.column)
        op = node.operator

        if op in STRUCTURED_CONTAINMENT_OPS:
            target = self._json_path(column, node.path, as_text=False)
            sql_op = "<@" if op is StructuredOp.CONTAINED_BY else "@>"
            return f"{target} {sql_op} {self._json_param(node.operand, op)}"
        if op in self._KEY_SQL:
            operand = node.operand if isinstance(node.operand, str) else list(node.operand)
            return f"{column} {self._KEY_SQL[op]} {self._val.param(operand)}"
        if op is StructuredOp.FIELD_EXISTS:
            parent = self._json_path(column, node.path[:-1], as_text=False)
            return f"{parent} ? {self._val.param(node.path[-1])}"
        if op is StructuredOp.FIELD_IS_NULL:
            return f"{self._json_path(column, node.path, as_text=True)} IS NULL"
        if op in (StructuredOp.FIELD_EQUALS, StructuredOp.FIELD_NOT_EQUALS):
            target = self._json_path(column, node.path, as_text=True)
            sql_op = "=" if op is StructuredOp.FIELD_EQUALS else "!="
            return f"{target} {sql_op} {self._val.param(_json_text(node.operand))}"
        raise CompilationError(f"Unknown jsonb operator '{op}'.", clause="WHERE")

    # ------------------------------------------------------------------
    # jsonb helpers
    # ------------------------------------------------------------------

    def _json_path(self, column: str, keys: tuple[str, ...], as_text: bool) -> str:
        quote = self._ctx.compiler.quote_literal
        parts = [column]
        for i, key in enumerate(keys):
            arrow = "->>" if as_text and i == len(keys) - 1 else "->"
            parts.append(f"{arrow} {quote(key)}")
        return " ".join(parts)

    def _json_param(self, operand: Any, op: StructuredOp) -> str:
        try:
            document = json.dumps(operand)
        except (TypeError, ValueError) as exc:
            raise InvalidOperandError(
                f"jsonb operand is not JSON serializable: {exc}", operator=op.value, operand=operand
            ) from exc
        return f"{self._val.param(document)}::jsonb"


def _json_text(value: Any) -> str:
    """The text ``->>`` yields for a JSON value equal to ``value``."""
    if isinstance(value, str):
        return value
    return json.dumps(value)
