"""Immutable expression tree for WHERE predicates.

Every node is a frozen pydantic model tagged by a ``kind`` literal, and
``ExpressionNode`` is the discriminated union of all of them, so the
compiler can dispatch exhaustively over a closed set of variants.

Nodes validate their own operand shapes on construction and raise
:class:`~pgfluent.errors.InvalidOperandError` (or an identifier error)
directly; nothing is deferred to compile time.

Usage::

    from pgfluent.schema.nodes import ComparisonNode, LogicalNode

    node = LogicalNode(
        operator="AND",
        children=[
            ComparisonNode(column="active", operator="=", value=True),
            ComparisonNode(column="age", operator=">", value=18),
        ],
    )
"""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pgfluent.errors import EmptyIdentifierError, InvalidOperandError, MalformedExpressionError
from pgfluent.schema.expressions import (
    ARRAY_LITERAL_OPS,
    MEMBERSHIP_OPS,
    NULL_OPS,
    STRUCTURED_FIELD_OPS,
    ArrayOp,
    ComparisonOp,
    LogicalOp,
    StructuredOp,
    comparison_op,
)
from pgfluent.schema.identifiers import validate_column_name

_FROZEN = ConfigDict(extra="forbid", frozen=True)

_ELEMENT_TYPE_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_ ]*(\(\d+(,\s*\d+)?\))?")


def is_sequence_operand(value: Any) -> bool:
    """True for lists, tuples, sets and frozensets; False for str/bytes/dicts."""
    if isinstance(value, (str, bytes, bytearray, Mapping)):
        return False
    return isinstance(value, (Sequence, set, frozenset))


def _column(value: str) -> str:
    if not isinstance(value, str):
        raise InvalidOperandError(f"Column must be a string, got {type(value).__name__}.", operand=value)
    value = value.strip()
    validate_column_name(value)
    if value == "*" or value.endswith(".*"):
        raise MalformedExpressionError(value, "a star is only valid in a SELECT list")
    return value


# ---------------------------------------------------------------------------
# Column reference used as a comparison value
# ---------------------------------------------------------------------------


class ColumnRef(BaseModel):
    """A column on the right-hand side of a comparison (``a.x = b.y``)."""

    model_config = _FROZEN

    kind: Literal["column_ref"] = "column_ref"
    name: str

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return _column(value)


# ---------------------------------------------------------------------------
# Leaf nodes
# ---------------------------------------------------------------------------


class ComparisonNode(BaseModel):
    """``column <op> value``; value is bound as a parameter unless it is a
    :class:`ColumnRef`."""

    model_config = _FROZEN

    kind: Literal["comparison"] = "comparison"
    column: str
    operator: ComparisonOp
    value: Any = None

    @field_validator("column")
    @classmethod
    def _check_column(cls, value: str) -> str:
        return _column(value)

    @field_validator("operator", mode="before")
    @classmethod
    def _normalise_operator(cls, value: Any) -> ComparisonOp:
        return comparison_op(value)

    @model_validator(mode="after")
    def _check_value_shape(self) -> ComparisonNode:
        op = self.operator
        if op in MEMBERSHIP_OPS:
            if not is_sequence_operand(self.value):
                raise InvalidOperandError(
                    f"'{op.value}' requires a list of values, got {type(self.value).__name__}.",
                    operator=op.value,
                    operand=self.value,
                )
            if len(self.value) == 0:
                raise InvalidOperandError(
                    f"'{op.value}' requires at least one value.",
                    operator=op.value,
                    operand=self.value,
                )
        elif op in NULL_OPS:
            if self.value is not None:
                raise InvalidOperandError(
                    f"'{op.value}' only accepts None.",
                    operator=op.value,
                    operand=self.value,
                )
        elif self.value is None:
            raise InvalidOperandError(
                f"'{op.value}' cannot compare against None; use 'is' or 'is not'.",
                operator=op.value,
                operand=None,
            )
        return self


class ArrayOpNode(BaseModel):
    """A Postgres array operator applied to an array column.

    Attributes:
        element_type: Element type used to cast an empty ``ARRAY[]``
            literal; resolved from the schema or settings when ``None``.
    """

    model_config = _FROZEN

    kind: Literal["array"] = "array"
    column: str
    operator: ArrayOp
    operand: Any
    element_type: str | None = None

    @field_validator("column")
    @classmethod
    def _check_column(cls, value: str) -> str:
        return _column(value)

    @field_validator("element_type")
    @classmethod
    def _check_element_type(cls, value: str | None) -> str | None:
        if value is not None and _ELEMENT_TYPE_RE.fullmatch(value.strip()) is None:
            raise InvalidOperandError(f"Invalid array element type {value!r}.", operand=value)
        return value.strip() if value is not None else None

    @model_validator(mode="after")
    def _check_operand_shape(self) -> ArrayOpNode:
        wants_list = self.operator in ARRAY_LITERAL_OPS
        if wants_list != is_sequence_operand(self.operand):
            expected = "a list of values" if wants_list else "a single value"
            raise InvalidOperandError(
                f"Array operator '{self.operator.value}' requires {expected}.",
                operator=self.operator.value,
                operand=self.operand,
            )
        return self


class StructuredOpNode(BaseModel):
    """A jsonb operator, optionally applied to a nested field.

    Attributes:
        path: Keys walked from the column to the target field; empty for
            operators applied to the whole document.
        operand: The single value the operator binds, if any.
    """

    model_config = _FROZEN

    kind: Literal["structured"] = "structured"
    column: str
    operator: StructuredOp
    path: tuple[str, ...] = ()
    operand: Any = None

    @field_validator("column")
    @classmethod
    def _check_column(cls, value: str) -> str:
        return _column(value)

    @field_validator("path")
    @classmethod
    def _check_path(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        for key in value:
            if not key:
                raise EmptyIdentifierError("jsonb key")
        return value

    @model_validator(mode="after")
    def _check_operand_shape(self) -> StructuredOpNode:
        op = self.operator
        if op in STRUCTURED_FIELD_OPS and not self.path:
            raise InvalidOperandError(f"jsonb operator '{op.value}' needs a field path.", operator=op.value)
        if op not in STRUCTURED_FIELD_OPS and self.path:
            raise InvalidOperandError(
                f"jsonb operator '{op.value}' applies to the whole document.", operator=op.value
            )

        if op is StructuredOp.HAS_KEY:
            if not isinstance(self.operand, str) or not self.operand:
                raise InvalidOperandError("has_key requires a non-empty key.", op.value, self.operand)
        elif op in (StructuredOp.HAS_ANY_KEY, StructuredOp.HAS_ALL_KEYS):
            if not is_sequence_operand(self.operand) or not self.operand:
                raise InvalidOperandError(f"{op.value} requires a non-empty list of keys.", op.value, self.operand)
            if not all(isinstance(k, str) for k in self.operand):
                raise InvalidOperandError(f"{op.value} keys must be strings.", op.value, self.operand)
        elif op in (StructuredOp.FIELD_EXISTS, StructuredOp.FIELD_IS_NULL):
            if self.operand is not None:
                raise InvalidOperandError(f"{op.value} takes no operand.", op.value, self.operand)
        elif self.operand is None:
            raise InvalidOperandError(
                f"jsonb operator '{op.value}' requires a value; use is_null() for NULL checks.",
                op.value,
            )
        return self


class RawNode(BaseModel):
    """A trusted SQL fragment with its own ``$1..$k`` parameters."""

    model_config = _FROZEN

    kind: Literal["raw"] = "raw"
    sql: str
    params: tuple[Any, ...] = ()

    @field_validator("sql")
    @classmethod
    def _check_sql(cls, value: str) -> str:
        if not value.strip():
            raise EmptyIdentifierError("raw SQL")
        return value


# ---------------------------------------------------------------------------
# Composite nodes
# ---------------------------------------------------------------------------


class LogicalNode(BaseModel):
    """An n-ary AND/OR; zero children compiles to ``true`` / ``false``."""

    model_config = _FROZEN

    kind: Literal["logical"] = "logical"
    operator: LogicalOp
    children: tuple[ExpressionNode, ...] = ()

    @field_validator("operator", mode="before")
    @classmethod
    def _normalise_operator(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


class NotNode(BaseModel):
    """``NOT (child)``."""

    model_config = _FROZEN

    kind: Literal["not"] = "not"
    child: ExpressionNode


#: Any node that can appear in a WHERE tree.
ExpressionNode = Annotated[
    Union[ComparisonNode, LogicalNode, NotNode, ArrayOpNode, StructuredOpNode, RawNode],
    Field(discriminator="kind"),
]

#: Concrete node classes, for ``isinstance`` checks.
NODE_TYPES: tuple[type[BaseModel], ...] = (
    ComparisonNode,
    LogicalNode,
    NotNode,
    ArrayOpNode,
    StructuredOpNode,
    RawNode,
)

LogicalNode.model_rebuild()
NotNode.model_rebuild()


def is_expression_node(value: Any) -> bool:
    return isinstance(value, NODE_TYPES)
