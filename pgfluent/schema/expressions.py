"""Operator enums and helpers for expression nodes.

Each operator family is a closed ``str`` enum; the compiler dispatches over
them exhaustively.  The frozensets group operators that share an operand
shape so construction-time checks stay O(1).
"""

from __future__ import annotations

import re
from enum import Enum

from pgfluent.errors import InvalidOperandError

# ---------------------------------------------------------------------------
# Operator enums
# ---------------------------------------------------------------------------


class ComparisonOp(str, Enum):
    """Binary comparison operators accepted by ``eb(column, op, value)``."""

    EQ = "="
    NE = "!="
    LT = "<"
    LTE = "<="
    GT = ">"
    GTE = ">="
    LIKE = "like"
    ILIKE = "ilike"
    IN = "in"
    NOT_IN = "not in"
    IS = "is"
    IS_NOT = "is not"

    @property
    def sql(self) -> str:
        """The operator as it appears in SQL text (keywords uppercased)."""
        return self.value.upper()


class LogicalOp(str, Enum):
    """n-ary boolean combinators."""

    AND = "AND"
    OR = "OR"

    @property
    def identity(self) -> str:
        """The literal an empty combinator compiles to."""
        return "true" if self is LogicalOp.AND else "false"


class ArrayOp(str, Enum):
    """Postgres array operators."""

    CONTAINS = "contains"
    CONTAINED_BY = "contained_by"
    OVERLAPS = "overlaps"
    HAS_ANY = "has_any"
    HAS_ALL = "has_all"


class StructuredOp(str, Enum):
    """jsonb document operators."""

    CONTAINS = "contains"
    CONTAINED_BY = "contained_by"
    HAS_KEY = "has_key"
    HAS_ANY_KEY = "has_any_key"
    HAS_ALL_KEYS = "has_all_keys"
    FIELD_EQUALS = "field_equals"
    FIELD_NOT_EQUALS = "field_not_equals"
    FIELD_CONTAINS = "field_contains"
    FIELD_EXISTS = "field_exists"
    FIELD_IS_NULL = "field_is_null"


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


class JoinKind(str, Enum):
    """Join types a select query can add."""

    INNER = "INNER"
    LEFT = "LEFT"
    RIGHT = "RIGHT"
    FULL = "FULL"


# ---------------------------------------------------------------------------
# Operator groups
# ---------------------------------------------------------------------------

#: Operators whose value must be a non-empty sequence.
MEMBERSHIP_OPS: frozenset[ComparisonOp] = frozenset({ComparisonOp.IN, ComparisonOp.NOT_IN})

#: Operators whose value must be ``None`` and that bind no parameter.
NULL_OPS: frozenset[ComparisonOp] = frozenset({ComparisonOp.IS, ComparisonOp.IS_NOT})

#: Array operators that take a list and render an ``ARRAY[...]`` literal.
ARRAY_LITERAL_OPS: frozenset[ArrayOp] = frozenset(
    {ArrayOp.CONTAINS, ArrayOp.CONTAINED_BY, ArrayOp.OVERLAPS}
)

#: Array operators that take one scalar and render ``$n = ANY/ALL(col)``.
ARRAY_QUANTIFIER_OPS: frozenset[ArrayOp] = frozenset({ArrayOp.HAS_ANY, ArrayOp.HAS_ALL})

#: jsonb operators that compare a document against a JSON operand.
STRUCTURED_CONTAINMENT_OPS: frozenset[StructuredOp] = frozenset(
    {StructuredOp.CONTAINS, StructuredOp.CONTAINED_BY, StructuredOp.FIELD_CONTAINS}
)

#: jsonb operators that require a non-empty field path.
STRUCTURED_FIELD_OPS: frozenset[StructuredOp] = frozenset(
    {
        StructuredOp.FIELD_EQUALS,
        StructuredOp.FIELD_NOT_EQUALS,
        StructuredOp.FIELD_CONTAINS,
        StructuredOp.FIELD_EXISTS,
        StructuredOp.FIELD_IS_NULL,
    }
)

_ALIASES: dict[str, ComparisonOp] = {"<>": ComparisonOp.NE, "==": ComparisonOp.EQ}
_WHITESPACE_RE = re.compile(r"\s+")

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def comparison_op(raw: str | ComparisonOp) -> ComparisonOp:
    """Normalise a user-supplied comparison operator.

    Matching is case-insensitive and tolerant of repeated whitespace
    (``"NOT   IN"`` is ``ComparisonOp.NOT_IN``).

    Raises:
        InvalidOperandError: If ``raw`` is not a supported operator.
    """
    if isinstance(raw, ComparisonOp):
        return raw
    if not isinstance(raw, str):
        raise InvalidOperandError(f"Operator must be a string, got {type(raw).__name__}.", operand=raw)
    key = _WHITESPACE_RE.sub(" ", raw.strip().lower())
    if key in _ALIASES:
        return _ALIASES[key]
    try:
        return ComparisonOp(key)
    except ValueError:
        supported = ", ".join(op.value for op in ComparisonOp)
        raise InvalidOperandError(
            f"Unsupported comparison operator {raw!r}; expected one of: {supported}.",
            operator=raw,
        ) from None


def sort_direction(raw: str | SortDirection) -> SortDirection:
    """Normalise ``"asc"`` / ``"DESC"`` to a :class:`SortDirection`.

    Raises:
        InvalidOperandError: For anything other than asc/desc.
    """
    if isinstance(raw, SortDirection):
        return raw
    if isinstance(raw, str):
        try:
            return SortDirection(raw.strip().upper())
        except ValueError:
            pass
    raise InvalidOperandError(
        f"Sort direction must be 'asc' or 'desc', got {raw!r}.",
        operator="order_by",
        operand=raw,
    )
