"""Parsing of ``"name as alias"`` table and column expressions.

Both parsers are pure functions: they never consult a scope or a schema.
The ``AS`` keyword is matched case-insensitively and may be surrounded by
any run of spaces or tabs; surrounding whitespace is trimmed from both the
name and the alias.

Example::

    >>> parse_table_expression("  Users   AS   u ")
    TableRef(name='Users', alias='u')
    >>> parse_column_expression("u.email as contact")
    ColumnExpression(name='u.email', alias='contact')
"""
from __future__ import annotations

import re
from dataclasses import dataclass

from pgfluent.errors import EmptyIdentifierError, MalformedExpressionError

# ---------------------------------------------------------------------------
# Constant tables
# ---------------------------------------------------------------------------

#: Keywords that may never be used as an alias.  Table and column names that
#: collide with one of these are double-quoted when rendered.
RESERVED_WORDS: frozenset[str] = frozenset(
    {
        "select", "from", "where", "and", "or", "not", "in", "as", "on",
        "join", "left", "right", "inner", "outer", "full", "cross",
        "group", "order", "by", "having", "limit", "offset",
        "union", "intersect", "except",
        "case", "when", "then", "else", "end",
        "null", "true", "false", "distinct", "exists", "between",
        "like", "ilike", "similar", "is", "all", "any", "some",
        "asc", "desc", "table", "user", "with",
        "insert", "into", "values", "returning", "default",
        "conflict", "do", "update", "set",
    }
)

_IDENTIFIER_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_AS_RE = re.compile(r"\s+as\s+", re.IGNORECASE)
_LEADING_AS_RE = re.compile(r"as(\s|$)", re.IGNORECASE)
_TRAILING_AS_RE = re.compile(r"(^|\s)as$", re.IGNORECASE)


def is_identifier(name: str) -> bool:
    """True when ``name`` matches ``[A-Za-z_][A-Za-z0-9_]*``."""
    return _IDENTIFIER_RE.fullmatch(name) is not None


def is_reserved(name: str) -> bool:
    """True when ``name`` is a reserved SQL keyword (case-insensitive)."""
    return name.lower() in RESERVED_WORDS


# ---------------------------------------------------------------------------
# Parsed value objects
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TableRef:
    """A parsed ``table [AS alias]`` expression.

    Attributes:
        name: The underlying table name.
        alias: Optional alias; once set it is the only legal qualifier.
    """

    name: str
    alias: str | None = None

    @property
    def qualifier(self) -> str:
        """The name columns of this table must be qualified with."""
        return self.alias or self.name

    def __str__(self) -> str:
        if self.alias:
            return f"{self.name} AS {self.alias}"
        return self.name


@dataclass(frozen=True)
class ColumnExpression:
    """A parsed ``[qualifier.]column [AS alias]`` expression.

    Attributes:
        name: The column reference, possibly qualified (``u.email``).
        alias: Optional output name, only meaningful in a SELECT list.
    """

    name: str
    alias: str | None = None

    @property
    def is_star(self) -> bool:
        return self.name == "*" or self.name.endswith(".*")


# ---------------------------------------------------------------------------
# Parsers
# ---------------------------------------------------------------------------


def parse_table_expression(text: str) -> TableRef:
    """Parse ``"table"`` or ``"table as alias"`` into a :class:`TableRef`.

    Args:
        text: The raw table expression passed to ``select_from`` or a join.

    Returns:
        The parsed table reference.

    Raises:
        EmptyIdentifierError: If ``text`` is empty or blank.
        MalformedExpressionError: If the expression is not a single
            identifier optionally followed by ``AS <alias>``, or the alias
            is a reserved word.
    """
    name, alias = _split_alias(text, "table")
    if not is_identifier(name):
        raise MalformedExpressionError(text, f"table name {name!r} is not a valid identifier")
    return TableRef(name=name, alias=alias)


def parse_column_expression(text: str) -> ColumnExpression:
    """Parse ``"col"``, ``"t.col"`` or ``"t.col as alias"``.

    ``*`` and ``t.*`` are accepted as names but may not carry an alias.

    Raises:
        EmptyIdentifierError: If ``text`` is empty or blank.
        MalformedExpressionError: On any other syntax problem.
    """
    name, alias = _split_alias(text, "column")
    validate_column_name(name, original=text)
    if alias is not None and (name == "*" or name.endswith(".*")):
        raise MalformedExpressionError(text, "a star selection cannot be aliased")
    return ColumnExpression(name=name, alias=alias)


def validate_column_name(name: str, original: str | None = None) -> None:
    """Check ``name`` is ``col``, ``qualifier.col``, ``*`` or ``qualifier.*``."""
    original = name if original is None else original
    if not name.strip():
        raise EmptyIdentifierError("column", original)
    if name == "*":
        return
    parts = name.split(".")
    if len(parts) > 2:
        raise MalformedExpressionError(original, "column references allow at most one qualifier")
    if len(parts) == 2 and parts[1] == "*":
        parts = parts[:1]
    for part in parts:
        if not part:
            raise EmptyIdentifierError("column", original)
        if not is_identifier(part):
            raise MalformedExpressionError(original, f"{part!r} is not a valid identifier")


def _split_alias(text: str, kind: str) -> tuple[str, str | None]:
    if text is None or not str(text).strip():
        raise EmptyIdentifierError(kind, "" if text is None else str(text))
    stripped = str(text).strip()

    if _LEADING_AS_RE.match(stripped):
        raise MalformedExpressionError(text, f"missing {kind} name before AS")
    if _TRAILING_AS_RE.search(stripped):
        raise MalformedExpressionError(text, "missing alias after AS")

    parts = _AS_RE.split(stripped)
    if len(parts) > 2:
        raise MalformedExpressionError(text, "only one AS keyword is allowed")

    name = parts[0].strip()
    if len(parts) == 1:
        return name, None

    alias = parts[1].strip()
    if not is_identifier(alias):
        raise MalformedExpressionError(text, f"alias {alias!r} is not a valid identifier")
    if is_reserved(alias):
        raise MalformedExpressionError(text, f"alias {alias!r} is a reserved SQL keyword")
    return name, alias
