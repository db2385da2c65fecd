"""PostgreSQL dialect compiler."""

from __future__ import annotations

from pgfluent.compile.base import SQLCompiler
from pgfluent.schema.identifiers import is_reserved


class PostgresCompiler(SQLCompiler):
    """Renders PostgreSQL-flavoured parameterized SQL.

    Parameter style: ``$1, $2, ...``, the native positional style of the
    PostgreSQL wire protocol.

    Args:
        quote_reserved: Double-quote table/column names that collide with a
            reserved keyword.  Other identifiers are emitted as written.
    """

    def __init__(self, quote_reserved: bool = True) -> None:
        self._quote_reserved = quote_reserved

    def param_placeholder(self, index: int) -> str:
        return f"${index}"

    def quote_identifier(self, name: str) -> str:
        if name == "*" or not (self._quote_reserved and is_reserved(name)):
            return name
        escaped = name.replace('"', '""')
        return f'"{escaped}"'

    def quote_literal(self, value: str) -> str:
        safe = value.replace("'", "''")
        return f"'{safe}'"

    def empty_array(self, element_type: str) -> str:
        return f"ARRAY[]::{element_type}[]"
