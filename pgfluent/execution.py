"""Executor seam between compiled queries and a database driver.

An executor is any object with ``execute(query: CompiledQuery)``.  The
builders pass it the compiled statement and return whatever it returns;
errors raised by the driver propagate unchanged.

:class:`PsycopgExecutor` adapts a psycopg 3 connection.  ``to_format_params``
serves drivers that only accept ``%s`` placeholders.  Install the extra
with ``pip install pgfluent[postgres]``.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Protocol, runtime_checkable

from pgfluent.compile.base import CompiledQuery
from pgfluent.errors import CompilationError

logger = logging.getLogger(__name__)

# Quoted literals and identifiers are matched whole so ``$n`` inside them
# is left alone; only the bare ``$n`` alternative captures a group.
_TOKEN_RE = re.compile(r"'(?:[^']|'')*'|\"(?:[^\"]|\"\")*\"|\$(\d+)")


@runtime_checkable
class Executor(Protocol):
    """Runs a compiled query and returns driver-defined results."""

    def execute(self, query: CompiledQuery) -> Any: ...


def to_format_params(query: CompiledQuery) -> tuple[str, list[Any]]:
    """Rewrite ``$n`` placeholders for drivers using ``%s`` paramstyle.

    Literal ``%`` characters are doubled and parameters are reordered to
    follow placeholder occurrence, so a ``$n`` used twice binds its value
    twice.  Text inside ``'...'`` literals and ``"..."`` identifiers is
    never treated as a placeholder.

    Raises:
        CompilationError: If a placeholder has no matching parameter.
    """
    order: list[int] = []

    def _replace(match: re.Match[str]) -> str:
        if match.group(1) is None:
            return match.group(0)
        index = int(match.group(1))
        if not 1 <= index <= len(query.parameters):
            raise CompilationError(f"Placeholder ${index} has no parameter.")
        order.append(index)
        return "%s"

    sql = _TOKEN_RE.sub(_replace, query.sql.replace("%", "%%"))
    return sql, [query.parameters[i - 1] for i in order]


class PsycopgExecutor:
    """Executor backed by a psycopg 3 connection.

    Statements run through ``psycopg.RawCursor``, which sends the compiled
    ``$n`` SQL to the server unchanged.  Rows are returned as dicts.
    Statements that produce no result set (an INSERT without RETURNING)
    return an empty list.

    Args:
        connection: An open ``psycopg.Connection``.  Transactions are left
            to the caller.
        cursor_factory: Called as ``cursor_factory(connection, row_factory=...)``;
            defaults to ``psycopg.RawCursor``.

    Raises:
        ImportError: If psycopg is not installed.
    """

    def __init__(self, connection: Any, cursor_factory: Any = None) -> None:
        try:
            from psycopg import RawCursor
            from psycopg.rows import dict_row
        except ImportError as exc:
            raise ImportError(
                "psycopg>=3.2 is required for PsycopgExecutor. Install it with: pip install pgfluent[postgres]"
            ) from exc
        self._connection = connection
        self._cursor_factory = cursor_factory or RawCursor
        self._row_factory = dict_row

    def execute(self, query: CompiledQuery) -> list[dict[str, Any]]:
        logger.debug("psycopg execute: %s", query.sql)
        with self._cursor_factory(self._connection, row_factory=self._row_factory) as cursor:
            cursor.execute(query.sql, query.parameters)
            if cursor.description is None:
                return []
            return cursor.fetchall()
