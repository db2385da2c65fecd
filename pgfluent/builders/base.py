"""Shared behaviour of the fluent statement builders.

A builder wraps one immutable query snapshot.  Compiling it is memoized on
the builder; every mutating method returns a *new* builder whose cache
starts empty, so a cached result can never go stale.
"""
from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from pgfluent.compile.base import CompiledQuery
from pgfluent.compile.builder import StatementCompiler
from pgfluent.errors import ExecutorNotConfiguredError, InvalidOperandError
from pgfluent.execution import Executor
from pgfluent.schema.query import InsertQuery, SelectQuery

logger = logging.getLogger(__name__)

QueryT = TypeVar("QueryT", SelectQuery, InsertQuery)


class StatementBuilder(Generic[QueryT]):
    """Base for :class:`SelectQueryBuilder` and :class:`InsertQueryBuilder`.

    Args:
        query: The snapshot this builder represents.
        compiler: Statement compiler shared by every builder of a
            :class:`~pgfluent.client.PgFluent` instance.
        executor: Default executor for :meth:`execute`.
    """

    def __init__(
        self,
        query: QueryT,
        compiler: StatementCompiler,
        executor: Executor | None = None,
    ) -> None:
        self._query = query
        self._compiler = compiler
        self._executor = executor
        self._compiled: tuple[str, tuple[Any, ...]] | None = None

    @property
    def query(self) -> QueryT:
        """The immutable snapshot held by this builder."""
        return self._query

    def compile(self) -> CompiledQuery:
        """Compile to SQL text and positional parameters.

        Repeated calls return equal results; each call returns a fresh
        :class:`CompiledQuery` so callers may mutate it freely.
        """
        if self._compiled is None:
            result = self._compiler.compile(self._query)
            self._compiled = (result.sql, tuple(result.parameters))
        sql, params = self._compiled
        return CompiledQuery(sql=sql, parameters=list(params))

    def to_sql(self) -> CompiledQuery:
        """Alias of :meth:`compile`."""
        return self.compile()

    def execute(self, executor: Executor | None = None) -> Any:
        """Compile and hand the query to ``executor``.

        The executor's result is returned and its exceptions propagate
        unchanged.

        Raises:
            ExecutorNotConfiguredError: If no executor was given here or
                configured on the client.
        """
        executor = executor if executor is not None else self._executor
        if executor is None:
            raise ExecutorNotConfiguredError(
                "No executor configured; pass one to execute() or to PgFluent(executor=...)."
            )
        compiled = self.compile()
        logger.debug("Executing %s with %d parameters", compiled.sql, len(compiled.parameters))
        return executor.execute(compiled)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._query!r})"


def non_negative_int(value: Any, method: str) -> int:
    """Validate a LIMIT/OFFSET argument."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidOperandError(
            f"{method}() requires an integer, got {type(value).__name__}.",
            operator=method,
            operand=value,
        )
    if value < 0:
        raise InvalidOperandError(f"{method}() requires a non-negative integer.", operator=method, operand=value)
    return value


def flatten_names(names: tuple[Any, ...], method: str) -> list[str]:
    """Accept ``f("a", "b")`` as well as ``f(["a", "b"])``."""
    if len(names) == 1 and isinstance(names[0], (list, tuple)):
        names = tuple(names[0])
    for name in names:
        if not isinstance(name, str):
            raise InvalidOperandError(
                f"{method}() expects column names, got {type(name).__name__}.",
                operator=method,
                operand=name,
            )
    return list(names)
