"""Entry point: a ``PgFluent`` instance hands out fluent statement builders."""
from __future__ import annotations

from pgfluent.builders.insert import InsertQueryBuilder
from pgfluent.builders.select import SelectQueryBuilder
from pgfluent.compile.base import SQLCompiler
from pgfluent.compile.builder import StatementCompiler
from pgfluent.compile.postgres import PostgresCompiler
from pgfluent.config import CompilerSettings
from pgfluent.execution import Executor
from pgfluent.schema.snapshot import DatabaseSchema


class PgFluent:
    """Factory for SELECT and INSERT builders sharing one configuration.

    The instance holds no per-query state; builders it creates may be used
    from any thread.

    Args:
        schema: Optional schema used to check column names and to type
            empty array literals.
        executor: Default executor for ``builder.execute()``.
        settings: Compilation options; defaults to ``CompilerSettings()``.
        compiler: Rendering primitives; defaults to :class:`PostgresCompiler`
            configured from ``settings``.

    Example::

        db = PgFluent()
        sql, params = db.select_from("users").where("id", "=", 1).to_sql()
        # sql == "SELECT * FROM users WHERE id = $1", params == [1]
    """

    def __init__(
        self,
        schema: DatabaseSchema | None = None,
        executor: Executor | None = None,
        settings: CompilerSettings | None = None,
        compiler: SQLCompiler | None = None,
    ) -> None:
        self.settings = settings or CompilerSettings()
        self.schema = schema
        self.executor = executor
        if compiler is None:
            compiler = PostgresCompiler(quote_reserved=self.settings.quote_reserved_identifiers)
        self._statement_compiler = StatementCompiler(compiler, self.settings, schema)

    def select_from(self, table: str) -> SelectQueryBuilder:
        """Start a SELECT from ``"table"`` or ``"table as alias"``.

        Raises:
            MalformedExpressionError: If ``table`` cannot be parsed.
        """
        return SelectQueryBuilder.from_table(table, self._statement_compiler, self.executor)

    def insert_into(self, table: str) -> InsertQueryBuilder:
        """Start an INSERT into ``table``."""
        return InsertQueryBuilder.from_table(table, self._statement_compiler, self.executor)
