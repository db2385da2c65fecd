"""Core query snapshot → SQL compilation logic.

``StatementCompiler`` is the top-level orchestrator.  It rebuilds the scope
from the snapshot's tables, wires together the clause-level and
predicate-level sub-builders, and assembles the clauses in order.  All
dialect-specific rendering is delegated to the injected ``SQLCompiler``.

Sub-builder hierarchy
---------------------
StatementCompiler
  ├── ValueBuilder             (predicate_builder.py)
  ├── PredicateBuilder         (predicate_builder.py)
  ├── SelectClauseBuilder      (clause_builders.py)
  ├── FromClauseBuilder        (clause_builders.py)
  ├── JoinClauseBuilder        (clause_builders.py)
  ├── OrderByClauseBuilder     (clause_builders.py)
  ├── InsertClauseBuilder      (clause_builders.py)
  ├── OnConflictClauseBuilder  (clause_builders.py)
  └── ReturningClauseBuilder   (clause_builders.py)

Runtime context sharing
-----------------------
A single :class:`~pgfluent.compile.predicate_builder.RuntimeContext` is
created per ``compile()`` call and threaded through every sub-builder, so
``$n`` numbering is monotonic across the whole statement (INSERT values,
ON CONFLICT assignments, WHERE literals and raw fragments alike).
"""

from __future__ import annotations

import logging

from pgfluent.compile.base import CompiledQuery, SQLCompiler
from pgfluent.compile.clause_builders import (
    FromClauseBuilder,
    InsertClauseBuilder,
    JoinClauseBuilder,
    OnConflictClauseBuilder,
    OrderByClauseBuilder,
    ReturningClauseBuilder,
    SelectClauseBuilder,
)
from pgfluent.compile.context import CompilationContext
from pgfluent.compile.predicate_builder import PredicateBuilder, RuntimeContext, ValueBuilder
from pgfluent.config import CompilerSettings
from pgfluent.errors import CompilationError
from pgfluent.schema.identifiers import TableRef
from pgfluent.schema.query import InsertQuery, SelectQuery
from pgfluent.schema.scope import Scope
from pgfluent.schema.snapshot import DatabaseSchema

logger = logging.getLogger(__name__)


class StatementCompiler:
    """Compiles a query snapshot to parameterized SQL.

    Compilation is pure: the same snapshot always yields a byte-identical
    :class:`CompiledQuery`.

    Args:
        compiler: Dialect-specific rendering primitives.
        settings: Compilation options; defaults to ``CompilerSettings()``.
        schema: Optional schema description.
    """

    def __init__(
        self,
        compiler: SQLCompiler,
        settings: CompilerSettings | None = None,
        schema: DatabaseSchema | None = None,
    ) -> None:
        self._compiler = compiler
        self._settings = settings or CompilerSettings()
        self._schema = schema

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compile(self, query: SelectQuery | InsertQuery) -> CompiledQuery:
        """Compile ``query`` to SQL text and positional parameters.

        Args:
            query: A select or insert snapshot.

        Returns:
            :class:`~pgfluent.compile.base.CompiledQuery` with ``sql`` and
            ``parameters``.

        Raises:
            UnresolvedColumnError: If a column does not resolve in scope.
            AliasExclusivityViolationError: If an aliased table's name is
                used as a qualifier.
            InvalidOperandError: If an operand has the wrong shape.
            CompilationError: If an unexpected snapshot shape is met.
        """
        if isinstance(query, SelectQuery):
            tables = query.tables
        elif isinstance(query, InsertQuery):
            tables = (query.table,)
        else:
            raise CompilationError(f"Cannot compile {type(query).__name__}.")

        ctx = CompilationContext(
            compiler=self._compiler,
            scope=self.build_scope(tables),
            settings=self._settings,
            schema=self._schema,
        )
        runtime = RuntimeContext()
        sub_builders = self._make_sub_builders(ctx, runtime)

        if isinstance(query, SelectQuery):
            sql = self._build_select(query, sub_builders)
        else:
            sql = self._build_insert(query, sub_builders)

        logger.debug("Compiled %s (%d parameters)", sql, len(runtime.params))
        return CompiledQuery(sql=sql, parameters=list(runtime.params))

    def build_scope(self, tables: tuple[TableRef, ...]) -> Scope:
        """Scope over ``tables``, carrying the schema when columns are checked."""
        scope = Scope(schema=self._schema if self._settings.check_columns else None)
        for table in tables:
            scope = scope.add_table(table)
        return scope

    # ------------------------------------------------------------------
    # Statement assembly
    # ------------------------------------------------------------------

    def _build_select(self, query: SelectQuery, sub_builders: dict) -> str:
        parts: list[str] = []

        parts.append(sub_builders["select"].build(query.selections))
        parts.append(sub_builders["from"].build(query.table))

        for join in query.joins:
            parts.append(sub_builders["join"].build(join))

        if query.where is not None:
            parts.append(f"WHERE {sub_builders['pred'].build(query.where)}")

        if query.order_by:
            parts.append(sub_builders["order_by"].build(query.order_by, query.selections))

        if query.limit is not None:
            parts.append(f"LIMIT {query.limit}")

        if query.offset is not None:
            parts.append(f"OFFSET {query.offset}")

        return " ".join(parts)

    def _build_insert(self, query: InsertQuery, sub_builders: dict) -> str:
        parts: list[str] = [sub_builders["insert"].build(query)]

        if query.on_conflict is not None:
            parts.append(sub_builders["on_conflict"].build(query.on_conflict))

        if query.returning:
            parts.append(sub_builders["returning"].build(query.returning))

        return " ".join(parts)

    # ------------------------------------------------------------------
    # Sub-builder wiring
    # ------------------------------------------------------------------

    def _make_sub_builders(self, ctx: CompilationContext, runtime: RuntimeContext) -> dict:
        """Construct the sub-builder graph for one compilation run."""
        value_builder = ValueBuilder(ctx, runtime)
        return {
            "value": value_builder,
            "pred": PredicateBuilder(ctx, runtime, value_builder),
            "select": SelectClauseBuilder(ctx),
            "from": FromClauseBuilder(ctx),
            "join": JoinClauseBuilder(ctx),
            "order_by": OrderByClauseBuilder(ctx),
            "insert": InsertClauseBuilder(ctx, value_builder),
            "on_conflict": OnConflictClauseBuilder(ctx, runtime),
            "returning": ReturningClauseBuilder(ctx),
        }
