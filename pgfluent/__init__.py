"""pgfluent – an immutable, fluent SQL query builder for PostgreSQL.

Every builder call returns a new builder; compiling one yields SQL text with
``$1..$n`` placeholders and the matching parameter list.

Public API
----------
``PgFluent``
    Entry point; ``select_from()`` and ``insert_into()`` start builders.

``eb``, ``and_``, ``or_``, ``not_``, ``array``, ``jsonb``, ``ref``
    Expression factories for ``where()`` callbacks.

``sql``, ``raw``
    Trusted raw SQL fragments.

Example::

    from pgfluent import PgFluent

    db = PgFluent()
    query = (
        db.select_from("users as u")
        .select("u.id", "u.email as contact")
        .inner_join("posts as p", "u.id", "p.author_id")
        .where(lambda eb: eb.or_([eb("u.role", "=", "admin"), eb("p.published", "=", True)]))
        .order_by("u.id", "desc")
        .limit(10)
    )
    sql, params = query.to_sql()
"""

from __future__ import annotations

from pgfluent.builders.expression import (
    ExpressionBuilder,
    and_,
    array,
    eb,
    jsonb,
    not_,
    or_,
    ref,
)
from pgfluent.builders.insert import InsertQueryBuilder, OnConflictBuilder
from pgfluent.builders.select import SelectQueryBuilder
from pgfluent.client import PgFluent
from pgfluent.compile.base import CompiledQuery, SQLCompiler
from pgfluent.compile.postgres import PostgresCompiler
from pgfluent.config import CompilerSettings
from pgfluent.errors import (
    AliasExclusivityViolationError,
    CompilationError,
    DuplicateAliasError,
    EmptyIdentifierError,
    ExecutorNotConfiguredError,
    InvalidOperandError,
    MalformedExpressionError,
    PgFluentError,
    QueryConstructionError,
    UnresolvedColumnError,
)
from pgfluent.execution import Executor, PsycopgExecutor, to_format_params
from pgfluent.raw import raw, sql
from pgfluent.schema.converters import schema_from_sqlalchemy
from pgfluent.schema.snapshot import ColumnInfo, DatabaseSchema, TableInfo

__all__ = [
    # Entry point
    "PgFluent",
    "SelectQueryBuilder",
    "InsertQueryBuilder",
    "OnConflictBuilder",
    # Expressions
    "ExpressionBuilder",
    "eb",
    "and_",
    "or_",
    "not_",
    "array",
    "jsonb",
    "ref",
    "sql",
    "raw",
    # Schema
    "DatabaseSchema",
    "TableInfo",
    "ColumnInfo",
    "schema_from_sqlalchemy",
    # Compilation
    "CompiledQuery",
    "CompilerSettings",
    "SQLCompiler",
    "PostgresCompiler",
    # Execution
    "Executor",
    "PsycopgExecutor",
    "to_format_params",
    # Errors
    "PgFluentError",
    "QueryConstructionError",
    "MalformedExpressionError",
    "EmptyIdentifierError",
    "DuplicateAliasError",
    "AliasExclusivityViolationError",
    "UnresolvedColumnError",
    "InvalidOperandError",
    "CompilationError",
    "ExecutorNotConfiguredError",
]
