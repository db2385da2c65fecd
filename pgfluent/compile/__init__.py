"""pgfluent compilation layer: query snapshot → parameterized SQL."""
from pgfluent.compile.base import CompiledQuery, SQLCompiler
from pgfluent.compile.builder import StatementCompiler
from pgfluent.compile.postgres import PostgresCompiler

__all__ = [
    "CompiledQuery",
    "SQLCompiler",
    "StatementCompiler",
    "PostgresCompiler",
]
