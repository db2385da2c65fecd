"""Compilation context value object.

Packages the ``(compiler, scope, schema, settings)`` data clump shared by
the statement compiler and every clause-level sub-builder.
"""
from __future__ import annotations

from dataclasses import dataclass

from pgfluent.compile.base import SQLCompiler
from pgfluent.config import CompilerSettings
from pgfluent.schema.scope import Scope
from pgfluent.schema.snapshot import DatabaseSchema


@dataclass(frozen=True)
class CompilationContext:
    """Immutable context for a single compilation run.

    Attributes:
        compiler: Dialect-specific rendering primitives.
        scope: Tables in FROM/JOIN, used to resolve every column.
        settings: Compilation options.
        schema: Optional schema (array element types).
    """

    compiler: SQLCompiler
    scope: Scope
    settings: CompilerSettings
    schema: DatabaseSchema | None = None

    def column_sql(self, column: str, default_qualifier: str | None = None, extra_names=()) -> str:
        """Resolve ``column`` through the scope and render it."""
        resolved = self.scope.resolve_column(column, default_qualifier, extra_names)
        return self.render_reference(str(resolved))

    def render_reference(self, reference: str) -> str:
        quote = self.compiler.quote_identifier
        return ".".join(quote(part) for part in reference.split("."))

    def array_element_type(self, column: str) -> str:
        """Element type for an empty array literal on ``column``."""
        resolved = self.scope.resolve_column(column)
        if self.schema is not None and resolved.table is not None:
            found = self.schema.array_element_type(resolved.table.name, resolved.reference.column)
            if found:
                return found
        return self.settings.default_array_element_type
