"""Compiler abstractions: CompiledQuery and the SQLCompiler ABC.

The Template Method pattern is used:
- ``StatementCompiler`` (``builder.py``) owns the algorithm that walks a
  query snapshot clause by clause.
- ``SQLCompiler`` subclasses supply the dialect-specific steps (parameter
  placeholder style, identifier and literal quoting, empty-array casts).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass
class CompiledQuery:
    """The output of a successful compilation.

    Attributes:
        sql: The compiled SQL string with ``$1..$n`` placeholders.
        parameters: Bind values; ``parameters[i]`` is the value of
            placeholder ``$(i+1)``.
    """

    sql: str
    parameters: list[Any] = field(default_factory=list)

    def __iter__(self):
        # Allows ``sql, params = builder.to_sql()``.
        yield self.sql
        yield self.parameters


class SQLCompiler(ABC):
    """Abstract base for dialect-specific rendering primitives.

    ``StatementCompiler`` drives compilation through this interface only.
    """

    @abstractmethod
    def param_placeholder(self, index: int) -> str:
        """Return the placeholder for the 1-based parameter ``index``."""

    @abstractmethod
    def quote_identifier(self, name: str) -> str:
        """Return ``name`` as it must appear in SQL text.

        Args:
            name: Unquoted identifier (table, column or alias name).

        Returns:
            The identifier, quoted when the dialect requires it.
        """

    @abstractmethod
    def quote_literal(self, value: str) -> str:
        """Return ``value`` as an inline SQL string literal."""

    @abstractmethod
    def empty_array(self, element_type: str) -> str:
        """Return an empty array literal typed as ``element_type[]``."""
