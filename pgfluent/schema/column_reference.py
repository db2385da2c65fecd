"""Typed column-reference class.

Owns the ``qualifier.column`` split so the scope registry and the compiler
never pattern-match on raw strings themselves.
"""

from __future__ import annotations

from dataclasses import dataclass

from pgfluent.schema.identifiers import validate_column_name


@dataclass(frozen=True)
class ColumnReference:
    """A parsed ``qualifier.column`` or bare ``column`` reference.

    Attributes:
        qualifier: Table name or alias, or ``None`` for bare references.
        column: Column name (``*`` for star selections).
    """

    qualifier: str | None
    column: str

    @classmethod
    def parse(cls, ref: str) -> ColumnReference:
        """Parse a ``"qualifier.column"`` or bare ``"column"`` string.

        Raises:
            EmptyIdentifierError: If ``ref`` is blank.
            MalformedExpressionError: If ``ref`` is not a valid reference.
        """
        validate_column_name(ref)
        if "." in ref:
            qualifier, column = ref.split(".", 1)
            return cls(qualifier=qualifier, column=column)
        return cls(qualifier=None, column=ref)

    def with_qualifier(self, qualifier: str) -> ColumnReference:
        return ColumnReference(qualifier=qualifier, column=self.column)

    @property
    def qualified(self) -> bool:
        """True when the reference includes a qualifier."""
        return self.qualifier is not None

    def __str__(self) -> str:
        if self.qualifier:
            return f"{self.qualifier}.{self.column}"
        return self.column
