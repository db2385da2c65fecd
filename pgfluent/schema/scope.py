"""Scope registry: which tables are in FROM/JOIN and how columns resolve.

A :class:`Scope` is an immutable value.  ``add_table`` returns a new scope
so that every query builder snapshot owns the scope that was current when
it was created.

Resolution policy
-----------------
* ``q.col``: ``q`` must be a registered qualifier.  The original name of an
  aliased table is never a registered qualifier; using it raises
  :class:`~pgfluent.errors.AliasExclusivityViolationError`.
* ``col`` with a default qualifier (the two sides of a JOIN ON): the column
  is qualified with that default.
* ``col`` anywhere else: rendered exactly as written, never auto-qualified.
  When a schema is attached and describes every table in scope, a bare
  name found in none of them, or in more than one, is rejected with
  :class:`~pgfluent.errors.UnresolvedColumnError`.
"""
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from functools import cached_property
from typing import NoReturn

from pgfluent.errors import (
    AliasExclusivityViolationError,
    DuplicateAliasError,
    UnresolvedColumnError,
)
from pgfluent.schema.column_reference import ColumnReference
from pgfluent.schema.identifiers import TableRef
from pgfluent.schema.snapshot import DatabaseSchema


@dataclass(frozen=True)
class QualifiedColumn:
    """The result of resolving a column reference.

    Attributes:
        reference: The reference as it must be rendered.
        table: The table the column belongs to, when it is known.
    """

    reference: ColumnReference
    table: TableRef | None = None

    def __str__(self) -> str:
        return str(self.reference)


@dataclass(frozen=True)
class Scope:
    """The set of tables visible to a query, keyed by qualifier.

    Attributes:
        tables: Tables in FROM/JOIN order; the first is the FROM table.
        schema: Optional schema used to check column names.
    """

    tables: tuple[TableRef, ...] = ()
    schema: DatabaseSchema | None = field(default=None, compare=False)

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    def add_table(self, ref: TableRef) -> Scope:
        """Return a new scope with ``ref`` registered under its qualifier.

        Raises:
            DuplicateAliasError: If the qualifier is already registered.
        """
        existing = self.qualifiers.get(ref.qualifier)
        if existing is not None:
            raise DuplicateAliasError(ref.qualifier, existing.name, ref.name)
        return Scope(tables=self.tables + (ref,), schema=self.schema)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @cached_property
    def qualifiers(self) -> dict[str, TableRef]:
        """Every admissible qualifier mapped to its table."""
        return {t.qualifier: t for t in self.tables}

    @property
    def root(self) -> TableRef | None:
        """The FROM table, or ``None`` for an empty scope."""
        return self.tables[0] if self.tables else None

    @cached_property
    def unambiguous_columns(self) -> frozenset[str] | None:
        """Bare column names owned by exactly one table in scope.

        ``None`` when no schema is attached or some table in scope is not
        described by it.
        """
        owners = self._column_owners()
        if owners is None:
            return None
        return frozenset(name for name, tables in owners.items() if len(tables) == 1)

    def resolve_column(
        self,
        reference: str | ColumnReference,
        default_qualifier: str | None = None,
        extra_names: Iterable[str] = (),
    ) -> QualifiedColumn:
        """Resolve ``reference`` against the tables in scope.

        Args:
            reference: ``"q.col"`` / ``"col"`` or a parsed reference.
            default_qualifier: Qualifier applied to bare references; used
                for the two sides of a JOIN ON condition.
            extra_names: Bare names accepted without checking, such as
                output aliases of the SELECT list.

        Returns:
            The resolved column.

        Raises:
            AliasExclusivityViolationError: If an aliased table's original
                name qualifies the column.
            UnresolvedColumnError: If the qualifier is not in scope, or the
                attached schema rejects the column.
        """
        ref = reference if isinstance(reference, ColumnReference) else ColumnReference.parse(reference)

        if ref.qualified:
            table = self.qualifiers.get(ref.qualifier)  # type: ignore[arg-type]
            if table is None:
                self._raise_unknown_qualifier(ref)
            self._check_column(table, ref)
            return QualifiedColumn(reference=ref, table=table)

        if default_qualifier is not None:
            table = self.qualifiers.get(default_qualifier)
            if table is None:
                raise UnresolvedColumnError(
                    str(ref),
                    f"qualifier '{default_qualifier}' is not in scope",
                    candidates=list(self.qualifiers),
                )
            self._check_column(table, ref)
            return QualifiedColumn(reference=ref.with_qualifier(default_qualifier), table=table)

        if ref.column == "*" or ref.column in set(extra_names):
            return QualifiedColumn(reference=ref)

        return QualifiedColumn(reference=ref, table=self._owner_of_bare(ref))

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _raise_unknown_qualifier(self, ref: ColumnReference) -> NoReturn:
        for table in self.tables:
            if table.alias and table.name == ref.qualifier:
                raise AliasExclusivityViolationError(str(ref), table.name, table.alias)
        raise UnresolvedColumnError(
            str(ref),
            f"qualifier '{ref.qualifier}' is not in scope",
            candidates=list(self.qualifiers),
        )

    def _check_column(self, table: TableRef, ref: ColumnReference) -> None:
        if self.schema is None or ref.column == "*":
            return
        info = self.schema.get_table(table.name)
        if info is None:
            return
        if ref.column not in info.column_names:
            raise UnresolvedColumnError(
                str(ref),
                f"table '{table.name}' has no column '{ref.column}'",
                candidates=info.column_names,
            )

    def _owner_of_bare(self, ref: ColumnReference) -> TableRef | None:
        owners = self._column_owners()
        if owners is None:
            return self.tables[0] if len(self.tables) == 1 else None

        tables = owners.get(ref.column, [])
        if not tables:
            raise UnresolvedColumnError(
                str(ref),
                "no table in scope has this column",
                candidates=sorted(owners),
            )
        if len(tables) > 1:
            raise UnresolvedColumnError(
                str(ref),
                "the name is ambiguous; qualify it with one of the tables in scope",
                candidates=[f"{t.qualifier}.{ref.column}" for t in tables],
            )
        return tables[0]

    def _column_owners(self) -> dict[str, list[TableRef]] | None:
        if self.schema is None or not self.tables:
            return None
        owners: dict[str, list[TableRef]] = {}
        for table in self.tables:
            info = self.schema.get_table(table.name)
            if info is None:
                return None
            for name in info.column_names:
                owners.setdefault(name, []).append(table)
        return owners
