"""Pydantic models for the optional, static database schema description.

A ``DatabaseSchema`` is never required.  When one is attached to
:class:`~pgfluent.client.PgFluent`, the compiler uses it for two things
only: rejecting bare column names that are unknown or ambiguous across the
tables in scope, and inferring the element type of empty array literals.
It is produced by the caller (hand-written JSON, or reflected with
:func:`~pgfluent.schema.converters.schema_from_sqlalchemy`).
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ColumnInfo(BaseModel):
    """Metadata for a single column.

    Attributes:
        name: Column name.
        type: SQL type string (e.g. ``'text'``, ``'INTEGER'``, ``'TEXT[]'``).
        nullable: Whether the column can be NULL.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    type: str
    nullable: bool = True

    @property
    def is_array(self) -> bool:
        """True for Postgres array types (``text[]``, ``_int4``)."""
        return self.type.endswith("[]") or self.type.startswith("_")

    @property
    def element_type(self) -> str | None:
        """The lower-cased element type of an array column, else ``None``."""
        if not self.is_array:
            return None
        if self.type.endswith("[]"):
            return self.type[:-2].strip().lower()
        return self.type[1:].lower()


class TableInfo(BaseModel):
    """Metadata for a single table.

    Attributes:
        name: Table name.
        columns: Ordered list of column metadata.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    columns: list[ColumnInfo]

    @property
    def column_names(self) -> list[str]:
        """Returns all column names for this table."""
        return [c.name for c in self.columns]


class DatabaseSchema(BaseModel):
    """Describes the tables and columns queries are built against.

    Attributes:
        tables: All described tables.
    """

    model_config = ConfigDict(extra="forbid")

    tables: list[TableInfo]

    def get_table(self, name: str) -> TableInfo | None:
        """Returns the TableInfo for the given table name, or ``None``."""
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def get_column(self, table_name: str, column_name: str) -> ColumnInfo | None:
        """Returns the ColumnInfo for a table.column pair, or ``None``."""
        table = self.get_table(table_name)
        if table is None:
            return None
        for col in table.columns:
            if col.name == column_name:
                return col
        return None

    def get_column_names(self, table_name: str) -> list[str]:
        """Returns column names for ``table_name``, or ``[]`` if not found."""
        table = self.get_table(table_name)
        return table.column_names if table is not None else []

    def array_element_type(self, table_name: str, column_name: str) -> str | None:
        """Returns the element type of an array column, or ``None``.

        ``None`` is returned both for unknown columns and for columns whose
        declared type is not an array.
        """
        col = self.get_column(table_name, column_name)
        return col.element_type if col is not None else None

    @property
    def table_names(self) -> list[str]:
        """Returns all table names in the schema."""
        return [t.name for t in self.tables]
