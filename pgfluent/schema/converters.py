"""Building a :class:`DatabaseSchema` from a live database.

:func:`schema_from_sqlalchemy` reflects an engine and returns the table and
column description used for column checks and empty-array casts.

Install the optional dependency before using this module::

    pip install "pgfluent[sqlalchemy]"

Example::

    from sqlalchemy import create_engine
    from pgfluent import PgFluent
    from pgfluent.schema.converters import schema_from_sqlalchemy

    engine = create_engine("postgresql+psycopg://user:pw@host/db")
    db = PgFluent(schema=schema_from_sqlalchemy(engine, schema="public"))
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pgfluent.schema.snapshot import ColumnInfo, DatabaseSchema, TableInfo

if TYPE_CHECKING:
    from sqlalchemy import Engine, MetaData

logger = logging.getLogger(__name__)


def schema_from_sqlalchemy(
    engine: Engine,
    *,
    include_tables: list[str] | None = None,
    schema: str | None = None,
) -> DatabaseSchema:
    """Reflect ``engine`` into a :class:`DatabaseSchema`.

    Column types are recorded as SQLAlchemy renders them for the engine's
    dialect.  PostgreSQL array columns come through as ``TEXT[]`` /
    ``INTEGER[]``, which is what empty-array casts need.

    Args:
        engine: A :class:`sqlalchemy.engine.Engine`.
        include_tables: Optional allowlist of table names to reflect.
        schema: Optional database schema name (``"public"``).

    Returns:
        The reflected schema.

    Raises:
        ImportError: If ``sqlalchemy`` is not installed.
    """
    try:
        from sqlalchemy import MetaData as _MetaData
    except ImportError as exc:
        raise ImportError(
            "SQLAlchemy is required for schema_from_sqlalchemy(). "
            'Install it with: pip install "pgfluent[sqlalchemy]"'
        ) from exc

    metadata = _MetaData()
    with engine.connect() as conn:
        metadata.reflect(bind=conn, only=include_tables, schema=schema)

    result = metadata_to_schema(metadata, dialect=engine.dialect)
    logger.debug("Reflected %d tables", len(result.tables))
    return result


def metadata_to_schema(metadata: MetaData, dialect=None) -> DatabaseSchema:
    """Convert already-reflected ``MetaData`` into a :class:`DatabaseSchema`.

    ``dialect`` is used to render column types; without it SQLAlchemy's
    generic type names are used.
    """
    return DatabaseSchema(
        tables=[
            TableInfo(
                name=table.name,
                columns=[
                    ColumnInfo(
                        name=col.name,
                        type=_type_name(col.type, dialect),
                        nullable=col.nullable is not False,
                    )
                    for col in table.columns
                ],
            )
            for table in metadata.sorted_tables
        ]
    )


def _type_name(column_type, dialect) -> str:
    if dialect is not None:
        return column_type.compile(dialect=dialect)
    return str(column_type)
