"""Test fixtures: sample schema JSON and PostgreSQL DDL."""

from __future__ import annotations

import json
from pathlib import Path

from pgfluent.schema.snapshot import DatabaseSchema

_FIXTURES_DIR = Path(__file__).parent


def load_schema() -> DatabaseSchema:
    """Load the sample DatabaseSchema from schema.json."""
    data = json.loads((_FIXTURES_DIR / "schema.json").read_text())
    return DatabaseSchema.model_validate(data)


def load_ddl() -> str:
    """Return the sample PostgreSQL DDL."""
    return (_FIXTURES_DIR / "ddl_postgres.sql").read_text()
