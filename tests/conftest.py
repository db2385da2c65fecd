"""Shared pytest fixtures for pgfluent unit and integration tests."""
from __future__ import annotations

import pytest

from pgfluent import PgFluent
from pgfluent.schema.snapshot import DatabaseSchema
from tests.fixtures import load_schema


@pytest.fixture(scope="session")
def schema() -> DatabaseSchema:
    """Sample schema shared across all tests."""
    return load_schema()


@pytest.fixture(scope="session")
def db() -> PgFluent:
    """Schema-less client: bare columns are rendered as written."""
    return PgFluent()


@pytest.fixture(scope="session")
def db_with_schema(schema: DatabaseSchema) -> PgFluent:
    """Client that checks column names against the sample schema."""
    return PgFluent(schema=schema)
