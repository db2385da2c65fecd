"""Unit tests for the Scope registry and column resolution."""

from __future__ import annotations

import pytest

from pgfluent.errors import (
    AliasExclusivityViolationError,
    DuplicateAliasError,
    UnresolvedColumnError,
)
from pgfluent.schema.identifiers import TableRef
from pgfluent.schema.scope import Scope
from tests.fixtures import load_schema

SCHEMA = load_schema()


def _scope(*tables: TableRef, schema=None) -> Scope:
    scope = Scope(schema=schema)
    for table in tables:
        scope = scope.add_table(table)
    return scope


USERS_U = TableRef(name="users", alias="u")
POSTS_P = TableRef(name="posts", alias="p")
USERS = TableRef(name="users")
POSTS = TableRef(name="posts")


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------


class TestAddTable:
    def test_add_returns_new_scope(self):
        empty = Scope()
        scope = empty.add_table(USERS_U)
        assert empty.tables == ()
        assert scope.tables == (USERS_U,)
        assert scope.root == USERS_U

    def test_duplicate_alias(self):
        scope = _scope(USERS_U)
        with pytest.raises(DuplicateAliasError) as exc_info:
            scope.add_table(TableRef(name="posts", alias="u"))
        assert exc_info.value.code == "DUPLICATE_ALIAS"
        assert exc_info.value.details["qualifier"] == "u"

    def test_same_table_twice_without_alias(self):
        with pytest.raises(DuplicateAliasError):
            _scope(USERS, USERS)

    def test_same_table_under_two_aliases(self):
        scope = _scope(USERS_U, TableRef(name="users", alias="manager"))
        assert set(scope.qualifiers) == {"u", "manager"}

    def test_alias_equal_to_other_table_name(self):
        with pytest.raises(DuplicateAliasError):
            _scope(POSTS, TableRef(name="users", alias="posts"))


# ---------------------------------------------------------------------------
# Resolution without a schema
# ---------------------------------------------------------------------------


class TestResolveWithoutSchema:
    def test_qualified_by_alias(self):
        resolved = _scope(USERS_U).resolve_column("u.email")
        assert str(resolved) == "u.email"
        assert resolved.table == USERS_U

    def test_original_name_of_aliased_table(self):
        with pytest.raises(AliasExclusivityViolationError) as exc_info:
            _scope(USERS_U).resolve_column("users.email")
        assert exc_info.value.code == "ALIAS_EXCLUSIVITY_VIOLATION"

    def test_unknown_qualifier(self):
        with pytest.raises(UnresolvedColumnError) as exc_info:
            _scope(USERS_U).resolve_column("x.email")
        assert exc_info.value.details["candidates"] == ["u"]

    def test_bare_column_never_qualified(self):
        resolved = _scope(USERS_U, POSTS_P).resolve_column("email")
        assert str(resolved) == "email"

    def test_bare_column_single_table_owner(self):
        assert _scope(USERS_U).resolve_column("email").table == USERS_U

    def test_default_qualifier(self):
        resolved = _scope(USERS_U, POSTS_P).resolve_column("user_id", default_qualifier="p")
        assert str(resolved) == "p.user_id"

    def test_explicit_qualifier_beats_default(self):
        resolved = _scope(USERS_U, POSTS_P).resolve_column("u.id", default_qualifier="p")
        assert str(resolved) == "u.id"

    def test_self_join_aliases(self):
        scope = _scope(USERS_U, TableRef(name="users", alias="manager"))
        assert str(scope.resolve_column("manager.id")) == "manager.id"
        with pytest.raises(AliasExclusivityViolationError):
            scope.resolve_column("users.id")


# ---------------------------------------------------------------------------
# Resolution with a schema
# ---------------------------------------------------------------------------


class TestResolveWithSchema:
    def test_unknown_qualified_column(self):
        with pytest.raises(UnresolvedColumnError) as exc_info:
            _scope(USERS_U, schema=SCHEMA).resolve_column("u.nope")
        assert "email" in exc_info.value.details["candidates"]

    def test_unknown_bare_column(self):
        with pytest.raises(UnresolvedColumnError):
            _scope(USERS, schema=SCHEMA).resolve_column("nope")

    def test_ambiguous_bare_column(self):
        scope = _scope(USERS_U, POSTS_P, schema=SCHEMA)
        with pytest.raises(UnresolvedColumnError) as exc_info:
            scope.resolve_column("id")
        assert exc_info.value.details["candidates"] == ["u.id", "p.id"]

    def test_unique_bare_column_keeps_bare_form(self):
        scope = _scope(USERS_U, POSTS_P, schema=SCHEMA)
        resolved = scope.resolve_column("title")
        assert str(resolved) == "title"
        assert resolved.table == POSTS_P

    def test_unambiguous_columns(self):
        scope = _scope(USERS_U, POSTS_P, schema=SCHEMA)
        assert "title" in scope.unambiguous_columns
        assert "id" not in scope.unambiguous_columns

    def test_table_missing_from_schema_disables_bare_check(self):
        scope = _scope(USERS, TableRef(name="audit_log"), schema=SCHEMA)
        assert scope.unambiguous_columns is None
        assert str(scope.resolve_column("whatever")) == "whatever"

    def test_extra_names_accepted(self):
        scope = _scope(USERS, schema=SCHEMA)
        assert str(scope.resolve_column("contact", extra_names={"contact"})) == "contact"
