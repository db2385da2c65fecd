"""Unit tests for SelectQueryBuilder: immutability and argument validation."""

from __future__ import annotations

import pytest

from pgfluent import PgFluent
from pgfluent.errors import (
    DuplicateAliasError,
    EmptyIdentifierError,
    InvalidOperandError,
    MalformedExpressionError,
)
from pgfluent.schema.nodes import ComparisonNode, LogicalNode

DB = PgFluent()


# ---------------------------------------------------------------------------
# Immutability
# ---------------------------------------------------------------------------


class TestImmutability:
    def test_where_returns_new_builder(self):
        base = DB.select_from("users")
        filtered = base.where("id", "=", 1)
        assert filtered is not base
        assert base.to_sql().sql == "SELECT * FROM users"
        assert filtered.to_sql().sql == "SELECT * FROM users WHERE id = $1"

    def test_branches_do_not_interfere(self):
        active = DB.select_from("users").where("active", "=", True)
        admins = active.where("role", "=", "admin")
        guests = active.where("role", "=", "guest")
        assert admins.to_sql().parameters == [True, "admin"]
        assert guests.to_sql().parameters == [True, "guest"]
        assert active.to_sql().parameters == [True]

    def test_every_method_leaves_original_untouched(self):
        base = DB.select_from("users as u")
        before = base.to_sql()
        base.select("u.id")
        base.select_all()
        base.inner_join("posts as p", "u.id", "p.user_id")
        base.order_by("u.id")
        base.limit(1)
        base.offset(1)
        assert base.to_sql() == before

    def test_join_does_not_leak_into_scope_of_original(self):
        base = DB.select_from("users as u")
        base.inner_join("posts as p", "u.id", "p.user_id")
        # ``p`` was only registered on the derived builder.
        joined_again = base.inner_join("posts as p", "u.id", "p.user_id")
        assert "p" in joined_again.scope.qualifiers
        assert "p" not in base.scope.qualifiers

    def test_snapshot_shares_where_root(self):
        first = DB.select_from("users").where("a", "=", 1)
        second = first.where("b", "=", 2)
        root = second.query.where
        assert isinstance(root, LogicalNode)
        assert root.children[0] is first.query.where

    def test_first_where_becomes_root(self):
        builder = DB.select_from("users").where("a", "=", 1)
        assert isinstance(builder.query.where, ComparisonNode)


# ---------------------------------------------------------------------------
# Argument validation
# ---------------------------------------------------------------------------


class TestValidation:
    def test_malformed_table(self):
        with pytest.raises(MalformedExpressionError):
            DB.select_from("users as")

    def test_empty_table(self):
        with pytest.raises(EmptyIdentifierError):
            DB.select_from("   ")

    def test_duplicate_alias_raised_at_join(self):
        builder = DB.select_from("users as u")
        with pytest.raises(DuplicateAliasError):
            builder.inner_join("posts as u", "u.id", "u.user_id")

    def test_join_of_from_table_without_alias(self):
        with pytest.raises(DuplicateAliasError):
            DB.select_from("users").left_join("users", "id", "id")

    def test_join_on_column_cannot_be_renamed(self):
        with pytest.raises(MalformedExpressionError):
            DB.select_from("users as u").inner_join("posts as p", "u.id as x", "p.user_id")

    def test_where_requires_operator(self):
        with pytest.raises(InvalidOperandError):
            DB.select_from("users").where("id")

    def test_where_rejects_other_types(self):
        with pytest.raises(InvalidOperandError):
            DB.select_from("users").where(42)

    def test_where_callback_must_return_node(self):
        with pytest.raises(InvalidOperandError):
            DB.select_from("users").where(lambda eb: "id = 1")

    def test_where_bad_operator(self):
        with pytest.raises(InvalidOperandError):
            DB.select_from("users").where("id", "===", 1)

    def test_where_empty_in(self):
        with pytest.raises(InvalidOperandError):
            DB.select_from("users").where("id", "in", [])

    def test_where_rejects_aliased_column(self):
        with pytest.raises(MalformedExpressionError):
            DB.select_from("users").where("id as x", "=", 1)

    @pytest.mark.parametrize("value", [-1, 1.5, "10", True, None])
    def test_limit_rejects(self, value):
        with pytest.raises(InvalidOperandError):
            DB.select_from("users").limit(value)

    @pytest.mark.parametrize("value", [-5, "0", False])
    def test_offset_rejects(self, value):
        with pytest.raises(InvalidOperandError):
            DB.select_from("users").offset(value)

    def test_order_by_bad_direction(self):
        with pytest.raises(InvalidOperandError):
            DB.select_from("users").order_by("id", "up")

    def test_order_by_rejects_renamed_column(self):
        with pytest.raises(MalformedExpressionError):
            DB.select_from("users").order_by("id as x")

    def test_order_by_rejects_bad_item(self):
        with pytest.raises(InvalidOperandError):
            DB.select_from("users").order_by([("id", "asc", "extra")])

    def test_select_rejects_non_string(self):
        with pytest.raises(InvalidOperandError):
            DB.select_from("users").select(["id", 3])

    def test_select_malformed_column(self):
        with pytest.raises(MalformedExpressionError):
            DB.select_from("users").select("a.b.c")
