"""Unit tests for expression nodes and the ``eb`` factories."""

from __future__ import annotations

import pytest

from pgfluent.builders.expression import ExpressionBuilder, invoke_callback
from pgfluent.errors import EmptyIdentifierError, InvalidOperandError, MalformedExpressionError
from pgfluent.raw import raw, sql
from pgfluent.schema.expressions import (
    ArrayOp,
    ComparisonOp,
    LogicalOp,
    SortDirection,
    StructuredOp,
    comparison_op,
    sort_direction,
)
from pgfluent.schema.nodes import (
    ArrayOpNode,
    ColumnRef,
    ComparisonNode,
    LogicalNode,
    NotNode,
    RawNode,
    StructuredOpNode,
    is_expression_node,
)

EB = ExpressionBuilder()


# ---------------------------------------------------------------------------
# Operator normalisation
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "raw_op, expected",
    [
        ("=", ComparisonOp.EQ),
        ("==", ComparisonOp.EQ),
        ("<>", ComparisonOp.NE),
        ("!=", ComparisonOp.NE),
        ("LIKE", ComparisonOp.LIKE),
        ("ILike", ComparisonOp.ILIKE),
        ("NOT   IN", ComparisonOp.NOT_IN),
        (" is not ", ComparisonOp.IS_NOT),
    ],
)
def test_comparison_op_normalisation(raw_op, expected):
    assert comparison_op(raw_op) is expected


@pytest.mark.parametrize("raw_op", ["~", "between", "", "= ="])
def test_unsupported_comparison_op(raw_op):
    with pytest.raises(InvalidOperandError):
        comparison_op(raw_op)


def test_sort_direction():
    assert sort_direction("asc") is SortDirection.ASC
    assert sort_direction(" Desc ") is SortDirection.DESC
    with pytest.raises(InvalidOperandError):
        sort_direction("sideways")


# ---------------------------------------------------------------------------
# Node construction
# ---------------------------------------------------------------------------


class TestComparisonNode:
    def test_operator_is_normalised(self):
        node = ComparisonNode(column="age", operator="<>", value=3)
        assert node.operator is ComparisonOp.NE

    def test_column_is_trimmed(self):
        assert ComparisonNode(column=" u.age ", operator="=", value=1).column == "u.age"

    def test_in_requires_sequence(self):
        with pytest.raises(InvalidOperandError):
            ComparisonNode(column="id", operator="in", value=5)

    def test_in_rejects_string(self):
        with pytest.raises(InvalidOperandError):
            ComparisonNode(column="id", operator="in", value="abc")

    def test_empty_in_rejected(self):
        with pytest.raises(InvalidOperandError) as exc_info:
            ComparisonNode(column="id", operator="in", value=[])
        assert exc_info.value.code == "INVALID_OPERAND"

    def test_is_requires_none(self):
        with pytest.raises(InvalidOperandError):
            ComparisonNode(column="email", operator="is", value="x")

    def test_none_with_equality_rejected(self):
        with pytest.raises(InvalidOperandError):
            ComparisonNode(column="email", operator="=", value=None)

    def test_star_column_rejected(self):
        with pytest.raises(MalformedExpressionError):
            ComparisonNode(column="*", operator="=", value=1)

    def test_renamed_column_rejected(self):
        with pytest.raises(MalformedExpressionError):
            ComparisonNode(column="age as a", operator="=", value=1)

    def test_empty_column_rejected(self):
        with pytest.raises(EmptyIdentifierError):
            ComparisonNode(column="  ", operator="=", value=1)

    def test_nodes_are_frozen(self):
        node = ComparisonNode(column="id", operator="=", value=1)
        with pytest.raises(Exception):
            node.value = 2  # type: ignore[misc]


class TestArrayOpNode:
    def test_literal_ops_require_list(self):
        with pytest.raises(InvalidOperandError):
            ArrayOpNode(column="tags", operator=ArrayOp.CONTAINS, operand="a")

    def test_quantifier_ops_require_scalar(self):
        with pytest.raises(InvalidOperandError):
            ArrayOpNode(column="tags", operator=ArrayOp.HAS_ANY, operand=["a"])

    def test_empty_list_allowed(self):
        node = ArrayOpNode(column="tags", operator=ArrayOp.OVERLAPS, operand=[])
        assert node.operand == []

    def test_invalid_element_type(self):
        with pytest.raises(InvalidOperandError):
            ArrayOpNode(column="tags", operator=ArrayOp.CONTAINS, operand=[], element_type="text; drop")

    def test_element_type_with_precision(self):
        node = ArrayOpNode(column="p", operator=ArrayOp.CONTAINS, operand=[], element_type="numeric(10, 2)")
        assert node.element_type == "numeric(10, 2)"


class TestStructuredOpNode:
    def test_field_op_requires_path(self):
        with pytest.raises(InvalidOperandError):
            StructuredOpNode(column="metadata", operator=StructuredOp.FIELD_EQUALS, operand="x")

    def test_document_op_rejects_path(self):
        with pytest.raises(InvalidOperandError):
            StructuredOpNode(column="metadata", operator=StructuredOp.CONTAINS, path=("a",), operand={})

    def test_has_key_requires_string(self):
        with pytest.raises(InvalidOperandError):
            StructuredOpNode(column="metadata", operator=StructuredOp.HAS_KEY, operand=3)

    def test_has_any_key_requires_keys(self):
        with pytest.raises(InvalidOperandError):
            StructuredOpNode(column="metadata", operator=StructuredOp.HAS_ANY_KEY, operand=[])

    def test_field_equals_none_rejected(self):
        with pytest.raises(InvalidOperandError):
            StructuredOpNode(
                column="metadata", operator=StructuredOp.FIELD_EQUALS, path=("a",), operand=None
            )

    def test_empty_key_rejected(self):
        with pytest.raises(EmptyIdentifierError):
            StructuredOpNode(column="metadata", operator=StructuredOp.FIELD_EXISTS, path=("a", ""))


def test_raw_node_rejects_blank_sql():
    with pytest.raises(EmptyIdentifierError):
        RawNode(sql="   ")


def test_sql_and_raw_factories():
    node = sql("age > $1", 18)
    assert node == RawNode(sql="age > $1", params=(18,))
    assert raw("true").params == ()


# ---------------------------------------------------------------------------
# ExpressionBuilder
# ---------------------------------------------------------------------------


class TestExpressionBuilder:
    def test_call_builds_comparison(self):
        node = EB("age", ">=", 18)
        assert isinstance(node, ComparisonNode)
        assert node.operator is ComparisonOp.GTE

    def test_and_with_list(self):
        node = EB.and_([EB("a", "=", 1), EB("b", "=", 2)])
        assert isinstance(node, LogicalNode)
        assert node.operator is LogicalOp.AND
        assert len(node.children) == 2

    def test_or_with_varargs(self):
        node = EB.or_(EB("a", "=", 1), EB("b", "=", 2))
        assert node.operator is LogicalOp.OR

    def test_single_child_collapses(self):
        only = EB("a", "=", 1)
        assert EB.and_([only]) is only

    def test_empty_group(self):
        node = EB.or_([])
        assert isinstance(node, LogicalNode)
        assert node.children == ()

    def test_and_rejects_non_nodes(self):
        with pytest.raises(InvalidOperandError):
            EB.and_(["a = 1"])

    def test_not(self):
        node = EB.not_(EB("email", "is", None))
        assert isinstance(node, NotNode)

    def test_not_rejects_non_node(self):
        with pytest.raises(InvalidOperandError):
            EB.not_(True)

    def test_ref(self):
        assert EB.ref("p.user_id") == ColumnRef(name="p.user_id")

    def test_array_helpers(self):
        assert EB.array("tags").contains(["a"]).operator is ArrayOp.CONTAINS
        assert EB.array("tags").is_contained_by(["a"]).operator is ArrayOp.CONTAINED_BY
        assert EB.array("tags").overlaps(["a"]).operator is ArrayOp.OVERLAPS
        assert EB.array("tags").has_any("a").operator is ArrayOp.HAS_ANY
        assert EB.array("tags").has_all("a").operator is ArrayOp.HAS_ALL
        assert EB.array("scores", "integer").contains([]).element_type == "integer"

    def test_jsonb_path_equals_field_chain(self):
        by_path = EB.jsonb("metadata").path(["address", "city"]).equals("Oslo")
        by_field = EB.jsonb("metadata").field("address").field("city").equals("Oslo")
        assert by_path == by_field
        assert by_path.path == ("address", "city")

    def test_jsonb_path_validation(self):
        with pytest.raises(InvalidOperandError):
            EB.jsonb("metadata").path([])
        with pytest.raises(InvalidOperandError):
            EB.jsonb("metadata").path("address")
        with pytest.raises(EmptyIdentifierError):
            EB.jsonb("metadata").field("")

    def test_raw_helpers(self):
        assert is_expression_node(EB.sql("x = $1", 1))
        assert is_expression_node(EB.raw("true"))


class TestInvokeCallback:
    def test_positional_callback_receives_eb(self):
        node = invoke_callback(lambda eb: eb("a", "=", 1), EB)
        assert isinstance(node, ComparisonNode)

    def test_keyword_only_helpers(self):
        def callback(*, and_, array):
            return and_([array("tags").has_any("x"), array("tags").has_any("y")])

        node = invoke_callback(callback, EB)
        assert isinstance(node, LogicalNode)
        assert len(node.children) == 2

    def test_list_result_is_implicit_and(self):
        node = invoke_callback(lambda eb: [eb("a", "=", 1), eb("b", "=", 2)], EB)
        assert isinstance(node, LogicalNode)
        assert node.operator is LogicalOp.AND

    def test_unknown_keyword_falls_back_to_eb(self):
        seen = []

        def callback(eb, *, extra=None):
            seen.append(eb)
            return eb("a", "=", 1)

        invoke_callback(callback, EB)
        assert seen == [EB]
