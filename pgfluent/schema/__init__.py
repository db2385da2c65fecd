"""pgfluent schema layer: identifiers, scope, expression nodes and snapshots."""
from pgfluent.schema.identifiers import ColumnExpression, TableRef
from pgfluent.schema.nodes import (
    ArrayOpNode,
    ColumnRef,
    ComparisonNode,
    ExpressionNode,
    LogicalNode,
    NotNode,
    RawNode,
    StructuredOpNode,
)
from pgfluent.schema.query import InsertQuery, JoinClause, OnConflictClause, OrderByItem, SelectQuery
from pgfluent.schema.scope import Scope
from pgfluent.schema.snapshot import ColumnInfo, DatabaseSchema, TableInfo

__all__ = [
    "ColumnExpression",
    "TableRef",
    "ArrayOpNode",
    "ColumnRef",
    "ComparisonNode",
    "ExpressionNode",
    "LogicalNode",
    "NotNode",
    "RawNode",
    "StructuredOpNode",
    "InsertQuery",
    "JoinClause",
    "OnConflictClause",
    "OrderByItem",
    "SelectQuery",
    "Scope",
    "ColumnInfo",
    "DatabaseSchema",
    "TableInfo",
]
