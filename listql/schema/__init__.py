"""listQL schema layer: query AST, schema snapshot, and converters."""
from listql.schema.ast import (
    CalcNode,
    CmpNode,
    CondNode,
    FieldNode,
    FuncNode,
    JoinClause,
    QueryAST,
    SortNode,
    SubqueryNode,
    SummariseNode,
    TableList,
    ValueNode,
)
from listql.schema.snapshot import ColumnInfo, LookupInfo, SchemaSnapshot, TableInfo

__all__ = [
    "QueryAST",
    "TableList",
    "JoinClause",
    "FieldNode",
    "ValueNode",
    "FuncNode",
    "CalcNode",
    "CmpNode",
    "CondNode",
    "SortNode",
    "SummariseNode",
    "SubqueryNode",
    "SchemaSnapshot",
    "TableInfo",
    "ColumnInfo",
    "LookupInfo",
]
