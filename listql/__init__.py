"""listQL – compile query ASTs to parameterized SQL.

Public API
----------
``compile_query``
    Load (if needed), resolve, and compile a QueryAST to SQL text plus the
    positional values to bind against its placeholders.

``load_query_ast``
    Load a QueryAST from a JSON document or a plain dict.

Re-exported types
-----------------
``QueryAST`` and its node types, ``SchemaSnapshot``, ``CompilerConfig``,
``CompiledQuery``, ``QueryCompiler``, and all error classes.

Extensibility
-------------
New dialect compilers can be registered via::

    from listql.compile.registry import CompilerFactory

    @CompilerFactory.register("duckdb")
    class DuckDBCompiler(SQLCompiler):
        ...

After registration, ``compile_query`` picks it up for any
``CompilerConfig`` with ``dialect="duckdb"``.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from listql.compile.aliases import AliasMap
from listql.compile.base import CompiledQuery, SQLCompiler
from listql.compile.builder import QueryCompiler
from listql.compile.context import CompilationContext
from listql.compile.generic import GenericCompiler
from listql.compile.mysql import MySQLCompiler
from listql.compile.postgres import PostgresCompiler
from listql.compile.registry import CompilerFactory
from listql.compile.resolver import FieldResolver
from listql.compile.sqlite import SQLiteCompiler
from listql.config import CompilerConfig
from listql.errors import CompilationError, ListQLError, ParseError, ResolutionError
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
from listql.schema.converters import schema_from_sqlalchemy
from listql.schema.snapshot import ColumnInfo, LookupInfo, SchemaSnapshot, TableInfo

# ---------------------------------------------------------------------------
# Register built-in compilers with CompilerFactory
# ---------------------------------------------------------------------------

CompilerFactory.register_class("generic", GenericCompiler)
CompilerFactory.register_class("sqlite", SQLiteCompiler)
CompilerFactory.register_class("postgres", PostgresCompiler)
CompilerFactory.register_class("mysql", MySQLCompiler)

__all__ = [
    # Core pipeline
    "compile_query",
    "load_query_ast",
    # AST types
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
    # Schema types
    "SchemaSnapshot",
    "TableInfo",
    "ColumnInfo",
    "LookupInfo",
    "schema_from_sqlalchemy",
    # Configuration
    "CompilerConfig",
    "CompilationContext",
    # Compilation
    "AliasMap",
    "CompiledQuery",
    "CompilerFactory",
    "FieldResolver",
    "QueryCompiler",
    "SQLCompiler",
    "GenericCompiler",
    "MySQLCompiler",
    "PostgresCompiler",
    "SQLiteCompiler",
    # Errors
    "ListQLError",
    "ParseError",
    "ResolutionError",
    "CompilationError",
]


def load_query_ast(document: str | dict[str, Any]) -> QueryAST:
    """Load a QueryAST from a JSON string or an already-decoded dict.

    Args:
        document: JSON text, or the dict it decodes to.

    Returns:
        The validated :class:`QueryAST`.

    Raises:
        ParseError: If ``document`` is not valid JSON or not a valid QueryAST.
    """
    raw = document if isinstance(document, str) else None
    if isinstance(document, str):
        try:
            document = json.loads(document)
        except json.JSONDecodeError as exc:
            raise ParseError(f"Invalid JSON: {exc}", raw=raw) from exc

    try:
        return QueryAST.model_validate(document)
    except PydanticValidationError as exc:
        raise ParseError(f"QueryAST structure is invalid: {exc}", raw=raw) from exc


def compile_query(
    ast: QueryAST | str | dict[str, Any],
    snapshot: SchemaSnapshot,
    config: CompilerConfig | None = None,
    *,
    dialect: str | None = None,
) -> CompiledQuery:
    """Compile a query AST to parameterized SQL.

    This is the main entry point for the listQL pipeline::

        compiled = listql.compile_query(
            ast_json,
            snapshot=schema_snapshot,
            config=CompilerConfig(dialect="postgres"),
        )
        cursor.execute(compiled.text, compiled.values)

    Args:
        ast: A :class:`QueryAST`, or a JSON string / dict describing one.
        snapshot: Schema snapshot used to resolve lookup-table fields.
        config: Optional compiler configuration; defaults to
            ``CompilerConfig()``.
        dialect: Target dialect; overrides ``config.dialect`` when given.

    Returns:
        ``CompiledQuery`` with ``text``, positional ``values``, and ``dialect``.

    Raises:
        ParseError: If ``ast`` is a document that does not describe a QueryAST.
        ResolutionError: If a field cannot be resolved against ``snapshot``.
        CompilationError: If the dialect is unknown or the AST is malformed.
    """
    if config is None:
        config = CompilerConfig()
    if dialect is not None:
        config = config.model_copy(update={"dialect": dialect})
    if not isinstance(ast, QueryAST):
        ast = load_query_ast(ast)

    ctx = CompilationContext(
        compiler=CompilerFactory.create(config.dialect),
        snapshot=snapshot,
        config=config,
    )
    return QueryCompiler(ctx).compile(ast)
