"""Shared pytest fixtures for listQL tests."""
from __future__ import annotations

import pytest

from listql.compile.base import CompiledQuery
from listql.compile.builder import QueryCompiler
from listql.compile.context import CompilationContext
from listql.compile.expression_builder import ExpressionBuilder
from listql.compile.generic import GenericCompiler
from listql.config import CompilerConfig
from listql.schema.ast import QueryAST, TableList
from listql.schema.snapshot import SchemaSnapshot
from tests.fixtures import load_schema_snapshot


@pytest.fixture(scope="session")
def snapshot() -> SchemaSnapshot:
    """Canonical schema snapshot shared across all tests."""
    return load_schema_snapshot()


@pytest.fixture
def ctx(snapshot: SchemaSnapshot) -> CompilationContext:
    """Generic-dialect context with the default configuration."""
    return CompilationContext(
        compiler=GenericCompiler(), snapshot=snapshot, config=CompilerConfig()
    )


@pytest.fixture
def ast() -> QueryAST:
    """An empty query against ``logrecord``."""
    return QueryAST(tables=TableList(table="logrecord"))


@pytest.fixture
def expressions(ctx: CompilationContext, ast: QueryAST) -> ExpressionBuilder:
    """Expression builder over the ``ast`` fixture."""

    def compile_nested(query: QueryAST) -> CompiledQuery:
        return QueryCompiler(ctx).compile(query)

    return ExpressionBuilder(ctx, ast, compile_nested)
