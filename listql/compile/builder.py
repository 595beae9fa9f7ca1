"""Core QueryAST → SQL compilation logic.

``QueryCompiler`` is the top-level orchestrator.  It runs field resolution
and value harvesting over the AST in a fixed pass order, then assembles the
clause text through focused clause-level sub-builders.  All dialect-specific
behaviour is delegated to the injected ``SQLCompiler``.

Sub-builder hierarchy
---------------------
QueryCompiler
  ├── FieldResolver         (resolver.py)
  ├── ExpressionBuilder     (expression_builder.py)
  ├── AliasMap              (aliases.py)
  ├── SelectClauseBuilder   (clause_builders.py)
  ├── FromClauseBuilder     (clause_builders.py)
  ├── GroupByClauseBuilder  (clause_builders.py)
  ├── OrderByClauseBuilder  (clause_builders.py)
  └── LimitClauseBuilder    (clause_builders.py)

Pass order
----------
Bound values are appended in the order their placeholders appear in the
final text: select expressions, filter tree, grouping arguments, having,
ordering.  Resolution of each part happens right before its harvest, and the
filter tree is resolved by the AST's own lookup-join hook.  Parts that the
assembled text will not contain (a having without grouping, ordering that is
not rendered) are neither resolved nor harvested.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

from listql.compile.aliases import AliasMap
from listql.compile.base import CompiledQuery
from listql.compile.clause_builders import (
    FromClauseBuilder,
    GroupByClauseBuilder,
    LimitClauseBuilder,
    OrderByClauseBuilder,
    SelectClauseBuilder,
)
from listql.compile.context import CompilationContext
from listql.compile.expression_builder import ExpressionBuilder
from listql.compile.resolver import FieldResolver
from listql.errors import CompilationError
from listql.schema.ast import QueryAST

logger = logging.getLogger(__name__)


class QueryCompiler:
    """Compiles one QueryAST to parameterized SQL.

    A compiler instance owns the per-compile state (alias map, harvested
    values) and compiles exactly one AST.  Calling :meth:`compile` again with
    the same AST returns the cached result.

    Args:
        ctx: Compilation context (dialect compiler, snapshot, config).
        subquery_factory: Optional callable returning a fresh
            :class:`QueryCompiler` for nested subqueries.  Defaults to
            ``lambda: QueryCompiler(ctx)``.
    """

    def __init__(
        self,
        ctx: CompilationContext,
        subquery_factory: Callable[[], QueryCompiler] | None = None,
    ) -> None:
        self._ctx = ctx
        self._resolver = FieldResolver(ctx)
        self._subquery_factory = subquery_factory or (lambda: QueryCompiler(ctx))
        self._ast: QueryAST | None = None
        self._compiled: CompiledQuery | None = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def compile(self, ast: QueryAST) -> CompiledQuery:
        """Compile ``ast`` to SQL text and positional values.

        Args:
            ast: The query to compile.  Resolution mutates it in place.

        Returns:
            :class:`~listql.compile.base.CompiledQuery` with ``text`` and
            ``values``.

        Raises:
            CompilationError: If this compiler already compiled another AST,
                or the AST has an unexpected shape.
            ResolutionError: If a field has no join path.
        """
        if self._compiled is not None:
            if ast is not self._ast:
                raise CompilationError(
                    "QueryCompiler compiles exactly one QueryAST; "
                    "create a new compiler for each query."
                )
            return self._compiled

        compiled = self._build(ast)
        self._ast = ast
        self._compiled = compiled
        return compiled

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def _build(self, ast: QueryAST) -> CompiledQuery:
        logger.debug("Compiling query on %s", ast.tables.table)
        exprs = ExpressionBuilder(self._ctx, ast, self._compile_subquery)
        aliases = AliasMap(exprs, self._ctx.config)
        values: list[Any] = []

        ast.resolve_record_index()

        self._resolve(ast, ast.select)
        values.extend(self._harvest(exprs, ast.select))

        ast.autojoin_lookup_columns(self._resolver)
        values.extend(self._harvest(exprs, [ast.head]))

        self._resolve(ast, [ast.summarise])
        values.extend(self._harvest(exprs, [ast.summarise]))

        if ast.having is not None and ast.summarise is not None:
            self._resolve(ast, [ast.having])
            values.extend(self._harvest(exprs, [ast.having]))

        if ast.ordered and not ast.simple_aggregate:
            self._resolve(ast, ast.order)
            values.extend(self._harvest(exprs, ast.order))

        clauses = [
            SelectClauseBuilder(exprs).build(ast),
            FromClauseBuilder().build(ast),
            self._where_clause(exprs, ast),
            GroupByClauseBuilder(exprs, aliases).build(ast),
            self._having_clause(exprs, ast),
            OrderByClauseBuilder(exprs, aliases).build(ast),
            LimitClauseBuilder(self._ctx).build(ast),
        ]
        sql = " ".join(c for c in clauses if c)

        if ast.subquery and not ast.exists_query and not ast.subquery_expression:
            sql = f"({sql}) AS {ast.alias or '_sub'}"

        logger.debug("Compiled %d bound values, %d aliases", len(values), len(aliases))
        return CompiledQuery(
            text=sql,
            values=tuple(values),
            dialect=self._ctx.compiler.dialect_name,
        )

    def _compile_subquery(self, query: QueryAST) -> CompiledQuery:
        return self._subquery_factory().compile(query)

    # ------------------------------------------------------------------
    # Resolution / harvest passes
    # ------------------------------------------------------------------

    def _resolve(self, ast: QueryAST, roots: Iterable[int | None]) -> None:
        """Rewrite lookup-table fields under ``roots`` into concrete columns."""
        for root in roots:
            if root is None:
                continue
            for field in ast.iter_fields(root):
                self._resolver.resolve(ast, field)

    @staticmethod
    def _harvest(exprs: ExpressionBuilder, roots: Iterable[int | None]) -> list[Any]:
        harvested: list[Any] = []
        for root in roots:
            if root is not None:
                harvested.extend(exprs.each_value(root))
        return harvested

    # ------------------------------------------------------------------
    # Inline clauses
    # ------------------------------------------------------------------

    @staticmethod
    def _where_clause(exprs: ExpressionBuilder, ast: QueryAST) -> str | None:
        if ast.head is None:
            return None
        conditions = exprs.render(ast.head)
        if not conditions:
            return None
        return f"WHERE {conditions}"

    @staticmethod
    def _having_clause(exprs: ExpressionBuilder, ast: QueryAST) -> str | None:
        if ast.summarise is None or ast.having is None:
            return None
        return f"HAVING {exprs.render(ast.having)}"
