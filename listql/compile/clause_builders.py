"""Clause-level SQL builders.

Each class handles exactly one SQL clause and returns ``None`` when the
clause is omitted for the query at hand.  Builders only render: all field
resolution and value harvesting has already happened in
:class:`~listql.compile.builder.QueryCompiler` before any of them run.

Classes
-------
SelectClauseBuilder   ``SELECT <items>``
FromClauseBuilder     ``FROM <table> [JOIN …]``
GroupByClauseBuilder  ``GROUP BY <args>`` with generated aliases
OrderByClauseBuilder  ``ORDER BY <terms>``
LimitClauseBuilder    ``LIMIT … [OFFSET …]`` from result index / count
"""
from __future__ import annotations

from listql.compile.aliases import AliasMap
from listql.compile.context import CompilationContext
from listql.compile.expression_builder import ExpressionBuilder
from listql.errors import CompilationError
from listql.schema.ast import JoinClause, QueryAST, SortNode, SummariseNode


class SelectClauseBuilder:
    """Builds the ``SELECT …`` clause.

    Select expressions are rendered directly and never go through the
    :class:`AliasMap`; only an explicit alias on the node adds ``AS``.
    """

    def __init__(self, expressions: ExpressionBuilder) -> None:
        self._exprs = expressions

    def build(self, ast: QueryAST) -> str:
        if not ast.select:
            return "SELECT *"
        return f"SELECT {', '.join(self._build_item(ast, i) for i in ast.select)}"

    def _build_item(self, ast: QueryAST, index: int) -> str:
        sql = self._exprs.render(index)
        alias = ast.node(index).alias
        if alias:
            return f"{sql} AS {alias}"
        return sql


class FromClauseBuilder:
    """Builds the ``FROM <table> [<join> …]`` fragment."""

    def build(self, ast: QueryAST) -> str:
        return f"FROM {self.table_list_sql(ast)}"

    def table_list_sql(self, ast: QueryAST) -> str:
        tables = ast.tables
        parts = [f"{tables.table} AS {tables.alias}" if tables.alias else tables.table]
        parts.extend(self._build_join(tables.qualifier, j) for j in tables.joins)
        return " ".join(parts)

    @staticmethod
    def _build_join(qualifier: str, join: JoinClause) -> str:
        return (
            f"{join.type} JOIN {join.table} "
            f"ON {qualifier}.{join.from_col} = {join.table}.{join.to_col}"
        )


class GroupByClauseBuilder:
    """Builds the ``GROUP BY …`` clause of a grouped query.

    Simple arguments render as themselves; any other argument goes through
    the :class:`AliasMap`, so its first appearance defines the alias.  A
    value-bearing argument whose text is already aliased renders in full,
    since the bare alias would drop placeholders whose values were harvested.
    """

    def __init__(self, expressions: ExpressionBuilder, aliases: AliasMap) -> None:
        self._exprs = expressions
        self._aliases = aliases

    def build(self, ast: QueryAST) -> str | None:
        if ast.summarise is None:
            return None
        summarise = ast.node(ast.summarise)
        if not isinstance(summarise, SummariseNode):
            raise CompilationError(
                f"Grouping node must be a summarise node, not {summarise.__class__.__name__}.",
                clause="GROUP BY",
            )
        if not summarise.args:
            return None
        return f"GROUP BY {', '.join(self._build_arg(a) for a in summarise.args)}"

    def _build_arg(self, index: int) -> str:
        if self._exprs.is_simple(index):
            return self._exprs.render(index)
        if self._aliases.lookup(index) is not None and self._exprs.has_values(index):
            return self._exprs.render(index)
        return self._aliases.alias(index)


class OrderByClauseBuilder:
    """Builds the ``ORDER BY …`` clause.

    Omitted for single-row aggregates and when no ordering was requested.
    A term whose expression already received a generated alias orders by
    that alias.
    """

    def __init__(self, expressions: ExpressionBuilder, aliases: AliasMap) -> None:
        self._exprs = expressions
        self._aliases = aliases

    def build(self, ast: QueryAST) -> str | None:
        if ast.simple_aggregate or not ast.ordered or not ast.order:
            return None
        return f"ORDER BY {', '.join(self._build_term(ast, i) for i in ast.order)}"

    def _build_term(self, ast: QueryAST, index: int) -> str:
        node = ast.node(index)
        if not isinstance(node, SortNode):
            return self._exprs.render(index)
        expr = node.expr
        if not self._exprs.is_simple(expr) and not self._exprs.has_values(expr):
            existing = self._aliases.lookup(expr)
            if existing is not None:
                return f"{existing} {node.direction}"
        return self._exprs.render(index)


class LimitClauseBuilder:
    """Builds ``LIMIT`` / ``OFFSET`` from the result index and count option.

    ============  =====  =============================
    index         count  clause
    ============  =====  =============================
    N > 1         K      ``LIMIT K OFFSET N-1``
    N > 1         none   ``LIMIT 1 OFFSET N-1``
    1             K      ``LIMIT K``
    1             none   ``LIMIT 1``
    none          K      ``LIMIT K``
    none          none   (omitted)
    ============  =====  =============================

    A count that does not parse to a positive integer counts as absent.
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def build(self, ast: QueryAST) -> str | None:
        index = ast.record_index
        limit = self.count_limit(ast)
        if limit is None and index is not None:
            limit = 1
        if limit is None:
            return None
        if index is not None and index > 1:
            return f"LIMIT {limit} OFFSET {index - 1}"
        return f"LIMIT {limit}"

    def count_limit(self, ast: QueryAST) -> int | None:
        args = ast.option(self._ctx.config.count_option)
        if not args:
            return None
        try:
            count = int(args[0])
        except ValueError:
            return None
        return count if count > 0 else None
