"""Expression rendering over the QueryAST arena.

``ExpressionBuilder`` supplies every per-expression capability the compiler
needs:

* ``render``          SQL text with a placeholder for each non-null literal
* ``canonical_text``  deterministic text with literals inlined (alias key)
* ``is_simple``       bare columns and literals never need a generated alias
* ``each_field``      field nodes, left to right
* ``each_value``      non-null literal values, left to right, in exactly the
                      order ``render`` emits their placeholders

Nested subqueries are compiled through an injected ``subquery_fn`` (one fresh
compiler per nested query) and cached per node, so harvesting their values
and rendering their text use the same compiled result.
"""
from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

from listql.compile.base import CompiledQuery
from listql.compile.context import CompilationContext
from listql.errors import CompilationError
from listql.schema.ast import (
    CalcNode,
    CmpNode,
    CondNode,
    FieldNode,
    FuncNode,
    QueryAST,
    SortNode,
    SubqueryNode,
    SummariseNode,
    ValueNode,
)
from listql.schema.column_reference import ColumnReference

_NULL_CMP = {"=": "IS NULL", "!=": "IS NOT NULL"}


class ExpressionBuilder:
    """Renders and inspects the expressions of one QueryAST.

    Args:
        ctx: Static compilation context.
        ast: The query whose arena is rendered.
        subquery_fn: Compiles a nested QueryAST.
    """

    def __init__(
        self,
        ctx: CompilationContext,
        ast: QueryAST,
        subquery_fn: Callable[[QueryAST], CompiledQuery],
    ) -> None:
        self._ctx = ctx
        self._ast = ast
        self._subquery_fn = subquery_fn
        self._subqueries: dict[int, CompiledQuery] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(self, index: int) -> str:
        """Render the expression without any alias."""
        return self._text(index, canonical=False)

    def canonical_text(self, index: int) -> str:
        """Render the expression with literal values inlined."""
        return self._text(index, canonical=True)

    def is_simple(self, index: int) -> bool:
        node = self._ast.node(index)
        if isinstance(node, SortNode):
            return self.is_simple(node.expr)
        return isinstance(node, (FieldNode, ValueNode))

    def each_field(self, index: int) -> Iterator[FieldNode]:
        return self._ast.iter_fields(index)

    def each_value(self, index: int) -> Iterator[Any]:
        node = self._ast.node(index)
        if isinstance(node, ValueNode):
            if not node.null:
                yield node.value
            return
        if isinstance(node, SubqueryNode):
            yield from self._compiled_subquery(index).values
            return
        for child in node.children():
            yield from self.each_value(child)

    def has_values(self, index: int) -> bool:
        """True when rendering ``index`` emits at least one placeholder."""
        return any(True for _ in self.each_value(index))

    # ------------------------------------------------------------------
    # Node dispatch
    # ------------------------------------------------------------------

    def _text(self, index: int, canonical: bool) -> str:
        node = self._ast.node(index)
        if isinstance(node, FieldNode):
            return self._field(node)
        if isinstance(node, ValueNode):
            return self._value(node, canonical)
        if isinstance(node, FuncNode):
            args = ", ".join(self._text(a, canonical) for a in node.args)
            return f"{node.func}({args})"
        if isinstance(node, CalcNode):
            left = self._operand(node.left, canonical)
            right = self._operand(node.right, canonical)
            return f"{left} {node.op} {right}"
        if isinstance(node, CmpNode):
            return self._comparison(node, canonical)
        if isinstance(node, CondNode):
            return self._condition(node, canonical)
        if isinstance(node, SortNode):
            return f"{self._text(node.expr, canonical)} {node.direction}"
        if isinstance(node, SummariseNode):
            return ", ".join(self._text(a, canonical) for a in node.args)
        if isinstance(node, SubqueryNode):
            return self._subquery(index, node)
        raise CompilationError(
            f"Unknown node type: {type(node).__name__}", clause="expression"
        )

    # ------------------------------------------------------------------
    # Node sub-renderers
    # ------------------------------------------------------------------

    def _field(self, node: FieldNode) -> str:
        ref = ColumnReference.parse(node.name)
        if node.table:
            return f"{node.table}.{ref.column}"
        # Once lookups are joined, bare primary columns could be ambiguous.
        if self._ast.tables.joins and ref.column != "*":
            return f"{self._ast.tables.qualifier}.{ref.column}"
        return str(ref)

    def _value(self, node: ValueNode, canonical: bool) -> str:
        if node.null:
            return "NULL"
        if not canonical:
            return self._ctx.compiler.param_placeholder()
        value = node.value
        if isinstance(value, bool):
            return "TRUE" if value else "FALSE"
        if isinstance(value, str):
            escaped = value.replace("'", "''")
            return f"'{escaped}'"
        return str(value)

    def _operand(self, index: int, canonical: bool) -> str:
        text = self._text(index, canonical)
        if isinstance(self._ast.node(index), (CalcNode, CmpNode, CondNode)):
            return f"({text})"
        return text

    def _comparison(self, node: CmpNode, canonical: bool) -> str:
        left = self._operand(node.left, canonical)
        right_node = self._ast.node(node.right)
        if isinstance(right_node, ValueNode) and right_node.null and node.op in _NULL_CMP:
            return f"{left} {_NULL_CMP[node.op]}"
        op = node.op
        if op in ("LIKE", "ILIKE"):
            op = self._ctx.compiler.like_operator(op)
        return f"{left} {op} {self._operand(node.right, canonical)}"

    def _condition(self, node: CondNode, canonical: bool) -> str:
        parts = [p for p in (self._text(a, canonical) for a in node.args) if p]
        if not parts:
            return ""
        if node.op == "NOT":
            if len(parts) != 1:
                raise CompilationError("NOT takes exactly one predicate.", clause="WHERE")
            return f"NOT ({parts[0]})"
        if len(parts) == 1:
            return parts[0]
        return f" {node.op} ".join(f"({p})" for p in parts)

    def _subquery(self, index: int, node: SubqueryNode) -> str:
        sql = self._compiled_subquery(index).text
        if node.mode == "exists":
            return f"EXISTS ({sql})"
        return f"({sql})"

    def _compiled_subquery(self, index: int) -> CompiledQuery:
        compiled = self._subqueries.get(index)
        if compiled is None:
            node = self._ast.node(index)
            if not isinstance(node, SubqueryNode):
                raise CompilationError(f"Node {index} is not a subquery.", clause="expression")
            query = node.query
            query.subquery = True
            query.exists_query = node.mode == "exists"
            query.subquery_expression = node.mode == "expr"
            compiled = self._subquery_fn(query)
            self._subqueries[index] = compiled
        return compiled

