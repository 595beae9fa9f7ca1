"""Pydantic models for the listQL query AST.

The AST is produced upstream (by a query-language parser) and handed to the
compiler either as a :class:`QueryAST` instance or as a JSON document with the
same shape.  Expressions live in a single arena, ``QueryAST.nodes``, and are
referenced everywhere else by their integer index, so a node shared between
the select list and the grouping arguments is one node: it is resolved once
and aliased once.

Node kinds
----------
``field``      column reference, rewritten in place by field resolution
``value``      literal leaf; ``value: null`` is the NULL marker
``func``       function / aggregate call, e.g. ``count(x)``
``calc``       binary arithmetic term, e.g. ``x + 1``
``cmp``        comparison predicate, e.g. ``x = 'foo'``
``cond``       ``AND`` / ``OR`` / ``NOT`` over predicates
``sort``       ordering term with a direction
``summarise``  grouping specification with its own argument list
``subquery``   nested query embedded as ``EXISTS (...)`` or ``(...)``

Example::

    ast = QueryAST(tables=TableList(table="logrecord"))
    x = ast.add(FieldNode(name="killer"))
    ast.select.append(ast.add(FuncNode(func="count", args=[x])))
    ast.summarise = ast.add(SummariseNode(args=[x]))
"""
from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING, Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from listql.errors import CompilationError

if TYPE_CHECKING:
    from listql.compile.resolver import FieldResolver

_FORBID = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------------
# Expression nodes
# ---------------------------------------------------------------------------


class ExprNode(BaseModel):
    """Common base for arena nodes.

    Attributes:
        alias: Explicit alias name; only honoured for select expressions.
    """

    model_config = _FORBID

    alias: str | None = None

    def children(self) -> list[int]:
        """Arena indexes of the node's direct sub-expressions."""
        return []


class FieldNode(ExprNode):
    """A column reference: ``{"kind": "field", "name": "killer"}``.

    ``table`` and ``resolved`` are filled in by field resolution.
    """

    kind: Literal["field"] = "field"
    name: str
    table: str | None = None
    resolved: bool = False


class ValueNode(ExprNode):
    """A literal leaf: ``{"kind": "value", "value": 42}``."""

    kind: Literal["value"] = "value"
    value: Any = None

    @property
    def null(self) -> bool:
        return self.value is None


class FuncNode(ExprNode):
    """A function call: ``{"kind": "func", "func": "count", "args": [0]}``."""

    kind: Literal["func"] = "func"
    func: str
    args: list[int] = Field(default_factory=list)

    def children(self) -> list[int]:
        return list(self.args)


class CalcNode(ExprNode):
    """A computed term: ``{"kind": "calc", "op": "+", "left": 0, "right": 1}``."""

    kind: Literal["calc"] = "calc"
    op: Literal["+", "-", "*", "/", "%"]
    left: int
    right: int

    def children(self) -> list[int]:
        return [self.left, self.right]


class CmpNode(ExprNode):
    """A comparison predicate: ``{"kind": "cmp", "op": "=", "left": 0, "right": 1}``."""

    kind: Literal["cmp"] = "cmp"
    op: Literal["=", "!=", "<", "<=", ">", ">=", "LIKE", "ILIKE"]
    left: int
    right: int

    def children(self) -> list[int]:
        return [self.left, self.right]


class CondNode(ExprNode):
    """A boolean connective over predicates.

    ``NOT`` takes exactly one argument; ``AND`` / ``OR`` take any number, and
    an empty connective renders as nothing.
    """

    kind: Literal["cond"] = "cond"
    op: Literal["AND", "OR", "NOT"] = "AND"
    args: list[int] = Field(default_factory=list)

    def children(self) -> list[int]:
        return list(self.args)


class SortNode(ExprNode):
    """An ordering term: ``{"kind": "sort", "expr": 3, "direction": "DESC"}``."""

    kind: Literal["sort"] = "sort"
    expr: int
    direction: Literal["ASC", "DESC"] = "ASC"

    def children(self) -> list[int]:
        return [self.expr]

    def reverse(self) -> None:
        self.direction = "ASC" if self.direction == "DESC" else "DESC"


class SummariseNode(ExprNode):
    """A grouping specification: ``{"kind": "summarise", "args": [0, 2]}``."""

    kind: Literal["summarise"] = "summarise"
    args: list[int] = Field(default_factory=list)

    def children(self) -> list[int]:
        return list(self.args)


class SubqueryNode(ExprNode):
    """A nested query used inside an expression.

    Attributes:
        query: The nested AST; it owns its own arena and table list.
        mode: ``"exists"`` renders ``EXISTS (...)``; ``"expr"`` renders a
            parenthesised scalar subquery.
    """

    kind: Literal["subquery"] = "subquery"
    query: QueryAST
    mode: Literal["exists", "expr"] = "exists"


Node = Annotated[
    FieldNode
    | ValueNode
    | FuncNode
    | CalcNode
    | CmpNode
    | CondNode
    | SortNode
    | SummariseNode
    | SubqueryNode,
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Table context
# ---------------------------------------------------------------------------


class JoinClause(BaseModel):
    """A lookup join added by field resolution.

    Attributes:
        lookup: Key of the :class:`~listql.schema.snapshot.LookupInfo` that
            produced the join.
        table: Joined lookup table.
        from_col: Reference column on the primary table.
        to_col: Key column on the lookup table.
        type: SQL join type.
    """

    model_config = _FORBID

    lookup: str
    table: str
    from_col: str
    to_col: str
    type: Literal["INNER", "LEFT"] = "LEFT"


class TableList(BaseModel):
    """The primary table of a query plus the lookup joins resolution adds.

    Attributes:
        table: Primary table name.
        alias: Optional primary table alias.
        joins: Lookup joins, in the order they were first needed.
    """

    model_config = _FORBID

    table: str
    alias: str | None = None
    joins: list[JoinClause] = Field(default_factory=list)

    @property
    def qualifier(self) -> str:
        """Name used to qualify primary-table columns."""
        return self.alias or self.table

    def has_join(self, lookup: str) -> bool:
        return any(j.lookup == lookup for j in self.joins)


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------


class QueryAST(BaseModel):
    """The compiler's sole input.

    Attributes:
        nodes: Expression arena; every other attribute refers into it.
        select: Ordered select expressions.
        head: Filter-tree root, or ``None`` for no filter.
        summarise: Grouping node, or ``None`` for an ungrouped query.
        having: Having expression (only rendered for grouped queries).
        order: Ordering terms (``sort`` nodes).
        options: Option name -> argument strings (e.g. ``{"count": ["5"]}``).
        tables: Primary table and lookup joins.
        subquery: Compiled for embedding in another query.
        exists_query: Embedded as an ``EXISTS`` test.
        subquery_expression: Embedded as an inline scalar expression.
        alias: Derived-table alias, used when wrapped as ``(...) AS alias``.
        record_index: Explicit 1-based result index; negative values count
            from the other end until :meth:`resolve_record_index` runs.
        ordered: Whether ordering was explicitly requested.
        simple_aggregate: The query collapses to one aggregate row with no
            grouping keys.
    """

    model_config = _FORBID

    nodes: list[Node] = Field(default_factory=list)
    select: list[int] = Field(default_factory=list)
    head: int | None = None
    summarise: int | None = None
    having: int | None = None
    order: list[int] = Field(default_factory=list)
    options: dict[str, list[str]] = Field(default_factory=dict)
    tables: TableList
    subquery: bool = False
    exists_query: bool = False
    subquery_expression: bool = False
    alias: str | None = None
    record_index: int | None = None
    ordered: bool = False
    simple_aggregate: bool = False

    # ------------------------------------------------------------------
    # Arena access
    # ------------------------------------------------------------------

    def add(self, node: ExprNode) -> int:
        """Append ``node`` to the arena and return its index."""
        self.nodes.append(node)
        return len(self.nodes) - 1

    def node(self, index: int) -> ExprNode:
        """Return the arena node at ``index``.

        Raises:
            CompilationError: If ``index`` is outside the arena.
        """
        if not 0 <= index < len(self.nodes):
            raise CompilationError(
                f"Node index {index} is outside the arena (size {len(self.nodes)})."
            )
        return self.nodes[index]

    def iter_fields(self, index: int) -> Iterator[FieldNode]:
        """Yield every field node reachable from ``index``, left to right.

        Nested subqueries are not entered: their fields belong to the nested
        query's own table context.
        """
        node = self.node(index)
        if isinstance(node, FieldNode):
            yield node
            return
        for child in node.children():
            yield from self.iter_fields(child)

    def option(self, name: str) -> list[str] | None:
        """Return the argument list of option ``name``, or ``None``."""
        return self.options.get(name)

    # ------------------------------------------------------------------
    # Mutation hooks
    # ------------------------------------------------------------------

    def resolve_record_index(self) -> None:
        """Normalise ``record_index`` to a positive index.

        ``-N`` selects the Nth record from the other end: the index becomes
        ``N`` and every ordering term is reversed.  ``0`` means no index.
        """
        if self.record_index is None:
            return
        if self.record_index == 0:
            self.record_index = None
            return
        if self.record_index < 0:
            self.record_index = -self.record_index
            for index in self.order:
                sort = self.node(index)
                if isinstance(sort, SortNode):
                    sort.reverse()

    def autojoin_lookup_columns(self, resolver: FieldResolver) -> None:
        """Resolve filter-tree fields so referenced lookup tables are joined.

        Args:
            resolver: A :class:`~listql.compile.resolver.FieldResolver`.
        """
        if self.head is None:
            return
        for field in self.iter_fields(self.head):
            resolver.resolve(self, field)


SubqueryNode.model_rebuild()
QueryAST.model_rebuild()
