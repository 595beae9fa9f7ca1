"""Unit tests for QueryCompiler."""

from __future__ import annotations

import pytest

from listql.compile.builder import QueryCompiler
from listql.compile.context import CompilationContext
from listql.errors import CompilationError, ResolutionError
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
    TableList,
    ValueNode,
)


def _compile(ctx: CompilationContext, ast: QueryAST):
    return QueryCompiler(ctx).compile(ast)


def _cmp(ast: QueryAST, field: str, op: str, value) -> int:
    left = ast.add(FieldNode(name=field))
    right = ast.add(ValueNode(value=value))
    return ast.add(CmpNode(op=op, left=left, right=right))


def _select_name(ast: QueryAST) -> QueryAST:
    ast.select = [ast.add(FieldNode(name="name"))]
    return ast


# ---------------------------------------------------------------------------
# Clause assembly
# ---------------------------------------------------------------------------


def test_select_and_from_only(ctx, ast):
    r = _compile(ctx, _select_name(ast))
    assert r.text == "SELECT name FROM logrecord"
    assert r.values == ()


def test_empty_select_list_selects_star(ctx, ast):
    assert _compile(ctx, ast).text == "SELECT * FROM logrecord"


def test_explicit_select_alias(ctx, ast):
    ast.select = [ast.add(FieldNode(name="name", alias="player"))]
    assert _compile(ctx, ast).text == "SELECT name AS player FROM logrecord"


def test_where_clause_and_values(ctx, ast):
    _select_name(ast)
    ast.head = ast.add(
        CondNode(op="AND", args=[_cmp(ast, "xl", ">", 10), _cmp(ast, "name", "=", "foo")])
    )
    r = _compile(ctx, ast)
    assert r.text == "SELECT name FROM logrecord WHERE (xl > ?) AND (name = ?)"
    assert r.values == (10, "foo")


def test_empty_filter_tree_omits_where(ctx, ast):
    _select_name(ast)
    ast.head = ast.add(CondNode(op="AND", args=[]))
    assert "WHERE" not in _compile(ctx, ast).text


def test_null_leaf_binds_nothing(ctx, ast):
    _select_name(ast)
    ast.head = ast.add(
        CondNode(op="OR", args=[_cmp(ast, "xl", "=", None), _cmp(ast, "sc", "!=", None)])
    )
    r = _compile(ctx, ast)
    assert r.text.endswith("WHERE (xl IS NULL) OR (sc IS NOT NULL)")
    assert r.values == ()


def test_not_condition(ctx, ast):
    _select_name(ast)
    ast.head = ast.add(CondNode(op="NOT", args=[_cmp(ast, "xl", "<", 5)]))
    r = _compile(ctx, ast)
    assert r.text.endswith("WHERE NOT (xl < ?)")
    assert r.values == (5,)


def test_group_by_defines_alias_and_order_by_reuses_it(ctx, ast):
    x = ast.add(FieldNode(name="x"))
    count_x = ast.add(FuncNode(func="count", args=[x]))
    ast.select = [count_x]
    ast.summarise = ast.add(SummariseNode(args=[count_x]))
    ast.order = [ast.add(SortNode(expr=count_x, direction="DESC"))]
    ast.ordered = True

    r = _compile(ctx, ast)
    assert r.text == (
        "SELECT count(x) FROM logrecord "
        "GROUP BY count(x) AS count_x_alias "
        "ORDER BY count_x_alias DESC"
    )


def test_group_by_simple_arguments_render_directly(ctx, ast):
    name = ast.add(FieldNode(name="name"))
    star = ast.add(FieldNode(name="*"))
    ast.select = [name, ast.add(FuncNode(func="count", args=[star]))]
    ast.summarise = ast.add(SummariseNode(args=[name]))
    assert _compile(ctx, ast).text == "SELECT name, count(*) FROM logrecord GROUP BY name"


def test_group_by_value_bearing_argument_defines_alias(ctx, ast):
    xl = ast.add(FieldNode(name="xl"))
    three = ast.add(ValueNode(value=3))
    tier = ast.add(CalcNode(op="/", left=xl, right=three))
    ast.select = [tier]
    ast.summarise = ast.add(SummariseNode(args=[tier]))

    r = _compile(ctx, ast)
    assert r.text == "SELECT xl / ? FROM logrecord GROUP BY xl / ? AS xl_alias"
    assert r.values == (3, 3)


def test_group_by_repeated_value_bearing_text_keeps_placeholders(ctx, ast):
    tiers = []
    for _ in range(2):
        xl = ast.add(FieldNode(name="xl"))
        tiers.append(ast.add(CalcNode(op="/", left=xl, right=ast.add(ValueNode(value=3)))))
    ast.select = [tiers[0]]
    ast.summarise = ast.add(SummariseNode(args=tiers))
    ast.order = [ast.add(SortNode(expr=tiers[0], direction="DESC"))]
    ast.ordered = True

    r = _compile(ctx, ast)
    assert r.text == (
        "SELECT xl / ? FROM logrecord "
        "GROUP BY xl / ? AS xl_alias, xl / ? "
        "ORDER BY xl / ? DESC"
    )
    assert r.values == (3, 3, 3, 3)
    assert r.text.count("?") == len(r.values)


def test_having_requires_grouping(ctx, ast):
    _select_name(ast)
    ast.having = _cmp(ast, "xl", ">", 3)
    r = _compile(ctx, ast)
    assert r.text == "SELECT name FROM logrecord"
    assert r.values == ()


def test_values_follow_pass_order(ctx, ast):
    sc = ast.add(FieldNode(name="sc"))
    ast.select = [ast.add(CalcNode(op="*", left=sc, right=ast.add(ValueNode(value=2))))]
    ast.head = _cmp(ast, "xl", ">=", 5)
    ast.summarise = ast.add(SummariseNode(args=[ast.add(FieldNode(name="name"))]))
    star = ast.add(FieldNode(name="*"))
    count_star = ast.add(FuncNode(func="count", args=[star]))
    ast.having = ast.add(
        CmpNode(op=">", left=count_star, right=ast.add(ValueNode(value=3)))
    )
    turn = ast.add(FieldNode(name="turn"))
    late = ast.add(CalcNode(op="-", left=turn, right=ast.add(ValueNode(value=7))))
    ast.order = [ast.add(SortNode(expr=late))]
    ast.ordered = True

    r = _compile(ctx, ast)
    assert r.text == (
        "SELECT sc * ? FROM logrecord WHERE xl >= ? GROUP BY name "
        "HAVING count(*) > ? ORDER BY turn - ? ASC"
    )
    assert r.values == (2, 5, 3, 7)
    assert r.text.count("?") == len(r.values)


def test_order_by_requires_explicit_request(ctx, ast):
    _select_name(ast)
    ast.order = [ast.add(SortNode(expr=ast.add(FieldNode(name="turn"))))]
    assert "ORDER BY" not in _compile(ctx, ast).text


def test_simple_aggregate_never_orders(ctx, ast):
    star = ast.add(FieldNode(name="*"))
    ast.select = [ast.add(FuncNode(func="count", args=[star]))]
    turn = ast.add(FieldNode(name="turn"))
    late = ast.add(CalcNode(op="-", left=turn, right=ast.add(ValueNode(value=7))))
    ast.order = [ast.add(SortNode(expr=late))]
    ast.ordered = True
    ast.simple_aggregate = True

    r = _compile(ctx, ast)
    assert r.text == "SELECT count(*) FROM logrecord"
    assert r.values == ()


# ---------------------------------------------------------------------------
# Paging
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    ("index", "count", "expected"),
    [
        (3, None, " LIMIT 1 OFFSET 2"),
        (3, "5", " LIMIT 5 OFFSET 2"),
        (1, "5", " LIMIT 5"),
        (1, None, " LIMIT 1"),
        (None, "10", " LIMIT 10"),
        (None, None, ""),
        (None, "0", ""),
        (None, "-4", ""),
        (None, "many", ""),
        (2, "0", " LIMIT 1 OFFSET 1"),
    ],
)
def test_paging(ctx, ast, index, count, expected):
    _select_name(ast)
    ast.record_index = index
    if count is not None:
        ast.options["count"] = [count]
    assert _compile(ctx, ast).text == "SELECT name FROM logrecord" + expected


def test_negative_index_counts_from_the_other_end(ctx, ast):
    _select_name(ast)
    ast.order = [ast.add(SortNode(expr=ast.add(FieldNode(name="turn"))))]
    ast.ordered = True
    ast.record_index = -2
    assert _compile(ctx, ast).text == (
        "SELECT name FROM logrecord ORDER BY turn DESC LIMIT 1 OFFSET 1"
    )


# ---------------------------------------------------------------------------
# Lookup resolution
# ---------------------------------------------------------------------------


def test_lookup_columns_are_joined(ctx, ast):
    ast.select = [ast.add(FieldNode(name="name")), ast.add(FieldNode(name="killer"))]
    r = _compile(ctx, ast)
    assert r.text == (
        "SELECT logrecord.name, l_killer.killer FROM logrecord "
        "LEFT JOIN l_killer ON logrecord.killer_id = l_killer.id"
    )


def test_filter_lookup_joins_with_table_alias(ctx):
    ast = QueryAST(tables=TableList(table="logrecord", alias="lg"))
    _select_name(ast)
    ast.head = _cmp(ast, "place", "=", "D:1")
    r = _compile(ctx, ast)
    assert r.text == (
        "SELECT lg.name FROM logrecord AS lg "
        "LEFT JOIN l_place ON lg.place_id = l_place.id "
        "WHERE l_place.place = ?"
    )
    assert r.values == ("D:1",)


def test_unresolvable_field_propagates(ctx, ast):
    _select_name(ast)
    ast.head = _cmp(ast, "god", "=", "Trog")
    compiler = QueryCompiler(ctx)
    with pytest.raises(ResolutionError):
        compiler.compile(ast)

    # Nothing was cached, so the compiler can still compile a valid query.
    other = _select_name(QueryAST(tables=TableList(table="logrecord")))
    assert compiler.compile(other).text == "SELECT name FROM logrecord"


# ---------------------------------------------------------------------------
# Subqueries
# ---------------------------------------------------------------------------


def test_derived_subquery_is_wrapped(ctx, ast):
    _select_name(ast)
    ast.subquery = True
    ast.alias = "t"
    assert _compile(ctx, ast).text == "(SELECT name FROM logrecord) AS t"


@pytest.mark.parametrize("flag", ["exists_query", "subquery_expression"])
def test_embedded_subquery_is_not_wrapped(ctx, ast, flag):
    _select_name(ast)
    ast.subquery = True
    ast.alias = "t"
    setattr(ast, flag, True)
    assert _compile(ctx, ast).text == "SELECT name FROM logrecord"


def test_exists_subquery_values_keep_their_position(ctx, ast):
    xl = ast.add(FieldNode(name="xl"))
    ast.select = [ast.add(CalcNode(op="+", left=xl, right=ast.add(ValueNode(value=1))))]

    inner = QueryAST(tables=TableList(table="milestone"))
    inner_name = inner.add(FieldNode(name="milestone.name"))
    outer_name = inner.add(FieldNode(name="logrecord.name"))
    inner.head = inner.add(
        CondNode(
            op="AND",
            args=[
                _cmp(inner, "verb", "=", "orb"),
                inner.add(CmpNode(op="=", left=inner_name, right=outer_name)),
            ],
        )
    )

    ast.head = ast.add(
        CondNode(
            op="AND",
            args=[_cmp(ast, "name", "=", "a"), ast.add(SubqueryNode(query=inner))],
        )
    )

    r = _compile(ctx, ast)
    assert r.text == (
        "SELECT xl + ? FROM logrecord WHERE (name = ?) AND "
        "(EXISTS (SELECT * FROM milestone WHERE (verb = ?) AND "
        "(milestone.name = logrecord.name)))"
    )
    assert r.values == (1, "a", "orb")
    assert inner.subquery and inner.exists_query


def test_scalar_subquery_in_select(ctx, ast):
    inner = QueryAST(tables=TableList(table="milestone"))
    turn = inner.add(FieldNode(name="turn"))
    inner.select = [inner.add(FuncNode(func="max", args=[turn]))]
    inner.head = inner.add(
        CmpNode(
            op="=",
            left=inner.add(FieldNode(name="milestone.name")),
            right=inner.add(FieldNode(name="logrecord.name")),
        )
    )
    ast.select = [
        ast.add(FieldNode(name="name")),
        ast.add(SubqueryNode(query=inner, mode="expr", alias="best")),
    ]

    r = _compile(ctx, ast)
    assert r.text == (
        "SELECT name, (SELECT max(turn) FROM milestone "
        "WHERE milestone.name = logrecord.name) AS best FROM logrecord"
    )
    assert inner.subquery_expression and not inner.exists_query


# ---------------------------------------------------------------------------
# Compiler lifecycle
# ---------------------------------------------------------------------------


def test_compile_is_cached_per_instance(ctx, ast):
    compiler = QueryCompiler(ctx)
    _select_name(ast)
    ast.head = _cmp(ast, "xl", ">", 10)
    first = compiler.compile(ast)
    assert compiler.compile(ast) is first

    text, values = first
    assert text == first.sql
    assert values == [10]


def test_compiler_rejects_a_second_ast(ctx, ast):
    compiler = QueryCompiler(ctx)
    compiler.compile(_select_name(ast))
    with pytest.raises(CompilationError):
        compiler.compile(_select_name(QueryAST(tables=TableList(table="logrecord"))))


def test_bad_node_index_raises(ctx, ast):
    ast.select = [7]
    with pytest.raises(CompilationError, match="outside the arena"):
        _compile(ctx, ast)
