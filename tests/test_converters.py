"""Unit tests for listql.schema.converters."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from listql.schema.converters import (
    infer_lookups_from_names,
    schema_from_sqlalchemy,
)
from listql.schema.snapshot import ColumnInfo, SchemaSnapshot, TableInfo


def _make_engine() -> Engine:
    """Return an in-memory SQLite engine."""
    return create_engine("sqlite:///:memory:")


def _games_schema(engine: Engine) -> None:
    """Create logrecord with FKs into two lookup tables, one referenced twice."""
    with engine.begin() as conn:
        conn.execute(
            text(
                """
                CREATE TABLE l_killer (
                    id     INTEGER PRIMARY KEY,
                    killer TEXT
                )
                """
            )
        )
        conn.execute(
            text(
                """
                CREATE TABLE l_place (
                    id     INTEGER PRIMARY KEY,
                    place  TEXT,
                    branch TEXT
                )
                """
            )
        )
        conn.execute(
            text(
                """
                CREATE TABLE logrecord (
                    id             INTEGER PRIMARY KEY,
                    name           TEXT NOT NULL,
                    killer_id      INTEGER,
                    place_id       INTEGER,
                    start_place_id INTEGER,
                    FOREIGN KEY (killer_id) REFERENCES l_killer(id),
                    FOREIGN KEY (place_id) REFERENCES l_place(id),
                    FOREIGN KEY (start_place_id) REFERENCES l_place(id)
                )
                """
            )
        )


@pytest.fixture
def games_engine() -> Engine:
    engine = _make_engine()
    _games_schema(engine)
    return engine


def test_tables_and_columns_are_reflected(games_engine):
    snapshot = schema_from_sqlalchemy(games_engine)

    assert sorted(snapshot.table_names) == ["l_killer", "l_place", "logrecord"]
    name = snapshot.get_column("logrecord", "name")
    assert name is not None
    assert name.nullable is False


def test_foreign_key_becomes_lookup(games_engine):
    snapshot = schema_from_sqlalchemy(games_engine)

    lookup = snapshot.get_lookup("l_killer__logrecord")
    assert lookup is not None
    assert (lookup.from_table, lookup.from_col, lookup.to_table, lookup.to_col) == (
        "logrecord",
        "killer_id",
        "l_killer",
        "id",
    )
    assert lookup.columns == ["killer"]
    assert snapshot.lookup_for_column("logrecord", "killer") == lookup


def test_repeated_lookup_table_keys_are_disambiguated(games_engine):
    snapshot = schema_from_sqlalchemy(games_engine)

    keys = set(snapshot.lookup_keys)
    assert "l_place__logrecord__place_id" in keys
    assert "l_place__logrecord__start_place_id" in keys
    assert "l_place__logrecord" not in keys


def test_include_tables(games_engine):
    snapshot = schema_from_sqlalchemy(games_engine, include_tables=["l_killer"])

    assert snapshot.table_names == ["l_killer"]
    assert snapshot.lookups == []


def _plain_snapshot() -> SchemaSnapshot:
    return SchemaSnapshot(
        tables=[
            TableInfo(
                name="logrecord",
                columns=[
                    ColumnInfo(name="id", type="INTEGER"),
                    ColumnInfo(name="killer_id", type="INTEGER"),
                    ColumnInfo(name="god_id", type="INTEGER"),
                    ColumnInfo(name="version_id", type="INTEGER"),
                ],
            ),
            TableInfo(
                name="l_killer",
                columns=[ColumnInfo(name="id"), ColumnInfo(name="killer")],
            ),
            TableInfo(
                name="gods",
                columns=[ColumnInfo(name="id"), ColumnInfo(name="god")],
            ),
        ]
    )


def test_infer_lookups_from_names():
    snapshot = infer_lookups_from_names(_plain_snapshot())

    assert sorted(snapshot.lookup_keys) == ["gods__logrecord", "l_killer__logrecord"]
    assert snapshot.lookup_for_column("logrecord", "god").to_table == "gods"
    assert snapshot.lookup_for_column("logrecord", "version") is None


def test_infer_lookups_keeps_existing_and_returns_same_when_nothing_new():
    once = infer_lookups_from_names(_plain_snapshot())
    twice = infer_lookups_from_names(once)

    assert twice is once


def test_reflected_snapshot_drives_resolution(games_engine):
    import listql

    snapshot = schema_from_sqlalchemy(games_engine)
    ast = listql.QueryAST(tables=listql.TableList(table="logrecord"))
    ast.select = [ast.add(listql.FieldNode(name="killer"))]

    r = listql.compile_query(ast, snapshot)
    assert r.text == (
        "SELECT l_killer.killer FROM logrecord "
        "LEFT JOIN l_killer ON logrecord.killer_id = l_killer.id"
    )
