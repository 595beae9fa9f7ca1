"""Utilities for building a SchemaSnapshot from external sources.

SQLAlchemy converter
--------------------
:func:`schema_from_sqlalchemy` reflects a live database engine and returns a
:class:`~listql.schema.snapshot.SchemaSnapshot` in which every foreign key
becomes a lookup relationship.

Install the optional dependency before using this module::

    pip install "listql[sqlalchemy]"

Example::

    from sqlalchemy import create_engine
    from listql.schema.converters import schema_from_sqlalchemy

    engine = create_engine("sqlite:///games.db")
    snapshot = schema_from_sqlalchemy(engine)
"""

from __future__ import annotations

from collections import defaultdict
from typing import TYPE_CHECKING

from listql.schema.snapshot import ColumnInfo, LookupInfo, SchemaSnapshot, TableInfo

if TYPE_CHECKING:
    from sqlalchemy import Engine, MetaData


def schema_from_sqlalchemy(
    engine: Engine,
    *,
    include_tables: list[str] | None = None,
    schema: str | None = None,
    infer_lookups: bool = False,
) -> SchemaSnapshot:
    """Build a :class:`SchemaSnapshot` by reflecting a SQLAlchemy engine.

    Each foreign key ``from_table.from_col -> to_table.to_col`` becomes a
    :class:`~listql.schema.snapshot.LookupInfo` exposing every column of
    ``to_table`` except ``to_col`` itself.

    **Lookup key convention**

    Keys follow the ``{lookup_table}__{referencing_table}`` pattern.  When a
    table has several foreign keys into the same lookup table, or references
    itself, the FK column name is appended:
    ``{lookup_table}__{referencing_table}__{fk_col}``.

    Args:
        engine: A connected :class:`sqlalchemy.engine.Engine` instance.
        include_tables: Optional allowlist of table names to reflect.
            When ``None`` all tables in the schema are reflected.
        schema: Optional database schema name (e.g. ``"public"`` for
            PostgreSQL).  Passed directly to
            :meth:`sqlalchemy.schema.MetaData.reflect`.
        infer_lookups: When ``True``, lookups are also inferred from column
            naming conventions (see :func:`infer_lookups_from_names`).

    Returns:
        A fully populated :class:`SchemaSnapshot`.

    Raises:
        ImportError: If ``sqlalchemy`` is not installed.
    """
    try:
        from sqlalchemy import MetaData as _MetaData
    except ImportError as exc:
        raise ImportError(
            "SQLAlchemy is required for schema_from_sqlalchemy(). "
            'Install it with: pip install "listql[sqlalchemy]"'
        ) from exc

    metadata = _MetaData()
    with engine.connect() as conn:
        metadata.reflect(bind=conn, only=include_tables, schema=schema)

    snapshot = _metadata_to_snapshot(metadata)
    if infer_lookups:
        snapshot = infer_lookups_from_names(snapshot)
    return snapshot


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _metadata_to_snapshot(metadata: MetaData) -> SchemaSnapshot:
    """Convert a reflected :class:`~sqlalchemy.schema.MetaData` into a
    :class:`SchemaSnapshot`.

    Separated from :func:`schema_from_sqlalchemy` so it can be reused by
    callers that already hold a reflected (or declaratively built)
    ``MetaData`` object.
    """
    fk_pair_count: dict[tuple[str, str], int] = defaultdict(int)
    for table in metadata.sorted_tables:
        for fk in table.foreign_keys:
            fk_pair_count[(table.name, fk.column.table.name)] += 1

    lookups: list[LookupInfo] = []
    for table in metadata.sorted_tables:
        for fk in table.foreign_keys:
            to_table = fk.column.table
            lookups.append(
                LookupInfo(
                    key=_lookup_key(table.name, fk.parent.name, to_table.name, fk_pair_count),
                    from_table=table.name,
                    from_col=fk.parent.name,
                    to_table=to_table.name,
                    to_col=fk.column.name,
                    columns=[c.name for c in to_table.columns if c.name != fk.column.name],
                )
            )

    tables = [
        TableInfo(
            name=table.name,
            columns=[
                ColumnInfo(
                    name=col.name,
                    type=str(col.type),
                    # Reflected columns report None when unknown.
                    nullable=col.nullable is not False,
                )
                for col in table.columns
            ],
        )
        for table in metadata.sorted_tables
    ]

    return SchemaSnapshot(tables=tables, lookups=lookups)


def infer_lookups_from_names(snapshot: SchemaSnapshot) -> SchemaSnapshot:
    """Return a new :class:`SchemaSnapshot` with lookups inferred from
    column naming conventions.

    For every column whose name ends with ``_id``, the candidate lookup
    tables are tried in order:

    1. ``l_{prefix}`` (the conventional lookup-table prefix),
    2. ``{prefix}``,
    3. ``{prefix}s`` (naive pluralisation).

    A candidate is accepted when it has an ``id`` column.  The new lookup
    exposes every other column of the candidate table.  Lookups already in
    the snapshot are preserved; the original object is not mutated.

    Args:
        snapshot: The snapshot to enrich.

    Returns:
        A new :class:`SchemaSnapshot` with any inferred lookups appended, or
        ``snapshot`` itself when nothing was inferred.
    """
    table_map = {t.name: t for t in snapshot.tables}
    existing_keys = set(snapshot.lookup_keys)

    inferred_pair_count: dict[tuple[str, str], int] = defaultdict(int)
    candidates: list[tuple[TableInfo, str, TableInfo]] = []
    for table in snapshot.tables:
        for col in table.columns:
            if not col.name.endswith("_id"):
                continue
            target = _resolve_candidate_table(col.name[:-3], table_map)
            if target is None:
                continue
            inferred_pair_count[(table.name, target.name)] += 1
            candidates.append((table, col.name, target))

    new_lookups: list[LookupInfo] = []
    for table, col_name, target in candidates:
        key = _lookup_key(table.name, col_name, target.name, inferred_pair_count)
        if key in existing_keys:
            continue
        existing_keys.add(key)
        new_lookups.append(
            LookupInfo(
                key=key,
                from_table=table.name,
                from_col=col_name,
                to_table=target.name,
                to_col="id",
                columns=[c for c in target.column_names if c != "id"],
            )
        )

    if not new_lookups:
        return snapshot
    return SchemaSnapshot(
        tables=list(snapshot.tables),
        lookups=list(snapshot.lookups) + new_lookups,
    )


def _resolve_candidate_table(
    prefix: str, table_map: dict[str, TableInfo]
) -> TableInfo | None:
    """Return the first matching lookup table for a ``{prefix}_id`` column."""
    for candidate in (f"l_{prefix}", prefix, prefix + "s"):
        table = table_map.get(candidate)
        if table is not None and "id" in table.column_names:
            return table
    return None


def _lookup_key(
    from_table: str,
    from_col: str,
    to_table: str,
    fk_pair_count: dict[tuple[str, str], int],
) -> str:
    """Return the lookup key for a single foreign key.

    Uses the short ``{to_table}__{from_table}`` form when unambiguous, and
    the longer ``{to_table}__{from_table}__{from_col}`` form when the FK is
    self-referential or *from_table* has several FKs into *to_table*.
    """
    ambiguous = from_table == to_table or fk_pair_count.get((from_table, to_table), 0) > 1
    if ambiguous:
        return f"{to_table}__{from_table}__{from_col}"
    return f"{to_table}__{from_table}"
