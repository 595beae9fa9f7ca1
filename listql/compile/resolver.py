"""Lookup-table field resolution.

A query against a primary table may name a column that actually lives in a
lookup table (``killer`` rather than ``l_killer.killer``).  ``FieldResolver``
rewrites such a field node in place so it renders as the concrete column and
adds the join that makes the column reachable.
"""
from __future__ import annotations

import logging

from listql.compile.context import CompilationContext
from listql.errors import ResolutionError
from listql.schema.ast import FieldNode, JoinClause, QueryAST
from listql.schema.column_reference import ColumnReference
from listql.schema.snapshot import LookupInfo

logger = logging.getLogger(__name__)


class FieldResolver:
    """Resolves field nodes against the query's primary table.

    Resolution rules, in order:

    * ``*`` and qualified ``table.column`` names are taken as written; a
      qualifier naming a lookup table of the primary table joins it.
    * A column of the primary table stays a primary-table column.
    * A column exposed by a lookup of the primary table is rewritten to the
      lookup table, which is joined once per lookup.

    Anything else raises :class:`~listql.errors.ResolutionError`.

    Args:
        ctx: Compilation context (snapshot and join settings).
    """

    def __init__(self, ctx: CompilationContext) -> None:
        self._ctx = ctx

    def resolve(self, ast: QueryAST, field: FieldNode) -> None:
        """Rewrite ``field`` in place; a resolved field is left untouched.

        Raises:
            ResolutionError: If the primary table is unknown or no lookup
                exposes the column.
        """
        if field.resolved:
            return

        ref = ColumnReference.parse(field.name)
        primary = ast.tables.table
        if ref.column == "*" or ref.qualified:
            if ref.qualified and ref.table != primary:
                lookup = self._lookup_to(primary, ref.table)
                if lookup is not None:
                    self._join(ast, lookup)
            field.table = ref.table
            field.resolved = True
            return

        table = self._ctx.snapshot.get_table(primary)
        if table is None:
            raise ResolutionError(
                f"Unknown table '{primary}'.", field=field.name, table=primary
            )

        if ref.column not in table.column_names:
            lookup = self._ctx.snapshot.lookup_for_column(primary, ref.column)
            if lookup is None:
                raise ResolutionError(
                    f"No column or lookup for '{ref.column}' on table '{primary}'.",
                    field=field.name,
                    table=primary,
                )
            self._join(ast, lookup)
            field.table = lookup.to_table
        field.resolved = True

    def _lookup_to(self, primary: str, table: str | None) -> LookupInfo | None:
        for lookup in self._ctx.snapshot.lookups:
            if lookup.from_table == primary and lookup.to_table == table:
                return lookup
        return None

    def _join(self, ast: QueryAST, lookup: LookupInfo) -> None:
        if ast.tables.has_join(lookup.key):
            return
        logger.debug("Joining lookup %s into %s", lookup.key, ast.tables.table)
        ast.tables.joins.append(
            JoinClause(
                lookup=lookup.key,
                table=lookup.to_table,
                from_col=lookup.from_col,
                to_col=lookup.to_col,
                type=self._ctx.config.join_type,
            )
        )
