"""Pydantic models for the SchemaSnapshot used during field resolution.

The SchemaSnapshot describes the tables a query may read and the lookup
relationships that let a query reference a column of a lookup table as if it
were a column of the primary table.  It is produced by the caller (or by
:func:`~listql.schema.converters.schema_from_sqlalchemy`) and injected into
the compiler.
"""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ColumnInfo(BaseModel):
    """Metadata for a single column.

    Attributes:
        name: Column name.
        type: SQL type string (e.g. ``'TEXT'``, ``'INTEGER'``).
        nullable: Whether the column can be NULL.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    type: str = "TEXT"
    nullable: bool = True


class LookupInfo(BaseModel):
    """A lookup relationship between a primary table and a lookup table.

    ``from_table.from_col`` references ``to_table.to_col``.  Every name in
    ``columns`` is a column of ``to_table`` that queries against
    ``from_table`` may use unqualified; resolution rewrites it to
    ``to_table.<column>`` and joins ``to_table`` in.

    Attributes:
        key: Unique lookup identifier (e.g. ``'l_killer__logrecord'``).
        from_table: Table holding the reference column.
        from_col: Reference column on ``from_table``.
        to_table: Lookup table name.
        to_col: Key column on the lookup table.
        columns: Lookup table columns exposed through this relationship.
    """

    model_config = ConfigDict(extra="forbid")

    key: str
    from_table: str
    from_col: str
    to_table: str
    to_col: str = "id"
    columns: list[str] = Field(default_factory=list)


class TableInfo(BaseModel):
    """Metadata for a single table.

    Attributes:
        name: Table name.
        columns: Ordered list of column metadata.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    columns: list[ColumnInfo]

    @property
    def column_names(self) -> list[str]:
        """Returns all column names for this table."""
        return [c.name for c in self.columns]


class SchemaSnapshot(BaseModel):
    """Describes the tables and lookups available to field resolution.

    Attributes:
        tables: All known tables.
        lookups: All lookup relationships.
    """

    model_config = ConfigDict(extra="forbid")

    tables: list[TableInfo]
    lookups: list[LookupInfo] = Field(default_factory=list)

    def get_table(self, name: str) -> TableInfo | None:
        """Returns the TableInfo for the given table name, or ``None``."""
        for table in self.tables:
            if table.name == name:
                return table
        return None

    def get_lookup(self, key: str) -> LookupInfo | None:
        """Returns the LookupInfo for the given key, or ``None``."""
        for lookup in self.lookups:
            if lookup.key == key:
                return lookup
        return None

    def get_column(self, table_name: str, column_name: str) -> ColumnInfo | None:
        """Returns the ColumnInfo for a table.column pair, or ``None``."""
        table = self.get_table(table_name)
        if table is None:
            return None
        for col in table.columns:
            if col.name == column_name:
                return col
        return None

    def lookup_for_column(self, table_name: str, column_name: str) -> LookupInfo | None:
        """Returns the first lookup from ``table_name`` exposing ``column_name``.

        Args:
            table_name: The primary table the column is referenced from.
            column_name: The unqualified column name.

        Returns:
            The matching :class:`LookupInfo`, or ``None`` if no lookup of
            ``table_name`` exposes the column.
        """
        for lookup in self.lookups:
            if lookup.from_table == table_name and column_name in lookup.columns:
                return lookup
        return None

    @property
    def table_names(self) -> list[str]:
        """Returns all table names in the snapshot."""
        return [t.name for t in self.tables]

    @property
    def lookup_keys(self) -> list[str]:
        """Returns all lookup keys in the snapshot."""
        return [lk.key for lk in self.lookups]
