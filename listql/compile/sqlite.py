"""SQLite dialect compiler."""
from __future__ import annotations

from listql.compile.base import SQLCompiler


class SQLiteCompiler(SQLCompiler):
    """Compiles to SQLite-flavoured parameterized SQL.

    Parameter style: ``?`` – Python's built-in ``sqlite3`` ``qmark`` style
    (``cursor.execute(sql, values)``).

    Note: SQLite does not support ``ILIKE``; it is mapped to ``LIKE``.
    SQLite's ``LIKE`` is case-insensitive for ASCII by default.
    """

    @property
    def dialect_name(self) -> str:
        return "sqlite"

    def param_placeholder(self) -> str:
        return "?"

    def like_operator(self, op: str) -> str:
        return "LIKE"  # SQLite has no ILIKE; fall back to LIKE
