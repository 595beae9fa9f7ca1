"""PostgreSQL dialect compiler."""

from __future__ import annotations

from listql.compile.base import SQLCompiler


class PostgresCompiler(SQLCompiler):
    """Compiles to PostgreSQL-flavoured parameterized SQL.

    Parameter style: ``%s`` – the ``format`` positional style of
    ``psycopg2`` and ``psycopg``.
    """

    @property
    def dialect_name(self) -> str:
        return "postgres"

    def param_placeholder(self) -> str:
        return "%s"

    def like_operator(self, op: str) -> str:
        return op  # 'LIKE' or 'ILIKE' - PostgreSQL supports both natively
