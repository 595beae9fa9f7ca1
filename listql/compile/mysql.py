"""MySQL dialect compiler."""

from __future__ import annotations

from listql.compile.base import SQLCompiler


class MySQLCompiler(SQLCompiler):
    """Compiles to MySQL-flavoured parameterized SQL.

    Parameter style: ``%s`` – compatible with ``PyMySQL`` and
    ``mysql-connector-python`` positional execution.

    Note: MySQL does not support ``ILIKE``; it is mapped to ``LIKE``.
    MySQL's ``LIKE`` is case-insensitive for non-binary TEXT/VARCHAR columns
    by default.
    """

    @property
    def dialect_name(self) -> str:
        return "mysql"

    def param_placeholder(self) -> str:
        return "%s"

    def like_operator(self, op: str) -> str:
        return "LIKE"  # MySQL has no ILIKE; LIKE is case-insensitive for TEXT by default
