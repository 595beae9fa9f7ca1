"""listQL compilation layer: QueryAST → parameterized SQL."""
from listql.compile.aliases import AliasMap
from listql.compile.base import CompiledQuery, SQLCompiler
from listql.compile.builder import QueryCompiler
from listql.compile.generic import GenericCompiler
from listql.compile.mysql import MySQLCompiler
from listql.compile.postgres import PostgresCompiler
from listql.compile.resolver import FieldResolver
from listql.compile.sqlite import SQLiteCompiler

__all__ = [
    "AliasMap",
    "CompiledQuery",
    "SQLCompiler",
    "QueryCompiler",
    "FieldResolver",
    "GenericCompiler",
    "MySQLCompiler",
    "PostgresCompiler",
    "SQLiteCompiler",
]
