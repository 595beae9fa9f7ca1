"""Backend-agnostic dialect compiler."""
from __future__ import annotations

from listql.compile.base import SQLCompiler


class GenericCompiler(SQLCompiler):
    """Compiles to SQL with ``?`` positional placeholders.

    Operators are passed through unchanged; the caller's execution layer is
    expected to rewrite placeholders for its driver if needed.
    """

    @property
    def dialect_name(self) -> str:
        return "generic"

    def param_placeholder(self) -> str:
        return "?"

    def like_operator(self, op: str) -> str:
        return op
