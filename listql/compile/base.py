"""Compiler abstractions: CompiledQuery and the SQLCompiler ABC.

The Template Method pattern (GoF) is used:
- ``SQLCompiler`` declares the dialect-specific steps (positional
  placeholder style, ILIKE support).
- ``GenericCompiler``, ``SQLiteCompiler``, ``PostgresCompiler`` and
  ``MySQLCompiler`` fill them in; the ``QueryCompiler`` only talks to this
  interface.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class CompiledQuery:
    """The output of a successful compilation.

    Attributes:
        text: The compiled SQL string with positional placeholders.
        values: Values to bind, in placeholder order.
        dialect: The target dialect name.
    """

    text: str
    values: tuple[Any, ...]
    dialect: str

    @property
    def sql(self) -> str:
        return self.text

    def __iter__(self) -> Iterator[Any]:
        # Allows ``text, values = compiled``.
        yield self.text
        yield list(self.values)


class SQLCompiler(ABC):
    """Abstract base for dialect-specific SQL compilers."""

    @abstractmethod
    def param_placeholder(self) -> str:
        """Return the positional placeholder for one bound value."""

    @abstractmethod
    def like_operator(self, op: str) -> str:
        """Return the SQL keyword for a LIKE / ILIKE operator.

        Args:
            op: ``'LIKE'`` or ``'ILIKE'``.

        Returns:
            SQL operator keyword.
        """

    @property
    @abstractmethod
    def dialect_name(self) -> str:
        """Return the canonical dialect name."""
