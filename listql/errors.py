"""Custom exception hierarchy for listQL.

All public errors inherit from ListQLError so callers can catch the base
class for any listQL-specific failure.
"""
from __future__ import annotations


class ListQLError(Exception):
    """Base exception for all listQL errors."""


class ParseError(ListQLError):
    """Raised when input cannot be loaded as a valid QueryAST document.

    Args:
        message: Human-readable description.
        raw: The raw string that failed to load.
    """

    def __init__(self, message: str, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw = raw


class ResolutionError(ListQLError):
    """Raised when a field reference has no join path from the query's table.

    Args:
        message: Human-readable description.
        field: The field name that could not be resolved.
        table: The primary table the field was resolved against.
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        table: str | None = None,
    ) -> None:
        super().__init__(message)
        self.field = field
        self.table = table


class CompilationError(ListQLError):
    """Raised when SQL compilation fails for an unexpected reason.

    Args:
        message: Human-readable description.
        clause: The clause being compiled when the error occurred.
    """

    def __init__(self, message: str, clause: str | None = None) -> None:
        super().__init__(message)
        self.clause = clause
