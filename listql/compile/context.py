"""Compilation context value object.

Packages the ``(compiler, snapshot, config)`` data clump shared by the
``QueryCompiler``, the ``FieldResolver`` and every clause-level sub-builder.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from listql.compile.base import SQLCompiler
from listql.config import CompilerConfig
from listql.schema.snapshot import SchemaSnapshot


@dataclass(frozen=True)
class CompilationContext:
    """Immutable context shared by the compiles of one caller.

    Attributes:
        compiler: Dialect-specific SQL compiler instance.
        snapshot: Schema snapshot used for lookup-field resolution.
        config: Alias naming, count option, and join settings.
    """

    compiler: SQLCompiler
    snapshot: SchemaSnapshot
    config: CompilerConfig = field(default_factory=CompilerConfig)
