"""Compiler configuration.

``CompilerConfig`` carries the handful of knobs that shape generated SQL
without belonging to any single query: the dialect target, the alias naming
convention, the option name that drives ``LIMIT``, and the join type used
for lookup tables.

Example::

    config = CompilerConfig(dialect="postgres", count_option="n")
    compiled = listql.compile_query(ast, snapshot, config=config)
"""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class CompilerConfig(BaseModel):
    """Static configuration shared by every compile run.

    Attributes:
        dialect: Registered dialect target (see
            :class:`~listql.compile.registry.CompilerFactory`).
        alias_suffix: Suffix appended to every generated alias.
        empty_alias_base: Base name used when an expression's text contains
            no letters at all (e.g. ``1 + 2``).
        count_option: Option name whose first argument sets ``LIMIT``.
        join_type: Join keyword used when a lookup table is joined in.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    dialect: str = "generic"
    alias_suffix: str = Field("_alias", min_length=1)
    empty_alias_base: str = Field("expr", pattern=r"^[A-Za-z_]+$")
    count_option: str = "count"
    join_type: Literal["INNER", "LEFT"] = "LEFT"
