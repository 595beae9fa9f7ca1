"""Generated aliases for non-trivial expressions.

``AliasMap`` remembers, per compile run, which alias was generated for which
expression.  Aliases are keyed by the expression's canonical text rather than
by node identity, so two distinct nodes that print the same share one alias:
the first encounter defines it (``count(x) AS count_x_alias``) and every later
encounter refers to it (``count_x_alias``).
"""
from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from listql.config import CompilerConfig

if TYPE_CHECKING:
    from listql.compile.expression_builder import ExpressionBuilder

logger = logging.getLogger(__name__)

_NON_ALPHA = re.compile(r"[^a-zA-Z]")
_TRAILING_NUMBER = re.compile(r"_(\d+)$")


class AliasMap:
    """Maps canonical expression text to a generated alias.

    Every alias stored in the map is unique, and once a text is mapped all
    later lookups return the stored alias.

    Args:
        expressions: Builder that renders and classifies arena nodes.
        config: Supplies the alias suffix and the empty-base fallback.
    """

    def __init__(self, expressions: ExpressionBuilder, config: CompilerConfig) -> None:
        self._exprs = expressions
        self._config = config
        self._aliases: dict[str, str] = {}

    def alias(self, expr: int) -> str:
        """Render ``expr`` for a clause that may alias it.

        Simple expressions render as themselves.  An expression whose text is
        already mapped renders as the bare alias; otherwise a new alias is
        generated and the expression renders as ``<expr> AS <alias>``.
        """
        if self._exprs.is_simple(expr):
            return self._exprs.render(expr)
        existing = self.lookup(expr)
        if existing is not None:
            return existing
        new_alias = self.unique_alias(expr)
        return f"{self._exprs.render(expr)} AS {new_alias}"

    def lookup(self, expr: int) -> str | None:
        """Return the alias already generated for ``expr``'s text, if any."""
        return self._aliases.get(self._exprs.canonical_text(expr))

    def unique_alias(self, expr: int) -> str:
        """Generate, store and return a map-wide unique alias for ``expr``.

        Non-letters become underscores, trailing underscores are dropped and
        the configured suffix is appended.  Collisions append ``_1``, then
        keep incrementing that trailing number.
        """
        text = self._exprs.canonical_text(expr)
        stem = _NON_ALPHA.sub("_", text).rstrip("_") or self._config.empty_alias_base
        candidate = stem + self._config.alias_suffix
        taken = set(self._aliases.values())
        while candidate in taken:
            match = _TRAILING_NUMBER.search(candidate)
            if match:
                candidate = f"{candidate[:match.start()]}_{int(match.group(1)) + 1}"
            else:
                candidate = f"{candidate}_1"
        self._aliases[text] = candidate
        logger.debug("Aliased %r as %s", text, candidate)
        return candidate

    def __contains__(self, text: object) -> bool:
        return text in self._aliases

    def __len__(self) -> int:
        return len(self._aliases)

    @property
    def aliases(self) -> dict[str, str]:
        """A copy of the text -> alias mapping."""
        return dict(self._aliases)
