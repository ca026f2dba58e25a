"""Recursive %variable% expansion against a rule store."""

import logging
import re
from types import MappingProxyType

from errors import RecursionDepthError
from rules.store import RuleStore
from seeded_random import SeededRandom
from tokens import TOKEN_PATTERN, find_variables, is_back_reference, strip_back_reference

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 100


class VariableExpander:
    """Expands tokens in text, recording resolved values in a parse context.

    The context maps rule name -> most recent value. Conditional rules read it
    and ``%@name%`` back-references replay it. It is owned by this instance:
    concurrent parses sharing one expander are not supported.
    """

    def __init__(self, store: RuleStore, rng: SeededRandom, max_depth: int = DEFAULT_MAX_DEPTH):
        self.store = store
        self.rng = rng
        self._context: dict[str, str] = {}
        self._max_depth = DEFAULT_MAX_DEPTH
        self.set_max_depth(max_depth)

    @property
    def max_depth(self) -> int:
        return self._max_depth

    def set_max_depth(self, depth: int) -> None:
        if isinstance(depth, bool) or not isinstance(depth, int) or depth < 1:
            raise ValueError("Max depth must be an integer of at least 1")
        self._max_depth = depth

    @property
    def context(self) -> dict[str, str]:
        return dict(self._context)

    def clear_context(self) -> None:
        self._context.clear()

    def expand(self, text: str, preserve_context: bool = False) -> str:
        """Expand every token in text.

        Args:
            text: Text containing %name% / %@name% tokens
            preserve_context: Keep values resolved by earlier calls

        Returns:
            Expanded text; unresolvable tokens are left verbatim

        Raises:
            RecursionDepthError: If nesting reaches max_depth
            FunctionRuleError: If a function rule fails
            NoMatchingConditionError: If a conditional rule has no matching branch
        """
        if not preserve_context:
            self.clear_context()
        try:
            return self._expand(text, 0)
        except RecursionError as e:
            # The interpreter stack ran out before max_depth was reached
            raise RecursionDepthError(self._max_depth) from e

    def _expand(self, text: str, depth: int) -> str:
        if depth >= self._max_depth:
            raise RecursionDepthError(self._max_depth)

        def substitute(match: re.Match) -> str:
            name = match.group(1)

            if is_back_reference(name):
                return self._context.get(strip_back_reference(name), match.group(0))

            value = self.store.resolve(name, MappingProxyType(self._context), self.rng)
            if value is None:
                return match.group(0)

            self._context[name] = value
            expanded = self._expand(value, depth + 1)
            # Back-references replay the finished text, not the raw template
            self._context[name] = expanded
            return expanded

        return TOKEN_PATTERN.sub(substitute, text)

    def find_variables(self, text: str) -> list[str]:
        return find_variables(text)

    def find_missing_variables(self, text: str) -> list[str]:
        """Names referenced in text that no rule of any type defines."""
        return [
            name for name in find_variables(text)
            if not is_back_reference(name) and not self.store.has_any(name)
        ]
