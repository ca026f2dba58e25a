"""Rule storage with fixed-priority resolution across rule types."""

import logging
from typing import Callable, Iterable, Mapping

from errors import RuleDefinitionError
from seeded_random import SeededRandom

from .models import (
    RESOLUTION_ORDER,
    Condition,
    ConditionalRule,
    Context,
    FunctionRule,
    RangeRule,
    Rule,
    RuleType,
    SequentialRule,
    StaticRule,
    TemplateRule,
    WeightedRule,
)

logger = logging.getLogger(__name__)


def _check_name(name) -> str:
    if not isinstance(name, str) or not name:
        raise RuleDefinitionError("Rule name must be a non-empty string")
    return name


class RuleStore:
    """Holds one table per rule type.

    A name may be registered under several types at once; ``has``/``remove``
    see each table individually, but ``resolve`` only ever reaches the table
    that comes first in ``RESOLUTION_ORDER``.
    """

    def __init__(self):
        self._tables: dict[RuleType, dict[str, Rule]] = {rule_type: {} for rule_type in RESOLUTION_ORDER}

    def _put(self, name: str, rule: Rule) -> None:
        name = _check_name(name)
        current = self.get_type(name)
        if current is not None and current != rule.rule_type:
            winner = min(current, rule.rule_type, key=RESOLUTION_ORDER.index)
            logger.warning(
                f"Rule '{name}' is registered as both {current.value} and {rule.rule_type.value}; "
                f"only the {winner.value} rule will be resolved"
            )
        self._tables[rule.rule_type][name] = rule
        logger.debug(f"Registered {rule.rule_type.value} rule '{name}'")

    # Registration

    def add_static(self, name: str, values: list[str]) -> None:
        self._put(name, StaticRule(values))

    def add_function(self, name: str, generator: Callable[[], list[str]]) -> None:
        self._put(name, FunctionRule(generator))

    def add_weighted(self, name: str, values: list[str], weights: list[float]) -> None:
        self._put(name, WeightedRule(values, weights))

    def add_conditional(self, name: str, conditions: Iterable[Condition | Mapping]) -> None:
        self._put(name, ConditionalRule(list(conditions)))

    def add_sequential(self, name: str, values: list[str], cycle: bool = True) -> None:
        self._put(name, SequentialRule(values, cycle=cycle))

    def add_range(
        self,
        name: str,
        min: float,
        max: float,
        step: float | None = None,
        kind: str = "integer",
    ) -> None:
        self._put(name, RangeRule(min, max, step=step, kind=kind))

    def add_template(self, name: str, template: str, variables: Mapping[str, list[str]]) -> None:
        self._put(name, TemplateRule(template, dict(variables)))

    # Per-type queries

    def has(self, name: str, rule_type: RuleType) -> bool:
        return name in self._tables[rule_type]

    def get(self, name: str, rule_type: RuleType) -> Rule | None:
        return self._tables[rule_type].get(name)

    def remove(self, name: str, rule_type: RuleType) -> bool:
        return self._tables[rule_type].pop(name, None) is not None

    def clear(self, rule_type: RuleType) -> None:
        self._tables[rule_type].clear()

    # Cross-type queries

    def has_any(self, name: str) -> bool:
        return any(name in table for table in self._tables.values())

    def remove_any(self, name: str) -> bool:
        removed = False
        for table in self._tables.values():
            if table.pop(name, None) is not None:
                removed = True
        return removed

    def clear_all(self) -> None:
        for table in self._tables.values():
            table.clear()

    def get_type(self, name: str) -> RuleType | None:
        for rule_type in RESOLUTION_ORDER:
            if name in self._tables[rule_type]:
                return rule_type
        return None

    def get_rule(self, name: str) -> Rule | None:
        """Return the rule that resolution would use for this name."""
        rule_type = self.get_type(name)
        return None if rule_type is None else self._tables[rule_type][name]

    def names(self) -> list[str]:
        """All registered names, each once."""
        seen: dict[str, None] = {}
        for table in self._tables.values():
            for name in table:
                seen.setdefault(name, None)
        return list(seen)

    def counts(self) -> dict[str, int]:
        return {rule_type.value: len(self._tables[rule_type]) for rule_type in RESOLUTION_ORDER}

    def __len__(self) -> int:
        return sum(len(table) for table in self._tables.values())

    def resolve(self, name: str, context: Context, rng: SeededRandom) -> str | None:
        """Generate a raw value for name, or None if nothing can be produced."""
        rule = self.get_rule(name)
        if rule is None:
            return None
        return rule.generate(name, context, rng)

    def reset_sequential(self, name: str) -> bool:
        rule = self._tables[RuleType.SEQUENTIAL].get(name)
        if rule is None:
            return False
        rule.reset()
        return True

    def static_grammar(self) -> dict[str, list[str]]:
        """Copy of the static rules as a plain name -> values mapping."""
        return {name: list(rule.values) for name, rule in self._tables[RuleType.STATIC].items()}
