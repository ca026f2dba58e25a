"""Post-expansion text modifiers."""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable

from errors import ModifierDefinitionError

logger = logging.getLogger(__name__)


@dataclass
class ModifierContext:
    """Side-channel information passed to every modifier."""
    original_text: str | None = None
    rule_name: str | None = None
    variables: dict[str, str] = field(default_factory=dict)


@dataclass
class Modifier:
    name: str
    condition: Callable[[str, ModifierContext], bool]
    transform: Callable[[str, ModifierContext], str]
    priority: int = 0

    def __post_init__(self):
        if not isinstance(self.name, str) or not self.name:
            raise ModifierDefinitionError("Modifier must have a valid name")
        if not callable(self.condition):
            raise ModifierDefinitionError("Modifier must have a condition function")
        if not callable(self.transform):
            raise ModifierDefinitionError("Modifier must have a transform function")
        if self.priority is None:
            self.priority = 0
        if isinstance(self.priority, bool) or not isinstance(self.priority, (int, float)):
            raise ModifierDefinitionError("Modifier priority must be a number")


class ModifierPipeline:
    """Ordered collection of modifiers applied as a sequential fold.

    Higher priority runs first; equal priorities run in registration order.
    Replacing a modifier by name keeps its original registration slot.
    """

    def __init__(self):
        self._modifiers: dict[str, Modifier] = {}

    def add(self, modifier: Modifier) -> None:
        if not isinstance(modifier, Modifier):
            raise ModifierDefinitionError("Modifier must be a Modifier instance")
        self._modifiers[modifier.name] = modifier
        logger.debug(f"Registered modifier '{modifier.name}' (priority {modifier.priority})")

    def load(self, modifiers: Iterable[Modifier]) -> None:
        for modifier in modifiers:
            self.add(modifier)

    def remove(self, name: str) -> bool:
        return self._modifiers.pop(name, None) is not None

    def has(self, name: str) -> bool:
        return name in self._modifiers

    def clear(self) -> None:
        self._modifiers.clear()

    def modifiers(self) -> list[Modifier]:
        return sorted(self._modifiers.values(), key=lambda m: m.priority, reverse=True)

    def __len__(self) -> int:
        return len(self._modifiers)

    def apply(self, text: str, context: ModifierContext | None = None) -> str:
        """Run each modifier once, in priority order, on the cumulative text.

        A modifier's condition sees the output of every modifier that ran
        before it.
        """
        if context is None:
            context = ModifierContext()
        for modifier in self.modifiers():
            if modifier.condition(text, context):
                text = modifier.transform(text, context)
        return text
