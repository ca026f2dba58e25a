"""Structural checks over a grammar."""

import re

from models import ValidationResult
from rules.store import RuleStore
from tokens import find_variables, is_back_reference

ROOT_RULE_PATTERN = re.compile(
    r"^(main|start|root|entry|begin|sentence|story|text|output|origin|template|pattern|format)$",
    re.IGNORECASE,
)


def is_root_rule(name: str) -> bool:
    """Conventional entry-point names are never reported as unreachable."""
    return bool(ROOT_RULE_PATTERN.match(name))


class GrammarValidator:
    """Finds missing, self-referencing, empty and unreachable rules.

    Only static rule values are scanned for references; every rule type counts
    when checking whether a referenced name exists.
    """

    def __init__(self, store: RuleStore):
        self.store = store

    def validate(self) -> ValidationResult:
        missing: list[str] = []
        circular: list[str] = []
        empty: list[str] = []
        referenced: set[str] = set()

        static = self.store.static_grammar()
        for name, values in static.items():
            if not values or all(not value.strip() for value in values):
                empty.append(name)

            references = [
                ref for value in values for ref in find_variables(value)
                if not is_back_reference(ref)
            ]
            for ref in references:
                referenced.add(ref)
                if not self.store.has_any(ref) and ref not in missing:
                    missing.append(ref)
            if name in references:
                circular.append(name)

        all_names = self.store.names()
        unreachable = [name for name in all_names if name not in referenced and not is_root_rule(name)]

        warnings = []
        if empty:
            warnings.append(f"Found {len(empty)} empty rules that may cause issues")
        if len(unreachable) > 5:
            warnings.append(f"Found {len(unreachable)} unreachable rules - consider cleanup")
        if len(all_names) > 100:
            warnings.append(f"Large grammar with {len(all_names)} rules - consider organizing into groups")
        if not all_names:
            warnings.append("Grammar has no rules")

        return ValidationResult(
            is_valid=not missing and not circular and not empty,
            missing_rules=missing,
            circular_references=circular,
            empty_rules=empty,
            unreachable_rules=unreachable,
            warnings=warnings,
        )

    def validate_text(self, text: str) -> list[str]:
        """Names referenced in text that no rule defines."""
        return [
            name for name in find_variables(text)
            if not is_back_reference(name) and not self.store.has_any(name)
        ]

    def summary(self) -> str:
        result = self.validate()
        lines = ["Grammar validation passed" if result.is_valid else "Grammar validation failed"]
        if result.missing_rules:
            lines.append(f"Missing rules: {', '.join(result.missing_rules)}")
        if result.circular_references:
            lines.append(f"Circular references: {', '.join(result.circular_references)}")
        if result.empty_rules:
            lines.append(f"Empty rules: {', '.join(result.empty_rules)}")
        if result.unreachable_rules:
            shown = ", ".join(result.unreachable_rules[:5])
            more = "..." if len(result.unreachable_rules) > 5 else ""
            lines.append(f"Unreachable rules: {shown}{more}")
        if result.warnings:
            lines.append("Warnings:")
            lines.extend(f"  - {warning}" for warning in result.warnings)
        return "\n".join(lines)
