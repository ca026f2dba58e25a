"""Static count of the distinct outcomes a rule can produce."""

import logging
import math

from config import AnalysisConfig
from errors import UnknownRuleError
from models import ComplexityResult, TotalComplexityResult
from rules.models import (
    ConditionalRule,
    FunctionRule,
    RangeRule,
    SequentialRule,
    StaticRule,
    TemplateRule,
    WeightedRule,
)
from rules.store import RuleStore
from tokens import is_back_reference, split_tokens

logger = logging.getLogger(__name__)


def _circular_warning(name: str) -> str:
    return f"Circular reference detected for rule '{name}'"


class ComplexityAnalyzer:
    """Counts outcomes by walking rule values and multiplying nested tokens.

    Each token occurrence counts independently, matching how the expander
    re-rolls every occurrence. Back-references contribute a factor of 1.
    Missing, circular and too-deep references also contribute 1 and leave a
    warning; only an unknown top-level rule name raises.
    """

    def __init__(self, store: RuleStore, config: AnalysisConfig | None = None):
        self.store = store
        self.config = config or AnalysisConfig()

    def rule_complexity(
        self,
        name: str,
        visited: frozenset[str] = frozenset(),
        max_depth: int | None = None,
    ) -> ComplexityResult:
        """Count the outcomes of one rule.

        Args:
            name: Rule to analyze
            visited: Rules already on the current analysis path
            max_depth: Path length at which recursion stops (defaults to config)

        Returns:
            ComplexityResult; complexity is math.inf for dynamic rules

        Raises:
            UnknownRuleError: If no rule of any type is named ``name``
        """
        if max_depth is None:
            max_depth = self.config.max_depth
        rule = self.store.get_rule(name)
        if rule is None:
            raise UnknownRuleError(name)

        if name in visited:
            return ComplexityResult(
                rule_name=name, complexity=1, rule_type="circular",
                depth=len(visited), warnings=[_circular_warning(name)],
            )
        if len(visited) >= max_depth:
            return ComplexityResult(
                rule_name=name, complexity=1, rule_type="max-depth", depth=len(visited),
                warnings=[f"Maximum depth ({max_depth}) reached, complexity may be underestimated"],
            )

        path = visited | {name}
        variables: dict[str, None] = {}
        warnings: list[str] = []

        if isinstance(rule, FunctionRule):
            complexity = math.inf
            warnings.append(f"Function rule '{name}' has infinite complexity (cannot be calculated)")
        elif isinstance(rule, RangeRule):
            complexity = self._range_complexity(name, rule, warnings)
        elif isinstance(rule, TemplateRule):
            complexity = self._template_complexity(name, rule, path, max_depth, variables, warnings)
        elif isinstance(rule, ConditionalRule):
            complexity = self._values_complexity(
                name, [v for c in rule.conditions for v in c.branch_values],
                path, max_depth, variables, warnings,
            )
        elif isinstance(rule, (StaticRule, WeightedRule, SequentialRule)):
            complexity = self._values_complexity(name, rule.values, path, max_depth, variables, warnings)
        else:
            complexity = 1
            warnings.append(f"Unknown rule type for '{name}'")

        return ComplexityResult(
            rule_name=name,
            complexity=complexity,
            rule_type=rule.rule_type.value,
            is_finite=not math.isinf(complexity),
            variables=list(variables),
            depth=len(visited),
            warnings=warnings,
        )

    def total_complexity(self, max_depth: int | None = None) -> TotalComplexityResult:
        """Aggregate rule_complexity over every registered name."""
        results = [self.rule_complexity(name, max_depth=max_depth) for name in self.store.names()]

        warnings: dict[str, None] = {}
        circular: list[str] = []
        for result in results:
            for warning in result.warnings:
                warnings.setdefault(warning, None)
            if any(w.startswith("Circular reference") for w in result.warnings):
                circular.append(result.rule_name)

        finite = [r for r in results if r.is_finite]
        is_finite = len(finite) == len(results)
        total = sum(r.complexity for r in finite) if is_finite else math.inf
        average = sum(r.complexity for r in finite) / len(finite) if finite else 0.0

        return TotalComplexityResult(
            total_complexity=total,
            is_finite=is_finite,
            rule_count=len(results),
            complexity_by_rule=results,
            average_complexity=average,
            most_complex_rules=sorted(finite, key=lambda r: r.complexity, reverse=True)[:5],
            warnings=list(warnings),
            circular_references=circular,
        )

    def _range_complexity(self, name: str, rule: RangeRule, warnings: list[str]) -> int | float:
        if rule.step is None and self.config.continuous_ranges_infinite:
            warnings.append(f"Range rule '{name}' has no step; continuous ranges are unbounded")
            return math.inf
        return rule.step_count()

    def _template_complexity(
        self,
        name: str,
        rule: TemplateRule,
        path: frozenset[str],
        max_depth: int,
        variables: dict[str, None],
        warnings: list[str],
    ) -> int | float:
        # All occurrences of a template variable share one choice
        total = 1
        for var_name in rule.template_variables():
            variables.setdefault(var_name, None)
            count = self._values_complexity(
                name, rule.variables[var_name], path, max_depth, variables, warnings
            )
            if math.isinf(count):
                return math.inf
            total *= count
        return total

    def _values_complexity(
        self,
        name: str,
        values: list[str],
        path: frozenset[str],
        max_depth: int,
        variables: dict[str, None],
        warnings: list[str],
    ) -> int | float:
        total = 0
        for value in values:
            count = self._value_complexity(name, value, path, max_depth, variables, warnings)
            if math.isinf(count):
                return math.inf
            total += count
        return total

    def _value_complexity(
        self,
        name: str,
        value: str,
        path: frozenset[str],
        max_depth: int,
        variables: dict[str, None],
        warnings: list[str],
    ) -> int | float:
        product = 1
        for segment, is_token in split_tokens(value):
            if not is_token:
                continue
            variables.setdefault(segment, None)
            if is_back_reference(segment):
                continue
            if segment in path:
                warnings.append(_circular_warning(segment))
            elif len(path) >= max_depth:
                warnings.append(
                    f"Maximum depth ({max_depth}) reached while analyzing '{segment}', "
                    "complexity may be underestimated"
                )
            elif self.store.has_any(segment):
                nested = self.rule_complexity(segment, path, max_depth)
                warnings.extend(nested.warnings)
                if not nested.is_finite:
                    return math.inf
                product *= nested.complexity
            else:
                warnings.append(f"Missing rule '{segment}' referenced in '{name}'")
        return product
