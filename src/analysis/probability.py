"""Outcome distributions for grammar rules."""

import logging
import math

from config import AnalysisConfig
from errors import UnknownRuleError
from models import OutcomeProbability, ProbabilityAnalysis
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
from tokens import is_back_reference, split_tokens, token

logger = logging.getLogger(__name__)

Outcomes = list[tuple[str, float]]


class _Walk:
    """Per-call state: warning log and outcome budget."""

    def __init__(self, max_depth: int, max_outcomes: int):
        self.max_depth = max_depth
        self.max_outcomes = max_outcomes
        self.warnings: list[str] = []
        self.truncated = False
        self.dynamic = False

    def warn(self, message: str) -> None:
        if message not in self.warnings:
            self.warnings.append(message)

    def truncate(self) -> None:
        self.truncated = True
        self.warn(f"Maximum outcomes ({self.max_outcomes}) reached, distribution is truncated")

    def combine(self, left: Outcomes, right: Outcomes, join) -> Outcomes:
        """Capped cartesian product of two outcome lists."""
        combined: Outcomes = []
        for a, p in left:
            for b, q in right:
                if len(combined) >= self.max_outcomes:
                    self.truncate()
                    return combined
                combined.append((join(a, b), p * q))
        return combined

    def extend(self, outcomes: Outcomes, more: Outcomes) -> None:
        room = self.max_outcomes - len(outcomes)
        if len(more) > room:
            self.truncate()
        outcomes.extend(more[:max(room, 0)])


class ProbabilityAnalyzer:
    """Enumerates outcomes with their probabilities.

    Like the complexity count, every token occurrence is expanded on its own
    and back-references stay literal. References that cannot be followed are
    replaced by bracketed markers: ``[missing:x]``, ``[circular:x]``,
    ``[max-depth:x]`` and ``[function:x]``.
    """

    def __init__(self, store: RuleStore, config: AnalysisConfig | None = None):
        self.store = store
        self.config = config or AnalysisConfig()

    def calculate_probabilities(
        self,
        name: str,
        max_depth: int | None = None,
        max_outcomes: int | None = None,
    ) -> ProbabilityAnalysis:
        """Compute the outcome distribution of a rule.

        Args:
            name: Rule to analyze
            max_depth: Path length at which recursion stops (defaults to config)
            max_outcomes: Enumeration cap (defaults to config)

        Returns:
            ProbabilityAnalysis with outcomes sorted most probable first

        Raises:
            UnknownRuleError: If no rule of any type is named ``name``
        """
        if not self.store.has_any(name):
            raise UnknownRuleError(name)

        walk = _Walk(
            max_depth if max_depth is not None else self.config.max_depth,
            max_outcomes if max_outcomes is not None else self.config.max_outcomes,
        )
        raw = self._rule_outcomes(name, frozenset(), walk)
        if self.config.merge_duplicate_outcomes:
            raw = _merge(raw)

        outcomes = sorted(
            (OutcomeProbability(outcome=o, probability=p) for o, p in raw),
            key=lambda o: o.probability,
            reverse=True,
        )
        if walk.truncated:
            logger.debug(f"Probability enumeration for '{name}' stopped at {walk.max_outcomes} outcomes")

        return ProbabilityAnalysis(
            rule_name=name,
            outcomes=outcomes,
            total_outcomes=len(outcomes),
            most_probable=outcomes[:10],
            least_probable=outcomes[-10:][::-1],
            average_probability=sum(o.probability for o in outcomes) / len(outcomes) if outcomes else 0.0,
            entropy=_entropy(o.probability for o in outcomes),
            is_finite=not walk.dynamic,
            warnings=walk.warnings,
        )

    def most_probable_outcome(self, name: str, **kwargs) -> OutcomeProbability | None:
        analysis = self.calculate_probabilities(name, **kwargs)
        return analysis.most_probable[0] if analysis.most_probable else None

    def least_probable_outcome(self, name: str, **kwargs) -> OutcomeProbability | None:
        analysis = self.calculate_probabilities(name, **kwargs)
        return analysis.least_probable[0] if analysis.least_probable else None

    def _rule_outcomes(self, name: str, visited: frozenset[str], walk: _Walk) -> Outcomes:
        if name in visited:
            walk.warn(f"Circular reference detected for rule '{name}'")
            return [(f"[circular:{name}]", 1.0)]
        if len(visited) >= walk.max_depth:
            walk.warn(f"Maximum depth ({walk.max_depth}) reached for rule '{name}'")
            return [(f"[max-depth:{name}]", 1.0)]

        rule = self.store.get_rule(name)
        if rule is None:
            walk.warn(f"Missing rule '{name}' referenced in expansion")
            return [(f"[missing:{name}]", 1.0)]

        path = visited | {name}

        if isinstance(rule, FunctionRule):
            walk.dynamic = True
            walk.warn(f"Function rule '{name}' has dynamic outcomes - cannot calculate exact probabilities")
            return [(f"[function:{name}]", 1.0)]

        if isinstance(rule, RangeRule):
            return self._range_outcomes(name, rule, walk)

        if isinstance(rule, TemplateRule):
            return self._template_outcomes(rule, path, walk)

        if isinstance(rule, WeightedRule):
            total = sum(rule.weights)
            weighted = [(v, w / total) for v, w in zip(rule.values, rule.weights)]
        elif isinstance(rule, ConditionalRule):
            branch_p = 1.0 / len(rule.conditions)
            weighted = [
                (v, branch_p / len(c.branch_values))
                for c in rule.conditions
                for v in c.branch_values
            ]
        elif isinstance(rule, (StaticRule, SequentialRule)):
            if not rule.values:
                # An empty static rule leaves its token unexpanded
                return [(token(name), 1.0)]
            weighted = [(v, 1.0 / len(rule.values)) for v in rule.values]
        else:
            walk.warn(f"Unknown rule type for '{name}'")
            return [(token(name), 1.0)]

        outcomes: Outcomes = []
        for value, probability in weighted:
            if len(outcomes) >= walk.max_outcomes:
                walk.truncate()
                break
            walk.extend(outcomes, self._text_outcomes(value, probability, path, walk))
        return outcomes

    def _range_outcomes(self, name: str, rule: RangeRule, walk: _Walk) -> Outcomes:
        if rule.step is None and self.config.continuous_ranges_infinite:
            walk.dynamic = True
            walk.warn(f"Range rule '{name}' has no step; continuous ranges are unbounded")
            return [(f"[range:{name}]", 1.0)]

        count = rule.step_count()
        if count > walk.max_outcomes:
            walk.truncate()
        return [(rule.value_at(i), 1.0 / count) for i in range(min(count, walk.max_outcomes))]

    def _template_outcomes(self, rule: TemplateRule, path: frozenset[str], walk: _Walk) -> Outcomes:
        partial: Outcomes = [(rule.template, 1.0)]
        for var_name in rule.template_variables():
            values = rule.variables[var_name]
            choices = [(value, 1.0 / len(values)) for value in values]
            partial = walk.combine(
                partial, choices, lambda text, value, var_name=var_name: text.replace(token(var_name), value)
            )

        # Whatever tokens remain came from the local values and resolve globally
        outcomes: Outcomes = []
        for text, probability in partial:
            if len(outcomes) >= walk.max_outcomes:
                walk.truncate()
                break
            walk.extend(outcomes, self._text_outcomes(text, probability, path, walk))
        return outcomes

    def _text_outcomes(self, text: str, probability: float, path: frozenset[str], walk: _Walk) -> Outcomes:
        """Expand every token occurrence in text, multiplying probabilities."""
        partial: Outcomes = [("", probability)]
        for segment, is_token in split_tokens(text):
            if not is_token:
                partial = [(prefix + segment, p) for prefix, p in partial]
            elif is_back_reference(segment):
                partial = [(prefix + token(segment), p) for prefix, p in partial]
            else:
                nested = self._rule_outcomes(segment, path, walk)
                partial = walk.combine(partial, nested, str.__add__)
        return partial


def _merge(outcomes: Outcomes) -> Outcomes:
    merged: dict[str, float] = {}
    for outcome, probability in outcomes:
        merged[outcome] = merged.get(outcome, 0.0) + probability
    return list(merged.items())


def _entropy(probabilities) -> float:
    return max(0.0, -sum(p * math.log2(p) for p in probabilities if p > 0))
