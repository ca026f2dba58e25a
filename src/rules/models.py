"""Rule variants for the grammar engine.

Each variant validates its own structure on construction and knows how to
generate one raw value (which may still contain tokens for the expander).
"""

import math
import numbers
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Mapping

from errors import (
    FunctionRuleError,
    NoMatchingConditionError,
    RuleDefinitionError,
    WeightValidationError,
)
from seeded_random import SeededRandom
from tokens import find_variables, is_back_reference, token

WEIGHT_TOLERANCE = 1e-4

Context = Mapping[str, str]
Predicate = Callable[[Context], bool]
Generator = Callable[[], list[str]]


class RuleType(str, Enum):
    """Rule variants, declared in resolution priority order."""
    FUNCTION = "function"
    CONDITIONAL = "conditional"
    SEQUENTIAL = "sequential"
    RANGE = "range"
    TEMPLATE = "template"
    WEIGHTED = "weighted"
    STATIC = "static"


# First table holding a name wins during resolution
RESOLUTION_ORDER: tuple[RuleType, ...] = tuple(RuleType)


def _check_values(values, what: str = "Rule values", allow_empty: bool = True) -> list[str]:
    if isinstance(values, (str, bytes)) or not isinstance(values, (list, tuple)):
        raise RuleDefinitionError(f"{what} must be a list of strings")
    if not allow_empty and len(values) == 0:
        raise RuleDefinitionError(f"{what} must be a non-empty list")
    for value in values:
        if not isinstance(value, str):
            raise RuleDefinitionError(f"{what} must contain only strings, got {type(value).__name__}")
    return list(values)


def _is_number(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def format_number(value: float) -> str:
    """Render a generated number; integral values print without a decimal part."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass
class StaticRule:
    values: list[str]
    rule_type = RuleType.STATIC

    def __post_init__(self):
        self.values = _check_values(self.values)

    def generate(self, name: str, context: Context, rng: SeededRandom) -> str | None:
        if not self.values:
            return None
        return rng.random_choice(self.values)


@dataclass
class FunctionRule:
    """Dynamic rule: the generator is called on every resolution, never cached."""
    generator: Generator
    rule_type = RuleType.FUNCTION

    def __post_init__(self):
        if not callable(self.generator):
            raise RuleDefinitionError("Function rule generator must be callable")

    def generate(self, name: str, context: Context, rng: SeededRandom) -> str | None:
        try:
            values = self.generator()
        except Exception as e:
            raise FunctionRuleError(name, str(e)) from e
        if not isinstance(values, (list, tuple)):
            raise FunctionRuleError(name, f"function must return a list, got {type(values).__name__}")
        if len(values) == 0:
            return None
        return str(rng.random_choice(values))


@dataclass
class WeightedRule:
    values: list[str]
    weights: list[float]
    cumulative_weights: list[float] = field(init=False)
    rule_type = RuleType.WEIGHTED

    def __post_init__(self):
        self.values = _check_values(self.values, allow_empty=False)
        if isinstance(self.weights, (str, bytes)) or not isinstance(self.weights, (list, tuple)):
            raise WeightValidationError("Rule weights must be a list of numbers")
        if len(self.values) != len(self.weights):
            raise WeightValidationError("Values and weights must have the same length")
        for weight in self.weights:
            if not _is_number(weight) or weight < 0 or math.isnan(weight):
                raise WeightValidationError("All weights must be non-negative numbers")

        total = math.fsum(self.weights)
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            raise WeightValidationError(f"Weights must sum to 1.0, got {total}")

        self.weights = [float(w) for w in self.weights]
        self.cumulative_weights = []
        running = 0.0
        for weight in self.weights:
            running += weight
            self.cumulative_weights.append(running)

    def generate(self, name: str, context: Context, rng: SeededRandom) -> str | None:
        return rng.weighted_choice(self.values, self.cumulative_weights)


@dataclass
class Condition:
    """One branch of a conditional rule: a predicate with values, or a default."""
    predicate: Predicate | None = None
    values: list[str] | None = None
    default: list[str] | None = None

    @property
    def is_default(self) -> bool:
        return self.default is not None

    @property
    def branch_values(self) -> list[str]:
        if self.default is not None:
            return self.default
        return self.values or []


@dataclass
class ConditionalRule:
    conditions: list[Condition]
    rule_type = RuleType.CONDITIONAL

    def __post_init__(self):
        if not isinstance(self.conditions, (list, tuple)):
            raise RuleDefinitionError("Conditional rule must have a list of conditions")
        if len(self.conditions) == 0:
            raise RuleDefinitionError("Conditions list cannot be empty")

        conditions = []
        has_default = False
        for condition in self.conditions:
            if isinstance(condition, Mapping):
                condition = Condition(
                    predicate=condition.get("if"),
                    values=condition.get("then"),
                    default=condition.get("default"),
                )
            if not isinstance(condition, Condition):
                raise RuleDefinitionError("Each condition must be a Condition or a mapping")

            if condition.default is not None:
                if condition.predicate is not None or condition.values is not None:
                    raise RuleDefinitionError('A condition has either "if/then" or "default", not both')
                if has_default:
                    raise RuleDefinitionError("Only one default condition is allowed")
                has_default = True
                condition = Condition(
                    default=_check_values(condition.default, "Default values", allow_empty=False)
                )
            elif condition.predicate is not None and condition.values is not None:
                if not callable(condition.predicate):
                    raise RuleDefinitionError('Condition "if" must be callable')
                condition = Condition(
                    predicate=condition.predicate,
                    values=_check_values(condition.values, 'Condition "then"', allow_empty=False),
                )
            else:
                raise RuleDefinitionError('Each condition must have either "if/then" or "default"')
            conditions.append(condition)
        self.conditions = conditions

    def generate(self, name: str, context: Context, rng: SeededRandom) -> str | None:
        default = None
        for condition in self.conditions:
            if condition.is_default:
                default = condition
            elif condition.predicate(context):
                return rng.random_choice(condition.values)
        if default is not None:
            return rng.random_choice(default.default)
        raise NoMatchingConditionError(name)


@dataclass
class SequentialRule:
    values: list[str]
    cycle: bool = True
    index: int = 0
    rule_type = RuleType.SEQUENTIAL

    def __post_init__(self):
        self.values = _check_values(self.values, "Sequential values", allow_empty=False)
        self.cycle = bool(self.cycle)
        self.index = 0

    def generate(self, name: str, context: Context, rng: SeededRandom) -> str | None:
        if self.index >= len(self.values):
            if not self.cycle:
                return self.values[-1]
            self.index = 0
        value = self.values[self.index]
        self.index += 1
        return value

    def reset(self) -> None:
        self.index = 0


@dataclass
class RangeRule:
    min: float
    max: float
    step: float | None = None
    kind: str = "integer"
    rule_type = RuleType.RANGE

    def __post_init__(self):
        if not _is_number(self.min) or not _is_number(self.max):
            raise RuleDefinitionError("Min and max must be numbers")
        if self.min >= self.max:
            raise RuleDefinitionError("Min must be less than max")
        if self.step is not None and (not _is_number(self.step) or self.step <= 0):
            raise RuleDefinitionError("Step must be a positive number")
        if self.kind not in ("integer", "float"):
            raise RuleDefinitionError('Type must be "integer" or "float"')

    def step_count(self) -> int:
        """Number of discrete values; ranges without a step are sized with step=1."""
        step = self.step if self.step is not None else 1
        return math.floor((self.max - self.min) / step) + 1

    def value_at(self, index: int) -> str:
        step = self.step if self.step is not None else 1
        return self._render(self.min + index * step, stepped=True)

    def generate(self, name: str, context: Context, rng: SeededRandom) -> str | None:
        if self.step is not None:
            return self._render(self.min + rng.random_int(0, self.step_count()) * self.step, stepped=True)
        return self._render(self.min + rng.random() * (self.max - self.min), stepped=False)

    def _render(self, value: float, stepped: bool) -> str:
        if self.kind == "integer":
            # Stepped values round half up; continuous draws floor
            return str(math.floor(value + 0.5) if stepped else math.floor(value))
        return format_number(value)


@dataclass
class TemplateRule:
    """Template whose own tokens are filled from a local variable map.

    Tokens left over after local substitution (from the chosen values) are
    resolved globally by the expander.
    """
    template: str
    variables: dict[str, list[str]]
    rule_type = RuleType.TEMPLATE

    def __post_init__(self):
        if not isinstance(self.template, str) or not self.template:
            raise RuleDefinitionError("Template must be a non-empty string")
        if not isinstance(self.variables, Mapping):
            raise RuleDefinitionError("Template variables must be a mapping")

        variables = {}
        for var_name, values in self.variables.items():
            variables[var_name] = _check_values(values, f"Template variable '{var_name}'")
        for var_name in self.template_variables():
            if var_name not in variables:
                raise RuleDefinitionError(f"Template variable '{var_name}' not found in variables")
            if not variables[var_name]:
                raise RuleDefinitionError(f"Template variable '{var_name}' must have at least one value")
        self.variables = variables

    def template_variables(self) -> list[str]:
        return [name for name in find_variables(self.template) if not is_back_reference(name)]

    def generate(self, name: str, context: Context, rng: SeededRandom) -> str | None:
        result = self.template
        for var_name in self.template_variables():
            result = result.replace(token(var_name), rng.random_choice(self.variables[var_name]))
        return result


Rule = StaticRule | FunctionRule | WeightedRule | ConditionalRule | SequentialRule | RangeRule | TemplateRule
