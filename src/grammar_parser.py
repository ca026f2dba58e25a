"""Parser façade: rule registration, parsing, modifiers and analysis in one object."""

import logging
import time
from typing import Callable, Iterable, Mapping

from analysis.complexity import ComplexityAnalyzer
from analysis.probability import ProbabilityAnalyzer
from analysis.validator import GrammarValidator, is_root_rule
from config import AnalysisConfig, EngineConfig, SafeParseConfig, settings
from english_modifiers import ALL_ENGLISH_MODIFIERS, DEFAULT_ENGLISH_MODIFIERS
from errors import ErrorAdvisor, GrammarError, RecursionDepthError
from expander import VariableExpander
from modifiers import Modifier, ModifierContext, ModifierPipeline
from models import (
    ComplexityResult,
    OptimizationReport,
    OutcomeProbability,
    ParseOptions,
    ParseResult,
    ParserConfig,
    ParserSettings,
    ParserStats,
    ParseTiming,
    ParseTimingResult,
    ProbabilityAnalysis,
    TotalComplexityResult,
    ValidationResult,
)
from rules.models import Condition, RuleType
from rules.store import RuleStore
from seeded_random import SeededRandom
from tokens import find_variables

logger = logging.getLogger(__name__)


def _check_text(text) -> None:
    if not isinstance(text, str):
        raise TypeError("Text must be a string")


class Parser:
    """Combinatorial text generator.

    A Parser owns its rules, parse context, sequential indices and RNG.
    Instances are not thread-safe: use one Parser per thread of control.

    Example:
        parser = Parser()
        parser.add_rule("animal", ["cat", "dog"])
        parser.parse("The %animal% sat next to another %@animal%.")
    """

    def __init__(
        self,
        config: EngineConfig | None = None,
        analysis_config: AnalysisConfig | None = None,
        safe_parse_config: SafeParseConfig | None = None,
    ):
        config = config or settings.engine
        self.analysis_config = analysis_config or settings.analysis
        self.safe_parse_config = safe_parse_config or settings.safe_parse

        self.rules = RuleStore()
        self.rng = SeededRandom(config.random_seed)
        self.expander = VariableExpander(self.rules, self.rng, config.max_depth)
        self.modifiers = ModifierPipeline()
        self.validator = GrammarValidator(self.rules)
        self.complexity = ComplexityAnalyzer(self.rules, self.analysis_config)
        self.probability = ProbabilityAnalyzer(self.rules, self.analysis_config)
        self.advisor = ErrorAdvisor(self.rules, self.validator)

    # Static rules

    def add_rule(self, name: str, values: list[str]) -> None:
        self.rules.add_static(name, values)

    def add_rules(self, rules: Mapping[str, list[str]]) -> None:
        for name, values in rules.items():
            self.add_rule(name, values)

    def has_rule(self, name: str) -> bool:
        """True if a rule of any type is registered under name."""
        return self.rules.has_any(name)

    def remove_rule(self, name: str) -> bool:
        """Remove name from every rule type; True if anything was removed."""
        return self.rules.remove_any(name)

    def has_static_rule(self, name: str) -> bool:
        return self.rules.has(name, RuleType.STATIC)

    def remove_static_rule(self, name: str) -> bool:
        return self.rules.remove(name, RuleType.STATIC)

    def clear_static_rules(self) -> None:
        self.rules.clear(RuleType.STATIC)

    # Function rules

    def add_function_rule(self, name: str, generator: Callable[[], list[str]]) -> None:
        self.rules.add_function(name, generator)

    def has_function_rule(self, name: str) -> bool:
        return self.rules.has(name, RuleType.FUNCTION)

    def remove_function_rule(self, name: str) -> bool:
        return self.rules.remove(name, RuleType.FUNCTION)

    def clear_function_rules(self) -> None:
        self.rules.clear(RuleType.FUNCTION)

    # Weighted rules

    def add_weighted_rule(self, name: str, values: list[str], weights: list[float]) -> None:
        self.rules.add_weighted(name, values, weights)

    def has_weighted_rule(self, name: str) -> bool:
        return self.rules.has(name, RuleType.WEIGHTED)

    def remove_weighted_rule(self, name: str) -> bool:
        return self.rules.remove(name, RuleType.WEIGHTED)

    def clear_weighted_rules(self) -> None:
        self.rules.clear(RuleType.WEIGHTED)

    # Conditional rules

    def add_conditional_rule(self, name: str, conditions: Iterable[Condition | Mapping]) -> None:
        """Register a rule whose values depend on the parse context.

        Each condition is a Condition or a mapping with either ``if`` (a
        predicate taking the context) and ``then`` (values), or ``default``.
        Predicates are tried in order; the default applies only if none match,
        even when it is declared ahead of a predicate that does match. Put the
        default last if declaration order should decide instead.
        """
        self.rules.add_conditional(name, conditions)

    def has_conditional_rule(self, name: str) -> bool:
        return self.rules.has(name, RuleType.CONDITIONAL)

    def remove_conditional_rule(self, name: str) -> bool:
        return self.rules.remove(name, RuleType.CONDITIONAL)

    def clear_conditional_rules(self) -> None:
        self.rules.clear(RuleType.CONDITIONAL)

    # Sequential rules

    def add_sequential_rule(self, name: str, values: list[str], cycle: bool = True) -> None:
        self.rules.add_sequential(name, values, cycle=cycle)

    def has_sequential_rule(self, name: str) -> bool:
        return self.rules.has(name, RuleType.SEQUENTIAL)

    def remove_sequential_rule(self, name: str) -> bool:
        return self.rules.remove(name, RuleType.SEQUENTIAL)

    def clear_sequential_rules(self) -> None:
        self.rules.clear(RuleType.SEQUENTIAL)

    def reset_sequential_rule(self, name: str) -> bool:
        return self.rules.reset_sequential(name)

    # Range rules

    def add_range_rule(
        self,
        name: str,
        min: float,
        max: float,
        step: float | None = None,
        kind: str = "integer",
    ) -> None:
        self.rules.add_range(name, min, max, step=step, kind=kind)

    def has_range_rule(self, name: str) -> bool:
        return self.rules.has(name, RuleType.RANGE)

    def remove_range_rule(self, name: str) -> bool:
        return self.rules.remove(name, RuleType.RANGE)

    def clear_range_rules(self) -> None:
        self.rules.clear(RuleType.RANGE)

    # Template rules

    def add_template_rule(self, name: str, template: str, variables: Mapping[str, list[str]]) -> None:
        self.rules.add_template(name, template, variables)

    def has_template_rule(self, name: str) -> bool:
        return self.rules.has(name, RuleType.TEMPLATE)

    def remove_template_rule(self, name: str) -> bool:
        return self.rules.remove(name, RuleType.TEMPLATE)

    def clear_template_rules(self) -> None:
        self.rules.clear(RuleType.TEMPLATE)

    # Whole grammar

    def clear(self) -> None:
        """Remove every rule and the parse context. Modifiers are kept."""
        self.rules.clear_all()
        self.expander.clear_context()

    def clear_all(self) -> None:
        self.clear()
        self.modifiers.clear()

    def get_rule_type(self, name: str) -> str | None:
        rule_type = self.rules.get_type(name)
        return rule_type.value if rule_type else None

    def get_grammar(self) -> dict[str, list[str]]:
        return self.rules.static_grammar()

    # Modifiers

    def add_modifier(self, modifier: Modifier) -> None:
        self.modifiers.add(modifier)

    def remove_modifier(self, name: str) -> bool:
        return self.modifiers.remove(name)

    def has_modifier(self, name: str) -> bool:
        return self.modifiers.has(name)

    def clear_modifiers(self) -> None:
        self.modifiers.clear()

    def get_modifiers(self) -> list[Modifier]:
        return self.modifiers.modifiers()

    def load_modifier(self, modifier: Modifier) -> None:
        self.modifiers.add(modifier)

    def load_modifiers(self, modifiers: Iterable[Modifier]) -> None:
        self.modifiers.load(modifiers)

    def use_english_modifiers(self, ordinals: bool = False) -> None:
        """Load the English modifiers; ordinal suffixes are opt-in."""
        self.modifiers.load(ALL_ENGLISH_MODIFIERS if ordinals else DEFAULT_ENGLISH_MODIFIERS)

    # Parsing

    def parse(self, text: str, preserve_context: bool = False) -> str:
        """Expand all tokens in text and run the modifiers over the result.

        Args:
            text: Input containing %name% and %@name% tokens
            preserve_context: Keep values resolved by earlier parses

        Returns:
            Generated text; tokens without a rule are left as-is

        Raises:
            TypeError: If text is not a string
            RecursionDepthError: If nesting exceeds the max depth
            FunctionRuleError: If a function rule fails
            NoMatchingConditionError: If a conditional rule matches nothing
        """
        _check_text(text)
        expanded = self.expander.expand(text, preserve_context=preserve_context)
        return self.modifiers.apply(expanded, ModifierContext(original_text=text))

    def parse_with_timing(self, text: str, preserve_context: bool = False) -> ParseTimingResult:
        _check_text(text)
        start = time.perf_counter()
        expanded = self.expander.expand(text, preserve_context=preserve_context)
        expanded_at = time.perf_counter()
        result = self.modifiers.apply(expanded, ModifierContext(original_text=text))
        end = time.perf_counter()

        return ParseTimingResult(
            result=result,
            timing=ParseTiming(
                total_ms=(end - start) * 1000,
                expansion_ms=(expanded_at - start) * 1000,
                modifier_ms=(end - expanded_at) * 1000,
            ),
        )

    def safe_parse(self, text: str, options: ParseOptions | None = None) -> ParseResult:
        """Parse without raising engine errors.

        Validates the grammar first (unless disabled), then retries up to
        ``max_attempts`` times. After a recursion-depth failure the next
        attempt runs with a reduced max depth; the configured depth is always
        restored afterwards.
        """
        _check_text(text)
        options = options or ParseOptions(max_attempts=self.safe_parse_config.max_attempts)

        if options.validate_first:
            validation = self.validate()
            if not validation.is_valid:
                return ParseResult(
                    success=False,
                    error=(
                        f"Validation failed: {len(validation.missing_rules)} missing rules, "
                        f"{len(validation.circular_references)} circular references, "
                        f"{len(validation.empty_rules)} empty rules"
                    ),
                    validation=validation,
                )

        policy = self.safe_parse_config
        original_depth = self.expander.max_depth
        last_error: GrammarError | None = None
        try:
            for attempt in range(1, options.max_attempts + 1):
                try:
                    result = self.parse(text, preserve_context=options.preserve_context)
                    return ParseResult(success=True, result=result, attempts=attempt)
                except RecursionDepthError as e:
                    last_error = e
                    reduced = max(policy.min_depth, int(self.expander.max_depth * policy.depth_reduction))
                    logger.debug(f"Parse attempt {attempt} hit max depth; retrying with depth {reduced}")
                    self.expander.set_max_depth(reduced)
                except GrammarError as e:
                    last_error = e
                    logger.debug(f"Parse attempt {attempt} failed: {e}")
        finally:
            self.expander.set_max_depth(original_depth)

        logger.warning(f"safe_parse gave up after {options.max_attempts} attempts: {last_error}")
        return ParseResult(success=False, error=str(last_error), attempts=options.max_attempts)

    def parse_batch(self, texts: Iterable[str], preserve_context: bool = True) -> list[str]:
        """Parse texts in order; the first always starts from a fresh context."""
        return [
            self.parse(text, preserve_context=preserve_context and i > 0)
            for i, text in enumerate(texts)
        ]

    def generate_variations(self, text: str, count: int, seed: int | None = None) -> list[str]:
        """Parse text ``count`` times with fresh contexts.

        With a seed, variation i is generated under seed + i. The parser's own
        seed setting is restored afterwards.
        """
        _check_text(text)
        if isinstance(count, bool) or not isinstance(count, int) or count < 1:
            raise ValueError("Count must be a positive integer")

        original_seed = self.rng.get_seed()
        try:
            variations = []
            for i in range(count):
                if seed is not None:
                    self.rng.set_seed(seed + i)
                variations.append(self.parse(text))
            return variations
        finally:
            if original_seed is not None:
                self.rng.set_seed(original_seed)
            else:
                self.rng.clear_seed()

    # Configuration

    def set_max_depth(self, depth: int) -> None:
        self.expander.set_max_depth(depth)

    def get_max_depth(self) -> int:
        return self.expander.max_depth

    def set_random_seed(self, seed: int) -> None:
        self.rng.set_seed(seed)

    def clear_random_seed(self) -> None:
        self.rng.clear_seed()

    def get_random_seed(self) -> int | None:
        return self.rng.get_seed()

    def get_context(self) -> dict[str, str]:
        return self.expander.context

    def clear_references(self) -> None:
        self.expander.clear_context()

    # Introspection

    def find_variables(self, text: str) -> list[str]:
        _check_text(text)
        return find_variables(text)

    def validate(self) -> ValidationResult:
        return self.validator.validate()

    def calculate_rule_complexity(self, name: str, max_depth: int | None = None) -> ComplexityResult:
        return self.complexity.rule_complexity(name, max_depth=max_depth)

    def calculate_total_complexity(self, max_depth: int | None = None) -> TotalComplexityResult:
        return self.complexity.total_complexity(max_depth=max_depth)

    def calculate_probabilities(
        self,
        name: str,
        max_depth: int | None = None,
        max_outcomes: int | None = None,
    ) -> ProbabilityAnalysis:
        return self.probability.calculate_probabilities(name, max_depth=max_depth, max_outcomes=max_outcomes)

    def get_most_probable_outcome(self, name: str) -> OutcomeProbability | None:
        return self.probability.most_probable_outcome(name)

    def get_least_probable_outcome(self, name: str) -> OutcomeProbability | None:
        return self.probability.least_probable_outcome(name)

    def get_stats(self) -> ParserStats:
        return ParserStats(
            total_rules=len(self.rules),
            rules_by_type=self.rules.counts(),
            total_modifiers=len(self.modifiers),
            max_depth=self.expander.max_depth,
            has_random_seed=self.rng.is_seeded,
        )

    def get_helpful_error(
        self,
        error: BaseException,
        text: str | None = None,
        rule_name: str | None = None,
    ) -> str:
        return self.advisor.helpful_error(error, text=text, rule_name=rule_name)

    def optimize(self) -> OptimizationReport:
        """Report grammar-level performance concerns. Nothing is changed."""
        warnings = []
        suggestions = []
        stats = self.get_stats()

        if stats.total_rules > 1000:
            warnings.append(f"Large number of rules ({stats.total_rules}). Consider grouping related rules.")
        if stats.total_modifiers > 10:
            warnings.append(f"Many modifiers ({stats.total_modifiers}). High-priority modifiers run first.")
        if stats.max_depth > 20:
            suggestions.append("Consider reducing max depth for better performance.")

        grammar = self.get_grammar()
        referenced = {name for values in grammar.values() for value in values for name in find_variables(value)}
        unused = [name for name in grammar if name not in referenced and not is_root_rule(name)]
        if unused:
            more = "..." if len(unused) > 5 else ""
            suggestions.append(f"Consider removing unused rules: {', '.join(unused[:5])}{more}")

        return OptimizationReport(
            warnings=warnings,
            suggestions=suggestions,
            optimized=not warnings and not suggestions,
        )

    def export_config(self) -> ParserConfig:
        return ParserConfig(
            grammar=self.get_grammar(),
            modifiers=[m.name for m in self.modifiers.modifiers()],
            settings=ParserSettings(max_depth=self.get_max_depth(), random_seed=self.get_random_seed()),
        )

    def clone(self) -> "Parser":
        """Copy static rules and settings.

        Function, weighted, conditional, sequential, range and template rules
        and modifiers are not copied.
        """
        cloned = Parser(
            EngineConfig(max_depth=self.get_max_depth(), random_seed=self.get_random_seed()),
            analysis_config=self.analysis_config,
            safe_parse_config=self.safe_parse_config,
        )
        cloned.add_rules(self.get_grammar())
        return cloned
