"""Exception hierarchy and advisory error messages for the grammar engine.

Registration problems raise immediately from the call that introduced them.
Parse-time failures (recursion depth, function rules, unmatched conditions)
raise from ``parse``; ``safe_parse`` turns them into structured results.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from analysis.validator import GrammarValidator
    from rules.store import RuleStore


class GrammarError(Exception):
    """Base class for all grammar engine errors."""
    pass


class RuleDefinitionError(GrammarError, ValueError):
    """Raised when a rule fails structural validation at registration."""
    pass


class WeightValidationError(RuleDefinitionError):
    """Raised when weighted rule weights are malformed or do not sum to 1.0."""
    pass


class ModifierDefinitionError(GrammarError, ValueError):
    """Raised when a modifier is missing its name, condition or transform."""
    pass


class RecursionDepthError(GrammarError):
    """Raised when expansion nests deeper than the configured maximum."""

    def __init__(self, max_depth: int):
        self.max_depth = max_depth
        super().__init__(
            f"Maximum recursion depth of {max_depth} exceeded. "
            "This may indicate circular references in your grammar rules."
        )


class FunctionRuleError(GrammarError):
    """Raised when a function rule fails or returns something other than a list."""

    def __init__(self, rule_name: str, message: str):
        self.rule_name = rule_name
        super().__init__(f"Error executing function rule '{rule_name}': {message}")


class NoMatchingConditionError(GrammarError):
    """Raised when no conditional branch matches and there is no default."""

    def __init__(self, rule_name: str):
        self.rule_name = rule_name
        super().__init__(
            f"No matching condition found for rule '{rule_name}' and no default provided"
        )


class UnknownRuleError(GrammarError, LookupError):
    """Raised by the analyzers when asked about a rule that does not exist."""

    def __init__(self, rule_name: str):
        self.rule_name = rule_name
        super().__init__(f"Rule '{rule_name}' does not exist")


class ErrorAdvisor:
    """Annotates error messages with remediation hints and validation findings.

    Purely advisory: the output is for humans and is never used for control flow.
    """

    def __init__(self, store: "RuleStore", validator: "GrammarValidator"):
        self.store = store
        self.validator = validator

    def helpful_error(
        self,
        error: BaseException,
        text: str | None = None,
        rule_name: str | None = None,
    ) -> str:
        """Build an annotated message for an error raised by the engine.

        Args:
            error: The exception to explain
            text: The text that was being parsed, if known
            rule_name: The rule suspected of causing the error, if known

        Returns:
            Multi-line message: original error, suggestions, validation issues, context
        """
        message = str(error)
        lines = [message, ""]

        if _is_recursion_error(error, message):
            lines.append("Suggestions:")
            lines.append("• Check for circular references in your grammar rules")
            lines.append("• Use validate() to detect circular dependencies")
            lines.append("• Consider increasing max depth if your grammar is legitimately deep")
            lines.append("• Use %@name% back-references to reuse previously generated values")
            if rule_name:
                lines.append("")
                lines.append(f"The rule '{rule_name}' may be causing infinite recursion")
        elif _is_function_rule_error(error, message):
            lines.append("Suggestions:")
            lines.append("• Function rules must return a list of strings")
            lines.append("• Handle exceptions inside your function rule")
            lines.append("• Test the function rule on its own before registering it")
        elif _is_weight_error(error, message):
            lines.append("Suggestions:")
            lines.append("• Ensure all weights are non-negative numbers")
            lines.append("• Verify that weights sum to exactly 1.0")
            lines.append("• Check that values and weights have the same length")
            lines.append("• Example: weights = [0.5, 0.3, 0.2] for three values")
        elif _is_missing_rule_error(error, message):
            lines.append("Suggestions:")
            lines.append("• Check that all referenced rules are defined")
            lines.append("• Use validate() to find missing rules")
            if text:
                missing = self.validator.validate_text(text)
                if missing:
                    lines.append(f"• Missing rules detected: {', '.join(missing)}")
        else:
            lines.append("Suggestions:")
            lines.append("• Run validate() to check for grammar issues")
            lines.append("• Check that all referenced rules exist")
            lines.append("• Ensure rule values are properly formatted")
        lines.append("")

        validation = self.validator.validate()
        if not validation.is_valid:
            lines.append("Validation Issues:")
            if validation.missing_rules:
                lines.append(f"• Missing rules: {', '.join(validation.missing_rules)}")
            if validation.circular_references:
                lines.append(f"• Circular references: {', '.join(validation.circular_references)}")
            if validation.empty_rules:
                lines.append(f"• Empty rules: {', '.join(validation.empty_rules)}")
            lines.append("")

        if text is not None:
            lines.append(f'Text being parsed: "{text}"')
        if rule_name:
            lines.append(f"Rule name: {rule_name}")
            rule_type = self.store.get_type(rule_name)
            if rule_type is not None:
                lines.append(f"Rule type: {rule_type.value}")

        return "\n".join(lines).rstrip("\n")


def _is_recursion_error(error: BaseException, message: str) -> bool:
    if isinstance(error, (RecursionDepthError, RecursionError)):
        return True
    lowered = message.lower()
    return "recursion" in lowered or "circular" in lowered or "depth" in lowered


def _is_function_rule_error(error: BaseException, message: str) -> bool:
    if isinstance(error, FunctionRuleError):
        return True
    lowered = message.lower()
    return "function rule" in lowered or ("function" in lowered and "failed" in lowered)


def _is_weight_error(error: BaseException, message: str) -> bool:
    if isinstance(error, WeightValidationError):
        return True
    lowered = message.lower()
    return "weight" in lowered or "sum to 1" in lowered or "probability" in lowered


def _is_missing_rule_error(error: BaseException, message: str) -> bool:
    if isinstance(error, UnknownRuleError):
        return True
    lowered = message.lower()
    return (
        ("rule" in lowered and "not found" in lowered)
        or ("rule" in lowered and "does not exist" in lowered)
        or "missing rule" in lowered
        or "undefined rule" in lowered
    )
