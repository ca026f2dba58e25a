"""Pydantic models for parse options and analysis results."""

from pydantic import BaseModel, Field


class ParseOptions(BaseModel):
    """Options for safe_parse."""
    preserve_context: bool = False
    validate_first: bool = True
    max_attempts: int = Field(3, ge=1)


class ValidationResult(BaseModel):
    """Structural findings about a grammar; never raised."""
    is_valid: bool
    missing_rules: list[str] = Field(default_factory=list)
    circular_references: list[str] = Field(default_factory=list)
    empty_rules: list[str] = Field(default_factory=list)
    unreachable_rules: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ParseResult(BaseModel):
    """Outcome of safe_parse."""
    success: bool
    result: str | None = None
    error: str | None = None
    attempts: int = 0
    validation: ValidationResult | None = None


class ParseTiming(BaseModel):
    total_ms: float = 0.0
    expansion_ms: float = 0.0
    modifier_ms: float = 0.0


class ParseTimingResult(BaseModel):
    result: str
    timing: ParseTiming


class ParserStats(BaseModel):
    total_rules: int
    rules_by_type: dict[str, int]
    total_modifiers: int
    max_depth: int
    has_random_seed: bool


class ParserSettings(BaseModel):
    max_depth: int
    random_seed: int | None = None


class ParserConfig(BaseModel):
    """Serializable snapshot of a parser: static grammar, modifier names, settings."""
    grammar: dict[str, list[str]] = Field(default_factory=dict)
    modifiers: list[str] = Field(default_factory=list)
    settings: ParserSettings


class OptimizationReport(BaseModel):
    warnings: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)
    optimized: bool = True


class ComplexityResult(BaseModel):
    """Number of distinct outcomes reachable from one rule."""
    rule_name: str
    complexity: int | float
    rule_type: str
    is_finite: bool = True
    variables: list[str] = Field(default_factory=list)
    depth: int = 0
    warnings: list[str] = Field(default_factory=list)


class TotalComplexityResult(BaseModel):
    total_complexity: int | float
    is_finite: bool
    rule_count: int
    complexity_by_rule: list[ComplexityResult] = Field(default_factory=list)
    average_complexity: float = 0.0
    most_complex_rules: list[ComplexityResult] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    circular_references: list[str] = Field(default_factory=list)


class OutcomeProbability(BaseModel):
    outcome: str
    probability: float = Field(..., ge=0.0)


class ProbabilityAnalysis(BaseModel):
    """Outcome distribution of one rule, sorted most probable first."""
    rule_name: str
    outcomes: list[OutcomeProbability] = Field(default_factory=list)
    total_outcomes: int = 0
    most_probable: list[OutcomeProbability] = Field(default_factory=list)
    least_probable: list[OutcomeProbability] = Field(default_factory=list)
    average_probability: float = 0.0
    entropy: float = 0.0
    is_finite: bool = True
    warnings: list[str] = Field(default_factory=list)
