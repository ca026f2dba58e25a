"""Centralized configuration for the story-grammar engine."""

import os
from dataclasses import dataclass, field


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment ("1", "true", "yes" are truthy)."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_optional_int(name: str) -> int | None:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return None
    return int(value)


@dataclass(frozen=True)
class EngineConfig:
    """Default configuration for variable expansion."""
    max_depth: int = 100
    random_seed: int | None = None


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for the static complexity/probability analyzers."""
    max_depth: int = 50
    max_outcomes: int = 1000
    # Sum probability mass of identical outcome strings reached via different paths
    merge_duplicate_outcomes: bool = True
    # Report ranges without a step as infinite instead of sizing them with step=1
    continuous_ranges_infinite: bool = False


@dataclass(frozen=True)
class SafeParseConfig:
    """Retry policy for safe_parse after recursion-depth failures."""
    max_attempts: int = 3
    depth_reduction: float = 0.7
    min_depth: int = 10


@dataclass
class Settings:
    """Application settings, can be overridden via environment variables."""
    engine: EngineConfig = field(default_factory=EngineConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    safe_parse: SafeParseConfig = field(default_factory=SafeParseConfig)

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables with STORY_GRAMMAR_ prefix."""
        engine = EngineConfig(
            max_depth=int(os.environ.get("STORY_GRAMMAR_MAX_DEPTH", EngineConfig.max_depth)),
            random_seed=_env_optional_int("STORY_GRAMMAR_SEED"),
        )
        analysis = AnalysisConfig(
            max_depth=int(os.environ.get("STORY_GRAMMAR_ANALYSIS_MAX_DEPTH", AnalysisConfig.max_depth)),
            max_outcomes=int(os.environ.get("STORY_GRAMMAR_MAX_OUTCOMES", AnalysisConfig.max_outcomes)),
            merge_duplicate_outcomes=_env_bool(
                "STORY_GRAMMAR_MERGE_OUTCOMES", AnalysisConfig.merge_duplicate_outcomes
            ),
            continuous_ranges_infinite=_env_bool(
                "STORY_GRAMMAR_CONTINUOUS_RANGES_INFINITE", AnalysisConfig.continuous_ranges_infinite
            ),
        )
        safe_parse = SafeParseConfig(
            max_attempts=int(os.environ.get("STORY_GRAMMAR_SAFE_PARSE_ATTEMPTS", SafeParseConfig.max_attempts)),
            depth_reduction=float(
                os.environ.get("STORY_GRAMMAR_SAFE_PARSE_DEPTH_REDUCTION", SafeParseConfig.depth_reduction)
            ),
            min_depth=int(os.environ.get("STORY_GRAMMAR_SAFE_PARSE_MIN_DEPTH", SafeParseConfig.min_depth)),
        )
        return cls(engine=engine, analysis=analysis, safe_parse=safe_parse)


# Global settings instance - use from_env() for environment-aware settings
settings = Settings.from_env()
