"""Tests for centralized configuration."""

import pytest

from config import AnalysisConfig, EngineConfig, SafeParseConfig, Settings


class TestConfig:
    """Tests for centralized configuration."""

    def test_default_settings(self):
        """Test that default settings are loaded correctly."""
        settings = Settings()

        assert settings.engine.max_depth == 100
        assert settings.engine.random_seed is None
        assert settings.analysis.max_depth == 50
        assert settings.analysis.max_outcomes == 1000
        assert settings.analysis.merge_duplicate_outcomes is True
        assert settings.analysis.continuous_ranges_infinite is False
        assert settings.safe_parse.max_attempts == 3
        assert settings.safe_parse.depth_reduction == 0.7
        assert settings.safe_parse.min_depth == 10

    def test_settings_from_env(self, monkeypatch):
        """Test that settings can be loaded from environment variables."""
        monkeypatch.setenv("STORY_GRAMMAR_MAX_DEPTH", "42")
        monkeypatch.setenv("STORY_GRAMMAR_SEED", "7")
        monkeypatch.setenv("STORY_GRAMMAR_MAX_OUTCOMES", "25")
        monkeypatch.setenv("STORY_GRAMMAR_MERGE_OUTCOMES", "false")
        monkeypatch.setenv("STORY_GRAMMAR_CONTINUOUS_RANGES_INFINITE", "yes")
        monkeypatch.setenv("STORY_GRAMMAR_SAFE_PARSE_ATTEMPTS", "5")

        settings = Settings.from_env()

        assert settings.engine.max_depth == 42
        assert settings.engine.random_seed == 7
        assert settings.analysis.max_outcomes == 25
        assert settings.analysis.merge_duplicate_outcomes is False
        assert settings.analysis.continuous_ranges_infinite is True
        assert settings.safe_parse.max_attempts == 5

    def test_empty_seed_env_means_unseeded(self, monkeypatch):
        """An empty seed variable leaves the engine unseeded."""
        monkeypatch.setenv("STORY_GRAMMAR_SEED", "")
        assert Settings.from_env().engine.random_seed is None

    def test_immutable_config(self):
        """Test that config dataclasses are immutable."""
        for config in (EngineConfig(), AnalysisConfig(), SafeParseConfig()):
            with pytest.raises(Exception):  # FrozenInstanceError
                config.max_depth = 1
