"""Shared test fixtures for all test modules."""

import json
import sys
import tempfile
from pathlib import Path

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from config import AnalysisConfig, EngineConfig, SafeParseConfig  # noqa: E402
from grammar_parser import Parser  # noqa: E402


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def parser():
    """Parser with default settings, independent of STORY_GRAMMAR_* env vars."""
    return Parser(EngineConfig(), AnalysisConfig(), SafeParseConfig())


@pytest.fixture
def seeded_parser(parser):
    """Parser in deterministic mode."""
    parser.set_random_seed(12345)
    return parser


@pytest.fixture
def sample_grammar():
    """Sample static grammar for testing."""
    return {
        "origin": ["%subject% in %setting%"],
        "subject": ["a cat", "a dog"],
        "setting": ["a garden", "a forest"],
    }


@pytest.fixture
def grammar_file(temp_dir, sample_grammar):
    """Sample grammar written to a JSON file."""
    path = temp_dir / "story.json"
    path.write_text(json.dumps(sample_grammar))
    return path
