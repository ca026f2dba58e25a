"""Tests for analysis/probability.py - outcome distributions."""

import math

import pytest

from analysis.probability import ProbabilityAnalyzer
from config import AnalysisConfig
from errors import UnknownRuleError
from rules.store import RuleStore


@pytest.fixture
def store():
    return RuleStore()


@pytest.fixture
def analyzer(store):
    return ProbabilityAnalyzer(store, AnalysisConfig())


def as_dict(analysis):
    return {o.outcome: o.probability for o in analysis.outcomes}


class TestDistributions:
    """Tests for per-type probabilities."""

    def test_uniform_static(self, store, analyzer):
        store.add_static("c", ["a", "b", "c", "d"])
        analysis = analyzer.calculate_probabilities("c")
        assert analysis.total_outcomes == 4
        assert all(o.probability == pytest.approx(0.25) for o in analysis.outcomes)
        assert analysis.entropy == pytest.approx(2.0)
        assert analysis.average_probability == pytest.approx(0.25)
        assert analysis.is_finite

    def test_nested_rules_multiply(self, store, analyzer):
        store.add_static("c", ["red", "blue"])
        store.add_static("a", ["cat", "dog", "bird"])
        store.add_static("d", ["%c% %a%"])
        analysis = analyzer.calculate_probabilities("d")
        assert analysis.total_outcomes == 6
        assert as_dict(analysis)["red cat"] == pytest.approx(1 / 6)
        assert sum(o.probability for o in analysis.outcomes) == pytest.approx(1.0)
        assert analysis.entropy == pytest.approx(math.log2(6))

    def test_weighted(self, store, analyzer):
        store.add_weighted("w", ["rare", "common"], [0.2, 0.8])
        analysis = analyzer.calculate_probabilities("w")
        assert [o.outcome for o in analysis.outcomes] == ["common", "rare"]
        assert as_dict(analysis)["rare"] == pytest.approx(0.2)

    def test_certain_outcome_has_zero_entropy(self, store, analyzer):
        store.add_weighted("w", ["always", "never"], [1.0, 0.0])
        assert analyzer.calculate_probabilities("w").entropy == 0

    def test_conditional_branches_are_equally_likely(self, store, analyzer):
        store.add_conditional("c", [
            {"if": lambda ctx: True, "then": ["a", "b"]},
            {"default": ["c"]},
        ])
        probabilities = as_dict(analyzer.calculate_probabilities("c"))
        assert probabilities == pytest.approx({"a": 0.25, "b": 0.25, "c": 0.5})

    def test_range(self, store, analyzer):
        store.add_range("r", 0, 10, step=5)
        probabilities = as_dict(analyzer.calculate_probabilities("r"))
        assert probabilities == pytest.approx({"0": 1 / 3, "5": 1 / 3, "10": 1 / 3})

    def test_template(self, store, analyzer):
        store.add_static("animal", ["cat"])
        store.add_template("t", "%adj% %noun%", {"adj": ["big", "small"], "noun": ["%animal%"]})
        probabilities = as_dict(analyzer.calculate_probabilities("t"))
        assert probabilities == pytest.approx({"big cat": 0.5, "small cat": 0.5})

    def test_empty_static_rule(self, store, analyzer):
        """An empty rule keeps its token, as parse does."""
        store.add_static("nothing", [])
        store.add_static("wrapped", ["[%nothing%]"])
        assert as_dict(analyzer.calculate_probabilities("nothing")) == {"%nothing%": 1.0}
        assert as_dict(analyzer.calculate_probabilities("wrapped")) == {"[%nothing%]": 1.0}


class TestMarkers:
    """Tests for references the analyzer cannot follow."""

    def test_missing(self, store, analyzer):
        store.add_static("x", ["%ghost%"])
        analysis = analyzer.calculate_probabilities("x")
        assert as_dict(analysis) == {"[missing:ghost]": 1.0}
        assert analysis.warnings

    def test_circular(self, store, analyzer):
        store.add_static("loop", ["%loop%"])
        analysis = analyzer.calculate_probabilities("loop")
        assert as_dict(analysis) == {"[circular:loop]": 1.0}
        assert "Circular reference detected for rule 'loop'" in analysis.warnings

    def test_back_reference_stays_literal(self, store, analyzer):
        store.add_static("c", ["red", "blue"])
        store.add_static("pair", ["%c%/%@c%"])
        assert set(as_dict(analyzer.calculate_probabilities("pair"))) == {"red/%@c%", "blue/%@c%"}

    def test_function_rule(self, store, analyzer):
        store.add_function("f", lambda: ["x"])
        analysis = analyzer.calculate_probabilities("f")
        assert as_dict(analysis) == {"[function:f]": 1.0}
        assert not analysis.is_finite

    def test_max_depth(self, store, analyzer):
        store.add_static("a", ["%b%"])
        store.add_static("b", ["x"])
        analysis = analyzer.calculate_probabilities("a", max_depth=1)
        assert as_dict(analysis) == {"[max-depth:b]": 1.0}

    def test_unknown_rule(self, analyzer):
        with pytest.raises(UnknownRuleError):
            analyzer.calculate_probabilities("nope")


class TestLimits:
    """Tests for the outcome cap and duplicate merging."""

    def test_max_outcomes(self, store, analyzer):
        store.add_static("n", [str(i) for i in range(10)])
        store.add_static("pair", ["%n%%n%"])
        analysis = analyzer.calculate_probabilities("pair", max_outcomes=20)
        assert analysis.total_outcomes == 20
        assert "Maximum outcomes (20) reached, distribution is truncated" in analysis.warnings
        assert analyzer.calculate_probabilities("pair").total_outcomes == 100

    def test_duplicates_merged(self, store, analyzer):
        store.add_static("x", ["a", "a", "b"])
        assert as_dict(analyzer.calculate_probabilities("x")) == pytest.approx({"a": 2 / 3, "b": 1 / 3})

    def test_duplicates_kept_when_configured(self, store):
        store.add_static("x", ["a", "a", "b"])
        analyzer = ProbabilityAnalyzer(store, AnalysisConfig(merge_duplicate_outcomes=False))
        assert analyzer.calculate_probabilities("x").total_outcomes == 3

    def test_most_and_least_probable(self, store, analyzer):
        store.add_weighted("w", ["rare", "middle", "common"], [0.1, 0.3, 0.6])
        assert analyzer.most_probable_outcome("w").outcome == "common"
        assert analyzer.least_probable_outcome("w").outcome == "rare"
        analysis = analyzer.calculate_probabilities("w")
        assert [o.outcome for o in analysis.least_probable] == ["rare", "middle", "common"]
