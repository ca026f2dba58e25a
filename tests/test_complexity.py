"""Tests for analysis/complexity.py - outcome counting."""

import math

import pytest

from analysis.complexity import ComplexityAnalyzer
from config import AnalysisConfig
from errors import UnknownRuleError
from rules.store import RuleStore


@pytest.fixture
def store():
    return RuleStore()


@pytest.fixture
def analyzer(store):
    return ComplexityAnalyzer(store, AnalysisConfig())


class TestRuleComplexity:
    """Tests for single-rule complexity."""

    def test_multiplicative(self, store, analyzer):
        store.add_static("c", ["red", "blue"])
        store.add_static("a", ["cat", "dog", "bird"])
        store.add_static("d", ["%c% %a%"])
        result = analyzer.rule_complexity("d")
        assert result.complexity == 6
        assert result.is_finite
        assert result.rule_type == "static"
        assert result.variables == ["c", "a"]

    def test_values_are_summed(self, store, analyzer):
        store.add_static("c", ["red", "blue"])
        store.add_static("x", ["plain", "%c% thing"])
        assert analyzer.rule_complexity("x").complexity == 3

    def test_each_occurrence_counts(self, store, analyzer):
        store.add_static("c", ["red", "blue"])
        store.add_static("pair", ["%c% and %c%"])
        assert analyzer.rule_complexity("pair").complexity == 4

    def test_back_reference_counts_once(self, store, analyzer):
        store.add_static("c", ["red", "blue"])
        store.add_static("pair", ["%c% and %@c%"])
        assert analyzer.rule_complexity("pair").complexity == 2

    def test_unknown_rule(self, analyzer):
        with pytest.raises(UnknownRuleError, match="Rule 'nope' does not exist"):
            analyzer.rule_complexity("nope")

    def test_missing_reference_warns(self, store, analyzer):
        store.add_static("x", ["%ghost%", "b"])
        result = analyzer.rule_complexity("x")
        assert result.complexity == 2
        assert "Missing rule 'ghost' referenced in 'x'" in result.warnings

    def test_circular_reference_warns(self, store, analyzer):
        store.add_static("loop", ["%loop% x", "end"])
        result = analyzer.rule_complexity("loop")
        assert result.complexity == 2
        assert "Circular reference detected for rule 'loop'" in result.warnings

    def test_visited_name_short_circuits(self, store, analyzer):
        store.add_static("x", ["a", "b"])
        result = analyzer.rule_complexity("x", visited=frozenset({"x"}))
        assert result.complexity == 1
        assert result.rule_type == "circular"

    def test_max_depth(self, store, analyzer):
        store.add_static("a", ["%b%"])
        store.add_static("b", ["%c%"])
        store.add_static("c", ["x", "y"])
        result = analyzer.rule_complexity("a", max_depth=1)
        assert result.complexity == 1
        assert any("Maximum depth (1)" in w for w in result.warnings)
        assert analyzer.rule_complexity("a").complexity == 2

    def test_function_is_infinite(self, store, analyzer):
        store.add_function("f", lambda: ["x"])
        store.add_static("uses", ["%f% thing", "other"])
        assert analyzer.rule_complexity("f").complexity == math.inf
        result = analyzer.rule_complexity("uses")
        assert result.complexity == math.inf
        assert not result.is_finite

    def test_weighted_and_sequential(self, store, analyzer):
        store.add_weighted("w", ["a", "b"], [0.5, 0.5])
        store.add_sequential("s", ["x", "y", "z"])
        assert analyzer.rule_complexity("w").complexity == 2
        assert analyzer.rule_complexity("s").complexity == 3

    def test_conditional_sums_all_branches(self, store, analyzer):
        store.add_conditional("c", [
            {"if": lambda ctx: True, "then": ["a", "b"]},
            {"default": ["c"]},
        ])
        assert analyzer.rule_complexity("c").complexity == 3

    def test_template_multiplies_local_variables(self, store, analyzer):
        store.add_static("animal", ["cat", "dog"])
        store.add_template("t", "%adj% %noun%", {"adj": ["big", "small", "odd"], "noun": ["%animal%", "bird"]})
        assert analyzer.rule_complexity("t").complexity == 9


class TestRangeComplexity:
    """Tests for range sizing."""

    def test_stepped_range(self, store, analyzer):
        store.add_range("r", 0, 10, step=2)
        assert analyzer.rule_complexity("r").complexity == 6

    def test_unstepped_range_uses_unit_step(self, store, analyzer):
        store.add_range("r", 1, 5, kind="float")
        assert analyzer.rule_complexity("r").complexity == 5

    def test_continuous_ranges_can_be_infinite(self, store):
        store.add_range("r", 1, 5, kind="float")
        store.add_range("stepped", 1, 5, step=1)
        analyzer = ComplexityAnalyzer(store, AnalysisConfig(continuous_ranges_infinite=True))
        assert not analyzer.rule_complexity("r").is_finite
        assert analyzer.rule_complexity("stepped").complexity == 5


class TestTotalComplexity:
    """Tests for grammar-wide aggregation."""

    def test_total(self, store, analyzer):
        store.add_static("c", ["red", "blue"])
        store.add_static("a", ["cat", "dog", "bird"])
        store.add_static("d", ["%c% %a%"])
        total = analyzer.total_complexity()
        assert total.total_complexity == 11
        assert total.is_finite
        assert total.rule_count == 3
        assert total.average_complexity == pytest.approx(11 / 3)
        assert [r.rule_name for r in total.most_complex_rules] == ["d", "a", "c"]

    def test_infinite_total(self, store, analyzer):
        store.add_static("c", ["red"])
        store.add_function("f", lambda: ["x"])
        total = analyzer.total_complexity()
        assert total.total_complexity == math.inf
        assert not total.is_finite
        assert total.average_complexity == 1
        assert [r.rule_name for r in total.most_complex_rules] == ["c"]

    def test_circular_and_deduplicated_warnings(self, store, analyzer):
        store.add_static("loop", ["%loop%"])
        store.add_static("x", ["%ghost%", "%ghost% again"])
        total = analyzer.total_complexity()
        assert total.circular_references == ["loop"]
        assert total.warnings.count("Missing rule 'ghost' referenced in 'x'") == 1

    def test_top_five(self, store, analyzer):
        for i in range(7):
            store.add_static(f"r{i}", [str(v) for v in range(i + 1)])
        total = analyzer.total_complexity()
        assert [r.complexity for r in total.most_complex_rules] == [7, 6, 5, 4, 3]

    def test_empty_grammar(self, analyzer):
        total = analyzer.total_complexity()
        assert total.total_complexity == 0
        assert total.rule_count == 0
        assert total.average_complexity == 0
