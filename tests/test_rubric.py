"""Tests for rubric definitions and category sub-scores.

Covers: threshold walks in both directions, ratio metrics, missing and
malformed metrics, rubric construction checks and the version registry.
"""

import math

import pytest

from governance_scoring.core.errors import (
    InvalidInputError,
    InvalidWeightsError,
    MissingMetricError,
)
from governance_scoring.core.rubric import (
    DEFAULT_GOVERNANCE_RUBRIC,
    CategoryRule,
    Rubric,
    check_weights,
    compute_category_subscore,
    get_rubric,
)


def _rule(category: str = "board", weight: float = 1.0, **kwargs) -> CategoryRule:
    kwargs.setdefault("metric", "value")
    kwargs.setdefault("thresholds", ((85.0, 5), (75.0, 4), (60.0, 3), (50.0, 2)))
    return CategoryRule(category=category, weight=weight, **kwargs)


# ===================================================================
# compute_category_subscore
# ===================================================================


class TestHigherIsBetter:
    """Bounds are walked from high to low; first value >= bound wins."""

    @pytest.mark.parametrize(
        "value, expected",
        [(100, 5), (85, 5), (84.99, 4), (75, 4), (60, 3), (50, 2), (49.99, 1), (0, 1)],
    )
    def test_walk(self, value: float, expected: int) -> None:
        assert compute_category_subscore({"value": value}, _rule()) == expected

    def test_threshold_order_in_table_does_not_matter(self) -> None:
        shuffled = _rule(thresholds=((60.0, 3), (85.0, 5), (50.0, 2), (75.0, 4)))
        assert compute_category_subscore({"value": 80}, shuffled) == 4


class TestLowerIsBetter:
    """Bounds are walked from low to high; first value <= bound wins."""

    @pytest.mark.parametrize(
        "ratio, expected",
        [(10, 5), (50, 5), (50.01, 4), (100, 4), (200, 3), (350, 2), (351, 1)],
    )
    def test_ceo_pay_ratio(self, ratio: float, expected: int) -> None:
        rule = DEFAULT_GOVERNANCE_RUBRIC.rule("ceo_pay_ratio")
        assert compute_category_subscore({"ceo_pay_ratio": ratio}, rule) == expected

    @pytest.mark.parametrize(
        "hhi, expected", [(800, 5), (1000, 5), (1200, 4), (2500, 3), (4000, 2), (9000, 1)]
    )
    def test_ownership_hhi(self, hhi: float, expected: int) -> None:
        rule = DEFAULT_GOVERNANCE_RUBRIC.rule("ownership_concentration")
        assert compute_category_subscore({"ownership_hhi": hhi}, rule) == expected


class TestRatioMetrics:
    """A rule with a denominator scores metric / denominator * 100."""

    def test_seven_of_eight_directors_is_top_band(self) -> None:
        rule = DEFAULT_GOVERNANCE_RUBRIC.rule("board_independence")
        raw = {"independent_directors": 7, "total_directors": 8}
        assert compute_category_subscore(raw, rule) == 5

    def test_six_of_eight_directors(self) -> None:
        rule = DEFAULT_GOVERNANCE_RUBRIC.rule("board_independence")
        raw = {"independent_directors": 6, "total_directors": 8}
        assert compute_category_subscore(raw, rule) == 4

    def test_scored_value(self) -> None:
        rule = DEFAULT_GOVERNANCE_RUBRIC.rule("board_independence")
        raw = {"independent_directors": 7, "total_directors": 8}
        assert rule.scored_value(raw) == 87.5

    def test_zero_denominator_raises(self) -> None:
        rule = DEFAULT_GOVERNANCE_RUBRIC.rule("board_independence")
        with pytest.raises(InvalidInputError):
            compute_category_subscore({"independent_directors": 0, "total_directors": 0}, rule)

    def test_part_exceeding_whole_raises(self) -> None:
        rule = DEFAULT_GOVERNANCE_RUBRIC.rule("pay_for_performance")
        raw = {"performance_based_pay": 12.0, "total_compensation": 10.0}
        with pytest.raises(InvalidInputError):
            compute_category_subscore(raw, rule)

    def test_required_metrics(self) -> None:
        rule = DEFAULT_GOVERNANCE_RUBRIC.rule("board_independence")
        assert rule.required_metrics == ("independent_directors", "total_directors")


class TestMetricErrors:
    """Missing or malformed metrics fail instead of being defaulted."""

    def test_missing_metric(self) -> None:
        rule = DEFAULT_GOVERNANCE_RUBRIC.rule("board_independence")
        with pytest.raises(MissingMetricError) as exc_info:
            compute_category_subscore({"independent_directors": 7}, rule)
        assert exc_info.value.category == "board_independence"
        assert exc_info.value.metric == "total_directors"
        assert exc_info.value.entity is None

    def test_none_counts_as_missing(self) -> None:
        with pytest.raises(MissingMetricError):
            compute_category_subscore({"value": None}, _rule())

    def test_missing_metric_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            compute_category_subscore({}, _rule())

    def test_negative_metric_raises(self) -> None:
        with pytest.raises(InvalidInputError):
            compute_category_subscore({"value": -1}, _rule())

    def test_nan_metric_raises(self) -> None:
        with pytest.raises(InvalidInputError):
            compute_category_subscore({"value": math.nan}, _rule())

    def test_text_metric_raises(self) -> None:
        with pytest.raises(InvalidInputError):
            compute_category_subscore({"value": "high"}, _rule())

    def test_extra_metrics_are_ignored(self) -> None:
        assert compute_category_subscore({"value": 90, "unrelated": -5}, _rule()) == 5


# ===================================================================
# CategoryRule construction
# ===================================================================


class TestCategoryRule:
    """Rules normalize their threshold tables and reject bad ones."""

    def test_thresholds_normalized(self) -> None:
        rule = _rule(thresholds=[("85", 5.0), (75, "4")])
        assert rule.thresholds == ((85.0, 5), (75.0, 4))
        assert isinstance(rule.thresholds[0][1], int)

    def test_empty_thresholds_raise(self) -> None:
        with pytest.raises(InvalidInputError):
            _rule(thresholds=())

    @pytest.mark.parametrize("score", [0, 6, 2.5])
    def test_invalid_threshold_score_raises(self, score) -> None:
        with pytest.raises(InvalidInputError):
            _rule(thresholds=((50.0, score),))

    def test_nan_threshold_score_raises(self) -> None:
        with pytest.raises(InvalidInputError):
            _rule(thresholds=((50.0, math.nan),))

    def test_non_numeric_weight_raises(self) -> None:
        with pytest.raises(InvalidWeightsError):
            _rule(weight="heavy")

    def test_rule_is_immutable(self) -> None:
        rule = _rule()
        with pytest.raises(AttributeError):
            rule.weight = 0.5


# ===================================================================
# Rubric
# ===================================================================


class TestRubricConstruction:
    """A Rubric always satisfies the weight invariant."""

    def test_weights_must_sum_to_one(self) -> None:
        with pytest.raises(InvalidWeightsError) as exc_info:
            Rubric([_rule("a", 0.5), _rule("b", 0.45)])
        assert exc_info.value.total == pytest.approx(0.95)

    def test_weights_within_tolerance_accepted(self) -> None:
        rubric = Rubric([_rule("a", 0.5), _rule("b", 0.5000004)])
        assert rubric.categories == ["a", "b"]

    def test_negative_weight_raises(self) -> None:
        with pytest.raises(InvalidWeightsError):
            Rubric([_rule("a", 1.5), _rule("b", -0.5)])

    def test_duplicate_category_raises(self) -> None:
        with pytest.raises(InvalidInputError):
            Rubric([_rule("a", 0.5), _rule("a", 0.5)])

    def test_empty_rubric_raises(self) -> None:
        with pytest.raises(InvalidInputError):
            Rubric([])

    def test_from_records(self) -> None:
        rubric = Rubric.from_records(
            [
                {"category": "board", "weight": 0.6, "metric": "independent_directors",
                 "denominator": "total_directors", "thresholds": [(85, 5), (50, 2)]},
                {"category": "pay", "weight": 0.4, "metric": "ceo_pay_ratio",
                 "thresholds": [(50, 5), (350, 2)], "higher_is_better": False},
            ],
            version="test",
        )
        assert rubric.version == "test"
        assert rubric.weights == {"board": 0.6, "pay": 0.4}
        assert rubric.rule("pay").higher_is_better is False
        assert rubric.required_metrics == [
            "independent_directors", "total_directors", "ceo_pay_ratio"
        ]

    def test_from_records_missing_key_raises(self) -> None:
        with pytest.raises(InvalidInputError):
            Rubric.from_records([{"category": "board", "weight": 1.0, "metric": "x"}])

    def test_unknown_rule_raises_key_error(self) -> None:
        with pytest.raises(KeyError):
            DEFAULT_GOVERNANCE_RUBRIC.rule("climate")


class TestDefaultRubric:
    """The registered v1.0 rubric."""

    def test_weights_sum_to_one(self) -> None:
        assert math.fsum(DEFAULT_GOVERNANCE_RUBRIC.weights.values()) == pytest.approx(1.0)

    def test_categories(self) -> None:
        assert DEFAULT_GOVERNANCE_RUBRIC.categories == [
            "board_independence",
            "board_leadership",
            "committee_independence",
            "pay_for_performance",
            "ceo_pay_ratio",
            "ownership_concentration",
            "shareholder_rights",
            "audit_oversight",
        ]

    def test_pay_for_performance_weight(self) -> None:
        assert DEFAULT_GOVERNANCE_RUBRIC.weights["pay_for_performance"] == 0.20

    def test_score_categories(self, strong_metrics) -> None:
        scores = DEFAULT_GOVERNANCE_RUBRIC.score_categories(strong_metrics)
        assert scores == {c: 5 for c in DEFAULT_GOVERNANCE_RUBRIC.categories}

    def test_score_categories_does_not_mutate_input(self, strong_metrics) -> None:
        before = dict(strong_metrics)
        DEFAULT_GOVERNANCE_RUBRIC.score_categories(strong_metrics)
        assert strong_metrics == before

    def test_describe_lists_categories(self) -> None:
        text = DEFAULT_GOVERNANCE_RUBRIC.describe()
        for category in DEFAULT_GOVERNANCE_RUBRIC.categories:
            assert category in text

    def test_get_rubric(self) -> None:
        assert get_rubric("1.0") is DEFAULT_GOVERNANCE_RUBRIC

    def test_get_unknown_rubric_raises(self) -> None:
        with pytest.raises(ValueError, match="Unknown rubric version"):
            get_rubric("9.9")


class TestCheckWeights:
    """check_weights returns the total of a valid weight mapping."""

    def test_returns_total(self) -> None:
        assert check_weights({"a": 0.25, "b": 0.75}) == 1.0

    def test_empty_raises(self) -> None:
        with pytest.raises(InvalidWeightsError):
            check_weights({})

    def test_nan_weight_raises(self) -> None:
        with pytest.raises(InvalidWeightsError):
            check_weights({"a": math.nan, "b": 1.0})

    def test_custom_tolerance(self) -> None:
        assert check_weights({"a": 0.5, "b": 0.49}, tolerance=0.05) == pytest.approx(0.99)
