"""Tests for aggregation, rating labels and the GovernanceScorer.

Covers: 0-100 aggregation and its boundary values, monotonicity, schema
and weight checks, label bands, entity evaluation, batch scoring with peer
ranks, and the sample data generator.
"""

import math

import numpy as np
import pytest

from governance_scoring.core.errors import (
    InvalidInputError,
    InvalidWeightsError,
    MissingMetricError,
    SchemaMismatchError,
)
from governance_scoring.core.models import Entity, RatingLabel
from governance_scoring.core.rubric import DEFAULT_GOVERNANCE_RUBRIC
from governance_scoring.core.scorer import (
    RATING_BANDS,
    GovernanceScorer,
    aggregate,
    category_contributions,
    generate_sample_entities,
    label_for_score,
)

WEIGHTS = DEFAULT_GOVERNANCE_RUBRIC.weights


def _uniform(score: float) -> dict:
    return {category: score for category in WEIGHTS}


# ===================================================================
# aggregate
# ===================================================================


class TestAggregate:
    """Weighted 0-100 aggregation of 0-5 sub-scores."""

    def test_all_fives_is_exactly_hundred(self) -> None:
        assert aggregate(_uniform(5), WEIGHTS) == 100.0

    def test_all_ones_is_twenty(self) -> None:
        assert aggregate(_uniform(1), WEIGHTS) == pytest.approx(20.0)

    def test_all_zeros_is_zero(self) -> None:
        assert aggregate(_uniform(0), WEIGHTS) == 0.0

    def test_two_categories(self) -> None:
        score = aggregate({"board": 5, "comp": 3}, {"board": 0.5, "comp": 0.5})
        assert score == pytest.approx(80.0)

    def test_mixed_default_weights(self) -> None:
        sub_scores = {
            "board_independence": 5,
            "board_leadership": 2,
            "committee_independence": 4,
            "pay_for_performance": 3,
            "ceo_pay_ratio": 1,
            "ownership_concentration": 4,
            "shareholder_rights": 5,
            "audit_oversight": 3,
        }
        # 10 + 4 + 8 + 12 + 2 + 12 + 15 + 6
        assert aggregate(sub_scores, WEIGHTS) == pytest.approx(69.0)

    def test_result_is_within_bounds(self) -> None:
        rng = np.random.default_rng(7)
        for _ in range(50):
            sub_scores = {c: int(rng.integers(0, 6)) for c in WEIGHTS}
            assert 0.0 <= aggregate(sub_scores, WEIGHTS) <= 100.0

    def test_deterministic(self) -> None:
        sub_scores = {c: i % 5 + 1 for i, c in enumerate(WEIGHTS)}
        assert aggregate(sub_scores, WEIGHTS) == aggregate(sub_scores, WEIGHTS)

    def test_key_order_does_not_matter(self) -> None:
        sub_scores = {c: i % 5 + 1 for i, c in enumerate(WEIGHTS)}
        reversed_scores = dict(reversed(list(sub_scores.items())))
        assert aggregate(reversed_scores, WEIGHTS) == aggregate(sub_scores, WEIGHTS)

    def test_inputs_not_mutated(self) -> None:
        sub_scores = _uniform(3)
        weights = dict(WEIGHTS)
        aggregate(sub_scores, weights)
        assert sub_scores == _uniform(3)
        assert weights == WEIGHTS


class TestAggregateMonotonicity:
    """Raising one sub-score never lowers the aggregate."""

    @pytest.mark.parametrize("category", list(WEIGHTS))
    def test_raising_one_category(self, category: str) -> None:
        base = _uniform(2)
        previous = None
        for level in range(0, 6):
            base[category] = level
            score = aggregate(base, WEIGHTS)
            if previous is not None:
                assert score >= previous
            previous = score

    @pytest.mark.parametrize("category", list(WEIGHTS))
    def test_one_category_moves_score_by_at_most_its_weight(self, category: str) -> None:
        low = _uniform(3)
        high = dict(low)
        low[category] = 0
        high[category] = 5
        swing = aggregate(high, WEIGHTS) - aggregate(low, WEIGHTS)
        assert swing == pytest.approx(WEIGHTS[category] * 100)


class TestAggregateErrors:
    """Aggregation rejects inconsistent or out-of-range inputs."""

    def test_missing_category(self) -> None:
        with pytest.raises(SchemaMismatchError) as exc_info:
            aggregate({"board": 4}, {"board": 0.5, "comp": 0.5})
        assert exc_info.value.missing == ["comp"]
        assert exc_info.value.extra == []

    def test_extra_category(self) -> None:
        with pytest.raises(SchemaMismatchError) as exc_info:
            aggregate({"board": 4, "climate": 3}, {"board": 1.0})
        assert exc_info.value.extra == ["climate"]

    def test_weights_not_summing_to_one(self) -> None:
        with pytest.raises(InvalidWeightsError) as exc_info:
            aggregate({"a": 3, "b": 3}, {"a": 0.5, "b": 0.45})
        assert exc_info.value.total == pytest.approx(0.95)

    def test_weights_within_tolerance(self) -> None:
        score = aggregate({"a": 5, "b": 5}, {"a": 0.5, "b": 0.5000005})
        assert score == 100.0

    def test_negative_weight(self) -> None:
        with pytest.raises(InvalidWeightsError):
            aggregate({"a": 3, "b": 3}, {"a": 1.5, "b": -0.5})

    @pytest.mark.parametrize("bad", [6, -1, math.nan, math.inf, "five"])
    def test_sub_score_out_of_range(self, bad) -> None:
        with pytest.raises(InvalidInputError):
            aggregate({"a": bad, "b": 3}, {"a": 0.5, "b": 0.5})

    def test_schema_checked_before_weights(self) -> None:
        with pytest.raises(SchemaMismatchError):
            aggregate({"a": 3}, {"a": 0.5, "b": 0.45})


class TestCategoryContributions:
    """Points each category adds to the aggregate."""

    def test_board_independence_top_score(self) -> None:
        points = category_contributions(_uniform(5), WEIGHTS)
        assert points["board_independence"] == pytest.approx(10.0)
        assert points["pay_for_performance"] == pytest.approx(20.0)

    def test_contributions_sum_to_aggregate(self) -> None:
        sub_scores = {c: i % 5 + 1 for i, c in enumerate(WEIGHTS)}
        points = category_contributions(sub_scores, WEIGHTS)
        assert sum(points.values()) == pytest.approx(aggregate(sub_scores, WEIGHTS))


# ===================================================================
# label_for_score
# ===================================================================


class TestLabelForScore:
    """Half-open bands, with 100 in the top band."""

    @pytest.mark.parametrize(
        "score, expected",
        [
            (100.0, RatingLabel.EXEMPLARY),
            (90.0, RatingLabel.EXEMPLARY),
            (89.999, RatingLabel.STRONG),
            (80.0, RatingLabel.STRONG),
            (79.99, RatingLabel.GOOD),
            (70.0, RatingLabel.GOOD),
            (60.0, RatingLabel.SATISFACTORY),
            (59.99, RatingLabel.NEEDS_IMPROVEMENT),
            (50.0, RatingLabel.NEEDS_IMPROVEMENT),
            (49.99, RatingLabel.SIGNIFICANT_CONCERNS),
            (0.0, RatingLabel.SIGNIFICANT_CONCERNS),
        ],
    )
    def test_band_boundaries(self, score: float, expected: RatingLabel) -> None:
        assert label_for_score(score) is expected

    def test_accepts_integers(self) -> None:
        assert label_for_score(85) is RatingLabel.STRONG

    @pytest.mark.parametrize("score", [-0.1, 100.1, math.nan, math.inf])
    def test_out_of_range_raises(self, score: float) -> None:
        with pytest.raises(InvalidInputError):
            label_for_score(score)

    def test_every_score_gets_one_label(self) -> None:
        order = [label for _, label in RATING_BANDS][::-1]
        previous = 0
        for score in np.linspace(0.0, 100.0, 2001):
            label = label_for_score(score)
            position = order.index(label)
            assert position >= previous
            previous = position

    def test_display_name(self) -> None:
        assert RatingLabel.NEEDS_IMPROVEMENT.display_name == "Needs Improvement Governance"


# ===================================================================
# GovernanceScorer
# ===================================================================


class TestEvaluate:
    """Scoring one entity end to end."""

    def test_strong_company(self, strong_entity) -> None:
        result = GovernanceScorer().evaluate(strong_entity)
        assert result.identifier == "STRONG"
        assert result.aggregate_score == 100.0
        assert result.rating_label is RatingLabel.EXEMPLARY
        assert result.rubric_version == "1.0"
        assert result.contributions["board_independence"] == pytest.approx(10.0)

    def test_weak_company(self, weak_entity) -> None:
        result = GovernanceScorer().evaluate(weak_entity)
        assert result.sub_scores["board_leadership"] == 2
        assert result.sub_scores["committee_independence"] == 2
        assert result.aggregate_score == pytest.approx(24.0)
        assert result.rating_label is RatingLabel.SIGNIFICANT_CONCERNS

    def test_missing_metric_names_entity(self, strong_metrics) -> None:
        del strong_metrics["ceo_pay_ratio"]
        with pytest.raises(MissingMetricError) as exc_info:
            GovernanceScorer().evaluate(Entity("ACME", strong_metrics))
        assert exc_info.value.entity == "ACME"
        assert exc_info.value.category == "ceo_pay_ratio"
        assert "ACME" in str(exc_info.value)

    def test_invalid_metric_names_entity(self, strong_metrics) -> None:
        strong_metrics["total_directors"] = 0
        with pytest.raises(InvalidInputError, match="ACME"):
            GovernanceScorer().evaluate(Entity("ACME", strong_metrics))

    def test_deterministic(self, weak_entity) -> None:
        scorer = GovernanceScorer()
        assert scorer.evaluate(weak_entity) == scorer.evaluate(weak_entity)

    def test_entity_metrics_are_read_only(self, strong_metrics) -> None:
        entity = Entity("ACME", strong_metrics)
        with pytest.raises(TypeError):
            entity.raw_metrics["ceo_pay_ratio"] = 1
        strong_metrics["ceo_pay_ratio"] = 999
        assert entity.raw_metrics["ceo_pay_ratio"] == 40

    def test_to_dict(self, strong_entity) -> None:
        row = GovernanceScorer().evaluate(strong_entity).to_dict()
        assert row["identifier"] == "STRONG"
        assert row["board_independence"] == 5
        assert row["rating_label"] == "Exemplary"
        assert row["rubric_version"] == "1.0"


class TestEvaluateMany:
    """Batch scoring and peer statistics."""

    def test_scores_in_input_order(self, strong_entity, weak_entity) -> None:
        results = GovernanceScorer().evaluate_many([weak_entity, strong_entity])
        assert [r.identifier for r in results] == ["WEAK", "STRONG"]

    def test_duplicate_identifiers_raise(self, strong_entity) -> None:
        with pytest.raises(InvalidInputError, match="Duplicate"):
            GovernanceScorer().evaluate_many([strong_entity, strong_entity])

    def test_results_frame_ranks(self, strong_entity, weak_entity) -> None:
        scorer = GovernanceScorer()
        frame = scorer.results_frame(scorer.evaluate_many([weak_entity, strong_entity]))
        assert list(frame["identifier"]) == ["WEAK", "STRONG"]
        assert list(frame["peer_rank"]) == [2, 1]
        assert list(frame["peer_percentile"]) == pytest.approx([50.0, 100.0])

    def test_results_frame_ties_share_rank(self, strong_metrics) -> None:
        scorer = GovernanceScorer()
        entities = [Entity("A", strong_metrics), Entity("B", strong_metrics)]
        frame = scorer.results_frame(scorer.evaluate_many(entities))
        assert list(frame["peer_rank"]) == [1, 1]

    def test_results_frame_empty(self) -> None:
        assert GovernanceScorer().results_frame([]).empty

    def test_summary_report(self, strong_entity, weak_entity) -> None:
        scorer = GovernanceScorer()
        report = scorer.summary_report(scorer.evaluate_many([strong_entity, weak_entity]))
        assert "GOVERNANCE SCORING SUMMARY REPORT" in report
        assert "STRONG" in report
        assert "Exemplary Governance" in report
        assert "Peer Ranking" in report


class TestSampleEntities:
    """Synthetic companies for demonstrations."""

    def test_count_and_tickers(self) -> None:
        entities, holdings = generate_sample_entities(3)
        assert [e.identifier for e in entities] == ["AAPL", "JPM", "XOM"]
        assert set(holdings) == {"AAPL", "JPM", "XOM"}

    def test_generic_tickers_for_large_batches(self) -> None:
        entities, _ = generate_sample_entities(7)
        assert entities[0].identifier == "CO_1"
        assert len(entities) == 7

    def test_reproducible(self) -> None:
        first, _ = generate_sample_entities(4, seed=1)
        second, _ = generate_sample_entities(4, seed=1)
        assert [dict(e.raw_metrics) for e in first] == [dict(e.raw_metrics) for e in second]

    def test_all_sample_entities_score(self) -> None:
        entities, _ = generate_sample_entities(10)
        results = GovernanceScorer().evaluate_many(entities)
        assert all(0.0 <= r.aggregate_score <= 100.0 for r in results)
