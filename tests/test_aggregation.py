# tests/test_aggregation.py

"""
Scoring Aggregation Engine Tests - trimmed mean, rounding, per-criterion values
"""

import doctest
from decimal import Decimal
from uuid import uuid4

import pytest

from app.core.exceptions import EntityNotFoundException, InsufficientEvaluations
from app.models.criterion import EvaluationCriterion, ScoringPolicy
from app.models.evaluation import (
    CriteriaEntry,
    CriterionEvaluation,
    ExpertEvaluation,
    FinalScoreEntry,
)
from app.scoring import aggregation
from app.scoring.aggregation import ScoringAggregationEngine, evaluation_value
from app.scoring.utils import quantize, weighted_mean


def D(values):
    return [Decimal(str(v)) for v in values]


def policy(**overrides):
    fields = dict(trim_high_low_from_count=5, trim_count_high=1, trim_count_low=1, rounding_decimals=2)
    fields.update(overrides)
    return ScoringPolicy(event_id=uuid4(), **fields)


def final_score_evaluation(score, submitted=True, excluded=False):
    evaluation = ExpertEvaluation(
        session_id=uuid4(),
        product_sample_id=uuid4(),
        commission_member_id=uuid4(),
        entry=FinalScoreEntry(final_score=None if score is None else Decimal(str(score))),
        is_excluded_from_calculation=excluded,
    )
    if submitted:
        evaluation.submitted_at = evaluation.created_at
    return evaluation


def criteria_evaluation(scores):
    evaluation_id = uuid4()
    return ExpertEvaluation(
        id=evaluation_id,
        session_id=uuid4(),
        product_sample_id=uuid4(),
        commission_member_id=uuid4(),
        entry=CriteriaEntry(criterion_evaluations=[
            CriterionEvaluation(expert_evaluation_id=evaluation_id, criterion_id=cid, score=score)
            for cid, score in scores
        ]),
        submitted_at=None,
    )


@pytest.fixture
def engine():
    return ScoringAggregationEngine()


class TestAggregate:

    def test_trimmed_mean_above_threshold(self, engine):
        result = engine.aggregate(D([2, 5, 6, 7, 9]), policy())

        assert result.final_score == Decimal("6.00")
        assert result.trimmed_low == D([2])
        assert result.trimmed_high == D([9])
        assert result.used_values == D([5, 6, 7])
        assert result.evaluation_count == 3
        assert result.trimmed

    def test_plain_mean_below_threshold(self, engine):
        result = engine.aggregate(D([2, 5, 9]), policy())

        assert result.final_score == Decimal("5.33")
        assert not result.trimmed
        assert result.evaluation_count == 3

    def test_four_values_are_not_trimmed(self, engine):
        result = engine.aggregate(D([2, 6, 7, 9]), policy())
        assert result.final_score == Decimal("6.00")
        assert result.used_values == D([2, 6, 7, 9])

    def test_threshold_is_inclusive(self, engine):
        assert not engine.aggregate(D([1, 2, 3, 10]), policy()).trimmed
        assert engine.aggregate(D([1, 2, 3, 10, 4]), policy()).trimmed

    def test_input_order_irrelevant(self, engine):
        forward = engine.aggregate(D([9, 2, 7, 5, 6]), policy())
        backward = engine.aggregate(D([6, 5, 7, 2, 9]), policy())
        assert forward.final_score == backward.final_score == Decimal("6.00")

    def test_asymmetric_trim(self, engine):
        result = engine.aggregate(D([1, 2, 3, 4, 5, 6]), policy(trim_count_low=2, trim_count_high=0))
        assert result.used_values == D([3, 4, 5, 6])
        assert result.trimmed_high == []
        assert result.final_score == Decimal("4.50")

    def test_rounding_ties_away_from_zero(self, engine):
        result = engine.aggregate(D(["2.345"]), policy(rounding_decimals=2))
        assert result.final_score == Decimal("2.35")
        assert engine.aggregate(D(["2.5"]), policy(rounding_decimals=0)).final_score == Decimal("3")

    def test_empty_input(self, engine):
        with pytest.raises(InsufficientEvaluations):
            engine.aggregate([], policy())

    def test_trimming_everything_fails(self, engine):
        with pytest.raises(InsufficientEvaluations):
            engine.aggregate(D([1, 2, 3]), policy(trim_high_low_from_count=3, trim_count_high=2, trim_count_low=1))


class TestEvaluationValue:

    def test_weighted_criteria(self):
        heavy = EvaluationCriterion(event_id=uuid4(), name="Taste", weight=Decimal("3"), min_score=1, max_score=5)
        light = EvaluationCriterion(event_id=uuid4(), name="Look", weight=Decimal("1"), min_score=1, max_score=5)
        evaluation = criteria_evaluation([(heavy.id, 5), (light.id, 1)])

        value = evaluation_value(evaluation, {heavy.id: heavy, light.id: light})
        assert value == Decimal("4")

    def test_unweighted_criteria_average(self):
        a = EvaluationCriterion(event_id=uuid4(), name="A", min_score=1, max_score=5)
        b = EvaluationCriterion(event_id=uuid4(), name="B", min_score=1, max_score=5)
        evaluation = criteria_evaluation([(a.id, 4), (b.id, 5)])
        assert evaluation_value(evaluation, {a.id: a, b.id: b}) == Decimal("4.5")

    def test_missing_weight_counts_as_one(self):
        a = EvaluationCriterion(event_id=uuid4(), name="A", weight=Decimal("2"), min_score=1, max_score=5)
        b = EvaluationCriterion(event_id=uuid4(), name="B", min_score=1, max_score=5)
        evaluation = criteria_evaluation([(a.id, 5), (b.id, 2)])
        assert evaluation_value(evaluation, {a.id: a, b.id: b}) == Decimal("4")

    def test_unknown_criterion(self):
        evaluation = criteria_evaluation([(uuid4(), 3)])
        with pytest.raises(EntityNotFoundException):
            evaluation_value(evaluation, {})

    def test_final_score_without_value(self):
        with pytest.raises(InsufficientEvaluations):
            evaluation_value(final_score_evaluation(None), {})


class TestCalculate:

    def test_only_counted_evaluations_enter(self, engine):
        evaluations = [
            final_score_evaluation(8),
            final_score_evaluation(6),
            final_score_evaluation(1, excluded=True),
            final_score_evaluation(2, submitted=False),
        ]
        result = engine.calculate(evaluations, policy())
        assert result.values == D([6, 8])
        assert result.final_score == Decimal("7.00")

    def test_nothing_counted(self, engine):
        with pytest.raises(InsufficientEvaluations):
            engine.calculate([final_score_evaluation(5, submitted=False)], policy())


class TestDecimalUtils:

    def test_quantize_negative_places(self):
        with pytest.raises(ValueError):
            quantize(Decimal("1.5"), -1)

    def test_weighted_mean_length_mismatch(self):
        with pytest.raises(ValueError):
            weighted_mean(D([1, 2]), D([1]))


class TestDocExamples:

    def test_aggregate_example(self):
        results = doctest.testmod(aggregation)
        assert results.attempted == 3
        assert results.failed == 0
