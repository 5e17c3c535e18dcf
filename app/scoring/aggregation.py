"""
scoring/aggregation.py

Turns the expert evaluations of a completed session into one final score.

Per-evaluation value:
    FinalScore mode     → the stored final score
    CriteriaBased mode  → Σ(score_i × w_i) / Σ(w_i), w_i = criterion weight or 1
                          (a plain average when no criterion carries a weight)

Aggregate:
    n = number of counted values
    n ≥ trim_high_low_from_count → drop trim_count_low lowest and
                                   trim_count_high highest, then average
    otherwise                    → average all values
    round to rounding_decimals, ties away from zero
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List
from uuid import UUID

import structlog

from app.core.exceptions import EntityNotFoundException, InsufficientEvaluations
from app.models.criterion import EvaluationCriterion, ScoringPolicy
from app.models.evaluation import CriteriaEntry, ExpertEvaluation, FinalScoreEntry
from app.scoring.utils import mean, quantize, to_decimal, weighted_mean

logger = structlog.get_logger(__name__)

DEFAULT_CRITERION_WEIGHT = Decimal("1")


@dataclass
class AggregationResult:
    """Output of ScoringAggregationEngine.aggregate()."""
    final_score: Decimal                 # rounded to policy.rounding_decimals
    raw_mean: Decimal                    # unrounded mean of used_values
    values: List[Decimal]                # every counted value, ascending
    used_values: List[Decimal]           # values that entered the mean
    trimmed_low: List[Decimal] = field(default_factory=list)
    trimmed_high: List[Decimal] = field(default_factory=list)

    @property
    def trimmed(self) -> bool:
        return bool(self.trimmed_low or self.trimmed_high)

    @property
    def evaluation_count(self) -> int:
        return len(self.used_values)


def evaluation_value(
    evaluation: ExpertEvaluation,
    criteria_by_id: Dict[UUID, EvaluationCriterion],
) -> Decimal:
    """Numeric value of one evaluation, branching on its entry variant."""
    entry = evaluation.entry

    if isinstance(entry, FinalScoreEntry):
        if entry.final_score is None:
            raise InsufficientEvaluations(
                "Evaluation has no final score", {"evaluation_id": str(evaluation.id)}
            )
        return to_decimal(entry.final_score)

    if isinstance(entry, CriteriaEntry):
        if not entry.criterion_evaluations:
            raise InsufficientEvaluations(
                "Evaluation has no criterion scores", {"evaluation_id": str(evaluation.id)}
            )
        scores: List[Decimal] = []
        weights: List[Decimal] = []
        for ce in entry.criterion_evaluations:
            criterion = criteria_by_id.get(ce.criterion_id)
            if criterion is None:
                raise EntityNotFoundException("EvaluationCriterion", ce.criterion_id)
            scores.append(Decimal(ce.score))
            weights.append(criterion.weight if criterion.weight is not None else DEFAULT_CRITERION_WEIGHT)
        return weighted_mean(scores, weights)

    raise TypeError(f"Unknown evaluation entry: {type(entry).__name__}")


class ScoringAggregationEngine:
    """Trimmed-mean aggregation under an event's ScoringPolicy."""

    def collect_values(
        self,
        evaluations: Iterable[ExpertEvaluation],
        criteria: Iterable[EvaluationCriterion] = (),
    ) -> List[Decimal]:
        """Values of submitted evaluations not flagged excluded-from-calculation."""
        criteria_by_id = {c.id: c for c in criteria}
        return [
            evaluation_value(e, criteria_by_id)
            for e in evaluations
            if e.counts_toward_score
        ]

    def aggregate(self, values: Iterable[Decimal], policy: ScoringPolicy) -> AggregationResult:
        """
        Aggregate per-evaluator values.

        Raises:
            InsufficientEvaluations: no values, or trimming would drop all of them

        Examples:
            >>> policy = ScoringPolicy(event_id=UUID(int=1))
            >>> values = [Decimal(v) for v in "25679"]
            >>> ScoringAggregationEngine().aggregate(values, policy).final_score
            Decimal('6.00')
        """
        ordered = sorted(to_decimal(v) for v in values)
        count = len(ordered)
        if count == 0:
            raise InsufficientEvaluations("No usable evaluations to aggregate")

        trimmed_low: List[Decimal] = []
        trimmed_high: List[Decimal] = []
        used = ordered
        if policy.should_trim(count):
            low, high = policy.trim_count_low, policy.trim_count_high
            if low + high >= count:
                raise InsufficientEvaluations(
                    f"Trimming {low} low and {high} high values leaves nothing of {count}",
                    {"count": count, "trim_low": low, "trim_high": high},
                )
            trimmed_low = ordered[:low]
            trimmed_high = ordered[count - high:] if high else []
            used = ordered[low:count - high]

        raw = mean(used)
        final = quantize(raw, policy.rounding_decimals)

        logger.info(
            "aggregation_calculated",
            value_count=count,
            used_count=len(used),
            trimmed=bool(trimmed_low or trimmed_high),
            raw_mean=float(raw),
            final_score=float(final),
        )

        return AggregationResult(
            final_score=final,
            raw_mean=raw,
            values=ordered,
            used_values=used,
            trimmed_low=trimmed_low,
            trimmed_high=trimmed_high,
        )

    def calculate(
        self,
        evaluations: Iterable[ExpertEvaluation],
        policy: ScoringPolicy,
        criteria: Iterable[EvaluationCriterion] = (),
    ) -> AggregationResult:
        return self.aggregate(self.collect_values(evaluations, criteria), policy)
