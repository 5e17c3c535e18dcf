"""
Aggregation Service - FoodEval Scoring Engine
app/services/aggregation_service.py

Runs the ScoringAggregationEngine for a sample and stores the result:

  1. Load the sample (Completed samples are locked)
  2. Load or create the event's ScoringPolicy
  3. Pick the most recently completed session
  4. Aggregate its submitted evaluations
  5. Persist ProductSample.final_score (Submitted → Evaluated)
"""

import logging
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from app.config import settings
from app.core.exceptions import (
    EntityNotFoundException,
    InsufficientDataError,
    InsufficientEvaluations,
    SampleLocked,
)
from app.models.criterion import ScoringPolicy
from app.models.enumerations import SampleStatus, SessionStatus
from app.models.sample import ProductSample
from app.models.score import EventScoreLine
from app.models.session import EvaluationSession
from app.repositories.gateway import EvaluationStore
from app.scoring.aggregation import AggregationResult, ScoringAggregationEngine
from app.services.collaborators import Notifier
from app.services.locks import LockManager

logger = logging.getLogger(__name__)


@dataclass
class SampleScore:
    """One aggregation run: the updated sample plus how it was scored."""
    sample: ProductSample
    session: EvaluationSession
    result: AggregationResult


class AggregationService:

    def __init__(
        self,
        store: EvaluationStore,
        locks: LockManager,
        notifier: Optional[Notifier] = None,
        engine: Optional[ScoringAggregationEngine] = None,
    ):
        self.store = store
        self.locks = locks
        self.notifier = notifier or Notifier()
        self.engine = engine or ScoringAggregationEngine()

    def get_or_create_policy(self, event_id: UUID) -> ScoringPolicy:
        policy = self.store.get_policy(event_id)
        if policy is not None:
            return policy

        policy = ScoringPolicy(
            event_id=event_id,
            trim_high_low_from_count=settings.DEFAULT_TRIM_HIGH_LOW_FROM_COUNT,
            trim_count_high=settings.DEFAULT_TRIM_COUNT_HIGH,
            trim_count_low=settings.DEFAULT_TRIM_COUNT_LOW,
            rounding_decimals=settings.DEFAULT_ROUNDING_DECIMALS,
        )
        self.store.save_policy(policy)
        logger.info("scoring_policy_defaulted", extra={"event_id": str(event_id)})
        return policy

    def latest_completed_session(self, sample_id: UUID) -> Optional[EvaluationSession]:
        completed = [
            s for s in self.store.list_sessions(sample_id)
            if s.status == SessionStatus.COMPLETED and s.completed_at is not None
        ]
        return max(completed, key=lambda s: s.completed_at) if completed else None

    def run_aggregation(self, sample_id: UUID) -> SampleScore:
        """
        Compute and store the final score of one sample.

        Raises:
            EntityNotFoundException: sample missing
            SampleLocked: sample is Completed
            InsufficientEvaluations: no completed session or no usable values
        """
        with self.locks.hold(f"sample:{sample_id}"):
            sample = self.store.get_sample(sample_id)
            if sample is None:
                raise EntityNotFoundException("ProductSample", sample_id)
            if sample.is_locked:
                raise SampleLocked(
                    "Completed samples cannot be re-scored", {"sample_id": str(sample_id)}
                )

            session = self.latest_completed_session(sample_id)
            if session is None:
                raise InsufficientEvaluations(
                    "Sample has no completed evaluation session", {"sample_id": str(sample_id)}
                )

            policy = self.get_or_create_policy(sample.event_id)
            evaluations = self.store.list_evaluations(session.id)
            criteria = self.store.list_criteria(sample.event_id, session.commission_id)
            result = self.engine.calculate(evaluations, policy, criteria)

            sample.record_final_score(result.final_score)
            self.store.save_sample(sample)

        logger.info(
            "aggregation_completed",
            extra={"sample_id": str(sample_id), "session_id": str(session.id),
                   "final_score": str(result.final_score),
                   "evaluation_count": result.evaluation_count, "trimmed": result.trimmed},
        )
        self.notifier.score_calculated(sample)
        return SampleScore(sample=sample, session=session, result=result)

    def score_event(self, event_id: UUID) -> List[EventScoreLine]:
        """
        Aggregate every sample of the event that has a completed session.

        Samples that cannot be scored are reported with ``final_score=None``
        and the error code that prevented it; Completed samples report their
        locked score. Excluded samples are left off the board.
        """
        lines: List[EventScoreLine] = []
        for sample in self.store.list_samples(event_id):
            if sample.status == SampleStatus.EXCLUDED:
                continue
            if sample.is_locked:
                lines.append(EventScoreLine(
                    product_sample_id=sample.id, sequential_number=sample.sequential_number,
                    code=sample.code, final_score=sample.final_score,
                    evaluation_count=0, trimmed=False,
                ))
                continue
            if self.latest_completed_session(sample.id) is None:
                continue

            try:
                scored = self.run_aggregation(sample.id)
            except InsufficientDataError as e:
                logger.warning(
                    "sample_not_scored",
                    extra={"sample_id": str(sample.id), "error_code": e.error_code},
                )
                lines.append(EventScoreLine(
                    product_sample_id=sample.id, sequential_number=sample.sequential_number,
                    code=sample.code, final_score=None, evaluation_count=0,
                    trimmed=False, error_code=e.error_code,
                ))
                continue

            lines.append(EventScoreLine(
                product_sample_id=sample.id,
                sequential_number=sample.sequential_number,
                code=sample.code,
                final_score=scored.result.final_score,
                evaluation_count=scored.result.evaluation_count,
                trimmed=scored.result.trimmed,
            ))
        return lines
