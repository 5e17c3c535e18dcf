"""
Criteria Service - FoodEval Scoring Engine
app/services/criteria_service.py

Per-event scoring criteria and the event's ScoringPolicy. Read-only to the
other services while sessions run.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from app.models.criterion import (
    CriterionCreate,
    EvaluationCriterion,
    ScoringPolicy,
    ScoringPolicyUpdate,
)
from app.repositories.gateway import EvaluationStore

logger = logging.getLogger(__name__)


class CriteriaService:

    def __init__(self, store: EvaluationStore):
        self.store = store

    def add_criterion(self, event_id: UUID, payload: CriterionCreate) -> EvaluationCriterion:
        criterion = EvaluationCriterion(event_id=event_id, **payload.model_dump())
        self.store.save_criterion(criterion)
        logger.info(
            "criterion_created",
            extra={"event_id": str(event_id), "criterion_id": str(criterion.id),
                   "is_required": criterion.is_required},
        )
        return criterion

    def list_criteria(
        self, event_id: UUID, commission_id: Optional[UUID] = None
    ) -> List[EvaluationCriterion]:
        return self.store.list_criteria(event_id, commission_id)

    def get_policy(self, event_id: UUID) -> Optional[ScoringPolicy]:
        return self.store.get_policy(event_id)

    def set_policy(self, event_id: UUID, payload: ScoringPolicyUpdate) -> ScoringPolicy:
        existing = self.store.get_policy(event_id)
        if existing is None:
            policy = ScoringPolicy(event_id=event_id, **payload.model_dump())
        else:
            policy = existing.model_copy(update={
                **payload.model_dump(),
                "modified_at": datetime.now(timezone.utc),
            })
        self.store.save_policy(policy)
        logger.info("scoring_policy_updated", extra={"event_id": str(event_id), **payload.model_dump()})
        return policy
