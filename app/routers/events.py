"""
Event Router - FoodEval Scoring Engine
app/routers/events.py

Per-event scoring configuration (criteria, policy) and the event scoreboard.
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.dependencies import get_aggregation_service, get_criteria_service
from app.core.exceptions import EntityNotFoundException
from app.models.criterion import (
    CriterionCreate,
    EvaluationCriterion,
    ScoringPolicy,
    ScoringPolicyUpdate,
)
from app.models.score import ErrorResponse, EventScoreboard
from app.services.aggregation_service import AggregationService
from app.services.criteria_service import CriteriaService

router = APIRouter(prefix="/api/v1/events", tags=["Events"])


@router.post(
    "/{event_id}/scores",
    response_model=EventScoreboard,
    summary="Score every sample of the event",
    description="Runs aggregation for each sample with a completed session. "
                "Samples without usable evaluations are listed with a null score.",
)
def score_event(
    event_id: UUID,
    service: AggregationService = Depends(get_aggregation_service),
) -> EventScoreboard:
    return EventScoreboard(
        event_id=event_id,
        samples=service.score_event(event_id),
        calculated_at=datetime.now(timezone.utc),
    )


@router.get(
    "/{event_id}/policy",
    response_model=ScoringPolicy,
    responses={404: {"model": ErrorResponse}},
)
def get_policy(
    event_id: UUID,
    service: CriteriaService = Depends(get_criteria_service),
) -> ScoringPolicy:
    policy = service.get_policy(event_id)
    if policy is None:
        raise EntityNotFoundException("ScoringPolicy", event_id)
    return policy


@router.put("/{event_id}/policy", response_model=ScoringPolicy, summary="Set the scoring policy")
def set_policy(
    event_id: UUID,
    payload: ScoringPolicyUpdate,
    service: CriteriaService = Depends(get_criteria_service),
) -> ScoringPolicy:
    return service.set_policy(event_id, payload)


@router.post(
    "/{event_id}/criteria",
    response_model=EvaluationCriterion,
    status_code=status.HTTP_201_CREATED,
    summary="Add a scoring criterion",
)
def add_criterion(
    event_id: UUID,
    payload: CriterionCreate,
    service: CriteriaService = Depends(get_criteria_service),
) -> EvaluationCriterion:
    return service.add_criterion(event_id, payload)


@router.get("/{event_id}/criteria", response_model=List[EvaluationCriterion])
def list_criteria(
    event_id: UUID,
    commission_id: Optional[UUID] = Query(default=None, description="Only criteria applying to this commission"),
    service: CriteriaService = Depends(get_criteria_service),
) -> List[EvaluationCriterion]:
    return service.list_criteria(event_id, commission_id)
