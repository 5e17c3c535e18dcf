"""
Evaluation Router - FoodEval Scoring Engine
app/routers/evaluations.py

Expert evaluation capture: create, update, criterion scores, exclusion vote,
submit.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.core.dependencies import get_evaluation_service
from app.models.evaluation import (
    CriterionEvaluation,
    CriterionScoreInput,
    EvaluationCreate,
    EvaluationUpdate,
    ExclusionVoteInput,
    ExpertEvaluation,
)
from app.models.score import ErrorResponse
from app.services.evaluation_service import EvaluationService

router = APIRouter(prefix="/api/v1/evaluations", tags=["Evaluations"])

ERRORS = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
    423: {"model": ErrorResponse},
}


@router.post(
    "",
    response_model=ExpertEvaluation,
    status_code=status.HTTP_201_CREATED,
    summary="Open a member's evaluation for a session",
    responses=ERRORS,
)
def create_evaluation(
    payload: EvaluationCreate,
    service: EvaluationService = Depends(get_evaluation_service),
) -> ExpertEvaluation:
    return service.create_evaluation(payload)


@router.get("/{evaluation_id}", response_model=ExpertEvaluation, responses=ERRORS)
def get_evaluation(
    evaluation_id: UUID,
    service: EvaluationService = Depends(get_evaluation_service),
) -> ExpertEvaluation:
    return service.get_evaluation(evaluation_id)


@router.patch("/{evaluation_id}", response_model=ExpertEvaluation, responses=ERRORS)
def update_evaluation(
    evaluation_id: UUID,
    payload: EvaluationUpdate,
    service: EvaluationService = Depends(get_evaluation_service),
) -> ExpertEvaluation:
    return service.update_evaluation(evaluation_id, payload)


@router.put(
    "/{evaluation_id}/criteria",
    response_model=CriterionEvaluation,
    summary="Set one criterion score",
    responses=ERRORS,
)
def set_criterion_score(
    evaluation_id: UUID,
    payload: CriterionScoreInput,
    service: EvaluationService = Depends(get_evaluation_service),
) -> CriterionEvaluation:
    return service.set_criterion_score(evaluation_id, payload)


@router.put(
    "/{evaluation_id}/exclusion-vote",
    response_model=ExpertEvaluation,
    summary="Vote to exclude (note required) or withdraw the vote",
    responses=ERRORS,
)
def set_exclusion_vote(
    evaluation_id: UUID,
    payload: ExclusionVoteInput,
    service: EvaluationService = Depends(get_evaluation_service),
) -> ExpertEvaluation:
    return service.set_exclusion_vote(evaluation_id, payload)


@router.post(
    "/{evaluation_id}/submit",
    response_model=ExpertEvaluation,
    summary="Submit (final)",
    description="May auto-exclude the sample when a majority of counted votes ask for it.",
    responses=ERRORS,
)
def submit_evaluation(
    evaluation_id: UUID,
    service: EvaluationService = Depends(get_evaluation_service),
) -> ExpertEvaluation:
    return service.submit_evaluation(evaluation_id)
