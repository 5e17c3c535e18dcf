"""
Session Router - FoodEval Scoring Engine
app/routers/sessions.py

Activate, complete and cancel evaluation sessions.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.core.dependencies import (
    get_current_user_id,
    get_evaluation_service,
    get_session_service,
)
from app.models.evaluation import ExpertEvaluation
from app.models.score import ErrorResponse
from app.models.session import EvaluationSession, SessionCreate
from app.services.evaluation_service import EvaluationService
from app.services.session_service import SessionService

router = APIRouter(prefix="/api/v1/sessions", tags=["Sessions"])

ERRORS = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


@router.post(
    "",
    response_model=EvaluationSession,
    status_code=status.HTTP_201_CREATED,
    summary="Activate a commission against a sample",
    description="Only the commission president (or main member when no president is seated) "
                "may activate. A sample has at most one active session; a concurrent or repeated "
                "activation returns 409 with retryable=true.",
    responses=ERRORS,
)
def create_session(
    payload: SessionCreate,
    user_id: UUID = Depends(get_current_user_id),
    service: SessionService = Depends(get_session_service),
) -> EvaluationSession:
    return service.create_session(payload, user_id)


@router.get("/{session_id}", response_model=EvaluationSession, responses=ERRORS)
def get_session(
    session_id: UUID,
    service: SessionService = Depends(get_session_service),
) -> EvaluationSession:
    return service.get_session(session_id)


@router.post("/{session_id}/complete", response_model=EvaluationSession, responses=ERRORS)
def complete_session(
    session_id: UUID,
    service: SessionService = Depends(get_session_service),
) -> EvaluationSession:
    return service.complete_session(session_id)


@router.post("/{session_id}/cancel", response_model=EvaluationSession, responses=ERRORS)
def cancel_session(
    session_id: UUID,
    service: SessionService = Depends(get_session_service),
) -> EvaluationSession:
    return service.cancel_session(session_id)


@router.get("/{session_id}/evaluations", response_model=List[ExpertEvaluation])
def list_session_evaluations(
    session_id: UUID,
    service: EvaluationService = Depends(get_evaluation_service),
) -> List[ExpertEvaluation]:
    return service.list_evaluations(session_id)
