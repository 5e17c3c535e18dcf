"""
Sample Router - FoodEval Scoring Engine
app/routers/samples.py

Sample registration, forward transitions and score aggregation.
"""

from datetime import datetime, timezone
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.core.dependencies import (
    get_aggregation_service,
    get_document_service,
    get_sample_service,
    get_session_service,
)
from app.models.document import VersionedDocument
from app.models.sample import ProductSample, SampleCreate, SampleExclude
from app.models.score import ErrorResponse, ScoreResponse
from app.models.session import EvaluationSession
from app.services.aggregation_service import AggregationService
from app.services.document_service import DocumentService
from app.services.sample_service import SampleService
from app.services.session_service import SessionService

router = APIRouter(prefix="/api/v1/samples", tags=["Samples"])

ERRORS = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


@router.post(
    "",
    response_model=ProductSample,
    status_code=status.HTTP_201_CREATED,
    summary="Register a product sample",
    description="Allocates the next sequential number in the event and a unique sample code.",
)
def register_sample(
    payload: SampleCreate,
    service: SampleService = Depends(get_sample_service),
) -> ProductSample:
    return service.register_sample(payload)


@router.get("/{sample_id}", response_model=ProductSample, responses=ERRORS)
def get_sample(
    sample_id: UUID,
    service: SampleService = Depends(get_sample_service),
) -> ProductSample:
    return service.get_sample(sample_id)


@router.post("/{sample_id}/submit", response_model=ProductSample, responses=ERRORS,
             summary="Draft → Submitted")
def submit_sample(
    sample_id: UUID,
    service: SampleService = Depends(get_sample_service),
) -> ProductSample:
    return service.submit_sample(sample_id)


@router.post("/{sample_id}/exclude", response_model=ProductSample, responses=ERRORS,
             summary="Exclude a sample (reason required)")
def exclude_sample(
    sample_id: UUID,
    payload: SampleExclude,
    service: SampleService = Depends(get_sample_service),
) -> ProductSample:
    return service.exclude_sample(sample_id, payload.reason)


@router.post("/{sample_id}/complete", response_model=ProductSample, responses=ERRORS,
             summary="Evaluated → Completed (locks the final score)")
def complete_sample(
    sample_id: UUID,
    service: SampleService = Depends(get_sample_service),
) -> ProductSample:
    return service.complete_sample(sample_id)


@router.post(
    "/{sample_id}/aggregate",
    response_model=ScoreResponse,
    summary="Compute the final score",
    description="Aggregates the most recently completed session under the event's scoring policy.",
    responses={**ERRORS, 423: {"model": ErrorResponse}},
)
def aggregate_sample(
    sample_id: UUID,
    service: AggregationService = Depends(get_aggregation_service),
) -> ScoreResponse:
    scored = service.run_aggregation(sample_id)
    return ScoreResponse(
        product_sample_id=sample_id,
        session_id=scored.session.id,
        final_score=scored.result.final_score,
        evaluation_count=scored.result.evaluation_count,
        trimmed_high=scored.result.trimmed_high,
        trimmed_low=scored.result.trimmed_low,
        trimmed=scored.result.trimmed,
        calculated_at=datetime.now(timezone.utc),
    )


@router.get("/{sample_id}/sessions", response_model=List[EvaluationSession])
def list_sample_sessions(
    sample_id: UUID,
    service: SessionService = Depends(get_session_service),
) -> List[EvaluationSession]:
    return service.list_sessions(sample_id)


@router.get("/{sample_id}/documents", response_model=List[VersionedDocument])
def list_sample_documents(
    sample_id: UUID,
    service: DocumentService = Depends(get_document_service),
) -> List[VersionedDocument]:
    return service.list_documents(sample_id)
