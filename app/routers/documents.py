"""
Document Router - FoodEval Scoring Engine
app/routers/documents.py

Protocols and Records: generate, re-version, move status, inspect history.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.core.dependencies import get_current_user_id, get_document_service
from app.models.document import (
    DocumentGenerate,
    DocumentNewVersion,
    DocumentTransition,
    VersionedDocument,
)
from app.models.enumerations import DocumentKind
from app.models.score import ErrorResponse
from app.services.document_service import DocumentService

router = APIRouter(prefix="/api/v1/documents", tags=["Documents"])

ERRORS = {
    404: {"model": ErrorResponse},
    409: {"model": ErrorResponse},
    422: {"model": ErrorResponse},
}


@router.post(
    "",
    response_model=VersionedDocument,
    status_code=status.HTTP_201_CREATED,
    summary="Generate version 1 of a new document",
    responses=ERRORS,
)
def generate_document(
    payload: DocumentGenerate,
    user_id: UUID = Depends(get_current_user_id),
    service: DocumentService = Depends(get_document_service),
) -> VersionedDocument:
    return service.generate_initial(payload.product_sample_id, payload.kind, user_id)


@router.get(
    "/latest",
    response_model=VersionedDocument,
    summary="Latest version of a document number",
    responses=ERRORS,
)
def get_latest_version(
    event_id: UUID = Query(...),
    kind: DocumentKind = Query(...),
    document_number: int = Query(..., ge=1),
    service: DocumentService = Depends(get_document_service),
) -> VersionedDocument:
    return service.get_latest_version(event_id, kind, document_number)


@router.get("/{document_id}", response_model=VersionedDocument, responses=ERRORS)
def get_document(
    document_id: UUID,
    service: DocumentService = Depends(get_document_service),
) -> VersionedDocument:
    return service.get_document(document_id)


@router.post(
    "/{document_id}/versions",
    response_model=VersionedDocument,
    status_code=status.HTTP_201_CREATED,
    summary="Create the next version",
    description="Only the latest version may be re-versioned; otherwise 409 DUPLICATE_VERSION.",
    responses=ERRORS,
)
def create_new_version(
    document_id: UUID,
    payload: DocumentNewVersion,
    user_id: UUID = Depends(get_current_user_id),
    service: DocumentService = Depends(get_document_service),
) -> VersionedDocument:
    return service.create_new_version(document_id, user_id, payload.final_score)


@router.post(
    "/{document_id}/transition",
    response_model=VersionedDocument,
    summary="Draft → Generated → Sent → Acknowledged",
    responses=ERRORS,
)
def transition_document(
    document_id: UUID,
    payload: DocumentTransition,
    service: DocumentService = Depends(get_document_service),
) -> VersionedDocument:
    return service.transition(document_id, payload.status)


@router.get(
    "/{document_id}/chain",
    response_model=List[VersionedDocument],
    summary="Version history, newest first",
    responses=ERRORS,
)
def get_version_chain(
    document_id: UUID,
    service: DocumentService = Depends(get_document_service),
) -> List[VersionedDocument]:
    return service.get_version_chain(document_id)
