"""
Commission Router - FoodEval Scoring Engine
app/routers/commissions.py

Commission creation (roster validated) and member exclusion.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, status

from app.core.dependencies import get_roster_service
from app.models.commission import Commission, CommissionCreate, CommissionMember, MemberExclude
from app.models.score import ErrorResponse
from app.services.roster_validator import RosterService

router = APIRouter(prefix="/api/v1/commissions", tags=["Commissions"])


@router.post(
    "",
    response_model=Commission,
    status_code=status.HTTP_201_CREATED,
    summary="Create a commission",
    description="Requires exactly one main member and at most one president.",
    responses={422: {"model": ErrorResponse}},
)
def create_commission(
    payload: CommissionCreate,
    service: RosterService = Depends(get_roster_service),
) -> Commission:
    return service.create_commission(payload)


@router.get(
    "/{commission_id}",
    response_model=Commission,
    summary="Get a commission with its members",
    responses={404: {"model": ErrorResponse}},
)
def get_commission(
    commission_id: UUID,
    service: RosterService = Depends(get_roster_service),
) -> Commission:
    return service.get_commission(commission_id)


@router.post(
    "/{commission_id}/members/{member_id}/exclude",
    response_model=CommissionMember,
    summary="Exclude a commission member",
    description="One-way. The member keeps submitted evaluations but cannot submit new ones.",
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
)
def exclude_member(
    commission_id: UUID,
    member_id: UUID,
    payload: MemberExclude,
    service: RosterService = Depends(get_roster_service),
) -> CommissionMember:
    return service.exclude_member(commission_id, member_id, payload.reason)
