"""
Commission Roster Validator - FoodEval Scoring Engine
app/services/roster_validator.py

Membership invariants of a commission:
  - exactly one MainMember
  - at most one President
Plus member exclusion and the activation-authority rule used when a session
is created (President if seated, otherwise the MainMember).
"""

import logging
from typing import Iterable, Optional
from uuid import UUID

from app.core.exceptions import (
    EntityNotFoundException,
    InvalidRoster,
    NotAuthorizedToActivate,
)
from app.models.commission import (
    Commission,
    CommissionCreate,
    CommissionMember,
)
from app.models.enumerations import CommissionMemberRole
from app.repositories.gateway import EvaluationStore

logger = logging.getLogger(__name__)


def validate_roster(members: Iterable[CommissionMember]) -> None:
    """
    Raise InvalidRoster unless the member list has exactly one MainMember and
    at most one President.
    """
    members = list(members)
    main_count = sum(1 for m in members if m.role == CommissionMemberRole.MAIN_MEMBER)
    president_count = sum(1 for m in members if m.role == CommissionMemberRole.PRESIDENT)

    if main_count != 1:
        raise InvalidRoster(
            f"Commission must have exactly one main member, found {main_count}",
            {"main_member_count": main_count},
        )
    if president_count > 1:
        raise InvalidRoster(
            f"Commission may have at most one president, found {president_count}",
            {"president_count": president_count},
        )

    user_ids = [m.user_id for m in members]
    if len(set(user_ids)) != len(user_ids):
        raise InvalidRoster("A user may be seated on a commission only once")


def resolve_activator(commission: Commission, user_id: UUID) -> CommissionMember:
    """
    Return the member allowed to activate a session for ``commission``.

    Raises:
        NotAuthorizedToActivate: ``user_id`` is not that member, or is excluded
    """
    authority: Optional[CommissionMember] = commission.president or commission.main_member
    member = commission.member_for_user(user_id)

    if member is None or member.is_excluded:
        raise NotAuthorizedToActivate(
            "Only an active member of the commission can activate a session",
            {"commission_id": str(commission.id), "user_id": str(user_id)},
        )
    if authority is None or authority.id != member.id:
        required = "president" if commission.president else "main member"
        raise NotAuthorizedToActivate(
            f"Only the commission {required} can activate a session",
            {"commission_id": str(commission.id), "user_id": str(user_id)},
        )
    return member


class RosterService:
    """Create commissions and exclude members through the store."""

    def __init__(self, store: EvaluationStore):
        self.store = store

    def create_commission(self, payload: CommissionCreate) -> Commission:
        commission = Commission(
            name=payload.name,
            description=payload.description,
            category_id=payload.category_id,
        )
        commission.members = [
            CommissionMember(commission_id=commission.id, user_id=m.user_id, role=m.role)
            for m in payload.members
        ]
        validate_roster(commission.members)
        self.store.save_commission(commission)
        logger.info(
            "commission_created",
            extra={"commission_id": str(commission.id), "member_count": len(commission.members)},
        )
        return commission

    def exclude_member(self, commission_id: UUID, member_id: UUID, reason: Optional[str]) -> CommissionMember:
        commission = self.get_commission(commission_id)
        member = commission.get_member(member_id)
        if member is None:
            raise EntityNotFoundException("CommissionMember", member_id)

        member.exclude(reason)
        self.store.save_commission(commission)
        logger.info(
            "commission_member_excluded",
            extra={"commission_id": str(commission_id), "member_id": str(member_id)},
        )
        return member

    def get_commission(self, commission_id: UUID) -> Commission:
        commission = self.store.get_commission(commission_id)
        if commission is None:
            raise EntityNotFoundException("Commission", commission_id)
        return commission
