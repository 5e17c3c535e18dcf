from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID, uuid4
from datetime import datetime, timezone
from typing import List, Optional

from app.core.exceptions import ExclusionReasonRequired, InvalidTransitionError
from app.models.enumerations import CommissionMemberRole, CommissionStatus


class CommissionMember(BaseModel):
    """
    A user seated on a commission.

    Exclusion is one-way: an excluded member keeps the evaluations already
    submitted but cannot submit new ones.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    commission_id: Optional[UUID] = None
    user_id: UUID
    role: CommissionMemberRole = CommissionMemberRole.MEMBER
    is_excluded: bool = False
    exclusion_reason: Optional[str] = None
    excluded_at: Optional[datetime] = None
    joined_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def exclude(self, reason: Optional[str]) -> None:
        if not reason or not reason.strip():
            raise ExclusionReasonRequired(
                "Exclusion reason is required", {"member_id": str(self.id)}
            )
        if self.is_excluded:
            raise InvalidTransitionError(
                "Commission member is already excluded", {"member_id": str(self.id)}
            )
        self.is_excluded = True
        self.exclusion_reason = reason.strip()
        self.excluded_at = datetime.now(timezone.utc)

    def can_submit_evaluation(self) -> bool:
        return not self.is_excluded


class CommissionMemberCreate(BaseModel):
    user_id: UUID
    role: CommissionMemberRole = CommissionMemberRole.MEMBER


class CommissionCreate(BaseModel):
    """
    Model for creating a commission together with its roster.
    """

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    category_id: Optional[UUID] = Field(
        default=None,
        description="Category the commission usually evaluates (informational)"
    )
    members: List[CommissionMemberCreate] = Field(default_factory=list)


class Commission(BaseModel):
    """A standing group of evaluators, not tied to any event."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    name: str
    description: Optional[str] = None
    category_id: Optional[UUID] = None
    status: CommissionStatus = CommissionStatus.ACTIVE
    members: List[CommissionMember] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def get_member(self, member_id: UUID) -> Optional[CommissionMember]:
        return next((m for m in self.members if m.id == member_id), None)

    def member_for_user(self, user_id: UUID) -> Optional[CommissionMember]:
        return next((m for m in self.members if m.user_id == user_id), None)

    def members_with_role(self, role: CommissionMemberRole) -> List[CommissionMember]:
        return [m for m in self.members if m.role == role]

    @property
    def president(self) -> Optional[CommissionMember]:
        presidents = self.members_with_role(CommissionMemberRole.PRESIDENT)
        return presidents[0] if presidents else None

    @property
    def main_member(self) -> Optional[CommissionMember]:
        main = self.members_with_role(CommissionMemberRole.MAIN_MEMBER)
        return main[0] if main else None


class MemberExclude(BaseModel):
    reason: str = Field(..., description="Mandatory exclusion reason")
