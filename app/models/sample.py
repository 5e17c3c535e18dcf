from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID, uuid4
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, FrozenSet, Optional

from app.core.exceptions import (
    ExclusionReasonRequired,
    InvalidTransitionError,
    SampleLocked,
)
from app.models.enumerations import EvaluationMode, SampleStatus


# Draft → Submitted → {Evaluated, Excluded} → Completed
SAMPLE_TRANSITIONS: Dict[SampleStatus, FrozenSet[SampleStatus]] = {
    SampleStatus.DRAFT: frozenset({SampleStatus.SUBMITTED}),
    SampleStatus.SUBMITTED: frozenset({SampleStatus.EVALUATED, SampleStatus.EXCLUDED}),
    SampleStatus.EVALUATED: frozenset({SampleStatus.COMPLETED}),
    SampleStatus.EXCLUDED: frozenset(),
    SampleStatus.COMPLETED: frozenset(),
}


class SampleCreate(BaseModel):
    """
    Model for registering a new product sample.
    """

    event_id: UUID = Field(..., description="Owning evaluation event")
    applicant_id: UUID = Field(..., description="Applicant that submitted the sample")
    category_id: UUID = Field(..., description="Product category")
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    evaluation_mode: EvaluationMode = Field(
        default=EvaluationMode.FINAL_SCORE,
        description="How experts record their scores for this sample"
    )


class SampleExclude(BaseModel):
    reason: str = Field(..., description="Mandatory exclusion reason")


class ProductSample(BaseModel):
    """
    A submitted product unit to be evaluated.

    Status only moves forward along SAMPLE_TRANSITIONS; Excluded and
    Completed are terminal.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    event_id: UUID
    applicant_id: UUID
    category_id: UUID
    sequential_number: int = Field(..., ge=1, description="Unique within the event")
    code: str = Field(..., min_length=1, description="Globally unique sample code")
    name: str = ""
    description: Optional[str] = None
    evaluation_mode: EvaluationMode = EvaluationMode.FINAL_SCORE
    status: SampleStatus = SampleStatus.DRAFT
    exclusion_reason: Optional[str] = None
    excluded_at: Optional[datetime] = None
    final_score: Optional[Decimal] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    submitted_at: Optional[datetime] = None
    evaluated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_locked(self) -> bool:
        return self.status == SampleStatus.COMPLETED

    def can_transition_to(self, new_status: SampleStatus) -> bool:
        return new_status in SAMPLE_TRANSITIONS[self.status]

    def transition_to(self, new_status: SampleStatus) -> None:
        """
        Move to ``new_status``.

        Raises:
            InvalidTransitionError: if the move is not in the transition table
        """
        if not self.can_transition_to(new_status):
            raise InvalidTransitionError(
                f"Invalid sample transition: {self.status.value} -> {new_status.value}",
                {"sample_id": str(self.id), "from": self.status.value, "to": new_status.value},
            )

        now = datetime.now(timezone.utc)
        self.status = new_status
        if new_status == SampleStatus.SUBMITTED:
            self.submitted_at = now
        elif new_status == SampleStatus.EVALUATED:
            self.evaluated_at = now
        elif new_status == SampleStatus.EXCLUDED:
            self.excluded_at = now
        elif new_status == SampleStatus.COMPLETED:
            self.completed_at = now

    def exclude(self, reason: Optional[str]) -> None:
        if not reason or not reason.strip():
            raise ExclusionReasonRequired(
                "Exclusion reason is required", {"sample_id": str(self.id)}
            )
        if self.is_locked:
            raise InvalidTransitionError(
                "Cannot exclude a completed sample", {"sample_id": str(self.id)}
            )
        self.transition_to(SampleStatus.EXCLUDED)
        self.exclusion_reason = reason.strip()

    def record_final_score(self, score: Decimal) -> None:
        """
        Store an aggregated score.

        Recomputation is allowed until the sample is Completed. A Submitted
        sample moves to Evaluated; later states keep their status.
        """
        if self.is_locked:
            raise SampleLocked(
                "Completed samples cannot be re-scored", {"sample_id": str(self.id)}
            )
        if self.status == SampleStatus.DRAFT:
            raise InvalidTransitionError(
                "Draft samples cannot be scored", {"sample_id": str(self.id)}
            )

        self.final_score = score
        if self.status == SampleStatus.SUBMITTED:
            self.transition_to(SampleStatus.EVALUATED)
        else:
            self.evaluated_at = datetime.now(timezone.utc)
