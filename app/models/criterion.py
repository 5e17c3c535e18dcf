from pydantic import BaseModel, ConfigDict, Field, model_validator
from uuid import UUID, uuid4
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional


class EvaluationCriterion(BaseModel):
    """
    A scoring criterion of an event, optionally scoped to one commission.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    event_id: UUID
    commission_id: Optional[UUID] = Field(
        default=None,
        description="None means the criterion applies to every commission of the event"
    )
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    weight: Optional[Decimal] = Field(default=None, gt=0)
    display_order: int = 0
    min_score: int
    max_score: int
    is_required: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @model_validator(mode="after")
    def validate_bounds(self):
        """Ensure max_score >= min_score."""
        if self.max_score < self.min_score:
            raise ValueError("max_score must be >= min_score")
        return self

    def is_valid_score(self, score: int) -> bool:
        return self.min_score <= score <= self.max_score

    def applies_to(self, commission_id: UUID) -> bool:
        return self.commission_id is None or self.commission_id == commission_id


class ScoringPolicy(BaseModel):
    """
    Per-event trimming and rounding configuration. One policy per event.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    event_id: UUID
    trim_high_low_from_count: int = Field(
        default=5, ge=1,
        description="Evaluation count at which trimming activates"
    )
    trim_count_high: int = Field(default=1, ge=0)
    trim_count_low: int = Field(default=1, ge=0)
    rounding_decimals: int = Field(default=2, ge=0, le=6)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    modified_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def should_trim(self, evaluation_count: int) -> bool:
        return evaluation_count >= self.trim_high_low_from_count


# =============================================================================
# REQUEST MODELS
# =============================================================================


class CriterionCreate(BaseModel):
    commission_id: Optional[UUID] = None
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    weight: Optional[Decimal] = Field(default=None, gt=0)
    display_order: int = 0
    min_score: int = Field(default=1)
    max_score: int = Field(default=5)
    is_required: bool = False

    @model_validator(mode="after")
    def validate_bounds(self):
        if self.max_score < self.min_score:
            raise ValueError("max_score must be >= min_score")
        return self


class ScoringPolicyUpdate(BaseModel):
    trim_high_low_from_count: int = Field(default=5, ge=1)
    trim_count_high: int = Field(default=1, ge=0)
    trim_count_low: int = Field(default=1, ge=0)
    rounding_decimals: int = Field(default=2, ge=0, le=6)
