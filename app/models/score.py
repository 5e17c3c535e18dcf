from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from decimal import Decimal
from typing import List, Optional


class ScoreResponse(BaseModel):
    """
    Result of an aggregation run for one sample.
    """

    product_sample_id: UUID
    session_id: Optional[UUID] = None
    final_score: Optional[Decimal] = Field(
        default=None,
        description="None when the sample has no usable evaluations yet"
    )
    evaluation_count: int = Field(default=0, ge=0, description="Values that entered the mean")
    trimmed_high: List[Decimal] = Field(default_factory=list)
    trimmed_low: List[Decimal] = Field(default_factory=list)
    trimmed: bool = False
    calculated_at: Optional[datetime] = None


class ErrorResponse(BaseModel):
    """
    Standard error response model.
    """

    error_code: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[dict] = Field(default=None, description="Additional error details")
    retryable: bool = Field(default=False, description="True for conflicts worth one retry")
    timestamp: datetime = Field(..., description="Error occurrence timestamp")


class EventScoreLine(BaseModel):
    product_sample_id: UUID
    sequential_number: int
    code: str
    final_score: Optional[Decimal] = None
    evaluation_count: int = 0
    trimmed: bool = False
    error_code: Optional[str] = Field(
        default=None,
        description="Why the sample could not be scored, if it could not"
    )


class EventScoreboard(BaseModel):
    """
    Scores of every sample of an event that has a completed session.
    """

    event_id: UUID
    samples: List[EventScoreLine] = Field(default_factory=list)
    calculated_at: datetime
