from pydantic import BaseModel, ConfigDict, Field
from uuid import UUID, uuid4
from datetime import datetime, timezone
from typing import Optional

from app.core.exceptions import SessionNotActive
from app.models.enumerations import SessionStatus


class SessionCreate(BaseModel):
    """
    Model for activating a commission against a sample.
    """

    event_id: UUID = Field(..., description="Event the sample belongs to")
    product_sample_id: UUID = Field(..., description="Sample to evaluate")
    commission_id: UUID = Field(..., description="Commission doing the evaluation")


class EvaluationSession(BaseModel):
    """
    One activation of a commission against one sample.

    Created Active; Complete and Cancel are both terminal.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4)
    event_id: UUID
    product_sample_id: UUID
    commission_id: UUID
    activated_by: UUID
    status: SessionStatus = SessionStatus.ACTIVE
    activated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    completed_at: Optional[datetime] = None

    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    def ensure_active(self) -> None:
        if not self.is_active():
            raise SessionNotActive(
                f"Evaluation session is {self.status.value}",
                {"session_id": str(self.id), "status": self.status.value},
            )

    def complete(self) -> None:
        self.ensure_active()
        self.status = SessionStatus.COMPLETED
        self.completed_at = datetime.now(timezone.utc)

    def cancel(self) -> None:
        self.ensure_active()
        self.status = SessionStatus.CANCELLED
        self.completed_at = datetime.now(timezone.utc)
