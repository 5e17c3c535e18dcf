"""
Versioned result documents (Protocol / Record).

A document number is stable across versions; each version links only to its
immediate predecessor. Snapshot fields are frozen once a version exists, only
the status flow (Draft → Generated → Sent → Acknowledged) moves.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from uuid import UUID, uuid4
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, FrozenSet, Literal, Optional

from app.core.exceptions import InvalidDocumentTransition
from app.models.enumerations import DocumentKind, DocumentStatus


DOCUMENT_TRANSITIONS: Dict[DocumentStatus, FrozenSet[DocumentStatus]] = {
    DocumentStatus.DRAFT: frozenset({DocumentStatus.GENERATED}),
    DocumentStatus.GENERATED: frozenset({DocumentStatus.SENT}),
    DocumentStatus.SENT: frozenset({DocumentStatus.ACKNOWLEDGED}),
    DocumentStatus.ACKNOWLEDGED: frozenset(),
}


class VersionedDocument(BaseModel):
    """Base for Protocol and Record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(default_factory=uuid4, frozen=True)
    kind: DocumentKind
    event_id: UUID = Field(..., frozen=True)
    product_sample_id: UUID = Field(..., frozen=True)
    applicant_id: UUID = Field(..., frozen=True)
    document_number: int = Field(..., ge=1, frozen=True)
    version: int = Field(default=1, ge=1, frozen=True)
    previous_version_id: Optional[UUID] = Field(default=None, frozen=True)
    final_score: Decimal = Field(..., frozen=True)
    status: DocumentStatus = DocumentStatus.DRAFT
    generated_at: Optional[datetime] = None
    sent_at: Optional[datetime] = None
    acknowledged_at: Optional[datetime] = None
    artifact_path: Optional[str] = None
    version_created_by: UUID = Field(..., frozen=True)
    version_created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), frozen=True
    )

    @model_validator(mode="after")
    def validate_version_link(self):
        """Version 1 has no predecessor; every later version has one."""
        if self.version == 1 and self.previous_version_id is not None:
            raise ValueError("version 1 cannot link to a previous version")
        if self.version > 1 and self.previous_version_id is None:
            raise ValueError(f"version {self.version} must link to its previous version")
        return self

    def can_transition_to(self, new_status: DocumentStatus) -> bool:
        return new_status in DOCUMENT_TRANSITIONS[self.status]

    def transition_to(self, new_status: DocumentStatus) -> None:
        if not self.can_transition_to(new_status):
            raise InvalidDocumentTransition(
                f"Invalid {self.kind.value} transition: "
                f"{self.status.value} -> {new_status.value}",
                {"document_id": str(self.id), "from": self.status.value, "to": new_status.value},
            )

        now = datetime.now(timezone.utc)
        self.status = new_status
        if new_status == DocumentStatus.GENERATED:
            self.generated_at = now
        elif new_status == DocumentStatus.SENT:
            self.sent_at = now
        elif new_status == DocumentStatus.ACKNOWLEDGED:
            self.acknowledged_at = now

    def create_new_version(self, created_by: UUID, final_score: Decimal) -> "VersionedDocument":
        """Build the next version. The receiver is left untouched."""
        return type(self)(
            event_id=self.event_id,
            product_sample_id=self.product_sample_id,
            applicant_id=self.applicant_id,
            document_number=self.document_number,
            version=self.version + 1,
            previous_version_id=self.id,
            final_score=final_score,
            status=DocumentStatus.DRAFT,
            version_created_by=created_by,
        )


class Protocol(VersionedDocument):
    kind: Literal[DocumentKind.PROTOCOL] = DocumentKind.PROTOCOL


class Record(VersionedDocument):
    kind: Literal[DocumentKind.RECORD] = DocumentKind.RECORD

DOCUMENT_CLASSES = {
    DocumentKind.PROTOCOL: Protocol,
    DocumentKind.RECORD: Record,
}


# =============================================================================
# REQUEST MODELS
# =============================================================================


class DocumentGenerate(BaseModel):
    product_sample_id: UUID
    kind: DocumentKind = DocumentKind.PROTOCOL


class DocumentTransition(BaseModel):
    status: DocumentStatus


class DocumentNewVersion(BaseModel):
    final_score: Optional[Decimal] = Field(
        default=None,
        ge=0,
        description="Score snapshot; defaults to the sample's current final score"
    )
