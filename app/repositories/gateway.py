"""
Persistence Gateway - FoodEval Scoring Engine
app/repositories/gateway.py

Storage contract consumed by the workflow services.

``insert_*`` methods are create-only and raise DuplicateEntityException when
the natural key already exists; ``save_*`` methods upsert. Documents are
append-only: ``update_document_status`` is the only way to change a stored
version, and it touches status fields only.

Check-then-insert sequences are serialized by the services through a
LockManager; the duplicate checks here are the last line of defence.
"""

from abc import ABC, abstractmethod
from typing import List, Optional
from uuid import UUID

from app.models.commission import Commission
from app.models.criterion import EvaluationCriterion, ScoringPolicy
from app.models.document import VersionedDocument
from app.models.enumerations import DocumentKind
from app.models.evaluation import ExpertEvaluation
from app.models.sample import ProductSample
from app.models.session import EvaluationSession


class EvaluationStore(ABC):

    # --- samples -------------------------------------------------------------

    @abstractmethod
    def get_sample(self, sample_id: UUID) -> Optional[ProductSample]: ...

    @abstractmethod
    def list_samples(self, event_id: UUID) -> List[ProductSample]: ...

    @abstractmethod
    def insert_sample(self, sample: ProductSample) -> ProductSample: ...

    @abstractmethod
    def save_sample(self, sample: ProductSample) -> ProductSample: ...

    @abstractmethod
    def next_sequential_number(self, event_id: UUID) -> int:
        """Next free sample number within the event (1-based)."""

    # --- commissions ---------------------------------------------------------

    @abstractmethod
    def get_commission(self, commission_id: UUID) -> Optional[Commission]: ...

    @abstractmethod
    def save_commission(self, commission: Commission) -> Commission: ...

    # --- sessions ------------------------------------------------------------

    @abstractmethod
    def get_session(self, session_id: UUID) -> Optional[EvaluationSession]: ...

    @abstractmethod
    def get_active_session(self, sample_id: UUID) -> Optional[EvaluationSession]: ...

    @abstractmethod
    def list_sessions(self, sample_id: UUID) -> List[EvaluationSession]: ...

    @abstractmethod
    def insert_session(self, session: EvaluationSession) -> EvaluationSession: ...

    @abstractmethod
    def save_session(self, session: EvaluationSession) -> EvaluationSession: ...

    # --- expert evaluations --------------------------------------------------

    @abstractmethod
    def get_evaluation(self, evaluation_id: UUID) -> Optional[ExpertEvaluation]: ...

    @abstractmethod
    def find_evaluation(
        self, session_id: UUID, commission_member_id: UUID
    ) -> Optional[ExpertEvaluation]: ...

    @abstractmethod
    def list_evaluations(self, session_id: UUID) -> List[ExpertEvaluation]: ...

    @abstractmethod
    def insert_evaluation(self, evaluation: ExpertEvaluation) -> ExpertEvaluation: ...

    @abstractmethod
    def save_evaluation(self, evaluation: ExpertEvaluation) -> ExpertEvaluation: ...

    # --- criteria & policy ---------------------------------------------------

    @abstractmethod
    def list_criteria(
        self, event_id: UUID, commission_id: Optional[UUID] = None
    ) -> List[EvaluationCriterion]:
        """Criteria of the event; with ``commission_id`` only those applying to it."""

    @abstractmethod
    def save_criterion(self, criterion: EvaluationCriterion) -> EvaluationCriterion: ...

    @abstractmethod
    def get_policy(self, event_id: UUID) -> Optional[ScoringPolicy]: ...

    @abstractmethod
    def save_policy(self, policy: ScoringPolicy) -> ScoringPolicy: ...

    # --- versioned documents -------------------------------------------------

    @abstractmethod
    def get_document(self, document_id: UUID) -> Optional[VersionedDocument]: ...

    @abstractmethod
    def list_document_versions(
        self, event_id: UUID, kind: DocumentKind, document_number: int
    ) -> List[VersionedDocument]:
        """All versions of one document number, ascending by version."""

    @abstractmethod
    def list_documents_for_sample(self, sample_id: UUID) -> List[VersionedDocument]: ...

    @abstractmethod
    def insert_document(self, document: VersionedDocument) -> VersionedDocument: ...

    @abstractmethod
    def update_document_status(self, document: VersionedDocument) -> VersionedDocument: ...

    @abstractmethod
    def next_document_number(self, event_id: UUID, kind: DocumentKind) -> int: ...

    def get_latest_document(
        self, event_id: UUID, kind: DocumentKind, document_number: int
    ) -> Optional[VersionedDocument]:
        versions = self.list_document_versions(event_id, kind, document_number)
        return versions[-1] if versions else None
