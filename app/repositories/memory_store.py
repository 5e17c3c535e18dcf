"""
In-Memory Store - FoodEval Scoring Engine
app/repositories/memory_store.py

Process-local EvaluationStore for development and tests.

Entities are deep-copied on the way in and out, so a caller holding a loaded
entity never shares state with the store.
"""

import threading
from collections import defaultdict
from typing import Dict, List, Optional, Tuple, TypeVar
from uuid import UUID

from pydantic import BaseModel

from app.core.exceptions import DuplicateEntityException, RepositoryException
from app.models.commission import Commission
from app.models.criterion import EvaluationCriterion, ScoringPolicy
from app.models.document import VersionedDocument
from app.models.enumerations import DocumentKind, SessionStatus
from app.models.evaluation import ExpertEvaluation
from app.models.sample import ProductSample
from app.models.session import EvaluationSession
from app.repositories.gateway import EvaluationStore

T = TypeVar("T", bound=BaseModel)

DOCUMENT_STATUS_FIELDS = ("status", "generated_at", "sent_at", "acknowledged_at", "artifact_path")


def _copy(entity: Optional[T]) -> Optional[T]:
    return entity.model_copy(deep=True) if entity is not None else None


class InMemoryEvaluationStore(EvaluationStore):
    """Dict-backed store guarded by a single re-entrant lock."""

    def __init__(self):
        self._lock = threading.RLock()
        self._samples: Dict[UUID, ProductSample] = {}
        self._commissions: Dict[UUID, Commission] = {}
        self._sessions: Dict[UUID, EvaluationSession] = {}
        self._evaluations: Dict[UUID, ExpertEvaluation] = {}
        self._criteria: Dict[UUID, EvaluationCriterion] = {}
        self._policies: Dict[UUID, ScoringPolicy] = {}
        self._documents: Dict[UUID, VersionedDocument] = {}
        self._sequence_counters: Dict[UUID, int] = defaultdict(int)
        self._document_counters: Dict[Tuple[UUID, DocumentKind], int] = defaultdict(int)

    # --- samples -------------------------------------------------------------

    def get_sample(self, sample_id: UUID) -> Optional[ProductSample]:
        with self._lock:
            return _copy(self._samples.get(sample_id))

    def list_samples(self, event_id: UUID) -> List[ProductSample]:
        with self._lock:
            samples = [s for s in self._samples.values() if s.event_id == event_id]
            return [_copy(s) for s in sorted(samples, key=lambda s: s.sequential_number)]

    def insert_sample(self, sample: ProductSample) -> ProductSample:
        with self._lock:
            for existing in self._samples.values():
                if existing.id == sample.id:
                    raise DuplicateEntityException(f"ProductSample {sample.id} already exists")
                if existing.code == sample.code:
                    raise DuplicateEntityException(f"Sample code {sample.code} already in use")
                if (existing.event_id == sample.event_id
                        and existing.sequential_number == sample.sequential_number):
                    raise DuplicateEntityException(
                        f"Sequential number {sample.sequential_number} already used in event"
                    )
            self._samples[sample.id] = _copy(sample)
            self._sequence_counters[sample.event_id] = max(
                self._sequence_counters[sample.event_id], sample.sequential_number
            )
            return _copy(sample)

    def save_sample(self, sample: ProductSample) -> ProductSample:
        with self._lock:
            self._samples[sample.id] = _copy(sample)
            return _copy(sample)

    def next_sequential_number(self, event_id: UUID) -> int:
        with self._lock:
            self._sequence_counters[event_id] += 1
            return self._sequence_counters[event_id]

    # --- commissions ---------------------------------------------------------

    def get_commission(self, commission_id: UUID) -> Optional[Commission]:
        with self._lock:
            return _copy(self._commissions.get(commission_id))

    def save_commission(self, commission: Commission) -> Commission:
        with self._lock:
            self._commissions[commission.id] = _copy(commission)
            return _copy(commission)

    # --- sessions ------------------------------------------------------------

    def get_session(self, session_id: UUID) -> Optional[EvaluationSession]:
        with self._lock:
            return _copy(self._sessions.get(session_id))

    def get_active_session(self, sample_id: UUID) -> Optional[EvaluationSession]:
        with self._lock:
            return _copy(next(
                (s for s in self._sessions.values()
                 if s.product_sample_id == sample_id and s.status == SessionStatus.ACTIVE),
                None,
            ))

    def list_sessions(self, sample_id: UUID) -> List[EvaluationSession]:
        with self._lock:
            sessions = [s for s in self._sessions.values() if s.product_sample_id == sample_id]
            return [_copy(s) for s in sorted(sessions, key=lambda s: s.activated_at)]

    def insert_session(self, session: EvaluationSession) -> EvaluationSession:
        with self._lock:
            if session.id in self._sessions:
                raise DuplicateEntityException(f"EvaluationSession {session.id} already exists")
            if session.status == SessionStatus.ACTIVE and self.get_active_session(session.product_sample_id):
                raise DuplicateEntityException(
                    f"Sample {session.product_sample_id} already has an active session"
                )
            self._sessions[session.id] = _copy(session)
            return _copy(session)

    def save_session(self, session: EvaluationSession) -> EvaluationSession:
        with self._lock:
            self._sessions[session.id] = _copy(session)
            return _copy(session)

    # --- expert evaluations --------------------------------------------------

    def get_evaluation(self, evaluation_id: UUID) -> Optional[ExpertEvaluation]:
        with self._lock:
            return _copy(self._evaluations.get(evaluation_id))

    def find_evaluation(
        self, session_id: UUID, commission_member_id: UUID
    ) -> Optional[ExpertEvaluation]:
        with self._lock:
            return _copy(next(
                (e for e in self._evaluations.values()
                 if e.session_id == session_id and e.commission_member_id == commission_member_id),
                None,
            ))

    def list_evaluations(self, session_id: UUID) -> List[ExpertEvaluation]:
        with self._lock:
            evaluations = [e for e in self._evaluations.values() if e.session_id == session_id]
            return [_copy(e) for e in sorted(evaluations, key=lambda e: e.created_at)]

    def insert_evaluation(self, evaluation: ExpertEvaluation) -> ExpertEvaluation:
        with self._lock:
            if evaluation.id in self._evaluations:
                raise DuplicateEntityException(f"ExpertEvaluation {evaluation.id} already exists")
            if self.find_evaluation(evaluation.session_id, evaluation.commission_member_id):
                raise DuplicateEntityException(
                    "Evaluation already exists for this member and session"
                )
            self._evaluations[evaluation.id] = _copy(evaluation)
            return _copy(evaluation)

    def save_evaluation(self, evaluation: ExpertEvaluation) -> ExpertEvaluation:
        with self._lock:
            self._evaluations[evaluation.id] = _copy(evaluation)
            return _copy(evaluation)

    # --- criteria & policy ---------------------------------------------------

    def list_criteria(
        self, event_id: UUID, commission_id: Optional[UUID] = None
    ) -> List[EvaluationCriterion]:
        with self._lock:
            criteria = [
                c for c in self._criteria.values()
                if c.event_id == event_id
                and (commission_id is None or c.applies_to(commission_id))
            ]
            return [_copy(c) for c in sorted(criteria, key=lambda c: (c.display_order, c.name))]

    def save_criterion(self, criterion: EvaluationCriterion) -> EvaluationCriterion:
        with self._lock:
            self._criteria[criterion.id] = _copy(criterion)
            return _copy(criterion)

    def get_policy(self, event_id: UUID) -> Optional[ScoringPolicy]:
        with self._lock:
            return _copy(self._policies.get(event_id))

    def save_policy(self, policy: ScoringPolicy) -> ScoringPolicy:
        with self._lock:
            self._policies[policy.event_id] = _copy(policy)
            return _copy(policy)

    # --- versioned documents -------------------------------------------------

    def get_document(self, document_id: UUID) -> Optional[VersionedDocument]:
        with self._lock:
            return _copy(self._documents.get(document_id))

    def list_document_versions(
        self, event_id: UUID, kind: DocumentKind, document_number: int
    ) -> List[VersionedDocument]:
        with self._lock:
            versions = [
                d for d in self._documents.values()
                if d.event_id == event_id and d.kind == kind
                and d.document_number == document_number
            ]
            return [_copy(d) for d in sorted(versions, key=lambda d: d.version)]

    def list_documents_for_sample(self, sample_id: UUID) -> List[VersionedDocument]:
        with self._lock:
            documents = [d for d in self._documents.values() if d.product_sample_id == sample_id]
            return [
                _copy(d) for d in
                sorted(documents, key=lambda d: (d.kind.value, d.document_number, d.version))
            ]

    def insert_document(self, document: VersionedDocument) -> VersionedDocument:
        with self._lock:
            if document.id in self._documents:
                raise DuplicateEntityException(f"Document {document.id} already exists")
            for existing in self._documents.values():
                if (existing.event_id == document.event_id and existing.kind == document.kind
                        and existing.document_number == document.document_number
                        and existing.version == document.version):
                    raise DuplicateEntityException(
                        f"{document.kind.value} {document.document_number} "
                        f"version {document.version} already exists"
                    )
            self._documents[document.id] = _copy(document)
            self._document_counters[(document.event_id, document.kind)] = max(
                self._document_counters[(document.event_id, document.kind)],
                document.document_number,
            )
            return _copy(document)

    def update_document_status(self, document: VersionedDocument) -> VersionedDocument:
        with self._lock:
            stored = self._documents.get(document.id)
            if stored is None:
                raise RepositoryException(f"Document {document.id} does not exist")
            changes = {name: getattr(document, name) for name in DOCUMENT_STATUS_FIELDS}
            self._documents[document.id] = stored.model_copy(update=changes, deep=True)
            return _copy(self._documents[document.id])

    def next_document_number(self, event_id: UUID, kind: DocumentKind) -> int:
        with self._lock:
            self._document_counters[(event_id, kind)] += 1
            return self._document_counters[(event_id, kind)]
