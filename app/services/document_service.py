"""
Document Service - FoodEval Scoring Engine
app/services/document_service.py

Append-only version chains of Protocols and Records.

Document numbers are allocated per (event, kind) under the
``counter:document:<event>:<kind>`` lock. Re-versioning and status changes of
one document number run under ``document:<event>:<kind>:<number>`` so that
exactly one version is ever the latest, and only the latest may move.
"""

import logging
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from app.core.exceptions import (
    DuplicateEntityException,
    DuplicateVersion,
    EntityNotFoundException,
    InvalidDocumentTransition,
    RepositoryException,
    ValidationFailedError,
)
from app.models.document import DOCUMENT_CLASSES, VersionedDocument
from app.models.enumerations import DocumentKind, DocumentStatus
from app.models.sample import ProductSample
from app.repositories.gateway import EvaluationStore
from app.services.collaborators import DocumentRenderer, Notifier
from app.services.locks import LockManager

logger = logging.getLogger(__name__)


def document_lock_key(document: VersionedDocument) -> str:
    return f"document:{document.event_id}:{document.kind.value}:{document.document_number}"


class DocumentService:

    def __init__(
        self,
        store: EvaluationStore,
        locks: LockManager,
        renderer: Optional[DocumentRenderer] = None,
        notifier: Optional[Notifier] = None,
    ):
        self.store = store
        self.locks = locks
        self.renderer = renderer or DocumentRenderer()
        self.notifier = notifier or Notifier()

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get_document(self, document_id: UUID) -> VersionedDocument:
        document = self.store.get_document(document_id)
        if document is None:
            raise EntityNotFoundException("Document", document_id)
        return document

    def list_documents(self, sample_id: UUID) -> List[VersionedDocument]:
        return self.store.list_documents_for_sample(sample_id)

    def get_latest_version(
        self, event_id: UUID, kind: DocumentKind, document_number: int
    ) -> VersionedDocument:
        latest = self.store.get_latest_document(event_id, kind, document_number)
        if latest is None:
            raise EntityNotFoundException(kind.value.capitalize(), f"{event_id}/{document_number}")
        return latest

    def get_version_chain(self, document_id: UUID) -> List[VersionedDocument]:
        """
        Follow ``previous_version_id`` from ``document_id`` back to version 1.

        Returns versions newest first. Raises RepositoryException if the stored
        chain has a cycle, a gap, or does not end at version 1.
        """
        chain = [self.get_document(document_id)]
        seen = {chain[0].id}

        while chain[-1].previous_version_id is not None:
            current = chain[-1]
            previous = self.store.get_document(current.previous_version_id)
            if previous is None:
                raise RepositoryException(
                    f"Version chain of document {document_id} is broken at version {current.version}"
                )
            if previous.id in seen or previous.version >= current.version:
                raise RepositoryException(
                    f"Version chain of document {document_id} is not strictly decreasing"
                )
            seen.add(previous.id)
            chain.append(previous)

        if chain[-1].version != 1:
            raise RepositoryException(
                f"Version chain of document {document_id} ends at version {chain[-1].version}"
            )
        return chain

    # =========================================================================
    # GENERATION
    # =========================================================================

    def generate_initial(
        self, sample_id: UUID, kind: DocumentKind, created_by: UUID
    ) -> VersionedDocument:
        """Version 1 of a new document number, in Draft, snapshotting the sample's score."""
        sample = self._scored_sample(sample_id)

        with self.locks.hold(f"counter:document:{sample.event_id}:{kind.value}"):
            number = self.store.next_document_number(sample.event_id, kind)
            document = DOCUMENT_CLASSES[kind](
                event_id=sample.event_id,
                product_sample_id=sample.id,
                applicant_id=sample.applicant_id,
                document_number=number,
                final_score=sample.final_score,
                version_created_by=created_by,
            )
            self.store.insert_document(document)

        logger.info(
            "document_version_created",
            extra={"document_id": str(document.id), "kind": kind.value,
                   "document_number": number, "version": 1},
        )
        return document

    def create_new_version(
        self,
        document_id: UUID,
        created_by: UUID,
        final_score: Optional[Decimal] = None,
    ) -> VersionedDocument:
        """
        Append version N+1 after ``document_id``.

        ``final_score`` defaults to the sample's current score.

        Raises:
            DuplicateVersion: ``document_id`` is no longer the latest version
        """
        previous = self.get_document(document_id)
        if final_score is None:
            final_score = self._scored_sample(previous.product_sample_id).final_score

        with self.locks.hold(document_lock_key(previous)):
            self._ensure_latest(previous, DuplicateVersion)
            document = previous.create_new_version(created_by, final_score)
            try:
                self.store.insert_document(document)
            except DuplicateEntityException as e:
                raise DuplicateVersion(e.message, {"document_id": str(document_id)}) from e

        logger.info(
            "document_version_created",
            extra={"document_id": str(document.id), "kind": document.kind.value,
                   "document_number": document.document_number, "version": document.version,
                   "previous_version_id": str(previous.id)},
        )
        return document

    def transition(self, document_id: UUID, new_status: DocumentStatus) -> VersionedDocument:
        """
        Move a document along Draft → Generated → Sent → Acknowledged.

        Only the latest version of a document number may move. The renderer
        runs on Generated, the notifier on Sent.
        """
        document = self.get_document(document_id)

        with self.locks.hold(document_lock_key(document)):
            document = self.get_document(document_id)
            self._ensure_latest(document, InvalidDocumentTransition)
            previous_status = document.status
            document.transition_to(new_status)
            if new_status == DocumentStatus.GENERATED:
                document.artifact_path = self.renderer.render(document)
            self.store.update_document_status(document)

        logger.info(
            "document_status_changed",
            extra={"document_id": str(document.id), "from": previous_status.value,
                   "to": new_status.value, "version": document.version},
        )
        if new_status == DocumentStatus.SENT:
            self.notifier.document_sent(document)
        return document

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _scored_sample(self, sample_id: UUID) -> ProductSample:
        sample = self.store.get_sample(sample_id)
        if sample is None:
            raise EntityNotFoundException("ProductSample", sample_id)
        if sample.final_score is None:
            raise ValidationFailedError(
                "Sample has no final score to put on a document", {"sample_id": str(sample_id)}
            )
        return sample

    def _ensure_latest(self, document: VersionedDocument, error) -> None:
        latest = self.store.get_latest_document(
            document.event_id, document.kind, document.document_number
        )
        if latest is not None and latest.id != document.id:
            raise error(
                f"{document.kind.value.capitalize()} {document.document_number} "
                f"version {document.version} is superseded by version {latest.version}",
                {"document_id": str(document.id), "latest_version_id": str(latest.id)},
            )
