# tests/test_document_service.py

"""
Versioned Document Generator Tests - numbering, version chains, status flow
"""

import threading
from decimal import Decimal
from uuid import uuid4

import pytest

from app.core.exceptions import (
    DuplicateVersion,
    EntityNotFoundException,
    InvalidDocumentTransition,
    LockConflict,
    RepositoryException,
    ValidationFailedError,
)
from app.models.document import Protocol, Record
from app.models.enumerations import DocumentKind, DocumentStatus


@pytest.fixture
def author():
    return uuid4()


@pytest.fixture
def scored_sample(store, submitted_sample):
    sample = store.get_sample(submitted_sample.id)
    sample.record_final_score(Decimal("6.00"))
    return store.save_sample(sample)


@pytest.fixture
def protocol(document_service, scored_sample, author):
    return document_service.generate_initial(scored_sample.id, DocumentKind.PROTOCOL, author)


class TestGenerateInitial:

    def test_first_version(self, protocol, scored_sample, author):
        assert isinstance(protocol, Protocol)
        assert protocol.version == 1
        assert protocol.previous_version_id is None
        assert protocol.status == DocumentStatus.DRAFT
        assert protocol.final_score == Decimal("6.00")
        assert protocol.applicant_id == scored_sample.applicant_id
        assert protocol.version_created_by == author

    def test_numbers_are_per_kind(self, document_service, scored_sample, protocol, author):
        second = document_service.generate_initial(scored_sample.id, DocumentKind.PROTOCOL, author)
        record = document_service.generate_initial(scored_sample.id, DocumentKind.RECORD, author)

        assert (protocol.document_number, second.document_number) == (1, 2)
        assert isinstance(record, Record)
        assert record.document_number == 1

    def test_unscored_sample_rejected(self, document_service, submitted_sample, author):
        with pytest.raises(ValidationFailedError):
            document_service.generate_initial(submitted_sample.id, DocumentKind.PROTOCOL, author)


class TestNewVersion:

    def test_version_links_to_previous(self, document_service, protocol, author):
        v2 = document_service.create_new_version(protocol.id, author, Decimal("6.50"))

        assert v2.version == 2
        assert v2.previous_version_id == protocol.id
        assert v2.document_number == protocol.document_number
        assert v2.final_score == Decimal("6.50")
        assert v2.status == DocumentStatus.DRAFT

    def test_score_defaults_to_sample(self, document_service, protocol, author, store, scored_sample):
        sample = store.get_sample(scored_sample.id)
        sample.record_final_score(Decimal("7.25"))
        store.save_sample(sample)

        v2 = document_service.create_new_version(protocol.id, author)
        assert v2.final_score == Decimal("7.25")
        assert document_service.get_document(protocol.id).final_score == Decimal("6.00")

    def test_superseded_version_cannot_branch(self, document_service, protocol, author):
        document_service.create_new_version(protocol.id, author)
        with pytest.raises(DuplicateVersion) as exc_info:
            document_service.create_new_version(protocol.id, author)
        assert exc_info.value.retryable

    def test_concurrent_versions_form_a_line(self, document_service, protocol, author, store):
        created, rejected = [], []
        barrier = threading.Barrier(5)

        def bump():
            barrier.wait()
            try:
                created.append(document_service.create_new_version(protocol.id, author))
            except (DuplicateVersion, LockConflict) as e:
                rejected.append(e)

        threads = [threading.Thread(target=bump) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(created) == 1
        versions = store.list_document_versions(protocol.event_id, DocumentKind.PROTOCOL, 1)
        assert [v.version for v in versions] == [1, 2]


class TestVersionChain:

    def test_chain_newest_first(self, document_service, protocol, author):
        v2 = document_service.create_new_version(protocol.id, author)
        v3 = document_service.create_new_version(v2.id, author)

        chain = document_service.get_version_chain(v3.id)
        assert [d.version for d in chain] == [3, 2, 1]
        assert [d.id for d in chain] == [v3.id, v2.id, protocol.id]

    def test_latest_version(self, document_service, protocol, author):
        v2 = document_service.create_new_version(protocol.id, author)
        latest = document_service.get_latest_version(protocol.event_id, DocumentKind.PROTOCOL, 1)
        assert latest.id == v2.id

        with pytest.raises(EntityNotFoundException):
            document_service.get_latest_version(protocol.event_id, DocumentKind.RECORD, 1)

    def test_broken_chain_detected(self, document_service, protocol, author, store):
        v2 = document_service.create_new_version(protocol.id, author)
        del store._documents[protocol.id]

        with pytest.raises(RepositoryException):
            document_service.get_version_chain(v2.id)


class TestTransitions:

    def test_full_status_flow(self, document_service, protocol, renderer, notifier, store):
        document_service.transition(protocol.id, DocumentStatus.GENERATED)
        document_service.transition(protocol.id, DocumentStatus.SENT)
        done = document_service.transition(protocol.id, DocumentStatus.ACKNOWLEDGED)

        assert done.status == DocumentStatus.ACKNOWLEDGED
        stored = store.get_document(protocol.id)
        assert stored.artifact_path == "artifacts/document.pdf"
        assert stored.generated_at and stored.sent_at and stored.acknowledged_at
        renderer.render.assert_called_once()
        notifier.document_sent.assert_called_once()

    def test_skipping_a_status_fails(self, document_service, protocol):
        with pytest.raises(InvalidDocumentTransition):
            document_service.transition(protocol.id, DocumentStatus.SENT)

    def test_superseded_sent_version_is_frozen(self, document_service, protocol, author, store):
        document_service.transition(protocol.id, DocumentStatus.GENERATED)
        document_service.transition(protocol.id, DocumentStatus.SENT)
        v2 = document_service.create_new_version(protocol.id, author, Decimal("6.50"))

        with pytest.raises(InvalidDocumentTransition):
            document_service.transition(protocol.id, DocumentStatus.ACKNOWLEDGED)

        assert store.get_document(protocol.id).status == DocumentStatus.SENT
        assert store.get_document(v2.id).status == DocumentStatus.DRAFT
        assert document_service.transition(v2.id, DocumentStatus.GENERATED).status == DocumentStatus.GENERATED
