# tests/conftest.py

"""
Pytest Fixtures - Shared workflow wiring and seed data for services and APIs

Every test gets a fresh InMemoryEvaluationStore and LocalLockManager; the
FastAPI client is wired to the same instances through dependency overrides.

SEED ROSTER (commission fixture):
- main member, president, three members, one trainee
"""

import threading
import time
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Tuple
from unittest.mock import MagicMock
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from app.core import dependencies
from app.core.exceptions import EvaluationError
from app.main import app
from app.models.commission import Commission, CommissionCreate, CommissionMemberCreate
from app.models.criterion import EvaluationCriterion, ScoringPolicy
from app.models.enumerations import CommissionMemberRole, EvaluationMode
from app.models.evaluation import EvaluationCreate, ExpertEvaluation
from app.models.sample import ProductSample, SampleCreate
from app.models.session import EvaluationSession, SessionCreate
from app.repositories.memory_store import InMemoryEvaluationStore
from app.services.aggregation_service import AggregationService
from app.services.collaborators import DocumentRenderer, Notifier
from app.services.criteria_service import CriteriaService
from app.services.document_service import DocumentService
from app.services.evaluation_service import EvaluationService
from app.services.locks import LocalLockManager
from app.services.roster_validator import RosterService
from app.services.sample_service import SampleService
from app.services.session_service import SessionService


# =============================================================================
# INFRASTRUCTURE FIXTURES
# =============================================================================

@pytest.fixture
def store():
    return InMemoryEvaluationStore()


@pytest.fixture
def locks():
    return LocalLockManager(blocking_timeout=1.0)


@pytest.fixture
def notifier():
    return MagicMock(spec=Notifier)


@pytest.fixture
def renderer():
    mock = MagicMock(spec=DocumentRenderer)
    mock.render.return_value = "artifacts/document.pdf"
    return mock


@pytest.fixture
def slow_reads(store, monkeypatch):
    """Session and evaluation reads pause after loading, widening read-to-save windows."""
    def slowed(read):
        def _read(*args, **kwargs):
            result = read(*args, **kwargs)
            time.sleep(0.05)
            return result
        return _read

    for name in ("get_session", "get_evaluation"):
        monkeypatch.setattr(store, name, slowed(getattr(store, name)))
    return store


@pytest.fixture
def race():
    """Start the callables together; returns ("ok", value) or ("error", exc) per callable."""
    def _race(*calls: Callable) -> List[Tuple[str, object]]:
        outcomes: List[Tuple[str, object]] = [("pending", None)] * len(calls)
        barrier = threading.Barrier(len(calls))

        def run(index, call):
            barrier.wait()
            try:
                outcomes[index] = ("ok", call())
            except EvaluationError as e:
                outcomes[index] = ("error", e)

        threads = [threading.Thread(target=run, args=(i, call)) for i, call in enumerate(calls)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        return outcomes
    return _race


# =============================================================================
# SERVICE FIXTURES
# =============================================================================

@pytest.fixture
def roster_service(store):
    return RosterService(store)


@pytest.fixture
def criteria_service(store):
    return CriteriaService(store)


@pytest.fixture
def sample_service(store, locks):
    return SampleService(store, locks)


@pytest.fixture
def session_service(store, locks, notifier):
    return SessionService(store, locks, notifier)


@pytest.fixture
def evaluation_service(store, locks, notifier):
    return EvaluationService(
        store, locks, notifier, exclude_trainees=True, auto_exclusion_ratio=0.5
    )


@pytest.fixture
def aggregation_service(store, locks, notifier):
    return AggregationService(store, locks, notifier)


@pytest.fixture
def document_service(store, locks, renderer, notifier):
    return DocumentService(store, locks, renderer, notifier)


# =============================================================================
# SEED DATA FIXTURES
# =============================================================================

@pytest.fixture
def event_id():
    return uuid4()


@pytest.fixture
def category_id():
    return uuid4()


@pytest.fixture
def applicant_id():
    return uuid4()


@pytest.fixture
def roster_users() -> Dict[str, UUID]:
    """User ids keyed by seat name."""
    return {
        "main": uuid4(),
        "president": uuid4(),
        "member_1": uuid4(),
        "member_2": uuid4(),
        "member_3": uuid4(),
        "trainee": uuid4(),
    }


@pytest.fixture
def commission(roster_service, roster_users) -> Commission:
    roles = {
        "main": CommissionMemberRole.MAIN_MEMBER,
        "president": CommissionMemberRole.PRESIDENT,
        "member_1": CommissionMemberRole.MEMBER,
        "member_2": CommissionMemberRole.MEMBER,
        "member_3": CommissionMemberRole.MEMBER,
        "trainee": CommissionMemberRole.TRAINEE,
    }
    return roster_service.create_commission(CommissionCreate(
        name="Dairy Commission",
        members=[
            CommissionMemberCreate(user_id=roster_users[seat], role=role)
            for seat, role in roles.items()
        ],
    ))


@pytest.fixture
def member_ids(commission, roster_users) -> Dict[str, UUID]:
    """Commission member ids keyed by seat name."""
    return {seat: commission.member_for_user(user).id for seat, user in roster_users.items()}


@pytest.fixture
def make_sample(sample_service, event_id, category_id, applicant_id):
    def _make(mode: EvaluationMode = EvaluationMode.FINAL_SCORE, submit: bool = True) -> ProductSample:
        sample = sample_service.register_sample(SampleCreate(
            event_id=event_id,
            applicant_id=applicant_id,
            category_id=category_id,
            name="Aged cheese",
            evaluation_mode=mode,
        ))
        if submit:
            sample = sample_service.submit_sample(sample.id)
        return sample
    return _make


@pytest.fixture
def submitted_sample(make_sample) -> ProductSample:
    return make_sample()


@pytest.fixture
def criteria_sample(make_sample) -> ProductSample:
    return make_sample(EvaluationMode.CRITERIA_BASED)


@pytest.fixture
def open_session(session_service, event_id, commission, roster_users):
    def _open(sample: ProductSample) -> EvaluationSession:
        return session_service.create_session(
            SessionCreate(event_id=event_id, product_sample_id=sample.id, commission_id=commission.id),
            roster_users["president"],
        )
    return _open


@pytest.fixture
def active_session(open_session, submitted_sample) -> EvaluationSession:
    return open_session(submitted_sample)


@pytest.fixture
def submit_scores(evaluation_service, member_ids):
    """Create and submit final-score evaluations, one per (seat, score) pair."""
    def _submit(session: EvaluationSession, scores: Iterable) -> List[ExpertEvaluation]:
        seats = ["main", "president", "member_1", "member_2", "member_3"]
        submitted = []
        for seat, score in zip(seats, scores):
            evaluation = evaluation_service.create_evaluation(EvaluationCreate(
                session_id=session.id,
                commission_member_id=member_ids[seat],
                final_score=Decimal(str(score)),
            ))
            submitted.append(evaluation_service.submit_evaluation(evaluation.id))
        return submitted
    return _submit


@pytest.fixture
def criteria(store, event_id) -> List[EvaluationCriterion]:
    taste = EvaluationCriterion(
        event_id=event_id, name="Taste", min_score=1, max_score=5,
        is_required=True, display_order=1,
    )
    aroma = EvaluationCriterion(
        event_id=event_id, name="Aroma", min_score=1, max_score=5, display_order=2,
    )
    for criterion in (taste, aroma):
        store.save_criterion(criterion)
    return [taste, aroma]


@pytest.fixture
def default_policy(event_id) -> ScoringPolicy:
    return ScoringPolicy(
        event_id=event_id,
        trim_high_low_from_count=5,
        trim_count_high=1,
        trim_count_low=1,
        rounding_decimals=2,
    )


# =============================================================================
# FASTAPI TEST CLIENT FIXTURE
# =============================================================================

@pytest.fixture
def client(store, roster_service, criteria_service, sample_service, session_service,
           evaluation_service, aggregation_service, document_service):
    """TestClient wired to this test's store and services."""
    app.dependency_overrides.update({
        dependencies.get_store: lambda: store,
        dependencies.get_roster_service: lambda: roster_service,
        dependencies.get_criteria_service: lambda: criteria_service,
        dependencies.get_sample_service: lambda: sample_service,
        dependencies.get_session_service: lambda: session_service,
        dependencies.get_evaluation_service: lambda: evaluation_service,
        dependencies.get_aggregation_service: lambda: aggregation_service,
        dependencies.get_document_service: lambda: document_service,
    })
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
