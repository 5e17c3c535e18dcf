"""
Dependencies - FoodEval Scoring Engine
app/core/dependencies.py

FastAPI dependency injection for the store, locks and workflow services.
"""

from functools import lru_cache
from uuid import UUID

from fastapi import Header

from app.config import settings
from app.repositories.gateway import EvaluationStore
from app.services.aggregation_service import AggregationService
from app.services.collaborators import DocumentRenderer, Notifier
from app.services.criteria_service import CriteriaService
from app.services.document_service import DocumentService
from app.services.evaluation_service import EvaluationService
from app.services.locks import get_lock_manager
from app.services.roster_validator import RosterService
from app.services.sample_service import SampleService
from app.services.session_service import SessionService


@lru_cache()
def get_store() -> EvaluationStore:
    """Get cached store for the configured STORAGE_BACKEND."""
    if settings.STORAGE_BACKEND == "snowflake":
        from app.repositories.snowflake_store import SnowflakeEvaluationStore
        return SnowflakeEvaluationStore()
    from app.repositories.memory_store import InMemoryEvaluationStore
    return InMemoryEvaluationStore()


@lru_cache()
def get_notifier() -> Notifier:
    return Notifier()


@lru_cache()
def get_renderer() -> DocumentRenderer:
    return DocumentRenderer()


@lru_cache()
def get_roster_service() -> RosterService:
    return RosterService(get_store())


@lru_cache()
def get_criteria_service() -> CriteriaService:
    return CriteriaService(get_store())


@lru_cache()
def get_sample_service() -> SampleService:
    return SampleService(get_store(), get_lock_manager())


@lru_cache()
def get_session_service() -> SessionService:
    return SessionService(get_store(), get_lock_manager(), get_notifier())


@lru_cache()
def get_evaluation_service() -> EvaluationService:
    return EvaluationService(get_store(), get_lock_manager(), get_notifier())


@lru_cache()
def get_aggregation_service() -> AggregationService:
    return AggregationService(get_store(), get_lock_manager(), get_notifier())


@lru_cache()
def get_document_service() -> DocumentService:
    return DocumentService(get_store(), get_lock_manager(), get_renderer(), get_notifier())


def get_current_user_id(x_user_id: UUID = Header(..., alias="X-User-Id")) -> UUID:
    """Acting user, as validated upstream by the identity provider."""
    return x_user_id
