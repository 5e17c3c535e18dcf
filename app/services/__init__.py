"""
Services module for the FoodEval Scoring Engine.
"""

from app.services.aggregation_service import AggregationService
from app.services.collaborators import DocumentRenderer, Notifier
from app.services.criteria_service import CriteriaService
from app.services.document_service import DocumentService
from app.services.evaluation_service import EvaluationService
from app.services.locks import LocalLockManager, LockManager, RedisLockManager
from app.services.roster_validator import RosterService, resolve_activator, validate_roster
from app.services.sample_service import SampleService
from app.services.session_service import SessionService

__all__ = [
    "AggregationService",
    "CriteriaService",
    "DocumentRenderer",
    "DocumentService",
    "EvaluationService",
    "LocalLockManager",
    "LockManager",
    "Notifier",
    "RedisLockManager",
    "RosterService",
    "SampleService",
    "SessionService",
    "resolve_activator",
    "validate_roster",
]
