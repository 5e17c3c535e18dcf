"""
Core Package - FoodEval Scoring Engine
app/core/__init__.py

Core infrastructure: dependencies, exceptions.
"""

from app.core.exceptions import (
    ConflictError,
    DatabaseConnectionException,
    DuplicateEntityException,
    EntityNotFoundException,
    EvaluationError,
    InsufficientDataError,
    InvalidTransitionError,
    LockedError,
    RepositoryException,
    ValidationFailedError,
)

__all__ = [
    # Exceptions
    "ConflictError",
    "DatabaseConnectionException",
    "DuplicateEntityException",
    "EntityNotFoundException",
    "EvaluationError",
    "InsufficientDataError",
    "InvalidTransitionError",
    "LockedError",
    "RepositoryException",
    "ValidationFailedError",
]
