"""
Custom Exceptions - FoodEval Scoring Engine
app/core/exceptions.py

Repository-level exceptions plus the evaluation workflow error taxonomy.

Every workflow error carries a machine-readable ``error_code`` and a
``retryable`` flag. Only ``ConflictError`` subclasses are retryable.
"""

from typing import Any, Dict, Optional


class RepositoryException(Exception):
    """Base exception for repository operations."""

    pass


class DatabaseConnectionException(RepositoryException):
    """Database connection failure."""

    def __init__(self, message: str = "Database connection failed"):
        self.message = message
        super().__init__(message)


class DuplicateEntityException(RepositoryException):
    """Duplicate entity violation."""

    def __init__(self, message: str = "Entity already exists"):
        self.message = message
        super().__init__(message)


# =============================================================================
# WORKFLOW ERROR TAXONOMY
# =============================================================================


class EvaluationError(Exception):
    """Base class for every error raised by the evaluation workflow."""

    error_code = "EVALUATION_ERROR"
    retryable = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class EntityNotFoundException(EvaluationError):
    """Referenced entity is absent."""

    error_code = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: Any):
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(
            f"{entity_type} with ID {entity_id} not found",
            {"entity_type": entity_type, "entity_id": str(entity_id)},
        )


# --- InvalidTransition -------------------------------------------------------


class InvalidTransitionError(EvaluationError):
    """State machine violation."""

    error_code = "INVALID_TRANSITION"


class InvalidDocumentTransition(InvalidTransitionError):
    error_code = "INVALID_DOCUMENT_TRANSITION"


class SessionNotActive(InvalidTransitionError):
    """Session is Completed or Cancelled; nothing may change under it."""

    error_code = "SESSION_NOT_ACTIVE"


# --- Conflict ----------------------------------------------------------------


class ConflictError(EvaluationError):
    """Concurrency invariant would be violated. Re-check state and retry."""

    error_code = "CONFLICT"
    retryable = True


class SessionAlreadyActive(ConflictError):
    error_code = "SESSION_ALREADY_ACTIVE"


class DuplicateEvaluation(ConflictError):
    error_code = "DUPLICATE_EVALUATION"


class DuplicateVersion(ConflictError):
    error_code = "DUPLICATE_VERSION"


class LockConflict(ConflictError):
    """Lock for a check-then-insert section could not be acquired in time."""

    error_code = "LOCK_CONFLICT"


# --- ValidationFailed --------------------------------------------------------


class ValidationFailedError(EvaluationError):
    """Missing required field, out-of-range score or missing reason."""

    error_code = "VALIDATION_FAILED"


class InvalidRoster(ValidationFailedError):
    error_code = "INVALID_ROSTER"


class ScoreOutOfRange(ValidationFailedError):
    error_code = "SCORE_OUT_OF_RANGE"


class MissingRequiredCriteria(ValidationFailedError):
    error_code = "MISSING_REQUIRED_CRITERIA"


class MissingFinalScore(ValidationFailedError):
    error_code = "MISSING_FINAL_SCORE"


class ExclusionReasonRequired(ValidationFailedError):
    error_code = "EXCLUSION_REASON_REQUIRED"


class NotAuthorizedToActivate(ValidationFailedError):
    error_code = "NOT_AUTHORIZED_TO_ACTIVATE"


class MemberNotEligible(ValidationFailedError):
    error_code = "MEMBER_NOT_ELIGIBLE"


# --- Locked ------------------------------------------------------------------


class LockedError(EvaluationError):
    """Mutation attempted on finalized data. Signals a caller logic error."""

    error_code = "LOCKED"


class SampleLocked(LockedError):
    error_code = "SAMPLE_LOCKED"


class AlreadySubmitted(LockedError):
    error_code = "ALREADY_SUBMITTED"


# --- InsufficientData --------------------------------------------------------


class InsufficientDataError(EvaluationError):
    error_code = "INSUFFICIENT_DATA"


class InsufficientEvaluations(InsufficientDataError):
    error_code = "INSUFFICIENT_EVALUATIONS"
