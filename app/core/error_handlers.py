"""
Error Handlers - FoodEval Scoring Engine
app/core/error_handlers.py

Maps the workflow error taxonomy and request validation failures to the
ErrorResponse JSON shape.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

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
from app.models.score import ErrorResponse

logger = logging.getLogger(__name__)


# Most specific first: subclasses inherit their kind's status.
STATUS_BY_KIND = [
    (EntityNotFoundException, status.HTTP_404_NOT_FOUND),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ValidationFailedError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (LockedError, status.HTTP_423_LOCKED),
    (InsufficientDataError, status.HTTP_422_UNPROCESSABLE_ENTITY),
]


#  Validation Error Messages


FIELD_MESSAGES = {
    "reason": {
        "missing": "Exclusion reason is required",
        "string_type": "Exclusion reason must be a string",
    },
    "score": {
        "missing": "Score is required",
        "int_type": "Score must be an integer",
        "int_parsing": "Score must be a valid integer",
    },
    "final_score": {
        "greater_than_equal": "Final score must not be negative",
        "decimal_parsing": "Final score must be a valid number",
    },
    "name": {
        "missing": "Name is required",
        "string_too_short": "Name cannot be empty",
        "string_too_long": "Name must not exceed 255 characters",
    },
}

DEFAULT_MESSAGES = {
    "missing": "Field '{field}' is required",
    "string_too_short": "Field '{field}' is too short",
    "string_too_long": "Field '{field}' is too long",
    "less_than_equal": "Field '{field}' exceeds maximum allowed value",
    "greater_than_equal": "Field '{field}' is below minimum allowed value",
    "greater_than": "Field '{field}' must be positive",
    "uuid_parsing": "Field '{field}' must be a valid UUID",
    "uuid_type": "Field '{field}' must be a valid UUID",
    "string_type": "Field '{field}' must be a string",
    "decimal_parsing": "Field '{field}' must be a valid number",
    "int_type": "Field '{field}' must be an integer",
    "int_parsing": "Field '{field}' must be a valid integer",
    "enum": "Field '{field}' has an unsupported value",
    "json_invalid": "Malformed JSON request body",
    "extra_forbidden": "Unknown field '{field}' is not allowed",
}


def get_validation_message(field: str, error_type: str) -> str:
    if field in FIELD_MESSAGES:
        for key in FIELD_MESSAGES[field]:
            if key in error_type:
                return FIELD_MESSAGES[field][key]
    for key, template in DEFAULT_MESSAGES.items():
        if key in error_type:
            return template.format(field=field)
    return f"Invalid value for field '{field}'"


def error_body(
    error_code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    retryable: bool = False,
) -> Dict[str, Any]:
    return ErrorResponse(
        error_code=error_code,
        message=message,
        details=details,
        retryable=retryable,
        timestamp=datetime.now(timezone.utc),
    ).model_dump(mode="json")


def status_for(exc: EvaluationError) -> int:
    for kind, status_code in STATUS_BY_KIND:
        if isinstance(exc, kind):
            return status_code
    return status.HTTP_400_BAD_REQUEST


async def evaluation_error_handler(request: Request, exc: EvaluationError):
    status_code = status_for(exc)
    logger.info(
        "request_rejected",
        extra={"path": request.url.path, "error_code": exc.error_code, "status_code": status_code},
    )
    return JSONResponse(
        status_code=status_code,
        content=error_body(exc.error_code, exc.message, exc.details, exc.retryable),
    )


async def repository_error_handler(request: Request, exc: RepositoryException):
    if isinstance(exc, DuplicateEntityException):
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=error_body("CONFLICT", exc.message, retryable=True),
        )

    logger.error("repository_error", extra={"path": request.url.path, "error": str(exc)})
    if isinstance(exc, DatabaseConnectionException):
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=error_body("DATABASE_UNAVAILABLE", exc.message, retryable=True),
        )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("REPOSITORY_ERROR", "Storage operation failed"),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if not errors:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content=error_body("VALIDATION_ERROR", "Request validation failed"),
        )
    err = errors[0]
    error_type = err.get("type", "")
    loc = err.get("loc", [])
    if "json_invalid" in error_type:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("INVALID_REQUEST", "Malformed JSON request body"),
        )
    field = ".".join(str(l) for l in loc if l not in ("body", "header", "path", "query"))
    message = get_validation_message(field, error_type)
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body(
            "VALIDATION_ERROR",
            message,
            {"field": field, "type": error_type} if field else None,
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(EvaluationError, evaluation_error_handler)
    app.add_exception_handler(RepositoryException, repository_error_handler)
