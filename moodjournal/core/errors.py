"""
Custom exception hierarchy for the mood journal service.

Rule: every HTTP error has a machine-readable `code` string so clients
can branch on it without parsing English messages.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exception classes
# ---------------------------------------------------------------------------

class MoodJournalException(Exception):
    """Base class for all application-level errors."""
    http_status: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details:
            payload["details"] = self.details
        return payload


class ValidationError(MoodJournalException):
    """Malformed input to the progress engine. Never silently coerced."""
    http_status = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "VALIDATION_ERROR"


class UnknownBadgeCategoryError(ValidationError):
    code = "UNKNOWN_BADGE_CATEGORY"

    def __init__(self, badge_id: str, category: Any):
        super().__init__(
            message=f"Badge {badge_id!r} has unknown category {category!r}.",
            details={"badge_id": badge_id, "category": str(category)},
        )


class NotFoundError(MoodJournalException):
    http_status = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ProfileNotFoundError(NotFoundError):
    code = "PROFILE_NOT_FOUND"

    def __init__(self, user_id: str):
        super().__init__(
            message=f"No progress profile for user {user_id}.",
            details={"user_id": user_id},
        )


class EntryNotFoundError(NotFoundError):
    code = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: int):
        super().__init__(
            message=f"Journal entry {entry_id} does not exist.",
            details={"entry_id": entry_id},
        )


class BadgeNotFoundError(NotFoundError):
    code = "BADGE_NOT_FOUND"

    def __init__(self, badge_id: str):
        super().__init__(
            message=f"Badge {badge_id!r} is not in the catalog.",
            details={"badge_id": badge_id},
        )


class TransientStorageError(MoodJournalException):
    """Read/write failure against the database. Safe to retry the recompute."""
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "STORAGE_UNAVAILABLE"

    def __init__(self, message: str, user_id: str | None = None):
        super().__init__(
            message=message,
            details={"user_id": user_id} if user_id else {},
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

async def moodjournal_exception_handler(
    request: Request, exc: MoodJournalException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.http_status,
        content=exc.to_dict(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Return structured 422 with machine-readable field errors."""
    field_errors = []
    for error in exc.errors():
        field_errors.append({
            "field": ".".join(str(loc) for loc in error["loc"] if loc != "body"),
            "message": error["msg"],
            "type": error["type"],
        })
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "code": "VALIDATION_ERROR",
            "message": "Request validation failed.",
            "details": {"errors": field_errors},
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "code": "INTERNAL_ERROR",
            "message": "An unexpected error occurred.",
        },
    )
