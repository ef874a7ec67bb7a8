"""Error taxonomy for the food storage API.

Every failure a handler can report is raised as one of the variants below,
constructed where the failure is detected.  ``map_error_to_status`` and
``map_error_to_issues`` are a plain match over those variants plus the few
foreign shapes the MongoDB driver and pydantic raise on their own.
"""

from __future__ import annotations

from typing import Any

from fastapi import status
from pydantic import ValidationError as PydanticValidationError
from pymongo.errors import DuplicateKeyError, WriteError

DUPLICATE_KEY_CODE = 11000
DOCUMENT_VALIDATION_CODE = 121


class FoodStoreError(Exception):
    """Base exception for all food storage API errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    kind: str = "error"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def issues(self) -> dict[str, Any]:
        return {"kind": self.kind}


class UnsafePayload(FoodStoreError):
    """Raised by the payload guard when a request body is structurally unsafe.

    ``path`` is the dotted/indexed location of the offending key or value,
    e.g. ``payload.item.tags[2]``.
    """

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "unsafe_payload"

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"{reason} at {path}.")

    def issues(self) -> dict[str, Any]:
        return {"kind": self.kind, "path": self.path}


class ValidationFailed(FoodStoreError):
    """Raised by a field sanitizer when a single field violates its constraint."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "validation"

    def __init__(self, field: str, reason: str) -> None:
        self.field = field
        self.reason = reason
        super().__init__(f"{field} {reason}.")

    def issues(self) -> dict[str, Any]:
        return {"kind": self.kind, "validation": {self.field: self.reason}}


class MalformedRequest(FoodStoreError):
    """Raised when a body lacks the resource's top-level wrapper key."""

    status_code = status.HTTP_400_BAD_REQUEST
    kind = "malformed_request"

    def __init__(self, resource: str) -> None:
        self.resource = resource
        super().__init__(f"Invalid {resource} request payload.")


class AuthenticationFailed(FoodStoreError):
    status_code = status.HTTP_401_UNAUTHORIZED
    kind = "authentication"

    def __init__(self, reason: str = "Invalid email or password.") -> None:
        super().__init__(reason)


class AccountDisabled(FoodStoreError):
    status_code = status.HTTP_403_FORBIDDEN
    kind = "account_disabled"

    def __init__(self) -> None:
        super().__init__("This account has been disabled.")


class NotFound(FoodStoreError):
    """Raised when a well-formed identifier matches no stored record."""

    status_code = status.HTTP_404_NOT_FOUND
    kind = "not_found"

    def __init__(self, resource: str, resource_id: Any) -> None:
        self.resource = resource
        self.resource_id = str(resource_id)
        super().__init__(f"{resource.capitalize()} not found.")


class DuplicateKey(FoodStoreError):
    """Raised when a write collides with a unique index.

    The message is the resource's human-readable duplicate message, never the
    driver's raw text.
    """

    status_code = status.HTTP_409_CONFLICT
    kind = "duplicate_key"

    def __init__(self, resource: str, message: str | None = None) -> None:
        self.resource = resource
        super().__init__(message or f"A {resource} with those values already exists.")


class StorageUnavailable(FoodStoreError):
    """Raised before any validation when the database connection is not ready."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    kind = "storage_unavailable"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("Storage is unavailable. Check /health for details.")

    def issues(self) -> dict[str, Any]:
        return {"kind": self.kind, "health": "/health"}


def is_duplicate_key(exc: BaseException) -> bool:
    if isinstance(exc, DuplicateKeyError):
        return True
    return getattr(exc, "code", None) == DUPLICATE_KEY_CODE


def _is_document_validation(exc: BaseException) -> bool:
    return isinstance(exc, WriteError) and exc.code == DOCUMENT_VALIDATION_CODE


def format_validation_errors(exc: Any) -> list[dict[str, str]]:
    """Flatten a pydantic or FastAPI request ``ValidationError`` into ``{"field", "message"}`` dicts."""
    errors: list[dict[str, str]] = []
    for err in exc.errors():
        loc = err.get("loc", ())
        field = ".".join(str(part) for part in loc) if loc else "unknown"
        errors.append({"field": field, "message": err.get("msg", "Validation error")})
    return errors


def map_error_to_status(exc: object) -> int:
    """Return the HTTP status for any caught value.

    Total and deterministic: the result depends only on the error's type
    (and, for driver errors, its numeric code).
    """
    if isinstance(exc, FoodStoreError):
        return exc.status_code
    if isinstance(exc, BaseException) and is_duplicate_key(exc):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, PydanticValidationError) or (
        isinstance(exc, BaseException) and _is_document_validation(exc)
    ):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def map_error_to_issues(exc: object) -> dict[str, Any] | None:
    if not isinstance(exc, BaseException):
        return None
    if isinstance(exc, FoodStoreError):
        return exc.issues()
    if is_duplicate_key(exc):
        return {"kind": "duplicate_key"}
    if isinstance(exc, PydanticValidationError):
        return {"kind": "validation", "validation": format_validation_errors(exc)}
    if _is_document_validation(exc):
        return {"kind": "validation", "validation": (exc.details or {}).get("errmsg")}
    return {"kind": type(exc).__name__}
