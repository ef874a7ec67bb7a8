# foodstore/responses.py
"""Handler outcomes and the uniform failure body.

Every handler returns one of ``Success``, ``NoContent`` or ``Failure``; the
routers only call ``to_response()`` on whatever comes back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from fastapi import Response, status
from fastapi.responses import JSONResponse

from foodstore.core.errors import (
    DuplicateKey,
    FoodStoreError,
    is_duplicate_key,
    map_error_to_issues,
    map_error_to_status,
)

logger = logging.getLogger(__name__)


@dataclass
class Success:
    status: int
    body: dict[str, Any]

    def to_response(self) -> Response:
        return JSONResponse(status_code=self.status, content=self.body)


@dataclass
class NoContent:
    status: int = status.HTTP_204_NO_CONTENT

    def to_response(self) -> Response:
        return Response(status_code=self.status)


@dataclass
class Failure:
    status: int
    message: str
    issues: dict[str, Any] | None = field(default=None)

    def to_body(self) -> dict[str, Any]:
        error: dict[str, Any] = {"message": self.message}
        if self.issues:
            error["issues"] = self.issues
        return {"error": error}

    def to_response(self) -> Response:
        return JSONResponse(status_code=self.status, content=self.to_body())


Outcome = Success | NoContent | Failure


def classify(
    exc: BaseException,
    *,
    fallback_message: str,
    duplicate_message: str | None = None,
) -> Failure:
    """Convert any caught exception into a ``Failure``.

    Typed errors keep their own message.  Duplicate keys get the resource's
    human message.  Anything unclassified is logged and reported with
    *fallback_message* only.
    """
    status_code = map_error_to_status(exc)

    if isinstance(exc, FoodStoreError):
        if not isinstance(exc, DuplicateKey):
            logger.debug("request rejected (%s): %s", status_code, exc.message)
            return Failure(status_code, exc.message, map_error_to_issues(exc))
        return Failure(status_code, duplicate_message or exc.message, map_error_to_issues(exc))

    if is_duplicate_key(exc):
        logger.info("duplicate key rejected: %s", duplicate_message or fallback_message)
        return Failure(status_code, duplicate_message or fallback_message, map_error_to_issues(exc))

    if status_code == status.HTTP_400_BAD_REQUEST:
        return Failure(status_code, fallback_message, map_error_to_issues(exc))

    logger.exception("unclassified persistence failure: %s", fallback_message, exc_info=exc)
    return Failure(status.HTTP_500_INTERNAL_SERVER_ERROR, fallback_message)
