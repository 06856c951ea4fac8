"""
Domain Errors
=============

Exception taxonomy raised by services and translated to HTTP responses
by the handlers registered in `register_exception_handlers`.

| error              | status |
|--------------------|--------|
| NotFoundError      | 404    |
| ValidationError    | 400    |
| UnauthorizedError  | 401    |
| ConflictError      | 409    |
| QuotaExceededError | 403    |
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse

logger = logging.getLogger(__name__)


class PitchsideError(Exception):
    """Base class for errors the API knows how to render."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class NotFoundError(PitchsideError):
    status_code = status.HTTP_404_NOT_FOUND


class ValidationError(PitchsideError):
    """A domain rule was violated by otherwise well-formed input."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        if self.field:
            body["field"] = self.field
        return body


class UnauthorizedError(PitchsideError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ConflictError(PitchsideError):
    status_code = status.HTTP_409_CONFLICT


class QuotaExceededError(PitchsideError):
    """An entitlement limit has been reached for the user's tier."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(
        self,
        message: str,
        feature: str,
        limit: Optional[int] = None,
        used: Optional[int] = None,
    ):
        super().__init__(message)
        self.feature = feature
        self.limit = limit
        self.used = used

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "feature": self.feature,
            "limit": self.limit,
            "used": self.used,
        }


# =============================================================================
# HANDLERS
# =============================================================================

async def _domain_error_handler(request: Request, exc: PitchsideError) -> ORJSONResponse:
    if isinstance(exc, UnauthorizedError):
        # Never leak why authentication failed
        return ORJSONResponse(status_code=exc.status_code, content={"error": "Unauthorized"})
    return ORJSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def _request_validation_handler(
    request: Request, exc: RequestValidationError
) -> ORJSONResponse:
    errors = exc.errors()
    message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
    details = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg")}
        for err in errors
    ]
    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": message, "details": details},
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> ORJSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Something went wrong"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the domain error handlers to the application."""
    app.add_exception_handler(PitchsideError, _domain_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
