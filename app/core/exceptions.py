from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import ORJSONResponse


class AppError(Exception):
    """Base application error with consistent schema."""

    def __init__(
        self,
        message: str,
        code: str = "ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class UnauthorizedError(AppError):
    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, code="UNAUTHORIZED", status_code=status.HTTP_401_UNAUTHORIZED)


class ConflictError(AppError):
    def __init__(self, message: str = "Conflict", details: dict[str, Any] | None = None):
        super().__init__(message, code="CONFLICT", status_code=status.HTTP_409_CONFLICT, details=details)


class BadRequestError(AppError):
    def __init__(self, message: str = "Bad request", details: dict[str, Any] | None = None):
        super().__init__(message, code="BAD_REQUEST", status_code=status.HTTP_400_BAD_REQUEST, details=details)


class InvalidQueryError(AppError):
    """No recognized query parameter; raised before any upstream call."""

    def __init__(self, message: str = "No search query or recommendations provided"):
        super().__init__(message, code="INVALID_QUERY", status_code=status.HTTP_400_BAD_REQUEST)


class UpstreamError(AppError):
    """Non-429 failure from the upstream API (or an unusable body). Never retried."""

    def __init__(self, upstream_status: int | None, message: str):
        self.upstream_status = upstream_status
        super().__init__(
            message,
            code="UPSTREAM_ERROR",
            details={"upstream_status": upstream_status},
        )


class RateLimitExhausted(AppError):
    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Upstream rate limit persisted after {attempts} attempts",
            code="UPSTREAM_RATE_LIMITED",
            details={"attempts": attempts},
        )


class TransportFault(AppError):
    def __init__(self, attempts: int, last_error: Exception):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"Upstream unreachable after {attempts} attempts: {last_error!r}",
            code="UPSTREAM_UNREACHABLE",
            details={"attempts": attempts, "error": type(last_error).__name__},
        )


class AggregationCancelled(AppError):
    def __init__(self, message: str = "Aggregation cancelled before completion"):
        super().__init__(message, code="AGGREGATION_CANCELLED")


def error_response(request: Request, exc: AppError) -> ORJSONResponse:
    body = {
        "error": {
            "message": exc.message,
            "code": exc.code,
            "details": exc.details,
        }
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(status_code=exc.status_code, content=body)


async def app_exception_handler(request: Request, exc: AppError) -> ORJSONResponse:
    return error_response(request, exc)


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> ORJSONResponse:
    body = {
        "error": {
            "message": "Validation error",
            "code": "VALIDATION_ERROR",
            "details": {"errors": exc.errors()},
        }
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=body,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> ORJSONResponse:
    from app.core.logging import get_logger
    get_logger(__name__).exception("unhandled_exception", exc_info=exc)
    body = {
        "error": {
            "message": "Internal server error",
            "code": "INTERNAL_ERROR",
            "details": {},
        }
    }
    if hasattr(request.state, "request_id"):
        body["request_id"] = request.state.request_id
    return ORJSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=body,
    )
