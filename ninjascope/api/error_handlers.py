"""Response envelopes and centralized error handling for the API."""

from datetime import UTC, datetime
from typing import Any

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ninjascope.services.errors import UpstreamError
from ninjascope.utils.logger import StructuredLogger
from ninjascope.utils.request_context import current_request, was_cache_hit

logger = StructuredLogger("ErrorHandlers")


class ApiError:
    """Standard error codes for request-level failures."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_ADDRESS = "INVALID_ADDRESS"
    INVALID_IDS = "INVALID_IDS"
    TOO_MANY_IDS = "TOO_MANY_IDS"
    NOT_DERIVATIVE = "NOT_DERIVATIVE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


def _timestamp() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class ErrorResponse:
    """Standardized error response format."""

    def __init__(
        self,
        error_code: str,
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: dict[str, Any] | None = None,
    ):
        """
        Initialize error response.

        Args:
            error_code: Machine-readable error code
            message: Human-readable error message
            status_code: HTTP status code
            details: Additional error details (field-specific errors, etc.)
        """
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        """Convert to the error envelope."""
        error: dict[str, Any] = {"code": self.error_code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"success": False, "error": error, "meta": {"timestamp": _timestamp()}}

    def to_json_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.to_dict())


def success_response(data: Any) -> dict[str, Any]:
    """
    Wrap data in the success envelope.

    Whether the response was cached and how long it took come from the
    active request context.
    """
    ctx = current_request()
    return {
        "success": True,
        "data": jsonable_encoder(data),
        "meta": {
            "cached": was_cache_hit(),
            "timestamp": _timestamp(),
            "took_ms": ctx.elapsed_ms() if ctx else 0,
        },
    }


def not_found(message: str) -> JSONResponse:
    return ErrorResponse(ApiError.NOT_FOUND, message, status.HTTP_404_NOT_FOUND).to_json_response()


def bad_request(error_code: str, message: str) -> JSONResponse:
    return ErrorResponse(error_code, message, status.HTTP_400_BAD_REQUEST).to_json_response()


async def upstream_error_handler(request: Request, exc: UpstreamError) -> JSONResponse:
    """Map a failed upstream fetch to 502 with its own error code."""
    logger.error(
        "Upstream failure while serving request",
        context={"path": request.url.path, "code": exc.code},
        exception=exc,
    )
    return ErrorResponse(exc.code, exc.message, status.HTTP_502_BAD_GATEWAY).to_json_response()


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle FastAPI query/path validation errors with the standard envelope."""
    field_errors = {}
    for error in exc.errors():
        field_path = ".".join(str(loc) for loc in error["loc"])
        field_errors[field_path] = error["msg"]

    return ErrorResponse(
        ApiError.VALIDATION_ERROR,
        "Validation failed for one or more parameters",
        status.HTTP_400_BAD_REQUEST,
        details=field_errors,
    ).to_json_response()


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error while serving request", context={"path": request.url.path}, exception=exc)
    return ErrorResponse(
        ApiError.INTERNAL_ERROR,
        "An unexpected error occurred",
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    ).to_json_response()
