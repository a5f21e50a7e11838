"""
FastAPI exception handlers for structured error responses.

Maps domain exceptions to HTTP status codes:
- ExtractionFailed (every model overloaded) -> 503
- ExtractionFailed (fatal upstream error)   -> 502
- MalformedResponse                         -> 422
- Cancelled                                 -> 499
- ValueError / invalid request body         -> 400
"""

from datetime import datetime, timezone
from typing import Any

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from question_extractor.exceptions import ExtractionFailed
from question_extractor.retry.exceptions import Cancelled
from question_extractor.validation.exceptions import MalformedResponse

logger = structlog.get_logger(__name__)

HTTP_499_CLIENT_CLOSED_REQUEST = 499


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def error_body(error: str, message: str, details: Any = None) -> dict[str, Any]:
    return {
        "error": error,
        "message": message,
        "details": details,
        "timestamp": _timestamp(),
    }


def status_for_extraction_failure(exc: ExtractionFailed) -> int:
    if exc.retryable:
        return status.HTTP_503_SERVICE_UNAVAILABLE
    return status.HTTP_502_BAD_GATEWAY


async def extraction_failed_handler(request: Request, exc: ExtractionFailed) -> JSONResponse:
    """
    Handle extraction failures.

    503 when every model was overloaded (the caller may try again later),
    502 when the upstream rejected the request outright.
    """
    logger.error(
        "Extraction failed",
        retryable=exc.retryable,
        models_tried=exc.models_tried,
        total_attempts=exc.total_attempts,
    )

    return JSONResponse(
        status_code=status_for_extraction_failure(exc),
        content=error_body("extraction_failed", exc.message, exc.to_dict()),
    )


async def malformed_response_handler(request: Request, exc: MalformedResponse) -> JSONResponse:
    """Handle unusable model output (stages 1-3). Maps to 422."""
    logger.warning("Malformed model response", error_type=type(exc).__name__, details=exc.details)

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=error_body("malformed_response", exc.message, exc.details),
    )


async def cancelled_handler(request: Request, exc: Cancelled) -> JSONResponse:
    logger.info("Extraction cancelled", failed_attempts=len(exc.errors))

    return JSONResponse(
        status_code=HTTP_499_CLIENT_CLOSED_REQUEST,
        content=error_body("cancelled", exc.message),
    )


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """Invalid input detected past request parsing (blank text, bad roster)."""
    logger.warning("Invalid extraction input", error=str(exc))

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body("invalid_request", str(exc)),
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle invalid request bodies.

    Maps to 400 so that 422 stays reserved for malformed model output.
    """
    logger.warning("Invalid request format", errors=exc.errors())

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            "invalid_request",
            "Request validation failed",
            [{"loc": list(err.get("loc", ())), "msg": err.get("msg")} for err in exc.errors()],
        ),
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unexpected error", error_type=type(exc).__name__)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body("internal_error", "An unexpected error occurred"),
    )


# Exception handler mapping for FastAPI app.add_exception_handler()
EXCEPTION_HANDLERS = {
    ExtractionFailed: extraction_failed_handler,
    MalformedResponse: malformed_response_handler,
    Cancelled: cancelled_handler,
    ValueError: value_error_handler,
    RequestValidationError: request_validation_error_handler,
    Exception: generic_error_handler,
}
