"""
Error handlers for the TabWriter API
"""

import structlog
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from tabwriter.core.exceptions import (
    CompletionUnavailable,
    ConfigurationError,
    InvalidInputError,
    SourceReadError,
    TabWriterError,
)

logger = structlog.get_logger(__name__)

_STATUS_BY_ERROR = (
    (InvalidInputError, 400, "Invalid input"),
    (SourceReadError, 400, "Source read failed"),
    (ConfigurationError, 500, "Service not configured"),
    (CompletionUnavailable, 502, "Completion service unavailable"),
)


def status_for(exc: TabWriterError) -> tuple[int, str]:
    for exc_type, status_code, title in _STATUS_BY_ERROR:
        if isinstance(exc, exc_type):
            return status_code, title
    return 500, "Internal Server Error"


async def tabwriter_exception_handler(request: Request, exc: TabWriterError):
    """Map domain errors onto HTTP status codes"""
    status_code, title = status_for(exc)
    logger.error(
        "Request failed",
        error=str(exc),
        error_type=type(exc).__name__,
        status_code=status_code,
        path=request.url.path,
        request_id=getattr(request.state, "request_id", "unknown"),
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "error": title,
            "detail": str(exc),
            "request_id": getattr(request.state, "request_id", "unknown"),
        },
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with detailed messages"""
    error_messages = []
    for error in exc.errors():
        field = ".".join(str(x) for x in error["loc"][1:])  # Skip 'body'
        error_messages.append(f"{field}: {error['msg']}" if field else error["msg"])

    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation Error",
            "detail": error_messages,
            "request_id": getattr(request.state, "request_id", "unknown"),
        },
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        request_id=getattr(request.state, "request_id", "unknown"),
    )
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred",
            "request_id": getattr(request.state, "request_id", "unknown"),
        },
    )
