"""
Error handlers for the CareDraft export API
"""

import structlog
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from core.exceptions import ExportError

logger = structlog.get_logger(__name__)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
):
    """Handle validation errors with detailed messages"""
    error_messages = []

    for error in exc.errors():
        field = ".".join(str(x) for x in error["loc"][1:])  # Skip 'body'
        msg = error["msg"]

        if field.endswith("format") and error["type"] == "enum":
            error_messages.append('Invalid export format. Must be either "pdf" or "docx"')
        elif field:
            error_messages.append(f"{field}: {msg}")
        else:
            error_messages.append(msg)

    logger.warning("Request validation failed", path=request.url.path, errors=error_messages)

    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation Error",
            "detail": error_messages,
            "request_id": _request_id(request),
        },
    )


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions"""
    if exc.status_code >= 500:
        logger.error("HTTP error", status_code=exc.status_code, detail=exc.detail, path=request.url.path)

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "HTTP Error",
            "detail": exc.detail,
            "status_code": exc.status_code,
            "request_id": _request_id(request),
        },
    )


async def export_exception_handler(request: Request, exc: ExportError):
    """Export errors that escaped a facade (routes normally get ExportResult)"""
    status_code = 422 if exc.code == "VALIDATION_ERROR" else 500
    log = logger.warning if status_code == 422 else logger.error
    log("Export error", code=exc.code, error=exc.message, path=request.url.path)

    return JSONResponse(
        status_code=status_code,
        content={
            "error": exc.code,
            "detail": exc.message,
            "details": exc.details,
            "request_id": _request_id(request),
        },
    )


async def general_exception_handler(request: Request, exc: Exception):
    """Handle general exceptions"""
    logger.error("Unhandled exception",
                error=str(exc),
                error_type=type(exc).__name__,
                path=request.url.path,
                request_id=_request_id(request))

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": "An unexpected error occurred",
            "request_id": _request_id(request),
        },
    )
