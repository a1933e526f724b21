"""Centralised structured logging setup for the CareDraft export service.

Importing this module has the side-effect of configuring *structlog* with a
JSON-formatted pipeline that carries request and document identifiers, so an
export or a context-menu action can be followed across log lines.

Import it once at application startup (``core/app.py`` does).  Other modules
call :pyfunc:`structlog.get_logger()` directly and never reconfigure.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars

__all__ = [
    "configure_logging",
    "bind_request_context",
    "clear_request_context",
    "get_logger",
]


def configure_logging(force: bool = False) -> None:  # noqa: D401
    """Setup structlog + stdlib bridging exactly once.

    Args:
        force: When True, reconfigure even if previously configured. Use only
               inside isolated scripts/tests that need a different renderer.
    """

    configured = getattr(structlog, "_is_configured", False)  # type: ignore[attr-defined]
    if configured and not force:
        return

    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    # JSON by default, pretty console when LOG_PRETTY=1
    if os.getenv("LOG_PRETTY", "0").lower() in {"1", "true", "yes"}:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    # stdlib records (uvicorn, reportlab warnings) go through the same renderer
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[structlog.contextvars.merge_contextvars],
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
    )

    root_logger = logging.getLogger()
    for h in list(root_logger.handlers):
        root_logger.removeHandler(h)

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level, logging.INFO))

    structlog.configure(
        processors=shared_processors + [renderer],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    setattr(structlog, "_is_configured", True)  # type: ignore[attr-defined]


def bind_request_context(
    request_id: Optional[str] = None,
    document_id: Optional[str] = None,
) -> None:
    """Bind correlation IDs into structlog contextvars for subsequent logs.

    Safe to call multiple times; only provided keys are updated.
    """
    payload: Dict[str, str] = {}
    if request_id:
        payload["request_id"] = request_id
    if document_id:
        payload["document_id"] = document_id
    if payload:
        bind_contextvars(**payload)


def clear_request_context() -> None:
    """Drop all bound correlation IDs (end of request)."""
    clear_contextvars()


def get_logger(name: Optional[str] = None):
    """Return a structlog logger; ensures configuration first."""
    configure_logging()
    return structlog.get_logger(name) if name else structlog.get_logger()


# Configure immediately on import so early log messages are captured.
configure_logging()
