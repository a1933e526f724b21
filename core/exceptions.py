"""
Exception taxonomy for the CareDraft export and dispatch services
"""

from typing import Any, Optional


class ExportError(Exception):
    """Base class for export failures carrying a machine-readable code."""

    def __init__(self, message: str, code: str = "EXPORT_ERROR", details: Any = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "details": self.details}


class ValidationError(ExportError):
    """Malformed or out-of-range input detected before any work begins."""

    def __init__(self, message: str, details: Any = None):
        super().__init__(message, "VALIDATION_ERROR", details)

    @classmethod
    def from_pydantic(cls, exc, message: str) -> "ValidationError":
        details = [
            {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
            for err in exc.errors()
        ]
        return cls(message, details)


class GenerationError(ExportError):
    """Failure raised while a generator was building a document.

    The original exception is kept on ``cause`` (and chained as
    ``__cause__`` by callers using ``raise ... from``).
    """

    def __init__(
        self,
        message: str,
        cause: Optional[BaseException] = None,
        code: str = "GENERATION_FAILED",
    ):
        details = None
        if cause is not None:
            details = {"cause": str(cause), "cause_type": type(cause).__name__}
        super().__init__(message, code, details)
        self.cause = cause


class NetworkError(Exception):
    """Failed or non-2xx call to an external AI/verification endpoint."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class StaleSelectionError(Exception):
    """A captured selection no longer matches the editor buffer."""


class MenuStateError(Exception):
    """Transition not allowed from the current context menu state."""


class FactCheckInProgressError(Exception):
    """A verification is already pending for this orchestrator."""
