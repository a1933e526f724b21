"""
Core package for the CareDraft export API.

Re-exports configuration values and the exception taxonomy so other parts
of the application can import them from ``core`` without knowing the
internal module layout.
"""

# Avoid importing create_app here to prevent circular imports
# from core.app import create_app

from core.config import (
    TRUSTED_ORIGINS,
    get_environment,
    is_production,
    SUPPORTED_FORMATS,
    MIME_TYPES,
    MAX_FILE_SIZE,
    EXPORT_ERROR_CODES,
    QUALITY_PRESETS,
)

from core.exceptions import (
    ExportError,
    ValidationError,
    GenerationError,
    NetworkError,
    StaleSelectionError,
    MenuStateError,
    FactCheckInProgressError,
)

__all__ = [
    "TRUSTED_ORIGINS",
    "get_environment",
    "is_production",
    "SUPPORTED_FORMATS",
    "MIME_TYPES",
    "MAX_FILE_SIZE",
    "EXPORT_ERROR_CODES",
    "QUALITY_PRESETS",
    "ExportError",
    "ValidationError",
    "GenerationError",
    "NetworkError",
    "StaleSelectionError",
    "MenuStateError",
    "FactCheckInProgressError",
]
