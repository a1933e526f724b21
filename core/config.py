"""
Core configuration and settings for the CareDraft export API

This module centralizes layout constants, export limits, and collaborator
endpoints so generators and dispatchers do not scatter magic numbers
throughout the codebase. Values can be overridden via env vars where a
deployment may reasonably want to tune them.
"""

import os
from typing import Dict, Any, List

# Enhanced CORS and security middleware (locked-down)
TRUSTED_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "https://app.caredraft.co.uk",
]


def get_environment() -> str:
    """Get current environment"""
    return os.getenv("ENVIRONMENT", "production")


def is_production() -> bool:
    """Check if running in production"""
    return get_environment() == "production"


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)) or default)
    except Exception:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)) or default)
    except Exception:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.lower() in {"1", "true", "yes", "on"}


# ────────────────────────────────────────────────────────────
#  Export formats
# ────────────────────────────────────────────────────────────

SUPPORTED_FORMATS: List[str] = ["pdf", "docx"]

MIME_TYPES: Dict[str, str] = {
    "pdf": "application/pdf",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
}

# Upper bounds on rendered output (bytes)
MAX_FILE_SIZE: Dict[str, int] = {
    "pdf": _env_int("EXPORT_MAX_PDF_BYTES", 50 * 1024 * 1024),
    "docx": _env_int("EXPORT_MAX_DOCX_BYTES", 25 * 1024 * 1024),
}

# Rough bytes-per-character ratios used for pre-flight size estimates
SIZE_ESTIMATE_RATIOS: Dict[str, float] = {"pdf": 0.8, "docx": 1.2}

EXPORT_ERROR_CODES: Dict[str, str] = {
    "INVALID_FORMAT": "INVALID_FORMAT",
    "FILE_TOO_LARGE": "FILE_TOO_LARGE",
    "GENERATION_FAILED": "GENERATION_FAILED",
    "PDF_GENERATION_FAILED": "PDF_GENERATION_FAILED",
    "DOCX_GENERATION_FAILED": "DOCX_GENERATION_FAILED",
    "VALIDATION_ERROR": "VALIDATION_ERROR",
    "RESEARCH_SESSION_EXPORT_FAILED": "RESEARCH_SESSION_EXPORT_FAILED",
    "TIMEOUT": "TIMEOUT",
}

# Quality presets; only the draft preset carries a watermark
QUALITY_PRESETS: Dict[str, Dict[str, Any]] = {
    "draft": {"watermark": "DRAFT", "compress": True},
    "standard": {"watermark": None, "compress": True},
    "high": {"watermark": None, "compress": False},
}

# Number of recent exports kept for the stats endpoint
EXPORT_STATS_RECENT_LIMIT: int = _env_int("EXPORT_STATS_RECENT_LIMIT", 20)


# ────────────────────────────────────────────────────────────
#  PDF layout (millimetres / points)
# ────────────────────────────────────────────────────────────

PDF_PAGE_SIZE = os.getenv("EXPORT_PDF_PAGE_SIZE", "A4")
PDF_MARGINS_MM: Dict[str, float] = {
    "top": 20.0,
    "right": 20.0,
    "bottom": 20.0,
    "left": 20.0,
}
PDF_FONT_SIZES: Dict[str, int] = {
    "TITLE": 20,
    "HEADING": 16,
    "SUBHEADING": 14,
    "BODY": 12,
    "TEXT": 11,
    "SMALL": 9,
    "FOOTER": 10,
}
PDF_LINE_HEIGHT = 1.4

# Free vertical space (mm) required before a block is started
PDF_HEADING_SPACE_MM = 20.0
PDF_LINE_SPACE_MM = 6.0

# Dot leader between table-of-contents titles and page numbers
PDF_TOC_LEADER = "."

# Unicode TrueType faces tried in order: (regular, bold, oblique).
# EXPORT_PDF_FONT_PATH / _BOLD_PATH / _ITALIC_PATH take precedence.
PDF_FONT_ENV_PATHS = (
    os.getenv("EXPORT_PDF_FONT_PATH", ""),
    os.getenv("EXPORT_PDF_FONT_BOLD_PATH", ""),
    os.getenv("EXPORT_PDF_FONT_ITALIC_PATH", ""),
)
PDF_FONT_CANDIDATES: List[tuple] = [
    (
        "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/truetype/dejavu/DejaVuSans-Oblique.ttf",
    ),
    (
        "/usr/share/fonts/dejavu/DejaVuSans.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/dejavu/DejaVuSans-Oblique.ttf",
    ),
    (
        "/usr/share/fonts/TTF/DejaVuSans.ttf",
        "/usr/share/fonts/TTF/DejaVuSans-Bold.ttf",
        "/usr/share/fonts/TTF/DejaVuSans-Oblique.ttf",
    ),
    (
        "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Bold.ttf",
        "/usr/share/fonts/truetype/liberation/LiberationSans-Italic.ttf",
    ),
    (
        "/usr/share/fonts/liberation/LiberationSans-Regular.ttf",
        "/usr/share/fonts/liberation/LiberationSans-Bold.ttf",
        "/usr/share/fonts/liberation/LiberationSans-Italic.ttf",
    ),
    (
        "/usr/share/fonts/truetype/noto/NotoSans-Regular.ttf",
        "/usr/share/fonts/truetype/noto/NotoSans-Bold.ttf",
        "/usr/share/fonts/truetype/noto/NotoSans-Italic.ttf",
    ),
    (
        "/System/Library/Fonts/Supplemental/Arial.ttf",
        "/System/Library/Fonts/Supplemental/Arial Bold.ttf",
        "/System/Library/Fonts/Supplemental/Arial Italic.ttf",
    ),
    (
        "C:/Windows/Fonts/arial.ttf",
        "C:/Windows/Fonts/arialbd.ttf",
        "C:/Windows/Fonts/ariali.ttf",
    ),
]

WATERMARK_OPACITY = 0.1
WATERMARK_FONT_SIZE = 50
WATERMARK_ANGLE = 45


# ────────────────────────────────────────────────────────────
#  DOCX layout (twips / points)
# ────────────────────────────────────────────────────────────

DOCX_MARGINS_TWIPS: Dict[str, int] = {
    "top": 1440,
    "right": 1440,
    "bottom": 1440,
    "left": 1440,
}
DOCX_FONT_SIZES: Dict[str, int] = {
    "TITLE": 24,
    "HEADING": 18,
    "SUBHEADING": 16,
    "BODY": 12,
    "SMALL": 10,
}
DOCX_ACCENT_COLOR = "2E74B5"
DOCX_COMPLETE_COLOR = "008000"
DOCX_INCOMPLETE_COLOR = "FF0000"
DOCX_NOTES_COLOR = "595959"


# ────────────────────────────────────────────────────────────
#  Research session export
# ────────────────────────────────────────────────────────────

RESEARCH_RESULTS_LIMIT_MIN = 1
RESEARCH_RESULTS_LIMIT_MAX = 1000
RESEARCH_FILENAME_PREFIX = "research-session-"
RESEARCH_SLUG_MAX_LENGTH = 50
RESEARCH_UNKNOWN_SOURCE = "Unknown Source"


# ────────────────────────────────────────────────────────────
#  AI collaborators (context actions, fact-check)
# ────────────────────────────────────────────────────────────

AI_BASE_URL: str = os.getenv("CAREDRAFT_AI_BASE_URL", "http://localhost:3000/api/ai")
AI_REQUEST_TIMEOUT_SEC: float = _env_float("CAREDRAFT_AI_TIMEOUT_SEC", 30.0)
AI_MAX_ATTEMPTS: int = _env_int("CAREDRAFT_AI_MAX_ATTEMPTS", 2)
AI_BACKOFF_MIN_SEC: float = _env_float("CAREDRAFT_AI_BACKOFF_MIN_SEC", 0.5)
AI_BACKOFF_MAX_SEC: float = _env_float("CAREDRAFT_AI_BACKOFF_MAX_SEC", 4.0)
CONTEXT_ACTIONS_PATH = "/context-actions"
FACT_CHECK_VERIFY_PATH = "/fact-check/verify"
FACT_CHECK_SOURCES_PATH = "/fact-check/sources"

DEFAULT_TRANSLATION_LANGUAGE = os.getenv("CAREDRAFT_TRANSLATION_LANGUAGE", "es")


# ────────────────────────────────────────────────────────────
#  Context menu
# ────────────────────────────────────────────────────────────

SELECTION_MIN_LENGTH: int = _env_int("CONTEXT_MENU_SELECTION_MIN_LENGTH", 5)
SELECTION_DEBOUNCE_SEC: float = _env_float("CONTEXT_MENU_SELECTION_DEBOUNCE_SEC", 0.5)
LONG_PRESS_SEC: float = _env_float("CONTEXT_MENU_LONG_PRESS_SEC", 0.5)
ENABLE_SELECTION_AUTO_TRIGGER: bool = _env_bool("CONTEXT_MENU_AUTO_TRIGGER", True)


# ────────────────────────────────────────────────────────────
#  Fact-check defaults
# ────────────────────────────────────────────────────────────

FACT_CHECK_DEFAULT_SOURCE = "library"
FACT_CHECK_DEFAULT_WORD_LIMIT = 100
FACT_CHECK_DEFAULT_CITATION_STYLE = "apa"
