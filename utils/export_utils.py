"""
Shared helpers for document export.

- sanitize_html: drop active content (scripts, frames, handlers) from HTML
- extract_text_content: plain text of an HTML fragment with entities decoded
- strip_xml_illegal: remove control characters DOCX refuses
- estimate_file_size: pre-flight size guess per output format
- slugify / build_export_filename: filesystem-safe download names
- format_label: format name for logs and failure results, before validation
"""

from __future__ import annotations

import html as _html
import re as _re
from datetime import datetime
from typing import Any, Optional

from bs4 import BeautifulSoup

from core.config import SIZE_ESTIMATE_RATIOS
from utils.date_utils import format_date_only

__all__ = [
    "sanitize_html",
    "extract_text_content",
    "strip_xml_illegal",
    "collapse_ws",
    "estimate_file_size",
    "slugify",
    "build_export_filename",
    "format_label",
]

_UNSAFE_TAGS = ("script", "style", "iframe", "object", "embed")
_TAG_RE = _re.compile(r"<[^>]*>")
_SLUG_RE = _re.compile(r"[^a-z0-9]+")
_XML_ILLEGAL_RE = _re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ufffe\uffff]")


def sanitize_html(html: str) -> str:
    if not html:
        return ""
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup.find_all(_UNSAFE_TAGS):
        tag.decompose()
    for tag in soup.find_all(True):
        for attr in list(tag.attrs):
            value = tag.attrs.get(attr)
            if attr.lower().startswith("on"):
                del tag.attrs[attr]
            elif isinstance(value, str) and value.strip().lower().startswith("javascript:"):
                del tag.attrs[attr]
    return str(soup)


def extract_text_content(html: str) -> str:
    """Strip tags first, then decode entities, so escaped markup survives as text."""
    if not html:
        return ""
    text = _TAG_RE.sub("", str(html))
    text = _html.unescape(text).replace("\xa0", " ")
    return text.strip()


def strip_xml_illegal(text: str) -> str:
    """Drop control characters that XML 1.0 (and so DOCX) cannot carry."""
    if not text:
        return text
    return _XML_ILLEGAL_RE.sub("", text)


def collapse_ws(text: str) -> str:
    if not text:
        return ""
    return _re.sub(r"\s+", " ", str(text)).strip()


def estimate_file_size(content: str, fmt: str) -> int:
    ratio = SIZE_ESTIMATE_RATIOS.get(str(fmt).lower(), 1.0)
    return round(len(content or "") * ratio)


def slugify(title: str, max_length: Optional[int] = None) -> str:
    """Lowercase, collapse non-alphanumeric runs to one hyphen, trim hyphens."""
    slug = _SLUG_RE.sub("-", (title or "").lower()).strip("-")
    if max_length is not None:
        slug = slug[:max_length].rstrip("-")
    return slug or "document"


def build_export_filename(
    title: str,
    fmt: str,
    *,
    prefix: str = "",
    max_length: Optional[int] = None,
    when: Optional[datetime] = None,
) -> str:
    """``{prefix}{slug}-{YYYY-MM-DD}.{ext}`` using the UTC calendar date."""
    ext = str(fmt).lower()
    return f"{prefix}{slugify(title, max_length)}-{format_date_only(when)}.{ext}"


def format_label(options: Any) -> str:
    """Lowercase format name from parsed or raw options, for logs and failed results."""
    raw = options.get("format") if isinstance(options, dict) else getattr(options, "format", None)
    raw = getattr(raw, "value", raw)
    return str(raw).lower() if raw else "unknown"
