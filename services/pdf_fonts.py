"""
Font registration for PDF output

The standard Type-1 Helvetica only covers WinAnsi, so anything outside it
(Polish, Czech, Greek, most symbols) would come out as black boxes. A Unicode
TrueType face is registered on first use and shared by every PDF writer in
the process; Helvetica is only used when no such face exists on the host.
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import FrozenSet, Iterator, Optional, Tuple

import structlog
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFError, TTFont

from core.config import PDF_FONT_CANDIDATES, PDF_FONT_ENV_PATHS

logger = structlog.get_logger(__name__)

REGULAR_NAME = "CareDraftSans"
BOLD_NAME = "CareDraftSans-Bold"
ITALIC_NAME = "CareDraftSans-Oblique"


@dataclass(frozen=True)
class FontSet:
    regular: str
    bold: str
    italic: str
    unicode: bool
    source: Optional[str] = None

    def missing_glyphs(self, text: str) -> FrozenSet[str]:
        """Characters of ``text`` the regular face cannot draw."""
        chars = {ch for ch in text or "" if not ch.isspace()}
        if self.unicode:
            cmap = pdfmetrics.getFont(self.regular).face.charToGlyph
            return frozenset(ch for ch in chars if ord(ch) not in cmap)
        missing = set()
        for ch in chars:
            try:
                ch.encode("cp1252")
            except UnicodeEncodeError:
                missing.add(ch)
        return frozenset(missing)


STANDARD_FONTS = FontSet("Helvetica", "Helvetica-Bold", "Helvetica-Oblique", unicode=False)


def _candidates() -> Iterator[Tuple[str, str, str]]:
    regular, bold, italic = PDF_FONT_ENV_PATHS
    if regular:
        yield regular, bold or regular, italic or regular
    yield from PDF_FONT_CANDIDATES


def _register(regular: str, bold: str, italic: str) -> FontSet:
    # a missing bold or oblique face falls back to the regular one
    faces = {
        REGULAR_NAME: regular,
        BOLD_NAME: bold if os.path.isfile(bold) else regular,
        ITALIC_NAME: italic if os.path.isfile(italic) else regular,
    }
    for name, path in faces.items():
        pdfmetrics.registerFont(TTFont(name, path))
    return FontSet(REGULAR_NAME, BOLD_NAME, ITALIC_NAME, unicode=True, source=regular)


@lru_cache(maxsize=1)
def get_font_set() -> FontSet:
    """Register the first usable Unicode face; fall back to Helvetica."""
    for regular, bold, italic in _candidates():
        if not os.path.isfile(regular):
            continue
        try:
            fonts = _register(regular, bold, italic)
        except (TTFError, OSError) as exc:
            logger.warning("PDF font could not be registered", path=regular, error=str(exc))
            continue
        logger.info("PDF font registered", path=regular)
        return fonts

    logger.warning(
        "No Unicode TrueType font found; PDF text is limited to WinAnsi",
        candidates=len(PDF_FONT_CANDIDATES),
    )
    return STANDARD_FONTS
