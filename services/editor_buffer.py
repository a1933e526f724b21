"""
Editor text buffer with selection ranges that follow later edits.

A ``TextRange`` remembers the buffer revision it was captured at. Every edit
is logged as ``(start, end, delta)``; when the range is used it replays the
edits made since capture. Edits wholly before the span shift it, edits wholly
after it leave it alone, and an edit that touches the span makes it stale.
Writing through a stale range raises ``StaleSelectionError``, so an AI result
that arrives late is dropped instead of being spliced into the wrong place,
while two actions on separate parts of the text can both land.
"""

from typing import List, Optional, Tuple

import structlog

from core.exceptions import StaleSelectionError
from models.context_menu import SelectedText

logger = structlog.get_logger(__name__)

Edit = Tuple[int, int, int]  # (start, end, len(replacement) - (end - start))


class TextRange:
    __slots__ = ("buffer", "start", "end", "revision")

    def __init__(self, buffer: "EditorBuffer", start: int, end: int, revision: int):
        self.buffer = buffer
        self.start = start
        self.end = end
        self.revision = revision

    def resolve(self) -> Optional[Tuple[int, int]]:
        """Current offsets of the span, or None once an edit has touched it."""
        return self.buffer.track(self.start, self.end, self.revision)

    @property
    def text(self) -> str:
        span = self.resolve()
        if span is None:
            return ""
        return self.buffer.text[span[0]:span[1]]

    def is_live(self) -> bool:
        return self.resolve() is not None

    def replace(self, replacement: str) -> "TextRange":
        """Replace the captured span; returns the range covering the new text."""
        span = self.resolve()
        if span is None:
            raise StaleSelectionError(
                f"Selection {self.start}:{self.end} captured at revision {self.revision} "
                f"was edited before revision {self.buffer.revision}"
            )
        return self.buffer.splice(span[0], span[1], replacement)

    def __repr__(self) -> str:
        return f"TextRange({self.start}, {self.end}, rev={self.revision})"


class EditorBuffer:
    """Plain-text document plus the user's current selection."""

    def __init__(self, text: str = ""):
        self._text = text
        self._edits: List[Edit] = []
        self._selection: Tuple[int, int] = (0, 0)

    @property
    def text(self) -> str:
        return self._text

    @property
    def revision(self) -> int:
        return len(self._edits)

    @property
    def selection(self) -> Tuple[int, int]:
        return self._selection

    def select(self, start: int, end: int) -> None:
        if start > end:
            start, end = end, start
        if start < 0 or end > len(self._text):
            raise ValueError(f"Selection {start}:{end} outside buffer of length {len(self._text)}")
        self._selection = (start, end)

    def clear_selection(self) -> None:
        self._selection = (self._selection[1], self._selection[1])

    def selection_text(self) -> str:
        start, end = self._selection
        return self._text[start:end]

    def capture_selection(self) -> Optional[SelectedText]:
        """Snapshot the current selection, or None when nothing meaningful is selected."""
        text = self.selection_text()
        if not text.strip():
            return None
        start, end = self._selection
        return SelectedText(text=text, range=TextRange(self, start, end, self.revision))

    def track(self, start: int, end: int, revision: int) -> Optional[Tuple[int, int]]:
        """Map a span captured at ``revision`` onto the current text."""
        for edit_start, edit_end, delta in self._edits[revision:]:
            if edit_start > end or (edit_start == end and start < end):
                continue
            # an insertion exactly at the start counts as touching the span
            if edit_end <= start and edit_start < start:
                start += delta
                end += delta
                continue
            return None
        return start, end

    def set_text(self, text: str) -> None:
        # a whole-document replacement touches every range
        self._edits.append((0, len(self._text), len(text) - len(self._text)))
        self._text = text
        self._selection = (0, 0)

    def insert(self, position: int, text: str) -> None:
        self.splice(position, position, text)

    def splice(self, start: int, end: int, replacement: str) -> TextRange:
        self._text = self._text[:start] + replacement + self._text[end:]
        self._edits.append((start, end, len(replacement) - (end - start)))
        new_end = start + len(replacement)
        self._selection = (start, new_end)
        logger.debug("Buffer spliced", start=start, end=end, inserted=len(replacement), revision=self.revision)
        return TextRange(self, start, new_end, self.revision)
