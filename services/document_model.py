"""
Rich-text to block model conversion.

Proposal content arrives as editor HTML (or, for older drafts, plain text).
Generators never see markup: they consume an ordered list of ``Block``
objects produced here.

HTML is walked with BeautifulSoup so real headings, paragraphs and list
items keep their structure. Text that sits outside any block element (plain
text drafts, bare strings between tags) is split on blank lines, and a chunk
that starts with ``#`` or is a short all-caps line becomes a heading.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import List

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

from utils.export_utils import collapse_ws, sanitize_html

HEADING_LEVELS = {"h1": 1, "h2": 2, "h3": 3, "h4": 3, "h5": 3, "h6": 3}
PARAGRAPH_TAGS = {"p", "blockquote", "pre"}
LIST_TAGS = {"ul", "ol"}
CONTAINER_TAGS = {
    "html", "body", "div", "section", "article", "main", "header", "footer",
    "aside", "ul", "ol", "table", "thead", "tbody", "tr", "td", "th",
}

SHORT_HEADING_MAX_CHARS = 50
_BLANK_LINE_RE = re.compile(r"\n\s*\n")


class BlockKind(str, Enum):
    HEADING = "heading"
    PARAGRAPH = "paragraph"
    LIST_ITEM = "list_item"


@dataclass(frozen=True)
class Block:
    kind: BlockKind
    text: str
    level: int = 0


def split_plain_text(text: str) -> List[Block]:
    blocks: List[Block] = []
    for chunk in _BLANK_LINE_RE.split(text or ""):
        chunk = chunk.strip()
        if not chunk:
            continue
        if chunk.startswith("#"):
            heading = collapse_ws(chunk.lstrip("#"))
            if heading:
                blocks.append(Block(BlockKind.HEADING, heading, 2))
            continue
        if (
            len(chunk) < SHORT_HEADING_MAX_CHARS
            and chunk == chunk.upper()
            and any(c.isalpha() for c in chunk)
        ):
            blocks.append(Block(BlockKind.HEADING, collapse_ws(chunk), 2))
            continue
        blocks.append(Block(BlockKind.PARAGRAPH, collapse_ws(chunk)))
    return blocks


class _BlockWalker:
    def __init__(self) -> None:
        self.blocks: List[Block] = []
        self._pending: List[str] = []

    def walk(self, node: Tag) -> None:
        for child in node.children:
            if isinstance(child, Comment):
                continue
            if isinstance(child, NavigableString):
                self._pending.append(str(child))
                continue
            if not isinstance(child, Tag):
                continue

            name = child.name
            if name == "br":
                self._pending.append("\n")
            elif name in HEADING_LEVELS:
                self._flush()
                self._emit(BlockKind.HEADING, child.get_text(), HEADING_LEVELS[name])
            elif name == "li":
                self._flush()
                self._list_item(child)
            elif name in PARAGRAPH_TAGS:
                self._flush()
                self._emit(BlockKind.PARAGRAPH, child.get_text())
            elif name in CONTAINER_TAGS:
                self._flush()
                self.walk(child)
                self._flush()
            else:
                # inline formatting (strong, em, a, span ...)
                self._pending.append(child.get_text())

    def finish(self) -> List[Block]:
        self._flush()
        return self.blocks

    def _list_item(self, item: Tag) -> None:
        own_text = []
        nested = []
        for child in item.children:
            if isinstance(child, Tag) and child.name in LIST_TAGS:
                nested.append(child)
            elif isinstance(child, Tag):
                own_text.append(child.get_text())
            elif isinstance(child, NavigableString) and not isinstance(child, Comment):
                own_text.append(str(child))
        self._emit(BlockKind.LIST_ITEM, "".join(own_text))
        for sub in nested:
            self.walk(sub)

    def _emit(self, kind: BlockKind, raw: str, level: int = 0) -> None:
        text = collapse_ws(raw)
        if text:
            self.blocks.append(Block(kind, text, level))

    def _flush(self) -> None:
        if not self._pending:
            return
        text = "".join(self._pending)
        self._pending = []
        self.blocks.extend(split_plain_text(text))


def parse_rich_text(content: str) -> List[Block]:
    """Convert editor HTML or plain text into ordered blocks."""
    if not content or not content.strip():
        return []
    soup = BeautifulSoup(sanitize_html(content), "html.parser")
    walker = _BlockWalker()
    walker.walk(soup)
    return walker.finish()
