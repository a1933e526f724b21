"""
PDF generation for proposals (reportlab canvas)

Pages are drawn top-down with a running cursor. Every heading and every
wrapped line checks the remaining space first, so long sections flow across
as many pages as they need. Headers, footers ("Page i of N") and the
watermark are stamped on each page once the total page count is known.
"""

import io
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

import structlog
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, letter
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from core.config import (
    PDF_FONT_SIZES,
    PDF_HEADING_SPACE_MM,
    PDF_LINE_HEIGHT,
    PDF_LINE_SPACE_MM,
    PDF_MARGINS_MM,
    PDF_PAGE_SIZE,
    PDF_TOC_LEADER,
    QUALITY_PRESETS,
    WATERMARK_ANGLE,
    WATERMARK_FONT_SIZE,
    WATERMARK_OPACITY,
)
from core.exceptions import ExportError, GenerationError
from models.export import (
    ComplianceStatus,
    ExportFormat,
    ExportOptions,
    ExportResult,
    HeaderFooterOptions,
    ProposalExportData,
)
from services.base_generator import BaseGenerator
from services.document_model import Block, BlockKind
from services.document_plan import DocumentPlan, PlannedSection, build_document_plan
from services.pdf_fonts import FontSet, get_font_set
from utils.date_utils import format_long_date
from utils.export_utils import build_export_filename

logger = structlog.get_logger(__name__)

PAGE_SIZES = {"A4": A4, "LETTER": letter}

GLYPH_FONT = "ZapfDingbats"

TEXT_COLOR = colors.HexColor("#1a1a1a")
MUTED_COLOR = colors.HexColor("#666666")
LINK_COLOR = colors.HexColor("#0000EE")

# status -> (logical symbol, ZapfDingbats code, colour)
COMPLIANCE_GLYPHS = {
    ComplianceStatus.COMPLETE: ("✓", "3", colors.HexColor("#008000")),
    ComplianceStatus.INCOMPLETE: ("✗", "7", colors.HexColor("#CC0000")),
    ComplianceStatus.NOT_APPLICABLE: ("○", "m", colors.HexColor("#808080")),
}

StampFn = Callable[[canvas.Canvas, int, int], None]


@dataclass(frozen=True)
class LayoutEntry:
    """One rendered block: the page it starts on, its kind and its text."""

    page: int
    kind: str
    text: str


class StampingCanvas(canvas.Canvas):
    """Canvas that holds finished pages until ``save()``.

    Once the page count is known each held page is replayed, handed to the
    stamp callback, and only then emitted.
    """

    def __init__(self, *args, stamp: Optional[StampFn] = None, **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._saved_page_states: List[dict] = []
        self._stamp = stamp

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        page_count = len(self._saved_page_states)
        for page_number, state in enumerate(self._saved_page_states, start=1):
            self.__dict__.update(state)
            if self._stamp is not None:
                self._stamp(self, page_number, page_count)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)


class PageWriter:
    """Top-down text layout over a StampingCanvas."""

    def __init__(
        self,
        buffer: io.BytesIO,
        *,
        stamp: Optional[StampFn] = None,
        page_size: Tuple[float, float] = A4,
        margins_mm: Optional[Dict[str, float]] = None,
        compress: bool = True,
    ):
        margins = dict(PDF_MARGINS_MM)
        margins.update(margins_mm or {})
        self.canvas = StampingCanvas(
            buffer,
            pagesize=page_size,
            pageCompression=1 if compress else 0,
            stamp=stamp,
        )
        self.width, self.height = page_size
        self.margin_top = margins["top"] * mm
        self.margin_right = margins["right"] * mm
        self.margin_bottom = margins["bottom"] * mm
        self.margin_left = margins["left"] * mm
        self.page = 1
        self.y = self.height - self.margin_top
        self.fonts: FontSet = get_font_set()
        self.layout: List[LayoutEntry] = []
        self.anchors: Dict[str, int] = {}
        self.missing_glyphs: set = set()

    @property
    def content_width(self) -> float:
        return self.width - self.margin_left - self.margin_right

    # --- pagination ---

    def new_page(self) -> None:
        self.canvas.showPage()
        self.page += 1
        self.y = self.height - self.margin_top

    def ensure_space(self, needed: float) -> None:
        if self.y - needed < self.margin_bottom:
            self.new_page()

    def move_to(self, offset_from_top: float) -> None:
        self.y = self.height - offset_from_top

    def spacer(self, amount: float) -> None:
        self.y -= amount

    def anchor(self, key: str) -> None:
        self.anchors[key] = self.page

    def record(self, kind: str, text: str, page: Optional[int] = None, drawn: Optional[str] = None) -> None:
        self.layout.append(LayoutEntry(page or self.page, kind, text))
        self.missing_glyphs.update(self.fonts.missing_glyphs(text if drawn is None else drawn))

    # --- drawing ---

    def _wrap(self, text: str, font: str, size: float, width: float) -> List[str]:
        """Word-wrap, then hard-break any token still wider than ``width``."""
        lines: List[str] = []
        for line in simpleSplit(text, font, size, width):
            while stringWidth(line, font, size) > width:
                cut = 1
                while cut < len(line) and stringWidth(line[: cut + 1], font, size) <= width:
                    cut += 1
                lines.append(line[:cut])
                line = line[cut:]
            lines.append(line)
        return lines

    def _draw_lines(
        self,
        lines: List[str],
        font: str,
        size: float,
        *,
        indent: float = 0,
        color=TEXT_COLOR,
        min_space: float = PDF_LINE_SPACE_MM * mm,
    ) -> None:
        line_height = size * PDF_LINE_HEIGHT
        for line in lines:
            self.ensure_space(max(line_height, min_space))
            self.y -= line_height
            self.canvas.setFont(font, size)
            self.canvas.setFillColor(color)
            self.canvas.drawString(self.margin_left + indent, self.y, line)

    def heading(self, text: str, size: float, kind: str = "heading") -> None:
        self.ensure_space(PDF_HEADING_SPACE_MM * mm)
        self.record(kind, text)
        lines = self._wrap(text, self.fonts.bold, size, self.content_width)
        self._draw_lines(lines, self.fonts.bold, size)
        self.spacer(size * 0.5)

    def text(
        self,
        text: str,
        size: float,
        *,
        font: Optional[str] = None,
        indent: float = 0,
        color=TEXT_COLOR,
        kind: str = "text",
    ) -> None:
        font = font or self.fonts.regular
        lines = self._wrap(text, font, size, self.content_width - indent) or [""]
        # the first line decides where the block starts
        self.ensure_space(max(size * PDF_LINE_HEIGHT, PDF_LINE_SPACE_MM * mm))
        self.record(kind, text)
        self._draw_lines(lines, font, size, indent=indent, color=color)

    def link(self, url: str, size: float, *, kind: str = "link") -> None:
        """Draw a URL in link colour with a clickable annotation per line."""
        font = self.fonts.regular
        lines = self._wrap(url, font, size, self.content_width) or [url]
        self.ensure_space(max(size * PDF_LINE_HEIGHT, PDF_LINE_SPACE_MM * mm))
        self.record(kind, url)
        for line in lines:
            self._draw_lines([line], font, size, color=LINK_COLOR)
            x = self.margin_left
            self.canvas.linkURL(
                url,
                (x, self.y - 2, x + stringWidth(line, font, size), self.y + size),
                relative=0,
            )

    def centered(self, text: str, size: float, *, font: Optional[str] = None, kind: str = "title") -> None:
        font = font or self.fonts.regular
        self.record(kind, text)
        for line in self._wrap(text, font, size, self.content_width):
            self.ensure_space(size * PDF_LINE_HEIGHT)
            self.y -= size * PDF_LINE_HEIGHT
            self.canvas.setFont(font, size)
            self.canvas.setFillColor(TEXT_COLOR)
            self.canvas.drawCentredString(self.width / 2, self.y, line)

    def glyph_text(self, symbol: str, glyph: str, glyph_color, text: str, size: float) -> None:
        line_height = size * PDF_LINE_HEIGHT
        self.ensure_space(max(line_height, PDF_LINE_SPACE_MM * mm))
        # the symbol itself is drawn from ZapfDingbats
        self.record("compliance_item", f"{symbol} {text}", drawn=text)
        self.canvas.setFont(GLYPH_FONT, size)
        self.canvas.setFillColor(glyph_color)
        self.canvas.drawString(self.margin_left, self.y - line_height, glyph)
        indent = 7 * mm
        font = self.fonts.regular
        lines = self._wrap(text, font, size, self.content_width - indent) or [""]
        self._draw_lines(lines, font, size, indent=indent)

    def leader_line(self, title: str, page_label: str, size: float) -> None:
        """Title, dot leaders, right-aligned page number."""
        line_height = size * PDF_LINE_HEIGHT
        self.ensure_space(max(line_height, PDF_LINE_SPACE_MM * mm))
        self.record("toc_entry", f"{title} {page_label}")
        self.y -= line_height

        font = self.fonts.regular
        right = self.width - self.margin_right
        number_width = stringWidth(page_label, font, size)
        dot_width = stringWidth(PDF_TOC_LEADER + " ", font, size)
        # keep room for at least three leader dots
        max_title = self.content_width - number_width - dot_width * 4
        label = title
        while label and stringWidth(label, font, size) > max_title:
            label = label[:-1]
        if label != title:
            label = label[:-3].rstrip() + "..."
        title_width = stringWidth(label + " ", font, size)
        dots = max(3, int((self.content_width - title_width - number_width - dot_width) / dot_width))

        self.canvas.setFont(font, size)
        self.canvas.setFillColor(TEXT_COLOR)
        self.canvas.drawString(self.margin_left, self.y, label)
        self.canvas.setFillColor(MUTED_COLOR)
        self.canvas.drawString(
            self.margin_left + title_width, self.y, (PDF_TOC_LEADER + " ") * dots
        )
        self.canvas.setFillColor(TEXT_COLOR)
        self.canvas.drawRightString(right, self.y, page_label)

    def blocks(self, blocks: List[Block], size: float) -> None:
        for block in blocks:
            if block.kind == BlockKind.HEADING:
                sub_size = PDF_FONT_SIZES["SUBHEADING"] if block.level <= 2 else PDF_FONT_SIZES["BODY"]
                self.heading(block.text, sub_size, kind="subheading")
            elif block.kind == BlockKind.LIST_ITEM:
                self.text(f"• {block.text}", size, indent=4 * mm, kind="list_item")
            else:
                self.text(block.text, size, kind="paragraph")
                self.spacer(size * 0.4)

    def finish(self) -> None:
        self.canvas.showPage()
        self.canvas.save()


def draw_watermark(canv: canvas.Canvas, text: str, width: float, height: float) -> None:
    canv.saveState()
    canv.setFillColor(colors.grey)
    canv.setFillAlpha(WATERMARK_OPACITY)
    canv.setFont(get_font_set().bold, WATERMARK_FONT_SIZE)
    canv.translate(width / 2, height / 2)
    canv.rotate(WATERMARK_ANGLE)
    canv.drawCentredString(0, 0, text)
    canv.restoreState()


def note_missing_glyphs(result: ExportResult, writer: PageWriter, title: str) -> None:
    """Flag text the registered face could not draw instead of passing it silently."""
    if not writer.missing_glyphs:
        return
    result.metadata.extra["missing_glyphs"] = "".join(sorted(writer.missing_glyphs))
    logger.warning(
        "PDF font lacks glyphs for some characters",
        title=title,
        font=writer.fonts.source or writer.fonts.regular,
        count=len(writer.missing_glyphs),
    )


class PDFGenerator(BaseGenerator):
    """Render a proposal to PDF."""

    format = ExportFormat.PDF

    def __init__(self, options: ExportOptions):
        super().__init__(options)
        styles = options.custom_styles
        self.body_size = (styles.font_size if styles and styles.font_size else PDF_FONT_SIZES["TEXT"])
        self.margins_mm = styles.margins.model_dump() if styles and styles.margins else None
        self.header_footer = (
            styles.header_footer if styles and styles.header_footer else HeaderFooterOptions()
        )
        preset = QUALITY_PRESETS.get(options.quality.value, {})
        self.watermark = options.watermark or preset.get("watermark")
        self.compress = preset.get("compress", True)
        self.page_size = PAGE_SIZES.get(PDF_PAGE_SIZE.upper(), A4)
        self.layout: List[LayoutEntry] = []
        self.page_count = 0

    def generate(self, proposal: ProposalExportData) -> ExportResult:
        started = time.perf_counter()
        try:
            plan = build_document_plan(proposal)
            toc_pages: Dict[str, int] = {}
            if self.options.include_table_of_contents:
                # first pass only measures where each entry lands
                _, measured = self._render(plan, toc_pages)
                toc_pages = measured.anchors
            content, writer = self._render(plan, toc_pages)
            self.layout = writer.layout
            self.page_count = writer.page
            result = self._success(
                content,
                build_export_filename(proposal.title, "pdf"),
                started,
                page_count=writer.page,
            )
            note_missing_glyphs(result, writer, proposal.title)
        except ExportError:
            raise
        except Exception as exc:
            logger.error("PDF generation failed", error=str(exc), title=proposal.title)
            raise GenerationError(
                f"PDF generation failed: {exc}", exc, code="PDF_GENERATION_FAILED"
            ) from exc

        logger.info(
            "PDF generated",
            title=proposal.title,
            pages=self.page_count,
            size=result.data.size,
        )
        return result

    generate_pdf = generate

    # --- passes ---

    def _render(self, plan: DocumentPlan, toc_pages: Dict[str, int]) -> Tuple[bytes, PageWriter]:
        buffer = io.BytesIO()
        writer = PageWriter(
            buffer,
            stamp=self._stamp_page,
            page_size=self.page_size,
            margins_mm=self.margins_mm,
            compress=self.compress,
        )
        self._set_properties(writer.canvas, plan)

        self._title_page(writer, plan)
        if self.options.include_table_of_contents:
            self._table_of_contents(writer, plan, toc_pages)

        if plan.executive_summary is not None:
            self._section(writer, plan.executive_summary, "summary")
        for index, section in enumerate(plan.sections):
            self._section(writer, section, f"section:{index}")

        if self.options.include_compliance and plan.has_compliance:
            self._compliance(writer, plan)
        if self.options.include_metadata:
            self._metadata(writer, plan)

        writer.finish()
        return buffer.getvalue(), writer

    def _set_properties(self, canv: canvas.Canvas, plan: DocumentPlan) -> None:
        canv.setTitle(plan.title)
        canv.setAuthor(plan.metadata.author or plan.metadata.organization or "CareDraft")
        canv.setSubject("Business Proposal")
        canv.setCreator("CareDraft")

    def _stamp_page(self, canv: canvas.Canvas, page_number: int, page_count: int) -> None:
        width, height = self.page_size
        margins = dict(PDF_MARGINS_MM)
        margins.update(self.margins_mm or {})
        hf = self.header_footer

        canv.saveState()
        canv.setFont(get_font_set().regular, PDF_FONT_SIZES["FOOTER"])
        canv.setFillColor(MUTED_COLOR)
        if hf.include_header and hf.header_text:
            canv.drawString(margins["left"] * mm, height - margins["top"] * mm / 2, hf.header_text)
        if hf.include_footer:
            footer_y = margins["bottom"] * mm / 2
            if hf.footer_text:
                canv.drawString(margins["left"] * mm, footer_y, hf.footer_text)
            if self.options.page_numbers:
                canv.drawRightString(
                    width - margins["right"] * mm,
                    footer_y,
                    f"Page {page_number} of {page_count}",
                )
        canv.restoreState()

        if self.watermark:
            draw_watermark(canv, self.watermark, width, height)

    # --- document parts ---

    def _title_page(self, writer: PageWriter, plan: DocumentPlan) -> None:
        meta = plan.metadata
        writer.move_to(60 * mm)
        writer.centered(plan.title, PDF_FONT_SIZES["TITLE"], font=writer.fonts.bold)
        writer.spacer(20 * mm)
        if meta.organization:
            writer.centered(meta.organization, PDF_FONT_SIZES["HEADING"])
            writer.spacer(10 * mm)
        if meta.author:
            writer.centered(f"Prepared by: {meta.author}", PDF_FONT_SIZES["BODY"])
            writer.spacer(4 * mm)
        writer.centered(f"Date: {format_long_date(meta.created_at)}", PDF_FONT_SIZES["BODY"])
        if meta.version:
            writer.spacer(4 * mm)
            writer.centered(f"Version: {meta.version}", PDF_FONT_SIZES["BODY"])

    def _toc_entries(self, plan: DocumentPlan) -> List[Tuple[str, str]]:
        entries: List[Tuple[str, str]] = []
        if plan.executive_summary is not None:
            entries.append((plan.executive_summary.title, "summary"))
        for index, section in enumerate(plan.sections):
            entries.append((section.title, f"section:{index}"))
        if self.options.include_compliance and plan.has_compliance:
            entries.append(("Compliance Checklist", "compliance"))
        if self.options.include_metadata:
            entries.append(("Document Information", "metadata"))
        return entries

    def _table_of_contents(
        self, writer: PageWriter, plan: DocumentPlan, toc_pages: Dict[str, int]
    ) -> None:
        writer.new_page()
        writer.heading("Table of Contents", PDF_FONT_SIZES["HEADING"], kind="toc")
        for title, key in self._toc_entries(plan):
            writer.leader_line(title, str(toc_pages.get(key, "")), PDF_FONT_SIZES["BODY"])

    def _section(self, writer: PageWriter, section: PlannedSection, key: str) -> None:
        writer.new_page()
        writer.anchor(key)
        writer.heading(section.title, PDF_FONT_SIZES["HEADING"], kind="section")
        writer.blocks(section.blocks, self.body_size)

    def _compliance(self, writer: PageWriter, plan: DocumentPlan) -> None:
        compliance = plan.compliance
        writer.new_page()
        writer.anchor("compliance")
        writer.heading("Compliance Checklist", PDF_FONT_SIZES["HEADING"], kind="section")

        for item in compliance.checklist:
            symbol, glyph, color = COMPLIANCE_GLYPHS[item.status]
            writer.glyph_text(symbol, glyph, color, item.item, self.body_size)
            if item.notes:
                writer.text(
                    f"Notes: {item.notes}",
                    PDF_FONT_SIZES["SMALL"],
                    font=writer.fonts.italic,
                    indent=7 * mm,
                    color=MUTED_COLOR,
                    kind="compliance_notes",
                )
            writer.spacer(2 * mm)

        if compliance.requirements:
            writer.spacer(4 * mm)
            writer.heading("Requirements", PDF_FONT_SIZES["SUBHEADING"], kind="subheading")
            for number, requirement in enumerate(compliance.requirements, start=1):
                writer.text(f"{number}. {requirement}", self.body_size, kind="requirement")

    def _metadata(self, writer: PageWriter, plan: DocumentPlan) -> None:
        meta = plan.metadata
        writer.new_page()
        writer.anchor("metadata")
        writer.heading("Document Information", PDF_FONT_SIZES["HEADING"], kind="section")

        rows = [
            ("Organization", meta.organization),
            ("Author", meta.author),
            ("Created Date", format_long_date(meta.created_at) if meta.created_at else None),
            ("Last Modified", format_long_date(meta.last_modified) if meta.last_modified else None),
            ("Version", meta.version),
            ("Generated Date", format_long_date()),
        ]
        for label, value in rows:
            if value:
                writer.text(f"{label}: {value}", self.body_size, kind="metadata")
