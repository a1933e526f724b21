"""
DOCX generation for proposals (python-docx)

Word lays out pages itself, so this generator only builds the paragraph and
table tree in document order. The table of contents and the "Page X of Y"
footer are Word fields, filled in when the document is opened.
"""

import io
import time
from typing import List, Tuple

import structlog
from docx import Document
from docx.enum.table import WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Mm, Pt, RGBColor, Twips

from core.config import (
    DOCX_ACCENT_COLOR,
    DOCX_COMPLETE_COLOR,
    DOCX_FONT_SIZES,
    DOCX_INCOMPLETE_COLOR,
    DOCX_MARGINS_TWIPS,
    DOCX_NOTES_COLOR,
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
from utils.date_utils import format_long_date, format_time_only, get_current_utc
from utils.export_utils import build_export_filename

logger = structlog.get_logger(__name__)


def add_field(paragraph, instruction: str) -> None:
    """Append a Word field (``begin``/instr/``separate``/``end``) to a paragraph."""

    def fld_char(char_type: str):
        el = OxmlElement("w:fldChar")
        el.set(qn("w:fldCharType"), char_type)
        return el

    instr = OxmlElement("w:instrText")
    instr.set(qn("xml:space"), "preserve")
    instr.text = f" {instruction} "

    paragraph.add_run()._r.append(fld_char("begin"))
    paragraph.add_run()._r.append(instr)
    paragraph.add_run()._r.append(fld_char("separate"))
    paragraph.add_run()._r.append(fld_char("end"))


def request_field_update(document) -> None:
    """Ask Word to refresh fields (TOC, page counts) on open."""
    update_fields = OxmlElement("w:updateFields")
    update_fields.set(qn("w:val"), "true")
    document.settings.element.append(update_fields)


class DOCXGenerator(BaseGenerator):
    """Render a proposal to a Word document."""

    format = ExportFormat.DOCX

    def __init__(self, options: ExportOptions):
        super().__init__(options)
        styles = options.custom_styles
        self.body_size = styles.font_size if styles and styles.font_size else DOCX_FONT_SIZES["BODY"]
        self.font_family = styles.font_family if styles and styles.font_family else None
        self.margins = styles.margins if styles and styles.margins else None
        self.header_footer = (
            styles.header_footer if styles and styles.header_footer else HeaderFooterOptions()
        )

    def generate(self, proposal: ProposalExportData) -> ExportResult:
        started = time.perf_counter()
        try:
            plan = build_document_plan(proposal)
            document = Document()
            self._setup(document, proposal)

            self._title_page(document, plan)
            if self.options.include_table_of_contents:
                self._table_of_contents(document)
            if plan.executive_summary is not None:
                self._section(document, plan.executive_summary)
            for section in plan.sections:
                self._section(document, section)
            if self.options.include_compliance and plan.has_compliance:
                self._compliance(document, plan)
            if self.options.include_metadata:
                self._metadata_table(document, proposal)

            buffer = io.BytesIO()
            document.save(buffer)
            result = self._success(
                buffer.getvalue(),
                build_export_filename(proposal.title, "docx"),
                started,
            )
        except ExportError:
            raise
        except Exception as exc:
            logger.error("DOCX generation failed", error=str(exc), title=proposal.title)
            raise GenerationError(
                f"DOCX generation failed: {exc}", exc, code="DOCX_GENERATION_FAILED"
            ) from exc

        logger.info("DOCX generated", title=proposal.title, size=result.data.size)
        return result

    generate_docx = generate

    # --- setup ---

    def _setup(self, document, proposal: ProposalExportData) -> None:
        props = document.core_properties
        props.title = proposal.title
        props.author = proposal.metadata.author or proposal.metadata.organization or "CareDraft"
        props.subject = "Business Proposal"
        props.keywords = "proposal, care, tender"
        props.comments = "Generated by CareDraft"

        normal = document.styles["Normal"]
        normal.font.size = Pt(self.body_size)
        if self.font_family:
            normal.font.name = self.font_family
        for style_name, size in (
            ("Heading 1", DOCX_FONT_SIZES["HEADING"]),
            ("Heading 2", DOCX_FONT_SIZES["SUBHEADING"]),
        ):
            font = document.styles[style_name].font
            font.size = Pt(size)
            font.color.rgb = RGBColor.from_string(DOCX_ACCENT_COLOR)

        for section in document.sections:
            if self.margins is not None:
                section.top_margin = Mm(self.margins.top)
                section.right_margin = Mm(self.margins.right)
                section.bottom_margin = Mm(self.margins.bottom)
                section.left_margin = Mm(self.margins.left)
            else:
                section.top_margin = Twips(DOCX_MARGINS_TWIPS["top"])
                section.right_margin = Twips(DOCX_MARGINS_TWIPS["right"])
                section.bottom_margin = Twips(DOCX_MARGINS_TWIPS["bottom"])
                section.left_margin = Twips(DOCX_MARGINS_TWIPS["left"])
            self._header_footer(section)

        request_field_update(document)

    def _header_footer(self, section) -> None:
        hf = self.header_footer
        if hf.include_header and hf.header_text:
            header = section.header.paragraphs[0]
            header.text = hf.header_text
            header.alignment = WD_ALIGN_PARAGRAPH.CENTER
        if not hf.include_footer:
            return
        footer = section.footer
        paragraph = footer.paragraphs[0]
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        if hf.footer_text:
            paragraph.add_run(hf.footer_text)
            if self.options.page_numbers:
                paragraph = footer.add_paragraph()
                paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        if self.options.page_numbers:
            paragraph.add_run("Page ")
            add_field(paragraph, "PAGE")
            paragraph.add_run(" of ")
            add_field(paragraph, "NUMPAGES")

    # --- document parts ---

    def _centered(self, document, text: str, size: int, *, bold: bool = False, color: str = None):
        paragraph = document.add_paragraph()
        paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = paragraph.add_run(text)
        run.bold = bold
        run.font.size = Pt(size)
        if color:
            run.font.color.rgb = RGBColor.from_string(color)
        return paragraph

    def _title_page(self, document, plan: DocumentPlan) -> None:
        meta = plan.metadata
        for _ in range(6):
            document.add_paragraph()
        self._centered(document, plan.title, DOCX_FONT_SIZES["TITLE"], bold=True, color=DOCX_ACCENT_COLOR)
        self._centered(document, "Business Proposal", DOCX_FONT_SIZES["HEADING"])
        document.add_paragraph()
        if meta.organization:
            self._centered(document, f"Prepared by: {meta.organization}", DOCX_FONT_SIZES["BODY"], bold=True)
        if meta.author:
            self._centered(document, f"Author: {meta.author}", DOCX_FONT_SIZES["BODY"])
        self._centered(document, f"Date: {format_long_date(meta.created_at)}", DOCX_FONT_SIZES["BODY"])
        if meta.version:
            self._centered(document, f"Version: {meta.version}", DOCX_FONT_SIZES["BODY"])
        document.add_page_break()

    def _table_of_contents(self, document) -> None:
        document.add_heading("Table of Contents", level=1)
        add_field(document.add_paragraph(), 'TOC \\o "1-3" \\h \\z \\u')
        document.add_page_break()

    def _section(self, document, section: PlannedSection) -> None:
        document.add_heading(section.title, level=1)
        self._blocks(document, section.blocks)

    def _blocks(self, document, blocks: List[Block]) -> None:
        for block in blocks:
            if block.kind == BlockKind.HEADING:
                document.add_heading(block.text, level=2 if block.level <= 2 else 3)
            elif block.kind == BlockKind.LIST_ITEM:
                document.add_paragraph(block.text, style="List Bullet")
            else:
                document.add_paragraph(block.text)

    def _compliance(self, document, plan: DocumentPlan) -> None:
        compliance = plan.compliance
        document.add_page_break()
        document.add_heading("Compliance Checklist", level=1)

        for item in compliance.checklist:
            complete = item.status == ComplianceStatus.COMPLETE
            paragraph = document.add_paragraph()
            run = paragraph.add_run(f"{'✓' if complete else '○'} {item.item}")
            run.font.color.rgb = RGBColor.from_string(
                DOCX_COMPLETE_COLOR if complete else DOCX_INCOMPLETE_COLOR
            )
            if item.notes:
                notes = document.add_paragraph().add_run(f"Notes: {item.notes}")
                notes.italic = True
                notes.font.size = Pt(DOCX_FONT_SIZES["SMALL"])
                notes.font.color.rgb = RGBColor.from_string(DOCX_NOTES_COLOR)

        if compliance.requirements:
            label = document.add_paragraph().add_run("Requirements:")
            label.bold = True
            for requirement in compliance.requirements:
                document.add_paragraph(f"• {requirement}")

    def _metadata_rows(self, proposal: ProposalExportData) -> List[Tuple[str, str]]:
        meta = proposal.metadata
        now = get_current_utc()
        return [
            ("Document ID", proposal.id or "N/A"),
            ("Title", proposal.title),
            ("Organization", meta.organization or "N/A"),
            ("Author", meta.author or "N/A"),
            ("Created", format_long_date(meta.created_at) if meta.created_at else "N/A"),
            ("Last Modified", format_long_date(meta.last_modified) if meta.last_modified else "N/A"),
            ("Version", meta.version or "1.0"),
            ("Export Date", format_long_date(now)),
            ("Export Time", format_time_only(now)),
        ]

    def _metadata_table(self, document, proposal: ProposalExportData) -> None:
        document.add_page_break()
        document.add_heading("Document Information", level=1)

        rows = self._metadata_rows(proposal)
        table = document.add_table(rows=len(rows), cols=2)
        table.style = "Table Grid"
        table.alignment = WD_TABLE_ALIGNMENT.CENTER
        for row, (label, value) in zip(table.rows, rows):
            label_cell, value_cell = row.cells
            label_cell.width = Mm(50)
            value_cell.width = Mm(120)
            label_cell.paragraphs[0].add_run(label).bold = True
            value_cell.paragraphs[0].add_run(value)
