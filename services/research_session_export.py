"""
Export of research sessions (a query plus its search results) to PDF/DOCX.

Validation runs before anything is generated. The transform applies, in
order: truncate to ``results_limit``, sort by descending relevance, group by
source. Grouping comes last so it works on the already limited and sorted
list.
"""

import asyncio
import io
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import structlog
from docx import Document
from docx.opc.constants import RELATIONSHIP_TYPE as RT
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor
from pydantic import ValidationError as PydanticValidationError
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm

from core.config import (
    DOCX_FONT_SIZES,
    PDF_FONT_SIZES,
    RESEARCH_FILENAME_PREFIX,
    RESEARCH_RESULTS_LIMIT_MAX,
    RESEARCH_RESULTS_LIMIT_MIN,
    RESEARCH_SLUG_MAX_LENGTH,
    RESEARCH_UNKNOWN_SOURCE,
)
from core.exceptions import ExportError, GenerationError, ValidationError
from models.export import (
    ExportErrorInfo,
    ExportFormat,
    ExportResult,
    ExportResultMetadata,
    ResearchResult,
    ResearchSessionData,
    ResearchSessionExportOptions,
)
from services.base_generator import BaseGenerator
from services.pdf_fonts import get_font_set
from services.pdf_generator import MUTED_COLOR, PageWriter, note_missing_glyphs
from utils.date_utils import format_long_date, get_current_utc
from utils.export_utils import build_export_filename, format_label

logger = structlog.get_logger(__name__)

INVALID_SESSION_MESSAGE = "Invalid research session data: missing ID or title"
NO_RESULTS_MESSAGE = "Cannot export research session with no results"
INVALID_FORMAT_MESSAGE = 'Invalid export format. Must be either "pdf" or "docx"'
RESULTS_LIMIT_MESSAGE = (
    f"Results limit must be between {RESEARCH_RESULTS_LIMIT_MIN} "
    f"and {RESEARCH_RESULTS_LIMIT_MAX}"
)


@dataclass
class PreparedSession:
    """Session after the transform step, ready for a generator."""

    session: ResearchSessionData
    results: List[ResearchResult]
    groups: Optional[Dict[str, List[ResearchResult]]]
    total_results: int

    @property
    def exported_results(self) -> int:
        return len(self.results)


def format_relevance(score: Optional[float]) -> Optional[str]:
    if score is None:
        return None
    return f"{score * 100:.1f}%"


def result_meta_line(result: ResearchResult) -> Optional[str]:
    parts = []
    if result.source:
        parts.append(f"Source: {result.source}")
    relevance = format_relevance(result.relevance_score)
    if relevance is not None:
        parts.append(f"Relevance: {relevance}")
    return " • ".join(parts) if parts else None


# --- Generators ---


class ResearchSessionPDFGenerator(BaseGenerator):
    format = ExportFormat.PDF

    def __init__(self, options: ResearchSessionExportOptions):
        super().__init__(options)
        self.layout = []

    def generate(self, prepared: PreparedSession) -> ExportResult:
        started = time.perf_counter()
        try:
            buffer = io.BytesIO()
            writer = PageWriter(buffer, stamp=self._stamp_page)
            session = prepared.session
            writer.canvas.setTitle(session.title)
            writer.canvas.setSubject("Research Session")
            writer.canvas.setCreator("CareDraft")

            writer.heading(session.title, PDF_FONT_SIZES["TITLE"], kind="title")
            if self.options.include_query and session.query:
                writer.heading("Research Query", PDF_FONT_SIZES["HEADING"], kind="section")
                writer.text(session.query, PDF_FONT_SIZES["TEXT"], kind="query")
                writer.spacer(6 * mm)

            writer.heading("Research Results", PDF_FONT_SIZES["HEADING"], kind="section")
            if prepared.groups is not None:
                for source, results in prepared.groups.items():
                    writer.heading(f"Source: {source}", PDF_FONT_SIZES["SUBHEADING"], kind="group")
                    self._results(writer, results)
            else:
                self._results(writer, prepared.results)

            if self.options.include_metadata:
                writer.spacer(6 * mm)
                writer.heading("Session Information", PDF_FONT_SIZES["HEADING"], kind="section")
                if session.created_at:
                    writer.text(f"Created: {format_long_date(session.created_at)}", PDF_FONT_SIZES["TEXT"], kind="metadata")
                writer.text(f"Total Results: {prepared.total_results}", PDF_FONT_SIZES["TEXT"], kind="metadata")
                writer.text(f"Exported Results: {prepared.exported_results}", PDF_FONT_SIZES["TEXT"], kind="metadata")

            writer.finish()
            self.layout = writer.layout
            result = self._success(
                buffer.getvalue(),
                research_filename(session.title, "pdf"),
                started,
                page_count=writer.page,
            )
            note_missing_glyphs(result, writer, session.title)
            return result
        except ExportError:
            raise
        except Exception as exc:
            raise GenerationError(
                f"Research session PDF generation failed: {exc}",
                exc,
                code="RESEARCH_SESSION_EXPORT_FAILED",
            ) from exc

    def _results(self, writer: PageWriter, results: List[ResearchResult]) -> None:
        for number, result in enumerate(results, start=1):
            writer.text(
                f"{number}. {result.title}",
                PDF_FONT_SIZES["SUBHEADING"],
                font=writer.fonts.bold,
                kind="result_title",
            )
            writer.link(result.url, PDF_FONT_SIZES["SMALL"])
            if result.snippet:
                writer.text(result.snippet, PDF_FONT_SIZES["TEXT"], kind="snippet")
            meta = result_meta_line(result) if self.options.include_results_metadata else None
            if meta:
                writer.text(meta, PDF_FONT_SIZES["SMALL"], color=MUTED_COLOR, kind="result_meta")
            writer.spacer(4 * mm)

    def _stamp_page(self, canv, page_number: int, page_count: int) -> None:
        width, _ = A4
        canv.saveState()
        canv.setFont(get_font_set().regular, PDF_FONT_SIZES["FOOTER"])
        canv.setFillColor(MUTED_COLOR)
        canv.drawRightString(width - 20 * mm, 10 * mm, f"Page {page_number} of {page_count}")
        canv.restoreState()


def add_hyperlink(paragraph, url: str, text: str) -> None:
    part = paragraph.part
    r_id = part.relate_to(url, RT.HYPERLINK, is_external=True)

    hyperlink = OxmlElement("w:hyperlink")
    hyperlink.set(qn("r:id"), r_id)

    run = OxmlElement("w:r")
    props = OxmlElement("w:rPr")
    color = OxmlElement("w:color")
    color.set(qn("w:val"), "0000EE")
    props.append(color)
    underline = OxmlElement("w:u")
    underline.set(qn("w:val"), "single")
    props.append(underline)
    run.append(props)
    text_el = OxmlElement("w:t")
    text_el.text = text
    run.append(text_el)
    hyperlink.append(run)
    paragraph._p.append(hyperlink)


class ResearchSessionDOCXGenerator(BaseGenerator):
    format = ExportFormat.DOCX

    def generate(self, prepared: PreparedSession) -> ExportResult:
        started = time.perf_counter()
        try:
            session = prepared.session
            document = Document()
            document.core_properties.title = session.title
            document.core_properties.subject = "Research Session"

            document.add_heading(session.title, level=0)
            if self.options.include_query and session.query:
                document.add_heading("Research Query", level=1)
                document.add_paragraph(session.query)

            document.add_heading("Research Results", level=1)
            if prepared.groups is not None:
                for source, results in prepared.groups.items():
                    document.add_heading(f"Source: {source}", level=2)
                    self._results(document, results)
            else:
                self._results(document, prepared.results)

            if self.options.include_metadata:
                document.add_heading("Session Information", level=1)
                if session.created_at:
                    document.add_paragraph(f"Created: {format_long_date(session.created_at)}")
                document.add_paragraph(f"Total Results: {prepared.total_results}")
                document.add_paragraph(f"Exported Results: {prepared.exported_results}")

            buffer = io.BytesIO()
            document.save(buffer)
            return self._success(
                buffer.getvalue(), research_filename(session.title, "docx"), started
            )
        except ExportError:
            raise
        except Exception as exc:
            raise GenerationError(
                f"Research session DOCX generation failed: {exc}",
                exc,
                code="RESEARCH_SESSION_EXPORT_FAILED",
            ) from exc

    def _results(self, document, results: List[ResearchResult]) -> None:
        for number, result in enumerate(results, start=1):
            title = document.add_paragraph().add_run(f"{number}. {result.title}")
            title.bold = True
            title.font.size = Pt(DOCX_FONT_SIZES["BODY"] + 2)
            add_hyperlink(document.add_paragraph(), result.url, result.url)
            if result.snippet:
                document.add_paragraph(result.snippet)
            meta = result_meta_line(result) if self.options.include_results_metadata else None
            if meta:
                run = document.add_paragraph().add_run(meta)
                run.font.size = Pt(DOCX_FONT_SIZES["SMALL"])
                run.font.color.rgb = RGBColor.from_string("808080")


def research_filename(title: str, fmt: str) -> str:
    return build_export_filename(
        title,
        fmt,
        prefix=RESEARCH_FILENAME_PREFIX,
        max_length=RESEARCH_SLUG_MAX_LENGTH,
    )


# --- Service ---


class ResearchSessionExportService:
    """Validate, transform and render research sessions."""

    def __init__(self):
        self.generators = {
            ExportFormat.PDF: ResearchSessionPDFGenerator,
            ExportFormat.DOCX: ResearchSessionDOCXGenerator,
        }

    def parse(
        self,
        session: Union[ResearchSessionData, Dict[str, Any]],
        options: Union[ResearchSessionExportOptions, Dict[str, Any]],
    ):
        if isinstance(options, dict):
            try:
                options = ResearchSessionExportOptions.model_validate(options)
            except PydanticValidationError as exc:
                if any(err["loc"][:1] == ("format",) for err in exc.errors()):
                    raise ValidationError(INVALID_FORMAT_MESSAGE) from exc
                raise ValidationError.from_pydantic(exc, "Invalid export options") from exc
        if isinstance(session, dict):
            try:
                session = ResearchSessionData.model_validate(session)
            except PydanticValidationError as exc:
                raise ValidationError.from_pydantic(exc, "Invalid research session data") from exc
        return session, options

    def validate(self, session: ResearchSessionData, options: ResearchSessionExportOptions) -> None:
        if not session.id or not session.title:
            raise ValidationError(INVALID_SESSION_MESSAGE)
        if not session.results:
            raise ValidationError(NO_RESULTS_MESSAGE)
        if options.format not in self.generators:
            raise ValidationError(INVALID_FORMAT_MESSAGE)
        limit = options.results_limit
        if limit is not None and not (
            RESEARCH_RESULTS_LIMIT_MIN <= limit <= RESEARCH_RESULTS_LIMIT_MAX
        ):
            raise ValidationError(RESULTS_LIMIT_MESSAGE)

    def transform(
        self, session: ResearchSessionData, options: ResearchSessionExportOptions
    ) -> PreparedSession:
        results = list(session.results)
        if options.results_limit is not None:
            results = results[: options.results_limit]
        if options.sort_by_relevance:
            results.sort(key=lambda r: r.relevance_score or 0.0, reverse=True)

        groups = None
        if options.group_by_source:
            groups = {}
            for result in results:
                groups.setdefault(result.source or RESEARCH_UNKNOWN_SOURCE, []).append(result)

        return PreparedSession(
            session=session,
            results=results,
            groups=groups,
            total_results=len(session.results),
        )

    async def export_research_session(
        self,
        session: Union[ResearchSessionData, Dict[str, Any]],
        options: Union[ResearchSessionExportOptions, Dict[str, Any]],
    ) -> ExportResult:
        started = time.perf_counter()
        fmt = format_label(options)
        try:
            session, options = self.parse(session, options)
            self.validate(session, options)
            prepared = self.transform(session, options)
            generator = self.generators[options.format](options)
            result = await asyncio.to_thread(generator.generate, prepared)
        except ValidationError as exc:
            logger.warning("Research session export rejected", error=exc.message)
            return _failure(exc.code, exc.message, exc.details, fmt, started)
        except ExportError as exc:
            logger.error("Research session export failed", error=exc.message, code=exc.code, format=fmt)
            return _failure(exc.code, exc.message, exc.details, fmt, started)
        except Exception as exc:
            logger.error("Research session export failed", error=str(exc), format=fmt)
            return _failure(
                "RESEARCH_SESSION_EXPORT_FAILED", str(exc), None, fmt, started
            )

        result.metadata.processing_time = (time.perf_counter() - started) * 1000
        result.metadata.extra.update(
            total_results=prepared.total_results,
            exported_results=prepared.exported_results,
            export_options=options.model_dump(mode="json"),
        )
        logger.info(
            "Research session exported",
            session_id=session.id,
            format=fmt,
            exported_results=prepared.exported_results,
            size=result.data.size,
        )
        return result


def _failure(code: str, message: str, details: Any, fmt: str, started: float) -> ExportResult:
    return ExportResult(
        success=False,
        error=ExportErrorInfo(code=code, message=message, details=details),
        metadata=ExportResultMetadata(
            format=fmt,
            generated_at=get_current_utc(),
            processing_time=(time.perf_counter() - started) * 1000,
        ),
    )
