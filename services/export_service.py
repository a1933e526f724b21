"""
Document export facade (PDF, DOCX) and its HTTP routes

``DocumentExportService`` is the error boundary between the generators and
every caller: whatever happens inside a generator, callers receive a
well-formed ``ExportResult``.
"""

import asyncio
import time
from collections import Counter, deque
from typing import Any, Dict, List, Optional, Union

import structlog
from fastapi import APIRouter, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from core.config import EXPORT_STATS_RECENT_LIMIT, MIME_TYPES, SUPPORTED_FORMATS
from core.exceptions import ExportError, ValidationError
from models.export import (
    ExportErrorInfo,
    ExportFormat,
    ExportOptions,
    ExportResult,
    ExportResultMetadata,
    ProposalExportData,
    ProposalExportRequest,
    ResearchSessionData,
    ResearchSessionExportOptions,
    ResearchSessionExportRequest,
)
from services.docx_generator import DOCXGenerator
from services.pdf_generator import PDFGenerator
from services.research_session_export import (
    INVALID_FORMAT_MESSAGE,
    ResearchSessionExportService,
)
from utils.date_utils import get_current_utc
from utils.export_utils import build_export_filename, estimate_file_size, format_label

logger = structlog.get_logger(__name__)


class DocumentExportService:
    """Select a generator, validate options and normalise results."""

    def __init__(self, research_service: Optional[ResearchSessionExportService] = None):
        self.generators = {
            ExportFormat.PDF: PDFGenerator,
            ExportFormat.DOCX: DOCXGenerator,
        }
        self.research_service = research_service or ResearchSessionExportService()
        self._format_counts: Counter = Counter()
        self._outcomes: Counter = Counter()
        self._recent: deque = deque(maxlen=EXPORT_STATS_RECENT_LIMIT)

    # --- validation ---

    def parse(
        self,
        proposal: Union[ProposalExportData, Dict[str, Any]],
        options: Union[ExportOptions, Dict[str, Any]],
    ):
        if isinstance(options, dict):
            try:
                options = ExportOptions.model_validate(options)
            except PydanticValidationError as exc:
                if any(err["loc"][:1] == ("format",) for err in exc.errors()):
                    raise ValidationError(INVALID_FORMAT_MESSAGE) from exc
                raise ValidationError.from_pydantic(exc, "Invalid export options") from exc
        if isinstance(proposal, dict):
            try:
                proposal = ProposalExportData.model_validate(proposal)
            except PydanticValidationError as exc:
                raise ValidationError.from_pydantic(exc, "Invalid proposal data") from exc
        return proposal, options

    def validate(self, proposal: ProposalExportData, options: ExportOptions) -> None:
        if options.format not in self.generators:
            raise ValidationError(INVALID_FORMAT_MESSAGE)
        if not proposal.title or not proposal.title.strip():
            raise ValidationError("Proposal title is required")
        email = options.email_delivery
        if email is not None and email.enabled:
            if not email.recipients:
                raise ValidationError(
                    "Email recipients are required when email delivery is enabled"
                )
            invalid = [r for r in email.recipients if "@" not in r]
            if invalid:
                raise ValidationError("Invalid email recipients", details=invalid)

    # --- export ---

    async def export_document(
        self,
        proposal: Union[ProposalExportData, Dict[str, Any]],
        options: Union[ExportOptions, Dict[str, Any]],
    ) -> ExportResult:
        """Export a proposal; never raises."""
        started = time.perf_counter()
        fmt = format_label(options)
        try:
            proposal, options = self.parse(proposal, options)
            self.validate(proposal, options)
            estimated_size = estimate_file_size(_source_text(proposal), options.format.value)
            generator = self.generators[options.format](options)
            result = await asyncio.to_thread(generator.generate, proposal)
            result.metadata.extra["estimated_size"] = estimated_size
        except ExportError as exc:
            log = logger.warning if isinstance(exc, ValidationError) else logger.error
            log("Document export failed", format=fmt, code=exc.code, error=exc.message)
            result = self._failure(exc.code, exc.message, exc.details, fmt)
        except Exception as exc:
            code = f"{fmt.upper()}_GENERATION_FAILED" if fmt in SUPPORTED_FORMATS else "GENERATION_FAILED"
            logger.error(
                "Document export failed",
                format=fmt,
                code=code,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            result = self._failure(
                code,
                f"{fmt.upper()} generation failed: {exc}",
                {"cause_type": type(exc).__name__},
                fmt,
            )

        # the facade's stopwatch is the only timing callers see
        result.metadata.processing_time = (time.perf_counter() - started) * 1000
        self._record(result)
        if result.success:
            logger.info(
                "Document exported",
                format=result.metadata.format,
                filename=result.data.filename,
                size=result.data.size,
                processing_ms=round(result.metadata.processing_time, 1),
            )
        return result

    async def export_research_session(
        self,
        session: Union[ResearchSessionData, Dict[str, Any]],
        options: Union[ResearchSessionExportOptions, Dict[str, Any]],
    ) -> ExportResult:
        result = await self.research_service.export_research_session(session, options)
        self._record(result)
        return result

    # --- helpers ---

    def _failure(self, code: str, message: str, details: Any, fmt: str) -> ExportResult:
        return ExportResult(
            success=False,
            error=ExportErrorInfo(code=code, message=message, details=details),
            metadata=ExportResultMetadata(format=fmt, generated_at=get_current_utc()),
        )

    def _record(self, result: ExportResult) -> None:
        self._format_counts[result.metadata.format] += 1
        self._outcomes["successful" if result.success else "failed"] += 1
        self._recent.append(
            {
                "format": result.metadata.format,
                "success": result.success,
                "filename": result.data.filename if result.data else None,
                "size": result.data.size if result.data else 0,
                "error_code": result.error.code if result.error else None,
                "generated_at": result.metadata.generated_at.isoformat(),
                "processing_time": round(result.metadata.processing_time, 1),
            }
        )

    def get_export_stats(self) -> Dict[str, Any]:
        return {
            "total_exports": sum(self._format_counts.values()),
            "successful_exports": self._outcomes["successful"],
            "failed_exports": self._outcomes["failed"],
            "format_breakdown": {fmt: self._format_counts.get(fmt, 0) for fmt in SUPPORTED_FORMATS},
            "recent_exports": list(reversed(self._recent)),
        }

    def generate_filename(self, title: str, fmt: Union[ExportFormat, str]) -> str:
        return build_export_filename(title, ExportFormat(fmt).value)

    def get_mime_type(self, fmt: Union[ExportFormat, str]) -> str:
        return MIME_TYPES[ExportFormat(fmt).value]

    def get_supported_formats(self) -> List[str]:
        """Get list of supported export formats"""
        return [fmt.value for fmt in self.generators]


def _source_text(proposal: ProposalExportData) -> str:
    return proposal.content + "".join(section.content for section in proposal.sections)


# --- FastAPI Integration ---


def export_response(result: ExportResult) -> Response:
    """Turn an ExportResult into a download or a JSON error body."""
    if not result.success:
        status_code = 422 if result.error and result.error.code == "VALIDATION_ERROR" else 500
        return JSONResponse(
            status_code=status_code,
            content={
                "success": False,
                "error": result.error.model_dump(mode="json") if result.error else None,
                "metadata": result.metadata.model_dump(mode="json"),
            },
        )
    return Response(
        content=result.data.blob,
        media_type=result.data.content_type,
        headers={
            "Content-Disposition": f'attachment; filename="{result.data.filename}"',
            "X-Export-Format": result.metadata.format,
            "X-Export-Size": str(result.data.size),
            "X-Processing-Time": f"{result.metadata.processing_time:.1f}",
        },
    )


def create_export_router(export_service: DocumentExportService) -> APIRouter:
    """Create FastAPI router for export endpoints"""
    router = APIRouter(prefix="/export", tags=["export"])

    @router.post("/proposal")
    async def export_proposal(body: ProposalExportRequest):
        """Export a proposal as PDF or DOCX"""
        result = await export_service.export_document(body.proposal, body.options)
        return export_response(result)

    @router.post("/research-session")
    async def export_research_session(body: ResearchSessionExportRequest):
        """Export a research session as PDF or DOCX"""
        result = await export_service.export_research_session(body.session, body.options)
        return export_response(result)

    @router.get("/formats")
    async def get_export_formats():
        """Get supported export formats"""
        return {
            "formats": export_service.get_supported_formats(),
            "default": ExportFormat.PDF.value,
            "mime_types": MIME_TYPES,
        }

    @router.get("/stats")
    async def get_export_stats():
        return export_service.get_export_stats()

    return router
