"""
Export-related Pydantic models
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Optional, Dict, List, Any

from pydantic import AfterValidator, BaseModel, Field

from utils.export_utils import strip_xml_illegal


class ExportFormat(str, Enum):
    """Supported export formats"""

    PDF = "pdf"
    DOCX = "docx"


class ComplianceStatus(str, Enum):
    COMPLETE = "complete"
    INCOMPLETE = "incomplete"
    NOT_APPLICABLE = "not-applicable"


class ExportQuality(str, Enum):
    DRAFT = "draft"
    STANDARD = "standard"
    HIGH = "high"


# Text that reaches a document. Pasted Word text often carries \x0b and
# friends, which DOCX cannot store, so they are dropped on the way in.
DocText = Annotated[str, AfterValidator(strip_xml_illegal)]


# --- Proposal data ---


class ProposalSection(BaseModel):
    id: str = ""
    title: DocText
    content: DocText = ""
    order: int = 0


class ProposalMetadata(BaseModel):
    organization: Optional[DocText] = None
    author: Optional[DocText] = None
    created_at: Optional[DocText] = None
    last_modified: Optional[DocText] = None
    version: Optional[DocText] = None


class ComplianceItem(BaseModel):
    item: DocText
    status: ComplianceStatus = ComplianceStatus.INCOMPLETE
    notes: Optional[DocText] = None


class ComplianceData(BaseModel):
    checklist: List[ComplianceItem] = Field(default_factory=list)
    requirements: List[DocText] = Field(default_factory=list)


class ProposalExportData(BaseModel):
    """A proposal as exportable data; rendered by both generators."""

    id: str = ""
    title: DocText
    content: DocText = ""
    sections: List[ProposalSection] = Field(default_factory=list)
    metadata: ProposalMetadata = Field(default_factory=ProposalMetadata)
    compliance: Optional[ComplianceData] = None


# --- Options ---


class Margins(BaseModel):
    top: float = 20
    right: float = 20
    bottom: float = 20
    left: float = 20


class HeaderFooterOptions(BaseModel):
    include_header: bool = False
    include_footer: bool = True
    header_text: Optional[DocText] = None
    footer_text: Optional[DocText] = None


class ExportStyles(BaseModel):
    font_size: Optional[int] = None
    font_family: Optional[str] = None
    margins: Optional[Margins] = None
    header_footer: Optional[HeaderFooterOptions] = None


class EmailDeliveryOptions(BaseModel):
    enabled: bool = False
    recipients: List[str] = Field(default_factory=list)
    subject: Optional[str] = None
    message: Optional[str] = None


class ExportOptions(BaseModel):
    """Export configuration options.

    ``format`` selects the generator; everything else is a rendering hint a
    generator may ignore.
    """

    format: ExportFormat
    include_metadata: bool = True
    include_compliance: bool = True
    include_table_of_contents: bool = True
    page_numbers: bool = True
    watermark: Optional[DocText] = None
    quality: ExportQuality = ExportQuality.STANDARD
    custom_styles: Optional[ExportStyles] = None
    email_delivery: Optional[EmailDeliveryOptions] = None


# --- Results ---


class ExportResultData(BaseModel):
    blob: bytes
    filename: str
    size: int
    content_type: str


class ExportErrorInfo(BaseModel):
    code: str
    message: str
    details: Optional[Any] = None


class ExportResultMetadata(BaseModel):
    format: str
    generated_at: datetime
    processing_time: float = 0.0  # milliseconds
    page_count: Optional[int] = None
    extra: Dict[str, Any] = Field(default_factory=dict)


class ExportResult(BaseModel):
    """Outcome of an export; ``data`` is absent whenever ``success`` is False."""

    success: bool
    data: Optional[ExportResultData] = None
    error: Optional[ExportErrorInfo] = None
    metadata: ExportResultMetadata


# --- Research sessions ---


class ResearchResult(BaseModel):
    id: Optional[str] = None
    title: DocText
    url: DocText
    snippet: DocText = ""
    source: Optional[DocText] = None
    date: Optional[DocText] = None
    relevance_score: Optional[float] = None


class ResearchSessionData(BaseModel):
    id: str = ""
    title: DocText = ""
    query: DocText = ""
    results: List[ResearchResult] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    session_metadata: Dict[str, Any] = Field(default_factory=dict)
    organization_id: Optional[str] = None
    user_id: Optional[str] = None


class ResearchSessionExportOptions(BaseModel):
    format: ExportFormat
    include_query: bool = True
    include_metadata: bool = True
    include_results_metadata: bool = True
    results_limit: Optional[int] = None
    group_by_source: bool = False
    sort_by_relevance: bool = False


# --- HTTP request bodies ---


class ProposalExportRequest(BaseModel):
    proposal: ProposalExportData
    options: ExportOptions


class ResearchSessionExportRequest(BaseModel):
    session: ResearchSessionData
    options: ResearchSessionExportOptions
