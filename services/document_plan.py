"""
Document plan shared by the PDF and DOCX generators.

Decides what goes on which part of the document (executive summary, body
sections in order, fallback content) so both formats render the same
structure from one place.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from models.export import ComplianceData, ProposalExportData, ProposalMetadata
from services.document_model import Block, parse_rich_text
from utils.export_utils import extract_text_content

EXECUTIVE_SUMMARY_MARKERS = ("executive summary", "summary", "overview")
EXECUTIVE_SUMMARY_TITLE = "Executive Summary"
FALLBACK_SECTION_TITLE = "Proposal Content"


@dataclass
class PlannedSection:
    title: str
    blocks: List[Block] = field(default_factory=list)


@dataclass
class DocumentPlan:
    title: str
    metadata: ProposalMetadata
    executive_summary: Optional[PlannedSection] = None
    sections: List[PlannedSection] = field(default_factory=list)
    compliance: Optional[ComplianceData] = None

    @property
    def has_compliance(self) -> bool:
        return bool(
            self.compliance
            and (self.compliance.checklist or self.compliance.requirements)
        )


def is_executive_summary(content: str) -> bool:
    text = extract_text_content(content).lower()
    return any(marker in text for marker in EXECUTIVE_SUMMARY_MARKERS)


def build_document_plan(proposal: ProposalExportData) -> DocumentPlan:
    # sorted() is stable, so equal orders keep their input sequence
    ordered = sorted(proposal.sections, key=lambda s: s.order)
    content = proposal.content or ""

    summary: Optional[PlannedSection] = None
    if content.strip() and is_executive_summary(content):
        summary = PlannedSection(EXECUTIVE_SUMMARY_TITLE, parse_rich_text(content))
        # the content already is the summary; an "Executive ..." section would repeat it
        ordered = [s for s in ordered if "executive" not in s.title.lower()]
    else:
        promoted = next(
            (s for s in ordered if "executive" in s.title.lower()), None
        )
        if promoted is not None:
            summary = PlannedSection(promoted.title, parse_rich_text(promoted.content))
            ordered = [s for s in ordered if s is not promoted]

    body = [PlannedSection(s.title, parse_rich_text(s.content)) for s in ordered]
    if not proposal.sections and content.strip() and summary is None:
        body = [PlannedSection(FALLBACK_SECTION_TITLE, parse_rich_text(content))]

    return DocumentPlan(
        title=proposal.title,
        metadata=proposal.metadata,
        executive_summary=summary,
        sections=body,
        compliance=proposal.compliance,
    )
