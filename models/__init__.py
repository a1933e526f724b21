"""
Models package for the CareDraft export API
"""

from models.export import (
    ExportFormat,
    ComplianceStatus,
    ExportQuality,
    ProposalSection,
    ProposalMetadata,
    ComplianceItem,
    ComplianceData,
    ProposalExportData,
    Margins,
    HeaderFooterOptions,
    ExportStyles,
    EmailDeliveryOptions,
    ExportOptions,
    ExportResultData,
    ExportErrorInfo,
    ExportResultMetadata,
    ExportResult,
    ResearchResult,
    ResearchSessionData,
    ResearchSessionExportOptions,
    ProposalExportRequest,
    ResearchSessionExportRequest,
)

from models.context_menu import (
    ContextMenuCategory,
    TriggerType,
    ActionErrorKind,
    MenuPosition,
    SelectedText,
    MenuState,
    ActionOutcome,
    ContextMenuAction,
)

from models.fact_check import (
    AISource,
    ConfidenceScore,
    CitationStyle,
    WordLimit,
    FactCheckSource,
    FactCheck,
    FactCheckRequest,
    FactCheckResponse,
    SourceAttributionRequest,
    SourceAttributionResponse,
)

__all__ = [
    # Export
    "ExportFormat",
    "ComplianceStatus",
    "ExportQuality",
    "ProposalSection",
    "ProposalMetadata",
    "ComplianceItem",
    "ComplianceData",
    "ProposalExportData",
    "Margins",
    "HeaderFooterOptions",
    "ExportStyles",
    "EmailDeliveryOptions",
    "ExportOptions",
    "ExportResultData",
    "ExportErrorInfo",
    "ExportResultMetadata",
    "ExportResult",
    "ResearchResult",
    "ResearchSessionData",
    "ResearchSessionExportOptions",
    "ProposalExportRequest",
    "ResearchSessionExportRequest",
    # Context menu
    "ContextMenuCategory",
    "TriggerType",
    "ActionErrorKind",
    "MenuPosition",
    "SelectedText",
    "MenuState",
    "ActionOutcome",
    "ContextMenuAction",
    # Fact-check
    "AISource",
    "ConfidenceScore",
    "CitationStyle",
    "WordLimit",
    "FactCheckSource",
    "FactCheck",
    "FactCheckRequest",
    "FactCheckResponse",
    "SourceAttributionRequest",
    "SourceAttributionResponse",
]
