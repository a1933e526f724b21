"""
CareDraft services package public API.

Stable entrypoints are resolved lazily so that importing ``services`` does
not pull in reportlab or python-docx until a generator is actually used:

    from services import DocumentExportService, EditorSession

Add new high-value entrypoints to ``_EXPLICIT_EXPORTS``.
"""

from __future__ import annotations

from importlib import import_module
from typing import Dict, Tuple

_EXPLICIT_EXPORTS: Dict[str, Tuple[str, str]] = {
    # Export pipeline
    "DocumentExportService": ("export_service", "DocumentExportService"),
    "create_export_router": ("export_service", "create_export_router"),
    "PDFGenerator": ("pdf_generator", "PDFGenerator"),
    "DOCXGenerator": ("docx_generator", "DOCXGenerator"),
    "ResearchSessionExportService": ("research_session_export", "ResearchSessionExportService"),
    "build_document_plan": ("document_plan", "build_document_plan"),
    "parse_rich_text": ("document_model", "parse_rich_text"),

    # Context menu and fact-check
    "ActionRegistry": ("context_menu", "ActionRegistry"),
    "ContextMenuController": ("context_menu", "ContextMenuController"),
    "ContextMenuTriggers": ("context_menu", "ContextMenuTriggers"),
    "EditorBuffer": ("editor_buffer", "EditorBuffer"),
    "EditorSession": ("editor_session", "EditorSession"),
    "AIServiceClient": ("ai_client", "AIServiceClient"),
    "FactCheckOrchestrator": ("fact_check", "FactCheckOrchestrator"),
}

__all__ = sorted(_EXPLICIT_EXPORTS)


def __getattr__(name: str):
    try:
        module_name, attr = _EXPLICIT_EXPORTS[name]
    except KeyError:
        raise AttributeError(f"module 'services' has no attribute '{name}'") from None
    value = getattr(import_module(f"{__name__}.{module_name}"), attr)
    globals()[name] = value
    return value


def __dir__():
    return sorted(set(globals()) | set(_EXPLICIT_EXPORTS))
