"""
Fact-check orchestration

Holds the user's fact-check preferences and the last verification result,
calls the verification endpoint and formats source citations locally.
"""

import hashlib
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Union

import structlog
from pydantic import ValidationError as PydanticValidationError

from core.config import (
    FACT_CHECK_DEFAULT_CITATION_STYLE,
    FACT_CHECK_DEFAULT_SOURCE,
    FACT_CHECK_DEFAULT_WORD_LIMIT,
    FACT_CHECK_SOURCES_PATH,
    FACT_CHECK_VERIFY_PATH,
)
from core.exceptions import FactCheckInProgressError, NetworkError
from models.context_menu import (
    ActionErrorKind,
    ActionOutcome,
    ContextMenuAction,
    ContextMenuCategory,
    SelectedText,
)
from models.fact_check import (
    AISource,
    CitationStyle,
    FactCheck,
    FactCheckRequest,
    FactCheckResponse,
    FactCheckSource,
    SourceAttributionRequest,
    SourceAttributionResponse,
    WordLimit,
)
from services.ai_client import AIServiceClient
from utils.date_utils import safe_parse_date

logger = structlog.get_logger(__name__)

FACT_CHECK_ACTION_ID = "fact-check"


def text_hash(text: str) -> str:
    """SHA-256 of the trimmed, lower-cased text; cache key for verifications."""
    return hashlib.sha256(text.strip().lower().encode("utf-8")).hexdigest()


def _apa(source: FactCheckSource) -> str:
    author = source.author or "Unknown Author"
    parsed = safe_parse_date(source.publication_date)
    year = parsed.year if parsed else "n.d."
    publisher = source.publisher or ""
    if source.url:
        return (
            f"{author} ({year}). {source.title}. {publisher}"
            f"{'. ' if publisher else ''}Retrieved from {source.url}"
        )
    return f"{author} ({year}). {source.title}." + (f" {publisher}." if publisher else "")


def _mla(source: FactCheckSource) -> str:
    # Chicago uses the same shape for web sources
    author = source.author or "Unknown Author"
    title = f'"{source.title}"'
    publisher = source.publisher or ""
    parsed = safe_parse_date(source.publication_date)
    date = parsed.strftime("%d/%m/%Y") if parsed else ""
    head = f"{author}. {title} {publisher}{', ' if publisher else ''}{date}"
    if source.url:
        return f"{head}{', ' if date else ''}{source.url}."
    return f"{head}."


_FORMATTERS = {
    CitationStyle.APA: _apa,
    CitationStyle.MLA: _mla,
    CitationStyle.CHICAGO: _mla,
}


def format_citation(source: FactCheckSource, style: Union[CitationStyle, str] = CitationStyle.APA) -> str:
    try:
        style = CitationStyle(style)
    except ValueError:
        style = CitationStyle.APA
    return _FORMATTERS[style](source)


@dataclass
class FactCheckState:
    is_loading: bool = False
    current_fact_check: Optional[FactCheck] = None
    active_sources: List[FactCheckSource] = field(default_factory=list)
    selected_ai_source: AISource = AISource(FACT_CHECK_DEFAULT_SOURCE)
    selected_word_limit: WordLimit = WordLimit(FACT_CHECK_DEFAULT_WORD_LIMIT)
    selected_citation_style: CitationStyle = CitationStyle(FACT_CHECK_DEFAULT_CITATION_STYLE)


class FactCheckOrchestrator:
    """One verification at a time per orchestrator; subscribers see every state change."""

    def __init__(self, client: AIServiceClient):
        self.client = client
        self.state = FactCheckState()
        self._listeners: List[Callable[[FactCheckState], None]] = []

    def subscribe(self, listener: Callable[[FactCheckState], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self.state)

    # --- preferences ---

    def update_ai_source(self, source: Union[AISource, str]) -> None:
        self.state.selected_ai_source = AISource(source)
        self._notify()

    def update_word_limit(self, limit: Union[WordLimit, int]) -> None:
        self.state.selected_word_limit = WordLimit(limit)
        self._notify()

    def update_citation_style(self, style: Union[CitationStyle, str]) -> None:
        self.state.selected_citation_style = CitationStyle(style)
        self._notify()

    def build_request(self, text: str) -> FactCheckRequest:
        return FactCheckRequest(
            text=text,
            ai_source=self.state.selected_ai_source,
            word_limit=self.state.selected_word_limit,
            citation_style=self.state.selected_citation_style,
        )

    # --- verification ---

    async def perform_fact_check(
        self, request: Union[FactCheckRequest, Dict[str, Any]]
    ) -> FactCheckResponse:
        """Verify a text excerpt.

        Raises ``FactCheckInProgressError`` while another verification is
        pending and ``NetworkError`` when the endpoint fails; the previous
        result is kept in either case.
        """
        if isinstance(request, dict):
            request = FactCheckRequest.model_validate(request)
        if self.state.is_loading:
            raise FactCheckInProgressError("A fact check is already in progress")

        self.state.is_loading = True
        self._notify()
        try:
            data = await self.client.post_json(
                FACT_CHECK_VERIFY_PATH,
                request.model_dump(mode="json", exclude_none=True),
                fallback_message="Fact check failed",
            )
            try:
                response = FactCheckResponse.model_validate(data)
            except PydanticValidationError as exc:
                raise NetworkError("Invalid fact check response") from exc
            self.state.current_fact_check = response.fact_check
            self.state.active_sources = list(response.sources)
            logger.info(
                "Fact check completed",
                fact_check_id=response.fact_check.id,
                confidence=response.fact_check.confidence_score.value,
                sources=len(response.sources),
                cached=response.is_cached,
            )
            return response
        except NetworkError as exc:
            logger.error("Fact check error", error=exc.message, status=exc.status_code)
            raise
        finally:
            self.state.is_loading = False
            self._notify()

    def clear_fact_check(self) -> None:
        self.state.current_fact_check = None
        self.state.active_sources = []
        self._notify()

    async def get_source_attribution(
        self,
        fact_check_id: str,
        citation_style: Optional[Union[CitationStyle, str]] = None,
        include_excerpts: bool = False,
    ) -> SourceAttributionResponse:
        request = SourceAttributionRequest(
            fact_check_id=fact_check_id,
            citation_style=citation_style or self.state.selected_citation_style,
            include_excerpts=include_excerpts,
        )
        data = await self.client.post_json(
            FACT_CHECK_SOURCES_PATH,
            request.model_dump(mode="json"),
            fallback_message="Source attribution failed",
        )
        try:
            response = SourceAttributionResponse.model_validate(data)
        except PydanticValidationError as exc:
            raise NetworkError("Invalid source attribution response") from exc
        if not response.formatted_citations and response.sources:
            response.formatted_citations = [
                format_citation(source, request.citation_style) for source in response.sources
            ]
        return response

    # --- context menu integration ---

    def as_action(self) -> ContextMenuAction:
        async def handler(selected: SelectedText) -> ActionOutcome:
            try:
                response = await self.perform_fact_check(self.build_request(selected.text))
            except FactCheckInProgressError as exc:
                return ActionOutcome.failure(FACT_CHECK_ACTION_ID, ActionErrorKind.BUSY, str(exc))
            except NetworkError as exc:
                return ActionOutcome.failure(FACT_CHECK_ACTION_ID, ActionErrorKind.NETWORK, exc.message)
            return ActionOutcome.success(FACT_CHECK_ACTION_ID, payload=response)

        return ContextMenuAction(
            id=FACT_CHECK_ACTION_ID,
            label="Fact Check",
            category=ContextMenuCategory.EVIDENCING,
            handler=handler,
            icon="shield-check",
            description="Verify claims and find supporting sources",
        )
