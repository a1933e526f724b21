"""
Default AI context actions

Each action posts the selected text to ``/context-actions/{endpoint}`` and
splices the returned text over the selection. A failed call, an empty result
or a selection that changed while the request was in flight leaves the
editor text untouched and comes back as a failed ``ActionOutcome``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog

from core.config import CONTEXT_ACTIONS_PATH, DEFAULT_TRANSLATION_LANGUAGE
from core.exceptions import NetworkError, StaleSelectionError
from models.context_menu import (
    ActionErrorKind,
    ActionOutcome,
    ContextMenuAction,
    ContextMenuCategory,
    SelectedText,
)
from services.ai_client import AIServiceClient

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ContextActionSpec:
    id: str
    label: str
    category: ContextMenuCategory
    endpoint: str
    result_field: str
    description: str = ""
    icon: Optional[str] = None
    params: Dict[str, Any] = field(default_factory=dict)


DEFAULT_ACTION_SPECS: Tuple[ContextActionSpec, ...] = (
    # Evidencing
    ContextActionSpec(
        "expand", "Expand", ContextMenuCategory.EVIDENCING, "expand", "expandedText",
        "Add more detail and expand content", "expand",
        {"expandType": "detailed", "preserveTone": True, "targetLength": "moderate"},
    ),
    ContextActionSpec(
        "explain-how", "Explain How", ContextMenuCategory.EVIDENCING, "explain", "explanation",
        "Explain how this will be delivered", "help-circle",
        {"explanationType": "how", "includeSteps": True, "detail": "standard"},
    ),
    ContextActionSpec(
        "add-statistics", "Add Statistics", ContextMenuCategory.EVIDENCING, "statistics", "enhancedText",
        "Support the text with relevant statistics", "bar-chart",
        {"sector": "care", "sourcePreference": "government", "statisticType": "performance"},
    ),
    ContextActionSpec(
        "add-case-study", "Add Case Study", ContextMenuCategory.EVIDENCING, "case-study", "enhancedText",
        "Add a supporting case study", "file-text",
        {"sector": "care", "caseType": "success", "includeOutcomes": True},
    ),
    # Editing
    ContextActionSpec(
        "summarise", "Summarise", ContextMenuCategory.EDITING, "summarize", "summary",
        "Condense into a summary", "zap",
        {"length": "standard", "style": "paragraph", "preserveKeyPoints": True},
    ),
    ContextActionSpec(
        "improve-grammar", "Improve Grammar", ContextMenuCategory.EDITING, "grammar", "correctedText",
        "Fix grammar and style in UK English", "check-circle",
        {"level": "standard", "preserveStyle": True, "ukEnglish": True},
    ),
    ContextActionSpec(
        "change-tense", "Change Tense", ContextMenuCategory.EDITING, "tense-change", "convertedText",
        "Convert to a different tense", "refresh",
        {"targetTense": "present", "preserveMeaning": True, "maintainVoice": True},
    ),
    ContextActionSpec(
        "rephrase", "Rephrase", ContextMenuCategory.EDITING, "rephrase", "rephrasedText",
        "Say the same thing differently", "type",
        {"tone": "professional", "preserveMeaning": True, "targetLength": "same"},
    ),
    ContextActionSpec(
        "reduce-word-count", "Reduce Word Count", ContextMenuCategory.EDITING, "word-reduction", "reducedText",
        "Cut words without losing meaning", "scissors",
        {"reductionType": "word_count", "targetReduction": "moderate", "preservePriority": "meaning"},
    ),
    # Inputs
    ContextActionSpec(
        "we-will", "We Will", ContextMenuCategory.INPUTS, "we-will", "data.converted_text",
        "Convert to commitment language", "volume",
        {"commitment_level": "moderate", "include_timeline": False},
    ),
    ContextActionSpec(
        "translate", "Translate", ContextMenuCategory.INPUTS, "translate", "data.translated_text",
        "Translate to another language", "languages",
        {"target_language": DEFAULT_TRANSLATION_LANGUAGE, "preserve_formatting": True, "care_sector_context": True},
    ),
    # Custom
    ContextActionSpec(
        "caredraft-tone", "CareDraft Tone of Voice", ContextMenuCategory.CUSTOM, "tone-voice", "data.styled_text",
        "Apply the CareDraft brand tone", "volume",
        {"tone_style": "professional", "intensity": "moderate", "preserve_meaning": True},
    ),
    ContextActionSpec(
        "replace-banned-words", "Replace Banned Words", ContextMenuCategory.CUSTOM, "replace-words",
        "data.cleaned_text", "Remove inappropriate terms", "check-circle",
        {"replacement_style": "contextual", "care_sector_focus": True, "preserve_meaning": True},
    ),
    # Other
    ContextActionSpec(
        "pure-completion", "Pure Completion", ContextMenuCategory.OTHER, "pure-completion",
        "data.completed_text", "Complete the thought", "lightbulb",
        {"completion_length": "medium", "style_context": "proposal", "maintain_tone": True},
    ),
)


def extract_result(data: Dict[str, Any], path: str) -> Any:
    """Follow a dotted path through a JSON object; None when any hop is missing."""
    current: Any = data
    for key in path.split("."):
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


class ContextActionExecutor:
    """Run catalogue actions against an AI client."""

    def __init__(self, client: AIServiceClient):
        self.client = client

    async def run(self, spec: ContextActionSpec, selected: SelectedText) -> ActionOutcome:
        payload = {"text": selected.text, **spec.params}
        path = f"{CONTEXT_ACTIONS_PATH}/{spec.endpoint}"
        try:
            data = await self.client.post_json(path, payload)
        except NetworkError as exc:
            return ActionOutcome.failure(spec.id, ActionErrorKind.NETWORK, exc.message)

        if data.get("success") is False:
            message = data.get("error") or f"{spec.label} failed"
            return ActionOutcome.failure(spec.id, ActionErrorKind.NETWORK, str(message))

        result = extract_result(data, spec.result_field)
        if not isinstance(result, str) or not result.strip():
            return ActionOutcome.failure(
                spec.id, ActionErrorKind.EMPTY_RESULT, f"No {spec.result_field} in response"
            )

        try:
            selected.range.replace(result)
        except StaleSelectionError as exc:
            return ActionOutcome.failure(spec.id, ActionErrorKind.STALE_SELECTION, str(exc))

        logger.info("Context action applied", action_id=spec.id, chars_in=len(selected.text), chars_out=len(result))
        return ActionOutcome.success(spec.id, result_text=result)

    def build_action(self, spec: ContextActionSpec) -> ContextMenuAction:
        async def handler(selected: SelectedText) -> ActionOutcome:
            return await self.run(spec, selected)

        return ContextMenuAction(
            id=spec.id,
            label=spec.label,
            category=spec.category,
            handler=handler,
            icon=spec.icon,
            description=spec.description,
            metadata={"endpoint": spec.endpoint},
        )


def build_default_actions(
    executor: ContextActionExecutor,
    specs: Iterable[ContextActionSpec] = DEFAULT_ACTION_SPECS,
) -> List[ContextMenuAction]:
    return [executor.build_action(spec) for spec in specs]


def register_default_actions(registry, executor: ContextActionExecutor) -> List[str]:
    """Register the catalogue; returns the ids so the caller can unregister them."""
    actions = build_default_actions(executor)
    for action in actions:
        registry.register(action)
    return [a.id for a in actions]
