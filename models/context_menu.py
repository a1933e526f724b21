"""
Context menu models: actions, menu state and action outcomes
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from services.editor_buffer import TextRange


class ContextMenuCategory(str, Enum):
    EVIDENCING = "EVIDENCING"
    EDITING = "EDITING"
    INPUTS = "INPUTS"
    CUSTOM = "CUSTOM"
    OTHER = "OTHER"


class TriggerType(str, Enum):
    RIGHT_CLICK = "right-click"
    TEXT_SELECTION = "text-selection"
    KEYBOARD = "keyboard"
    LONG_PRESS = "long-press"


class ActionErrorKind(str, Enum):
    UNKNOWN_ACTION = "unknown_action"
    NO_SELECTION = "no_selection"
    NETWORK = "network"
    EMPTY_RESULT = "empty_result"
    STALE_SELECTION = "stale_selection"
    HANDLER_ERROR = "handler_error"
    BUSY = "busy"


@dataclass(frozen=True)
class MenuPosition:
    x: float
    y: float


@dataclass(frozen=True)
class SelectedText:
    """Selection captured when a menu opened.

    ``range`` points into the editor buffer at capture time and refuses to
    be written once the buffer has moved on.
    """

    text: str
    range: "TextRange"


@dataclass(frozen=True)
class MenuState:
    is_open: bool = False
    position: Optional[MenuPosition] = None
    selected_text: Optional[SelectedText] = None
    trigger_type: Optional[TriggerType] = None
    active_category: Optional[ContextMenuCategory] = None


@dataclass(frozen=True)
class ActionOutcome:
    """Typed result of running one action."""

    action_id: str
    ok: bool
    error_kind: Optional[ActionErrorKind] = None
    message: Optional[str] = None
    result_text: Optional[str] = None
    payload: Any = None

    @classmethod
    def success(cls, action_id: str, result_text: Optional[str] = None, payload: Any = None) -> "ActionOutcome":
        return cls(action_id=action_id, ok=True, result_text=result_text, payload=payload)

    @classmethod
    def failure(cls, action_id: str, kind: ActionErrorKind, message: str) -> "ActionOutcome":
        return cls(action_id=action_id, ok=False, error_kind=kind, message=message)


ActionHandler = Callable[
    [SelectedText],
    Union[None, ActionOutcome, Awaitable[Union[None, ActionOutcome]]],
]


@dataclass
class ContextMenuAction:
    id: str
    label: str
    category: ContextMenuCategory
    handler: ActionHandler
    icon: Optional[str] = None
    description: Optional[str] = None
    shortcut: Optional[str] = None
    metadata: dict = field(default_factory=dict)

    def describe(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "category": self.category.value,
            "icon": self.icon,
            "description": self.description,
            "shortcut": self.shortcut,
        }
