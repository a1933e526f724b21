"""
Context menu dispatch: action registry, menu state machine and triggers.

The registry and controller are plain objects owned by an editor session;
nothing here is module-global. Menu state is either closed or open with a
position, a captured selection, the trigger that opened it and an optional
active category.
"""

import asyncio
import inspect
import threading
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional

import structlog

from core.config import (
    ENABLE_SELECTION_AUTO_TRIGGER,
    LONG_PRESS_SEC,
    SELECTION_DEBOUNCE_SEC,
    SELECTION_MIN_LENGTH,
)
from core.exceptions import MenuStateError
from models.context_menu import (
    ActionErrorKind,
    ActionOutcome,
    ContextMenuAction,
    ContextMenuCategory,
    MenuPosition,
    MenuState,
    SelectedText,
    TriggerType,
)
from services.editor_buffer import EditorBuffer

logger = structlog.get_logger(__name__)

StateListener = Callable[[MenuState], None]


class ActionRegistry:
    """Actions keyed by id; registering an existing id replaces it."""

    def __init__(self):
        self._actions: Dict[str, ContextMenuAction] = {}
        self._lock = threading.RLock()

    def register(self, action: ContextMenuAction) -> None:
        with self._lock:
            replaced = self._actions.pop(action.id, None) is not None
            self._actions[action.id] = action
        logger.debug("Context action registered", action_id=action.id, replaced=replaced)

    def unregister(self, action_id: str) -> bool:
        with self._lock:
            removed = self._actions.pop(action_id, None) is not None
        if removed:
            logger.debug("Context action unregistered", action_id=action_id)
        return removed

    def lookup(self, action_id: str) -> Optional[ContextMenuAction]:
        with self._lock:
            return self._actions.get(action_id)

    def actions(self) -> List[ContextMenuAction]:
        with self._lock:
            return list(self._actions.values())

    def by_category(self, category: ContextMenuCategory) -> List[ContextMenuAction]:
        return [a for a in self.actions() if a.category == category]

    def __contains__(self, action_id: object) -> bool:
        with self._lock:
            return action_id in self._actions

    def __len__(self) -> int:
        with self._lock:
            return len(self._actions)


class ContextMenuController:
    """Menu state machine plus action execution."""

    def __init__(self, registry: ActionRegistry):
        self.registry = registry
        self._state = MenuState()
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> MenuState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state.is_open

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_state(self, state: MenuState) -> None:
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    # --- transitions ---

    def show_menu(
        self,
        position: MenuPosition,
        selected_text: SelectedText,
        trigger_type: TriggerType,
    ) -> None:
        self._set_state(
            MenuState(
                is_open=True,
                position=position,
                selected_text=selected_text,
                trigger_type=trigger_type,
                active_category=None,
            )
        )
        logger.debug("Context menu opened", trigger=trigger_type.value, chars=len(selected_text.text))

    def hide_menu(self) -> None:
        self._set_state(MenuState())

    def set_active_category(self, category: Optional[ContextMenuCategory]) -> None:
        if not self._state.is_open:
            raise MenuStateError("Cannot change category while the menu is closed")
        self._set_state(replace(self._state, active_category=category))

    # --- execution ---

    async def execute_action(self, action_id: str) -> ActionOutcome:
        """Run an action against the captured selection and close the menu.

        Never raises for handler failures; the outcome says what happened.
        """
        action = self.registry.lookup(action_id)
        selected = self._state.selected_text
        try:
            if action is None:
                logger.warning("Unknown context action", action_id=action_id)
                return ActionOutcome.failure(
                    action_id, ActionErrorKind.UNKNOWN_ACTION, f"No action registered as '{action_id}'"
                )
            if selected is None:
                return ActionOutcome.failure(
                    action_id, ActionErrorKind.NO_SELECTION, "No text selected"
                )
            return await self._invoke(action, selected)
        finally:
            self.hide_menu()

    async def _invoke(self, action: ContextMenuAction, selected: SelectedText) -> ActionOutcome:
        try:
            returned = action.handler(selected)
            if inspect.isawaitable(returned):
                returned = await returned
        except Exception as exc:
            logger.error(
                "Context action failed",
                action_id=action.id,
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            return ActionOutcome.failure(action.id, ActionErrorKind.HANDLER_ERROR, str(exc))

        if isinstance(returned, ActionOutcome):
            if not returned.ok:
                logger.warning(
                    "Context action unsuccessful",
                    action_id=action.id,
                    kind=returned.error_kind.value if returned.error_kind else None,
                    error=returned.message,
                )
            return returned
        return ActionOutcome.success(action.id)


# --- Triggers ---


@dataclass(frozen=True)
class KeyEvent:
    key: str
    ctrl: bool = False
    shift: bool = False
    meta: bool = False
    alt: bool = False


def is_menu_shortcut(event: KeyEvent) -> bool:
    """Ctrl/Cmd+Space, Ctrl/Cmd+Shift+E or Ctrl/Cmd+Shift+M."""
    if not (event.ctrl or event.meta) or event.alt:
        return False
    key = event.key.lower()
    if key in (" ", "space") and not event.shift:
        return True
    return event.shift and key in ("e", "m")


class ContextMenuTriggers:
    """Turn editor input events into ``show_menu``/``hide_menu`` calls."""

    def __init__(
        self,
        controller: ContextMenuController,
        buffer: EditorBuffer,
        *,
        min_selection_length: int = SELECTION_MIN_LENGTH,
        debounce_sec: float = SELECTION_DEBOUNCE_SEC,
        long_press_sec: float = LONG_PRESS_SEC,
        auto_trigger: bool = ENABLE_SELECTION_AUTO_TRIGGER,
    ):
        self.controller = controller
        self.buffer = buffer
        self.min_selection_length = min_selection_length
        self.debounce_sec = debounce_sec
        self.long_press_sec = long_press_sec
        self.auto_trigger = auto_trigger
        self._selection_task: Optional[asyncio.Task] = None
        self._long_press_task: Optional[asyncio.Task] = None

    def on_context_menu(self, x: float, y: float) -> bool:
        """Right-click; returns True when the custom menu took the event."""
        selected = self.buffer.capture_selection()
        if selected is None:
            return False
        self.controller.show_menu(MenuPosition(x, y), selected, TriggerType.RIGHT_CLICK)
        return True

    def on_selection_change(self, x: float = 0, y: float = 0) -> None:
        _cancel(self._selection_task)
        self._selection_task = None
        if not self.auto_trigger:
            return
        text = self.buffer.selection_text()
        if len(text.strip()) < self.min_selection_length:
            return
        self._selection_task = asyncio.get_running_loop().create_task(
            self._confirm_selection(text, MenuPosition(x, y))
        )

    async def _confirm_selection(self, text: str, position: MenuPosition) -> None:
        await asyncio.sleep(self.debounce_sec)
        selected = self.buffer.capture_selection()
        # only fire when the selection held still for the whole window
        if selected is None or selected.text != text or self.controller.is_open:
            return
        self.controller.show_menu(position, selected, TriggerType.TEXT_SELECTION)

    def on_key_down(self, event: KeyEvent, x: float = 0, y: float = 0) -> bool:
        if event.key == "Escape":
            if self.controller.is_open:
                self.controller.hide_menu()
                return True
            return False
        if not is_menu_shortcut(event):
            return False
        selected = self.buffer.capture_selection()
        if selected is None:
            return False
        self.controller.show_menu(MenuPosition(x, y), selected, TriggerType.KEYBOARD)
        return True

    def on_touch_start(self, x: float, y: float) -> None:
        _cancel(self._long_press_task)
        self._long_press_task = asyncio.get_running_loop().create_task(
            self._long_press(MenuPosition(x, y))
        )

    async def _long_press(self, position: MenuPosition) -> None:
        await asyncio.sleep(self.long_press_sec)
        selected = self.buffer.capture_selection()
        if selected is not None:
            self.controller.show_menu(position, selected, TriggerType.LONG_PRESS)

    def on_touch_end(self) -> None:
        _cancel(self._long_press_task)
        self._long_press_task = None

    on_touch_move = on_touch_end

    def on_pointer_down_outside(self) -> None:
        if self.controller.is_open:
            self.controller.hide_menu()

    def dispose(self) -> None:
        _cancel(self._selection_task)
        _cancel(self._long_press_task)
        self._selection_task = None
        self._long_press_task = None


def _cancel(task: Optional[asyncio.Task]) -> None:
    if task is not None and not task.done():
        task.cancel()
