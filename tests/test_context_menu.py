"""Context menu registry, controller, triggers and the editor buffer."""

import asyncio

import pytest

from core.exceptions import MenuStateError, StaleSelectionError
from models.context_menu import (
    ActionErrorKind,
    ActionOutcome,
    ContextMenuAction,
    ContextMenuCategory,
    MenuPosition,
    TriggerType,
)
from services.context_menu import (
    ActionRegistry,
    ContextMenuController,
    ContextMenuTriggers,
    KeyEvent,
    is_menu_shortcut,
)
from services.editor_buffer import EditorBuffer

TEXT = "Residents receive daily visits from trained carers."


def _action(action_id, handler, category=ContextMenuCategory.EDITING):
    return ContextMenuAction(id=action_id, label=action_id.title(), category=category, handler=handler)


@pytest.fixture
def buffer():
    buf = EditorBuffer(TEXT)
    buf.select(0, 9)  # "Residents"
    return buf


@pytest.fixture
def registry():
    return ActionRegistry()


@pytest.fixture
def controller(registry):
    return ContextMenuController(registry)


def _open(controller, buffer, trigger=TriggerType.RIGHT_CLICK):
    controller.show_menu(MenuPosition(10, 20), buffer.capture_selection(), trigger)


# --- registry ---


def test_registering_same_id_replaces(registry):
    registry.register(_action("expand", lambda s: "first"))
    second = _action("expand", lambda s: "second")
    registry.register(second)

    assert len(registry) == 1
    assert registry.lookup("expand") is second
    assert registry.lookup("expand").handler(None) == "second"


def test_registry_queries(registry):
    registry.register(_action("expand", lambda s: None))
    registry.register(_action("fact-check", lambda s: None, ContextMenuCategory.EVIDENCING))

    assert "expand" in registry
    assert [a.id for a in registry.by_category(ContextMenuCategory.EVIDENCING)] == ["fact-check"]
    assert registry.unregister("expand") is True
    assert registry.unregister("expand") is False
    assert registry.lookup("expand") is None


# --- controller ---


@pytest.mark.asyncio
async def test_throwing_handler_still_closes_menu(registry, controller, buffer):
    def _boom(selected):
        raise RuntimeError("handler blew up")

    registry.register(_action("explode", _boom))
    _open(controller, buffer)

    outcome = await controller.execute_action("explode")

    assert controller.is_open is False
    assert outcome.ok is False
    assert outcome.error_kind == ActionErrorKind.HANDLER_ERROR
    assert outcome.message == "handler blew up"


@pytest.mark.asyncio
async def test_async_handler_receives_selection(registry, controller, buffer):
    seen = []

    async def _handler(selected):
        seen.append(selected.text)
        return ActionOutcome.success("capture", result_text="done")

    registry.register(_action("capture", _handler))
    _open(controller, buffer)

    outcome = await controller.execute_action("capture")

    assert seen == ["Residents"]
    assert outcome.ok and outcome.result_text == "done"
    assert not controller.is_open


@pytest.mark.asyncio
async def test_sync_handler_returning_none_is_success(registry, controller, buffer):
    registry.register(_action("noop", lambda s: None))
    _open(controller, buffer)

    outcome = await controller.execute_action("noop")

    assert outcome == ActionOutcome.success("noop")


@pytest.mark.asyncio
async def test_unknown_action(controller, buffer):
    _open(controller, buffer)

    outcome = await controller.execute_action("missing")

    assert outcome.error_kind == ActionErrorKind.UNKNOWN_ACTION
    assert not controller.is_open


@pytest.mark.asyncio
async def test_no_selection(registry, controller):
    calls = []
    registry.register(_action("expand", calls.append))

    outcome = await controller.execute_action("expand")

    assert outcome.error_kind == ActionErrorKind.NO_SELECTION
    assert calls == []


def test_category_requires_open_menu(controller, buffer):
    with pytest.raises(MenuStateError):
        controller.set_active_category(ContextMenuCategory.EDITING)

    _open(controller, buffer)
    controller.set_active_category(ContextMenuCategory.EDITING)
    assert controller.state.active_category == ContextMenuCategory.EDITING
    assert controller.state.position == MenuPosition(10, 20)


def test_subscribers_see_transitions(controller, buffer):
    states = []
    unsubscribe = controller.subscribe(states.append)

    _open(controller, buffer, TriggerType.KEYBOARD)
    controller.hide_menu()
    unsubscribe()
    _open(controller, buffer)

    assert [s.is_open for s in states] == [True, False]
    assert states[0].trigger_type == TriggerType.KEYBOARD
    assert states[0].selected_text.text == "Residents"


# --- triggers ---


@pytest.mark.parametrize(
    "event, expected",
    [
        (KeyEvent(" ", ctrl=True), True),
        (KeyEvent(" ", meta=True), True),
        (KeyEvent("E", ctrl=True, shift=True), True),
        (KeyEvent("m", meta=True, shift=True), True),
        (KeyEvent(" ", ctrl=True, shift=True), False),
        (KeyEvent("e", ctrl=True), False),
        (KeyEvent(" ", ctrl=True, alt=True), False),
        (KeyEvent(" "), False),
    ],
)
def test_menu_shortcuts(event, expected):
    assert is_menu_shortcut(event) is expected


def test_right_click_needs_a_selection(controller, buffer):
    triggers = ContextMenuTriggers(controller, buffer)
    assert triggers.on_context_menu(5, 6) is True
    assert controller.state.trigger_type == TriggerType.RIGHT_CLICK

    controller.hide_menu()
    buffer.clear_selection()
    assert triggers.on_context_menu(5, 6) is False
    assert not controller.is_open


def test_keyboard_open_and_escape(controller, buffer):
    triggers = ContextMenuTriggers(controller, buffer)

    assert triggers.on_key_down(KeyEvent(" ", ctrl=True)) is True
    assert controller.state.trigger_type == TriggerType.KEYBOARD
    assert triggers.on_key_down(KeyEvent("Escape")) is True
    assert not controller.is_open
    assert triggers.on_key_down(KeyEvent("Escape")) is False


def test_pointer_outside_closes(controller, buffer):
    triggers = ContextMenuTriggers(controller, buffer)
    triggers.on_context_menu(1, 1)
    triggers.on_pointer_down_outside()
    assert not controller.is_open


@pytest.mark.asyncio
async def test_selection_opens_after_debounce(controller, buffer):
    triggers = ContextMenuTriggers(controller, buffer, debounce_sec=0.01)

    triggers.on_selection_change(3, 4)
    assert not controller.is_open
    await asyncio.sleep(0.05)

    assert controller.is_open
    assert controller.state.trigger_type == TriggerType.TEXT_SELECTION
    assert controller.state.position == MenuPosition(3, 4)


@pytest.mark.asyncio
async def test_changed_selection_does_not_open(controller, buffer):
    triggers = ContextMenuTriggers(controller, buffer, debounce_sec=0.02)

    triggers.on_selection_change()
    buffer.select(0, 17)  # selection moved without a new change event
    await asyncio.sleep(0.06)

    assert not controller.is_open


@pytest.mark.asyncio
async def test_short_selection_and_disabled_auto_trigger(controller, buffer):
    buffer.select(0, 3)
    triggers = ContextMenuTriggers(controller, buffer, debounce_sec=0.01)
    triggers.on_selection_change()

    buffer.select(0, 9)
    quiet = ContextMenuTriggers(controller, buffer, debounce_sec=0.01, auto_trigger=False)
    quiet.on_selection_change()
    await asyncio.sleep(0.04)

    assert not controller.is_open


@pytest.mark.asyncio
async def test_new_selection_event_restarts_debounce(controller, buffer):
    triggers = ContextMenuTriggers(controller, buffer, debounce_sec=0.03)

    triggers.on_selection_change()
    await asyncio.sleep(0.01)
    buffer.select(10, 24)
    triggers.on_selection_change()
    await asyncio.sleep(0.08)

    assert controller.state.selected_text.text == TEXT[10:24]
    triggers.dispose()


@pytest.mark.asyncio
async def test_long_press(controller, buffer):
    triggers = ContextMenuTriggers(controller, buffer, long_press_sec=0.01)

    triggers.on_touch_start(7, 8)
    await asyncio.sleep(0.05)

    assert controller.state.trigger_type == TriggerType.LONG_PRESS


@pytest.mark.asyncio
async def test_touch_move_cancels_long_press(controller, buffer):
    triggers = ContextMenuTriggers(controller, buffer, long_press_sec=0.02)

    triggers.on_touch_start(7, 8)
    triggers.on_touch_move()
    await asyncio.sleep(0.05)

    assert not controller.is_open


# --- buffer ---


def test_capture_and_replace(buffer):
    selected = buffer.capture_selection()
    assert selected.text == "Residents"

    new_range = selected.range.replace("Older residents")

    assert buffer.text.startswith("Older residents receive")
    assert new_range.text == "Older residents"
    assert buffer.selection_text() == "Older residents"
    assert not selected.range.is_live()


def test_stale_range_refuses_write(buffer):
    selected = buffer.capture_selection()
    buffer.insert(0, "All ")

    with pytest.raises(StaleSelectionError):
        selected.range.replace("Patients")
    assert buffer.text == "All " + TEXT


def test_ranges_follow_edits_outside_the_span(buffer):
    buffer.select(10, 17)
    selected = buffer.capture_selection()
    assert selected.text == "receive"

    buffer.splice(0, 9, "All residents")  # before: shifts by +4
    buffer.insert(len(buffer.text), " Daily.")  # after: no effect

    assert selected.range.resolve() == (14, 21)
    assert selected.range.text == "receive"
    selected.range.replace("get")
    assert buffer.text.startswith("All residents get ")


def test_edit_touching_the_span_makes_it_stale(buffer):
    buffer.select(10, 17)
    selected = buffer.capture_selection()
    buffer.splice(8, 12, "s r")

    assert not selected.range.is_live()
    assert selected.range.text == ""


def test_set_text_invalidates_every_range(buffer):
    selected = buffer.capture_selection()
    buffer.set_text(TEXT)
    assert not selected.range.is_live()


def test_selection_changes_keep_ranges_live(buffer):
    selected = buffer.capture_selection()
    buffer.select(10, 17)
    assert selected.range.is_live()


def test_blank_or_invalid_selection(buffer):
    buffer.select(9, 10)  # a single space
    assert buffer.capture_selection() is None
    buffer.select(9, 0)
    assert buffer.selection == (0, 9)
    with pytest.raises(ValueError):
        buffer.select(0, len(TEXT) + 1)


def test_action_description(registry):
    registry.register(
        ContextMenuAction(
            id="expand",
            label="Expand",
            category=ContextMenuCategory.EVIDENCING,
            handler=lambda s: None,
            shortcut="Ctrl+Shift+E",
        )
    )
    assert registry.lookup("expand").describe() == {
        "id": "expand",
        "label": "Expand",
        "category": "EVIDENCING",
        "icon": None,
        "description": None,
        "shortcut": "Ctrl+Shift+E",
    }
