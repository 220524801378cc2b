"""Toggle-shortcut recording and matching."""

from __future__ import annotations

import logging
from typing import Callable, FrozenSet, Optional

from errors import AlreadyRecording
from interfaces import EventLoop, TimerHandle
from models import (
    DEFAULT_BINDING,
    SHORTCUT_MODIFIERS,
    Modifier,
    RecordingSession,
    ShortcutBinding,
)

logger = logging.getLogger(__name__)

RECORDING_TIMEOUT_S = 5.0
JUST_RECORDED_GUARD_S = 0.1

# macOS virtual key codes
KEY_NAMES = {
    0: "A", 1: "S", 2: "D", 3: "F", 4: "H", 5: "G", 6: "Z", 7: "X", 8: "C", 9: "V",
    11: "B", 12: "Q", 13: "W", 14: "E", 15: "R", 16: "Y", 17: "T", 18: "1", 19: "2",
    20: "3", 21: "4", 22: "6", 23: "5", 24: "=", 25: "9", 26: "7", 27: "-", 28: "8",
    29: "0", 30: "]", 31: "O", 32: "U", 33: "[", 34: "I", 35: "P", 36: "Return", 37: "L",
    38: "J", 39: "'", 40: "K", 41: ";", 42: "\\", 43: ",", 44: "/", 45: "N", 46: "M",
    47: ".", 48: "Tab", 49: "Space", 50: "`", 51: "Delete", 53: "Escape",
}

MODIFIER_SYMBOLS = [
    (Modifier.CMD, "⌘"),
    (Modifier.OPT, "⌥"),
    (Modifier.SHIFT, "⇧"),
    (Modifier.CTRL, "⌃"),
]

_CMD = frozenset({Modifier.CMD})
_CMD_SHIFT = frozenset({Modifier.CMD, Modifier.SHIFT})

KNOWN_CONFLICTS = {
    (_CMD, 36): "⌘Return - Open selected item",
    (_CMD, 12): "⌘Q - Quit application",
    (_CMD, 13): "⌘W - Close window",
    (_CMD, 31): "⌘O - Open file",
    (_CMD, 1): "⌘S - Save file",
    (_CMD, 6): "⌘Z - Undo",
    (_CMD, 8): "⌘C - Copy",
    (_CMD, 9): "⌘V - Paste",
    (_CMD_SHIFT, 4): "⌘⇧H - Hide others",
    (_CMD_SHIFT, 6): "⌘⇧Z - Redo",
    (_CMD, 48): "⌘Tab - Switch applications",
    (_CMD, 49): "⌘Space - Spotlight search",
}


def key_name(key_code: int) -> str:
    return KEY_NAMES.get(key_code, f"Key {key_code}")


def display_string(binding: ShortcutBinding) -> str:
    symbols = "".join(s for m, s in MODIFIER_SYMBOLS if m in binding.modifiers)
    return f"{symbols}{key_name(binding.key_code)}"


def conflict_for(binding: ShortcutBinding) -> Optional[str]:
    """Return a warning if ``binding`` shadows a well-known system shortcut."""
    return KNOWN_CONFLICTS.get((frozenset(binding.modifiers), binding.key_code))


class ShortcutMatcher:
    def __init__(
        self,
        loop: EventLoop,
        on_toggle: Callable[[], None],
        binding: Optional[ShortcutBinding] = None,
        on_binding_changed: Optional[Callable[[ShortcutBinding], None]] = None,
        on_recording_change: Optional[Callable[[bool], None]] = None,
    ) -> None:
        self._loop = loop
        self._on_toggle = on_toggle
        self._on_binding_changed = on_binding_changed
        self._on_recording_change = on_recording_change
        self._binding = binding or DEFAULT_BINDING
        self._recording: Optional[RecordingSession] = None
        self._deadline_timer: Optional[TimerHandle] = None
        self._guard_timer: Optional[TimerHandle] = None

    @property
    def binding(self) -> ShortcutBinding:
        return self._binding

    @property
    def recording(self) -> bool:
        return self._recording is not None

    @property
    def just_recorded(self) -> bool:
        return self._guard_timer is not None

    def begin_recording(self) -> None:
        if self._recording is not None:
            raise AlreadyRecording()
        self._recording = RecordingSession(deadline=self._loop.time() + RECORDING_TIMEOUT_S)
        self._deadline_timer = self._loop.call_later(RECORDING_TIMEOUT_S, self._on_deadline)
        logger.info("Waiting for a new toggle shortcut")
        self._emit_recording(True)

    def cancel_recording(self) -> None:
        if self._recording is None:
            return
        self._end_recording()

    def on_key_event(self, modifiers: FrozenSet[Modifier], key_code: int, consumable: bool) -> bool:
        """Handle one key-down; the return value says whether the event was consumed."""
        chord = frozenset(modifiers) & SHORTCUT_MODIFIERS
        if self._recording is not None:
            if chord and key_code != 0:
                self._record(ShortcutBinding(chord, key_code, bound_at=self._loop.time()))
            return True

        if self._guard_timer is not None:
            return False
        if not self._binding.matches(chord, key_code):
            return False
        logger.debug(f"Toggle shortcut {display_string(self._binding)} pressed")
        self._on_toggle()
        return consumable

    def _record(self, binding: ShortcutBinding) -> None:
        self._binding = binding
        self._end_recording()
        self._guard_timer = self._loop.call_later(JUST_RECORDED_GUARD_S, self._clear_guard)
        warning = conflict_for(binding)
        if warning:
            logger.warning(f"Shortcut {display_string(binding)} may conflict with {warning}")
        logger.info(f"Toggle shortcut set to {display_string(binding)}")
        if self._on_binding_changed:
            self._on_binding_changed(binding)

    def _on_deadline(self) -> None:
        self._deadline_timer = None
        if self._recording is None:
            return
        logger.info("Shortcut recording timed out")
        self._end_recording()

    def _end_recording(self) -> None:
        if self._deadline_timer is not None:
            self._deadline_timer.cancel()
            self._deadline_timer = None
        self._recording = None
        self._emit_recording(False)

    def _clear_guard(self) -> None:
        self._guard_timer = None

    def _emit_recording(self, active: bool) -> None:
        if self._on_recording_change:
            self._on_recording_change(active)


class ConsumingKeySink:
    """Key stream scoped to the app's own windows; matched events are swallowed."""

    def __init__(self, matcher: ShortcutMatcher) -> None:
        self._matcher = matcher

    def observe(self, modifiers: FrozenSet[Modifier], key_code: int) -> bool:
        return self._matcher.on_key_event(modifiers, key_code, consumable=True)


class ObservingKeySink:
    """
    System-wide key stream; it can see events but never suppress them.

    ``suppressed`` reports when another stream already delivers the same
    keystrokes (one of our own windows has keyboard focus); events seen
    during that time are skipped so a chord never toggles twice.
    """

    def __init__(self, matcher: ShortcutMatcher, suppressed: Optional[Callable[[], bool]] = None) -> None:
        self._matcher = matcher
        self._suppressed = suppressed

    def observe(self, modifiers: FrozenSet[Modifier], key_code: int) -> bool:
        if self._suppressed is not None and self._suppressed():
            return False
        self._matcher.on_key_event(modifiers, key_code, consumable=False)
        return False
