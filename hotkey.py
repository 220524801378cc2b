"""Global key-chord listener based on pynput."""

from __future__ import annotations

import logging
import threading
from typing import Callable, FrozenSet, Optional, Set

from models import Modifier

try:
    from pynput import keyboard
except Exception:  # pragma: no cover
    keyboard = None  # type: ignore

logger = logging.getLogger(__name__)

KeyCallback = Callable[[FrozenSet[Modifier], int], None]

_MODIFIER_NAMES = {
    "cmd": Modifier.CMD,
    "cmd_l": Modifier.CMD,
    "cmd_r": Modifier.CMD,
    "alt": Modifier.OPT,
    "alt_l": Modifier.OPT,
    "alt_r": Modifier.OPT,
    "alt_gr": Modifier.OPT,
    "shift": Modifier.SHIFT,
    "shift_l": Modifier.SHIFT,
    "shift_r": Modifier.SHIFT,
    "ctrl": Modifier.CTRL,
    "ctrl_l": Modifier.CTRL,
    "ctrl_r": Modifier.CTRL,
}


def modifier_for(key: object) -> Optional[Modifier]:
    name = getattr(key, "name", None)
    if name is None:
        return None
    return _MODIFIER_NAMES.get(name)


def key_code_for(key: object) -> int:
    """Virtual key code of a pynput key, 0 when it has none."""
    vk = getattr(key, "vk", None)
    if vk is None:
        value = getattr(key, "value", None)
        vk = getattr(value, "vk", None)
    return int(vk) if vk is not None else 0


class GlobalKeyListener:
    """
    Observes key-downs system-wide and reports ``(modifiers, key_code)``.

    Callbacks fire on the pynput listener thread; the caller is expected to
    post them onto its own loop.
    """

    def __init__(self) -> None:
        self._listener: Optional[object] = None
        self._held: Set[Modifier] = set()
        self._lock = threading.Lock()

    def start(self, on_chord: KeyCallback) -> None:
        if keyboard is None:
            raise RuntimeError("pynput is not installed")

        def _on_press(key: object) -> None:
            modifier = modifier_for(key)
            with self._lock:
                if modifier is not None:
                    self._held.add(modifier)
                    return
                held = frozenset(self._held)
            on_chord(held, key_code_for(key))

        def _on_release(key: object) -> None:
            modifier = modifier_for(key)
            if modifier is None:
                return
            with self._lock:
                self._held.discard(modifier)

        self._listener = keyboard.Listener(on_press=_on_press, on_release=_on_release)
        self._listener.start()
        logger.info("Global key listener started")

    def stop(self) -> None:
        listener = self._listener
        if listener is not None:
            listener.stop()
            self._listener = None
        with self._lock:
            self._held.clear()
