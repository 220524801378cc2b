"""Core data models for the app."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional


class SessionState(str, Enum):
    IDLE = "IDLE"
    RUNNING = "RUNNING"


class OverlayMode(str, Enum):
    HIDDEN = "HIDDEN"
    RESTING = "RESTING"
    TALKING = "TALKING"


class Modifier(str, Enum):
    CMD = "cmd"
    OPT = "opt"
    SHIFT = "shift"
    CTRL = "ctrl"


SHORTCUT_MODIFIERS: FrozenSet[Modifier] = frozenset(Modifier)


@dataclass
class Session:
    generation: int
    duration_minutes: float
    poll_interval_s: float
    work_instruction: str
    personality_prompt: str = ""
    state: SessionState = SessionState.IDLE
    start_time: float = 0.0
    end_time: float = 0.0
    duration_remaining: float = 0.0
    focused_count: int = 0
    distracted_count: int = 0


@dataclass
class SessionSummary:
    focused_count: int
    distracted_count: int
    elapsed_minutes: float

    def body(self) -> str:
        return (
            f"Focused: {self.focused_count}, Distracted: {self.distracted_count}, "
            f"Time: {int(self.elapsed_minutes)} min"
        )


@dataclass
class Frame:
    jpeg_bytes: bytes
    width: int = 0
    height: int = 0


@dataclass
class ClassifierResult:
    text: str = ""
    code: str = ""
    message: str = ""

    @property
    def ok(self) -> bool:
        return not self.code


@dataclass
class SpeechResult:
    audio: bytes = b""
    sample_rate: int = 22050
    code: str = ""
    message: str = ""

    @property
    def ok(self) -> bool:
        return not self.code and bool(self.audio)


@dataclass
class ClassificationVerdict:
    focused: bool
    raw_response_text: str
    distraction_message: Optional[str] = None
    error: str = ""

    @property
    def is_error(self) -> bool:
        return bool(self.error)


@dataclass(frozen=True)
class ShortcutBinding:
    modifiers: FrozenSet[Modifier]
    key_code: int
    bound_at: float = field(default_factory=time.time, compare=False)

    def matches(self, modifiers: FrozenSet[Modifier], key_code: int) -> bool:
        return self.modifiers == (modifiers & SHORTCUT_MODIFIERS) and self.key_code == key_code


DEFAULT_BINDING = ShortcutBinding(frozenset({Modifier.CMD, Modifier.OPT}), 9, bound_at=0.0)


@dataclass
class RecordingSession:
    deadline: float


@dataclass(frozen=True)
class Region:
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True)
class RegionFraction:
    """Placement relative to a screen, every field a fraction of its size."""

    x: float = 0.75
    y: float = 0.5
    width: float = 0.25
    height: float = 0.5

    def resolve(self, screen: Region) -> Region:
        return Region(
            x=screen.x + int(screen.width * self.x),
            y=screen.y + int(screen.height * self.y),
            width=int(screen.width * self.width),
            height=int(screen.height * self.height),
        )
