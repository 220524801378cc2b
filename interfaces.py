"""Protocol interfaces used by the session engine."""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from models import ClassifierResult, Frame, Region, RegionFraction, SpeechResult


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class EventLoop(Protocol):
    """The owner loop; every state mutation runs inside one of its callbacks."""

    def time(self) -> float: ...

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle: ...

    def call_soon_threadsafe(self, callback: Callable[[], None]) -> None: ...


class ScreenCapture(Protocol):
    def capture_frame(self) -> Optional[Frame]: ...


class Classifier(Protocol):
    def classify(
        self, frame: Frame, prompt: str, on_result: Callable[[ClassifierResult], None]
    ) -> None: ...

    def complete(self, prompt: str, on_result: Callable[[ClassifierResult], None]) -> None: ...


class SpeechSynthesizer(Protocol):
    def synthesize(
        self, text: str, voice: str, on_result: Callable[[SpeechResult], None]
    ) -> None: ...


class AudioPlayer(Protocol):
    def play(self, audio: SpeechResult, on_complete: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...


class Notifier(Protocol):
    def notify(self, title: str, body: str) -> None: ...


class OverlayRenderer(Protocol):
    def show_asset(self, path: str, region: Region) -> bool:
        """Show the image at ``path`` over ``region``; False if it could not be loaded."""
        ...

    def hide(self) -> None: ...

    def region_for(self, fraction: RegionFraction) -> Region: ...


class KeySink(Protocol):
    def observe(self, modifiers: frozenset, key_code: int) -> bool: ...
