"""Deterministic loop and collaborator fakes shared by the tests."""

from __future__ import annotations

import heapq
from typing import Callable, List, Optional, Tuple

from models import ClassifierResult, Frame, Region, RegionFraction, SpeechResult


class FakeHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeLoop:
    """Manual clock: nothing runs until ``advance`` or ``run_pending``."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start
        self._seq = 0
        self._timers: list = []

    def time(self) -> float:
        return self.now

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> FakeHandle:
        handle = FakeHandle()
        self._seq += 1
        heapq.heappush(self._timers, (self.now + delay_s, self._seq, handle, callback))
        return handle

    def call_soon_threadsafe(self, callback: Callable[[], None]) -> None:
        self.call_later(0, callback)

    def run_pending(self) -> None:
        self.advance(0)

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while self._timers and self._timers[0][0] <= target + 1e-9:
            when, _, handle, callback = heapq.heappop(self._timers)
            self.now = max(self.now, when)
            if not handle.cancelled:
                callback()
        self.now = target

    @property
    def pending(self) -> int:
        return sum(1 for t in self._timers if not t[2].cancelled)


class FakeRenderer:
    def __init__(self, screen: Region = Region(0, 0, 1600, 1000)) -> None:
        self.screen = screen
        self.shown: List[Tuple[str, Region]] = []
        self.hidden = 0
        self.unloadable: set = set()

    def show_asset(self, path: str, region: Region) -> bool:
        if path in self.unloadable:
            return False
        self.shown.append((path, region))
        return True

    def hide(self) -> None:
        self.hidden += 1

    def region_for(self, fraction: RegionFraction) -> Region:
        return fraction.resolve(self.screen)


class FakeNotifier:
    def __init__(self) -> None:
        self.messages: List[Tuple[str, str]] = []

    def notify(self, title: str, body: str) -> None:
        self.messages.append((title, body))


class FakeCapture:
    def __init__(self, miss: bool = False) -> None:
        self.frame: Optional[Frame] = None if miss else Frame(b"\xff\xd8jpeg", 10, 10)
        self.calls = 0

    def capture_frame(self) -> Optional[Frame]:
        self.calls += 1
        return self.frame


class FakeClassifier:
    """Holds every request until the test answers it."""

    def __init__(self) -> None:
        self.verdict_calls: List[Tuple[Frame, str, Callable[[ClassifierResult], None]]] = []
        self.reminder_calls: List[Tuple[str, Callable[[ClassifierResult], None]]] = []

    def classify(self, frame: Frame, prompt: str, on_result: Callable[[ClassifierResult], None]) -> None:
        self.verdict_calls.append((frame, prompt, on_result))

    def complete(self, prompt: str, on_result: Callable[[ClassifierResult], None]) -> None:
        self.reminder_calls.append((prompt, on_result))

    def answer_verdict(self, text: str = "", code: str = "", index: int = -1) -> None:
        self.verdict_calls[index][2](ClassifierResult(text=text, code=code))

    def answer_reminder(self, text: str = "", code: str = "", index: int = -1) -> None:
        self.reminder_calls[index][1](ClassifierResult(text=text, code=code))


class FakeSpeech:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, str, Callable[[SpeechResult], None]]] = []

    def synthesize(self, text: str, voice: str, on_result: Callable[[SpeechResult], None]) -> None:
        self.calls.append((text, voice, on_result))

    def succeed(self, index: int = -1) -> None:
        self.calls[index][2](SpeechResult(audio=b"\x00\x00" * 10))

    def fail(self, index: int = -1) -> None:
        self.calls[index][2](SpeechResult(code="NETWORK_ERROR", message="offline"))


class FakePlayer:
    def __init__(self) -> None:
        self.plays: List[Tuple[SpeechResult, Callable[[], None]]] = []
        self.stopped = 0

    def play(self, audio: SpeechResult, on_complete: Callable[[], None]) -> None:
        self.plays.append((audio, on_complete))

    def stop(self) -> None:
        self.stopped += 1

    def finish(self, index: int = -1) -> None:
        self.plays[index][1]()
