"""State-machine based focus session orchestration."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from classification import ClassificationPipeline
from config import SUMMARY_TITLE, AppSettings
from errors import CAPTURE_MISS, AlreadyRunning, InvalidConfig
from feedback import FeedbackDispatcher
from interfaces import EventLoop, Notifier, ScreenCapture, TimerHandle
from models import ClassificationVerdict, Session, SessionState, SessionSummary
from overlay_state import OverlayState
from polling import DoneCallback, PollingScheduler

logger = logging.getLogger(__name__)

COUNTDOWN_TICK_S = 1.0

StateCallback = Callable[[SessionState, SessionState], None]
TickCallback = Callable[[float], None]
CountsCallback = Callable[[int, int], None]
SummaryCallback = Callable[[SessionSummary], None]


def format_time(seconds: float) -> str:
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


class SessionController:
    def __init__(
        self,
        loop: EventLoop,
        capture: ScreenCapture,
        pipeline: ClassificationPipeline,
        feedback: FeedbackDispatcher,
        overlay: OverlayState,
        notifier: Notifier,
        settings: Optional[AppSettings] = None,
        scheduler: Optional[PollingScheduler] = None,
        on_state_change: Optional[StateCallback] = None,
        on_tick: Optional[TickCallback] = None,
        on_counts: Optional[CountsCallback] = None,
        on_summary: Optional[SummaryCallback] = None,
    ) -> None:
        self._loop = loop
        self._capture = capture
        self._pipeline = pipeline
        self._feedback = feedback
        self._overlay = overlay
        self._notifier = notifier
        self._settings = settings or AppSettings()
        self._scheduler = scheduler or PollingScheduler(loop)
        self._on_state_change = on_state_change
        self._on_tick = on_tick
        self._on_counts = on_counts
        self._on_summary = on_summary

        self._state = SessionState.IDLE
        self._generation = 0
        self._session: Optional[Session] = None
        self._countdown: Optional[TimerHandle] = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def generation(self) -> int:
        return self._generation

    def start(
        self,
        duration_minutes: float,
        poll_interval_s: float,
        work_instruction: str,
        personality_prompt: str = "",
    ) -> Session:
        if self._state == SessionState.RUNNING:
            raise AlreadyRunning()
        if not work_instruction or not work_instruction.strip():
            raise InvalidConfig("Work instruction must not be empty.")
        if duration_minutes <= 0:
            raise InvalidConfig("Session duration must be positive.")
        if poll_interval_s <= 0:
            raise InvalidConfig("Poll interval must be positive.")

        self._generation += 1
        now = self._loop.time()
        duration_s = duration_minutes * 60
        self._session = Session(
            generation=self._generation,
            duration_minutes=duration_minutes,
            poll_interval_s=poll_interval_s,
            work_instruction=work_instruction.strip(),
            personality_prompt=personality_prompt,
            start_time=now,
            end_time=now + duration_s,
            duration_remaining=duration_s,
        )
        self._transition(SessionState.RUNNING)
        self._countdown = self._loop.call_later(COUNTDOWN_TICK_S, self._countdown_tick)
        self._scheduler.start(poll_interval_s, self._poll)
        self._overlay.show_resting()
        logger.info(
            f"Session started: {duration_minutes} min, checking every {poll_interval_s}s "
            f"for '{self._session.work_instruction}'"
        )
        self._emit_counts()
        return self._session

    def start_from_settings(self) -> Session:
        s = self._settings
        return self.start(s.duration_minutes, s.poll_interval_s, s.work_instruction, s.personality_prompt)

    def stop(self) -> Optional[SessionSummary]:
        if self._state != SessionState.RUNNING:
            return None
        session = self._session
        if session is None:
            return None

        self._cancel_countdown()
        self._scheduler.stop()
        self._feedback.cancel()
        self._overlay.hide()

        now = self._loop.time()
        session.duration_remaining = max(0.0, session.end_time - now)
        summary = SessionSummary(
            focused_count=session.focused_count,
            distracted_count=session.distracted_count,
            elapsed_minutes=max(0.0, now - session.start_time) / 60,
        )
        self._transition(SessionState.IDLE)
        logger.info(f"Session ended. {summary.body()}")
        try:
            self._notifier.notify(SUMMARY_TITLE, summary.body())
        except Exception:
            logger.exception("Summary notification failed")
        if self._on_summary:
            self._on_summary(summary)
        return summary

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _countdown_tick(self) -> None:
        self._countdown = None
        session = self._session
        if self._state != SessionState.RUNNING or session is None:
            return
        session.duration_remaining = max(0.0, session.end_time - self._loop.time())
        if self._on_tick:
            self._on_tick(session.duration_remaining)
        if session.duration_remaining <= 0:
            logger.info("Session time is up")
            self.stop()
            return
        self._countdown = self._loop.call_later(COUNTDOWN_TICK_S, self._countdown_tick)

    def _cancel_countdown(self) -> None:
        if self._countdown is not None:
            self._countdown.cancel()
            self._countdown = None

    def _poll(self, done: DoneCallback) -> None:
        session = self._session
        if self._state != SessionState.RUNNING or session is None:
            done()
            return

        frame = self._capture.capture_frame()
        if frame is None:
            logger.debug(f"{CAPTURE_MISS}: skipping tick")
            done()
            return

        generation = self._generation

        def on_verdict(verdict: ClassificationVerdict) -> None:
            done()
            self._handle_verdict(generation, verdict)

        self._pipeline.classify(frame, session.work_instruction, session.personality_prompt, on_verdict)

    # ------------------------------------------------------------------
    # Verdicts
    # ------------------------------------------------------------------

    def _handle_verdict(self, generation: int, verdict: ClassificationVerdict) -> None:
        session = self._session
        if generation != self._generation or self._state != SessionState.RUNNING or session is None:
            logger.debug("Discarding verdict from a finished session")
            return
        if verdict.is_error:
            logger.info(f"Dropping tick after classification error: {verdict.raw_response_text}")
            return

        if verdict.focused:
            session.focused_count += 1
            logger.info(f"User focused ({session.focused_count})")
        else:
            session.distracted_count += 1
            logger.info(f"User distracted ({session.distracted_count}): {verdict.raw_response_text}")
        self._emit_counts()

        if not verdict.focused and verdict.distraction_message:
            self._feedback.deliver(verdict.distraction_message)

    def _emit_counts(self) -> None:
        if self._on_counts and self._session is not None:
            self._on_counts(self._session.focused_count, self._session.distracted_count)

    def _transition(self, to_state: SessionState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        if self._session is not None:
            self._session.state = to_state
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
