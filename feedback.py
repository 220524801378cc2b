"""Fans a distraction reminder out to notification, speech and avatar."""

from __future__ import annotations

import logging

from config import DISTRACTION_TITLE, AppSettings
from errors import FEEDBACK_CHANNEL_ERROR
from interfaces import AudioPlayer, EventLoop, Notifier, SpeechSynthesizer
from models import SpeechResult
from overlay_state import OverlayState

logger = logging.getLogger(__name__)


class FeedbackDispatcher:
    def __init__(
        self,
        notifier: Notifier,
        speech: SpeechSynthesizer,
        player: AudioPlayer,
        overlay: OverlayState,
        settings: AppSettings,
        loop: EventLoop,
    ) -> None:
        self._notifier = notifier
        self._speech = speech
        self._player = player
        self._overlay = overlay
        self._settings = settings
        self._loop = loop
        self._playback_id = 0

    def deliver(self, message: str) -> None:
        self._safe_notify(DISTRACTION_TITLE, message)
        if not self._settings.speech_enabled:
            return

        self._playback_id += 1
        playback_id = self._playback_id
        self._overlay.show_talking()

        def on_result(result: SpeechResult) -> None:
            self._loop.call_soon_threadsafe(lambda: self._on_speech(playback_id, result))

        try:
            self._speech.synthesize(message, self._settings.voice_id, on_result)
        except Exception:
            logger.exception(f"{FEEDBACK_CHANNEL_ERROR}: speech request failed")
            self._finish(playback_id)

    def cancel(self) -> None:
        """Drop any playback in flight; its completion will no longer move the avatar."""
        self._playback_id += 1
        try:
            self._player.stop()
        except Exception:
            logger.exception("Audio player stop failed")

    def _on_speech(self, playback_id: int, result: SpeechResult) -> None:
        if playback_id != self._playback_id:
            return
        if not result.ok:
            logger.warning(f"{FEEDBACK_CHANNEL_ERROR}: {result.code} {result.message}")
            self._finish(playback_id)
            return

        def on_complete() -> None:
            self._loop.call_soon_threadsafe(lambda: self._finish(playback_id))

        try:
            self._player.play(result, on_complete)
        except Exception:
            logger.exception(f"{FEEDBACK_CHANNEL_ERROR}: playback failed")
            self._finish(playback_id)

    def _finish(self, playback_id: int) -> None:
        if playback_id != self._playback_id:
            return
        self._overlay.show_resting()

    def _safe_notify(self, title: str, body: str) -> None:
        try:
            self._notifier.notify(title, body)
        except Exception:
            logger.exception(f"{FEEDBACK_CHANNEL_ERROR}: notification failed")
