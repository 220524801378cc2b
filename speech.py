"""Text-to-speech adapter using DashScope CosyVoice."""

from __future__ import annotations

import logging
import os
import threading
from typing import Callable

from errors import AUTH_FAILED, FEEDBACK_CHANNEL_ERROR, NETWORK_ERROR
from models import SpeechResult

try:
    import dashscope
    from dashscope.audio.tts_v2 import AudioFormat, SpeechSynthesizer
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore
    AudioFormat = None  # type: ignore
    SpeechSynthesizer = None  # type: ignore

logger = logging.getLogger(__name__)

SAMPLE_RATE = 22050


class DashscopeSpeechSynthesizer:
    def __init__(self, api_key: str, model: str = "cosyvoice-v1") -> None:
        self._api_key = api_key
        self._model = model

    def set_api_key(self, api_key: str) -> None:
        self._api_key = api_key

    def synthesize(self, text: str, voice: str, on_result: Callable[[SpeechResult], None]) -> None:
        threading.Thread(target=self._worker, args=(text, voice, on_result), daemon=True).start()

    def _worker(self, text: str, voice: str, on_result: Callable[[SpeechResult], None]) -> None:
        on_result(self._request(text, voice))

    def _request(self, text: str, voice: str) -> SpeechResult:
        if dashscope is None or SpeechSynthesizer is None:
            return SpeechResult(code=FEEDBACK_CHANNEL_ERROR, message="dashscope is not installed")
        api_key = self._api_key or os.getenv("DASHSCOPE_API_KEY", "")
        if not api_key:
            return SpeechResult(code=AUTH_FAILED, message="No API key configured")

        dashscope.api_key = api_key
        try:
            synthesizer = SpeechSynthesizer(
                model=self._model,
                voice=voice,
                format=AudioFormat.PCM_22050HZ_MONO_16BIT,
            )
            audio = synthesizer.call(text)
        except Exception as exc:
            logger.warning(f"Speech synthesis failed: {exc}")
            low = str(exc).lower()
            code = NETWORK_ERROR if "timeout" in low or "connection" in low else FEEDBACK_CHANNEL_ERROR
            return SpeechResult(code=code, message=str(exc))
        if not audio:
            return SpeechResult(code=FEEDBACK_CHANNEL_ERROR, message="no audio returned")
        return SpeechResult(audio=bytes(audio), sample_rate=SAMPLE_RATE)
