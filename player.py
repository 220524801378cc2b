"""Speaker playback adapter."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from models import SpeechResult

try:
    import numpy as np
except Exception:  # pragma: no cover
    np = None  # type: ignore

try:
    import sounddevice as sd
except Exception:  # pragma: no cover
    sd = None  # type: ignore

logger = logging.getLogger(__name__)


class SoundDeviceAudioPlayer:
    """Plays 16-bit mono PCM and reports completion from a worker thread."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None

    def play(self, audio: SpeechResult, on_complete: Callable[[], None]) -> None:
        if sd is None or np is None:
            raise RuntimeError("sounddevice is not installed")
        samples = np.frombuffer(audio.audio, dtype=np.int16)
        with self._lock:
            self._thread = threading.Thread(
                target=self._worker,
                args=(samples, audio.sample_rate, on_complete),
                daemon=True,
            )
            self._thread.start()

    def stop(self) -> None:
        if sd is None:
            return
        with self._lock:
            if self._thread is None or not self._thread.is_alive():
                return
        sd.stop()

    def _worker(self, samples: object, sample_rate: int, on_complete: Callable[[], None]) -> None:
        try:
            sd.play(samples, samplerate=sample_rate)
            sd.wait()
        except Exception as exc:
            logger.warning(f"Audio playback failed: {exc}")
        finally:
            on_complete()
