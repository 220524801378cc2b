"""Focus classifier adapter using DashScope Qwen models.

Vision verdicts go through ``MultiModalConversation`` with the screenshot
as a base64 JPEG data URI; reminders are plain ``Generation`` calls. Each
request runs once on a daemon thread and reports through ``on_result``.
"""

from __future__ import annotations

import base64
import logging
import os
import threading
from typing import Any, Callable, Optional

from errors import AUTH_FAILED, NETWORK_ERROR, PROTOCOL_ERROR
from models import ClassifierResult, Frame

try:
    import dashscope
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore

logger = logging.getLogger(__name__)

ResultCallback = Callable[[ClassifierResult], None]


def _frame_to_data_uri(frame: Frame) -> str:
    encoded = base64.b64encode(frame.jpeg_bytes).decode("ascii")
    return f"data:image/jpeg;base64,{encoded}"


def _field(obj: Any, name: str) -> Any:
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


class DashscopeClassifier:
    def __init__(
        self,
        api_key: str,
        vision_model: str = "qwen-vl-max",
        text_model: str = "qwen-plus",
        request_timeout_s: float = 30.0,
    ) -> None:
        self._api_key = api_key
        self._vision_model = vision_model
        self._text_model = text_model
        self._request_timeout_s = request_timeout_s

    def set_api_key(self, api_key: str) -> None:
        self._api_key = api_key

    def classify(self, frame: Frame, prompt: str, on_result: ResultCallback) -> None:
        messages = [
            {
                "role": "user",
                "content": [{"image": _frame_to_data_uri(frame)}, {"text": prompt}],
            }
        ]
        self._spawn(self._call_vision, messages, on_result)

    def complete(self, prompt: str, on_result: ResultCallback) -> None:
        messages = [{"role": "user", "content": prompt}]
        self._spawn(self._call_text, messages, on_result)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _spawn(self, target: Callable[[list], Any], messages: list, on_result: ResultCallback) -> None:
        threading.Thread(
            target=self._worker, args=(target, messages, on_result), daemon=True
        ).start()

    def _worker(self, target: Callable[[list], Any], messages: list, on_result: ResultCallback) -> None:
        on_result(self._request(target, messages))

    def _request(self, target: Callable[[list], Any], messages: list) -> ClassifierResult:
        if dashscope is None:
            return ClassifierResult(code=PROTOCOL_ERROR, message="dashscope is not installed")
        if not self._resolve_api_key():
            return ClassifierResult(code=AUTH_FAILED, message="No API key configured")
        try:
            response = target(messages)
        except Exception as exc:
            logger.warning(f"DashScope request failed: {exc}")
            return self._to_error_result(exc)
        return self._to_result(response)

    def _call_vision(self, messages: list) -> Any:
        return dashscope.MultiModalConversation.call(
            api_key=self._resolve_api_key(),
            model=self._vision_model,
            messages=messages,
            timeout=self._request_timeout_s,
        )

    def _call_text(self, messages: list) -> Any:
        return dashscope.Generation.call(
            api_key=self._resolve_api_key(),
            model=self._text_model,
            messages=messages,
            result_format="message",
            timeout=self._request_timeout_s,
        )

    def _resolve_api_key(self) -> str:
        return self._api_key or os.getenv("DASHSCOPE_API_KEY", "")

    def _to_result(self, response: Any) -> ClassifierResult:
        status = _field(response, "status_code")
        if status is not None and status != 200:
            code = AUTH_FAILED if status in (401, 403) else PROTOCOL_ERROR
            message = str(_field(response, "message") or f"HTTP {status}")
            return ClassifierResult(code=code, message=message)
        text = self._extract_text(response)
        if text is None:
            return ClassifierResult(code=PROTOCOL_ERROR, message="response has no text")
        return ClassifierResult(text=text)

    def _extract_text(self, response: Any) -> Optional[str]:
        """Pull the first choice's text from a DashScope response."""
        output = _field(response, "output")
        if output is None:
            return None
        choices = _field(output, "choices") or []
        if not choices:
            return _field(output, "text")
        message = _field(choices[0], "message")
        content = _field(message, "content") if message is not None else None
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts = [str(_field(item, "text") or "") for item in content]
            return "".join(parts)
        return None

    def _to_error_result(self, exc: Exception) -> ClassifierResult:
        """Map an SDK/network exception to a standard error result."""
        message = str(exc)
        low = message.lower()
        if "401" in low or "auth" in low or "api key" in low:
            code = AUTH_FAILED
        elif "timeout" in low or "network" in low or "connection" in low:
            code = NETWORK_ERROR
        else:
            code = PROTOCOL_ERROR
        return ClassifierResult(code=code, message=message)
