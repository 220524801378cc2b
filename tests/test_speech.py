"""Tests for DashscopeSpeechSynthesizer."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock, patch

from errors import AUTH_FAILED, FEEDBACK_CHANNEL_ERROR, NETWORK_ERROR
from models import SpeechResult
from speech import SAMPLE_RATE, DashscopeSpeechSynthesizer


def _run(synth: DashscopeSpeechSynthesizer, text: str = "Focus!") -> SpeechResult:
    results: list[SpeechResult] = []
    done = threading.Event()

    def on_result(result: SpeechResult) -> None:
        results.append(result)
        done.set()

    synth.synthesize(text, "longwan", on_result)
    assert done.wait(timeout=3.0)
    return results[0]


@patch("speech.dashscope", MagicMock())
@patch("speech.AudioFormat", MagicMock())
@patch("speech.SpeechSynthesizer")
def test_synthesize_returns_pcm(mock_cls: MagicMock) -> None:
    mock_cls.return_value.call.return_value = b"\x01\x00" * 100

    result = _run(DashscopeSpeechSynthesizer(api_key="test-key"))

    assert result.ok
    assert result.sample_rate == SAMPLE_RATE
    assert len(result.audio) == 200
    kwargs = mock_cls.call_args.kwargs
    assert kwargs["voice"] == "longwan"
    assert kwargs["model"] == "cosyvoice-v1"
    mock_cls.return_value.call.assert_called_once_with("Focus!")


@patch("speech.dashscope", MagicMock())
@patch("speech.AudioFormat", MagicMock())
@patch("speech.SpeechSynthesizer")
def test_empty_audio_is_error(mock_cls: MagicMock) -> None:
    mock_cls.return_value.call.return_value = None

    result = _run(DashscopeSpeechSynthesizer(api_key="test-key"))

    assert not result.ok
    assert result.code == FEEDBACK_CHANNEL_ERROR


@patch("speech.dashscope", MagicMock())
@patch("speech.AudioFormat", MagicMock())
@patch("speech.SpeechSynthesizer")
def test_timeout_is_network_error(mock_cls: MagicMock) -> None:
    mock_cls.return_value.call.side_effect = TimeoutError("websocket timeout")

    result = _run(DashscopeSpeechSynthesizer(api_key="test-key"))

    assert result.code == NETWORK_ERROR


@patch("speech.dashscope", MagicMock())
@patch("speech.AudioFormat", MagicMock())
@patch("speech.SpeechSynthesizer", MagicMock())
@patch.dict("os.environ", {"DASHSCOPE_API_KEY": ""}, clear=False)
def test_missing_api_key() -> None:
    result = _run(DashscopeSpeechSynthesizer(api_key=""))

    assert result.code == AUTH_FAILED


def test_missing_sdk(monkeypatch) -> None:  # noqa: ANN001
    import speech as speech_mod

    monkeypatch.setattr(speech_mod, "SpeechSynthesizer", None)

    result = _run(DashscopeSpeechSynthesizer(api_key="test-key"))

    assert result.code == FEEDBACK_CHANNEL_ERROR
