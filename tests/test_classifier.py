"""Tests for DashscopeClassifier."""

from __future__ import annotations

import threading
from unittest.mock import MagicMock, patch

from classifier import DashscopeClassifier, _frame_to_data_uri
from errors import AUTH_FAILED, NETWORK_ERROR, PROTOCOL_ERROR
from models import ClassifierResult, Frame

FRAME = Frame(b"\xff\xd8\xff", 2, 2)


def _vision_response(text: str) -> dict:
    return {
        "status_code": 200,
        "output": {"choices": [{"message": {"role": "assistant", "content": [{"text": text}]}}]},
    }


def _text_response(text: str) -> dict:
    return {
        "status_code": 200,
        "output": {"choices": [{"message": {"role": "assistant", "content": text}}]},
    }


def _run(call) -> ClassifierResult:  # noqa: ANN001
    results: list[ClassifierResult] = []
    done = threading.Event()

    def on_result(result: ClassifierResult) -> None:
        results.append(result)
        done.set()

    call(on_result)
    assert done.wait(timeout=3.0)
    return results[0]


def test_frame_to_data_uri() -> None:
    assert _frame_to_data_uri(FRAME) == "data:image/jpeg;base64,/9j/"


@patch("classifier.dashscope")
def test_classify_sends_image_and_prompt(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.return_value = _vision_response("All good.")
    adapter = DashscopeClassifier(api_key="test-key")

    result = _run(lambda cb: adapter.classify(FRAME, "Is user focused?", cb))

    assert result.ok
    assert result.text == "All good."
    kwargs = mock_ds.MultiModalConversation.call.call_args.kwargs
    assert kwargs["api_key"] == "test-key"
    assert kwargs["model"] == "qwen-vl-max"
    content = kwargs["messages"][0]["content"]
    assert content[0]["image"].startswith("data:image/jpeg;base64,")
    assert content[1] == {"text": "Is user focused?"}


@patch("classifier.dashscope")
def test_complete_is_text_only(mock_ds: MagicMock) -> None:
    mock_ds.Generation.call.return_value = _text_response("Back to it!")
    adapter = DashscopeClassifier(api_key="test-key")

    result = _run(lambda cb: adapter.complete("remind me", cb))

    assert result.text == "Back to it!"
    kwargs = mock_ds.Generation.call.call_args.kwargs
    assert kwargs["messages"] == [{"role": "user", "content": "remind me"}]
    mock_ds.MultiModalConversation.call.assert_not_called()


@patch("classifier.dashscope")
def test_http_error_status_maps_to_error(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.return_value = {"status_code": 401, "message": "Invalid API-key"}
    adapter = DashscopeClassifier(api_key="bad")

    result = _run(lambda cb: adapter.classify(FRAME, "p", cb))

    assert result.code == AUTH_FAILED
    assert "Invalid" in result.message


@patch("classifier.dashscope")
def test_exception_maps_to_network_error(mock_ds: MagicMock) -> None:
    mock_ds.Generation.call.side_effect = ConnectionError("connection reset")
    adapter = DashscopeClassifier(api_key="test-key")

    result = _run(lambda cb: adapter.complete("p", cb))

    assert result.code == NETWORK_ERROR
    assert not result.ok


@patch("classifier.dashscope")
def test_response_without_text_is_protocol_error(mock_ds: MagicMock) -> None:
    mock_ds.MultiModalConversation.call.return_value = {"status_code": 200, "output": None}
    adapter = DashscopeClassifier(api_key="test-key")

    result = _run(lambda cb: adapter.classify(FRAME, "p", cb))

    assert result.code == PROTOCOL_ERROR


@patch("classifier.dashscope", MagicMock())
@patch.dict("os.environ", {"DASHSCOPE_API_KEY": ""}, clear=False)
def test_missing_api_key_is_auth_error() -> None:
    adapter = DashscopeClassifier(api_key="")

    result = _run(lambda cb: adapter.classify(FRAME, "p", cb))

    assert result.code == AUTH_FAILED


def test_missing_sdk_is_error(monkeypatch) -> None:  # noqa: ANN001
    import classifier as classifier_mod

    monkeypatch.setattr(classifier_mod, "dashscope", None)
    adapter = DashscopeClassifier(api_key="test-key")

    result = _run(lambda cb: adapter.complete("p", cb))

    assert result.code == PROTOCOL_ERROR
    assert "not installed" in result.message


@patch("classifier.dashscope")
def test_set_api_key_applies_to_next_call(mock_ds: MagicMock) -> None:
    mock_ds.Generation.call.return_value = _text_response("ok")
    adapter = DashscopeClassifier(api_key="old")
    adapter.set_api_key("new")

    _run(lambda cb: adapter.complete("p", cb))

    assert mock_ds.Generation.call.call_args.kwargs["api_key"] == "new"
