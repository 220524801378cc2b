"""Shared error codes, user-facing messages and rejected-call exceptions."""

from __future__ import annotations

INVALID_CONFIG = "INVALID_CONFIG"
ALREADY_RUNNING = "ALREADY_RUNNING"
ALREADY_RECORDING = "ALREADY_RECORDING"
CAPTURE_MISS = "CAPTURE_MISS"
CLASSIFICATION_ERROR = "CLASSIFICATION_ERROR"
FEEDBACK_CHANNEL_ERROR = "FEEDBACK_CHANNEL_ERROR"
NETWORK_ERROR = "NETWORK_ERROR"
AUTH_FAILED = "AUTH_FAILED"
PROTOCOL_ERROR = "PROTOCOL_ERROR"

ERROR_MESSAGES = {
    INVALID_CONFIG: "Session settings are invalid.",
    ALREADY_RUNNING: "A session is already running, stop it first.",
    ALREADY_RECORDING: "Already waiting for a shortcut.",
    CAPTURE_MISS: "Screen capture returned no frame.",
    CLASSIFICATION_ERROR: "Focus check failed.",
    FEEDBACK_CHANNEL_ERROR: "Reminder could not be delivered.",
    NETWORK_ERROR: "Network failed, please retry.",
    AUTH_FAILED: "API key is invalid.",
    PROTOCOL_ERROR: "Model response format is invalid.",
}


class LockInError(Exception):
    code = ""

    def __init__(self, message: str = "") -> None:
        super().__init__(message or ERROR_MESSAGES.get(self.code, self.code))


class InvalidConfig(LockInError):
    code = INVALID_CONFIG


class AlreadyRunning(LockInError):
    code = ALREADY_RUNNING


class AlreadyRecording(LockInError):
    code = ALREADY_RECORDING
