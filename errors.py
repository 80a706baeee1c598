"""Shared error codes, exceptions and user-facing messages."""

from __future__ import annotations

SPEECH_UNAVAILABLE = "SPEECH_UNAVAILABLE"
START_FAILED = "START_FAILED"
AUTH_FAILED = "AUTH_FAILED"
NETWORK_ERROR = "NETWORK_ERROR"
RECOGNITION_ERROR = "RECOGNITION_ERROR"
NO_ACTIVE_TARGET = "NO_ACTIVE_TARGET"
INSERT_FAILED = "INSERT_FAILED"

ERROR_MESSAGES = {
    SPEECH_UNAVAILABLE: "Speech recognition is not available on this system.",
    START_FAILED: "Speech recognition could not be started.",
    AUTH_FAILED: "API key is invalid.",
    NETWORK_ERROR: "Network failed, please retry.",
    RECOGNITION_ERROR: "Speech recognition stopped unexpectedly.",
    NO_ACTIVE_TARGET: "No active input target, result kept in clipboard.",
    INSERT_FAILED: "Text could not be inserted into the document.",
}


class SpeechError(Exception):
    code = RECOGNITION_ERROR


class UnavailableError(SpeechError):
    """The speech-recognition capability does not exist on this platform."""

    code = SPEECH_UNAVAILABLE


class StartFailure(SpeechError):
    """The capability exists but refused to start."""

    code = START_FAILED

    def __init__(self, message: str, code: str = START_FAILED) -> None:
        super().__init__(message)
        self.code = code


class InsertFailure(SpeechError):
    """The document could not take the dictated text."""

    code = INSERT_FAILED

    def __init__(self, message: str, code: str = INSERT_FAILED) -> None:
        super().__init__(message)
        self.code = code
