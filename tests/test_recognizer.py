"""Tests for DashscopeSpeechSource."""

from __future__ import annotations

import threading
import time
from queue import Queue
from unittest.mock import MagicMock, patch

import pytest

from errors import AUTH_FAILED, NETWORK_ERROR, RECOGNITION_ERROR, StartFailure, UnavailableError
from models import AudioFrame, RecognitionError, TranscriptEvent
from recognizer import DashscopeSpeechSource, to_recognition_error


# ---------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------

class FakeConfig:
    def __init__(self, api_key: str = "test-key", language: str = "en") -> None:
        self.api_key = api_key
        self.language = language

    def get_api_key(self) -> str:
        return self.api_key

    def get_language(self) -> str:
        return self.language

    def get_model(self) -> str:
        return "paraformer-realtime-v2"


class FakeRecorder:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.queue: Queue[AudioFrame | None] | None = None
        self.stopped = False

    def start(self, audio_queue: Queue[AudioFrame | None]) -> None:
        if self.fail:
            raise RuntimeError("microphone busy")
        self.queue = audio_queue

    def stop(self) -> None:
        self.stopped = True
        if self.queue is not None:
            self.queue.put_nowait(None)


class FakeRecognition:
    instances: list["FakeRecognition"] = []
    release: threading.Event | None = None

    def __init__(self, model, callback, format, sample_rate, **kwargs) -> None:  # noqa: ANN001, A002
        self.model = model
        self.callback = callback
        self.kwargs = kwargs
        self.frames: list[bytes] = []
        self.started = False
        self.stopped = False
        FakeRecognition.instances.append(self)

    def start(self) -> None:
        self.started = True

    def send_audio_frame(self, data: bytes) -> None:
        self.frames.append(data)

    def stop(self) -> None:
        if FakeRecognition.release is not None:
            FakeRecognition.release.wait(timeout=2.0)
        self.stopped = True


class FakeRecognitionResult:
    def __init__(self, text: str, end: bool) -> None:
        self._sentence = {"text": text, "sentence_end": end}

    def get_sentence(self) -> dict:
        return self._sentence

    @staticmethod
    def is_sentence_end(sentence: dict) -> bool:
        return bool(sentence.get("sentence_end"))


@pytest.fixture
def fake_sdk():  # noqa: ANN201
    FakeRecognition.instances = []
    FakeRecognition.release = None
    with patch("recognizer.Recognition", FakeRecognition), patch(
        "recognizer.RecognitionResult", FakeRecognitionResult
    ), patch("recognizer.dashscope", MagicMock()):
        yield


def _started_source(config: FakeConfig | None = None):  # noqa: ANN202
    recorder = FakeRecorder()
    source = DashscopeSpeechSource(config or FakeConfig(), recorder=recorder)
    results: list[TranscriptEvent] = []
    errors: list[RecognitionError] = []
    ends: list[bool] = []
    source.start(results.append, errors.append, lambda: ends.append(True))
    return source, recorder, FakeRecognition.instances[-1], results, errors, ends


# ---------------------------------------------------------------
# Start failures
# ---------------------------------------------------------------

@patch("recognizer.Recognition", None)
def test_start_without_dashscope_is_unavailable() -> None:
    source = DashscopeSpeechSource(FakeConfig(), recorder=FakeRecorder())
    with pytest.raises(UnavailableError):
        source.start(lambda e: None, lambda e: None, lambda: None)


@patch.dict("os.environ", {"DASHSCOPE_API_KEY": ""}, clear=False)
def test_missing_api_key_fails_to_start(fake_sdk) -> None:  # noqa: ANN001
    source = DashscopeSpeechSource(FakeConfig(api_key=""), recorder=FakeRecorder())
    with pytest.raises(StartFailure) as info:
        source.start(lambda e: None, lambda e: None, lambda: None)
    assert info.value.code == AUTH_FAILED
    assert FakeRecognition.instances == []


def test_recorder_failure_stops_recognition(fake_sdk) -> None:  # noqa: ANN001
    source = DashscopeSpeechSource(FakeConfig(), recorder=FakeRecorder(fail=True))
    with pytest.raises(RuntimeError, match="microphone busy"):
        source.start(lambda e: None, lambda e: None, lambda: None)
    assert FakeRecognition.instances[-1].stopped is True


# ---------------------------------------------------------------
# Streaming
# ---------------------------------------------------------------

def test_language_and_model_come_from_config(fake_sdk) -> None:  # noqa: ANN001
    source, _, recognition, *_ = _started_source(FakeConfig(language="zh"))
    assert recognition.started is True
    assert recognition.model == "paraformer-realtime-v2"
    assert recognition.kwargs == {"language_hints": ["zh"]}
    source.stop()


def test_empty_language_means_auto(fake_sdk) -> None:  # noqa: ANN001
    source, _, recognition, *_ = _started_source(FakeConfig(language=""))
    assert recognition.kwargs == {}
    source.stop()


def test_frames_are_forwarded_until_sentinel(fake_sdk) -> None:  # noqa: ANN001
    source, recorder, recognition, *_ = _started_source()
    recorder.queue.put(AudioFrame(pcm16_bytes=b"\x01\x00"))
    recorder.queue.put(AudioFrame(pcm16_bytes=b"\x02\x00"))

    deadline = time.time() + 2.0
    while len(recognition.frames) < 2 and time.time() < deadline:
        time.sleep(0.01)
    source.stop()

    assert source.wait_stopped(timeout=2.0) is True
    assert recognition.frames == [b"\x01\x00", b"\x02\x00"]
    assert recorder.stopped is True
    assert recognition.stopped is True


def test_sentences_become_indexed_slots(fake_sdk) -> None:  # noqa: ANN001
    source, _, recognition, results, _, _ = _started_source()
    callback = recognition.callback

    callback.on_event(FakeRecognitionResult("hello", False))
    callback.on_event(FakeRecognitionResult("hello world", False))
    callback.on_event(FakeRecognitionResult("hello world period", True))
    callback.on_event(FakeRecognitionResult("next", False))
    source.stop()

    assert [e.result_index for e in results] == [0, 0, 0, 1]
    assert [(s.text, s.is_final) for s in results[2].results] == [("hello world period", True)]
    assert [(s.text, s.is_final) for s in results[3].results] == [
        ("hello world period", True),
        ("next", False),
    ]


def test_sdk_error_is_mapped(fake_sdk) -> None:  # noqa: ANN001
    source, _, recognition, _, errors, _ = _started_source()

    recognition.callback.on_error(MagicMock(message="Connection reset by peer"))

    assert len(errors) == 1
    assert errors[0].code == NETWORK_ERROR
    assert errors[0].retryable is True
    source.stop()


def test_completion_reports_end(fake_sdk) -> None:  # noqa: ANN001
    source, _, recognition, _, _, ends = _started_source()
    recognition.callback.on_complete()
    assert ends == [True]
    source.stop()


def test_callbacks_after_stop_are_silent(fake_sdk) -> None:  # noqa: ANN001
    source, _, recognition, _, errors, ends = _started_source()
    source.stop()

    recognition.callback.on_complete()
    recognition.callback.on_error(MagicMock(message="late"))

    assert ends == []
    assert errors == []


def test_stop_returns_before_sdk_shutdown(fake_sdk) -> None:  # noqa: ANN001
    FakeRecognition.release = threading.Event()
    source, recorder, recognition, *_ = _started_source()

    began = time.time()
    source.stop()

    assert time.time() - began < 1.0
    assert recorder.stopped is True
    assert recognition.stopped is False
    assert source.wait_stopped(timeout=0.05) is False

    FakeRecognition.release.set()
    assert source.wait_stopped(timeout=2.0) is True
    assert recognition.stopped is True


def test_restart_ignores_previous_run(fake_sdk) -> None:  # noqa: ANN001
    recorder = FakeRecorder()
    source = DashscopeSpeechSource(FakeConfig(), recorder=recorder)
    ends: list[str] = []
    source.start(lambda e: None, lambda e: None, lambda: ends.append("first"))
    old = FakeRecognition.instances[-1]
    source.stop()
    assert source.wait_stopped(timeout=2.0) is True

    results: list[TranscriptEvent] = []
    source.start(results.append, lambda e: None, lambda: ends.append("second"))
    new = FakeRecognition.instances[-1]

    old.callback.on_event(FakeRecognitionResult("stale", True))
    old.callback.on_complete()
    assert results == []
    assert ends == []

    new.callback.on_complete()
    assert ends == ["second"]
    source.stop()
    assert source.wait_stopped(timeout=2.0) is True
    assert old.stopped is True
    assert new.stopped is True


def test_dispatch_wraps_callbacks(fake_sdk) -> None:  # noqa: ANN001
    queued: list = []
    source = DashscopeSpeechSource(FakeConfig(), recorder=FakeRecorder(), dispatch=queued.append)
    results: list[TranscriptEvent] = []
    source.start(results.append, lambda e: None, lambda: None)

    FakeRecognition.instances[-1].callback.on_event(FakeRecognitionResult("hi", True))
    assert results == []
    queued[0]()
    assert results[0].results[0].text == "hi"
    source.stop()


# ---------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------

@pytest.mark.parametrize(
    "message, code, retryable",
    [
        ("401 Unauthorized: invalid api key", AUTH_FAILED, False),
        ("request timeout", NETWORK_ERROR, True),
        ("unexpected payload", RECOGNITION_ERROR, True),
    ],
)
def test_error_mapping(message: str, code: str, retryable: bool) -> None:
    error = to_recognition_error(message)
    assert error.code == code
    assert error.retryable is retryable
    assert error.message == message
