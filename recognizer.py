"""Speech source backed by DashScope realtime recognition.

Microphone frames are pumped from the recorder queue into a streaming
``Recognition`` session.  The SDK reports one sentence at a time; each update
becomes a ``TranscriptEvent`` where the sentence in progress occupies slot
``result_index`` as an interim result until the SDK marks it finished, after
which the slot turns final and the index moves on.
"""

from __future__ import annotations

import logging
import os
import threading
from queue import Empty, Queue
from typing import Any, Callable, List, Optional

from errors import (
    AUTH_FAILED,
    NETWORK_ERROR,
    RECOGNITION_ERROR,
    StartFailure,
    UnavailableError,
)
from interfaces import ConfigStore, EndCallback, ErrorCallback, Recorder, ResultCallback
from models import AudioFrame, RecognitionError, ResultSlot, TranscriptEvent
from recorder import MicrophoneRecorder

try:
    import dashscope
    from dashscope.audio.asr import Recognition, RecognitionCallback, RecognitionResult
except Exception:  # pragma: no cover
    dashscope = None  # type: ignore
    Recognition = None  # type: ignore
    RecognitionCallback = object  # type: ignore
    RecognitionResult = None  # type: ignore

logger = logging.getLogger(__name__)

Dispatch = Callable[[Callable[[], None]], None]


def _call_now(fn: Callable[[], None]) -> None:
    fn()


def to_recognition_error(message: str) -> RecognitionError:
    """Map an SDK/network failure message to a standard error."""
    low = message.lower()
    if "401" in low or "auth" in low or "api key" in low or "apikey" in low:
        return RecognitionError(code=AUTH_FAILED, message=message, retryable=False)
    if "timeout" in low or "network" in low or "connection" in low:
        return RecognitionError(code=NETWORK_ERROR, message=message, retryable=True)
    return RecognitionError(code=RECOGNITION_ERROR, message=message, retryable=True)


class _SourceCallback(RecognitionCallback):
    """SDK callback for one recognition run; silent once ``stopped`` is set."""

    def __init__(self, source: "DashscopeSpeechSource", stopped: threading.Event) -> None:
        self._source = source
        self._stopped = stopped

    def on_open(self) -> None:
        logger.debug("Recognition stream opened")

    def on_event(self, result: Any) -> None:
        if self._stopped.is_set():
            return
        sentence = result.get_sentence()
        if not isinstance(sentence, dict):
            return
        text = str(sentence.get("text", ""))
        self._source._publish(text, bool(RecognitionResult.is_sentence_end(sentence)))

    def on_error(self, result: Any) -> None:
        if self._stopped.is_set():
            return
        self._source._fail(str(getattr(result, "message", "") or result))

    def on_complete(self) -> None:
        if self._stopped.is_set():
            return
        self._source._complete()

    def on_close(self) -> None:
        logger.debug("Recognition stream closed")


class DashscopeSpeechSource:
    def __init__(
        self,
        config: ConfigStore,
        recorder: Optional[Recorder] = None,
        dispatch: Dispatch = _call_now,
        sample_rate: int = 16000,
        queue_maxsize: int = 50,
        join_timeout_s: float = 0.5,
    ) -> None:
        self._config = config
        self._recorder = recorder or MicrophoneRecorder(sample_rate=sample_rate)
        self._dispatch = dispatch
        self._sample_rate = sample_rate
        self._queue_maxsize = queue_maxsize
        self._join_timeout_s = join_timeout_s

        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._stop_event.set()
        self._thread: Optional[threading.Thread] = None
        self._stopper: Optional[threading.Thread] = None
        self._recognition: Any = None
        self._slots: List[ResultSlot] = []
        self._on_result: Optional[ResultCallback] = None
        self._on_error: Optional[ErrorCallback] = None
        self._on_end: Optional[EndCallback] = None

    @staticmethod
    def is_available() -> bool:
        return Recognition is not None and MicrophoneRecorder.is_available()

    def start(
        self,
        on_result: ResultCallback,
        on_error: ErrorCallback,
        on_end: EndCallback,
    ) -> None:
        if Recognition is None:
            raise UnavailableError("dashscope is not installed")
        if not self._stop_event.is_set():
            return

        api_key = self._config.get_api_key() or os.getenv("DASHSCOPE_API_KEY", "")
        if not api_key:
            raise StartFailure("No API key configured", code=AUTH_FAILED)
        dashscope.api_key = api_key

        self._on_result = on_result
        self._on_error = on_error
        self._on_end = on_end
        self._slots = []
        # Each run gets its own event so a run still shutting down stays silent.
        stopped = threading.Event()
        self._stop_event = stopped
        audio_queue: Queue[AudioFrame | None] = Queue(maxsize=self._queue_maxsize)

        model = self._config.get_model()
        language = self._config.get_language()
        options = {"language_hints": [language]} if language else {}
        recognition = Recognition(
            model=model,
            callback=_SourceCallback(self, stopped),
            format="pcm",
            sample_rate=self._sample_rate,
            **options,
        )
        self._recognition = recognition
        try:
            recognition.start()
            self._recorder.start(audio_queue)
        except Exception:
            stopped.set()
            self._recognition = None
            self._shutdown(None, recognition)
            raise

        self._thread = threading.Thread(
            target=self._pump, args=(recognition, audio_queue, stopped), daemon=True
        )
        self._thread.start()
        logger.info("Recognition started (model=%s, language=%s)", model, language or "auto")

    def stop(self) -> None:
        """Stop capturing at once; the SDK shutdown finishes on a worker thread."""
        self._stop_event.set()
        try:
            self._recorder.stop()
        except Exception:
            logger.exception("Stopping recorder failed")
        thread, self._thread = self._thread, None
        recognition, self._recognition = self._recognition, None
        if thread is None and recognition is None:
            return
        self._stopper = threading.Thread(
            target=self._shutdown, args=(thread, recognition), daemon=True
        )
        self._stopper.start()

    def wait_stopped(self, timeout: Optional[float] = None) -> bool:
        """Block until the last ``stop`` has closed the SDK session."""
        stopper = self._stopper
        if stopper is not None:
            stopper.join(timeout=timeout)
            return not stopper.is_alive()
        return True

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _pump(self, recognition: Any, audio_queue: Queue[AudioFrame | None], stopped: threading.Event) -> None:
        """Forward microphone frames until the recorder posts its sentinel."""
        while not stopped.is_set():
            try:
                frame = audio_queue.get(timeout=0.2)
            except Empty:
                continue
            if frame is None:
                break
            try:
                recognition.send_audio_frame(frame.pcm16_bytes)
            except Exception as exc:
                if not stopped.is_set():
                    self._fail(str(exc))
                return

    def _shutdown(self, thread: Optional[threading.Thread], recognition: Any) -> None:
        if thread is not None and thread.is_alive() and thread is not threading.current_thread():
            thread.join(timeout=self._join_timeout_s)
        if recognition is None:
            return
        try:
            recognition.stop()
        except Exception:
            logger.exception("Stopping recognition failed")

    def _publish(self, text: str, is_final: bool) -> None:
        with self._lock:
            index = len(self._slots)
            if self._slots and not self._slots[-1].is_final:
                index -= 1
                self._slots[index] = ResultSlot(text, is_final)
            else:
                self._slots.append(ResultSlot(text, is_final))
            event = TranscriptEvent(result_index=index, results=tuple(self._slots))
        on_result = self._on_result
        if on_result is not None:
            self._dispatch(lambda: on_result(event))

    def _fail(self, message: str) -> None:
        logger.warning("Recognition failed: %s", message)
        error = to_recognition_error(message)
        on_error = self._on_error
        if on_error is not None:
            self._dispatch(lambda: on_error(error))

    def _complete(self) -> None:
        on_end = self._on_end
        if on_end is not None:
            self._dispatch(on_end)
