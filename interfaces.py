"""Protocol interfaces used by SessionEngine and SessionRegistry."""

from __future__ import annotations

from queue import Queue
from typing import Callable, Protocol

from models import AudioFrame, RecognitionError, TranscriptEvent

ResultCallback = Callable[[TranscriptEvent], None]
ErrorCallback = Callable[[RecognitionError], None]
EndCallback = Callable[[], None]


class SpeechSource(Protocol):
    def start(
        self,
        on_result: ResultCallback,
        on_error: ErrorCallback,
        on_end: EndCallback,
    ) -> None: ...

    def stop(self) -> None: ...


class Recorder(Protocol):
    def start(self, audio_queue: Queue[AudioFrame | None]) -> None: ...

    def stop(self) -> None: ...


class Document(Protocol):
    def get_content(self) -> str: ...

    def insert_content(self, text: str) -> None: ...


class PreviewSurface(Protocol):
    def show(self) -> None: ...

    def hide(self) -> None: ...

    def update(self, text: str) -> None: ...


class ConfigStore(Protocol):
    def get_api_key(self) -> str: ...

    def set_api_key(self, key: str) -> None: ...

    def get_hotkey(self) -> str: ...

    def set_hotkey(self, hotkey: str) -> None: ...

    def get_language(self) -> str: ...

    def set_language(self, language: str) -> None: ...

    def get_model(self) -> str: ...

    def get_log_level(self) -> str: ...
