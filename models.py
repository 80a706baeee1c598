"""Core data models for the app."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class SessionState(str, Enum):
    IDLE = "IDLE"
    LISTENING = "LISTENING"


@dataclass
class AudioFrame:
    pcm16_bytes: bytes
    sample_rate: int = 16000
    channels: int = 1
    timestamp_ms: int = 0


@dataclass(frozen=True)
class ResultSlot:
    """One recognized fragment; interim slots may still be revised."""

    text: str
    is_final: bool = False


@dataclass(frozen=True)
class TranscriptEvent:
    """A revision of the transcript.

    Slots before ``result_index`` are unchanged since the previous event.
    """

    result_index: int
    results: Tuple[ResultSlot, ...] = field(default_factory=tuple)


@dataclass
class RecognitionError:
    code: str
    message: str = ""
    retryable: bool = False


@dataclass
class PasteResult:
    success: bool
    reason: str
    clipboard_restored: bool
