"""State-machine based dictation session for one document."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from errors import INSERT_FAILED, START_FAILED, SPEECH_UNAVAILABLE, UnavailableError
from interfaces import Document, PreviewSurface, SpeechSource
from models import RecognitionError, SessionState, TranscriptEvent
from normalizer import normalize

logger = logging.getLogger(__name__)

StateCallback = Callable[[SessionState, SessionState], None]
ErrorCallback = Callable[[str, str], None]

SENTENCE_TERMINATORS = (".", "!", "?")
NO_SPACE_BEFORE = (".", ",", "!", "?", ";", ":", ")", "]")


def adjust_for_document(content: str, text: str) -> str:
    """Fit normalized text onto the end of already committed content."""
    if not content or not text:
        return text
    first = text[0]
    if first.isalpha() and first.islower() and content.rstrip().endswith(SENTENCE_TERMINATORS):
        text = first.upper() + text[1:]
    if not content.endswith((" ", "\n")) and not text.startswith(NO_SPACE_BEFORE):
        text = " " + text
    return text


class SessionEngine:
    def __init__(
        self,
        source: SpeechSource,
        document: Document,
        preview: PreviewSurface,
        on_state_change: Optional[StateCallback] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._source = source
        self._document = document
        self._preview = preview
        self._on_state_change = on_state_change
        self._on_error = on_error

        self._state = SessionState.IDLE
        self._session_id = 0
        self._pending_final = ""

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def recognizing(self) -> bool:
        return self._state == SessionState.LISTENING

    @property
    def pending_final(self) -> str:
        return self._pending_final

    def start(self) -> None:
        if self._state != SessionState.IDLE:
            return
        self._session_id += 1
        session_id = self._session_id
        self._pending_final = ""
        self._preview.show()
        try:
            self._source.start(
                lambda event: self._handle_result(session_id, event),
                lambda error: self._handle_error(session_id, error),
                lambda: self._handle_end(session_id),
            )
        except UnavailableError as exc:
            logger.warning("Speech recognition unavailable: %s", exc)
            self._preview.hide()
            self._emit_error(SPEECH_UNAVAILABLE, str(exc))
            return
        except Exception as exc:
            logger.exception("Speech recognition start error")
            self._preview.hide()
            self._emit_error(getattr(exc, "code", START_FAILED), str(exc))
            return
        if session_id != self._session_id:
            # The source ended or failed while it was starting.
            return
        self._transition(SessionState.LISTENING)

    def stop(self) -> None:
        if self._state != SessionState.LISTENING:
            return
        logger.info("Stopping dictation session %d", self._session_id)
        self._finish()

    def toggle(self) -> None:
        if self.recognizing:
            self.stop()
        else:
            self.start()

    def _handle_result(self, session_id: int, event: TranscriptEvent) -> None:
        if not self._is_current(session_id):
            return

        interim_text = ""
        for slot in event.results[max(event.result_index, 0):]:
            if slot.is_final:
                self._pending_final += slot.text + " "
            else:
                interim_text += slot.text

        if interim_text:
            self._preview.update(normalize(interim_text))

        if self._pending_final:
            self._commit()

    def _commit(self) -> None:
        text = normalize(self._pending_final)
        self._pending_final = ""
        if text:
            # Re-read the document: the user or a prior commit may have changed it.
            text = adjust_for_document(self._document.get_content(), text)
            try:
                self._document.insert_content(text)
            except Exception as exc:
                logger.exception("Inserting dictated text failed")
                self._emit_error(getattr(exc, "code", INSERT_FAILED), str(exc))
        self._preview.update("")

    def _handle_error(self, session_id: int, error: RecognitionError) -> None:
        if session_id != self._session_id:
            return
        logger.error("Speech recognition error: %s %s", error.code, error.message)
        self._finish()
        self._emit_error(error.code, error.message)

    def _handle_end(self, session_id: int) -> None:
        if session_id != self._session_id:
            return
        logger.info("Speech recognition ended by source")
        self._finish()

    def _is_current(self, session_id: int) -> bool:
        return session_id == self._session_id and self._state == SessionState.LISTENING

    def _finish(self) -> None:
        # Late callbacks from this session are dropped from here on.
        self._session_id += 1
        self._pending_final = ""
        self._transition(SessionState.IDLE)
        self._safe_stop_source()
        self._preview.hide()

    def _emit_error(self, code: str, message: str) -> None:
        if self._on_error:
            self._on_error(code, message)

    def _safe_stop_source(self) -> None:
        try:
            self._source.stop()
        except Exception:
            logger.exception("Stopping speech source failed")

    def _transition(self, to_state: SessionState) -> None:
        from_state = self._state
        if from_state == to_state:
            return
        self._state = to_state
        if self._on_state_change:
            self._on_state_change(from_state, to_state)
