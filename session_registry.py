"""Per-document session registry and the toggle activation surface."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from errors import ERROR_MESSAGES, SPEECH_UNAVAILABLE
from interfaces import Document, PreviewSurface, SpeechSource
from models import SessionState
from session_engine import SessionEngine

logger = logging.getLogger(__name__)

SourceFactory = Callable[[], SpeechSource]
PreviewFactory = Callable[[Callable[[], None]], PreviewSurface]
ActiveCallback = Callable[[bool], None]
ErrorCallback = Callable[[str, str], None]


class SessionRegistry:
    """Owns one SessionEngine per document.

    Sessions are created lazily on first use and must be dropped with
    ``release`` when their document goes away.
    """

    def __init__(
        self,
        source_factory: SourceFactory,
        preview_factory: PreviewFactory,
        is_available: Callable[[], bool] = lambda: True,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._source_factory = source_factory
        self._preview_factory = preview_factory
        self._is_available = is_available
        self._on_error = on_error
        self._sessions: Dict[Any, SessionEngine] = {}
        self._listeners: Dict[Any, List[ActiveCallback]] = {}
        self._unavailable_reported = False

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, document: object) -> bool:
        return document in self._sessions

    def session_for(self, document: Document) -> SessionEngine:
        session = self._sessions.get(document)
        if session is None:
            preview = self._preview_factory(lambda: self.stop(document))
            session = SessionEngine(
                source=self._source_factory(),
                document=document,
                preview=preview,
                on_state_change=lambda f, t: self._notify(document, t),
                on_error=self._emit_error,
            )
            self._sessions[document] = session
            self._listeners[document] = []
        return session

    def activate(
        self,
        document: Document,
        on_active_change: Optional[ActiveCallback] = None,
    ) -> Optional[Callable[[], None]]:
        """Wire a toggle control for ``document``.

        Returns the toggle function, or None when speech recognition is not
        available on this system.
        """
        if not self._is_available():
            if not self._unavailable_reported:
                self._unavailable_reported = True
                logger.warning("Speech recognition not supported on this system")
                self._emit_error(SPEECH_UNAVAILABLE, ERROR_MESSAGES[SPEECH_UNAVAILABLE])
            return None
        session = self.session_for(document)
        if on_active_change is not None:
            self._listeners[document].append(on_active_change)
            on_active_change(session.recognizing)
        return lambda: self.toggle(document)

    def toggle(self, document: Document) -> None:
        self.session_for(document).toggle()

    def stop(self, document: Document) -> None:
        session = self._sessions.get(document)
        if session is not None:
            session.stop()

    def is_listening(self, document: Document) -> bool:
        session = self._sessions.get(document)
        return session is not None and session.recognizing

    def any_listening(self) -> bool:
        return any(s.recognizing for s in self._sessions.values())

    def release(self, document: Document) -> None:
        session = self._sessions.pop(document, None)
        self._listeners.pop(document, None)
        if session is not None:
            session.stop()

    def release_all(self) -> None:
        for document in list(self._sessions):
            self.release(document)

    def _notify(self, document: Document, state: SessionState) -> None:
        active = state == SessionState.LISTENING
        for listener in list(self._listeners.get(document, ())):
            listener(active)

    def _emit_error(self, code: str, message: str) -> None:
        if self._on_error:
            self._on_error(code, message)
