"""Document targets that dictated text is committed to."""

from __future__ import annotations

import logging
import sys
import time

from errors import ERROR_MESSAGES, NO_ACTIVE_TARGET, InsertFailure
from models import PasteResult

try:
    import pyperclip
except Exception:  # pragma: no cover
    pyperclip = None  # type: ignore

try:
    from pynput.keyboard import Controller, Key
except Exception:  # pragma: no cover
    Controller = None  # type: ignore
    Key = None  # type: ignore

logger = logging.getLogger(__name__)

class TextBuffer:
    """Plain-text document held in memory, with a cursor."""

    def __init__(self, content: str = "", cursor: int | None = None) -> None:
        self._content = content
        self._cursor = len(content) if cursor is None else max(0, min(cursor, len(content)))

    @property
    def cursor(self) -> int:
        return self._cursor

    def move_cursor(self, position: int) -> None:
        self._cursor = max(0, min(position, len(self._content)))

    def get_content(self) -> str:
        return self._content

    def insert_content(self, text: str) -> None:
        self._content = self._content[: self._cursor] + text + self._content[self._cursor :]
        self._cursor += len(text)


class ClipboardDocument:
    """Types into whichever application has focus by pasting from the clipboard.

    The focused application cannot be read back, so the content is the text
    this document has pasted so far.
    """

    def __init__(self, restore_delay_s: float = 0.1) -> None:
        self._restore_delay_s = restore_delay_s
        self._pasted = ""

    def get_content(self) -> str:
        return self._pasted

    def insert_content(self, text: str) -> None:
        result = self.paste_text(text)
        if not result.success:
            logger.warning("%s (%s)", ERROR_MESSAGES[NO_ACTIVE_TARGET], result.reason)
            raise InsertFailure(
                f"{ERROR_MESSAGES[NO_ACTIVE_TARGET]} ({result.reason})", code=NO_ACTIVE_TARGET
            )
        self._pasted += text

    def paste_text(self, text: str) -> PasteResult:
        if not text:
            return PasteResult(success=False, reason="empty text", clipboard_restored=True)
        if pyperclip is None or Controller is None or Key is None:
            return PasteResult(
                success=False,
                reason="clipboard/keyboard dependency missing",
                clipboard_restored=False,
            )

        old_clip: str | None = None
        try:
            old_clip = pyperclip.paste()
            pyperclip.copy(text)
            modifier = Key.cmd if sys.platform == "darwin" else Key.ctrl
            keyboard = Controller()
            with keyboard.pressed(modifier):
                keyboard.press("v")
                keyboard.release("v")
            time.sleep(self._restore_delay_s)
            pyperclip.copy(old_clip)
            return PasteResult(success=True, reason="ok", clipboard_restored=True)
        except Exception as exc:
            # The dictated text stays on the clipboard so it is not lost.
            return PasteResult(
                success=False,
                reason=f"{NO_ACTIVE_TARGET}: {exc}",
                clipboard_restored=False,
            )
