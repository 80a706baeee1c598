"""Application entrypoint."""

from __future__ import annotations

import logging
import sys
from typing import Callable, List

from config import JsonConfigStore
from documents import ClipboardDocument
from editor import EditorWindow
from errors import ERROR_MESSAGES
from hotkey import GlobalHotkeyAdapter
from logging_setup import setup_logging
from overlay import PreviewOverlay
from recognizer import DashscopeSpeechSource
from session_registry import SessionRegistry

try:
    from PySide6.QtCore import QObject, QSize, Signal
    from PySide6.QtGui import QAction, QBrush, QColor, QIcon, QPainter, QPixmap
    from PySide6.QtWidgets import QApplication, QInputDialog, QMenu, QMessageBox, QSystemTrayIcon
except Exception as exc:  # pragma: no cover
    raise SystemExit(f"PySide6 is required to run the desktop app: {exc}")

logger = logging.getLogger(__name__)


def _create_icon(color: str = "#888888", size: int = 22) -> QIcon:
    """Generate a simple circular tray icon with the given color."""
    pixmap = QPixmap(QSize(size, size))
    pixmap.fill(QColor(0, 0, 0, 0))  # transparent background
    painter = QPainter(pixmap)
    painter.setRenderHint(QPainter.Antialiasing, True)
    painter.setBrush(QBrush(QColor(color)))
    painter.setPen(QColor(color))
    painter.drawEllipse(2, 2, size - 4, size - 4)
    painter.end()
    return QIcon(pixmap)


ICON_IDLE = "#888888"       # grey
ICON_LISTENING = "#FF4444"  # red


class UIBridge(QObject):
    """Runs callables from SDK/hotkey threads on the Qt main thread."""

    call_signal = Signal(object)

    def __init__(self) -> None:
        super().__init__()
        self.call_signal.connect(self._run)

    def dispatch(self, fn: Callable[[], None]) -> None:
        self.call_signal.emit(fn)

    def _run(self, fn: Callable[[], None]) -> None:
        fn()


class App:
    def __init__(self) -> None:
        self.app = QApplication(sys.argv)
        self.app.setQuitOnLastWindowClosed(False)
        self.config_store = JsonConfigStore()
        setup_logging(self.config_store.directory / "logs", self.config_store.get_log_level())

        self.ui = UIBridge()

        self.sources: List[DashscopeSpeechSource] = []
        self.registry = SessionRegistry(
            source_factory=self._new_source,
            preview_factory=lambda on_close: PreviewOverlay(on_close=on_close),
            is_available=DashscopeSpeechSource.is_available,
            on_error=self._on_error,
        )
        self.windows: List[EditorWindow] = []
        self.anywhere = ClipboardDocument()
        self.hotkey = GlobalHotkeyAdapter(hotkey_name=self.config_store.get_hotkey())

        self.tray = QSystemTrayIcon()
        self.tray.setIcon(_create_icon(ICON_IDLE))
        self.tray.setToolTip("speakwrite — Ready")
        self._setup_menu()
        self.tray.show()

    def _setup_menu(self) -> None:
        menu = QMenu()

        note_action = QAction("New Note", menu)
        note_action.triggered.connect(self._new_note)
        menu.addAction(note_action)

        self.anywhere_action = QAction("Dictate Anywhere", menu)
        self.anywhere_action.setCheckable(True)
        menu.addAction(self.anywhere_action)
        toggle = self.registry.activate(self.anywhere, self._on_anywhere_active)
        if toggle is None:
            self.anywhere_action.setEnabled(False)
        else:
            self.anywhere_action.triggered.connect(lambda _checked=False: self._toggle_anywhere())

        menu.addSeparator()
        for label, handler in (
            ("Set API Key", self._set_api_key),
            ("Set Hotkey", self._set_hotkey),
            ("Set Language", self._set_language),
        ):
            action = QAction(label, menu)
            action.triggered.connect(handler)
            menu.addAction(action)

        menu.addSeparator()
        quit_action = QAction("Quit", menu)
        quit_action.triggered.connect(self.quit)
        menu.addAction(quit_action)

        self.tray.setContextMenu(menu)

    def _new_source(self) -> DashscopeSpeechSource:
        source = DashscopeSpeechSource(self.config_store, dispatch=self.ui.dispatch)
        self.sources.append(source)
        return source

    def _new_note(self) -> None:
        window = EditorWindow(
            activate=self._activate_note,
            on_closed=self._note_closed,
            title=f"Note {len(self.windows) + 1}",
        )
        self.windows.append(window)
        window.show()

    def _activate_note(self, document, on_active_change):  # noqa: ANN001, ANN202
        def on_change(active: bool) -> None:
            on_active_change(active)
            self._refresh_tray()

        return self.registry.activate(document, on_change)

    def _note_closed(self, document) -> None:  # noqa: ANN001
        self.registry.release(document)
        self.windows = [w for w in self.windows if w.document is not document]
        self._refresh_tray()

    def _toggle_anywhere(self) -> None:
        self.registry.toggle(self.anywhere)
        self.anywhere_action.setChecked(self.registry.is_listening(self.anywhere))

    def _set_api_key(self) -> None:
        value, ok = QInputDialog.getText(None, "API Key", "DashScope API Key")
        if not ok:
            return
        self.config_store.set_api_key(value)
        QMessageBox.information(None, "Saved", "API Key saved. It is used from the next dictation.")

    def _set_hotkey(self) -> None:
        value, ok = QInputDialog.getText(
            None, "Hotkey", "Use pynput key format, e.g. Key.f8"
        )
        if not ok or not value:
            return
        self.config_store.set_hotkey(value)
        QMessageBox.information(None, "Saved", "Hotkey saved. Restart app to apply.")

    def _set_language(self) -> None:
        value, ok = QInputDialog.getText(
            None, "Language", "Recognition language, e.g. en, zh, ja (empty for auto)",
            text=self.config_store.get_language(),
        )
        if not ok:
            return
        self.config_store.set_language(value)

    # ------------------------------------------------------------------
    # Callbacks (always on the UI thread)
    # ------------------------------------------------------------------

    def _on_anywhere_active(self, active: bool) -> None:
        self.anywhere_action.setChecked(active)
        self._refresh_tray()

    def _on_error(self, code: str, message: str) -> None:
        title = ERROR_MESSAGES.get(code, "Dictation error")
        self.tray.showMessage(title, message or code, QSystemTrayIcon.Warning, 3000)

    def _refresh_tray(self) -> None:
        if self.registry.any_listening():
            self.tray.setIcon(_create_icon(ICON_LISTENING))
            self.tray.setToolTip("speakwrite — Listening...")
        else:
            self.tray.setIcon(_create_icon(ICON_IDLE))
            self.tray.setToolTip("speakwrite — Ready")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        try:
            self.hotkey.start(on_toggle=lambda: self.ui.dispatch(self._toggle_anywhere))
        except Exception as exc:
            logger.warning("Hotkey disabled: %s", exc)
            self.tray.showMessage("Hotkey disabled", str(exc), QSystemTrayIcon.Warning, 3000)
        return self.app.exec()

    def quit(self) -> None:
        self.hotkey.stop()
        self.registry.release_all()
        for source in self.sources:
            source.wait_stopped(timeout=2.0)
        self.app.quit()


def main() -> int:
    app = App()
    return app.run()


if __name__ == "__main__":
    raise SystemExit(main())
