"""Note editor window with a dictation toggle."""

from __future__ import annotations

from typing import Callable, Optional

try:
    from PySide6.QtWidgets import QPlainTextEdit, QPushButton, QVBoxLayout, QWidget
except Exception:  # pragma: no cover
    QPlainTextEdit = None  # type: ignore
    QPushButton = None  # type: ignore
    QVBoxLayout = None  # type: ignore
    QWidget = object  # type: ignore


class PlainTextEditDocument:
    """Document view of a QPlainTextEdit; text goes in at the cursor."""

    def __init__(self, editor: QPlainTextEdit) -> None:
        self._editor = editor

    def get_content(self) -> str:
        return self._editor.toPlainText()

    def insert_content(self, text: str) -> None:
        self._editor.insertPlainText(text)
        self._editor.ensureCursorVisible()


class EditorWindow(QWidget):
    """A plain-text note whose "Dictate" button toggles its own session.

    ``activate`` receives the window's document and a callback that mirrors
    the session state onto the button; it returns the toggle function, or
    None when dictation is unavailable.
    """

    def __init__(
        self,
        activate: Callable[[PlainTextEditDocument, Callable[[bool], None]], Optional[Callable[[], None]]],
        on_closed: Callable[[PlainTextEditDocument], None],
        title: str = "Note",
    ) -> None:
        if QPlainTextEdit is None:
            raise RuntimeError("PySide6 is not installed")
        super().__init__()
        self.setWindowTitle(title)
        self.resize(640, 480)
        self._on_closed = on_closed

        self.text_edit = QPlainTextEdit()
        self.document = PlainTextEditDocument(self.text_edit)

        self._button = QPushButton("Dictate")
        self._button.setCheckable(True)

        layout = QVBoxLayout(self)
        layout.addWidget(self._button)
        layout.addWidget(self.text_edit)

        self._active = False
        self._toggle = activate(self.document, self._set_active)
        if self._toggle is None:
            self._button.setEnabled(False)
            self._button.setToolTip("Speech recognition is not available")
        else:
            self._button.clicked.connect(self._clicked)

    def _clicked(self) -> None:
        self._toggle()
        # A failed start leaves the session idle without a state change.
        self._set_active(self._active)

    def _set_active(self, active: bool) -> None:
        self._active = active
        self._button.setChecked(active)
        self._button.setText("Stop dictation" if active else "Dictate")

    def closeEvent(self, event) -> None:  # noqa: ANN001, N802
        self._on_closed(self.document)
        super().closeEvent(event)
