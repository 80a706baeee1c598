"""Floating preview panel for interim dictation text."""

from __future__ import annotations

from typing import Callable, Optional

try:
    from PySide6.QtCore import Qt
    from PySide6.QtWidgets import (
        QApplication,
        QHBoxLayout,
        QLabel,
        QPushButton,
        QVBoxLayout,
        QWidget,
    )
except Exception:  # pragma: no cover
    Qt = None  # type: ignore
    QApplication = None  # type: ignore
    QHBoxLayout = object  # type: ignore
    QLabel = object  # type: ignore
    QPushButton = object  # type: ignore
    QVBoxLayout = object  # type: ignore
    QWidget = object  # type: ignore

PLACEHOLDER = "Listening..."

_PANEL_STYLE = (
    "#preview { background: #ffffff; border: 2px solid #0f6cbf; border-radius: 8px; }"
    "#header { background: #0f6cbf; }"
    "#title { color: white; font-weight: 600; font-size: 14px; }"
    "#close { background: none; border: none; color: white; font-size: 20px; }"
    "#text { color: #333333; font-size: 14px; padding: 12px; }"
    "#text[empty=\"true\"] { color: #999999; font-style: italic; }"
)


class _PreviewPanel(QWidget):
    def __init__(self, title: str, on_close: Callable[[], None]) -> None:
        super().__init__()
        self.setObjectName("preview")
        self.setWindowFlags(Qt.WindowStaysOnTopHint | Qt.FramelessWindowHint | Qt.Tool)
        self.setAttribute(Qt.WA_StyledBackground, True)
        self.setFixedWidth(350)
        self.setStyleSheet(_PANEL_STYLE)

        header = QWidget()
        header.setObjectName("header")
        title_label = QLabel(title)
        title_label.setObjectName("title")
        close_button = QPushButton("×")
        close_button.setObjectName("close")
        close_button.setToolTip("Close preview")
        close_button.clicked.connect(on_close)
        header_layout = QHBoxLayout(header)
        header_layout.setContentsMargins(12, 6, 6, 6)
        header_layout.addWidget(title_label)
        header_layout.addStretch(1)
        header_layout.addWidget(close_button)

        self.label = QLabel()
        self.label.setObjectName("text")
        self.label.setWordWrap(True)
        self.label.setMinimumHeight(60)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(0)
        layout.addWidget(header)
        layout.addWidget(self.label)

    def dock_bottom_right(self) -> None:
        """Place the panel 20px from the bottom-right corner of the primary screen."""
        screen = QApplication.primaryScreen()
        if screen is None:
            return
        geom = screen.availableGeometry()
        self.adjustSize()
        self.move(geom.right() - self.width() - 20, geom.bottom() - self.height() - 20)


class PreviewOverlay:
    """Shows what the recognizer has heard but not yet committed.

    The close button calls ``on_close``, which stops the owning session.
    """

    def __init__(self, on_close: Optional[Callable[[], None]] = None, title: str = "Speech Preview") -> None:
        if Qt is None:
            raise RuntimeError("PySide6 is not installed")
        self._on_close = on_close
        self._panel = _PreviewPanel(title, self._close_clicked)
        self.update("")

    def show(self) -> None:
        self.update("")
        self._panel.dock_bottom_right()
        self._panel.show()

    def hide(self) -> None:
        self._panel.hide()

    def update(self, text: str) -> None:
        label = self._panel.label
        empty = not text
        label.setText(PLACEHOLDER if empty else text)
        label.setProperty("empty", empty)
        label.style().unpolish(label)
        label.style().polish(label)

    def _close_clicked(self) -> None:
        if self._on_close is not None:
            self._on_close()
        self._panel.hide()
