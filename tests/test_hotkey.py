from __future__ import annotations

from unittest.mock import MagicMock

import pytest

import hotkey
from hotkey import GlobalHotkeyAdapter


def test_press_toggles_once_per_press(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(hotkey, "keyboard", MagicMock())
    toggles: list[int] = []
    adapter = GlobalHotkeyAdapter(hotkey_name="Key.f8")
    adapter.start(on_toggle=lambda: toggles.append(1))

    adapter._on_press("Key.f8")
    adapter._on_press("Key.f8")  # auto-repeat
    adapter._on_release("Key.f8")
    adapter._on_press("Key.f8")

    assert len(toggles) == 2


def test_other_keys_are_ignored(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(hotkey, "keyboard", MagicMock())
    toggles: list[int] = []
    adapter = GlobalHotkeyAdapter(hotkey_name="Key.f8")
    adapter.start(on_toggle=lambda: toggles.append(1))

    adapter._on_press("Key.f9")
    adapter._on_press("'a'")

    assert toggles == []


def test_start_without_pynput_raises(monkeypatch) -> None:  # noqa: ANN001
    monkeypatch.setattr(hotkey, "keyboard", None)
    with pytest.raises(RuntimeError, match="pynput"):
        GlobalHotkeyAdapter().start(on_toggle=lambda: None)


def test_stop_stops_listener(monkeypatch) -> None:  # noqa: ANN001
    fake_keyboard = MagicMock()
    monkeypatch.setattr(hotkey, "keyboard", fake_keyboard)
    adapter = GlobalHotkeyAdapter()
    adapter.start(on_toggle=lambda: None)

    adapter.stop()
    adapter.stop()

    fake_keyboard.Listener.return_value.stop.assert_called_once()
