import json
import logging
from pathlib import Path

import pytest
from PySide6 import QtWidgets
from PySide6.QtCore import QSettings

from millerview.app import shortcut_manager as sm
from millerview.app.app_settings_manager import APP_NAME, ORG_DOMAIN


class StubNotifier:
    calls = []

    @classmethod
    def instance(cls):
        return cls

    @classmethod
    def notify(cls, **kwargs):
        cls.calls.append(kwargs)


@pytest.fixture(autouse=True)
def stub_error_notifier(monkeypatch):
    """Record notifications instead of opening dialogs."""
    monkeypatch.setattr(sm, "ErrorNotifier", StubNotifier)
    StubNotifier.calls.clear()
    yield
    StubNotifier.calls.clear()


@pytest.fixture
def config_dir(tmp_path: Path):
    cfg = tmp_path / "settings"
    cfg.mkdir(parents=True, exist_ok=True)
    defaults = {
        "reset_view": "r",
        "clear_visualization": "Ctrl+Backspace",
    }
    (cfg / "shortcuts.json").write_text(json.dumps(defaults), encoding="utf-8")
    return cfg


@pytest.fixture
def main_window(qtbot):
    win = QtWidgets.QMainWindow()
    win.setWindowTitle("Test")
    qtbot.addWidget(win)
    return win


def test_registers_actions_and_callbacks(tmp_settings, config_dir, main_window):
    mgr = sm.ShortcutManager(main_window, config_dir)
    assert set(mgr._actions) == {"reset_view", "clear_visualization"}
    assert mgr._actions["reset_view"].shortcut().toString() == "R"
    assert mgr._actions["reset_view"] in main_window.actions()

    called = {"reset": 0}

    def cb():
        called["reset"] += 1

    mgr.add_callback("reset_view", cb)
    mgr._actions["reset_view"].trigger()
    assert called["reset"] == 1


def test_add_callback_for_unknown_command(tmp_settings, config_dir, main_window):
    mgr = sm.ShortcutManager(main_window, config_dir)
    with pytest.raises(KeyError):
        mgr.add_callback("explode", lambda: None)


def test_unregistered_shortcut_notifier(tmp_settings, config_dir, main_window):
    mgr = sm.ShortcutManager(main_window, config_dir)
    mgr._on_action_triggered("nonexistent")
    assert len(StubNotifier.calls) == 1
    note = StubNotifier.calls[0]
    assert note["title"].startswith("Unregistered")
    assert "not registered" in note["msg"]


def test_development_mode_raises_after_notify(tmp_settings, config_dir, main_window):
    settings_manager = sm.AppSettingsManager()
    settings_manager.set_run_mode("development")
    mgr = sm.ShortcutManager(main_window, config_dir, settings_manager=settings_manager)

    def bad():
        raise RuntimeError("boom")

    mgr.add_callback("reset_view", bad)
    with pytest.raises(RuntimeError):
        mgr._on_action_triggered("reset_view")
    assert StubNotifier.calls, "Notifier should be called before re-raise"
    assert "Error" in StubNotifier.calls[0]["title"]


def test_production_mode_swallows_and_continues(tmp_settings, config_dir, main_window):
    settings_manager = sm.AppSettingsManager()
    settings_manager.set_run_mode("production")
    mgr = sm.ShortcutManager(main_window, config_dir, settings_manager=settings_manager)

    def bad():
        raise ValueError("bad")

    mgr.add_callback("reset_view", bad)
    mgr._on_action_triggered("reset_view")
    assert StubNotifier.calls, "Notifier should be called in production mode"
    assert StubNotifier.calls[0]["exc_info"][0] is ValueError


def test_update_shortcut_conflict(tmp_settings, config_dir, main_window):
    mgr = sm.ShortcutManager(main_window, config_dir)
    existing = mgr._actions["reset_view"].shortcut().toString()
    assert mgr.update_shortcut("clear_visualization", existing) is False
    assert mgr.update_shortcut("unknown", "F9") is False


def test_update_shortcut_persists(tmp_settings, config_dir, main_window):
    mgr = sm.ShortcutManager(main_window, config_dir)
    assert mgr.update_shortcut("reset_view", "F5") is True
    assert mgr._actions["reset_view"].shortcut().toString() == "F5"
    assert QSettings(ORG_DOMAIN, APP_NAME).value("shortcuts/reset_view") == "F5"

    mgr.reset_to_default()
    assert mgr._actions["reset_view"].shortcut().toString() == "R"
    assert QSettings(ORG_DOMAIN, APP_NAME).value("shortcuts/reset_view") is None


def test_user_overrides_are_loaded(tmp_settings, config_dir, main_window):
    s = QSettings(ORG_DOMAIN, APP_NAME)
    s.setValue("shortcuts/reset_view", "v")
    mgr = sm.ShortcutManager(main_window, config_dir)
    # key sequences are normalized to upper case
    assert mgr._actions["reset_view"].shortcut().toString() == "V"


def test_missing_shortcuts_file(tmp_settings, tmp_path, main_window):
    mgr = sm.ShortcutManager(main_window, tmp_path / "nowhere")
    assert list(mgr.actions()) == []


def test_info_logging_contains_command_and_callback(
        tmp_settings, config_dir, main_window, caplog):
    caplog.set_level(logging.INFO, logger=sm.__name__)
    mgr = sm.ShortcutManager(main_window, config_dir)

    def cb():
        pass

    mgr.add_callback("reset_view", cb)
    mgr._on_action_triggered("reset_view")
    assert "Shortcut triggered: reset_view" in caplog.text
    assert "cb" in caplog.text
