import sys
import json
import logging

from pathlib import Path
from typing import Callable, Optional
from PySide6.QtWidgets import QMainWindow
from PySide6.QtGui import QKeySequence, QAction
from PySide6.QtCore import QSettings

from millerview.ui.error_notifier import ErrorNotifier
from millerview.app.app_settings_manager import APP_NAME, ORG_DOMAIN, AppSettingsManager


logger = logging.getLogger(__name__)


class ShortcutManager:
    """
    Keyboard shortcuts from ``shortcuts.json`` with user overrides.

    - Defaults come from ``<config_path>/shortcuts.json`` ({"command": "Ctrl+X"}).
    - User overrides live in QSettings under ``shortcuts/<command>``.
    - Call add_callback() to bind a command to a function.
    - A failing callback is reported through ErrorNotifier; in development
      mode the exception is re-raised after the report.
    """
    def __init__(self, parent: QMainWindow, config_path: Path,
                 settings_manager: Optional[AppSettingsManager] = None):
        self.parent = parent
        self.config_path = config_path
        self._shortcut_settings = QSettings(ORG_DOMAIN, APP_NAME)
        self._settings_manager: AppSettingsManager = settings_manager or AppSettingsManager()

        self._actions: dict[str, QAction] = {}
        self._callbacks: dict[str, Callable] = {}
        self._file_defaults = self._load_default_shortcut()
        self._shortcuts = dict(self._file_defaults)
        self._load_user_overrides()
        self._register_actions()

        logger.debug(
            "ShortcutManager initialized run mode: %s",
            self._settings_manager.run_mode.value,
        )

    def _load_default_shortcut(self) -> dict[str, str]:
        """
        Load the default config from `shortcuts.json`.
        File format example:
        {
            "reset_view": "R",
            "focus_input": "Ctrl+L"
        }
        """
        path = self.config_path / "shortcuts.json"
        logger.debug("Loading default shortcuts: %s", path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError) as e:
            logger.warning("Could not load %s: %s", path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring %s: top level is not an object", path)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def _load_user_overrides(self):
        """Override default shortcuts with user-defined shortcuts."""
        for cmd, default_seq in self._file_defaults.items():
            user_seq = self._shortcut_settings.value(f"shortcuts/{cmd}", default_seq)
            if user_seq:
                self._shortcuts[cmd] = user_seq

    def _register_actions(self):
        """Register one QAction per command on the parent window."""
        for cmd, seq in self._shortcuts.items():
            action = QAction(cmd.replace("_", " ").title(), self.parent)
            action.setShortcut(QKeySequence(seq))
            action.triggered.connect(lambda checked=False, c=cmd: self._on_action_triggered(c))
            self.parent.addAction(action)
            self._actions[cmd] = action

    def _on_action_triggered(self, cmd: str):
        """
        Trigger the callback function for the given command.
        :param cmd: Command name (e.g., "reset_view")
        """
        logger.debug("Action triggered: %s", cmd)
        cb = self._callbacks.get(cmd)
        if cb is None:
            ErrorNotifier.instance().notify(
                title="Unregistered Shortcut",
                msg=f"Command '{cmd}' is not registered.",
                severity="error",
                dedup_seconds=1.0,
            )
            return

        func_name = getattr(cb, "__qualname__", repr(cb))
        func_module = getattr(cb, "__module__", "")
        logger.info("Shortcut triggered: %s -> %s.%s", cmd, func_module, func_name)
        try:
            cb()
        except Exception:
            ErrorNotifier.instance().notify(
                title="Shortcut Error",
                msg=f"Error in shortcut callback for '{cmd}'",
                exc_info=sys.exc_info(),
                severity="error",
                dedup_seconds=1.0,
            )
            if self._settings_manager.dev_mode:
                raise

    def add_callback(self, command_name: str, callback: Callable):
        """
        Bind a callback to a command.
        :raises KeyError: if the command has no registered action.
        """
        if command_name not in self._actions:
            raise KeyError(f"Command '{command_name}' not found in registered actions.")
        self._callbacks[command_name] = callback

    def update_shortcut(self, cmd: str, new_seq: str) -> bool:
        """Rebind ``cmd``; refused if another action already uses ``new_seq``."""
        wanted = QKeySequence(new_seq).toString()
        for other, action in self._actions.items():
            if other != cmd and action.shortcut().toString() == wanted:
                return False
        action = self._actions.get(cmd)
        if not action:
            return False
        action.setShortcut(QKeySequence(new_seq))
        self._shortcut_settings.setValue(f"shortcuts/{cmd}", new_seq)
        return True

    def reset_to_default(self):
        self._shortcut_settings.remove("shortcuts")
        self._shortcuts = dict(self._file_defaults)
        for cmd, action in self._actions.items():
            action.setShortcut(QKeySequence(self._shortcuts[cmd]))

    def actions(self):
        return self._actions.values()
