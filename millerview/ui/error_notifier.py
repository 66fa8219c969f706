from __future__ import annotations
import time, traceback, logging
from typing import Optional
from PySide6.QtWidgets import QApplication, QMessageBox, QErrorMessage
from PySide6.QtCore import QObject, QTimer, Qt

from millerview.app.app_settings_manager import AppSettingsManager


logger = logging.getLogger(__name__)


class ErrorNotifier(QObject):
    """
    Logs errors and shows them to the user.

    Errors and critical failures open a message box, warnings go to a
    QErrorMessage (which lets the user silence repeats), anything else is
    shown in the active window's status bar. The same message is shown at
    most once per ``dedup_seconds``. Dialogs are always opened on the GUI
    thread through a zero-delay timer.

    Usage:
    >>> ErrorNotifier.instance().notify("Parse failed", "No valid indices found", severity="warning")
    """
    _instance: Optional[ErrorNotifier] = None
    _dev_mode: bool = False

    def __init__(self):
        super().__init__()
        self.dev_mode = ErrorNotifier._dev_mode
        self._last_shown: dict[str, float] = {}  # key -> timestamp
        self._suppress_window: QErrorMessage | None = None

    @classmethod
    def instance(cls) -> ErrorNotifier:
        if cls._instance is None:
            cls._instance = ErrorNotifier()
        return cls._instance

    @classmethod
    def configure(cls, settings: AppSettingsManager) -> None:
        """Show selectable detail text in development mode."""
        cls._dev_mode = settings.dev_mode
        if cls._instance is not None:
            cls._instance.dev_mode = settings.dev_mode

    def notify(self,
               title: str,
               msg: str,
               *,
               detail: Optional[str] = None,
               exc_info: Optional[tuple] = None,
               severity: str = "error",
               dedup_seconds: float = 2.0,
               ) -> None:
        if exc_info and exc_info[0] is not None:
            logger.error("%s: %s", title, msg, exc_info=exc_info)
        else:
            if severity in ("error", "critical"):
                logger.error("%s: %s", title, msg)
            elif severity == "warning":
                logger.warning("%s: %s", title, msg)
            else:
                logger.info("%s: %s", title, msg)

        now = time.monotonic()
        key = f"{severity}:{title}:{msg}"
        last = self._last_shown.get(key)
        if last is not None and now - last < dedup_seconds:
            return
        self._last_shown[key] = now

        def _show():
            if severity in ("error", "critical"):
                box = QMessageBox()
                box.setIcon(QMessageBox.Critical if severity == "critical"
                            else QMessageBox.Warning)
                box.setWindowTitle(title)
                box.setText(msg)

                det = detail
                if exc_info and exc_info[0] is not None and not det:
                    det = "".join(traceback.format_exception(*exc_info))
                if det:
                    box.setDetailedText(det)
                    if self.dev_mode:
                        box.setTextInteractionFlags(Qt.TextSelectableByMouse)
                box.exec()
            elif severity == "warning":
                if self._suppress_window is None:
                    self._suppress_window = QErrorMessage()
                self._suppress_window.showMessage(f"{title}: {msg}")
            else:
                app: QApplication = QApplication.instance()
                w = app.activeWindow() if app else None
                if w is not None and hasattr(w, "statusBar"):
                    w.statusBar().showMessage(f"{title}: {msg}", 5000)

        QTimer.singleShot(0, _show)
