# NOTE:
# Startup diagnostics (logging / Qt message handler) must be set up
#  before the QApplication instance is created.

import logging
import sys

from PySide6 import QtWidgets

from millerview.app.app_settings_manager import AppSettingsManager
from millerview.app.logging_setup import (
    LogSystem,
    apply_logging_policy,
    install_qt_message_handler,
    setup_startup_logging,
)

logger = logging.getLogger(__name__)

APP_NAME = "millerview"


def main():
    setup_startup_logging(app_name=APP_NAME)
    install_qt_message_handler()
    logs = LogSystem(APP_NAME)

    app = QtWidgets.QApplication.instance()
    if app is None:
        app = QtWidgets.QApplication(sys.argv)

    # Imported after QApplication so VTK's Qt binding picks up PySide6.
    from millerview.ui.error_notifier import ErrorNotifier
    from millerview.ui.mainwindow import MainWindow

    logger.info("App start")
    settings_mgr = AppSettingsManager()
    apply_logging_policy(logs, settings_mgr)
    ErrorNotifier.configure(settings_mgr)

    main_window = MainWindow(settings_mgr)

    app.aboutToQuit.connect(main_window.viewport.dispose)
    app.aboutToQuit.connect(logs.stop)
    try:
        rc = app.exec()
        logger.info("App exit (rc=%s)", rc)
        sys.exit(rc)
    finally:
        logs.stop()


if __name__ == "__main__":
    main()
