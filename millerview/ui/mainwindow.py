import copy
import logging

from PySide6.QtWidgets import (QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
                               QLabel, QLineEdit, QPushButton)

from millerview.app.app_settings_manager import AppSettingsManager
from millerview.app.shortcut_manager import ShortcutManager
from millerview.parsing.parser_client import create_parser_client
from millerview.status import STATUS_FIELDS, StatusField
from millerview.ui.viewport_widget import ViewportWidget
from millerview.utils.resource_paths import settings_dir
from millerview.viewers.camera.orbit_controls import CameraAngle
from millerview.viewers.controllers.viewport_controller import ViewportController

logger = logging.getLogger(__name__)

INPUT_PLACEHOLDER = "Enter Miller Indices (e.g., (100) or [111])"


class MainWindow(QMainWindow):
    """Input row on top, 3D viewport below, status bar at the bottom."""

    def __init__(self, settings_mgr: AppSettingsManager | None = None):
        """
        :param settings_mgr: Application settings manager.
        """
        super().__init__()

        self.setting = settings_mgr or AppSettingsManager()

        self.status_fields: dict[str, StatusField] = {
            k: copy.deepcopy(v) for k, v in STATUS_FIELDS.items()
        }
        self._status_label: dict[str, QLabel | None] = {}

        self.setWindowTitle("Miller Indices Visualizer")
        self._setup_ui()
        self._setup_controller()
        self._setup_menus()
        self._setup_status_bar()

        self.shortcut_mgr = ShortcutManager(
            parent=self,
            config_path=settings_dir(),
            settings_manager=self.setting,
        )
        self._register_shortcuts()

        self.show()

    def _setup_ui(self) -> None:
        central_widget = QWidget(self)
        self.setCentralWidget(central_widget)
        main_layout = QVBoxLayout(central_widget)

        input_row = QHBoxLayout()
        self.input_edit = QLineEdit(central_widget)
        self.input_edit.setPlaceholderText(INPUT_PLACEHOLDER)
        self.submit_button = QPushButton("Visualize", central_widget)
        input_row.addWidget(self.input_edit, stretch=1)
        input_row.addWidget(self.submit_button)
        main_layout.addLayout(input_row)

        self.viewport = ViewportWidget(settings_manager=self.setting, parent=central_widget)
        main_layout.addWidget(self.viewport, stretch=1)

        self.setGeometry(100, 100, 1200, 800)

    def _setup_controller(self) -> None:
        self.parser_client = create_parser_client(self.setting, parent=self)
        self.controller = ViewportController(
            scene_manager=self.viewport.scene_manager,
            parser_client=self.parser_client,
            parent=self,
        )

        self.input_edit.returnPressed.connect(self.submit_input)
        self.submit_button.clicked.connect(self.submit_input)
        self.viewport.scene_manager.cameraAngleChanged.connect(self._on_camera_angle_changed)
        self.viewport.scene_manager.transientNodeChanged.connect(self._on_visualization_changed)
        self.controller.submissionFailed.connect(self._on_submission_failed)

    def _setup_menus(self) -> None:
        menubar = self.menuBar()

        file_menu = menubar.addMenu("&File")
        file_menu.addAction("&Quit", self.close)

        view_menu = menubar.addMenu("&View")
        view_menu.addAction("&Reset View", self.reset_view)
        view_menu.addAction("&Clear Visualization", self.controller.clear)

    def _setup_status_bar(self) -> None:
        status_bar = self.statusBar()
        for key, field in self.status_fields.items():
            if not field.visible:
                self._status_label[key] = None
                continue
            label = QLabel("", self)
            status_bar.addPermanentWidget(label)
            self._status_label[key] = label
        self._update_status("visualization", None)

    def _register_shortcuts(self) -> None:
        self.shortcut_mgr.add_callback("reset_view", self.reset_view)
        self.shortcut_mgr.add_callback("clear_visualization", self.controller.clear)
        self.shortcut_mgr.add_callback("focus_input", self.input_edit.setFocus)

    # =====================================================
    # Actions
    # =====================================================

    def submit_input(self) -> None:
        self.controller.submit(self.input_edit.text())

    def reset_view(self) -> None:
        if self.viewport.scene_manager.is_initialized:
            self.viewport.scene_manager.reset_camera()

    # =====================================================
    # Signal Handlers
    # =====================================================

    def _on_camera_angle_changed(self, angle: CameraAngle) -> None:
        self._update_status("azimuth", angle.azimuth)
        self._update_status("elevation", angle.elevation)

    def _on_visualization_changed(self, node) -> None:
        self._update_status("visualization", node)

    def _on_submission_failed(self, title: str, message: str) -> None:
        self.statusBar().showMessage(f"{title}: {message}", 5000)

    def _update_status(self, key: str, value) -> None:
        """Update status bar label."""
        field = self.status_fields.get(key)
        if field is None:
            return
        field.value = value

        label = self._status_label.get(key)
        if label is None:
            return
        label.setText(field.formatter(value))

    def closeEvent(self, event) -> None:
        self.viewport.dispose()
        super().closeEvent(event)
