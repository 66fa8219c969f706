"""Qt widget hosting the VTK viewport."""
from __future__ import annotations

import logging

from PySide6 import QtWidgets, QtCore
from vtkmodules.qt.QVTKRenderWindowInteractor import QVTKRenderWindowInteractor

from millerview.app.app_settings_manager import AppSettingsManager
from millerview.viewers.scene_manager import SceneManager

logger = logging.getLogger(__name__)


class ViewportWidget(QtWidgets.QWidget):
    """
    Embeds a QVTKRenderWindowInteractor and drives the SceneManager
    lifecycle from Qt events:

    - first show -> initialize()
    - resize of the VTK widget -> resize(), in device pixels
    - close -> dispose()
    """

    sceneReady = QtCore.Signal()

    def __init__(
            self,
            settings_manager: AppSettingsManager | None = None,
            parent: QtWidgets.QWidget | None = None,
    ) -> None:
        super().__init__(parent)
        self.setting = settings_manager or AppSettingsManager()

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        self.vtk_widget = QVTKRenderWindowInteractor(self)
        layout.addWidget(self.vtk_widget)
        self.setLayout(layout)
        self.setMinimumSize(320, 240)

        self.scene_manager = SceneManager(self.setting.view, parent=self)
        self.vtk_widget.installEventFilter(self)

        logger.debug("Viewport widget created.")

    def _device_size(self) -> tuple[int, int]:
        ratio = self.vtk_widget.devicePixelRatioF()
        return (max(1, round(self.vtk_widget.width() * ratio)),
                max(1, round(self.vtk_widget.height() * ratio)))

    def showEvent(self, event) -> None:
        super().showEvent(event)
        if self.scene_manager.is_initialized:
            return
        render_window = self.vtk_widget.GetRenderWindow()
        interactor = render_window.GetInteractor()
        self.scene_manager.initialize(self._device_size(), render_window, interactor)
        interactor.Initialize()
        self.sceneReady.emit()

    def eventFilter(self, obj, event):
        if obj is self.vtk_widget and event.type() == QtCore.QEvent.Resize:
            if self.scene_manager.is_initialized:
                self.scene_manager.resize(self._device_size())
        return super().eventFilter(obj, event)

    def closeEvent(self, event) -> None:
        self.dispose()
        super().closeEvent(event)

    def dispose(self) -> None:
        """Release the scene and the VTK widget's window."""
        if self.scene_manager.is_initialized:
            self.scene_manager.dispose()
            self.vtk_widget.Finalize()
