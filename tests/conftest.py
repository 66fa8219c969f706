import os

# Must be set before any QApplication exists.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from pathlib import Path

import pytest
from PySide6.QtCore import QSettings

from millerview.app.app_settings_manager import APP_NAME, ORG_DOMAIN


@pytest.fixture
def tmp_settings(tmp_path: Path, qapp):
    """Point QSettings at an INI file under tmp_path so tests never share state."""
    QSettings.setDefaultFormat(QSettings.IniFormat)
    QSettings.setPath(QSettings.IniFormat, QSettings.UserScope, str(tmp_path))
    s = QSettings(ORG_DOMAIN, APP_NAME)
    s.clear()
    yield s
    s.clear()


class FakeRenderWindow:
    """Records what SceneManager asks of a vtkRenderWindow, without OpenGL."""

    def __init__(self):
        self.renderers = []
        self.size = (0, 0)
        self.render_count = 0
        self.finalized = False

    def AddRenderer(self, renderer):
        self.renderers.append(renderer)

    def RemoveRenderer(self, renderer):
        self.renderers.remove(renderer)

    def SetSize(self, width, height):
        self.size = (width, height)

    def GetSize(self):
        return self.size

    def Render(self):
        self.render_count += 1

    def Finalize(self):
        self.finalized = True


@pytest.fixture
def fake_window():
    return FakeRenderWindow()
