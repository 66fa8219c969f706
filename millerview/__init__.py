"""millerview - interactive 3D viewer for Miller planes and directions."""

__version__ = "0.1.0"
