"""Owner of the 3D scene, its camera, render window and render loop."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import vtk
from PySide6 import QtCore

from millerview.app.app_settings_manager import ViewConfig
from millerview.core.errors import SceneStateError
from millerview.core.geometry_utils import Vector3
from millerview.viewers.camera.orbit_controls import CameraAngle, OrbitControls
from millerview.viewers.interactor_styles.orbit_interactor_style import OrbitInteractorStyle
from millerview.viewers.scene_nodes import CELL_CENTER, NodeRole, SceneNode, create_persistent_nodes

logger = logging.getLogger(__name__)

DEFAULT_CAMERA_POSITION: Vector3 = (2.0, 2.0, 2.0)
DEFAULT_VIEW_UP: Vector3 = (0.0, 0.0, 1.0)
DEFAULT_BACKGROUND = (0.08, 0.08, 0.1)


@dataclass
class ViewState:
    """Render target size and the aspect ratio derived from it."""
    width: int
    height: int

    @property
    def aspect(self) -> float:
        return self.width / self.height


@dataclass
class SceneState:
    """
    Everything SceneManager creates in initialize() and releases in dispose().

    ``persistent`` never changes after initialize(); ``transient`` holds the
    current visualization or None.
    """
    renderer: vtk.vtkRenderer
    camera: vtk.vtkCamera
    render_window: Any
    controls: OrbitControls
    timer: QtCore.QTimer
    view: ViewState
    persistent: list[SceneNode] = field(default_factory=list)
    transient: SceneNode | None = None
    interactor: Any = None
    interactor_style: OrbitInteractorStyle | None = None
    owns_render_window: bool = False
    frame_count: int = 0


def _validated_size(size: tuple[int, int]) -> tuple[int, int]:
    width, height = int(size[0]), int(size[1])
    if width <= 0 or height <= 0:
        raise ValueError(f"Viewport size must be positive, got {size}")
    return width, height


class SceneManager(QtCore.QObject):
    """
    Scene lifecycle: initialize, per-frame render, resize, dispose.

    The scene holds a fixed set of persistent nodes (axes, grid, unit cell)
    and at most one transient node. Only this class mutates the renderer,
    camera and render window. A second dispose() is a no-op.

    Usage:
        with SceneManager(view_config) as scene:
            scene.initialize((800, 600), render_window, interactor)
            scene.set_transient_node(node)
    """

    transientNodeChanged = QtCore.Signal(object)
    cameraAngleChanged = QtCore.Signal(object)

    def __init__(self,
                 view_config: ViewConfig | None = None,
                 camera_position: Vector3 = DEFAULT_CAMERA_POSITION,
                 focal_point: Vector3 = CELL_CENTER,
                 background: tuple[float, float, float] = DEFAULT_BACKGROUND,
                 parent: QtCore.QObject | None = None) -> None:
        super().__init__(parent)
        self.view_config = view_config or ViewConfig()
        self.camera_position = camera_position
        self.focal_point = focal_point
        self.background = background
        self._state: SceneState | None = None

    def __enter__(self) -> SceneManager:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.dispose()

    # =====================================================
    # State access
    # =====================================================

    @property
    def is_initialized(self) -> bool:
        return self._state is not None

    @property
    def state(self) -> SceneState:
        if self._state is None:
            raise SceneStateError("Scene is not initialized.")
        return self._state

    @property
    def transient_node(self) -> SceneNode | None:
        return self.state.transient

    @property
    def persistent_nodes(self) -> list[SceneNode]:
        return list(self.state.persistent)

    def scene_props(self) -> list[vtk.vtkProp]:
        """Props currently held by the renderer, in insertion order."""
        props = self.state.renderer.GetViewProps()
        props.InitTraversal()
        return [props.GetNextProp() for _ in range(props.GetNumberOfItems())]

    # =====================================================
    # Lifecycle
    # =====================================================

    def initialize(self,
                   container_size: tuple[int, int],
                   render_window: Any = None,
                   interactor: Any = None) -> SceneState:
        """
        Build the scene and start the render loop.

        :param container_size: (width, height) of the hosting surface in pixels.
        :param render_window: Window to draw into. An off-screen
            vtkRenderWindow is created when omitted.
        :param interactor: Optional interactor; receives the orbit style.
        :raises SceneStateError: if already initialized.
        """
        if self._state is not None:
            raise SceneStateError("Scene is already initialized; call dispose() first.")
        width, height = _validated_size(container_size)
        cfg = self.view_config

        renderer = vtk.vtkRenderer()
        renderer.SetBackground(*self.background)

        camera = renderer.GetActiveCamera()
        camera.SetViewAngle(cfg.field_of_view)
        camera.SetPosition(*self.camera_position)
        camera.SetFocalPoint(*self.focal_point)
        camera.SetViewUp(*DEFAULT_VIEW_UP)
        camera.OrthogonalizeViewUp()
        camera.SetClippingRange(cfg.near_plane, cfg.far_plane)
        camera.UseExplicitAspectRatioOn()
        camera.SetExplicitAspectRatio(width / height)

        owns_render_window = render_window is None
        if owns_render_window:
            render_window = vtk.vtkRenderWindow()
            render_window.SetOffScreenRendering(1)
        render_window.AddRenderer(renderer)
        render_window.SetSize(width, height)

        controls = OrbitControls(camera,
                                 damping_factor=cfg.damping_factor,
                                 rotation_factor=cfg.rotation_factor)
        controls.add_angle_changed_callback(self._on_camera_angle_changed)

        style = None
        if interactor is not None:
            style = OrbitInteractorStyle(controls)
            interactor.SetInteractorStyle(style)

        persistent = create_persistent_nodes()
        for node in persistent:
            renderer.AddViewProp(node.prop)

        timer = QtCore.QTimer(self)
        timer.setInterval(cfg.frame_interval_ms)
        timer.setTimerType(QtCore.Qt.PreciseTimer)
        timer.timeout.connect(self.render_loop_tick)

        self._state = SceneState(
            renderer=renderer,
            camera=camera,
            render_window=render_window,
            controls=controls,
            timer=timer,
            view=ViewState(width, height),
            persistent=persistent,
            interactor=interactor,
            interactor_style=style,
            owns_render_window=owns_render_window,
        )

        timer.start()
        logger.info("Scene initialized: size=%dx%d fov=%s interval=%dms",
                    width, height, cfg.field_of_view, cfg.frame_interval_ms)
        return self._state

    def render_loop_tick(self) -> None:
        """Advance the controls by one frame and redraw."""
        state = self._state
        if state is None:
            return
        state.controls.update()
        state.render_window.Render()
        state.frame_count += 1

    def resize(self, new_size: tuple[int, int]) -> None:
        """
        Match the camera aspect and the render target to a new size.

        Non-positive sizes (a collapsed widget) are ignored.
        """
        state = self.state
        width, height = int(new_size[0]), int(new_size[1])
        if width <= 0 or height <= 0:
            logger.debug("Ignoring resize to %sx%s", width, height)
            return
        if (width, height) == (state.view.width, state.view.height):
            return

        state.view = ViewState(width, height)
        state.camera.SetExplicitAspectRatio(state.view.aspect)
        state.render_window.SetSize(width, height)
        logger.debug("Scene resized to %dx%d (aspect %.3f)", width, height, state.view.aspect)

    def set_transient_node(self, node: SceneNode | None) -> None:
        """
        Replace the current visualization with ``node`` (or with nothing).

        :raises SceneStateError: if ``node`` is not tagged transient.
        """
        state = self.state
        if node is not None and node.role is not NodeRole.TRANSIENT:
            raise SceneStateError(f"Only transient nodes can be swapped in, got {node!r}")
        previous = state.transient
        if node is previous:
            return

        if previous is not None:
            state.renderer.RemoveViewProp(previous.prop)
        if node is not None:
            state.renderer.AddViewProp(node.prop)
        state.transient = node

        logger.info("Transient node: %r -> %r", previous, node)
        self.transientNodeChanged.emit(node)

    def reset_camera(self) -> None:
        """Return the camera to its initial pose."""
        self.state.controls.reset()

    def dispose(self) -> None:
        """Stop the loop and release every rendering resource."""
        state = self._state
        if state is None:
            logger.debug("dispose() on a scene that is not initialized; ignored")
            return
        self._state = None

        state.timer.stop()
        state.timer.timeout.disconnect(self.render_loop_tick)
        state.timer.deleteLater()

        state.controls.remove_angle_changed_callback(self._on_camera_angle_changed)
        state.controls.stop()
        if state.interactor_style is not None:
            state.interactor_style.RemoveAllObservers()
            state.interactor.SetInteractorStyle(None)

        state.renderer.RemoveAllViewProps()
        state.render_window.RemoveRenderer(state.renderer)
        # a borrowed window is finalized by its host
        if state.owns_render_window:
            state.render_window.Finalize()

        state.persistent.clear()
        state.transient = None
        logger.info("Scene disposed after %d frames", state.frame_count)

    # =====================================================
    # Callbacks
    # =====================================================

    def _on_camera_angle_changed(self, angle: CameraAngle) -> None:
        self.cameraAngleChanged.emit(angle)
