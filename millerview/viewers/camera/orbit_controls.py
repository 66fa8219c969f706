"""Orbit-style camera controls with inertia."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

import vtk

from millerview.core import geometry_utils
from millerview.utils import vtk_helpers

logger = logging.getLogger(__name__)

# Keep the camera off the poles so the view-up vector stays defined.
MAX_ELEVATION_DEG = 89.0

# Pending motion below this many degrees is dropped.
REST_THRESHOLD_DEG = 1e-3


@dataclass(frozen=True)
class CameraAngle:
    """Camera angles in degrees, derived from the camera pose."""
    azimuth: float
    elevation: float

    def __str__(self) -> str:
        return f"Azimuth: {self.azimuth:.1f}, Elevation: {self.elevation:.1f}"


@dataclass(frozen=True)
class CameraPose:
    position: tuple[float, float, float]
    focal_point: tuple[float, float, float]
    view_up: tuple[float, float, float]

    @classmethod
    def from_camera(cls, camera: vtk.vtkCamera) -> CameraPose:
        return cls(tuple(camera.GetPosition()),
                   tuple(camera.GetFocalPoint()),
                   tuple(camera.GetViewUp()))

    def apply_to(self, camera: vtk.vtkCamera) -> None:
        camera.SetPosition(*self.position)
        camera.SetFocalPoint(*self.focal_point)
        camera.SetViewUp(*self.view_up)


class OrbitControls:
    """
    Orbits the camera around its focal point.

    Input (mouse drags, wheel) only accumulates pending motion; ``update()``
    is called once per frame and applies it. With damping enabled each
    update applies ``damping_factor`` of what is pending, so motion eases
    out over several frames. A damping factor of 0 applies everything at
    once.
    """

    def __init__(self,
                 camera: vtk.vtkCamera,
                 damping_factor: float = 0.1,
                 rotation_factor: float = 0.5) -> None:
        self.camera = camera
        self.damping_factor = damping_factor
        self.rotation_factor = rotation_factor

        self._pending_azimuth = 0.0
        self._pending_elevation = 0.0
        self._pending_dolly = 1.0

        self._home = CameraPose.from_camera(camera)
        self._angle = self._calculate_angle()
        self._on_angle_changed_callbacks: list[Callable[[CameraAngle], None]] = []

    @property
    def enable_damping(self) -> bool:
        return self.damping_factor > 0.0

    @property
    def angle(self) -> CameraAngle:
        return self._angle

    @property
    def is_moving(self) -> bool:
        """True while there is pending motion to apply."""
        return (abs(self._pending_azimuth) > REST_THRESHOLD_DEG
                or abs(self._pending_elevation) > REST_THRESHOLD_DEG
                or abs(self._pending_dolly - 1.0) > 1e-6)

    def add_angle_changed_callback(self, callback: Callable[[CameraAngle], None]) -> None:
        """Callback signature: callback(angle: CameraAngle) -> None"""
        self._on_angle_changed_callbacks.append(callback)

    def remove_angle_changed_callback(self, callback: Callable[[CameraAngle], None]) -> None:
        self._on_angle_changed_callbacks.remove(callback)

    # =====================================================
    # Input
    # =====================================================

    def rotate(self, dx: float, dy: float) -> None:
        """Queue an orbit from a mouse drag of (dx, dy) pixels."""
        self._pending_azimuth += -dx * self.rotation_factor
        self._pending_elevation += -dy * self.rotation_factor

    def dolly(self, factor: float) -> None:
        """Queue a move towards (factor > 1) or away from the focal point."""
        if factor <= 0:
            logger.warning("Ignoring non-positive dolly factor %s", factor)
            return
        self._pending_dolly *= factor

    def save_home(self) -> None:
        """Remember the current pose as the reset target."""
        self._home = CameraPose.from_camera(self.camera)

    def reset(self) -> None:
        """Return to the home pose and drop pending motion."""
        self.stop()
        self._home.apply_to(self.camera)
        self._refresh_angle()

    def stop(self) -> None:
        self._pending_azimuth = 0.0
        self._pending_elevation = 0.0
        self._pending_dolly = 1.0

    # =====================================================
    # Per-frame update
    # =====================================================

    def update(self) -> bool:
        """
        Apply one frame of pending motion.

        :return: True if the camera moved.
        """
        if not self.is_moving:
            self.stop()
            return False

        fraction = self.damping_factor if self.enable_damping else 1.0

        d_azimuth = self._pending_azimuth * fraction
        d_elevation = self._clamp_elevation_step(self._pending_elevation * fraction)
        dolly_step = self._pending_dolly ** fraction

        self._pending_azimuth -= d_azimuth
        self._pending_elevation -= self._pending_elevation * fraction
        self._pending_dolly /= dolly_step

        if d_azimuth:
            self.camera.Azimuth(d_azimuth)
        if d_elevation:
            self.camera.Elevation(d_elevation)
            self.camera.OrthogonalizeViewUp()
        if dolly_step != 1.0:
            self.camera.Dolly(dolly_step)

        self._refresh_angle()
        return True

    def _clamp_elevation_step(self, step: float) -> float:
        current = self._angle.elevation
        target = max(-MAX_ELEVATION_DEG, min(MAX_ELEVATION_DEG, current + step))
        return target - current

    def _calculate_angle(self) -> CameraAngle:
        azimuth, elevation = vtk_helpers.get_camera_angles(self.camera)
        return CameraAngle(azimuth, elevation)

    def _refresh_angle(self) -> None:
        new_angle = self._calculate_angle()
        if new_angle == self._angle:
            return
        self._angle = new_angle
        for callback in self._on_angle_changed_callbacks:
            try:
                callback(new_angle)
            except Exception:
                logger.exception("Error in camera angle callback")

    def get_distance(self) -> float:
        """Distance between the camera position and the focal point."""
        return geometry_utils.calculate_distance(
            self.camera.GetFocalPoint(), self.camera.GetPosition())
