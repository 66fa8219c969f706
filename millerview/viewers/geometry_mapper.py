"""Turns index records into oriented, positioned scene nodes."""
from __future__ import annotations

import logging
from dataclasses import dataclass

import vtk

from millerview.core import geometry_utils
from millerview.core.errors import MissingInterceptError
from millerview.core.geometry_utils import Vector3
from millerview.core.index_record import IndexKind, IndexRecord
from millerview.utils import vtk_helpers
from millerview.utils.log_util import log_io
from millerview.viewers.scene_nodes import CELL_CENTER, NodeRole, SceneNode

logger = logging.getLogger(__name__)

# vtkPlaneSource builds its patch facing +z, vtkArrowSource points along +x.
CANONICAL_PLANE_NORMAL: Vector3 = (0.0, 0.0, 1.0)
CANONICAL_ARROW_DIRECTION: Vector3 = (1.0, 0.0, 0.0)


@dataclass(frozen=True)
class MapperStyle:
    plane_size: float = 2.0
    plane_color: tuple[float, float, float] = (1.0, 0.0, 0.0)
    plane_opacity: float = 0.5
    arrow_length: float = 1.0
    arrow_color: tuple[float, float, float] = (0.0, 1.0, 0.0)
    arrow_origin: Vector3 = CELL_CENTER


class GeometryMapper:
    """
    Build a detached transient node for an IndexRecord.

    The result depends only on the record and the style given at
    construction. Attaching the node to a scene is SceneManager's job.
    """

    def __init__(self, style: MapperStyle | None = None) -> None:
        self.style = style or MapperStyle()

    @log_io(level=logging.DEBUG)
    def map(self, record: IndexRecord) -> SceneNode:
        """
        :raises DegenerateVectorError: zero or non-finite indices.
        :raises MissingInterceptError: plane without intercept.
        """
        if record.kind is IndexKind.DIRECTION:
            return self._map_direction(record)
        if record.kind is IndexKind.PLANE:
            return self._map_plane(record)
        raise ValueError(f"Unsupported index kind: {record.kind!r}")

    def _map_direction(self, record: IndexRecord) -> SceneNode:
        direction = geometry_utils.normalize_vector(record.indices)
        orientation = geometry_utils.shortest_arc_quaternion(CANONICAL_ARROW_DIRECTION, direction)
        origin = self.style.arrow_origin

        source = vtk.vtkArrowSource()
        source.SetTipResolution(24)
        source.SetShaftResolution(24)
        actor = vtk_helpers.actor_from_source(source)
        actor.SetUserTransform(
            vtk_helpers.transform_from_pose(orientation, origin, scale=self.style.arrow_length))
        actor.GetProperty().SetColor(*self.style.arrow_color)

        return SceneNode(
            name=f"direction {record}",
            role=NodeRole.TRANSIENT,
            prop=actor,
            record=record,
            position=origin,
            direction=direction,
            orientation=orientation,
            metadata={"length": self.style.arrow_length},
        )

    def _map_plane(self, record: IndexRecord) -> SceneNode:
        if record.intercept is None:
            raise MissingInterceptError(f"Plane {record} has no intercept.")
        normal = geometry_utils.normalize_vector(record.indices)
        orientation = geometry_utils.shortest_arc_quaternion(CANONICAL_PLANE_NORMAL, normal)
        rotated_normal = geometry_utils.rotate_vector(orientation, CANONICAL_PLANE_NORMAL)
        position = record.intercept

        half = self.style.plane_size / 2.0
        source = vtk.vtkPlaneSource()
        source.SetOrigin(-half, -half, 0.0)
        source.SetPoint1(half, -half, 0.0)
        source.SetPoint2(-half, half, 0.0)
        actor = vtk_helpers.actor_from_source(source)
        actor.SetUserTransform(vtk_helpers.transform_from_pose(orientation, position))

        prop = actor.GetProperty()
        prop.SetColor(*self.style.plane_color)
        prop.SetOpacity(self.style.plane_opacity)
        prop.LightingOff()
        prop.BackfaceCullingOff()
        prop.FrontfaceCullingOff()

        return SceneNode(
            name=f"plane {record}",
            role=NodeRole.TRANSIENT,
            prop=actor,
            record=record,
            position=position,
            direction=rotated_normal,
            orientation=orientation,
            metadata={"size": self.style.plane_size},
        )
