"""Tagged scene nodes and the persistent reference geometry."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto

import numpy as np
import vtk

from millerview.core.geometry_utils import Quaternion, Vector3
from millerview.core.index_record import IndexRecord
from millerview.utils import vtk_helpers

logger = logging.getLogger(__name__)

# Reference unit cell spans [0, 1] on every axis.
CELL_BOUNDS = (0.0, 1.0, 0.0, 1.0, 0.0, 1.0)
CELL_CENTER: Vector3 = (0.5, 0.5, 0.5)


class NodeRole(Enum):
    """Whether a node lives for the whole viewport or one visualization."""
    PERSISTENT = auto()
    TRANSIENT = auto()


@dataclass(eq=False)
class SceneNode:
    """
    A VTK prop plus the metadata the scene needs to manage it.

    The scene classifies nodes only by ``role``; the VTK class of ``prop``
    says nothing about ownership (axes, grid and arrows are all polydata).

    :ivar name: Human readable label, used in logs.
    :ivar role: Persistent or transient.
    :ivar prop: The actor added to the renderer.
    :ivar record: The index record a transient node was built from.
    :ivar position: Anchor point of the geometry in world coordinates.
    :ivar direction: Unit arrow direction or unit plane normal.
    :ivar orientation: Quaternion (w, x, y, z) applied to the canonical shape.
    """
    name: str
    role: NodeRole
    prop: vtk.vtkProp
    record: IndexRecord | None = None
    position: Vector3 | None = None
    direction: Vector3 | None = None
    orientation: Quaternion | None = None
    metadata: dict = field(default_factory=dict)

    @property
    def is_transient(self) -> bool:
        return self.role is NodeRole.TRANSIENT

    def __repr__(self) -> str:
        return f"SceneNode(name={self.name!r}, role={self.role.name})"


def create_cell_outline(bounds=CELL_BOUNDS, color=(1.0, 1.0, 1.0)) -> SceneNode:
    """Wireframe edges of the reference unit cell."""
    source = vtk.vtkOutlineSource()
    source.SetBounds(*bounds)
    actor = vtk_helpers.actor_from_source(source)
    prop = actor.GetProperty()
    prop.SetColor(*color)
    prop.SetLineWidth(2.0)
    prop.LightingOff()
    return SceneNode(name="unit_cell", role=NodeRole.PERSISTENT, prop=actor)


def create_axes(length: float = 1.5) -> SceneNode:
    """x/y/z axes indicator at the origin."""
    axes = vtk.vtkAxesActor()
    axes.SetTotalLength(length, length, length)
    axes.SetShaftTypeToLine()
    axes.SetAxisLabels(True)
    return SceneNode(name="axes", role=NodeRole.PERSISTENT, prop=axes)


def grid_polydata(half_extent: int = 5, spacing: float = 1.0) -> vtk.vtkPolyData:
    """
    Square line grid in the z=0 plane centered on the origin.

    ``2 * half_extent + 1`` lines run in each direction.
    """
    ticks = np.arange(-half_extent, half_extent + 1, dtype=float) * spacing
    lo, hi = ticks[0], ticks[-1]

    starts = np.concatenate([
        np.column_stack([ticks, np.full_like(ticks, lo), np.zeros_like(ticks)]),
        np.column_stack([np.full_like(ticks, lo), ticks, np.zeros_like(ticks)]),
    ])
    ends = np.concatenate([
        np.column_stack([ticks, np.full_like(ticks, hi), np.zeros_like(ticks)]),
        np.column_stack([np.full_like(ticks, hi), ticks, np.zeros_like(ticks)]),
    ])
    points = np.empty((2 * len(starts), 3), dtype=float)
    points[0::2] = starts
    points[1::2] = ends
    return vtk_helpers.line_segments_polydata(points)


def create_grid(half_extent: int = 5, spacing: float = 1.0,
                color=(0.35, 0.35, 0.35)) -> SceneNode:
    """Reference grid in the z=0 plane."""
    mapper = vtk.vtkPolyDataMapper()
    mapper.SetInputData(grid_polydata(half_extent, spacing))
    actor = vtk.vtkActor()
    actor.SetMapper(mapper)
    prop = actor.GetProperty()
    prop.SetColor(*color)
    prop.LightingOff()
    actor.PickableOff()
    return SceneNode(name="grid", role=NodeRole.PERSISTENT, prop=actor)


def create_persistent_nodes() -> list[SceneNode]:
    """Everything that stays in the scene for the viewport's lifetime."""
    nodes = [create_axes(), create_grid(), create_cell_outline()]
    logger.debug("Created persistent nodes: %s", [n.name for n in nodes])
    return nodes
