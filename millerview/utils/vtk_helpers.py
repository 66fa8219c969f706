import math

import vtk
import numpy as np
from vtkmodules.util.numpy_support import numpy_to_vtk, numpy_to_vtkIdTypeArray

from millerview.core import geometry_utils


def actor_from_source(source: vtk.vtkPolyDataAlgorithm) -> vtk.vtkActor:
    """Wrap a polydata source in a mapper and an actor."""
    mapper = vtk.vtkPolyDataMapper()
    mapper.SetInputConnection(source.GetOutputPort())
    actor = vtk.vtkActor()
    actor.SetMapper(mapper)
    return actor


def line_segments_polydata(points: np.ndarray) -> vtk.vtkPolyData:
    """
    Build polydata of independent line segments.

    :param points: (2N, 3) array, consecutive rows are the two ends of a segment.
    """
    points = np.ascontiguousarray(points, dtype=float)
    if points.ndim != 2 or points.shape[1] != 3 or len(points) % 2:
        raise ValueError(f"Expected an even number of 3D points, got shape {points.shape}")

    vtk_points = vtk.vtkPoints()
    vtk_points.SetData(numpy_to_vtk(points, deep=True))

    n_segments = len(points) // 2
    # Legacy cell layout: [2, i0, i1, 2, i2, i3, ...]
    connectivity = np.empty((n_segments, 3), dtype=np.int64)
    connectivity[:, 0] = 2
    connectivity[:, 1] = np.arange(0, 2 * n_segments, 2)
    connectivity[:, 2] = connectivity[:, 1] + 1

    lines = vtk.vtkCellArray()
    lines.ImportLegacyFormat(numpy_to_vtkIdTypeArray(connectivity.ravel(), deep=True))

    polydata = vtk.vtkPolyData()
    polydata.SetPoints(vtk_points)
    polydata.SetLines(lines)
    return polydata


def transform_from_pose(
        orientation: geometry_utils.Quaternion,
        position: geometry_utils.Vector3,
        scale: float = 1.0,
) -> vtk.vtkTransform:
    """
    Scale, then rotate by a quaternion, then translate.

    :param orientation: Unit quaternion (w, x, y, z)
    :param position: Translation applied last
    :param scale: Uniform scale applied first
    """
    axis, angle = geometry_utils.quaternion_to_axis_angle(orientation)
    transform = vtk.vtkTransform()
    transform.PostMultiply()
    transform.Scale(scale, scale, scale)
    if angle != 0.0:
        transform.RotateWXYZ(angle, *axis)
    transform.Translate(*position)
    return transform


def get_camera_angles(camera: vtk.vtkCamera) -> tuple[float, float]:
    """
    Calculate the camera angles (azimuth and elevation)
    by the direction vector from the focal point to the camera position.
    :param camera:
    :return: azimuth, elevation
    """
    pos = np.array(camera.GetPosition())
    fp = np.array(camera.GetFocalPoint())
    v = pos - fp

    r = np.linalg.norm(v)
    if r == 0:
        return 0.0, 0.0

    # elevation from the z component (z is up)
    elevation = math.degrees(math.asin(max(-1.0, min(1.0, v[2] / r))))

    # azimuth in the x-y plane
    azimuth = math.degrees(math.atan2(v[1], v[0]))

    return azimuth, elevation
