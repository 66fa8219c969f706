"""Geometry utility functions for vector and quaternion operations."""
from __future__ import annotations

import math
from typing import Tuple

from millerview.core.errors import DegenerateVectorError

Vector3 = Tuple[float, float, float]
Quaternion = Tuple[float, float, float, float]  # (w, x, y, z)

# Below this length a vector has no usable direction.
NORM_EPSILON = 1e-12

# dot(src, dst) closer to -1 than this is treated as antiparallel.
ANTIPARALLEL_EPSILON = 1e-9

IDENTITY_QUATERNION: Quaternion = (1.0, 0.0, 0.0, 0.0)


def direction_vector(start_point: Vector3, end_point: Vector3) -> Vector3:
    """Calculate the direction vector between two points."""
    return (
        end_point[0] - start_point[0],
        end_point[1] - start_point[1],
        end_point[2] - start_point[2],
    )


def calculate_distance(start_point: Vector3, end_point: Vector3) -> float:
    """
    Calculate the distance between two points.

    :param start_point: Starting point (x, y, z)
    :param end_point: Ending point (x, y, z)
    :return: Distance between the two points
    """
    return calculate_norm(direction_vector(start_point, end_point))


def calculate_norm(vector: Vector3) -> float:
    """
    Calculate the norm of a vector.

    :param vector: Vector (x, y, z)
    :return: Magnitude of the vector
    """
    return math.hypot(*vector)


def normalize_vector(vector: Vector3) -> Vector3:
    """
    Normalize a 3D vector.

    :param vector: Vector (x, y, z)
    :return: Normalized vector (x, y, z)
    :raises DegenerateVectorError: if the vector has no direction.
    """
    if len(vector) != 3:
        raise DegenerateVectorError(f"Expected 3 components, got {len(vector)}.")
    try:
        finite = all(math.isfinite(v) for v in vector)
    except OverflowError:
        raise DegenerateVectorError(f"Vector components out of range: {tuple(vector)}") from None
    if not finite:
        raise DegenerateVectorError(f"Vector has non-finite components: {tuple(vector)}")

    # scaled components lie in [-1, 1]
    largest = max(abs(v) for v in vector)
    if largest == 0.0:
        raise DegenerateVectorError(f"Cannot normalize zero-length vector {tuple(vector)}.")
    scaled = (vector[0] / largest, vector[1] / largest, vector[2] / largest)
    norm = calculate_norm(scaled)
    if largest * norm < NORM_EPSILON:
        raise DegenerateVectorError(f"Cannot normalize zero-length vector {tuple(vector)}.")
    return (scaled[0] / norm, scaled[1] / norm, scaled[2] / norm)


def dot_product(vector1: Vector3, vector2: Vector3) -> float:
    """
    Calculate the dot product of two 3D vectors.

    :param vector1: Vector (x, y, z)
    :param vector2: Vector (x, y, z)
    :return: Dot product of the two vectors
    """
    return sum(v1 * v2 for v1, v2 in zip(vector1, vector2))


def cross_product(vector1: Vector3, vector2: Vector3) -> Vector3:
    """
    Calculate the cross product of two 3D vectors.

    :param vector1: First vector (x, y, z)
    :param vector2: Second vector (x, y, z)
    :return: Cross product vector (x, y, z)
    """
    return (
        vector1[1] * vector2[2] - vector1[2] * vector2[1],
        vector1[2] * vector2[0] - vector1[0] * vector2[2],
        vector1[0] * vector2[1] - vector1[1] * vector2[0],
    )


def perpendicular_vector(vector: Vector3) -> Vector3:
    """
    Return a unit vector perpendicular to ``vector``.

    The coordinate axis least aligned with ``vector`` is crossed with it,
    so the result is never degenerate for a non-zero input.
    """
    unit = normalize_vector(vector)
    magnitudes = [abs(c) for c in unit]
    axis_index = magnitudes.index(min(magnitudes))
    axis = [0.0, 0.0, 0.0]
    axis[axis_index] = 1.0
    return normalize_vector(cross_product(unit, tuple(axis)))


def shortest_arc_quaternion(source: Vector3, target: Vector3) -> Quaternion:
    """
    Minimal rotation taking the direction of ``source`` onto ``target``.

    The rotation axis is ``source x target`` and the angle is
    ``acos(source . target)``. Parallel inputs give the identity; antiparallel
    inputs give a half turn about a vector perpendicular to ``source``.

    :return: Unit quaternion (w, x, y, z)
    """
    src = normalize_vector(source)
    dst = normalize_vector(target)

    d = dot_product(src, dst)
    if d < -1.0 + ANTIPARALLEL_EPSILON:
        px, py, pz = perpendicular_vector(src)
        return (0.0, px, py, pz)

    cx, cy, cz = cross_product(src, dst)
    w = 1.0 + d
    norm = math.sqrt(w * w + cx * cx + cy * cy + cz * cz)
    return (w / norm, cx / norm, cy / norm, cz / norm)


def quaternion_to_axis_angle(quaternion: Quaternion) -> tuple[Vector3, float]:
    """
    Convert a unit quaternion to a rotation axis and an angle in degrees.

    The identity rotation reports the z axis with a zero angle.
    """
    w, x, y, z = quaternion
    w = max(-1.0, min(1.0, w))
    angle = 2.0 * math.acos(w)
    s = math.sqrt(max(0.0, 1.0 - w * w))
    if s < NORM_EPSILON:
        return (0.0, 0.0, 1.0), 0.0
    return (x / s, y / s, z / s), math.degrees(angle)


def rotate_vector(quaternion: Quaternion, vector: Vector3) -> Vector3:
    """Rotate ``vector`` by a unit quaternion (w, x, y, z)."""
    w = quaternion[0]
    q = quaternion[1:]
    t = tuple(2.0 * c for c in cross_product(q, vector))
    qt = cross_product(q, t)
    return (
        vector[0] + w * t[0] + qt[0],
        vector[1] + w * t[1] + qt[1],
        vector[2] + w * t[2] + qt[2],
    )
