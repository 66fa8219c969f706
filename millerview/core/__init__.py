"""Core components layer - shared, view-independent functionality."""

from millerview.core.errors import (
    DegenerateVectorError,
    MalformedResponseError,
    MissingInterceptError,
    NotationError,
    ParseServiceError,
    SceneStateError,
    VisualizationError,
)
from millerview.core.geometry_utils import (
    normalize_vector,
    quaternion_to_axis_angle,
    rotate_vector,
    shortest_arc_quaternion,
)
from millerview.core.index_record import IndexKind, IndexRecord
from millerview.core.notation import parse_notation

__all__ = [
    "DegenerateVectorError",
    "MalformedResponseError",
    "MissingInterceptError",
    "NotationError",
    "ParseServiceError",
    "SceneStateError",
    "VisualizationError",
    "normalize_vector",
    "quaternion_to_axis_angle",
    "rotate_vector",
    "shortest_arc_quaternion",
    "IndexKind",
    "IndexRecord",
    "parse_notation",
]
