"""Structured index records produced by the parsing collaborator."""
from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Sequence

from millerview.core.errors import MalformedResponseError
from millerview.core.geometry_utils import Vector3


class IndexKind(str, Enum):
    PLANE = "plane"
    DIRECTION = "direction"

    def __str__(self):
        return self.value


def _as_vector3(value: Any, field_name: str) -> Vector3:
    """Validate a three component numeric sequence and return it as floats."""
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise MalformedResponseError(
            f"'{field_name}' must be a list of 3 numbers, got {type(value).__name__}.")
    if len(value) != 3:
        raise MalformedResponseError(
            f"'{field_name}' must have exactly 3 components, got {len(value)}.")

    components = []
    for component in value:
        # bool is an int subclass but never a valid index
        if isinstance(component, bool) or not isinstance(component, (int, float)):
            raise MalformedResponseError(
                f"'{field_name}' contains a non-numeric value: {component!r}")
        try:
            number = float(component)
        except OverflowError:
            raise MalformedResponseError(
                f"'{field_name}' contains a value out of range.") from None
        if not math.isfinite(number):
            raise MalformedResponseError(
                f"'{field_name}' contains a non-finite value: {component!r}")
        components.append(number)
    return (components[0], components[1], components[2])


@dataclass(frozen=True)
class IndexRecord:
    """
    A plane (hkl) or direction [uvw] ready to be turned into geometry.

    ``intercept`` is the point the plane passes through; it is ignored for
    directions. A zero ``indices`` vector is accepted here and rejected when
    the record is mapped to geometry.
    """
    kind: IndexKind
    indices: Vector3
    intercept: Vector3 | None = None

    def __str__(self) -> str:
        h, k, l = (f"{v:g}" for v in self.indices)
        if self.kind is IndexKind.PLANE:
            return f"({h} {k} {l})"
        return f"[{h} {k} {l}]"

    @classmethod
    def from_response(cls, response: Mapping[str, Any]) -> IndexRecord:
        """
        Build a record from a parser response.

        Accepted shape: ``{"type": "plane"|"direction", "indices": [i, j, k],
        "intercept": [x, y, z] | null}``. ``kind`` is accepted as an alias of
        ``type``.

        :raises MalformedResponseError: when a field is missing or ill-typed.
        """
        if not isinstance(response, Mapping):
            raise MalformedResponseError(
                f"Response must be a JSON object, got {type(response).__name__}.")

        raw_kind = response.get("type", response.get("kind"))
        if raw_kind is None:
            raise MalformedResponseError("Response has no 'type' field.")
        try:
            kind = IndexKind(str(raw_kind).strip().lower())
        except ValueError:
            raise MalformedResponseError(f"Unknown index type: {raw_kind!r}") from None

        if "indices" not in response:
            raise MalformedResponseError("Response has no 'indices' field.")
        indices = _as_vector3(response["indices"], "indices")

        intercept = None
        raw_intercept = response.get("intercept")
        if kind is IndexKind.PLANE and raw_intercept is not None:
            intercept = _as_vector3(raw_intercept, "intercept")

        return cls(kind=kind, indices=indices, intercept=intercept)
