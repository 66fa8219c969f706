"""
In-process parser for Miller index notation.

``(hkl)`` is a plane and ``[uvw]`` is a direction. Two forms are understood:

- compact: every digit is one index and ``-`` negates the next digit,
  e.g. ``(1-10)`` -> ``[1, -1, 0]``. Other characters are skipped.
- separated: indices split by commas or whitespace, so multi-digit values
  work, e.g. ``[10, 0, -12]``.

The result has the same shape as the parse service's JSON response.
"""
from __future__ import annotations

import logging
import re
from typing import Any

from millerview.core.errors import NotationError
from millerview.core.index_record import IndexKind

logger = logging.getLogger(__name__)

INVALID_FORMAT_MESSAGE = (
    "Invalid format. Use parentheses for planes (e.g., (100)) "
    "or brackets for directions (e.g., [111])."
)
NO_INDICES_MESSAGE = "No valid indices found"

# Intercept used for an axis the plane never crosses (zero index).
PARALLEL_AXIS_INTERCEPT = 0.5

_BRACKETS = {
    ("(", ")"): IndexKind.PLANE,
    ("[", "]"): IndexKind.DIRECTION,
}
_SEPARATOR = re.compile(r"[,\s]+")
_INTEGER = re.compile(r"^[+-]?\d+$")


def _parse_compact(content: str) -> list[float]:
    indices: list[float] = []
    i = 0
    while i < len(content):
        sign = 1.0
        if content[i] == "-":
            sign = -1.0
            i += 1
        if i < len(content) and content[i].isdigit():
            indices.append(sign * float(content[i]))
        i += 1
    return indices


def _parse_separated(content: str) -> list[float]:
    indices: list[float] = []
    for token in _SEPARATOR.split(content.strip()):
        if not token:
            continue
        if not _INTEGER.match(token):
            raise NotationError(f"Invalid index '{token}'", status_code=400)
        try:
            indices.append(float(int(token)))
        except (OverflowError, ValueError):
            # ValueError: digit count past sys.get_int_max_str_digits()
            raise NotationError(f"Index out of range '{token[:20]}...'", status_code=400) from None
    return indices


def plane_intercepts(indices: list[float]) -> list[float]:
    """Reciprocal intercept per axis, or a fixed offset for zero indices."""
    return [1.0 / v if v != 0 else PARALLEL_AXIS_INTERCEPT for v in indices]


def parse_notation(text: str) -> dict[str, Any]:
    """
    Parse a plane or direction expression.

    :param text: e.g. ``"(100)"``, ``"[1 -1 0]"``
    :return: ``{"type": ..., "indices": [...], "intercept": [...]}``
    :raises NotationError: when the text is not index notation.
    """
    expr = (text or "").strip()

    kind = None
    for (opening, closing), candidate in _BRACKETS.items():
        if len(expr) >= 2 and expr.startswith(opening) and expr.endswith(closing):
            kind = candidate
            break
    if kind is None:
        raise NotationError(INVALID_FORMAT_MESSAGE, status_code=400)

    content = expr[1:-1].strip()
    if _SEPARATOR.search(content):
        indices = _parse_separated(content)
    else:
        indices = _parse_compact(content)

    if not indices:
        raise NotationError(NO_INDICES_MESSAGE, status_code=400)
    if len(indices) != 3:
        raise NotationError(
            f"Expected 3 indices, found {len(indices)} in '{expr}'", status_code=400)

    response: dict[str, Any] = {"type": kind.value, "indices": indices}
    if kind is IndexKind.PLANE:
        response["intercept"] = plane_intercepts(indices)

    logger.debug("Parsed %r -> %s", expr, response)
    return response
