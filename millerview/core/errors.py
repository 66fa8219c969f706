"""Exceptions raised while turning index notation into scene geometry."""
from __future__ import annotations


class VisualizationError(Exception):
    """Base class for failures that are reported to the user, never fatal."""


class DegenerateVectorError(VisualizationError):
    """Raised when an index vector has zero (or non-finite) length."""


class MissingInterceptError(VisualizationError):
    """Raised when a plane record carries no intercept."""


class MalformedResponseError(VisualizationError):
    """Raised when a parser response lacks the fields its kind requires."""


class ParseServiceError(VisualizationError):
    """
    Raised when the parsing collaborator cannot produce a response.

    :ivar status_code: HTTP status of the failed request, if any.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotationError(ParseServiceError):
    """Raised by the in-process parser when the text is not index notation."""


class SceneStateError(RuntimeError):
    """Raised when the scene lifecycle is driven out of order."""
