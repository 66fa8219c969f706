"""Viewport controller - connects text submissions to the scene."""
from __future__ import annotations

import logging
from typing import Any

from PySide6 import QtCore

from millerview.core.errors import (
    MalformedResponseError,
    ParseServiceError,
    VisualizationError,
)
from millerview.core.index_record import IndexRecord
from millerview.parsing.parser_client import ParserClient
from millerview.ui.error_notifier import ErrorNotifier
from millerview.utils.log_util import log_io
from millerview.viewers.geometry_mapper import GeometryMapper
from millerview.viewers.scene_manager import SceneManager
from millerview.viewers.scene_nodes import SceneNode

logger = logging.getLogger(__name__)

PARSE_FAILED_TITLE = "Parse failed"
MAPPING_FAILED_TITLE = "Cannot visualize"


class ViewportController(QtCore.QObject):
    """
    Glue between submissions, the parser, GeometryMapper and SceneManager.

    Holds no visualization state; the scene owns the current node. It only
    tracks which submission is the latest, so a slow response that arrives
    after a newer one is dropped instead of overwriting it. Superseded
    requests are not cancelled, their results are just ignored.

    Failures never touch the scene. They are reported through ErrorNotifier
    and the ``submissionFailed`` signal.
    """

    visualizationChanged = QtCore.Signal(object)   # SceneNode | None
    submissionFailed = QtCore.Signal(str, str)     # title, message

    def __init__(self,
                 scene_manager: SceneManager,
                 parser_client: ParserClient,
                 mapper: GeometryMapper | None = None,
                 parent: QtCore.QObject | None = None) -> None:
        super().__init__(parent)
        self.scene_manager = scene_manager
        self.parser_client = parser_client
        self.mapper = mapper or GeometryMapper()
        self._latest_sequence = 0

    @property
    def latest_sequence(self) -> int:
        """Sequence number of the most recently initiated submission."""
        return self._latest_sequence

    @log_io(level=logging.DEBUG)
    def submit(self, raw_text: str) -> int:
        """
        Send ``raw_text`` to the parser.

        A rejected submission still supersedes any request in flight.

        :return: The submission's sequence number (0 if rejected up front).
        """
        self._latest_sequence += 1
        sequence = self._latest_sequence
        text = (raw_text or "").strip()
        if not text:
            self._report(PARSE_FAILED_TITLE, "Enter Miller indices, e.g. (100) or [111].")
            return 0

        logger.info("Submission #%d: %r", sequence, text)
        self.parser_client.request(
            text,
            lambda response, seq=sequence: self._on_parse_success(seq, response),
            lambda error, seq=sequence: self._on_parse_failure(seq, error),
        )
        return sequence

    def apply_record(self, record: IndexRecord) -> SceneNode | None:
        """
        Map ``record`` and make it the current visualization.

        :return: The new node, or None if mapping failed.
        """
        try:
            node = self.mapper.map(record)
        except VisualizationError as e:
            self._report(MAPPING_FAILED_TITLE, str(e))
            return None
        self.scene_manager.set_transient_node(node)
        self.visualizationChanged.emit(node)
        return node

    def clear(self) -> None:
        """Remove the current visualization."""
        self.scene_manager.set_transient_node(None)
        self.visualizationChanged.emit(None)

    # =====================================================
    # Parser callbacks
    # =====================================================

    def _is_stale(self, sequence: int) -> bool:
        if sequence != self._latest_sequence:
            logger.debug("Discarding stale response #%d (latest #%d)",
                         sequence, self._latest_sequence)
            return True
        return False

    def _on_parse_success(self, sequence: int, response: dict[str, Any]) -> None:
        if self._is_stale(sequence):
            return
        if not self.scene_manager.is_initialized:
            logger.warning("Response #%d arrived after the scene was disposed", sequence)
            return
        try:
            record = IndexRecord.from_response(response)
        except MalformedResponseError as e:
            self._report(PARSE_FAILED_TITLE, str(e))
            return
        self.apply_record(record)

    def _on_parse_failure(self, sequence: int, error: ParseServiceError) -> None:
        if self._is_stale(sequence):
            return
        self._report(PARSE_FAILED_TITLE, str(error))

    def _report(self, title: str, message: str) -> None:
        ErrorNotifier.instance().notify(
            title=title,
            msg=message,
            severity="warning",
            dedup_seconds=1.0,
        )
        self.submissionFailed.emit(title, message)
