"""
Clients for the notation parsing collaborator.

Every client answers asynchronously: ``request`` returns immediately and
one of the two callbacks runs on a later turn of the Qt event loop.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Protocol

from PySide6 import QtCore
from PySide6.QtNetwork import QNetworkAccessManager, QNetworkReply, QNetworkRequest

from millerview.app.app_settings_manager import AppSettingsManager, ParserMode
from millerview.core.errors import NotationError, ParseServiceError
from millerview.core.notation import parse_notation

logger = logging.getLogger(__name__)

SuccessCallback = Callable[[dict[str, Any]], None]
FailureCallback = Callable[[ParseServiceError], None]


class ParserClient(Protocol):
    def request(self, text: str,
                on_success: SuccessCallback,
                on_failure: FailureCallback) -> None: ...


class LocalParserClient(QtCore.QObject):
    """Parses in-process; results are delivered on the next event-loop turn."""

    def request(self, text: str,
                on_success: SuccessCallback,
                on_failure: FailureCallback) -> None:
        try:
            response = parse_notation(text)
        except NotationError as e:
            logger.info("Local parser rejected %r: %s", text, e)
            QtCore.QTimer.singleShot(0, lambda err=e: on_failure(err))
            return
        QtCore.QTimer.singleShot(0, lambda: on_success(response))


class HttpParserClient(QtCore.QObject):
    """
    Posts ``{"input": text}`` to the parse service.

    Non-2xx replies, network errors, timeouts and bodies that are not a JSON
    object are reported through ``on_failure``.
    """

    def __init__(self, url: str, timeout_ms: int = 5000,
                 parent: QtCore.QObject | None = None) -> None:
        super().__init__(parent)
        self.url = url
        self.timeout_ms = timeout_ms
        self._manager = QNetworkAccessManager(self)

    def request(self, text: str,
                on_success: SuccessCallback,
                on_failure: FailureCallback) -> None:
        request = QNetworkRequest(QtCore.QUrl(self.url))
        request.setHeader(QNetworkRequest.KnownHeaders.ContentTypeHeader, "application/json")
        request.setTransferTimeout(self.timeout_ms)

        body = QtCore.QByteArray(json.dumps({"input": text}).encode("utf-8"))
        logger.debug("POST %s input=%r", self.url, text)
        reply = self._manager.post(request, body)
        reply.finished.connect(lambda: self._on_finished(reply, on_success, on_failure))

    def _on_finished(self, reply: QNetworkReply,
                     on_success: SuccessCallback,
                     on_failure: FailureCallback) -> None:
        try:
            status = reply.attribute(QNetworkRequest.Attribute.HttpStatusCodeAttribute)
            payload = bytes(reply.readAll().data())
            error = reply.error()
            error_text = reply.errorString()
        finally:
            reply.deleteLater()

        status_code = int(status) if status is not None else None
        if status_code is not None and not 200 <= status_code < 300:
            message = payload.decode("utf-8", errors="replace").strip() or f"HTTP {status_code}"
            logger.warning("Parse service returned %s: %s", status_code, message)
            on_failure(ParseServiceError(message, status_code=status_code))
            return
        if error != QNetworkReply.NetworkError.NoError:
            logger.warning("Parse service unreachable (%s): %s", self.url, error_text)
            on_failure(ParseServiceError(f"Error connecting to parse service: {error_text}",
                                         status_code=status_code))
            return

        try:
            data = json.loads(payload.decode("utf-8"))
        except ValueError as e:
            # also UnicodeDecodeError and numbers past the int digit limit
            on_failure(ParseServiceError(f"Parse service sent invalid JSON: {e}",
                                         status_code=status_code))
            return
        if not isinstance(data, dict):
            on_failure(ParseServiceError("Parse service response is not a JSON object",
                                         status_code=status_code))
            return
        on_success(data)


def create_parser_client(settings: AppSettingsManager,
                         parent: QtCore.QObject | None = None) -> ParserClient:
    """Pick the parser implementation configured under ``parser/mode``."""
    cfg = settings.parser
    if cfg.mode is ParserMode.HTTP:
        logger.info("Using parse service at %s", cfg.url)
        return HttpParserClient(cfg.url, cfg.timeout_ms, parent=parent)
    logger.info("Using in-process notation parser")
    return LocalParserClient(parent)
