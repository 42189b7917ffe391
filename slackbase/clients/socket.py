from collections.abc import Callable
import itertools
import json
import logging
import threading
from urllib.parse import urlsplit

import websocket

from slackbase.utils.events import EventEmitter

logger = logging.getLogger(__name__)


class Socket(EventEmitter):
    """One RTM websocket connection.

    Emits ``open``, ``message`` (raw JSON text), ``error`` and ``close``.
    Nothing is sent over the wire until ``start`` runs the receive loop on a
    daemon thread.
    """

    def __init__(self, url: str) -> None:
        super().__init__()
        if urlsplit(url).scheme not in {"ws", "wss"}:
            raise ValueError(f'invalid url "{url}"')
        self.url = url
        self._ids = itertools.count(1)
        self._thread: threading.Thread | None = None
        self.app = websocket.WebSocketApp(
            url,
            on_open=self._on_open,
            on_message=self._on_message,
            on_error=self._on_error,
            on_close=self._on_close,
        )

    def _on_open(self, ws: websocket.WebSocketApp) -> None:
        logger.info("rtm_socket_opened url=%s", self.url)
        self.emit("open")

    def _on_message(self, ws: websocket.WebSocketApp, message: str) -> None:
        self.emit("message", message)

    def _on_error(self, ws: websocket.WebSocketApp, error: Exception) -> None:
        logger.warning("rtm_socket_error url=%s error=%s", self.url, error)
        self.emit("error", error)

    def _on_close(self, ws: websocket.WebSocketApp, status_code: int | None, reason: str | None) -> None:
        logger.info("rtm_socket_closed url=%s status_code=%s reason=%s", self.url, status_code, reason)
        self.emit("close", status_code, reason)

    def start(self) -> None:
        if self._thread is not None:
            return
        self._thread = threading.Thread(target=self.app.run_forever, name="slackbase-rtm", daemon=True)
        self._thread.start()

    def send(self, message: dict, callback: Callable[[], object] | None = None) -> int:
        message_id = next(self._ids)
        self.app.send(json.dumps({**message, "id": message_id}))
        logger.debug("rtm_socket_sent id=%s type=%s", message_id, message.get("type"))
        if callback is not None:
            callback()
        return message_id

    def close(self, timeout: float = 5.0) -> None:
        self.app.close()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
