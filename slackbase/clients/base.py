from collections.abc import Callable, Mapping
import json
import logging
import threading
from typing import Any
from urllib.parse import urlsplit

import httpx
from pydantic import ValidationError

from slackbase.clients.socket import Socket
from slackbase.core.errors import (
    SlackApiError,
    SlackConfigError,
    SlackConnectionError,
    SlackMessageTooLargeError,
    SlackRequestError,
    SlackWebhookError,
)
from slackbase.core.options import ClientConfig, parse_options
from slackbase.core.settings import Settings, settings as default_settings
from slackbase.schemas.payloads import RtmStartResponse, SlackbotMessage
from slackbase.utils.events import EventEmitter
from slackbase.utils.params import serialize_params

logger = logging.getLogger(__name__)

SocketFactory = Callable[[str], Any]

MESSAGE_TOO_LARGE = 'message needs to be under 16kb. try chunking your ".send" calls.'


class BaseAPI(EventEmitter):
    """Client for the Web API, incoming webhooks, slackbot and RTM.

    ``options`` is an API token, a webhook URL, a slackbot URL, or a mapping
    with any of the ``token``, ``webhook`` and ``slackbot`` keys.
    """

    def __init__(self, options: object = None, settings: Settings | None = None) -> None:
        super().__init__()
        self.settings = settings or default_settings
        self.config: ClientConfig = parse_options(options)
        self.socket: Any = None
        self._socket_handlers: dict[str, Callable[..., Any]] = {}
        logger.info(
            "slack_base_api_init kind=%s base_url=%s token_configured=%s webhook_configured=%s slackbot_configured=%s",
            self.config.kind,
            self.settings.base_url,
            self.token is not None,
            self.webhook is not None,
            self.slackbot_url is not None,
        )

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "BaseAPI":
        settings = settings or default_settings
        options = {"token": settings.token, "webhook": settings.webhook, "slackbot": settings.slackbot}
        return cls(options, settings=settings)

    @property
    def defaults(self) -> dict[str, str]:
        return self.config.defaults()

    @property
    def token(self) -> str | None:
        return getattr(self.config, "token", None)

    @property
    def webhook(self) -> str | None:
        return getattr(self.config, "webhook", None)

    @property
    def slackbot_url(self) -> str | None:
        return getattr(self.config, "slackbot", None)

    def _require(self, value: str | None, label: str, call: str) -> str:
        if value is None:
            raise SlackConfigError(f'[fatal] no {label} configured. pass one to the constructor before calling ".{call}".')
        return value

    def api(self, http_method: str, url: str, **kwargs: Any) -> httpx.Response:
        parts = urlsplit(url)
        status_code: int | None = None
        outcome = "unknown"
        try:
            response = httpx.request(http_method, url, timeout=self.settings.timeout_seconds, **kwargs)
            status_code = response.status_code
            outcome = "ok" if response.is_success else "http_error"
            return response
        except httpx.HTTPError as exc:
            outcome = "request_failed"
            raise SlackRequestError(f"[error] the request to {parts.netloc}{parts.path} failed: {exc}") from exc
        finally:
            logger.info(
                "slack_request method=%s host=%s path=%s status_code=%s outcome=%s",
                http_method,
                parts.netloc,
                parts.path,
                status_code,
                outcome,
            )

    def method(self, name: str, params: Mapping[str, object] | None = None) -> dict:
        token = self._require(self.token, "API token", "method")
        query = {"token": token, **serialize_params(params)}
        url = f"{self.settings.base_url.rstrip('/')}/{name}"
        error_code: str | None = None
        try:
            response = self.api("GET", url, params=query)
            if not response.is_success:
                raise SlackRequestError(
                    f"[{name} error] the request returned with status {response.status_code}"
                )
            try:
                payload = response.json()
            except ValueError as exc:
                raise SlackRequestError(f"[{name} error] the response was not valid JSON") from exc

            if not isinstance(payload, dict):
                raise SlackRequestError(f"[{name} error] the response was not a JSON object")

            if not payload.get("ok", False):
                error_code = payload.get("error", "unknown_error")
                description = payload.get("detail") or payload.get("message") or "No description."
                raise SlackApiError(
                    f'[{name} error] the response returned with error "{error_code}" - {description}',
                    method=name,
                    error=error_code,
                )
            return payload
        finally:
            logger.info("slack_method name=%s error_code=%s", name, error_code)

    def _post_hook(self, url: str, **kwargs: Any) -> str:
        response = self.api("POST", url, **kwargs)
        body = response.text
        if response.status_code != 200:
            raise SlackWebhookError(
                f'[error] the response returned with error "{body}"',
                status_code=response.status_code,
                body=body,
            )
        return body

    def submit(self, payload: Mapping[str, object]) -> str:
        webhook = self._require(self.webhook, "webhook URL", "submit")
        return self._post_hook(webhook, json=dict(payload))

    def slackbot(self, payload: Mapping[str, object]) -> str:
        url = self._require(self.slackbot_url, "slackbot URL", "slackbot")
        message = SlackbotMessage.model_validate(dict(payload))
        channel = message.channel or self.settings.default_slackbot_channel
        target = httpx.URL(url).copy_merge_params({"channel": channel})
        return self._post_hook(
            str(target),
            content=message.text.encode("utf-8"),
            headers={"Content-Type": "text/plain; charset=utf-8"},
        )

    def connect(
        self,
        params: Mapping[str, object] | None = None,
        socket_factory: SocketFactory | None = None,
        dont_execute: bool = False,
    ) -> dict | None:
        if dont_execute:
            logger.info("rtm_connect skipped=%s", True)
            return None

        self.disconnect()

        payload = self.method("rtm.start", params)
        try:
            start = RtmStartResponse.model_validate(payload)
        except ValidationError as exc:
            raise SlackConnectionError("[rtm.start error] the response did not include a socket url") from exc

        factory = socket_factory or Socket
        try:
            socket = factory(start.url)
        except Exception as exc:
            logger.warning("rtm_socket_create_failed url=%s error=%s", start.url, exc)
            raise

        opened = threading.Event()
        failures: list[object] = []

        def on_open(*args: Any) -> None:
            opened.set()
            self.emit("open")

        def on_error(error: object) -> None:
            if not opened.is_set():
                failures.append(error)
                opened.set()
            self.emit("error", error)

        def on_close(*args: Any) -> None:
            if self.socket is socket:
                self._detach()
            self.emit("close", *args)

        handlers = {"open": on_open, "error": on_error, "close": on_close, "message": self._dispatch}
        for event, handler in handlers.items():
            socket.on(event, handler)
        self.socket = socket
        self._socket_handlers = handlers
        socket.start()

        if not opened.wait(self.settings.socket_open_timeout_seconds):
            self._discard()
            raise SlackConnectionError(
                f"[rtm error] the socket did not open within {self.settings.socket_open_timeout_seconds} seconds"
            )
        if failures:
            self._discard()
            raise SlackConnectionError(f'[rtm error] the socket failed to open with error "{failures[0]}"')

        logger.info("rtm_connected url=%s", start.url)
        return payload

    def _dispatch(self, raw: str) -> None:
        try:
            event = json.loads(raw)
        except ValueError:
            logger.warning("rtm_message_invalid_json length=%s", len(raw))
            return
        self.emit("message", event)
        if isinstance(event, dict) and isinstance(event.get("type"), str):
            self.emit(event["type"], event)

    def send(self, message: Mapping[str, object], callback: Callable[[], object] | None = None) -> int:
        encoded = json.dumps(dict(message), ensure_ascii=False)
        if len(encoded) * 4 > self.settings.max_message_bytes:
            raise SlackMessageTooLargeError(MESSAGE_TOO_LARGE)
        if self.socket is None:
            raise SlackConnectionError('[rtm error] not connected. call ".connect" before ".send".')
        return self.socket.send(dict(message), callback)

    def _detach(self) -> Any:
        socket, self.socket = self.socket, None
        handlers, self._socket_handlers = self._socket_handlers, {}
        if socket is not None:
            for event, handler in handlers.items():
                socket.off(event, handler)
        return socket

    def _discard(self) -> None:
        socket = self._detach()
        if socket is None:
            return
        try:
            socket.close()
        except Exception as exc:
            logger.warning("rtm_socket_close_failed error=%s", exc)

    def disconnect(self) -> None:
        socket = self.socket
        if socket is None:
            return
        socket.close()
        self._detach()
        logger.info("rtm_disconnected")
