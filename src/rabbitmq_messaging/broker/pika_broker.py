"""pika implementation of the broker contract."""

from __future__ import annotations

import logging
import ssl
from typing import Any, Callable, Dict, Optional, Tuple

import pika

from rabbitmq_messaging.contracts import IBroker, IBrokerChannel
from rabbitmq_messaging.contracts.broker_interface import (
    DoneCallback,
    EventCallback,
    FailureCallback,
)
from rabbitmq_messaging.params import ConnectParams

from .pika_channel import SUBMIT_ERRORS, PikaChannel


def build_parameters(params: ConnectParams) -> pika.ConnectionParameters:
    """Translate connect arguments into ``pika.ConnectionParameters``."""
    kwargs: Dict[str, Any] = {
        "host": params.host,
        "port": params.port,
        "virtual_host": params.vhost,
        "credentials": pika.PlainCredentials(params.user, params.password),
    }
    if params.timeout is not None:
        kwargs["socket_timeout"] = params.timeout
    if params.tls:
        context = params.tls if isinstance(params.tls, ssl.SSLContext) else ssl.create_default_context()
        kwargs["ssl_options"] = pika.SSLOptions(context, params.host)
    kwargs.update(params.tune)
    return pika.ConnectionParameters(**kwargs)


class PikaBroker(IBroker):
    """Drives a ``pika.SelectConnection`` on the caller's IOLoop.

    Once open, the connection reports three kinds of later event: a lost stream
    (``StreamLostError``) goes to ``on_read_failure``, a returned mandatory message goes to
    ``on_return`` and any other close not requested through ``close`` goes to ``on_close``.
    """

    def __init__(self, ioloop: Any = None) -> None:
        self.ioloop = ioloop
        self.connection: Any = None
        self._close_waiter: Optional[Tuple[DoneCallback, FailureCallback]] = None
        self._on_read_failure: Optional[FailureCallback] = None
        self._on_return: Optional[EventCallback] = None
        self._on_close: Optional[EventCallback] = None
        self.logger = logging.getLogger(__name__)

    @property
    def is_open(self) -> bool:
        return bool(self.connection is not None and self.connection.is_open)

    @property
    def server_properties(self) -> Optional[Dict[str, Any]]:
        if self.connection is None:
            return None
        return getattr(self.connection, "server_properties", None)

    def connect(
        self,
        params: ConnectParams,
        *,
        on_success: EventCallback,
        on_failure: FailureCallback,
        on_read_failure: FailureCallback,
        on_return: EventCallback,
        on_close: EventCallback,
    ) -> None:
        if self.connection is not None and not self.connection.is_closed:
            on_failure("Connection is already open")
            return

        try:
            parameters = build_parameters(params)
        except (TypeError, ValueError, ssl.SSLError) as exc:
            on_failure(exc)
            return

        self._on_read_failure = on_read_failure
        self._on_return = on_return
        self._on_close = on_close

        self.logger.info("Connecting to RabbitMQ at %s", params.describe())
        self.connection = pika.SelectConnection(
            parameters=parameters,
            on_open_callback=on_success,
            on_open_error_callback=lambda _connection, error: on_failure(error),
            on_close_callback=self._on_connection_closed,
            custom_ioloop=self.ioloop,
        )

    def _on_connection_closed(self, _connection: Any, reason: Exception) -> None:
        waiter, self._close_waiter = self._close_waiter, None
        if waiter is not None:
            on_success, on_failure = waiter
            if isinstance(reason, pika.exceptions.ConnectionClosedByClient):
                self.logger.info("Closed RabbitMQ connection.")
                on_success()
            else:
                on_failure(reason)
            return

        if isinstance(reason, pika.exceptions.StreamLostError):
            handler = self._on_read_failure
        else:
            handler = self._on_close
        if handler is not None:
            handler(reason)

    def close(self, *, on_success: DoneCallback, on_failure: FailureCallback) -> None:
        if self.connection is None or not self.connection.is_open:
            on_failure("Connection is not open")
            return
        self._close_waiter = (on_success, on_failure)
        try:
            self.connection.close()
        except SUBMIT_ERRORS as exc:
            self._close_waiter = None
            on_failure(exc)

    def open_channel(
        self,
        *,
        on_success: Callable[[IBrokerChannel], None],
        on_failure: FailureCallback,
        on_close: EventCallback,
    ) -> None:
        if not self.is_open:
            on_failure("Connection is not open")
            return

        channel = PikaChannel(
            on_open=on_success,
            on_open_failure=on_failure,
            on_close=on_close,
            on_return=self._on_return,
        )
        try:
            channel.attach(self.connection.channel(on_open_callback=channel.on_channel_open))
        except SUBMIT_ERRORS as exc:
            on_failure(exc)
