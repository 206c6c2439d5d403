"""Callback-driven RabbitMQ client."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, Optional, Set, Union

from rabbitmq_messaging.channels import ChannelTable
from rabbitmq_messaging.completion import CompletionSignal, fire_signal
from rabbitmq_messaging.config import ConnectionConfig
from rabbitmq_messaging.contracts import DeclaredQueue, Delivery, IBroker, IBrokerChannel
from rabbitmq_messaging.errors import ArgumentError, normalize_failure
from rabbitmq_messaging.handlers import Handler, Handlers
from rabbitmq_messaging.params import (
    BindExchangeParams,
    BindQueueParams,
    ChannelParams,
    ConnectParams,
    ConsumeParams,
    DeclareExchangeParams,
    DeclareQueueParams,
    DeleteExchangeParams,
    DeleteQueueParams,
    PublishParams,
)

from .client_config import ClientDependencies

HANDLER_SUFFIX = "_handler"


class AsyncClient:
    """Runs broker operations and reports their outcome through handlers and signals.

    Every operation validates its arguments, raising ``ArgumentError`` before anything reaches
    the broker, and returns immediately. When the broker answers, the operation's handler (see
    ``Handlers``) runs and then the optional ``signal`` fires. Broker failures never raise:
    they are normalized into a ``BrokerFailure``, passed to the ``error`` handler and fire the
    signal with the client as its value.

    Channels are addressed by caller-chosen names. A name is taken once the open completes and
    released when the channel closes, whichever side closes it.
    """

    def __init__(
        self,
        *,
        ioloop: Any = None,
        dependencies: Optional[ClientDependencies] = None,
        acking_enabled: bool = True,
        handlers: Optional[Handlers] = None,
        logger: Optional[logging.Logger] = None,
        **handler_overrides: Handler,
    ) -> None:
        self.logger = logger or logging.getLogger(__name__)
        self.dependencies = dependencies or ClientDependencies()
        self.acking_enabled = acking_enabled
        self.handlers = (handlers or Handlers()).with_overrides(
            **self._handler_names(handler_overrides)
        )
        # A caller-supplied loop is activated and closed by its owner.
        self._owns_ioloop = ioloop is None
        if ioloop is None:
            ioloop = self.dependencies.make_ioloop()
            ioloop.activate_poller()
        self.ioloop = ioloop
        self.channels = ChannelTable()
        self._opening: Set[str] = set()
        self._broker: Optional[IBroker] = None

    @staticmethod
    def _handler_names(overrides: Dict[str, Handler]) -> Dict[str, Handler]:
        named: Dict[str, Handler] = {}
        for key, handler in overrides.items():
            if not key.endswith(HANDLER_SUFFIX):
                raise ArgumentError(f"Unexpected keyword argument '{key}'")
            named[key[: -len(HANDLER_SUFFIX)]] = handler
        return named

    @property
    def broker(self) -> IBroker:
        if self._broker is None:
            self._broker = self.dependencies.make_broker(self.ioloop)
        return self._broker

    @property
    def is_open(self) -> bool:
        return self._broker is not None and self._broker.is_open

    @property
    def server_properties(self) -> Optional[Dict[str, Any]]:
        if self._broker is None:
            return None
        return self._broker.server_properties

    def channel(self, name: str) -> IBrokerChannel:
        """Return the open channel called ``name``; raises ``ArgumentError`` if there is none."""
        return self.channels.get(name)

    def close(self) -> None:
        """Release the event loop this client built. Call ``disconnect`` first."""
        if self.is_open:
            self.logger.warning("Closing the event loop under an open connection")
        if self._owns_ioloop:
            self._owns_ioloop = False
            self.ioloop.close()

    def _complete(
        self,
        signal: Optional[CompletionSignal],
        value: Any,
        handler: Optional[Handler] = None,
        *args: Any,
    ) -> None:
        try:
            if handler is not None:
                handler(self, *args)
        finally:
            fire_signal(signal, value)

    def _fail(
        self,
        signal: Optional[CompletionSignal],
        response: Any,
        handler: Optional[Handler] = None,
    ) -> None:
        failure = normalize_failure(response, self.logger)
        self._complete(signal, self, handler or self.handlers.error, failure)

    def _report(self, response: Any) -> None:
        self._fail(None, response)

    def _release(self, signal: Optional[CompletionSignal]) -> None:
        # Unblocks a waiter even if it counts completions that will now never arrive.
        if signal is not None:
            signal.send(self)

    def connect(
        self,
        *,
        host: str,
        port: int,
        vhost: str,
        user: str,
        password: str,
        timeout: Optional[float] = None,
        tls: Any = False,
        tune: Optional[Dict[str, int]] = None,
        signal: Optional[CompletionSignal] = None,
    ) -> Any:
        params = ConnectParams(
            host=host,
            port=port,
            vhost=vhost,
            user=user,
            password=password,
            timeout=timeout,
            tls=tls,
            tune={} if tune is None else tune,
        )
        params.validate()

        def on_success(_connection: Any) -> None:
            self.logger.info("Connected to RabbitMQ at %s", params.describe())
            self._complete(signal, self, self.handlers.connect)

        broker = self.broker

        def on_failure(response: Any) -> None:
            if not broker.is_open and self._broker is broker:
                self._broker = None
            self._fail(signal, response, self.handlers.connect_failure)

        broker.connect(
            params,
            on_success=on_success,
            on_failure=on_failure,
            on_read_failure=self._report,
            on_return=self._report,
            on_close=self._report,
        )
        return self

    def connect_url(
        self, rabbitmq_url: Optional[str] = None, *, signal: Optional[CompletionSignal] = None
    ) -> Any:
        """Connect using an AMQP URL, or ``RABBITMQ_URL`` when no URL is given."""
        config = ConnectionConfig.from_url(rabbitmq_url)
        return self.connect(signal=signal, **config.as_connect_kwargs())

    def disconnect(self, *, signal: Optional[CompletionSignal] = None) -> Any:
        broker = self._broker
        if broker is None:
            self._fail(signal, "Connection is not open")
            return self

        def on_success() -> None:
            self._broker = None
            self._drop_stale_channels()
            self.logger.info("Disconnected from RabbitMQ")
            self._complete(signal, self, self.handlers.disconnect)

        def on_failure(response: Any) -> None:
            if not broker.is_open:
                self._broker = None
                self._drop_stale_channels()
            self._fail(signal, response)

        broker.close(on_success=on_success, on_failure=on_failure)
        return self

    def _drop_stale_channels(self) -> None:
        for name in self.channels.names():
            channel = self.channels.get(name)
            if not channel.is_open:
                self.channels.remove(name)

    def open_channel(self, *, name: str, signal: Optional[CompletionSignal] = None) -> Any:
        ChannelParams(name=name).validate()
        self.channels.ensure_absent(name)
        if name in self._opening:
            raise ArgumentError(f"A channel named '{name}' is already opening")
        self._opening.add(name)

        def on_success(channel: IBrokerChannel) -> None:
            self._opening.discard(name)
            self.channels.insert(name, channel)
            self._complete(signal, self, self.handlers.open_channel, channel, name)

        def on_failure(response: Any) -> None:
            self._opening.discard(name)
            self._fail(signal, response)

        def on_close(response: Any) -> None:
            self.logger.info("Channel '%s' closed: %s", name, response)
            self.channels.remove(name)
            try:
                self.handlers.close_channel(self, name)
            finally:
                self._release(signal)

        self.broker.open_channel(on_success=on_success, on_failure=on_failure, on_close=on_close)
        return self

    def close_channel(self, *, name: str, signal: Optional[CompletionSignal] = None) -> Any:
        ChannelParams(name=name).validate()
        channel = self.channels.get(name)

        def on_success() -> None:
            self.channels.remove(name)
            self._complete(signal, self, self.handlers.close_channel, name)

        def on_failure(response: Any) -> None:
            if not channel.is_open:
                self.channels.remove(name)
            self._fail(signal, response)

        channel.close(on_success=on_success, on_failure=on_failure)
        return self

    def _channel_call(
        self,
        operation: str,
        params: Union[
            DeclareExchangeParams,
            DeleteExchangeParams,
            BindExchangeParams,
            DeleteQueueParams,
            BindQueueParams,
        ],
        signal: Optional[CompletionSignal],
        description: str,
    ) -> Any:
        params.validate()
        channel = self.channels.get(params.channel)

        def on_success() -> None:
            self.logger.debug("%s on channel '%s'", description, params.channel)
            self._complete(signal, self)

        getattr(channel, operation)(
            params, on_success=on_success, on_failure=lambda response: self._fail(signal, response)
        )
        return self

    def declare_exchange(
        self,
        *,
        name: str,
        channel: str,
        exchange_type: str = "direct",
        durable: bool = False,
        passive: bool = False,
        auto_delete: bool = False,
        signal: Optional[CompletionSignal] = None,
    ) -> Any:
        params = DeclareExchangeParams(
            name=name,
            channel=channel,
            exchange_type=exchange_type,
            durable=durable,
            passive=passive,
            auto_delete=auto_delete,
        )
        return self._channel_call(
            "declare_exchange", params, signal, f"Declared {exchange_type} exchange '{name}'"
        )

    def delete_exchange(
        self, *, name: str, channel: str, signal: Optional[CompletionSignal] = None
    ) -> Any:
        params = DeleteExchangeParams(name=name, channel=channel)
        return self._channel_call("delete_exchange", params, signal, f"Deleted exchange '{name}'")

    def bind_exchange(
        self,
        *,
        source: str,
        destination: str,
        channel: str,
        routing_key: str = "",
        signal: Optional[CompletionSignal] = None,
    ) -> Any:
        params = BindExchangeParams(
            source=source, destination=destination, channel=channel, routing_key=routing_key
        )
        return self._channel_call(
            "bind_exchange",
            params,
            signal,
            f"Bound exchange '{destination}' to exchange '{source}' with '{routing_key}'",
        )

    def unbind_exchange(
        self,
        *,
        source: str,
        destination: str,
        channel: str,
        routing_key: str = "",
        signal: Optional[CompletionSignal] = None,
    ) -> Any:
        params = BindExchangeParams(
            source=source, destination=destination, channel=channel, routing_key=routing_key
        )
        return self._channel_call(
            "unbind_exchange",
            params,
            signal,
            f"Unbound exchange '{destination}' from exchange '{source}' with '{routing_key}'",
        )

    def declare_queue(
        self,
        *,
        channel: str,
        name: str = "",
        durable: bool = False,
        passive: bool = False,
        exclusive: bool = False,
        auto_delete: bool = False,
        signal: Optional[CompletionSignal] = None,
    ) -> Any:
        """Declare a queue; a blank ``name`` lets the broker choose one.

        The signal value is the queue name the broker declared.
        """
        params = DeclareQueueParams(
            channel=channel,
            name=name,
            durable=durable,
            passive=passive,
            exclusive=exclusive,
            auto_delete=auto_delete,
        )
        params.validate()
        broker_channel = self.channels.get(channel)

        def on_success(declared: DeclaredQueue) -> None:
            self.logger.debug(
                "Declared queue '%s' on channel '%s' (%d messages, %d consumers)",
                declared.queue,
                channel,
                declared.message_count,
                declared.consumer_count,
            )
            self._complete(signal, declared.queue)

        broker_channel.declare_queue(
            params, on_success=on_success, on_failure=lambda response: self._fail(signal, response)
        )
        return self

    def delete_queue(
        self, *, name: str, channel: str, signal: Optional[CompletionSignal] = None
    ) -> Any:
        params = DeleteQueueParams(name=name, channel=channel)
        return self._channel_call("delete_queue", params, signal, f"Deleted queue '{name}'")

    def bind_queue(
        self,
        *,
        source: str,
        destination: str,
        channel: str,
        routing_key: str = "",
        arguments: Optional[Dict[str, Any]] = None,
        signal: Optional[CompletionSignal] = None,
    ) -> Any:
        params = BindQueueParams(
            source=source,
            destination=destination,
            channel=channel,
            routing_key=routing_key,
            arguments={} if arguments is None else arguments,
        )
        return self._channel_call(
            "bind_queue",
            params,
            signal,
            f"Bound queue '{destination}' to exchange '{source}' with '{routing_key}'",
        )

    def unbind_queue(
        self,
        *,
        source: str,
        destination: str,
        channel: str,
        routing_key: str = "",
        arguments: Optional[Dict[str, Any]] = None,
        signal: Optional[CompletionSignal] = None,
    ) -> Any:
        params = BindQueueParams(
            source=source,
            destination=destination,
            channel=channel,
            routing_key=routing_key,
            arguments={} if arguments is None else arguments,
        )
        return self._channel_call(
            "unbind_queue",
            params,
            signal,
            f"Unbound queue '{destination}' from exchange '{source}' with '{routing_key}'",
        )

    def publish(
        self,
        *,
        routing_key: str,
        exchange: str,
        channel: str,
        body: Union[bytes, str],
        headers: Optional[Dict[str, Any]] = None,
        immediate: bool = False,
        mandatory: bool = False,
        signal: Optional[CompletionSignal] = None,
    ) -> Any:
        """Publish ``body``. Completion means the message was handed to the connection."""
        params = PublishParams(
            routing_key=routing_key,
            exchange=exchange,
            channel=channel,
            body=body,
            headers={} if headers is None else headers,
            immediate=immediate,
            mandatory=mandatory,
        )
        params.validate()
        broker_channel = self.channels.get(channel)

        def on_success() -> None:
            self._complete(signal, self, self.handlers.publish, body, routing_key)

        broker_channel.publish(
            params, on_success=on_success, on_failure=lambda response: self._fail(signal, response)
        )
        return self

    def consume(
        self,
        *,
        queue: str,
        channel: str,
        no_ack: bool = False,
        consumer_tag: str = "",
        signal: Optional[CompletionSignal] = None,
    ) -> Any:
        """Start consuming from ``queue``.

        Each delivery runs the ``consume`` handler, is acknowledged unless ``no_ack`` is set
        or acking is disabled, and fires the signal. A counted signal therefore counts
        deliveries. If the consumer is cancelled the ``consume_cancel`` handler runs and the
        signal is released.
        """
        params = ConsumeParams(
            queue=queue, channel=channel, no_ack=no_ack, consumer_tag=consumer_tag
        )
        params.validate()
        broker_channel = self.channels.get(channel)

        def on_consume(delivery: Delivery) -> None:
            delivery = replace(delivery, channel=channel)
            try:
                self.handlers.consume(self, delivery)
                if not no_ack and self.acking_enabled:
                    broker_channel.ack(delivery.delivery_tag)
            finally:
                fire_signal(signal, self)

        def on_cancel(response: Any) -> None:
            self.logger.info("Consumer on queue '%s' was cancelled", queue)
            try:
                self.handlers.consume_cancel(self, channel, response)
            finally:
                self._release(signal)

        def on_started(tag: str) -> None:
            self.logger.debug("Consuming from queue '%s' as '%s'", queue, tag)

        broker_channel.consume(
            params,
            on_consume=on_consume,
            on_cancel=on_cancel,
            on_failure=lambda response: self._fail(signal, response),
            on_success=on_started,
        )
        return self
