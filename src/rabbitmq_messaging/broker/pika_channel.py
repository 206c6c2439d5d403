"""pika implementation of the broker channel contract."""

from __future__ import annotations

import itertools
import logging
from typing import Any, Callable, Dict, Optional, Tuple

import pika
from pika.channel import Channel

from rabbitmq_messaging.contracts import DeclaredQueue, Delivery, IBrokerChannel
from rabbitmq_messaging.contracts.broker_interface import (
    DoneCallback,
    EventCallback,
    FailureCallback,
)
from rabbitmq_messaging.params import (
    BindExchangeParams,
    BindQueueParams,
    ConsumeParams,
    DeclareExchangeParams,
    DeclareQueueParams,
    DeleteExchangeParams,
    DeleteQueueParams,
    PublishParams,
)

# Raised synchronously by pika for calls on closed channels or malformed arguments.
SUBMIT_ERRORS = (pika.exceptions.AMQPError, TypeError, ValueError)


class PikaChannel(IBrokerChannel):
    """Wraps a ``pika.channel.Channel`` so every call reports success or failure.

    pika reports a rejected RPC (an unknown queue, a mismatched exchange type) by closing the
    channel, never through the RPC's own callback. The wrapper keeps the failure callback of
    every RPC in flight and fails them all, in submission order, when the channel closes.
    Consumers still registered are cancelled with the close reason. The close is then reported to whoever is waiting for it: the opener while the channel is still
    opening, the caller of ``close``, or the ``on_close`` event otherwise.
    """

    def __init__(
        self,
        *,
        on_open: Callable[[IBrokerChannel], None],
        on_open_failure: FailureCallback,
        on_close: EventCallback,
        on_return: Optional[EventCallback] = None,
    ) -> None:
        self.channel: Any = None
        self._on_open = on_open
        self._on_open_failure = on_open_failure
        self._on_close = on_close
        self._on_return = on_return
        self._opened = False
        self._tokens = itertools.count()
        self._inflight: Dict[int, FailureCallback] = {}
        self._close_waiter: Optional[Tuple[DoneCallback, FailureCallback]] = None
        self._cancel_handlers: Dict[str, EventCallback] = {}
        self.logger = logging.getLogger(__name__)

    def attach(self, channel: Channel) -> None:
        self.channel = channel
        channel.add_on_close_callback(self._on_channel_closed)
        channel.add_on_cancel_callback(self._on_consumer_cancelled)
        if self._on_return is not None:
            channel.add_on_return_callback(self._on_message_returned)

    @property
    def channel_number(self) -> Optional[int]:
        return getattr(self.channel, "channel_number", None)

    @property
    def is_open(self) -> bool:
        return bool(self.channel is not None and self.channel.is_open)

    def on_channel_open(self, _channel: Channel) -> None:
        self._opened = True
        self.logger.debug("Channel %s opened", self.channel_number)
        self._on_open(self)

    def _on_channel_closed(self, _channel: Channel, reason: Exception) -> None:
        self.logger.debug("Channel %s closed: %r", self.channel_number, reason)
        inflight = list(self._inflight.values())
        self._inflight.clear()
        for on_failure in inflight:
            on_failure(reason)

        cancelled = list(self._cancel_handlers.values())
        self._cancel_handlers.clear()
        for on_cancel in cancelled:
            on_cancel(reason)

        if not self._opened:
            self._on_open_failure(reason)
            return

        waiter, self._close_waiter = self._close_waiter, None
        if waiter is None:
            self._on_close(reason)
            return

        on_success, on_failure = waiter
        if isinstance(reason, pika.exceptions.ChannelClosedByClient):
            on_success()
        else:
            on_failure(reason)

    def _on_consumer_cancelled(self, method_frame: Any) -> None:
        consumer_tag: Any = getattr(method_frame.method, "consumer_tag", None)
        handler = self._cancel_handlers.pop(consumer_tag, None)
        if handler is None:
            self.logger.debug("Cancel for unknown consumer %s", consumer_tag)
            return
        handler(method_frame)

    def _on_message_returned(
        self, _channel: Channel, method: Any, _properties: Any, _body: bytes
    ) -> None:
        if self._on_return is not None:
            self._on_return(method)

    def _rpc(
        self,
        method: Callable[..., Any],
        on_success: Callable[[Any], None],
        on_failure: FailureCallback,
        **kwargs: Any,
    ) -> Any:
        token = next(self._tokens)
        self._inflight[token] = on_failure

        def _done(frame: Any) -> None:
            if self._inflight.pop(token, None) is not None:
                on_success(frame)

        try:
            return method(callback=_done, **kwargs)
        except SUBMIT_ERRORS as exc:
            if self._inflight.pop(token, None) is not None:
                on_failure(exc)
            return None

    def close(self, *, on_success: DoneCallback, on_failure: FailureCallback) -> None:
        if self.channel is None or self.channel.is_closed or self.channel.is_closing:
            on_failure(f"Channel {self.channel_number} is not open")
            return
        self._close_waiter = (on_success, on_failure)
        try:
            self.channel.close()
        except SUBMIT_ERRORS as exc:
            self._close_waiter = None
            on_failure(exc)

    def declare_exchange(
        self,
        params: DeclareExchangeParams,
        *,
        on_success: DoneCallback,
        on_failure: FailureCallback,
    ) -> None:
        self._rpc(
            self.channel.exchange_declare,
            lambda _frame: on_success(),
            on_failure,
            exchange=params.name,
            exchange_type=params.exchange_type,
            passive=params.passive,
            durable=params.durable,
            auto_delete=params.auto_delete,
        )

    def delete_exchange(
        self,
        params: DeleteExchangeParams,
        *,
        on_success: DoneCallback,
        on_failure: FailureCallback,
    ) -> None:
        self._rpc(
            self.channel.exchange_delete,
            lambda _frame: on_success(),
            on_failure,
            exchange=params.name,
        )

    def bind_exchange(
        self,
        params: BindExchangeParams,
        *,
        on_success: DoneCallback,
        on_failure: FailureCallback,
    ) -> None:
        self._rpc(
            self.channel.exchange_bind,
            lambda _frame: on_success(),
            on_failure,
            destination=params.destination,
            source=params.source,
            routing_key=params.routing_key,
        )

    def unbind_exchange(
        self,
        params: BindExchangeParams,
        *,
        on_success: DoneCallback,
        on_failure: FailureCallback,
    ) -> None:
        self._rpc(
            self.channel.exchange_unbind,
            lambda _frame: on_success(),
            on_failure,
            destination=params.destination,
            source=params.source,
            routing_key=params.routing_key,
        )

    def declare_queue(
        self,
        params: DeclareQueueParams,
        *,
        on_success: Callable[[DeclaredQueue], None],
        on_failure: FailureCallback,
    ) -> None:
        def _declared(frame: Any) -> None:
            on_success(
                DeclaredQueue(
                    queue=frame.method.queue,
                    message_count=frame.method.message_count,
                    consumer_count=frame.method.consumer_count,
                )
            )

        self._rpc(
            self.channel.queue_declare,
            _declared,
            on_failure,
            queue=params.name,
            passive=params.passive,
            durable=params.durable,
            exclusive=params.exclusive,
            auto_delete=params.auto_delete,
        )

    def delete_queue(
        self,
        params: DeleteQueueParams,
        *,
        on_success: DoneCallback,
        on_failure: FailureCallback,
    ) -> None:
        self._rpc(
            self.channel.queue_delete,
            lambda _frame: on_success(),
            on_failure,
            queue=params.name,
        )

    def bind_queue(
        self,
        params: BindQueueParams,
        *,
        on_success: DoneCallback,
        on_failure: FailureCallback,
    ) -> None:
        self._rpc(
            self.channel.queue_bind,
            lambda _frame: on_success(),
            on_failure,
            queue=params.destination,
            exchange=params.source,
            routing_key=params.routing_key,
            arguments=dict(params.arguments) or None,
        )

    def unbind_queue(
        self,
        params: BindQueueParams,
        *,
        on_success: DoneCallback,
        on_failure: FailureCallback,
    ) -> None:
        self._rpc(
            self.channel.queue_unbind,
            lambda _frame: on_success(),
            on_failure,
            queue=params.destination,
            exchange=params.source,
            routing_key=params.routing_key,
            arguments=dict(params.arguments) or None,
        )

    def publish(
        self,
        params: PublishParams,
        *,
        on_success: DoneCallback,
        on_failure: FailureCallback,
    ) -> None:
        if params.immediate:
            self.logger.warning("The immediate flag is not supported by pika and was ignored")
        properties = pika.BasicProperties(headers=dict(params.headers) or None)
        try:
            self.channel.basic_publish(
                exchange=params.exchange,
                routing_key=params.routing_key,
                body=params.encoded_body,
                properties=properties,
                mandatory=params.mandatory,
            )
        except SUBMIT_ERRORS as exc:
            on_failure(exc)
            return
        on_success()

    def consume(
        self,
        params: ConsumeParams,
        *,
        on_consume: Callable[[Delivery], None],
        on_cancel: EventCallback,
        on_failure: FailureCallback,
        on_success: Optional[Callable[[str], None]] = None,
    ) -> None:
        def _deliver(_channel: Channel, method: Any, properties: Any, body: bytes) -> None:
            on_consume(
                Delivery(
                    body=body,
                    delivery_tag=method.delivery_tag,
                    routing_key=method.routing_key,
                    exchange=method.exchange,
                    consumer_tag=method.consumer_tag,
                    redelivered=bool(method.redelivered),
                    headers=dict(getattr(properties, "headers", None) or {}),
                    properties=properties,
                )
            )

        # A consumer that never started is failed, not cancelled.
        def _started(frame: Any) -> None:
            consumer_tag = frame.method.consumer_tag
            self._cancel_handlers[consumer_tag] = on_cancel
            if on_success is not None:
                on_success(consumer_tag)

        self._rpc(
            self.channel.basic_consume,
            _started,
            on_failure,
            queue=params.queue,
            on_message_callback=_deliver,
            auto_ack=params.no_ack,
            consumer_tag=params.consumer_tag or None,
        )

    def ack(self, delivery_tag: int) -> None:
        self.channel.basic_ack(delivery_tag=delivery_tag)
