"""Blocking RabbitMQ client built on `AsyncClient`."""

from __future__ import annotations

import functools
from typing import Any, Callable, Optional, TypeVar, cast

from rabbitmq_messaging.completion import CompletionSignal

from .async_client import AsyncClient

F = TypeVar("F", bound=Callable[..., Any])


def synchronized(method: F) -> F:
    """Make an `AsyncClient` operation wait for its own completion.

    The wrapped call creates a ``CompletionSignal`` when the caller passes none, runs the
    operation and pumps the client's event loop until the signal is ready, then returns the
    signal's value. Clients with ``blocking_enabled`` off call straight through.
    """

    @functools.wraps(method)
    def wrapper(
        self: Any, *args: Any, signal: Optional[CompletionSignal] = None, **kwargs: Any
    ) -> Any:
        if not self.blocking_enabled:
            return method(self, *args, signal=signal, **kwargs)

        if signal is None:
            signal = CompletionSignal(method.__name__)
        method(self, *args, signal=signal, **kwargs)
        return signal.wait(self.ioloop)

    return cast(F, wrapper)


class Client(AsyncClient):
    """A RabbitMQ client whose operations return once the broker has answered.

    Usage:

        client = Client()
        client.connect(host="localhost", port=5672, vhost="/", user="guest", password="guest")
        client.open_channel(name="ch1")
        queue = client.declare_queue(channel="ch1")
        client.disconnect()
        client.close()

    Each operation returns the client, except ``declare_queue`` which returns the queue name.
    Failures do not raise; they reach the ``error`` handler (``connect_failure`` for connect).

    Pass ``blocking_enabled=False`` to get the asynchronous behaviour of `AsyncClient`, then
    drive the loop with ``wait``.
    """

    def __init__(self, *, blocking_enabled: bool = True, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.blocking_enabled = blocking_enabled

    def wait(self, signal: CompletionSignal) -> Any:
        """Run this client's event loop until ``signal`` is ready and return its value."""
        return signal.wait(self.ioloop)

    connect = synchronized(AsyncClient.connect)
    disconnect = synchronized(AsyncClient.disconnect)
    open_channel = synchronized(AsyncClient.open_channel)
    close_channel = synchronized(AsyncClient.close_channel)
    declare_exchange = synchronized(AsyncClient.declare_exchange)
    delete_exchange = synchronized(AsyncClient.delete_exchange)
    bind_exchange = synchronized(AsyncClient.bind_exchange)
    unbind_exchange = synchronized(AsyncClient.unbind_exchange)
    declare_queue = synchronized(AsyncClient.declare_queue)
    delete_queue = synchronized(AsyncClient.delete_queue)
    bind_queue = synchronized(AsyncClient.bind_queue)
    unbind_queue = synchronized(AsyncClient.unbind_queue)
    publish = synchronized(AsyncClient.publish)
    consume = synchronized(AsyncClient.consume)
