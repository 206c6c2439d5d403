"""Configuration primitives for wiring a `Client`."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable

from pika.adapters.select_connection import IOLoop

from rabbitmq_messaging.broker import PikaBroker
from rabbitmq_messaging.contracts import IBroker, IEventLoop


@dataclass(frozen=True)
class ClientDependencies:
    """Bundles the factories a client uses for its event loop and broker."""

    make_ioloop: Callable[[], IEventLoop] = field(default=IOLoop)
    make_broker: Callable[[Any], IBroker] = field(default=lambda ioloop: PikaBroker(ioloop))
