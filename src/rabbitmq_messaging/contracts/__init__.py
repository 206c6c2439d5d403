"""Contract interfaces for rabbitmq messaging."""

from .broker_interface import DeclaredQueue, Delivery, IBroker, IBrokerChannel
from .event_loop_interface import IEventLoop

__all__ = [
    "DeclaredQueue",
    "Delivery",
    "IBroker",
    "IBrokerChannel",
    "IEventLoop",
]
