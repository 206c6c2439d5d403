"""Blocking and callback-driven RabbitMQ client on top of pika."""

from .broker import PikaBroker
from .client import AsyncClient, Client, ClientDependencies
from .completion import CompletionSignal
from .config import ConnectionConfig
from .contracts import DeclaredQueue, Delivery, IBroker, IBrokerChannel, IEventLoop
from .errors import ArgumentError, BrokerFailure, RabbitMQMessagingError, SignalError
from .handlers import Handlers

__all__ = [
    "Client",
    "AsyncClient",
    "ClientDependencies",
    "ConnectionConfig",
    "CompletionSignal",
    "Handlers",
    "PikaBroker",
    "IBroker",
    "IBrokerChannel",
    "IEventLoop",
    "DeclaredQueue",
    "Delivery",
    "BrokerFailure",
    "RabbitMQMessagingError",
    "ArgumentError",
    "SignalError",
]
