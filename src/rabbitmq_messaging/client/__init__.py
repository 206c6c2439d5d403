"""RabbitMQ clients."""

from .async_client import AsyncClient
from .client import Client, synchronized
from .client_config import ClientDependencies

__all__ = ["AsyncClient", "Client", "ClientDependencies", "synchronized"]
