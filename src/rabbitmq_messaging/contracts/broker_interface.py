"""Defines the contract for the asynchronous broker behind the client."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from rabbitmq_messaging.params import (
    BindExchangeParams,
    BindQueueParams,
    ConnectParams,
    ConsumeParams,
    DeclareExchangeParams,
    DeclareQueueParams,
    DeleteExchangeParams,
    DeleteQueueParams,
    PublishParams,
)

FailureCallback = Callable[[Any], None]
EventCallback = Callable[[Any], None]
DoneCallback = Callable[[], None]


@dataclass(frozen=True)
class DeclaredQueue:
    """Result of a successful queue declaration."""

    queue: str
    message_count: int = 0
    consumer_count: int = 0


@dataclass(frozen=True)
class Delivery:
    """A message delivered to a consumer."""

    body: bytes
    delivery_tag: int
    routing_key: str = ""
    exchange: str = ""
    consumer_tag: str = ""
    redelivered: bool = False
    headers: Dict[str, Any] = field(default_factory=dict)
    properties: Any = None
    channel: str = ""


class IBrokerChannel(ABC):
    """A broker channel whose operations report through callbacks.

    Every operation calls exactly one of ``on_success`` or ``on_failure``, possibly before
    returning. A broker-initiated channel close fails every operation still in flight.
    """

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the channel can carry operations."""

    @abstractmethod
    def close(self, *, on_success: DoneCallback, on_failure: FailureCallback) -> None:
        """Close the channel."""

    @abstractmethod
    def declare_exchange(
        self,
        params: DeclareExchangeParams,
        *,
        on_success: DoneCallback,
        on_failure: FailureCallback,
    ) -> None:
        """Declare an exchange."""

    @abstractmethod
    def delete_exchange(
        self,
        params: DeleteExchangeParams,
        *,
        on_success: DoneCallback,
        on_failure: FailureCallback,
    ) -> None:
        """Delete an exchange."""

    @abstractmethod
    def bind_exchange(
        self,
        params: BindExchangeParams,
        *,
        on_success: DoneCallback,
        on_failure: FailureCallback,
    ) -> None:
        """Bind ``params.destination`` exchange to ``params.source`` exchange."""

    @abstractmethod
    def unbind_exchange(
        self,
        params: BindExchangeParams,
        *,
        on_success: DoneCallback,
        on_failure: FailureCallback,
    ) -> None:
        """Remove an exchange to exchange binding."""

    @abstractmethod
    def declare_queue(
        self,
        params: DeclareQueueParams,
        *,
        on_success: Callable[[DeclaredQueue], None],
        on_failure: FailureCallback,
    ) -> None:
        """Declare a queue; ``on_success`` receives the broker's view of it."""

    @abstractmethod
    def delete_queue(
        self,
        params: DeleteQueueParams,
        *,
        on_success: DoneCallback,
        on_failure: FailureCallback,
    ) -> None:
        """Delete a queue."""

    @abstractmethod
    def bind_queue(
        self,
        params: BindQueueParams,
        *,
        on_success: DoneCallback,
        on_failure: FailureCallback,
    ) -> None:
        """Bind ``params.destination`` queue to ``params.source`` exchange."""

    @abstractmethod
    def unbind_queue(
        self,
        params: BindQueueParams,
        *,
        on_success: DoneCallback,
        on_failure: FailureCallback,
    ) -> None:
        """Remove a queue binding."""

    @abstractmethod
    def publish(
        self,
        params: PublishParams,
        *,
        on_success: DoneCallback,
        on_failure: FailureCallback,
    ) -> None:
        """Submit a message; success means accepted locally, not confirmed by the broker."""

    @abstractmethod
    def consume(
        self,
        params: ConsumeParams,
        *,
        on_consume: Callable[[Delivery], None],
        on_cancel: EventCallback,
        on_failure: FailureCallback,
        on_success: Optional[Callable[[str], None]] = None,
    ) -> None:
        """Start a consumer. ``on_consume`` runs once per delivery for its lifetime.

        ``on_cancel`` fires once if the broker cancels the consumer or the channel closes
        under it.
        """

    @abstractmethod
    def ack(self, delivery_tag: int) -> None:
        """Acknowledge a single delivery."""


class IBroker(ABC):
    """An asynchronous connection to an AMQP broker."""

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """Whether the connection is established."""

    @property
    @abstractmethod
    def server_properties(self) -> Optional[Dict[str, Any]]:
        """Properties announced by the server at connection start."""

    @abstractmethod
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
        """Open the connection.

        ``on_read_failure``, ``on_return`` and ``on_close`` may fire at any later time: for a
        lost stream, a returned mandatory message and an unexpected connection close.
        """

    @abstractmethod
    def close(self, *, on_success: DoneCallback, on_failure: FailureCallback) -> None:
        """Close the connection and every channel on it."""

    @abstractmethod
    def open_channel(
        self,
        *,
        on_success: Callable[[IBrokerChannel], None],
        on_failure: FailureCallback,
        on_close: EventCallback,
    ) -> None:
        """Open a channel. ``on_close`` fires if the open channel is closed later."""
