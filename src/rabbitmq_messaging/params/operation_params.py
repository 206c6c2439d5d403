"""Typed, validated arguments for each broker operation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from rabbitmq_messaging.errors import ArgumentError

TUNE_KEYS = frozenset({"heartbeat", "channel_max", "frame_max"})


def require_str(name: str, value: Any, *, allow_empty: bool = False) -> None:
    if value is None:
        raise ArgumentError(f"The {name} argument was undefined")
    if not isinstance(value, str):
        raise ArgumentError(f"The {name} argument must be a string, got {type(value).__name__}")
    if not value and not allow_empty:
        raise ArgumentError(f"The {name} argument was empty")


def require_flag(name: str, value: Any) -> None:
    if not isinstance(value, bool):
        raise ArgumentError(f"The {name} argument must be a bool, got {value!r}")


def require_dict(name: str, value: Any) -> None:
    if not isinstance(value, dict):
        raise ArgumentError(f"The {name} argument must be a dict, got {type(value).__name__}")


@dataclass(frozen=True)
class ConnectParams:
    host: str
    port: int
    vhost: str
    user: str
    password: str
    timeout: Optional[float] = None
    tls: Any = False
    tune: Dict[str, int] = field(default_factory=dict)

    def validate(self) -> None:
        require_str("host", self.host)
        if self.port is None:
            raise ArgumentError("The port argument was undefined")
        if isinstance(self.port, bool) or not isinstance(self.port, int):
            raise ArgumentError(f"The port argument must be an integer, got {self.port!r}")
        if not 0 < self.port < 65536:
            raise ArgumentError(f"The port argument is out of range: {self.port}")
        require_str("vhost", self.vhost)
        require_str("user", self.user)
        require_str("password", self.password, allow_empty=True)
        if self.timeout is not None and (
            isinstance(self.timeout, bool)
            or not isinstance(self.timeout, (int, float))
            or self.timeout <= 0
        ):
            raise ArgumentError(f"The timeout argument must be a positive number, got {self.timeout!r}")
        require_dict("tune", self.tune)
        unknown = set(self.tune) - TUNE_KEYS
        if unknown:
            raise ArgumentError(f"Unknown tune settings: {', '.join(sorted(unknown))}")

    def describe(self) -> str:
        return f"{self.user}@{self.host}:{self.port}{self.vhost}"


@dataclass(frozen=True)
class ChannelParams:
    name: str

    def validate(self) -> None:
        require_str("name", self.name)


@dataclass(frozen=True)
class DeclareExchangeParams:
    name: str
    channel: str
    exchange_type: str = "direct"
    durable: bool = False
    passive: bool = False
    auto_delete: bool = False

    def validate(self) -> None:
        require_str("name", self.name)
        require_str("channel", self.channel)
        require_str("exchange_type", self.exchange_type)
        require_flag("durable", self.durable)
        require_flag("passive", self.passive)
        require_flag("auto_delete", self.auto_delete)


@dataclass(frozen=True)
class DeleteExchangeParams:
    name: str
    channel: str

    def validate(self) -> None:
        require_str("name", self.name)
        require_str("channel", self.channel)


@dataclass(frozen=True)
class BindExchangeParams:
    source: str
    destination: str
    channel: str
    routing_key: str = ""

    def validate(self) -> None:
        require_str("source", self.source)
        require_str("destination", self.destination)
        require_str("channel", self.channel)
        require_str("routing_key", self.routing_key, allow_empty=True)


@dataclass(frozen=True)
class DeclareQueueParams:
    channel: str
    name: str = ""
    durable: bool = False
    passive: bool = False
    exclusive: bool = False
    auto_delete: bool = False

    def validate(self) -> None:
        require_str("channel", self.channel)
        require_str("name", self.name, allow_empty=True)
        require_flag("durable", self.durable)
        require_flag("passive", self.passive)
        require_flag("exclusive", self.exclusive)
        require_flag("auto_delete", self.auto_delete)


@dataclass(frozen=True)
class DeleteQueueParams:
    name: str
    channel: str

    def validate(self) -> None:
        require_str("name", self.name)
        require_str("channel", self.channel)


@dataclass(frozen=True)
class BindQueueParams:
    """Binding of queue ``destination`` to exchange ``source``."""

    source: str
    destination: str
    channel: str
    routing_key: str = ""
    arguments: Dict[str, Any] = field(default_factory=dict)

    def validate(self) -> None:
        require_str("source", self.source)
        require_str("destination", self.destination)
        require_str("channel", self.channel)
        require_str("routing_key", self.routing_key, allow_empty=True)
        require_dict("arguments", self.arguments)


@dataclass(frozen=True)
class PublishParams:
    routing_key: str
    exchange: str
    channel: str
    body: Union[bytes, str]
    headers: Dict[str, Any] = field(default_factory=dict)
    immediate: bool = False
    mandatory: bool = False

    def validate(self) -> None:
        require_str("routing_key", self.routing_key)
        # "" is the default exchange
        require_str("exchange", self.exchange, allow_empty=True)
        require_str("channel", self.channel)
        if self.body is None:
            raise ArgumentError("The body argument was undefined")
        if not isinstance(self.body, (bytes, str)):
            raise ArgumentError(f"The body argument must be bytes or str, got {type(self.body).__name__}")
        require_dict("headers", self.headers)
        require_flag("immediate", self.immediate)
        require_flag("mandatory", self.mandatory)

    @property
    def encoded_body(self) -> bytes:
        if isinstance(self.body, str):
            return self.body.encode("utf-8")
        return self.body


@dataclass(frozen=True)
class ConsumeParams:
    queue: str
    channel: str
    no_ack: bool = False
    consumer_tag: str = ""

    def validate(self) -> None:
        require_str("queue", self.queue)
        require_str("channel", self.channel)
        require_flag("no_ack", self.no_ack)
        require_str("consumer_tag", self.consumer_tag, allow_empty=True)
