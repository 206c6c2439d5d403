"""Connection settings for the RabbitMQ client."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlparse

import pika

from rabbitmq_messaging.params.operation_params import TUNE_KEYS

RABBITMQ_URL_ENV = "RABBITMQ_URL"


@dataclass(frozen=True)
class ConnectionConfig:
    """Broker address and credentials in the shape accepted by ``connect``.

    Build one from an AMQP URL with ``from_url``; ``amqps://`` URLs enable TLS, and the
    ``heartbeat``, ``channel_max``, ``frame_max`` and ``socket_timeout`` query options map to
    ``tune`` and ``timeout``.
    """

    host: str = "localhost"
    port: int = 5672
    vhost: str = "/"
    user: str = "guest"
    password: str = "guest"
    timeout: Optional[float] = None
    tls: bool = False
    tune: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_url(cls, rabbitmq_url: Optional[str] = None) -> ConnectionConfig:
        url = (rabbitmq_url or os.getenv(RABBITMQ_URL_ENV) or "").strip()
        if not url:
            raise ValueError(
                "RabbitMQ URL must be provided via argument or "
                f"{RABBITMQ_URL_ENV} environment variable."
            )

        try:
            parameters = pika.URLParameters(url)
        except ValueError as exc:
            raise ValueError(f"Invalid RabbitMQ URL provided: {url}") from exc

        query = parse_qs(urlparse(url).query)
        tune = {key: int(getattr(parameters, key)) for key in sorted(TUNE_KEYS) if key in query}
        timeout = parameters.socket_timeout if "socket_timeout" in query else None

        return cls(
            host=parameters.host,
            port=parameters.port,
            vhost=parameters.virtual_host,
            user=parameters.credentials.username,
            password=parameters.credentials.password,
            timeout=timeout,
            tls=parameters.ssl_options is not None,
            tune=tune,
        )

    def as_connect_kwargs(self) -> Dict[str, Any]:
        return {
            "host": self.host,
            "port": self.port,
            "vhost": self.vhost,
            "user": self.user,
            "password": self.password,
            "timeout": self.timeout,
            "tls": self.tls,
            "tune": dict(self.tune),
        }
