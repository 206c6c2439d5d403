"""User-overridable lifecycle callbacks."""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from typing import Any, Callable, Tuple

from rabbitmq_messaging.errors import ArgumentError

Handler = Callable[..., Any]


def accept_all(*_args: Any, **_kwargs: Any) -> bool:
    """Default handler: accepts any arguments and does nothing."""
    return True


@dataclass(frozen=True)
class Handlers:
    """One callback per lifecycle event; every entry defaults to ``accept_all``.

    Call shapes:

    - ``connect(client)``
    - ``connect_failure(client, failure)``
    - ``disconnect(client)``
    - ``open_channel(client, channel, name)``
    - ``close_channel(client, name)``
    - ``publish(client, body, routing_key)``
    - ``consume(client, delivery)``
    - ``consume_cancel(client, channel_name, response)``
    - ``error(client, failure)``

    Each handler runs before the completion signal of its operation fires.
    """

    connect: Handler = field(default=accept_all)
    connect_failure: Handler = field(default=accept_all)
    disconnect: Handler = field(default=accept_all)
    open_channel: Handler = field(default=accept_all)
    close_channel: Handler = field(default=accept_all)
    publish: Handler = field(default=accept_all)
    consume: Handler = field(default=accept_all)
    consume_cancel: Handler = field(default=accept_all)
    error: Handler = field(default=accept_all)

    @classmethod
    def names(cls) -> Tuple[str, ...]:
        return tuple(f.name for f in fields(cls))

    def with_overrides(self, **handlers: Handler) -> Handlers:
        """Return a copy with the given entries replaced.

        Raises ``ArgumentError`` for unknown event names or non-callable values.
        """
        known = self.names()
        for name, handler in handlers.items():
            if name not in known:
                raise ArgumentError(
                    f"Unknown handler '{name}', expected one of: {', '.join(known)}"
                )
            if not callable(handler):
                raise ArgumentError(f"The {name} handler is not callable: {handler!r}")
        return replace(self, **handlers)
