"""Completion signal used to hand asynchronous results to a waiting caller."""

from __future__ import annotations

import logging
from typing import Any, Optional

from rabbitmq_messaging.contracts import IEventLoop
from rabbitmq_messaging.errors import SignalError


class CompletionSignal:
    """A single-writer handoff between a broker callback and a blocked caller.

    The signal becomes ready on the first ``send``; later sends are ignored so a late
    completion path (a broker-initiated close after a successful open, say) cannot replace the
    result already delivered.

    ``begin``/``end`` turn the signal into a counter for batching: each ``begin`` registers one
    expected completion and the signal is sent when the last matching ``end`` arrives. Waiting
    on a counted signal therefore blocks until the count drops to zero.

    Not thread-safe; every method must be called from the thread running the event loop.
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._ready = False
        self._value: Any = None
        self._pending = 0
        self.logger = logging.getLogger(__name__)

    def __repr__(self) -> str:
        return (
            f"CompletionSignal(name={self.name!r}, ready={self._ready}, "
            f"pending={self._pending})"
        )

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def pending(self) -> int:
        """Number of ``begin`` calls not yet matched by ``end``."""
        return self._pending

    @property
    def value(self) -> Any:
        return self._value

    def send(self, value: Any = None) -> bool:
        """Mark the signal ready with ``value``. Returns False if it was already ready."""
        if self._ready:
            self.logger.debug("Ignoring repeated send on %r", self)
            return False
        self._value = value
        self._ready = True
        return True

    def begin(self) -> None:
        self._pending += 1

    def end(self, value: Any = None) -> None:
        if self._pending <= 0:
            raise SignalError(f"end() called without a matching begin() on {self!r}")
        self._pending -= 1
        if self._pending == 0:
            self.send(value)

    def fire(self, value: Any = None) -> None:
        """Complete one operation: count down if counted, otherwise send."""
        if self._pending > 0:
            self.end(value)
        else:
            self.send(value)

    def wait(self, loop: IEventLoop) -> Any:
        """Run ``loop`` until the signal is ready and return its value.

        There is no timeout; schedule ``loop.call_later(delay, signal.send)`` for one.
        """
        while not self._ready:
            loop.poll()
            loop.process_timeouts()
        return self._value


def fire_signal(signal: Optional[CompletionSignal], value: Any = None) -> None:
    """Fire ``signal`` if there is one; fully asynchronous callers may not pass any."""
    if signal is not None:
        signal.fire(value)
