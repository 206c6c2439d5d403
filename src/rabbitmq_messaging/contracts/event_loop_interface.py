"""Defines the contract for the event loop driving a broker connection."""

from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable


@runtime_checkable
class IEventLoop(Protocol):
    """The subset of pika's ``IOLoop`` used to wait cooperatively for callbacks.

    ``poll`` only works between ``activate_poller`` and ``deactivate_poller``. pika's own
    ``start`` does both around its run loop; a client pumping the loop itself must activate it
    first, exactly once.
    """

    def activate_poller(self) -> None:
        """Allocate the poller and register the file descriptors added so far."""

    def deactivate_poller(self) -> None:
        """Release the poller; ``poll`` must not be called again until reactivated."""

    def poll(self) -> None:
        """Wait for I/O or the next timer deadline and dispatch ready callbacks."""

    def process_timeouts(self) -> None:
        """Run timer callbacks whose deadline has passed."""

    def call_later(self, delay: float, callback: Callable[[], Any]) -> Any:
        """Schedule ``callback`` to run after ``delay`` seconds and return a handle."""

    def close(self) -> None:
        """Release every resource held by the loop."""
