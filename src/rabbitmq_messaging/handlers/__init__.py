"""Lifecycle handler registry."""

from .handler_registry import Handler, Handlers, accept_all

__all__ = ["Handler", "Handlers", "accept_all"]
