"""Completion signals for synchronizing with broker callbacks."""

from .completion_signal import CompletionSignal, fire_signal

__all__ = ["CompletionSignal", "fire_signal"]
