"""pika-backed broker adapter."""

from .pika_broker import PikaBroker, build_parameters
from .pika_channel import PikaChannel

__all__ = ["PikaBroker", "PikaChannel", "build_parameters"]
