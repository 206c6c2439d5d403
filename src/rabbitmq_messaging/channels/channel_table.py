"""Maps caller-chosen channel names to open broker channels."""

from __future__ import annotations

import logging
from typing import Dict, Iterator, List, Optional

from rabbitmq_messaging.contracts import IBrokerChannel
from rabbitmq_messaging.errors import ArgumentError
from rabbitmq_messaging.params.operation_params import require_str


class ChannelTable:
    """Named channels of one client.

    Only open and close completions mutate the table. Lookups of unknown names raise
    ``ArgumentError`` instead of returning nothing.
    """

    def __init__(self) -> None:
        self._channels: Dict[str, IBrokerChannel] = {}
        self.logger = logging.getLogger(__name__)

    def __contains__(self, name: object) -> bool:
        return name in self._channels

    def __len__(self) -> int:
        return len(self._channels)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._channels))

    def names(self) -> List[str]:
        return list(self._channels)

    def get(self, name: str) -> IBrokerChannel:
        require_str("name", name)
        try:
            return self._channels[name]
        except KeyError:
            raise ArgumentError(f"No channel named '{name}' exists") from None

    def ensure_absent(self, name: str) -> None:
        require_str("name", name)
        if name in self._channels:
            raise ArgumentError(f"A channel named '{name}' exists already")

    def insert(self, name: str, channel: IBrokerChannel) -> None:
        self.ensure_absent(name)
        self._channels[name] = channel
        self.logger.debug("Added channel '%s'", name)

    def remove(self, name: str) -> Optional[IBrokerChannel]:
        channel = self._channels.pop(name, None)
        if channel is not None:
            self.logger.debug("Removed channel '%s'", name)
        return channel
