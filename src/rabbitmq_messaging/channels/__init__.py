"""Channel bookkeeping."""

from .channel_table import ChannelTable

__all__ = ["ChannelTable"]
