"""Per-operation argument structures."""

from .operation_params import (
    BindExchangeParams,
    BindQueueParams,
    ChannelParams,
    ConnectParams,
    ConsumeParams,
    DeclareExchangeParams,
    DeclareQueueParams,
    DeleteExchangeParams,
    DeleteQueueParams,
    PublishParams,
)

__all__ = [
    "BindExchangeParams",
    "BindQueueParams",
    "ChannelParams",
    "ConnectParams",
    "ConsumeParams",
    "DeclareExchangeParams",
    "DeclareQueueParams",
    "DeleteExchangeParams",
    "DeleteQueueParams",
    "PublishParams",
]
