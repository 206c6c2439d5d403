"""Exceptions and broker failure normalization."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional


class RabbitMQMessagingError(Exception):
    """Base class for errors raised by rabbitmq_messaging."""


class ArgumentError(RabbitMQMessagingError, ValueError):
    """Raised when an operation is called with missing or invalid arguments."""


class SignalError(RabbitMQMessagingError):
    """Raised when a completion signal is used inconsistently."""


@dataclass(frozen=True)
class BrokerFailure:
    """A broker-side failure reduced to a reply code and a reason.

    ``code`` is ``None`` when the failure carried only a diagnostic message (a socket error,
    a client-side state error). ``response`` keeps the original object for handlers that need
    more detail.
    """

    code: Optional[int]
    text: str
    response: Any = None

    def __str__(self) -> str:
        if self.code is None:
            return self.text
        return f"{self.code}: {self.text}"


def _reply_of(obj: Any) -> Optional[BrokerFailure]:
    code = getattr(obj, "reply_code", None)
    text = getattr(obj, "reply_text", None)
    if code is None and text is None:
        return None
    try:
        code = int(code) if code is not None else None
    except (TypeError, ValueError):
        code = None
    return BrokerFailure(code=code, text=str(text or ""), response=obj)


def normalize_failure(response: Any, logger: Optional[logging.Logger] = None) -> BrokerFailure:
    """Convert any failure shape into a ``BrokerFailure`` and log it once.

    Accepts pika close exceptions (``reply_code``/``reply_text``), AMQP method frames whose
    ``method`` carries the reply, other exceptions and plain strings. Never raises.
    """
    failure = None
    try:
        failure = _reply_of(response)
        if failure is None:
            failure = _reply_of(getattr(response, "method", None))
            if failure is not None:
                failure = BrokerFailure(failure.code, failure.text, response)
        if failure is None:
            text = str(response) if response is not None else "Unknown broker failure"
            if isinstance(response, BaseException) and not text:
                text = type(response).__name__
            failure = BrokerFailure(code=None, text=text, response=response)
    except Exception:  # pylint: disable=broad-exception-caught
        failure = BrokerFailure(code=None, text=repr(response), response=response)

    (logger or logging.getLogger(__name__)).error("%s", failure)
    return failure
