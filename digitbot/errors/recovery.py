"""
Recovery strategy classifications for error handling.

These classes categorize errors by their recovery characteristics and
guide the session controller's retry decision.
"""

from typing import Optional

RECOVERABLE_NAME_MARKERS = ("NetworkError", "TimeoutError", "TemporaryServiceError")


class RecoverableError(Exception):
    """Base for errors the session recovers from by backing off and retrying."""

    def __init__(self, message: str, retry_count: int = 0,
                 max_retries: int = 3, **kwargs):
        super().__init__(message)
        self.retry_count = retry_count
        self.max_retries = max_retries
        self.recoverable = True


class NetworkError(RecoverableError):
    """Transport-level failure talking to the broker."""


class TradeTimeoutError(RecoverableError):
    """A broker call did not answer in time."""


class TemporaryServiceError(RecoverableError):
    """The broker reported a transient service problem."""


class BrokerConnectionError(RecoverableError):
    """The broker connection could not be established."""

    def __init__(self, message: str, endpoint: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.endpoint = endpoint


class UnrecoverableError(Exception):
    """Errors that require human intervention."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message)
        self.recoverable = False


def is_recoverable_error(error: BaseException) -> bool:
    """
    Decide whether a session error warrants a backoff-and-retry.

    Errors raised by broker client libraries are matched by class name so
    that foreign NetworkError/TimeoutError types classify the same way as
    ours.
    """
    if isinstance(error, RecoverableError):
        return True
    if getattr(error, "recoverable", None) is False:
        return False
    if isinstance(error, (ConnectionError, TimeoutError)):
        return True
    name = type(error).__name__
    return any(marker in name for marker in RECOVERABLE_NAME_MARKERS)
