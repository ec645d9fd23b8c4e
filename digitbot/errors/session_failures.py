"""
Session failure classifications.

These exceptions stop a session outright; they are never retried.
"""

from typing import Any, Dict, Optional


class SessionFailureError(Exception):
    """Base class for unrecoverable session failures."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.context = context or {}
        self.recoverable = False


class SessionPreconditionError(SessionFailureError):
    """The controller was asked to do something its state does not allow."""

    def __init__(self, message: str, current_state: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.current_state = current_state


class AccountUnavailableError(SessionFailureError):
    """The account provider could not supply an account for the token."""

    def __init__(self, message: str, account_type: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.account_type = account_type


class PersistenceError(SessionFailureError):
    """Database or file system persistence failures."""

    def __init__(self, message: str, operation: Optional[str] = None,
                 target: Optional[str] = None, **kwargs):
        super().__init__(message, **kwargs)
        self.operation = operation
        self.target = target
