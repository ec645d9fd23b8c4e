"""Base classes for messaging sinks."""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

import structlog

from ..utils.time import utc_now


@dataclass(frozen=True)
class Notification:
    """Structured message for the messaging collaborator."""
    action: str
    text: str
    meta: dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "text": self.text,
            "meta": self.meta,
            "created_at": self.created_at.isoformat(),
        }


class DeliveryStatus(Enum):
    """Notification delivery status."""
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class DeliveryResult:
    """Result of one delivery attempt."""
    status: DeliveryStatus
    message: Optional[str] = None
    delivery_time_ms: Optional[int] = None
    error: Optional[Exception] = None


class NotificationDeliveryError(Exception):
    """A sink could not deliver a notification."""
    pass


class BaseNotificationSink(ABC):
    """
    Base class for messaging sinks.

    deliver() never raises: a failing sink is logged and counted, and the
    trading session carries on.
    """

    def __init__(self, name: str, config: Any = None):
        self.name = name
        self.config = config
        self.logger = structlog.get_logger(f"notifications.{name}")
        self._delivery_count = 0
        self._error_count = 0

    @abstractmethod
    def send(self, notification: Notification) -> DeliveryResult:
        """
        Deliver one notification to the destination.

        May raise; deliver() turns exceptions into a FAILED result.
        """
        pass

    @abstractmethod
    def health_check(self) -> bool:
        """Check if the destination is reachable."""
        pass

    def deliver(self, notification: Notification) -> DeliveryResult:
        """Deliver a notification, recording the outcome."""
        start_time = time.time()
        try:
            result = self.send(notification)
        except Exception as e:
            self.logger.error(
                "Notification delivery failed",
                sink=self.name,
                action=notification.action,
                error=str(e),
                error_type=type(e).__name__
            )
            result = DeliveryResult(
                status=DeliveryStatus.FAILED,
                message=f"Delivery error: {str(e)}",
                error=e
            )

        result.delivery_time_ms = int((time.time() - start_time) * 1000)
        if result.status == DeliveryStatus.SUCCESS:
            self._delivery_count += 1
        else:
            self._error_count += 1
        return result

    def get_stats(self) -> dict[str, Any]:
        """Get delivery statistics."""
        return {
            "name": self.name,
            "delivery_count": self._delivery_count,
            "error_count": self._error_count,
            "success_rate": (
                self._delivery_count / (self._delivery_count + self._error_count)
                if (self._delivery_count + self._error_count) > 0 else 0.0
            )
        }

    def reset_stats(self) -> None:
        """Reset delivery statistics."""
        self._delivery_count = 0
        self._error_count = 0
