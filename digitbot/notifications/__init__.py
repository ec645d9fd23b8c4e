"""Messaging sinks for session notifications."""
from .base import (
    BaseNotificationSink,
    DeliveryResult,
    DeliveryStatus,
    Notification,
    NotificationDeliveryError,
)
from .file_sink import FileNotificationSink
from .stdout_sink import StdoutNotificationSink

__all__ = [
    "BaseNotificationSink",
    "DeliveryResult",
    "DeliveryStatus",
    "FileNotificationSink",
    "Notification",
    "NotificationDeliveryError",
    "StdoutNotificationSink",
]
