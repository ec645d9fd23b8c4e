"""Standard output messaging sink."""

import json
import sys
from typing import Optional

from ..config.notifications import StdoutSinkConfig
from .base import BaseNotificationSink, DeliveryResult, DeliveryStatus, Notification


class StdoutNotificationSink(BaseNotificationSink):
    """Prints notifications to stdout."""

    def __init__(self, name: str = "stdout", config: Optional[StdoutSinkConfig] = None):
        super().__init__(name, config or StdoutSinkConfig())
        self.config: StdoutSinkConfig

    def send(self, notification: Notification) -> DeliveryResult:
        print(self._format(notification), file=sys.stdout, flush=True)
        self.logger.debug("Notification printed", sink=self.name, action=notification.action)
        return DeliveryResult(status=DeliveryStatus.SUCCESS, message="Printed to stdout")

    def _format(self, notification: Notification) -> str:
        if self.config.format == "pretty":
            header = f"[{notification.action}]"
            if self.config.include_timestamp:
                header = f"[{notification.created_at.isoformat()}] {header}"
            return f"{header}\n{notification.text}"

        payload = notification.to_dict()
        if not self.config.include_timestamp:
            payload.pop("created_at")
        return json.dumps(payload, default=str)

    def health_check(self) -> bool:
        """Check if stdout is available."""
        try:
            return sys.stdout.writable()
        except (OSError, ValueError):
            return False
