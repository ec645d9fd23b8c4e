"""
Publish/subscribe channel for session control events.

One channel is created per controller and handed to every component that
may ask the session to stop. Handlers run synchronously inside publish(),
so they must only record the request and return.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

import structlog

from .utils.time import utc_now

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class StopRequest:
    """Ask the session controller to stop at the next trade boundary."""
    reason: str
    profit: float = 0.0
    reasons: tuple[str, ...] = ()
    timestamp: datetime = field(default_factory=utc_now)
    source: str = "dispatcher"

    def to_meta(self) -> dict:
        return {
            "reason": self.reason,
            "reasons": list(self.reasons),
            "profit": self.profit,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
        }


class EventChannel:
    """Typed in-process event channel."""

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable]] = defaultdict(list)

    def subscribe(self, event_type: type, handler: Callable) -> Callable[[], None]:
        """Register handler; returns a function that removes it again."""
        self._handlers[event_type].append(handler)

        def unsubscribe() -> None:
            self.unsubscribe(event_type, handler)

        return unsubscribe

    def unsubscribe(self, event_type: type, handler: Callable) -> None:
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event: object) -> int:
        """Deliver event to its subscribers. Returns the number notified."""
        handlers = list(self._handlers.get(type(event), []))
        if not handlers:
            logger.warning("Event published without subscribers", event_type=type(event).__name__)
        for handler in handlers:
            try:
                handler(event)
            except Exception as e:
                logger.error("Event handler failed", event_type=type(event).__name__,
                             error=str(e), error_type=type(e).__name__)
        return len(handlers)

    def subscriber_count(self, event_type: Optional[type] = None) -> int:
        if event_type is None:
            return sum(len(handlers) for handlers in self._handlers.values())
        return len(self._handlers.get(event_type, []))
