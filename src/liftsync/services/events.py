"""In-process fire-and-forget event broadcast."""

import inspect
from collections import defaultdict
from typing import Any, Callable

from ..utils.logging import get_logger

logger = get_logger(__name__)

# Hand-offs to subsystems that own entities the sync engine does not
SCHEDULED_WORKOUTS_SYNCED_FROM_CLOUD = "scheduled_workouts_synced_from_cloud"
USER_PROFILE_SYNCED_FROM_CLOUD = "user_profile_synced_from_cloud"
DELETION_SYNCED_FROM_CLOUD = "deletion_synced_from_cloud"
REQUEST_SCHEDULED_WORKOUTS_FOR_SYNC = "request_scheduled_workouts_for_sync"
REQUEST_USER_PROFILE_FOR_SYNC = "request_user_profile_for_sync"

Handler = Callable[[Any], Any]


class EventBus:
    """Named-event broadcast to registered handlers.

    Handlers may be plain callables or coroutine functions. A failing
    handler is logged and never reaches the publisher.
    """

    def __init__(self):
        self._handlers: dict[str, list[Handler]] = defaultdict(list)

    def subscribe(self, name: str, handler: Handler) -> None:
        self._handlers[name].append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        handlers = self._handlers.get(name, [])
        if handler in handlers:
            handlers.remove(handler)

    def handler_count(self, name: str) -> int:
        return len(self._handlers.get(name, []))

    async def publish(self, name: str, payload: Any = None) -> int:
        """Deliver an event. Returns the number of handlers that succeeded."""
        delivered = 0
        for handler in list(self._handlers.get(name, [])):
            try:
                result = handler(payload)
                if inspect.isawaitable(result):
                    await result
                delivered += 1
            except Exception as e:
                logger.error("event handler failed", event_name=name, error=str(e), exc_info=True)
        logger.debug("event published", event_name=name, handlers=delivered)
        return delivered
