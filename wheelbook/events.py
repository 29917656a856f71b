"""Fire-and-forget signals emitted after engine mutations.

Two kinds of events leave the engine:

- ``paths_invalidated``: cached views that must be refreshed after a commit
  (trades list, trade detail, positions, wheels, dashboard)
- ``trade_limit_reached``: analytics signal raised when a FREE user hits
  the lifetime trade cap

Listeners are registered per event name. A failing listener is logged and
never affects the operation that published the event.
"""

import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

PATHS_INVALIDATED = "paths_invalidated"
TRADE_LIMIT_REACHED = "trade_limit_reached"

TRADES_PATH = "/trades"
POSITIONS_PATH = "/positions"
DASHBOARD_PATH = "/dashboard"
EXPIRATIONS_PATH = "/expirations"
WHEELS_PATH = "/wheels"

Listener = Callable[[Dict[str, Any]], None]


class EventPublisher:
    """Registry of event listeners.

    Attributes:
        _listeners: Listeners keyed by event name
    """

    def __init__(self):
        self._listeners: Dict[str, List[Listener]] = {}

    def subscribe(self, event: str, listener: Listener) -> None:
        """Register a listener for an event.

        Args:
            event: Event name
            listener: Callable receiving the event payload
        """
        self._listeners.setdefault(event, []).append(listener)
        logger.debug(f"Subscribed {getattr(listener, '__name__', listener)} to {event}")

    def unsubscribe(self, event: str, listener: Listener) -> None:
        """Remove a previously registered listener, ignoring unknown ones."""
        listeners = self._listeners.get(event, [])
        if listener in listeners:
            listeners.remove(listener)

    def clear(self) -> None:
        """Remove every listener."""
        self._listeners.clear()

    def publish(self, event: str, payload: Dict[str, Any]) -> None:
        """Deliver an event to its listeners.

        Listener errors are logged and swallowed so publishing never fails.

        Args:
            event: Event name
            payload: Event data
        """
        logger.info(f"Event {event}: {payload}")
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(payload)
            except Exception as e:
                logger.error(f"Listener for {event} failed: {e}", exc_info=True)

    def invalidate(self, *paths: str) -> None:
        """Publish a cache invalidation for the given view paths."""
        self.publish(PATHS_INVALIDATED, {"paths": list(paths)})

    def trade_limit_reached(self, user_id: str, trades_used: int, trade_limit: int) -> None:
        """Publish the analytics signal for a blocked trade creation."""
        self.publish(
            TRADE_LIMIT_REACHED,
            {"user_id": user_id, "trades_used": trades_used, "trade_limit": trade_limit},
        )


def trade_paths(*trade_ids: str) -> list[str]:
    """Views touched by a change to the given trades."""
    return [TRADES_PATH, *(f"{TRADES_PATH}/{t}" for t in trade_ids), DASHBOARD_PATH]


# Global publisher instance
events = EventPublisher()
