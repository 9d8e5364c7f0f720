# File: src/parking_engine/infrastructure/messaging.py
"""
Messaging Infrastructure for the Parking Engine

This module implements in-process event fan-out:
1. Event Handlers - listener contract for lot notifications
2. Event Bus - synchronous publish/subscribe within one process
3. Display Handler - logs a one-line summary of every event

Key Patterns:
- Publish/Subscribe
- Per-listener failure isolation

Delivery happens on the publishing thread. The parking lot publishes while
holding its own lock, so handlers must not call back into the lot.
"""

from abc import ABC, abstractmethod
from typing import List
import logging
import threading

from ..domain.models import ParkingEvent, EntryEvent, ExitEvent, OccupancyEvent


# ============================================================================
# EVENT HANDLERS
# ============================================================================

class EventHandler(ABC):
    """Abstract base class for event handlers"""

    @abstractmethod
    def handle(self, event: ParkingEvent) -> None:
        """Handle a parking event"""
        pass

    def can_handle(self, event: ParkingEvent) -> bool:
        """Check if this handler can handle the event"""
        return True


class DisplayEventHandler(EventHandler):
    """
    Display sink: renders each event as a log line
    Stands in for the entrance signs and operator console
    """

    def __init__(self, logger_name: str = "ParkingDisplay"):
        self._logger = logging.getLogger(logger_name)
        self.lines: List[str] = []

    def handle(self, event: ParkingEvent) -> None:
        if isinstance(event, EntryEvent):
            line = f"ENTRY: {event.license_plate} -> spot {event.spot_id}"
        elif isinstance(event, ExitEvent):
            line = (
                f"EXIT: {event.license_plate} from spot {event.spot_id} "
                f"after {event.duration_hours:.2f}h, paid {event.payment}"
            )
        elif isinstance(event, OccupancyEvent):
            line = (
                f"STATUS: {event.occupied}/{event.total} occupied, "
                f"{event.available} available ({event.occupancy_percentage:.1f}%)"
            )
        else:
            line = f"EVENT: {type(event).__name__}"

        self.lines.append(line)
        self._logger.info(line)


# ============================================================================
# EVENT BUS (In-memory)
# ============================================================================

class EventBus:
    """
    In-memory event bus for intra-process event publishing

    Handlers receive every event in subscription order. A failing handler
    is logged and skipped; the remaining handlers still get the event.
    """

    def __init__(self):
        self._subscribers: List[EventHandler] = []
        self._lock = threading.Lock()
        self._logger = logging.getLogger(self.__class__.__name__)

    def subscribe(self, handler: EventHandler) -> None:
        """Subscribe a handler; subscribing twice has no effect"""
        with self._lock:
            if handler not in self._subscribers:
                self._subscribers.append(handler)
                self._logger.debug(f"Subscribed {handler.__class__.__name__}")

    def unsubscribe(self, handler: EventHandler) -> None:
        """Unsubscribe handler; unknown handlers are ignored"""
        with self._lock:
            try:
                self._subscribers.remove(handler)
                self._logger.debug(f"Unsubscribed {handler.__class__.__name__}")
            except ValueError:
                pass

    def clear_subscribers(self) -> None:
        with self._lock:
            self._subscribers.clear()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: ParkingEvent) -> None:
        """Publish an event to all subscribers"""
        with self._lock:
            handlers = list(self._subscribers)

        self._logger.debug(f"Publishing {type(event).__name__} to {len(handlers)} handler(s)")

        for handler in handlers:
            try:
                if handler.can_handle(event):
                    handler.handle(event)
            except Exception:
                self._logger.exception(
                    f"Error handling {type(event).__name__} with {handler.__class__.__name__}"
                )
