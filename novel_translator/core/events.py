"""
Event system for pipeline observability.

Lets a UI or persistence collaborator follow crawl results, batch dispatch and
chapter state changes without the pipeline knowing who listens.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import time
import traceback

from novel_translator.utils.unified_logger import log, LogLevel, LogType


class EventType(Enum):
    """Pipeline event types."""

    # Crawl events
    CRAWL_COMPLETED = "crawl_completed"
    CRAWL_FAILED = "crawl_failed"

    # Batch events
    BATCH_STARTED = "batch_started"
    BATCH_COMPLETED = "batch_completed"
    BATCH_FAILED = "batch_failed"

    # Chapter events
    CHAPTER_STATUS_CHANGED = "chapter_status_changed"

    # Scheduler events
    QUEUE_DRAINED = "queue_drained"


@dataclass
class Event:
    """Pipeline event.

    Attributes:
        type: Event type
        data: Event-specific data dictionary
        timestamp: Unix timestamp when event occurred
        source: Optional source identifier (e.g., "scheduler")
    """
    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: float = field(default_factory=time.time)
    source: str = "unknown"


class EventBus:
    """Central event bus for the pipeline."""

    def __init__(self):
        self._listeners: Dict[EventType, List[Callable]] = {}
        self._history: List[Event] = []
        self._record_history = False

    def subscribe(self, event_type: EventType, callback: Callable[[Event], None]) -> None:
        """Subscribe to an event type.

        Args:
            event_type: Type of event to listen for
            callback: Function to call when event occurs (receives Event object)
        """
        self._listeners.setdefault(event_type, []).append(callback)

    def subscribe_multiple(
        self,
        event_types: List[EventType],
        callback: Callable[[Event], None]
    ) -> None:
        for event_type in event_types:
            self.subscribe(event_type, callback)

    def unsubscribe(self, event_type: EventType, callback: Callable) -> None:
        if event_type in self._listeners:
            try:
                self._listeners[event_type].remove(callback)
            except ValueError:
                pass  # Callback not found

    def publish(self, event: Event) -> None:
        """Publish an event to all subscribers.

        A failing listener is logged and skipped; it never stops the pipeline.
        """
        if self._record_history:
            self._history.append(event)

        for listener in self._listeners.get(event.type, []):
            try:
                listener(event)
            except Exception as e:
                log(LogLevel.ERROR, f"Event listener failed: {e}", LogType.ERROR_DETAIL,
                    {'details': traceback.format_exc()})

    def enable_history(self) -> None:
        self._record_history = True

    def get_history(self) -> List[Event]:
        return self._history.copy()

    def clear_history(self) -> None:
        self._history.clear()

    def get_events_by_type(self, event_type: EventType) -> List[Event]:
        """Get all events of a specific type from history."""
        return [e for e in self._history if e.type == event_type]


# === Convenience Event Builders ===

def create_chapter_status_event(
    chapter_id: str,
    status: str,
    name: Optional[str] = None,
    model: Optional[str] = None
) -> Event:
    """Create chapter status change event.

    Args:
        chapter_id: Chapter whose status changed
        status: New status value
        name: Display name after the change
        model: Model used, for completed chapters

    Returns:
        Event object
    """
    data = {"chapter_id": chapter_id, "status": status}
    if name is not None:
        data["name"] = name
    if model is not None:
        data["model"] = model
    return Event(type=EventType.CHAPTER_STATUS_CHANGED, data=data, source="scheduler")


def create_batch_event(
    event_type: EventType,
    chapter_ids: List[str],
    **extra: Any
) -> Event:
    """Create a batch lifecycle event (started/completed/failed)."""
    data = {"chapter_ids": list(chapter_ids)}
    data.update(extra)
    return Event(type=event_type, data=data, source="scheduler")


def create_crawl_event(
    url: str,
    success: bool,
    title: Optional[str] = None,
    next_url: Optional[str] = None,
    error: Optional[str] = None
) -> Event:
    """Create crawl result event."""
    data = {"url": url}
    if success:
        data.update({"title": title, "next_url": next_url})
        event_type = EventType.CRAWL_COMPLETED
    else:
        data["error"] = error
        event_type = EventType.CRAWL_FAILED
    return Event(type=event_type, data=data, source="crawler")
