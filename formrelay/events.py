"""Event system for formrelay.

Once a submission has been sanitized, the runtime raises a ``submission``
event. Independent handlers (persistence, owner notification, submitter
confirmation) subscribe to it. Each handler runs in its own failure
boundary: a handler that raises is logged and the remaining handlers still
run, and the submitter never sees the failure.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from .types import EventType, FormDefinition

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionEvent:
    """An accepted submission, ready for downstream handlers.

    Attributes:
        event_id: Unique event identifier (e.g., "evt_01H8...")
        type: Event type from EventType enum
        ts: UTC timestamp when the event was raised
        form: The form that was submitted
        data: Sanitized answers keyed by field name
        request: Opaque request context from the caller of ``submit``

    Examples:
        >>> from datetime import datetime, timezone
        >>> event = SubmissionEvent(
        ...     event_id="evt_001",
        ...     type=EventType.SUBMISSION,
        ...     ts=datetime.now(timezone.utc),
        ...     form=FormDefinition(id="contact"),
        ...     data={"name": "Ada"},
        ... )
        >>> event.form_id
        'contact'
    """
    event_id: str
    type: EventType
    ts: datetime
    form: FormDefinition
    data: Dict[str, Any] = field(default_factory=dict)
    request: Any = None

    def __post_init__(self):
        if isinstance(self.type, str):
            object.__setattr__(self, "type", EventType(self.type))

    @property
    def form_id(self) -> str:
        return self.form.id

    def to_dict(self) -> Dict[str, Any]:
        """Convert event to dictionary for serialization.

        The request context and the form definition are not serialized,
        only the form id.
        """
        return {
            "eventId": self.event_id,
            "type": self.type.value,
            "formId": self.form_id,
            "ts": self.ts.isoformat(),
            "data": dict(self.data),
        }


EventListener = Callable[[SubmissionEvent], None]
"""Type alias for event listener callbacks.

Listeners are called synchronously in registration order.
"""


def _listener_name(listener: EventListener) -> str:
    return getattr(listener, "__qualname__", None) or repr(listener)


class EventEmitter:
    """Event emitter for managing event listeners and dispatching events.

    Features:
    - Type-specific subscriptions (listen to specific event types)
    - Wildcard subscriptions (listen to all events)
    - Synchronous dispatch (listeners called in registration order)
    - Error isolation (listener exceptions are logged, not propagated)

    Examples:
        >>> emitter = EventEmitter()
        >>> seen = []
        >>> emitter.on(EventType.SUBMISSION, lambda e: seen.append(e.form_id))
        >>> from datetime import datetime, timezone
        >>> emitter.emit(SubmissionEvent(
        ...     event_id="evt_001",
        ...     type=EventType.SUBMISSION,
        ...     ts=datetime.now(timezone.utc),
        ...     form=FormDefinition(id="contact"),
        ... ))
        >>> seen
        ['contact']
    """

    def __init__(self):
        """Initialize event emitter with empty listener registries."""
        self._listeners: Dict[EventType, List[EventListener]] = {}
        self._any_listeners: List[EventListener] = []

    def on(self, event_type: EventType, listener: EventListener) -> None:
        """Subscribe to a specific event type."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        self._listeners[event_type].append(listener)

    def on_any(self, listener: EventListener) -> None:
        """Subscribe to all event types (wildcard subscription)."""
        self._any_listeners.append(listener)

    def off(self, event_type: EventType, listener: EventListener) -> None:
        """Unsubscribe from a specific event type.

        Unknown listeners are ignored.
        """
        if event_type in self._listeners and listener in self._listeners[event_type]:
            self._listeners[event_type].remove(listener)

    def off_any(self, listener: EventListener) -> None:
        """Unsubscribe from wildcard subscription."""
        if listener in self._any_listeners:
            self._any_listeners.remove(listener)

    def emit(self, event: SubmissionEvent) -> int:
        """Dispatch an event to all registered listeners.

        Listeners are called synchronously in registration order:
        1. Type-specific listeners for this event type
        2. Wildcard listeners (subscribed to all events)

        Args:
            event: Event to dispatch

        Returns:
            Number of listeners that raised
        """
        listeners = list(self._listeners.get(event.type, [])) + list(self._any_listeners)
        failures = 0
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                failures += 1
                logger.exception(
                    "Listener %s failed for %s event %s (form %s)",
                    _listener_name(listener),
                    event.type.value,
                    event.event_id,
                    event.form_id,
                )
        return failures

    def clear(self) -> None:
        """Remove all event listeners."""
        self._listeners.clear()
        self._any_listeners.clear()

    def listener_count(self, event_type: Optional[EventType] = None) -> int:
        """Get count of registered listeners.

        Args:
            event_type: If provided, count listeners for this type only.
                        If None, count all listeners (including wildcard).
        """
        if event_type is not None:
            return len(self._listeners.get(event_type, []))
        total = len(self._any_listeners)
        for listeners in self._listeners.values():
            total += len(listeners)
        return total


__all__ = [
    "SubmissionEvent",
    "EventListener",
    "EventEmitter",
]
