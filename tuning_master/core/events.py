"""Publish/subscribe hub connecting the tuning session to its renderers."""

from typing import Dict, List, Callable, Any
from enum import Enum, auto

from ..logger import get_logger

logger = get_logger(__name__)


class TunerEventType(Enum):
    """Event types emitted by a tuning session."""

    RESULT_UPDATED = auto()  # (TuningResult, List[StringTuningResult])
    STATE_CHANGED = auto()  # (SessionState)
    ERROR = auto()  # (TunerError)


class EventEmitter:
    """Synchronous listener registry keyed by event type.

    Listeners run on the emitting thread, in registration order. A listener
    that raises is logged and the remaining listeners still run.
    """

    def __init__(self):
        self._listeners: Dict[Any, List[Callable]] = {}

    def on(self, event_type: Any, callback: Callable) -> None:
        """Subscribe ``callback``; subscribing the same callback twice is a no-op."""
        listeners = self._listeners.setdefault(event_type, [])
        if callback not in listeners:
            listeners.append(callback)
            logger.debug(f"Listener subscribed to {event_type}")

    def off(self, event_type: Any, callback: Callable) -> None:
        listeners = self._listeners.get(event_type, [])
        if callback in listeners:
            listeners.remove(callback)

    def emit(self, event_type: Any, *args, **kwargs) -> None:
        # Copy so listeners may unsubscribe while being called
        for callback in list(self._listeners.get(event_type, ())):
            try:
                callback(*args, **kwargs)
            except Exception:
                logger.exception(f"Listener for {event_type} failed")

    def clear(self) -> None:
        self._listeners.clear()
