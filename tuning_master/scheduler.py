"""Periodic trigger that drives processing ticks while a session is listening."""

import threading
from typing import Callable, Optional

from .core.interfaces import IScheduler
from .logger import get_logger

logger = get_logger(__name__)


class TickScheduler(IScheduler):
    """Calls a callback at a fixed cadence from a background thread.

    Calls never overlap: the next one starts after the previous returns. If a
    callback overruns the interval, the following call starts immediately.
    """

    def __init__(self, interval: float = 1 / 60) -> None:
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        self._interval = interval
        self._thread: Optional[threading.Thread] = None
        self._stop_event: Optional[threading.Event] = None

    @property
    def interval(self) -> float:
        return self._interval

    def is_running(self) -> bool:
        return self._stop_event is not None and not self._stop_event.is_set()

    def register(self, callback: Callable[[], None]) -> None:
        """Start calling ``callback``, replacing any previous registration."""
        self.cancel()

        stop_event = threading.Event()
        self._stop_event = stop_event
        self._thread = threading.Thread(
            target=self._run, args=(callback, stop_event), name="tick-scheduler", daemon=True
        )
        self._thread.start()
        logger.info(f"Tick scheduler started ({1 / self._interval:.0f} Hz)")

    def cancel(self) -> None:
        """Stop triggering. Returns immediately; the thread exits on its own."""
        if self._stop_event is None:
            return
        self._stop_event.set()
        self._stop_event = None
        self._thread = None
        logger.info("Tick scheduler cancelled")

    def _run(self, callback: Callable[[], None], stop_event: threading.Event) -> None:
        while not stop_event.wait(self._interval):
            try:
                callback()
            except Exception:
                logger.exception("Error in tick callback")
