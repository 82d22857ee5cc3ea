"""
Operator Event Log

Append-only list of timestamped, human-readable event lines of the form
``[<UTC ISO-8601 timestamp>] <message>``.
"""

from typing import Callable, List
import logging
import threading

from .utils import utc_timestamp

logger = logging.getLogger(__name__)


class EventLog:
    """Thread-safe append-only event log."""

    def __init__(self):
        self._lines: List[str] = []
        self._listeners = ()
        self._lock = threading.Lock()

    def append(self, message: str) -> str:
        """
        Record an event.

        Args:
            message: Event text

        Returns:
            The formatted entry
        """
        entry = f"[{utc_timestamp()}] {message}"
        with self._lock:
            self._lines.append(entry)
            listeners = self._listeners

        logger.info(message)

        for listener in listeners:
            try:
                listener(entry)
            except Exception:
                logger.debug("Event listener %r failed", listener, exc_info=True)

        return entry

    def add_listener(self, listener: Callable[[str], None]):
        """Register a callback invoked with every new entry."""
        with self._lock:
            self._listeners = self._listeners + (listener,)

    def lines(self) -> List[str]:
        """Get a snapshot copy of all entries."""
        with self._lock:
            return list(self._lines)

    def __len__(self) -> int:
        with self._lock:
            return len(self._lines)

    def contains(self, text: str) -> bool:
        """Check whether any entry contains the given text."""
        return any(text in line for line in self.lines())
