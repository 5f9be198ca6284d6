"""Event log — what each build did, queryable after the fact.

Stores a bounded ring buffer of build events.  The profiler opens every
build with :meth:`EventLog.begin_build`, so the file actions of the latest
build can be tallied without remembering timestamps.

Thread Safety:
    All methods are protected by a ``threading.Lock``.

"""

import threading
from collections import Counter, deque
from itertools import islice

from ketch.observability.events import BuildEvent, KetchEvent


class EventLog:
    """Bounded event store with query support.

    Events are stored in a ring buffer (deque with maxlen).  When the
    buffer is full, the oldest events are discarded automatically.

    Args:
        max_events: Maximum number of events to retain.

    """

    __slots__ = ("_appended", "_build_start", "_builds", "_events", "_lock")

    def __init__(self, max_events: int = 10_000) -> None:
        self._events: deque[KetchEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()
        self._appended = 0
        self._builds = 0
        self._build_start = 0

    @property
    def builds(self) -> int:
        """Number of builds started against this log."""
        return self._builds

    def begin_build(self) -> int:
        """Mark the start of a build and return its 1-based number."""
        with self._lock:
            self._builds += 1
            self._build_start = self._appended
            return self._builds

    def append(self, event: KetchEvent) -> None:
        """Record an event in the log."""
        with self._lock:
            self._events.append(event)
            self._appended += 1

    def query(
        self,
        *,
        event_type: type | None = None,
        since_ns: int = 0,
        path: str | None = None,
        limit: int = 100,
    ) -> list[KetchEvent]:
        """Query events with optional filters.

        Args:
            event_type: Only return events of this type.
            since_ns: Only return events at or after this timestamp.
            path: Only return events whose ``path``, ``source`` or ``target``
                contains this substring.
            limit: Maximum number of events to return.

        Returns:
            List of matching events, most recent first.

        """
        with self._lock:
            results: list[KetchEvent] = []
            for event in reversed(self._events):
                if len(results) >= limit:
                    break
                if event_type is not None and not isinstance(event, event_type):
                    continue
                if since_ns and event.timestamp_ns < since_ns:
                    continue
                if path is not None and not _mentions(event, path):
                    continue
                results.append(event)
            return results

    def build_actions(self) -> dict[str, int]:
        """Count the file actions (by ``BuildEvent.kind``) of the latest build."""
        with self._lock:
            since_start = min(self._appended - self._build_start, len(self._events))
            latest = islice(self._events, len(self._events) - since_start, None)
            return dict(Counter(
                event.kind for event in latest if isinstance(event, BuildEvent)
            ))

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)


def _mentions(event: KetchEvent, needle: str) -> bool:
    for attr in ("path", "source", "target"):
        value = getattr(event, attr, None)
        if value and needle in value:
            return True
    return False
