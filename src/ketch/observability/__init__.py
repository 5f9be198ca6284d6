"""Build observability — structured events for every build.

Records what each build did (files transpiled, rendered, deleted, copied),
what the invalidation engine decided, cache-miss anomalies, and per-stage
timings.  All events are frozen dataclasses with nanosecond timestamps.

Quick Start:
    >>> from ketch.observability import BuildCollector, EventLog
    >>> log = EventLog()
    >>> collector = BuildCollector(log)
    >>> collector.record_cache_miss("/site/pages/old.py")
    >>> len(log)
    1

"""

from ketch.observability.collector import BuildCollector
from ketch.observability.events import (
    BuildEvent,
    BuildProfile,
    CacheMissAnomaly,
    KetchEvent,
    PagesInvalidated,
    now_ns,
)
from ketch.observability.log import EventLog
from ketch.observability.profiler import BuildProfiler

__all__ = [
    "BuildCollector",
    "BuildEvent",
    "BuildProfile",
    "BuildProfiler",
    "CacheMissAnomaly",
    "EventLog",
    "KetchEvent",
    "PagesInvalidated",
    "now_ns",
]
