"""Tests for ketch.observability — events, the event log and the collector."""

from __future__ import annotations

import threading

import pytest

from ketch.observability import (
    BuildCollector,
    BuildEvent,
    CacheMissAnomaly,
    EventLog,
    PagesInvalidated,
    now_ns,
)


def make_event(
    kind: str = "render",
    source: str = "/s/pages/a.py",
    timestamp_ns: int | None = None,
) -> BuildEvent:
    return BuildEvent(
        kind=kind,  # type: ignore[arg-type]
        source=source,
        target="/s/out/a/index.html",
        duration_ms=1.0,
        timestamp_ns=now_ns() if timestamp_ns is None else timestamp_ns,
    )


class TestEvents:
    def test_frozen(self) -> None:
        event = make_event()
        with pytest.raises(AttributeError):
            event.kind = "delete"  # type: ignore[misc]

    def test_now_ns_monotonic(self) -> None:
        assert now_ns() <= now_ns()


# ---------------------------------------------------------------------------
# EventLog
# ---------------------------------------------------------------------------


class TestEventLog:
    """EventLog — bounded, queryable storage."""

    def test_append_and_len(self) -> None:
        log = EventLog()
        log.append(make_event())
        log.append(make_event())
        assert len(log) == 2

    def test_ring_buffer_drops_oldest(self) -> None:
        log = EventLog(max_events=2)
        for source in ("a", "b", "c"):
            log.append(make_event(source=source))
        assert [e.source for e in log.query()] == ["c", "b"]

    def test_query_newest_first(self) -> None:
        log = EventLog()
        log.append(make_event(source="first"))
        log.append(make_event(source="second"))
        assert [e.source for e in log.query()] == ["second", "first"]

    def test_query_by_type(self) -> None:
        log = EventLog()
        log.append(make_event())
        log.append(CacheMissAnomaly(path="/s/pages/x.py", timestamp_ns=now_ns()))
        (miss,) = log.query(event_type=CacheMissAnomaly)
        assert miss.path == "/s/pages/x.py"

    def test_query_by_path(self) -> None:
        log = EventLog()
        log.append(make_event(source="/s/pages/a.py"))
        log.append(make_event(source="/s/pages/b.py"))
        log.append(CacheMissAnomaly(path="/s/pages/b.py", timestamp_ns=now_ns()))
        assert len(log.query(path="b.py")) == 2

    def test_query_since_and_limit(self) -> None:
        log = EventLog()
        log.append(make_event(timestamp_ns=100))
        log.append(make_event(timestamp_ns=200))
        log.append(make_event(timestamp_ns=300))
        assert len(log.query(since_ns=200)) == 2
        assert len(log.query(limit=1)) == 1

    def test_begin_build_counts_builds(self) -> None:
        log = EventLog()
        assert log.builds == 0
        assert log.begin_build() == 1
        assert log.begin_build() == 2
        assert log.builds == 2

    def test_build_actions_cover_latest_build_only(self) -> None:
        log = EventLog()
        log.begin_build()
        log.append(make_event("render"))
        log.append(make_event("transpile"))

        log.begin_build()
        log.append(make_event("render"))
        log.append(make_event("delete"))
        log.append(make_event("delete"))
        log.append(CacheMissAnomaly(path="x", timestamp_ns=now_ns()))

        assert log.build_actions() == {"render": 1, "delete": 2}

    def test_build_actions_empty(self) -> None:
        assert EventLog().build_actions() == {}

    def test_concurrent_appends(self) -> None:
        log = EventLog()

        def worker() -> None:
            for _ in range(100):
                log.append(make_event())

        threads = [threading.Thread(target=worker) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert len(log) == 400


# ---------------------------------------------------------------------------
# BuildCollector
# ---------------------------------------------------------------------------


class TestBuildCollector:
    def test_owns_a_log_by_default(self) -> None:
        assert isinstance(BuildCollector().log, EventLog)

    def test_record_build(self) -> None:
        collector = BuildCollector()
        collector.record_build("delete", "/s/out/a.html", "/s/out/a.html", duration_ms=0.5)
        (event,) = collector.log.query(event_type=BuildEvent)
        assert event.kind == "delete"
        assert event.duration_ms == 0.5

    def test_record_invalidation(self) -> None:
        log = EventLog()
        BuildCollector(log).record_invalidation(
            initial=False, changes=3, rebuild=2, deletions=1, propagated=1,
        )
        (event,) = log.query(event_type=PagesInvalidated)
        assert (event.changes, event.rebuild, event.deletions) == (3, 2, 1)

    def test_record_cache_miss(self) -> None:
        collector = BuildCollector()
        collector.record_cache_miss("/s/pages/gone.py")
        assert collector.log.query(path="gone.py")
