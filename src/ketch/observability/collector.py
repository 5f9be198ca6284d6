"""Build collector — the single place build code records events.

Wraps an :class:`EventLog` with typed ``record_*`` helpers so the
invalidation engine, page builder and public copier never construct event
objects themselves.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.

"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ketch.observability.events import (
    BuildEvent,
    CacheMissAnomaly,
    PagesInvalidated,
    now_ns,
)
from ketch.observability.log import EventLog

if TYPE_CHECKING:
    from pathlib import Path


class BuildCollector:
    """Records build events into an :class:`EventLog`.

    Args:
        log: The EventLog to store events in.

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    def record_build(
        self,
        kind: str,
        source: Path | str,
        target: Path | str,
        *,
        duration_ms: float = 0.0,
    ) -> None:
        """Record a build action (transpile, render, delete, copy)."""
        self._log.append(
            BuildEvent(
                kind=kind,  # type: ignore[arg-type]
                source=str(source),
                target=str(target),
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_invalidation(
        self,
        *,
        initial: bool,
        changes: int,
        rebuild: int,
        deletions: int,
        propagated: int,
    ) -> None:
        self._log.append(
            PagesInvalidated(
                initial=initial,
                changes=changes,
                rebuild=rebuild,
                deletions=deletions,
                propagated=propagated,
                timestamp_ns=now_ns(),
            )
        )

    def record_cache_miss(self, path: Path | str) -> None:
        """Record removal of a source that had no recorded output."""
        self._log.append(CacheMissAnomaly(path=str(path), timestamp_ns=now_ns()))
