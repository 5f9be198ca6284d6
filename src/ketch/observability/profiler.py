"""Build profiler — per-stage timing for one build.

Records how long each build stage took and emits a ``BuildProfile`` event to
the ``EventLog``, plus a one-line summary on stderr.

Thread Safety:
    Used from a single build at a time (single-writer).

"""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ketch.observability.events import BuildProfile, now_ns

if TYPE_CHECKING:
    from ketch.observability.log import EventLog

STAGES = ("invalidate", "extract", "transpile", "render", "copy")


@dataclass(slots=True)
class _Timer:
    """Accumulates timing for a named build stage."""

    name: str
    _start: float = 0.0
    elapsed_ms: float = 0.0

    def start(self) -> None:
        self._start = time.perf_counter()

    def stop(self) -> None:
        if self._start > 0:
            self.elapsed_ms += (time.perf_counter() - self._start) * 1000
            self._start = 0.0


class BuildProfiler:
    """Records per-stage timing for a single build.

    Usage::

        profiler = BuildProfiler(event_log)

        profiler.begin(initial=True)
        profiler.start("transpile")
        # ... transpile ...
        profiler.stop("transpile")
        profiler.finish(pages_rendered=12)

    Stages may be started and stopped repeatedly; their times accumulate.

    """

    __slots__ = ("_initial", "_log", "_t0", "_timers", "_verbose")

    def __init__(self, log: EventLog, *, verbose: bool = True) -> None:
        self._log = log
        self._verbose = verbose
        self._initial = False
        self._t0 = 0.0
        self._timers: dict[str, _Timer] = {name: _Timer(name=name) for name in STAGES}

    def begin(self, *, initial: bool) -> None:
        """Start profiling a new build."""
        self._initial = initial
        self._log.begin_build()
        self._t0 = time.perf_counter()
        for timer in self._timers.values():
            timer.elapsed_ms = 0.0

    def start(self, stage: str) -> None:
        timer = self._timers.get(stage)
        if timer is not None:
            timer.start()

    def stop(self, stage: str) -> None:
        timer = self._timers.get(stage)
        if timer is not None:
            timer.stop()

    def finish(self, *, pages_rendered: int = 0) -> BuildProfile:
        """Finish profiling and emit the ``BuildProfile`` event.

        Returns the profile for testing / inspection.

        """
        total_ms = (time.perf_counter() - self._t0) * 1000 if self._t0 > 0 else 0.0

        profile = BuildProfile(
            initial=self._initial,
            pages_rendered=pages_rendered,
            invalidate_ms=self._timers["invalidate"].elapsed_ms,
            extract_ms=self._timers["extract"].elapsed_ms,
            transpile_ms=self._timers["transpile"].elapsed_ms,
            render_ms=self._timers["render"].elapsed_ms,
            copy_ms=self._timers["copy"].elapsed_ms,
            total_ms=total_ms,
            timestamp_ns=now_ns(),
        )

        self._log.append(profile)

        if self._verbose:
            self._print_summary(profile)

        return profile

    def _print_summary(self, p: BuildProfile) -> None:
        """Print a one-line timing summary to stderr."""
        label = "full build" if p.initial else "rebuild"
        pages = "page" if p.pages_rendered == 1 else "pages"
        stages = (
            f"invalidate: {p.invalidate_ms:.0f}ms, "
            f"extract: {p.extract_ms:.0f}ms, "
            f"transpile: {p.transpile_ms:.0f}ms, "
            f"render: {p.render_ms:.0f}ms, "
            f"copy: {p.copy_ms:.0f}ms"
        )
        print(
            f"  [{p.total_ms:.0f}ms] {label} -> "
            f"{p.pages_rendered} {pages} written ({stages})",
            file=sys.stderr,
        )
