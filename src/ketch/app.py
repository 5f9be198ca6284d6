"""Ketch application — build sessions and the public entry points.

A :class:`BuildSession` owns everything that must outlive a single build:
the page cache, the event log, and the transpiler.  ``build()`` runs one
session with a single full build; ``watch()`` runs one session for the life
of the process, rebuilding incrementally after every batch of changes.
"""

from __future__ import annotations

import asyncio
import shutil
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING

from ketch._errors import ConfigError, KetchError
from ketch.config_loader import load_config
from ketch.export.public import copy_public
from ketch.observability.collector import BuildCollector
from ketch.observability.profiler import BuildProfiler
from ketch.pages.builder import BuildOptions, BuildResult, PageBuilder
from ketch.pages.cache import PageCache

if TYPE_CHECKING:
    from ketch.config import KetchConfig
    from ketch.content.watcher import ChangeEvent
    from ketch.pages.transpiler import Transpiler


class BuildSession:
    """Runs successive builds of one site against one page cache.

    Created once per ``ketch build`` invocation or ``ketch watch`` process
    and discarded when it exits.  Builds must not overlap: await each
    :meth:`build` before starting the next.

    Args:
        config: Frozen ketch configuration.
        cache: Page cache to start from (a fresh one by default).
        transpiler: Overrides the default bytecode transpiler.
        collector: Receives build events (a fresh one by default).
        verbose: Print a timing summary after every build.

    """

    def __init__(
        self,
        config: KetchConfig,
        *,
        cache: PageCache | None = None,
        transpiler: Transpiler | None = None,
        collector: BuildCollector | None = None,
        verbose: bool = True,
    ) -> None:
        _check_directories(config)
        self._config = config
        self._cache = cache if cache is not None else PageCache()
        self._collector = collector if collector is not None else BuildCollector()
        self._profiler = BuildProfiler(self._collector.log, verbose=verbose)
        self._builder = PageBuilder(
            config,
            self._cache,
            transpiler=transpiler,
            collector=self._collector,
            profiler=self._profiler,
        )

    @property
    def config(self) -> KetchConfig:
        return self._config

    @property
    def cache(self) -> PageCache:
        """The session's page cache: source file -> outputs and dependencies."""
        return self._cache

    @property
    def collector(self) -> BuildCollector:
        return self._collector

    async def build(self, options: BuildOptions | None = None) -> BuildResult:
        """Run one build: clean (if initial), pages, then the public directory."""
        options = options or BuildOptions(initial=True)
        output_dir = self._config.output_path

        self._profiler.begin(initial=options.initial)

        if options.initial:
            if output_dir.exists():
                shutil.rmtree(output_dir)
            output_dir.mkdir(parents=True, exist_ok=True)

        result = await self._builder.build(options)

        self._profiler.start("copy")
        copy_public(
            self._config.public_path,
            output_dir,
            initial=options.initial,
            changes=options.changes,
            collector=self._collector,
        )
        self._profiler.stop("copy")

        self._profiler.finish(pages_rendered=result.pages_written)
        return result

    async def rebuild(self, changes: list[ChangeEvent]) -> BuildResult:
        """Incremental build for one batch of changes."""
        return await self.build(BuildOptions(initial=False, changes=tuple(changes)))


def _check_directories(config: KetchConfig) -> None:
    """Refuse layouts where cleaning the output would destroy sources.

    Raises:
        ConfigError: If the pages or public directory and the output
            directory are the same or nest.

    """
    pages = config.pages_path
    public = config.public_path
    output = config.output_path
    if pages == output:
        msg = "The pages and output directories must not be the same."
        raise ConfigError(msg)
    if pages.is_relative_to(output) or output.is_relative_to(pages):
        msg = f"The pages directory ({pages}) and output directory ({output}) must not nest."
        raise ConfigError(msg)
    if public.is_relative_to(output) or output.is_relative_to(public):
        msg = (
            f"The public directory ({public}) and output directory ({output}) "
            "must not be the same or nest."
        )
        raise ConfigError(msg)
    if config.root.is_relative_to(output):
        msg = f"The output directory ({output}) must not contain the site root."
        raise ConfigError(msg)


async def watch_site(
    session: BuildSession,
    *,
    stop_event: asyncio.Event | None = None,
) -> None:
    """Full build, then one incremental build per batch of file changes.

    A failing build is reported and the session keeps watching; the next
    change triggers a fresh attempt.

    """
    from ketch.content.watcher import SiteWatcher, categorize_change

    config = session.config
    await _build_reporting_errors(session, None)

    watcher = SiteWatcher(config)
    async for batch in watcher.batches(stop_event):
        relevant = []
        for event in batch:
            category = categorize_change(event.path, config)
            if category is None:
                continue
            if category == "config":
                print(
                    f"  {event.path.name} changed; restart ketch to apply it",
                    file=sys.stderr,
                )
                continue
            relevant.append(event)

        if relevant:
            await _build_reporting_errors(session, relevant)


async def _build_reporting_errors(
    session: BuildSession,
    changes: list[ChangeEvent] | None,
) -> BuildResult | None:
    try:
        if changes is None:
            return await session.build(BuildOptions(initial=True))
        return await session.rebuild(changes)
    except KetchError as exc:
        print(f"  Build error: {exc}", file=sys.stderr)
        return None


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def build(root: str | Path = ".", **kwargs: object) -> BuildResult:
    """Build every page of the site once.

    Args:
        root: Path to the site root directory.
        **kwargs: Override KetchConfig fields.

    Raises:
        KetchError: If configuration is invalid or the build fails.

    """
    from ketch.banner import print_banner

    config = load_config(Path(root), **kwargs)
    t0 = time.perf_counter()
    session = BuildSession(config)
    print_banner(config, mode="build", load_ms=(time.perf_counter() - t0) * 1000)

    result = asyncio.run(session.build(BuildOptions(initial=True)))

    _print_build_summary(result, config, session.collector.log.build_actions())
    return result


def watch(root: str | Path = ".", **kwargs: object) -> None:
    """Build the site, then rebuild incrementally on every change.

    Runs until interrupted (Ctrl-C).

    Args:
        root: Path to the site root directory.
        **kwargs: Override KetchConfig fields.

    """
    from ketch.banner import print_banner

    config = load_config(Path(root), **kwargs)
    session = BuildSession(config)
    print_banner(config, mode="watch")

    try:
        asyncio.run(watch_site(session))
    except KeyboardInterrupt:
        print("  Stopped watching.", file=sys.stderr)


def _print_build_summary(
    result: BuildResult,
    config: KetchConfig,
    actions: dict[str, int] | None = None,
) -> None:
    """Print build completion summary to stderr."""
    pages = result.pages_written
    lines = [
        "",
        "─" * 41,
        f"  Wrote {pages} page{'s' if pages != 1 else ''}",
    ]
    if actions:
        counts = ", ".join(f"{kind} {count}" for kind, count in sorted(actions.items()))
        lines.append(f"  Actions: {counts}")
    lines += [
        f"  Output: {config.output_path}",
        f"  Done in {result.duration_ms:.0f}ms",
    ]
    print("\n".join(lines), file=sys.stderr)
