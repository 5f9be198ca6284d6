"""Page builder — sequences one incremental (or full) page build.

Steps, each finishing before the next starts:

    1. Plan invalidation against the pre-change cache; delete stale outputs
       and forget removed sources.
    2. Stop here if an incremental build has nothing to rebuild.
    3. Read every rebuild file and record its local dependencies.
    4. Transpile the rebuild files (plus shell and wrapper) into staging,
       all files concurrently.
    5. Resolve the document shell and page wrapper once.
    6. Render every staged page: resolve routes, reset its cached routes,
       render each route into the shell, write ``<route>/index.html``, record
       the output.  Outputs the page no longer produces are deleted.
    7. Remove the staging area (also when a step fails).

A malformed page or document aborts the build.  Files already written stay
on disk; there is no rollback.
"""

from __future__ import annotations

import asyncio
import shutil
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ketch._errors import BuildError
from ketch.pages.deps import extract_dependencies
from ketch.pages.document import resolve_document, resolve_wrapper
from ketch.pages.invalidation import plan_invalidation
from ketch.pages.module import ModuleLoader, load_page
from ketch.pages.routes import logical_dir, props_for, resolve_routes
from ketch.pages.transpiler import BytecodeTranspiler, staged_path_for
from ketch.render.element import h, render_to_string
from ketch.render.head import collect_head

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from ketch.config import KetchConfig
    from ketch.content.watcher import ChangeEvent
    from ketch.observability.collector import BuildCollector
    from ketch.observability.profiler import BuildProfiler
    from ketch.pages.cache import PageCache
    from ketch.pages.document import DocumentShell
    from ketch.pages.transpiler import Transpiler


@dataclass(frozen=True, slots=True)
class BuildOptions:
    """A build request from the build driver.

    Attributes:
        initial: Full build of every page (the output is assumed clean).
        changes: Ordered change events for an incremental build.

    """

    initial: bool = True
    changes: tuple[ChangeEvent, ...] = ()


@dataclass(frozen=True, slots=True)
class RenderedRoute:
    """Record of a single page output written during a build.

    Attributes:
        source: Page source file.
        route: Route path relative to the output root.
        output_path: Absolute filesystem path to the written file.
        size_bytes: Size of the written file in bytes.
        duration_ms: Time taken to render and write this file.

    """

    source: Path
    route: str
    output_path: Path
    size_bytes: int
    duration_ms: float


@dataclass(frozen=True, slots=True)
class BuildResult:
    """Aggregate result of one page build.

    Attributes:
        initial: Whether this was a full build.
        rebuilt: Source files that were (re)processed.
        deleted: Output files removed.
        rendered: Every output written.
        duration_ms: Total wall-clock time.

    """

    initial: bool
    rebuilt: tuple[Path, ...] = ()
    deleted: tuple[Path, ...] = ()
    rendered: tuple[RenderedRoute, ...] = ()
    duration_ms: float = 0.0

    @property
    def pages_written(self) -> int:
        return len(self.rendered)


class PageBuilder:
    """Builds pages from the pages directory into the output directory.

    The builder holds no state of its own between builds; everything that
    must survive from one build to the next lives in the :class:`PageCache`
    passed in, which the caller creates once per session.

    Args:
        config: Frozen ketch configuration.
        cache: The session's page cache (mutated in place).
        transpiler: Compiles sources into staging; bytecode by default.
        collector: Receives build events.
        profiler: Receives per-stage timings.

    """

    def __init__(
        self,
        config: KetchConfig,
        cache: PageCache,
        *,
        transpiler: Transpiler | None = None,
        collector: BuildCollector | None = None,
        profiler: BuildProfiler | None = None,
    ) -> None:
        self._config = config
        self._cache = cache
        self._collector = collector
        self._profiler = profiler
        self._transpiler = transpiler or BytecodeTranspiler(collector)

    @property
    def cache(self) -> PageCache:
        return self._cache

    async def build(self, options: BuildOptions) -> BuildResult:
        """Run one build.

        Raises:
            MalformedPageError: A page (or shell/wrapper) breaks the contract.
            MissingDocumentStructureError: The shell has no entry or head.
            TranspileError: A source does not compile.
            BuildError: A page raised while rendering.

        """
        t0 = time.perf_counter()
        config = self._config

        # 1. Deletions, resolved against the cache as it was before this build
        with self._stage("invalidate"):
            if options.initial:
                self._cache.clear()
            plan = plan_invalidation(
                options.changes, self._cache, config,
                initial=options.initial, collector=self._collector,
            )
            deleted = self._delete_outputs(plan.deletions)
            for source in plan.removed_sources:
                self._cache.remove(source)

        # 2. Nothing to do
        if not plan.rebuild and not options.initial:
            return BuildResult(
                initial=False,
                deleted=deleted,
                duration_ms=(time.perf_counter() - t0) * 1000,
            )

        # 3. Dependencies
        with self._stage("extract"):
            for source in plan.rebuild:
                text = await asyncio.to_thread(source.read_text, encoding="utf-8")
                self._cache.set_dependencies(
                    source,
                    extract_dependencies(source, text, suffix=config.module_suffix),
                )

        staging = config.staging_path
        if staging.exists():
            shutil.rmtree(staging)

        try:
            # 4. Transpile
            with self._stage("transpile"):
                staged = await self._transpiler.transpile(
                    self._with_shell_modules(plan.rebuild), config.pages_path, staging,
                )

            # 5. Shell and wrapper
            loader = ModuleLoader(config.pages_path, staging, suffix=config.module_suffix)
            loader.reset()
            document = resolve_document(
                loader, self._shell_staged_path(config.document_name),
                entry_id=config.entry_id,
            )
            wrapper = resolve_wrapper(loader, self._shell_staged_path(config.wrapper_name))

            # 6. Render
            rendered: list[RenderedRoute] = []
            with self._stage("render"):
                for staged_path in sorted(staged):
                    if not self._is_page(staged_path, staging):
                        continue
                    routes, stale = await self._render_page(
                        loader, staged_path, document, wrapper,
                    )
                    rendered.extend(routes)
                    deleted += stale
        finally:
            # 7. Staging is per build
            if staging.exists():
                shutil.rmtree(staging)

        return BuildResult(
            initial=options.initial,
            rebuilt=plan.rebuild,
            deleted=deleted,
            rendered=tuple(rendered),
            duration_ms=(time.perf_counter() - t0) * 1000,
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def _delete_outputs(self, outputs: Sequence[Path]) -> tuple[Path, ...]:
        deleted: list[Path] = []
        for output in outputs:
            t0 = time.perf_counter()
            if output.is_file():
                output.unlink()
                deleted.append(output)
                self._prune_empty_dirs(output.parent)
            if self._collector is not None:
                self._collector.record_build(
                    "delete", output, output,
                    duration_ms=(time.perf_counter() - t0) * 1000,
                )
        return tuple(deleted)

    def _prune_empty_dirs(self, directory: Path) -> None:
        output_root = self._config.output_path
        while directory != output_root and directory.is_relative_to(output_root):
            try:
                directory.rmdir()
            except OSError:
                return
            directory = directory.parent

    def _with_shell_modules(self, sources: Sequence[Path]) -> list[Path]:
        """Always stage the shell and wrapper so incremental builds keep them."""
        result = list(sources)
        for name in (self._config.document_name, self._config.wrapper_name):
            path = self._config.pages_path / f"{name}{self._config.module_suffix}"
            if path.is_file() and path not in result:
                result.append(path)
        return result

    def _shell_staged_path(self, name: str) -> Path:
        source = self._config.pages_path / f"{name}{self._config.module_suffix}"
        return staged_path_for(source, self._config.pages_path, self._config.staging_path)

    def _is_page(self, staged_path: Path, staging: Path) -> bool:
        """Private modules (``_name``, ``__init__``) and the shell are not pages."""
        name = staged_path.stem
        if name.startswith("_"):
            return False
        return not (
            staged_path.parent == staging and name in self._config.shell_modules
        )

    async def _render_page(
        self,
        loader: ModuleLoader,
        staged_path: Path,
        document: DocumentShell,
        wrapper: Callable[..., Any],
    ) -> tuple[list[RenderedRoute], tuple[Path, ...]]:
        """Render every route of one page.

        Returns the routes written and the outputs the page no longer produces
        (already deleted).

        """
        page = load_page(loader, staged_path)
        source = page.source
        routes = await resolve_routes(
            page,
            logical_dir(staged_path, self._config.staging_path),
            self._config.output_path,
            index_name=self._config.index_name,
        )

        entry = self._cache.get(source)
        previous = list(entry.routes) if entry is not None else []
        self._cache.clear_routes(source)

        rendered: list[RenderedRoute] = []
        for route in routes:
            t0 = time.perf_counter()
            props = await props_for(page, route)

            try:
                with collect_head() as head_items:
                    markup = render_to_string(
                        h(wrapper, {"component": page.render, "page_props": props})
                    )
                html = document.render(markup, head_items)
            except BuildError:
                raise
            except Exception as exc:
                msg = f"Failed to render route {route.route or '/'!r} from {source}: {exc}"
                raise BuildError(msg) from exc

            size = await asyncio.to_thread(self._write_html, route.output_path, html)
            self._cache.append_route(source, route.output_path)
            elapsed = (time.perf_counter() - t0) * 1000

            if self._collector is not None:
                self._collector.record_build(
                    "render", source, route.output_path, duration_ms=elapsed,
                )
            rendered.append(RenderedRoute(
                source=source,
                route=route.route,
                output_path=route.output_path,
                size_bytes=size,
                duration_ms=elapsed,
            ))

        # Routes this page stopped producing
        current = {r.output_path for r in routes}
        stale = [
            p for p in previous
            if p not in current and self._cache.owner_of(p) is None
        ]
        return rendered, self._delete_outputs(stale)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _stage(self, name: str) -> Iterator[None]:
        if self._profiler is None:
            yield
            return
        self._profiler.start(name)
        try:
            yield
        finally:
            self._profiler.stop(name)

    @staticmethod
    def _write_html(filepath: Path, html: str) -> int:
        """Write HTML content to a file, creating parent dirs as needed.

        Returns the size in bytes of the written file.

        """
        filepath.parent.mkdir(parents=True, exist_ok=True)
        data = html.encode("utf-8")
        filepath.write_bytes(data)
        return len(data)
