"""Invalidation engine — which pages to rebuild and which outputs to delete.

Given the incoming change list and the page cache, produces an
:class:`InvalidationPlan`.  Three passes, in this order:

1. **Deletion** — removed sources under the pages root schedule their cached
   outputs for deletion.  Resolved against the cache as it was *before* this
   build, since later steps overwrite entries.
2. **Propagation** — for every added/modified path, every cached page whose
   dependency list contains it gets a synthesised ``modified`` change.  One
   sweep by default: a page two hops away from the change is only picked up
   on the next build.  ``KetchConfig.transitive_propagation`` follows chains
   to a fixed point instead.  Changing the document shell or page wrapper
   marks every page that has output.
3. **Selection** — initial builds take every module under the pages root;
   incremental builds take the added/modified modules under the pages root,
   deduplicated in order of first appearance.

The engine only plans.  It never touches the filesystem beyond listing the
pages root, and never mutates the cache.
"""

from __future__ import annotations

import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from ketch.content.watcher import ChangeEvent

if TYPE_CHECKING:
    from ketch.config import KetchConfig
    from ketch.observability.collector import BuildCollector
    from ketch.pages.cache import PageCache


@dataclass(frozen=True, slots=True)
class InvalidationPlan:
    """Outcome of the invalidation passes.

    Attributes:
        rebuild: Source files to (re)process this build.
        deletions: Output files to delete before anything is rendered.
        removed_sources: Removed sources under the pages root, whose cache
            entries are dropped once their outputs are gone.
        propagated: Pages added because one of their dependencies changed.
        cache_misses: Removed sources with no recorded output.

    """

    rebuild: tuple[Path, ...]
    deletions: tuple[Path, ...]
    removed_sources: tuple[Path, ...] = ()
    propagated: tuple[Path, ...] = ()
    cache_misses: tuple[Path, ...] = ()


def plan_invalidation(
    changes: Sequence[ChangeEvent],
    cache: PageCache,
    config: KetchConfig,
    *,
    initial: bool,
    collector: BuildCollector | None = None,
) -> InvalidationPlan:
    """Run the deletion, propagation and selection passes."""
    pages_root = config.pages_path

    deletions, removed_sources, misses = _deletion_pass(changes, cache, pages_root)
    for miss in misses:
        print(
            f"  Cache miss: {miss} was removed but has no recorded output",
            file=sys.stderr,
        )
        if collector is not None:
            collector.record_cache_miss(miss)

    expanded, propagated = _propagation_pass(changes, cache, config)

    if initial:
        rebuild = discover_sources(pages_root, config.module_suffix)
    else:
        rebuild = _select_incremental(expanded, pages_root, config.module_suffix)

    plan = InvalidationPlan(
        rebuild=rebuild,
        deletions=deletions,
        removed_sources=removed_sources,
        propagated=propagated,
        cache_misses=misses,
    )

    if collector is not None:
        collector.record_invalidation(
            initial=initial,
            changes=len(changes),
            rebuild=len(plan.rebuild),
            deletions=len(plan.deletions),
            propagated=len(plan.propagated),
        )

    return plan


def discover_sources(pages_root: Path, suffix: str = ".py") -> tuple[Path, ...]:
    """Every module under *pages_root*, sorted; bytecode caches skipped."""
    if not pages_root.is_dir():
        return ()
    return tuple(
        path
        for path in sorted(pages_root.rglob(f"*{suffix}"))
        if path.is_file() and "__pycache__" not in path.parts
    )


def _deletion_pass(
    changes: Sequence[ChangeEvent],
    cache: PageCache,
    pages_root: Path,
) -> tuple[tuple[Path, ...], tuple[Path, ...], tuple[Path, ...]]:
    deletions: dict[Path, None] = {}
    removed: dict[Path, None] = {}
    misses: list[Path] = []

    for change in changes:
        if change.kind != "removed" or not change.path.is_relative_to(pages_root):
            continue

        removed.setdefault(change.path, None)
        entry = cache.get(change.path)
        if entry is None or not entry.routes:
            misses.append(change.path)
            continue

        for output in entry.routes:
            deletions.setdefault(output, None)

    return tuple(deletions), tuple(removed), tuple(misses)


def _propagation_pass(
    changes: Sequence[ChangeEvent],
    cache: PageCache,
    config: KetchConfig,
) -> tuple[list[ChangeEvent], tuple[Path, ...]]:
    """Append ``modified`` changes for the dependents of changed files."""
    expanded = list(changes)
    propagated: dict[Path, None] = {}
    seen = {c.path for c in changes if c.kind != "removed"}

    frontier = [c.path for c in changes if c.kind != "removed"]
    while frontier:
        next_frontier: list[Path] = []
        for path in frontier:
            for dependent in _dependents(path, cache, config):
                expanded.append(ChangeEvent(path=dependent, kind="modified"))
                propagated.setdefault(dependent, None)
                if dependent not in seen:
                    seen.add(dependent)
                    next_frontier.append(dependent)
        if not config.transitive_propagation:
            break
        frontier = next_frontier

    return expanded, tuple(propagated)


def _dependents(path: Path, cache: PageCache, config: KetchConfig) -> list[Path]:
    if _is_shell_module(path, config):
        return [source for source in cache if source != path and cache.get(source).routes]
    return cache.dependents_of(path)


def _is_shell_module(path: Path, config: KetchConfig) -> bool:
    return (
        path.parent == config.pages_path
        and path.suffix == config.module_suffix
        and path.stem in config.shell_modules
    )


def _select_incremental(
    changes: Sequence[ChangeEvent],
    pages_root: Path,
    suffix: str,
) -> tuple[Path, ...]:
    selected: dict[Path, None] = {}
    for change in changes:
        if change.kind == "removed":
            continue
        path = change.path
        if not path.is_relative_to(pages_root) or path.suffix != suffix:
            continue
        if "__pycache__" in path.parts or not path.is_file():
            continue
        selected.setdefault(path, None)
    return tuple(selected)
