"""File watcher — turns filesystem activity into incremental build requests.

Watches the whole site root (page modules, the components they import, the
public directory) and yields batches of :class:`ChangeEvent`.  One batch
becomes one incremental build; the consumer finishes a build before asking
for the next batch, so builds never overlap.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from watchfiles import Change, DefaultFilter, awatch

from ketch._types import ChangeKind
from ketch.config_loader import CONFIG_FILENAMES

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Iterable

    import asyncio

    from ketch.config import KetchConfig


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A file change fed to a build.

    Attributes:
        path: Absolute path to the changed file.
        kind: Type of filesystem change.

    """

    path: Path
    kind: ChangeKind


# Mapping from watchfiles Change enum to our kind literals.
_CHANGE_KIND_MAP: dict[Change, ChangeKind] = {
    Change.added: "added",
    Change.modified: "modified",
    Change.deleted: "removed",
}

# Removals sort first so a delete + re-create of one path rebuilds it.
_KIND_ORDER = {"removed": 0, "added": 1, "modified": 2}


def to_change_events(raw_changes: Iterable[tuple[Change, str]]) -> list[ChangeEvent]:
    """Convert a watchfiles change set into ordered, deduplicated events."""
    events = {
        ChangeEvent(path=Path(path_str), kind=_CHANGE_KIND_MAP.get(change, "modified"))
        for change, path_str in raw_changes
    }
    return sorted(events, key=lambda e: (_KIND_ORDER[e.kind], str(e.path)))


def categorize_change(
    path: Path,
    config: KetchConfig,
) -> Literal["page", "public", "config", "source"] | None:
    """Determine what a changed file is, based on its location.

    Returns None for files outside the site root.

    """
    try:
        rel = path.relative_to(config.root)
    except ValueError:
        return None

    if len(rel.parts) == 1 and rel.parts[0] in CONFIG_FILENAMES:
        return "config"
    if path.is_relative_to(config.pages_path):
        return "page"
    if path.is_relative_to(config.public_path):
        return "public"
    return "source"


class SiteFilter(DefaultFilter):
    """watchfiles filter that also ignores the build output directory."""

    def __init__(self, config: KetchConfig) -> None:
        super().__init__()
        self._output = str(config.output_path)

    def __call__(self, change: Change, path: str) -> bool:
        if path == self._output or path.startswith(self._output + os.sep):
            return False
        return super().__call__(change, path)


class SiteWatcher:
    """Watches a site root and yields change batches.

    Uses ``watchfiles.awatch`` so batches arrive on the running event loop.
    Bytecode caches, VCS directories and the output directory are ignored.

    """

    def __init__(self, config: KetchConfig) -> None:
        self._config = config
        self._filter = SiteFilter(config)

    async def batches(
        self,
        stop_event: asyncio.Event | None = None,
    ) -> AsyncIterator[list[ChangeEvent]]:
        """Yield one list of events per debounced filesystem burst."""
        async for raw_changes in awatch(
            self._config.root,
            watch_filter=self._filter,
            debounce=self._config.debounce_ms,
            step=50,
            stop_event=stop_event,
        ):
            events = to_change_events(raw_changes)
            if events:
                yield events
