"""Page cache — per-source route and dependency records across builds.

One :class:`PageCache` lives for a build session (a single ``ketch build``,
or every build of one ``ketch watch`` process).  It is never persisted: a new
process starts empty and its first build is an initial build.

Invariant after every successful build: for each source file still present,
``entry.routes`` is exactly the set of output files on disk generated from
it.

Thread Safety:
    Not synchronised.  A session runs one build at a time, and the cache is
    mutated only by that build.

"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path


@dataclass(slots=True)
class CacheEntry:
    """What the last build recorded for one source file.

    Attributes:
        routes: Output files (``<route>/index.html``) it produced, in order.
        dependencies: Local modules it imports; replaced wholesale on every
            (re)processing.

    """

    routes: list[Path] = field(default_factory=list)
    dependencies: list[Path] = field(default_factory=list)


class PageCache:
    """Mapping of source file path to :class:`CacheEntry`.

    All operations are total: unknown keys yield ``None`` or an empty result
    and never raise.

    """

    __slots__ = ("_entries",)

    def __init__(self) -> None:
        self._entries: dict[Path, CacheEntry] = {}

    def get(self, path: Path) -> CacheEntry | None:
        return self._entries.get(path)

    def ensure(self, path: Path) -> CacheEntry:
        """Return the entry for *path*, creating an empty one if needed."""
        entry = self._entries.get(path)
        if entry is None:
            entry = CacheEntry()
            self._entries[path] = entry
        return entry

    def set_dependencies(self, path: Path, dependencies: Iterable[Path]) -> None:
        """Replace the dependency list of *path*."""
        self.ensure(path).dependencies = list(dependencies)

    def append_route(self, path: Path, output: Path) -> None:
        """Record *output* as produced by *path* (no duplicates)."""
        routes = self.ensure(path).routes
        if output not in routes:
            routes.append(output)

    def clear_routes(self, path: Path) -> None:
        entry = self._entries.get(path)
        if entry is not None:
            entry.routes.clear()

    def remove(self, path: Path) -> None:
        self._entries.pop(path, None)

    def clear(self) -> None:
        """Forget everything (an initial build starts from a clean output)."""
        self._entries.clear()

    def dependents_of(self, path: Path) -> list[Path]:
        """Sources whose recorded dependencies include *path*."""
        return [
            source
            for source, entry in self._entries.items()
            if path in entry.dependencies
        ]

    def owner_of(self, output: Path) -> Path | None:
        """Return the source that currently claims *output*, if any."""
        for source, entry in self._entries.items():
            if output in entry.routes:
                return source
        return None

    def snapshot(self) -> dict[str, dict[str, list[str]]]:
        """Plain-data copy of the cache for reporting."""
        return {
            str(source): {
                "routes": [str(p) for p in entry.routes],
                "dependencies": [str(p) for p in entry.dependencies],
            }
            for source, entry in self._entries.items()
        }

    def __contains__(self, path: object) -> bool:
        return path in self._entries

    def __iter__(self) -> Iterator[Path]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
