"""Build event model.

Defines the event types recorded while building pages.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Literal


# ---------------------------------------------------------------------------
# Build pipeline events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BuildEvent:
    """A single build action on one file.

    Attributes:
        kind: The type of build action.
        source: Source file path (or description).
        target: Output file path (or description).
        duration_ms: Time taken in milliseconds.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    kind: Literal["transpile", "render", "delete", "copy_public", "remove_public"]
    source: str
    target: str
    duration_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class PagesInvalidated:
    """The invalidation engine planned a build.

    Attributes:
        initial: True for a full build.
        changes: Number of incoming change events.
        rebuild: Number of source files selected for (re)processing.
        deletions: Number of output files scheduled for deletion.
        propagated: Number of pages added because a dependency changed.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    initial: bool
    changes: int
    rebuild: int
    deletions: int
    propagated: int
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class CacheMissAnomaly:
    """A removed source had no recorded output.

    Not an error: the file may never have rendered (e.g. it was invalid, or
    it is a helper module).

    Attributes:
        path: The removed source file.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    path: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class BuildProfile:
    """Per-stage timing for one build.

    Attributes:
        initial: True for a full build.
        pages_rendered: Number of output files written.
        invalidate_ms: Time planning and executing deletions.
        extract_ms: Time reading sources and extracting dependencies.
        transpile_ms: Time compiling sources into the staging area.
        render_ms: Time rendering and writing pages.
        copy_ms: Time copying public files.
        total_ms: Wall-clock time for the whole build.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    initial: bool
    pages_rendered: int
    invalidate_ms: float
    extract_ms: float
    transpile_ms: float
    render_ms: float
    copy_ms: float
    total_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

type KetchEvent = BuildEvent | PagesInvalidated | CacheMissAnomaly | BuildProfile


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
