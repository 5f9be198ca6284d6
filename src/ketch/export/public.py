"""Public directory — copy static files into the output verbatim.

An initial build copies the whole ``public/`` tree into the output root,
preserving directory structure.  Incremental builds replay only the changes
under ``public/``: removed files are deleted from the output, added or
modified files are copied again.  A removed directory is only pruned once it
is empty, since page outputs share the output tree with public files.
"""

from __future__ import annotations

import shutil
import time
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ketch.content.watcher import ChangeEvent
    from ketch.observability.collector import BuildCollector


def copy_public(
    public_path: Path,
    output_dir: Path,
    *,
    initial: bool,
    changes: Sequence[ChangeEvent] = (),
    collector: BuildCollector | None = None,
) -> tuple[Path, ...]:
    """Mirror *public_path* into *output_dir*.

    Returns:
        Output paths that were written or removed.

    """
    if initial:
        return _copy_tree(public_path, output_dir, collector)

    touched: list[Path] = []
    for change in changes:
        if not change.path.is_relative_to(public_path):
            continue

        destination = output_dir / change.path.relative_to(public_path)
        t0 = time.perf_counter()

        if change.kind == "removed":
            if destination.is_file():
                destination.unlink()
                _prune_empty_dirs(destination.parent, output_dir)
            elif destination.is_dir():
                _prune_empty_dirs(destination, output_dir)
            else:
                continue
            kind = "remove_public"
        elif change.path.is_file():
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(change.path, destination)
            kind = "copy_public"
        else:
            continue

        touched.append(destination)
        if collector is not None:
            collector.record_build(
                kind, change.path, destination,
                duration_ms=(time.perf_counter() - t0) * 1000,
            )

    return tuple(touched)


def _copy_tree(
    public_path: Path,
    output_dir: Path,
    collector: BuildCollector | None,
) -> tuple[Path, ...]:
    if not public_path.is_dir():
        return ()

    copied: list[Path] = []
    for src_file in sorted(public_path.rglob("*")):
        if not src_file.is_file():
            continue

        t0 = time.perf_counter()
        dest_file = output_dir / src_file.relative_to(public_path)
        dest_file.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_file, dest_file)
        copied.append(dest_file)

        if collector is not None:
            collector.record_build(
                "copy_public", src_file, dest_file,
                duration_ms=(time.perf_counter() - t0) * 1000,
            )

    return tuple(copied)


def _prune_empty_dirs(directory: Path, output_dir: Path) -> None:
    while directory != output_dir and directory.is_relative_to(output_dir):
        try:
            directory.rmdir()
        except OSError:
            return
        directory = directory.parent
