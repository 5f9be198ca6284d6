"""Transpilation — compile page sources into the staging area.

The page builder only depends on the :class:`Transpiler` protocol: given
source files under a root and a staging directory, produce one loadable
module per source at the same relative path.  The default
:class:`BytecodeTranspiler` byte-compiles each source to a ``.pyc``.  The
compiled code keeps the source path as its filename so tracebacks point at
the real file.
"""

from __future__ import annotations

import asyncio
import py_compile
import time
from collections.abc import Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from ketch._errors import TranspileError

if TYPE_CHECKING:
    from ketch.observability.collector import BuildCollector

STAGED_SUFFIX = ".pyc"


class Transpiler(Protocol):
    """Compiles source modules into a staging directory."""

    async def transpile(
        self,
        sources: Sequence[Path],
        source_root: Path,
        staging: Path,
    ) -> tuple[Path, ...]:
        """Compile *sources* and return the staged paths, in input order."""
        ...


def staged_path_for(source: Path, source_root: Path, staging: Path) -> Path:
    """Where *source* lands inside *staging*."""
    return (staging / source.relative_to(source_root)).with_suffix(STAGED_SUFFIX)


class BytecodeTranspiler:
    """Byte-compiles every source concurrently.

    Files have no ordering dependency at this stage, so each compilation runs
    in a worker thread and the batch is awaited as a whole.

    Args:
        collector: Optional collector receiving one event per file.

    """

    def __init__(self, collector: BuildCollector | None = None) -> None:
        self._collector = collector

    async def transpile(
        self,
        sources: Sequence[Path],
        source_root: Path,
        staging: Path,
    ) -> tuple[Path, ...]:
        staging.mkdir(parents=True, exist_ok=True)
        # Every compile finishes before the first failure is raised
        results = await asyncio.gather(
            *(
                asyncio.to_thread(self._compile_one, source, source_root, staging)
                for source in sources
            ),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        return tuple(results)

    def _compile_one(self, source: Path, source_root: Path, staging: Path) -> Path:
        t0 = time.perf_counter()
        target = staged_path_for(source, source_root, staging)
        target.parent.mkdir(parents=True, exist_ok=True)

        try:
            py_compile.compile(
                str(source),
                cfile=str(target),
                dfile=str(source),
                doraise=True,
                invalidation_mode=py_compile.PycInvalidationMode.UNCHECKED_HASH,
            )
        except py_compile.PyCompileError as exc:
            raise TranspileError(source, exc.msg) from exc
        except OSError as exc:
            raise TranspileError(source, str(exc)) from exc

        if self._collector is not None:
            self._collector.record_build(
                "transpile", source, target,
                duration_ms=(time.perf_counter() - t0) * 1000,
            )
        return target
