"""Head collection — lets pages contribute elements to the document head.

A page renders :func:`Head` anywhere in its tree::

    h(Head, {}, h("title", {}, "About"))

While a route is being rendered inside :func:`collect_head`, the children of
every ``Head`` are gathered (in render order) and later appended to the
document shell's ``<head>``.  Outside a collection scope ``Head`` renders
nothing and its children are dropped.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

_collected: ContextVar[list[Any] | None] = ContextVar("ketch_head", default=None)


def Head(children: list[Any] | None = None) -> None:  # noqa: N802
    """Component that moves its children into the document head."""
    bucket = _collected.get()
    if bucket is not None and children:
        bucket.extend(children)


@contextmanager
def collect_head() -> Iterator[list[Any]]:
    """Collect ``Head`` children rendered within the block."""
    bucket: list[Any] = []
    token = _collected.set(bucket)
    try:
        yield bucket
    finally:
        _collected.reset(token)
