"""Route resolution — which output locations a page renders to.

A page's *logical directory* is its directory relative to the pages root
(``""`` at the top).  Routes are posix-style paths relative to the output
root; each one is written to ``<output>/<route>/index.html``.

    pages/index.py                        -> ""            (index.html)
    pages/blog/index.py                   -> "blog"
    pages/about.py                        -> "about"
    pages/blog/about.py                   -> "about"       (flattened)
    pages/blog/post.py, get_paths()=[a,b] -> "blog/a", "blog/b"

Non-index pages without ``get_paths`` are treated as siblings of their
directory, not children of it.

Suffixes from ``get_paths`` are normalised before use: surrounding slashes
are stripped and ``.``/``..`` segments collapsed, so ``"/a/"`` and ``"a"``
name the same route.  ``get_props`` receives the normalised suffix, not the
string ``get_paths`` returned.
"""

from __future__ import annotations

import posixpath
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from ketch._errors import MalformedPageError
from ketch._types import RoutePath
from ketch.pages.module import call_maybe_async, ensure_mapping

if TYPE_CHECKING:
    from ketch.pages.module import PageModule

OUTPUT_FILENAME = "index.html"


@dataclass(frozen=True, slots=True)
class ResolvedRoute:
    """One output location of a page.

    Attributes:
        route: Route path relative to the output root ("" for the root).
        suffix: What ``get_props`` receives: the normalised route with the
            page's logical directory stripped.
        output_path: Absolute path of the ``index.html`` to write.

    """

    route: RoutePath
    suffix: str
    output_path: Path


def logical_dir(staged_path: Path, staging_root: Path) -> str:
    """The page's directory relative to the staging root, posix-style."""
    parent = staged_path.parent.relative_to(staging_root)
    return "" if parent == Path() else parent.as_posix()


async def resolve_routes(
    page: PageModule,
    page_dir: str,
    output_root: Path,
    *,
    index_name: str = "index",
) -> tuple[ResolvedRoute, ...]:
    """Resolve every route *page* renders to.

    Raises:
        MalformedPageError: If ``get_paths`` returns something other than an
            iterable of strings, or a route that escapes the output root.

    """
    if page.get_paths is None:
        route = page_dir if page.name == index_name else page.name
        return (_make_route(page, route, page_dir, output_root),)

    suffixes = await call_maybe_async(page.get_paths)
    routes: dict[str, ResolvedRoute] = {}
    for suffix in _validate_suffixes(suffixes, page):
        route = _join(page_dir, suffix)
        if route not in routes:
            routes[route] = _make_route(page, route, page_dir, output_root)
    return tuple(routes.values())


async def props_for(page: PageModule, route: ResolvedRoute) -> Mapping[str, Any]:
    """Invoke ``get_props`` with the route's suffix."""
    props = await call_maybe_async(page.get_props, route.suffix)
    return ensure_mapping(props, page.source)


def _validate_suffixes(value: Any, page: PageModule) -> list[str]:
    if isinstance(value, str) or not isinstance(value, Iterable):
        raise MalformedPageError(
            page.source,
            f"`get_paths` returned {type(value).__name__}, expected a list of paths",
        )
    suffixes = list(value)
    for suffix in suffixes:
        if not isinstance(suffix, str):
            raise MalformedPageError(
                page.source,
                f"`get_paths` produced {suffix!r}, expected a string",
            )
    return suffixes


def _join(page_dir: str, suffix: str) -> str:
    joined = posixpath.normpath(posixpath.join(page_dir, suffix.strip("/")))
    return "" if joined == "." else joined


def _strip_dir(route: str, page_dir: str) -> str:
    if not page_dir:
        return route
    if route == page_dir:
        return ""
    if route.startswith(page_dir + "/"):
        return route[len(page_dir) + 1:]
    return route


def _make_route(
    page: PageModule,
    route: str,
    page_dir: str,
    output_root: Path,
) -> ResolvedRoute:
    if route == ".." or route.startswith("../"):
        raise MalformedPageError(page.source, f"route {route!r} escapes the output directory")
    parts = route.split("/") if route else []
    return ResolvedRoute(
        route=route,
        suffix=_strip_dir(route, page_dir),
        output_path=output_root.joinpath(*parts, OUTPUT_FILENAME),
    )
