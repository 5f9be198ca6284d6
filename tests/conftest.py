"""Shared test fixtures for ketch."""

from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from ketch.config import KetchConfig
from ketch.content.watcher import ChangeEvent


@pytest.fixture
def tmp_site(tmp_path: Path) -> Path:
    """Create a minimal site structure for testing.

    Returns the path to the site root with pages/ and public/ dirs: a home
    page, a dynamic blog page rendering two posts, and one public file.
    """
    pages = tmp_path / "pages"
    pages.mkdir()
    write_page(
        tmp_path,
        "index.py",
        """
        from ketch.render import h

        def render():
            return h("h1", {}, "Home")
        """,
    )
    write_page(
        tmp_path,
        "blog/post.py",
        """
        from ketch.render import h

        def get_paths():
            return ["a", "b"]

        def get_props(slug):
            return {"slug": slug}

        def render(slug):
            return h("p", {"class_name": "post"}, slug)
        """,
    )

    public = tmp_path / "public"
    public.mkdir()
    (public / "style.css").write_text("body { margin: 0; }\n")

    return tmp_path


@pytest.fixture
def config(tmp_site: Path) -> KetchConfig:
    """A KetchConfig rooted at the tmp_site."""
    return KetchConfig(root=tmp_site)


def write_page(root: Path, relative: str, source: str) -> Path:
    """Write a page module under ``root/pages`` and return its path."""
    path = root / "pages" / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dedent(source).lstrip(), encoding="utf-8")
    return path


def modified(path: Path) -> ChangeEvent:
    return ChangeEvent(path=path, kind="modified")


def added(path: Path) -> ChangeEvent:
    return ChangeEvent(path=path, kind="added")


def removed(path: Path) -> ChangeEvent:
    return ChangeEvent(path=path, kind="removed")
