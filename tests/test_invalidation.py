"""Tests for ketch.pages.invalidation — deletion, propagation and selection."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import pytest

from ketch.config import KetchConfig
from ketch.observability.collector import BuildCollector
from ketch.observability.events import CacheMissAnomaly, PagesInvalidated
from ketch.pages.cache import PageCache
from ketch.pages.invalidation import discover_sources, plan_invalidation

from .conftest import added, modified, removed, write_page


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def chain(tmp_site: Path) -> dict[str, Path]:
    """_base.py <- _middle.py <- chained.py, all on disk."""
    return {
        "base": write_page(tmp_site, "_base.py", "VALUE = 1\n"),
        "middle": write_page(tmp_site, "_middle.py", "from ._base import VALUE\n"),
        "page": write_page(
            tmp_site,
            "chained.py",
            "from ._middle import VALUE\n\ndef render():\n    return VALUE\n",
        ),
    }


@pytest.fixture
def chain_cache(chain: dict[str, Path], config: KetchConfig) -> PageCache:
    cache = PageCache()
    cache.set_dependencies(chain["base"], [])
    cache.set_dependencies(chain["middle"], [chain["base"]])
    cache.set_dependencies(chain["page"], [chain["middle"]])
    cache.append_route(chain["page"], config.output_path / "chained" / "index.html")
    return cache


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------


class TestSelection:
    """Which sources a build processes."""

    def test_initial_takes_every_module(self, config: KetchConfig) -> None:
        plan = plan_invalidation([], PageCache(), config, initial=True)
        assert plan.rebuild == (
            config.pages_path / "blog" / "post.py",
            config.pages_path / "index.py",
        )

    def test_discover_skips_bytecode_caches(self, config: KetchConfig) -> None:
        cached = config.pages_path / "__pycache__"
        cached.mkdir()
        (cached / "stale.py").write_text("")
        assert cached / "stale.py" not in discover_sources(config.pages_path)

    def test_discover_missing_root(self, tmp_path: Path) -> None:
        assert discover_sources(tmp_path / "nope") == ()

    def test_incremental_takes_changed_pages(self, config: KetchConfig) -> None:
        index = config.pages_path / "index.py"
        plan = plan_invalidation(
            [modified(index), modified(index)], PageCache(), config, initial=False,
        )
        assert plan.rebuild == (index,)

    def test_incremental_ignores_outside_pages(self, config: KetchConfig) -> None:
        style = config.public_path / "style.css"
        plan = plan_invalidation([modified(style)], PageCache(), config, initial=False)
        assert plan.rebuild == ()

    def test_incremental_ignores_other_suffixes(self, config: KetchConfig) -> None:
        notes = config.pages_path / "notes.txt"
        notes.write_text("todo")
        plan = plan_invalidation([added(notes)], PageCache(), config, initial=False)
        assert plan.rebuild == ()

    def test_incremental_skips_vanished_files(self, config: KetchConfig) -> None:
        ghost = config.pages_path / "ghost.py"
        plan = plan_invalidation([added(ghost)], PageCache(), config, initial=False)
        assert plan.rebuild == ()


# ---------------------------------------------------------------------------
# Deletion
# ---------------------------------------------------------------------------


class TestDeletion:
    """Removed sources schedule their recorded outputs for deletion."""

    def test_removed_page_outputs(self, config: KetchConfig) -> None:
        post = config.pages_path / "blog" / "post.py"
        outputs = [
            config.output_path / "blog" / "a" / "index.html",
            config.output_path / "blog" / "b" / "index.html",
        ]
        cache = PageCache()
        for output in outputs:
            cache.append_route(post, output)

        plan = plan_invalidation([removed(post)], cache, config, initial=False)

        assert plan.deletions == tuple(outputs)
        assert plan.removed_sources == (post,)
        assert plan.rebuild == ()

    def test_plan_does_not_mutate_cache(self, config: KetchConfig) -> None:
        post = config.pages_path / "blog" / "post.py"
        cache = PageCache()
        cache.append_route(post, config.output_path / "blog" / "a" / "index.html")

        plan_invalidation([removed(post)], cache, config, initial=False)

        assert post in cache

    def test_cache_miss_is_reported(
        self, config: KetchConfig, capsys: pytest.CaptureFixture[str],
    ) -> None:
        collector = BuildCollector()
        unknown = config.pages_path / "never-built.py"

        plan = plan_invalidation(
            [removed(unknown)], PageCache(), config,
            initial=False, collector=collector,
        )

        assert plan.cache_misses == (unknown,)
        assert plan.deletions == ()
        assert "Cache miss" in capsys.readouterr().err
        misses = collector.log.query(event_type=CacheMissAnomaly)
        assert [m.path for m in misses] == [str(unknown)]

    def test_removed_outside_pages_ignored(self, config: KetchConfig) -> None:
        plan = plan_invalidation(
            [removed(config.public_path / "style.css")], PageCache(), config,
            initial=False,
        )
        assert plan.removed_sources == ()
        assert plan.cache_misses == ()


# ---------------------------------------------------------------------------
# Propagation
# ---------------------------------------------------------------------------


class TestPropagation:
    """Dependents of changed files are rebuilt."""

    def test_single_sweep_by_default(
        self, chain: dict[str, Path], chain_cache: PageCache, config: KetchConfig,
    ) -> None:
        plan = plan_invalidation(
            [modified(chain["base"])], chain_cache, config, initial=False,
        )
        assert plan.rebuild == (chain["base"], chain["middle"])
        assert plan.propagated == (chain["middle"],)

    def test_transitive_reaches_fixed_point(
        self, chain: dict[str, Path], chain_cache: PageCache, config: KetchConfig,
    ) -> None:
        transitive = replace(config, transitive_propagation=True)
        plan = plan_invalidation(
            [modified(chain["base"])], chain_cache, transitive, initial=False,
        )
        assert plan.rebuild == (chain["base"], chain["middle"], chain["page"])

    def test_transitive_terminates_on_cycles(
        self, tmp_site: Path, config: KetchConfig,
    ) -> None:
        first = write_page(tmp_site, "_first.py", "from ._second import X\n")
        second = write_page(tmp_site, "_second.py", "from ._first import X\n")
        cache = PageCache()
        cache.set_dependencies(first, [second])
        cache.set_dependencies(second, [first])

        plan = plan_invalidation(
            [modified(first)], cache,
            replace(config, transitive_propagation=True), initial=False,
        )

        assert plan.rebuild == (first, second)

    def test_removed_changes_do_not_propagate(
        self, chain: dict[str, Path], chain_cache: PageCache, config: KetchConfig,
    ) -> None:
        plan = plan_invalidation(
            [removed(chain["base"])], chain_cache, config, initial=False,
        )
        assert plan.propagated == ()

    def test_dependency_outside_pages_root(
        self, tmp_site: Path, config: KetchConfig,
    ) -> None:
        lib = tmp_site / "lib.py"
        lib.write_text("DATA = []\n")
        page = config.pages_path / "index.py"
        cache = PageCache()
        cache.set_dependencies(page, [lib])

        plan = plan_invalidation([modified(lib)], cache, config, initial=False)

        assert plan.rebuild == (page,)

    def test_shell_change_marks_every_built_page(self, config: KetchConfig) -> None:
        document = write_page(config.root, "_document.py", "def render(): ...\n")
        index = config.pages_path / "index.py"
        post = config.pages_path / "blog" / "post.py"
        cache = PageCache()
        cache.append_route(index, config.output_path / "index.html")
        cache.append_route(post, config.output_path / "blog" / "a" / "index.html")
        cache.set_dependencies(config.pages_path / "_helper.py", [])

        plan = plan_invalidation([modified(document)], cache, config, initial=False)

        assert set(plan.rebuild) == {document, index, post}

    def test_invalidation_event_recorded(
        self, chain: dict[str, Path], chain_cache: PageCache, config: KetchConfig,
    ) -> None:
        collector = BuildCollector()
        plan_invalidation(
            [modified(chain["base"])], chain_cache, config,
            initial=False, collector=collector,
        )
        (event,) = collector.log.query(event_type=PagesInvalidated)
        assert event.changes == 1
        assert event.rebuild == 2
        assert event.propagated == 1
        assert event.initial is False
