"""Tests for ketch.banner — startup output."""

from __future__ import annotations

from pathlib import Path

import pytest

from ketch.banner import format_banner, print_banner
from ketch.config import KetchConfig


@pytest.fixture
def bare_config(tmp_path: Path) -> KetchConfig:
    return KetchConfig(root=tmp_path)


class TestFormatBanner:
    def test_build_mode(self, bare_config: KetchConfig) -> None:
        text = format_banner(bare_config, "build")
        assert "ketch" in text
        assert "[build]" in text
        assert str(bare_config.pages_path) in text
        assert str(bare_config.output_path) in text
        assert "Watching" not in text

    def test_watch_mode(self, bare_config: KetchConfig) -> None:
        assert "Watching for changes" in format_banner(bare_config, "watch")

    def test_transitive_shown(self, tmp_path: Path) -> None:
        config = KetchConfig(root=tmp_path, transitive_propagation=True)
        assert "transitive" in format_banner(config, "watch")

    def test_load_time(self, bare_config: KetchConfig) -> None:
        assert "in 12ms" in format_banner(bare_config, "build", load_ms=12.3)

    def test_warnings(self, bare_config: KetchConfig) -> None:
        text = format_banner(bare_config, "build", warnings=["public/ is missing"])
        assert "public/ is missing" in text


class TestPrintBanner:
    def test_writes_to_stderr(
        self, bare_config: KetchConfig, capsys: pytest.CaptureFixture[str],
    ) -> None:
        print_banner(bare_config, "build")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "[build]" in captured.err
