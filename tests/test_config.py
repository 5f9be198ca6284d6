"""Tests for ketch.config and ketch.config_loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from ketch._errors import ConfigError
from ketch.config import KetchConfig
from ketch.config_loader import load_config


class TestKetchConfig:
    """KetchConfig — defaults and derived paths."""

    def test_defaults(self, tmp_path: Path) -> None:
        config = KetchConfig(root=tmp_path)
        assert config.pages_path == tmp_path / "pages"
        assert config.public_path == tmp_path / "public"
        assert config.output_path == tmp_path / "out"
        assert config.staging_path == tmp_path / "out" / ".staging"
        assert config.transitive_propagation is False
        assert config.shell_modules == frozenset({"_document", "_app"})

    def test_relative_root_resolved(self) -> None:
        assert KetchConfig(root=Path(".")).root.is_absolute()

    def test_absolute_output_kept(self, tmp_path: Path) -> None:
        target = tmp_path / "elsewhere"
        assert KetchConfig(root=tmp_path, output=target).output_path == target

    def test_frozen(self, tmp_path: Path) -> None:
        config = KetchConfig(root=tmp_path)
        with pytest.raises(AttributeError):
            config.pages_dir = "src"  # type: ignore[misc]


class TestLoadConfig:
    """load_config() — file discovery and override merging."""

    def test_no_file(self, tmp_path: Path) -> None:
        assert load_config(tmp_path) == KetchConfig(root=tmp_path)

    def test_yaml_section(self, tmp_path: Path) -> None:
        (tmp_path / "ketch.yaml").write_text(
            "ketch:\n  output: dist\n  transitive_propagation: true\n"
        )
        config = load_config(tmp_path)
        assert config.output == Path("dist")
        assert config.transitive_propagation is True

    def test_yml_top_level_keys(self, tmp_path: Path) -> None:
        (tmp_path / "ketch.yml").write_text("pages_dir: site\ntitle: ignored\n")
        assert load_config(tmp_path).pages_dir == "site"

    def test_toml(self, tmp_path: Path) -> None:
        (tmp_path / "ketch.toml").write_text('[ketch]\npublic_dir = "static"\n')
        assert load_config(tmp_path).public_dir == "static"

    def test_yaml_takes_precedence_over_toml(self, tmp_path: Path) -> None:
        (tmp_path / "ketch.yaml").write_text("ketch:\n  public_dir: from-yaml\n")
        (tmp_path / "ketch.toml").write_text('[ketch]\npublic_dir = "from-toml"\n')
        assert load_config(tmp_path).public_dir == "from-yaml"

    def test_overrides_win(self, tmp_path: Path) -> None:
        (tmp_path / "ketch.yaml").write_text("ketch:\n  output: dist\n")
        assert load_config(tmp_path, output="build").output == Path("build")

    def test_none_overrides_ignored(self, tmp_path: Path) -> None:
        (tmp_path / "ketch.yaml").write_text("ketch:\n  output: dist\n")
        assert load_config(tmp_path, output=None).output == Path("dist")

    def test_unknown_key(self, tmp_path: Path) -> None:
        (tmp_path / "ketch.yaml").write_text("ketch:\n  outptu: dist\n")
        with pytest.raises(ConfigError, match="outptu"):
            load_config(tmp_path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "ketch.yaml").write_text("ketch: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(tmp_path)

    def test_yaml_not_a_mapping(self, tmp_path: Path) -> None:
        (tmp_path / "ketch.yaml").write_text("- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(tmp_path)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "ketch.toml").write_text("[ketch\n")
        with pytest.raises(ConfigError, match="Invalid TOML"):
            load_config(tmp_path)

    def test_empty_yaml(self, tmp_path: Path) -> None:
        (tmp_path / "ketch.yaml").write_text("")
        assert load_config(tmp_path) == KetchConfig(root=tmp_path)
