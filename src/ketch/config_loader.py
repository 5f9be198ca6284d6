"""Load KetchConfig from ketch.yaml / ketch.toml if present.

Merges file config with CLI kwargs. CLI overrides file.
"""

from __future__ import annotations

import tomllib
from pathlib import Path

import yaml

from ketch._errors import ConfigError
from ketch.config import KetchConfig

CONFIG_FILENAMES = ("ketch.yaml", "ketch.yml", "ketch.toml")

_KNOWN_KEYS = frozenset({
    "pages_dir",
    "public_dir",
    "output",
    "staging_dir",
    "index_name",
    "document_name",
    "wrapper_name",
    "module_suffix",
    "entry_id",
    "transitive_propagation",
    "debounce_ms",
})


def load_config(root: Path, **overrides: object) -> KetchConfig:
    """Load KetchConfig from root, optionally merging ketch.yaml.

    Looks for ketch.yaml, ketch.yml, or ketch.toml in root. If found, loads
    and merges with overrides. Overrides take precedence; ``None`` overrides
    are ignored so unset CLI flags do not mask file values.

    Raises:
        ConfigError: If the file cannot be parsed or names unknown keys.

    """
    file_config = _read_ketch_config(root)
    merged = {**file_config, **{k: v for k, v in overrides.items() if v is not None}}

    unknown = set(merged) - _KNOWN_KEYS
    if unknown:
        msg = f"Unknown configuration keys: {', '.join(sorted(unknown))}"
        raise ConfigError(msg)

    # Normalize output to Path
    if "output" in merged and not isinstance(merged["output"], Path):
        merged["output"] = Path(str(merged["output"]))
    return KetchConfig(root=root, **merged)


def _read_ketch_config(root: Path) -> dict[str, object]:
    """Read ketch config from yaml/toml if present. Returns empty dict otherwise."""
    for name in CONFIG_FILENAMES:
        path = root / name
        if not path.is_file():
            continue
        if path.suffix == ".toml":
            return _parse_toml(path)
        return _parse_yaml(path)
    return {}


def _parse_yaml(path: Path) -> dict[str, object]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML in {path}: {exc}"
        raise ConfigError(msg) from exc
    if not isinstance(data, dict):
        msg = f"{path} must contain a mapping at the top level"
        raise ConfigError(msg)
    return _flatten_ketch_section(data)


def _parse_toml(path: Path) -> dict[str, object]:
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"Invalid TOML in {path}: {exc}"
        raise ConfigError(msg) from exc
    return _flatten_ketch_section(data)


def _flatten_ketch_section(data: dict[str, object]) -> dict[str, object]:
    """Extract ketch.* keys into top-level config."""
    result: dict[str, object] = {}
    section = data.get("ketch")
    if isinstance(section, dict):
        result.update(section)
    for k, v in data.items():
        if k != "ketch" and k in _KNOWN_KEYS:
            result[k] = v
    return result
