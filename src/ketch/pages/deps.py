"""Local dependency extraction — which source files a page imports.

A textual heuristic, not a parser.  Only single-line relative imports of the
form ``from <specifier> import <names>`` are recognised:

    from .header import Header          -> <dir>/header.py
    from ..components.nav import Nav    -> <dir>/../components/nav.py
    from . import footer, sidebar       -> <dir>/footer.py, <dir>/sidebar.py

Package imports (``from ketch.render import h``) are ignored.  Plain
``import x`` statements, dynamic imports, and names continued on following
lines of a parenthesised import are not seen.
"""

from __future__ import annotations

import os
from pathlib import Path

_IMPORT_KEYWORD = "from"


def extract_dependencies(
    source_path: Path,
    text: str,
    *,
    suffix: str = ".py",
) -> tuple[Path, ...]:
    """Return absolute paths of the local modules *text* imports.

    Paths are resolved against the directory of *source_path*, deduplicated,
    and returned in first-seen order.

    """
    directory = source_path.parent
    found: dict[Path, None] = {}

    for line in text.splitlines():
        stripped = line.lstrip()
        if not stripped.startswith(_IMPORT_KEYWORD):
            continue

        tokens = stripped.split()
        if len(tokens) < 3 or tokens[0] != _IMPORT_KEYWORD or tokens[2] != "import":
            continue

        specifier = tokens[1]
        if not specifier.startswith("."):
            continue

        for dep in _resolve_specifier(directory, specifier, tokens[3:], suffix):
            found.setdefault(dep, None)

    return tuple(found)


def _resolve_specifier(
    directory: Path,
    specifier: str,
    names: list[str],
    suffix: str,
) -> list[Path]:
    module = specifier.lstrip(".")
    base = directory
    for _ in range(len(specifier) - len(module) - 1):
        base = base.parent

    if module:
        target = base.joinpath(*module.split("."))
        return [_absolute(target.with_name(target.name + suffix))]

    # ``from . import a, b as c`` names sibling modules
    deps: list[Path] = []
    for name in _imported_names(names):
        deps.append(_absolute(base / f"{name}{suffix}"))
    return deps


def _imported_names(tokens: list[str]) -> list[str]:
    names: list[str] = []
    skip_next = False
    for token in " ".join(tokens).replace(",", " , ").split():
        if skip_next:
            skip_next = False
            continue
        if token == "as":
            skip_next = True
            continue
        cleaned = token.strip("(),\\")
        if cleaned.startswith("#"):
            break
        if cleaned.isidentifier():
            names.append(cleaned)
    return names


def _absolute(path: Path) -> Path:
    # Lexical normalisation; symlinks are not resolved
    return Path(os.path.normpath(path.absolute()))
