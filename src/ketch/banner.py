"""Startup banner — mode-aware status output.

Prints a short banner with the site layout before a build or watch session.
Detects ``NO_COLOR`` / ``TERM`` for safe fallback.
"""

from __future__ import annotations

import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ketch.config import KetchConfig


# ---------------------------------------------------------------------------
# ANSI helpers — respect NO_COLOR (https://no-color.org)
# ---------------------------------------------------------------------------

def _supports_color() -> bool:
    """Return True if the terminal supports ANSI colors."""
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("TERM") == "dumb":
        return False
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()


_COLOR = _supports_color()

_RESET = "\033[0m" if _COLOR else ""
_BOLD = "\033[1m" if _COLOR else ""
_DIM = "\033[2m" if _COLOR else ""
_GREEN = "\033[32m" if _COLOR else ""
_YELLOW = "\033[33m" if _COLOR else ""
_BLUE = "\033[34m" if _COLOR else ""


_MODE_STYLES: dict[str, tuple[str, str]] = {
    "build": (_YELLOW, "build"),
    "watch": (_GREEN, "watch"),
}


def _mode_badge(mode: str) -> str:
    """Return a styled [mode] badge."""
    color, label = _MODE_STYLES.get(mode, (_DIM, mode))
    return f"{color}[{label}]{_RESET}"


def format_banner(
    config: KetchConfig,
    mode: str,
    *,
    load_ms: float = 0.0,
    warnings: list[str] | None = None,
) -> str:
    """Return the banner text (without trailing newline)."""
    from ketch import __version__

    header = f"  {_BLUE}{_BOLD}ketch{_RESET} {_DIM}v{__version__}{_RESET}  {_mode_badge(mode)}"
    timing = f" {_DIM}in {load_ms:.0f}ms{_RESET}" if load_ms > 0 else ""

    lines: list[str] = [
        "",
        header,
        f"  {_DIM}{'─' * 43}{_RESET}",
        f"  {_DIM}├─{_RESET} pages: {_DIM}{config.pages_path}{_RESET}{timing}",
        f"  {_DIM}├─{_RESET} public: {_DIM}{config.public_path}{_RESET}",
    ]

    if config.transitive_propagation:
        lines.append(f"  {_DIM}├─{_RESET} dependency propagation: transitive")

    lines.append(f"  {_DIM}└─{_RESET} output: {_DIM}{config.output_path}{_RESET}")

    if mode == "watch":
        lines.append("")
        lines.append(f"  {_DIM}Watching for changes...{_RESET}")

    if warnings:
        lines.append("")
        lines.extend(f"  {_YELLOW}!{_RESET} {w}" for w in warnings)

    lines.append("")
    return "\n".join(lines)


def print_banner(
    config: KetchConfig,
    mode: str,
    *,
    load_ms: float = 0.0,
    warnings: list[str] | None = None,
) -> None:
    """Print the ketch banner to stderr.

    Args:
        config: Resolved KetchConfig.
        mode: ``"build"`` or ``"watch"``.
        load_ms: Time spent preparing the session in milliseconds.
        warnings: Optional list of warning messages to display.

    """
    print(format_banner(config, mode, load_ms=load_ms, warnings=warnings), file=sys.stderr)
