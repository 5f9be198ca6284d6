"""Ketch CLI — ketch build / ketch watch.

Entry point for the ``ketch`` command-line interface.
"""

from __future__ import annotations

import argparse
import sys


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the ketch CLI."""
    parser = argparse.ArgumentParser(
        prog="ketch",
        description="Incremental static page builder.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {_get_version()}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ketch build
    build_parser = subparsers.add_parser(
        "build",
        help="Render every page once",
    )
    _add_common_arguments(build_parser)

    # ketch watch
    watch_parser = subparsers.add_parser(
        "watch",
        help="Build, then rebuild affected pages on every change",
    )
    _add_common_arguments(watch_parser)
    watch_parser.add_argument(
        "--transitive",
        action="store_true",
        default=None,
        help="Follow dependency chains to every indirect dependent",
    )

    return parser


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("root", nargs="?", default=".", help="Site root directory")
    parser.add_argument("--output", default=None, help="Output directory (default: out)")
    parser.add_argument("--pages", default=None, help="Pages directory (default: pages)")
    parser.add_argument("--public", default=None, help="Public directory (default: public)")


def _get_version() -> str:
    """Get the package version."""
    from ketch import __version__

    return __version__


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    from ketch._errors import KetchError
    from ketch.app import build, watch

    overrides: dict[str, object] = {
        "output": args.output,
        "pages_dir": args.pages,
        "public_dir": args.public,
    }

    try:
        if args.command == "build":
            build(root=args.root, **overrides)
        elif args.command == "watch":
            watch(root=args.root, transitive_propagation=args.transitive, **overrides)
    except KetchError as exc:
        print(f"  Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
