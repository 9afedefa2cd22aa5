"""Command-line interface for Cadence."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import __version__


def _add_template_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "sources",
        nargs="+",
        help="Files, directories or file:// URLs to organize",
    )
    parser.add_argument(
        "--dest",
        type=Path,
        required=True,
        help="Destination root directory",
    )
    parser.add_argument(
        "--format",
        help="Naming format, e.g. '%%artist/%%album/%%track - %%title.%%extension'",
    )
    parser.add_argument(
        "--replace-ascii",
        action="store_true",
        default=None,
        help="Transliterate non-ASCII characters",
    )
    parser.add_argument(
        "--replace-spaces",
        action="store_true",
        default=None,
        help="Replace spaces with underscores",
    )
    parser.add_argument(
        "--replace-the",
        action="store_true",
        default=None,
        help="Drop a leading 'The ' from every path level",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Settings path (default: ~/.config/cadence/settings.json)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Emit machine-readable JSON output",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cadence",
        description="Organize music files into a tree named from their tags",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"cadence {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase log verbosity (-v info, -vv debug)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    organize_parser = subparsers.add_parser(
        "organize",
        help="Copy or move files into the destination tree",
    )
    _add_template_options(organize_parser)
    organize_parser.add_argument(
        "--move",
        action="store_true",
        default=None,
        help="Delete the originals after copying",
    )
    organize_parser.add_argument(
        "--no-overwrite",
        action="store_true",
        default=None,
        help="Skip files whose destination already exists",
    )
    organize_parser.add_argument(
        "--eject-after",
        action="store_true",
        default=None,
        help="Eject the destination when finished",
    )
    organize_parser.add_argument(
        "--eject-command",
        help="Command used to eject, the destination path is appended",
    )

    preview_parser = subparsers.add_parser(
        "preview",
        help="Show destination paths without touching any file",
    )
    _add_template_options(preview_parser)
    preview_parser.add_argument(
        "--limit",
        type=int,
        help="Number of previews (default: 10)",
    )

    tags_parser = subparsers.add_parser(
        "tags",
        help="List tags usable in a naming format",
    )
    tags_parser.add_argument(
        "--json",
        action="store_true",
        help="Emit machine-readable JSON output",
    )
    return parser


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    _configure_logging(args.verbose)

    try:
        # Import here to avoid slow startup
        if args.command == "organize":
            from .commands.organize import run_organize
            return run_organize(args)
        elif args.command == "preview":
            from .commands.preview import run_preview
            return run_preview(args)
        elif args.command == "tags":
            from .commands.preview import run_tags
            return run_tags(args)
        else:
            parser.print_help()
            return 1
    except Exception as exc:  # pragma: no cover - exercised in CLI tests
        from .errors import exit_code_for_exception

        print(str(exc), file=sys.stderr)
        return exit_code_for_exception(exc)


if __name__ == "__main__":
    sys.exit(main())
