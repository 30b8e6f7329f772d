"""Main CLI entry point for moddev.

Provides commands: assets, wire, pom
"""

import argparse
import logging
import sys
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from moddev import __version__
from moddev.cli.assets import assets_command
from moddev.cli.pom import pom_command
from moddev.cli.wire import wire_command

logger = logging.getLogger("moddev.cli")


def setup_logging(
    verbose: bool = False,
    console: Optional[Console] = None,
    log_file: Optional[str] = None,
) -> None:
    """Setup logging configuration with Rich integration.

    Args:
        verbose: Enable verbose logging.
        console: Rich Console instance for coordinated output (optional).
        log_file: Also write plain log lines to this file (optional).
    """
    if verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        log_time_format="[%H:%M:%S]",
    )
    handlers: list[logging.Handler] = [handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(name)s] [%(levelname)s] %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="[%(name)s] [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="moddev",
        description="Moddev - mod development environment builder",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-file",
        help="Also write logs to this file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-c",
        "--config",
        help=(
            "Optional environment configuration. Can be a path to a TOML/JSON "
            "file or an inline TOML/JSON string. When omitted, built-in "
            "defaults are used (MODDEV_OFFLINE / MODDEV_CACHE_DIR still apply)."
        ),
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Assets command
    assets_parser = subparsers.add_parser(
        "assets",
        help="Download and verify the asset cache for a game version",
    )
    assets_parser.add_argument(
        "version_json",
        help="Version descriptor JSON containing 'id' and 'assetIndex'",
    )
    assets_parser.add_argument(
        "--cache-dir",
        help="Shared user cache (assets are stored under <cache-dir>/assets)",
    )
    assets_parser.add_argument(
        "--run-dir",
        help="Run directory that also receives <run-dir>/assets",
    )
    assets_parser.add_argument(
        "--offline",
        action="store_true",
        help="Do not use the network; accept outdated local files with a warning",
    )
    assets_parser.add_argument(
        "-w",
        "--workers",
        type=int,
        help="Concurrent downloads (default: from configuration, 8)",
    )
    assets_parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Disable the progress bar",
    )

    # Wire command
    wire_parser = subparsers.add_parser(
        "wire",
        help="Print the wired configuration graph as JSON",
    )
    wire_parser.add_argument(
        "--project-dir",
        help="Project directory (default: current directory)",
    )
    wire_parser.add_argument(
        "--scopes",
        help=(
            "JSON file with resolved build-tooling classpaths, innermost project "
            "first, searched for the mixin compile extensions"
        ),
    )
    wire_parser.add_argument(
        "-o",
        "--output",
        help="Write JSON to this file instead of stdout",
    )

    # POM command
    pom_parser = subparsers.add_parser(
        "pom",
        help="Merge mod dependencies into a POM file",
    )
    pom_parser.add_argument(
        "pom",
        help="POM file to update",
    )
    pom_parser.add_argument(
        "-d",
        "--dependencies",
        required=True,
        help="JSON file mapping configuration names to dependency notations",
    )
    pom_parser.add_argument(
        "-o",
        "--output",
        help="Write the merged POM here instead of updating it in place",
    )

    return parser


def main() -> int:
    """Main CLI entry point.

    Returns:
        int: Exit code.
    """
    parser = build_parser()
    args = parser.parse_args()

    setup_logging(args.verbose, log_file=args.log_file)

    if args.command == "assets":
        return assets_command(args)
    elif args.command == "wire":
        return wire_command(args)
    elif args.command == "pom":
        return pom_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
