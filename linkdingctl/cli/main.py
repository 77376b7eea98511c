"""``linkdingctl`` entry point: manage linkding bookmarks from the command line."""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

from linkdingctl import __version__
from linkdingctl.adapters.linkding import LinkdingClientError
from linkdingctl.cli import (
    bookmark_commands,
    bundle_commands,
    config_commands,
    interchange_commands,
    tags_commands,
    user_commands,
)
from linkdingctl.cli.context import CommandContext, CommandError, default_client_factory
from linkdingctl.config import ConfigError
from linkdingctl.core.logging_utils import setup_json_logging
from linkdingctl.interchange import InterchangeError

if TYPE_CHECKING:
    from collections.abc import Callable

    from linkdingctl.config import AppConfig

logger = logging.getLogger(__name__)

__all__ = ["build_parser", "main"]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linkdingctl",
        description=(
            "Manage the bookmarks of a linkding instance: add, list, update and "
            "delete them, and import, export, back up or restore the collection."
        ),
        allow_abbrev=False,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        help="Config file path (default ~/.config/linkdingctl/config.yaml)",
    )
    parser.add_argument(
        "--json", action="store_true", help="Output JSON instead of human-readable text"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--url", help="linkding URL (overrides config file and environment)")
    parser.add_argument("--token", help="API token (overrides config file and environment)")

    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")
    config_commands.register(subparsers)
    interchange_commands.register(subparsers)
    bookmark_commands.register(subparsers)
    tags_commands.register(subparsers)
    bundle_commands.register(subparsers)
    user_commands.register(subparsers)
    return parser


def main(
    argv: list[str] | None = None,
    *,
    client_factory: Callable[[AppConfig], Any] = default_client_factory,
) -> int:
    """Run one command; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = "DEBUG" if args.debug else os.environ.get("LINKDING_LOG_LEVEL", "WARNING")
    setup_json_logging(level)

    ctx = CommandContext(args=args, client_factory=client_factory)
    try:
        return args.handler(ctx)
    except (ConfigError, InterchangeError, LinkdingClientError, CommandError) as exc:
        logger.debug("cli_command_failed", extra={"command": args.command, "error": str(exc)})
        sys.stderr.write(f"Error: {exc}\n")
        return 1
    except OSError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1
    except KeyboardInterrupt:  # pragma: no cover - user cancelled
        return 1


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
