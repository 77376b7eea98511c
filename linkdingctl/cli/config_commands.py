"""``config init|show|test``."""

from __future__ import annotations

import getpass
import sys
from typing import TYPE_CHECKING

from linkdingctl.adapters.linkding import LinkdingClientError
from linkdingctl.cli.context import CommandError
from linkdingctl.cli.output import emit_json
from linkdingctl.config import LinkdingConfig, save_config

if TYPE_CHECKING:
    import argparse

    from linkdingctl.cli.context import CommandContext


def register(subparsers: argparse._SubParsersAction) -> None:
    config_parser = subparsers.add_parser("config", help="Manage the connection settings")
    config_commands = config_parser.add_subparsers(dest="config_command", required=True)

    init_parser = config_commands.add_parser("init", help="Create the config file interactively")
    init_parser.set_defaults(handler=run_config_init)

    show_parser = config_commands.add_parser("show", help="Show the effective configuration")
    show_parser.set_defaults(handler=run_config_show)

    test_parser = config_commands.add_parser("test", help="Test the connection to linkding")
    test_parser.set_defaults(handler=run_config_test)


def _read_token(ctx: CommandContext) -> str:
    if ctx.stdin.isatty():
        return getpass.getpass("API Token: ").strip()
    return ctx.read_line("API Token: ")


def run_config_init(ctx: CommandContext) -> int:
    url = ctx.read_line("linkding URL: ")
    token = _read_token(ctx)
    if not url or not token:
        msg = "URL and token are required"
        raise CommandError(msg)

    path = save_config(LinkdingConfig(url=url, token=token), ctx.args.config)
    if ctx.json_output:
        emit_json({"status": "success", "path": str(path)})
    else:
        sys.stdout.write(f"✓ Configuration saved to {path}\n")
    return 0


def run_config_show(ctx: CommandContext) -> int:
    linkding = ctx.config().linkding
    if ctx.json_output:
        emit_json({"url": linkding.url, "token": linkding.masked_token()})
    else:
        sys.stdout.write(f"URL: {linkding.url}\n")
        sys.stdout.write(f"Token: {linkding.masked_token()}\n")
    return 0


def run_config_test(ctx: CommandContext) -> int:
    url = ctx.config().linkding.url
    try:
        with ctx.client() as client:
            client.health_check(raise_errors=True)
    except LinkdingClientError as exc:
        if ctx.json_output:
            emit_json({"status": "failed", "error": str(exc)})
        else:
            sys.stderr.write(f"✗ Connection failed: {exc}\n")
        return 1

    if ctx.json_output:
        emit_json({"status": "success", "url": url})
    else:
        sys.stdout.write(f"✓ Successfully connected to {url}\n")
    return 0
