"""``user profile``."""

from __future__ import annotations

from typing import TYPE_CHECKING

from linkdingctl.cli.output import display_user_profile, emit_json

if TYPE_CHECKING:
    import argparse

    from linkdingctl.cli.context import CommandContext


def register(subparsers: argparse._SubParsersAction) -> None:
    user_parser = subparsers.add_parser("user", help="Show information about the API user")
    user_commands = user_parser.add_subparsers(dest="user_command", required=True)

    profile_parser = user_commands.add_parser(
        "profile", help="Show the preferences of the token's owner"
    )
    profile_parser.set_defaults(handler=run_user_profile)


def run_user_profile(ctx: CommandContext) -> int:
    with ctx.client() as client:
        profile = client.get_user_profile()

    if ctx.json_output:
        emit_json(profile.model_dump(mode="json"))
    else:
        display_user_profile(profile)
    return 0
