"""``bundles list|get|create|update|delete``: saved searches on the server."""

from __future__ import annotations

import argparse
import sys
from typing import TYPE_CHECKING

from linkdingctl.adapters.linkding.models import BundleCreate, BundleUpdate
from linkdingctl.cli.context import CommandError
from linkdingctl.cli.output import display_bundle, display_bundle_table, emit_json

if TYPE_CHECKING:
    from linkdingctl.adapters.linkding.models import LinkdingBundle
    from linkdingctl.cli.context import CommandContext


def bundle_id(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        msg = f"invalid bundle ID: {value} (must be a number)"
        raise argparse.ArgumentTypeError(msg) from None


def _add_filter_arguments(parser: argparse.ArgumentParser, *, defaults: bool) -> None:
    default = "" if defaults else None
    parser.add_argument("--search", default=default, help="Search terms")
    parser.add_argument("--any-tags", default=default, help="Match any of these tags")
    parser.add_argument("--all-tags", default=default, help="Match all of these tags")
    parser.add_argument("--excluded-tags", default=default, help="Exclude these tags")
    parser.add_argument(
        "--order", type=int, default=0 if defaults else None, help="Sort order"
    )


def register(subparsers: argparse._SubParsersAction) -> None:
    bundles_parser = subparsers.add_parser("bundles", help="Manage bookmark bundles")
    bundle_commands = bundles_parser.add_subparsers(dest="bundles_command", required=True)

    list_parser = bundle_commands.add_parser("list", help="List all bundles")
    list_parser.set_defaults(handler=run_bundles_list)

    get_parser = bundle_commands.add_parser("get", help="Show one bundle")
    get_parser.add_argument("id", type=bundle_id)
    get_parser.set_defaults(handler=run_bundles_get)

    create_parser = bundle_commands.add_parser("create", help="Create a bundle")
    create_parser.add_argument("name")
    _add_filter_arguments(create_parser, defaults=True)
    create_parser.set_defaults(handler=run_bundles_create)

    update_parser = bundle_commands.add_parser(
        "update",
        help="Update a bundle",
        description="Update a bundle. Only the given fields are modified.",
    )
    update_parser.add_argument("id", type=bundle_id)
    update_parser.add_argument("--name", help="Bundle name")
    _add_filter_arguments(update_parser, defaults=False)
    update_parser.set_defaults(handler=run_bundles_update)

    delete_parser = bundle_commands.add_parser("delete", help="Delete a bundle")
    delete_parser.add_argument("id", type=bundle_id)
    delete_parser.set_defaults(handler=run_bundles_delete)


def _report(ctx: CommandContext, verb: str, bundle: LinkdingBundle) -> int:
    if ctx.json_output:
        emit_json(bundle.model_dump(mode="json"))
    else:
        sys.stdout.write(f"✓ Bundle {verb}: {bundle.name}\n")
        sys.stdout.write(f"  ID: {bundle.id}\n")
    return 0


def run_bundles_list(ctx: CommandContext) -> int:
    with ctx.client() as client:
        bundles = client.list_bundles()

    if ctx.json_output:
        emit_json([bundle.model_dump(mode="json") for bundle in bundles])
    else:
        display_bundle_table(bundles)
    return 0


def run_bundles_get(ctx: CommandContext) -> int:
    with ctx.client() as client:
        bundle = client.get_bundle(ctx.args.id)

    if ctx.json_output:
        emit_json(bundle.model_dump(mode="json"))
    else:
        display_bundle(bundle)
    return 0


def run_bundles_create(ctx: CommandContext) -> int:
    args = ctx.args
    if not args.name.strip():
        msg = "bundle name cannot be empty"
        raise CommandError(msg)

    request = BundleCreate(
        name=args.name.strip(),
        search=args.search,
        any_tags=args.any_tags,
        all_tags=args.all_tags,
        excluded_tags=args.excluded_tags,
        order=args.order,
    )
    with ctx.client() as client:
        bundle = client.create_bundle(request)
    return _report(ctx, "created", bundle)


def run_bundles_update(ctx: CommandContext) -> int:
    args = ctx.args
    update = BundleUpdate(
        name=args.name,
        search=args.search,
        any_tags=args.any_tags,
        all_tags=args.all_tags,
        excluded_tags=args.excluded_tags,
        order=args.order,
    )
    if not update.to_payload():
        msg = (
            "no fields to update (use --name, --search, --any-tags, --all-tags, "
            "--excluded-tags, or --order)"
        )
        raise CommandError(msg)

    with ctx.client() as client:
        bundle = client.update_bundle(args.id, update)
    return _report(ctx, "updated", bundle)


def run_bundles_delete(ctx: CommandContext) -> int:
    bundle = ctx.args.id
    with ctx.client() as client:
        client.delete_bundle(bundle)

    if ctx.json_output:
        emit_json({"deleted": True, "id": bundle})
    else:
        sys.stdout.write(f"✓ Bundle {bundle} deleted\n")
    return 0
