"""Single-bookmark commands: ``add``, ``get``, ``list``, ``update``, ``delete``."""

from __future__ import annotations

import argparse
import sys
from typing import TYPE_CHECKING

from linkdingctl.adapters.linkding.models import BookmarkCreate, BookmarkUpdate
from linkdingctl.cli.context import CommandError
from linkdingctl.cli.interchange_commands import split_tag_args
from linkdingctl.cli.output import (
    display_bookmark,
    display_bookmark_table,
    emit_json,
    join_tags,
)

if TYPE_CHECKING:
    from linkdingctl.cli.context import CommandContext


def bookmark_id(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        msg = f"invalid bookmark ID: {value} (must be a number)"
        raise argparse.ArgumentTypeError(msg) from None


def register(subparsers: argparse._SubParsersAction) -> None:
    add_parser = subparsers.add_parser("add", help="Add a new bookmark")
    add_parser.add_argument("url")
    add_parser.add_argument("-t", "--title", default="", help="Custom title (default: auto-fetch)")
    add_parser.add_argument("-d", "--description", default="")
    add_parser.add_argument("-n", "--notes", default="")
    add_parser.add_argument("-T", "--tags", action="append", metavar="TAGS")
    add_parser.add_argument("-u", "--unread", action="store_true", help="Mark as unread")
    add_parser.add_argument("-s", "--shared", action="store_true", help="Make publicly shared")
    add_parser.set_defaults(handler=run_add)

    get_parser = subparsers.add_parser("get", help="Show one bookmark")
    get_parser.add_argument("id", type=bookmark_id)
    get_parser.set_defaults(handler=run_get)

    list_parser = subparsers.add_parser("list", help="List bookmarks")
    list_parser.add_argument("-q", "--query", default="", help="Search query")
    list_parser.add_argument(
        "-T", "--tags", action="append", metavar="TAGS", help="Filter by tags (AND logic)"
    )
    list_parser.add_argument("-u", "--unread", action="store_true", help="Show only unread")
    list_parser.add_argument("-a", "--archived", action="store_true", help="Show only archived")
    list_parser.add_argument("-l", "--limit", type=int, default=100, help="Max results")
    list_parser.add_argument("-o", "--offset", type=int, default=0, help="Pagination offset")
    list_parser.set_defaults(handler=run_list)

    update_parser = subparsers.add_parser(
        "update",
        help="Update a bookmark",
        description="Update a bookmark's metadata. Only the given fields are modified.",
    )
    update_parser.add_argument("id", type=bookmark_id)
    update_parser.add_argument("-t", "--title")
    update_parser.add_argument("-d", "--description")
    update_parser.add_argument("-n", "--notes")
    update_parser.add_argument(
        "-T", "--tags", action="append", metavar="TAGS", help="Replace tags"
    )
    update_parser.add_argument("--add-tags", action="append", metavar="TAGS")
    update_parser.add_argument("--remove-tags", action="append", metavar="TAGS")
    archive_group = update_parser.add_mutually_exclusive_group()
    archive_group.add_argument("-a", "--archive", action="store_true")
    archive_group.add_argument("--unarchive", action="store_true")
    update_parser.add_argument("--unread", action=argparse.BooleanOptionalAction, default=None)
    update_parser.add_argument("--shared", action=argparse.BooleanOptionalAction, default=None)
    update_parser.set_defaults(handler=run_update)

    delete_parser = subparsers.add_parser("delete", help="Delete a bookmark by ID")
    delete_parser.add_argument("id", type=bookmark_id)
    delete_parser.add_argument(
        "-f", "--force", action="store_true", help="Skip the confirmation prompt"
    )
    delete_parser.set_defaults(handler=run_delete)


def run_add(ctx: CommandContext) -> int:
    args = ctx.args
    request = BookmarkCreate(
        url=args.url,
        title=args.title,
        description=args.description,
        notes=args.notes,
        tag_names=split_tag_args(args.tags),
        unread=args.unread,
        shared=args.shared,
    )
    with ctx.client() as client:
        bookmark = client.create(request)

    if ctx.json_output:
        emit_json(bookmark.model_dump(mode="json"))
        return 0

    sys.stdout.write(f"✓ Bookmark added: {bookmark.title}\n")
    sys.stdout.write(f"  ID: {bookmark.id}\n")
    sys.stdout.write(f"  URL: {bookmark.url}\n")
    if bookmark.tag_names:
        sys.stdout.write(f"  Tags: {join_tags(bookmark.tag_names)}\n")
    return 0


def run_get(ctx: CommandContext) -> int:
    with ctx.client() as client:
        bookmark = client.get_bookmark(ctx.args.id)

    if ctx.json_output:
        emit_json(bookmark.model_dump(mode="json"))
    else:
        display_bookmark(bookmark)
    return 0


def run_list(ctx: CommandContext) -> int:
    args = ctx.args
    with ctx.client() as client:
        page = client.list_bookmarks(
            args.query,
            split_tag_args(args.tags),
            unread=args.unread,
            archived=args.archived,
            limit=args.limit,
            offset=args.offset,
        )

    if ctx.json_output:
        emit_json(page.model_dump(mode="json"))
    else:
        display_bookmark_table(page, offset=args.offset, limit=args.limit)
    return 0


def _merge_tags(current: list[str], add: list[str], remove: list[str]) -> list[str]:
    merged = [tag for tag in current if tag not in remove]
    for tag in add:
        if tag not in merged and tag not in remove:
            merged.append(tag)
    return merged


def run_update(ctx: CommandContext) -> int:
    args = ctx.args
    replace_tags = split_tag_args(args.tags)
    add_tags = split_tag_args(args.add_tags)
    remove_tags = split_tag_args(args.remove_tags)
    if replace_tags and (add_tags or remove_tags):
        msg = "cannot use --tags with --add-tags or --remove-tags (use one approach)"
        raise CommandError(msg)

    archived: bool | None = None
    if args.archive:
        archived = True
    elif args.unarchive:
        archived = False

    with ctx.client() as client:
        tag_names: list[str] | None = replace_tags or None
        if add_tags or remove_tags:
            current = client.get_bookmark(args.id)
            tag_names = _merge_tags(current.tag_names, add_tags, remove_tags)

        update = BookmarkUpdate(
            title=args.title,
            description=args.description,
            notes=args.notes,
            tag_names=tag_names,
            unread=args.unread,
            shared=args.shared,
            is_archived=archived,
        )
        if not update.to_payload():
            msg = "nothing to update. Pass at least one field flag"
            raise CommandError(msg)
        bookmark = client.update(args.id, update)

    if ctx.json_output:
        emit_json(bookmark.model_dump(mode="json"))
        return 0

    sys.stdout.write(f"✓ Bookmark {bookmark.id} updated\n")
    display_bookmark(bookmark)
    return 0


def run_delete(ctx: CommandContext) -> int:
    args = ctx.args
    with ctx.client() as client:
        if not args.force and not ctx.json_output:
            bookmark = client.get_bookmark(args.id)
            sys.stdout.write("About to delete bookmark:\n")
            sys.stdout.write(f"  ID:    {bookmark.id}\n")
            sys.stdout.write(f"  Title: {bookmark.title}\n")
            sys.stdout.write(f"  URL:   {bookmark.url}\n")
            answer = ctx.read_line("\nAre you sure? (y/N): ", stream=sys.stdout)
            if answer.lower() not in ("y", "yes"):
                sys.stdout.write("Delete cancelled\n")
                return 0

        if not client.delete(args.id):
            msg = f"bookmark with ID {args.id} not found"
            raise CommandError(msg)

    if ctx.json_output:
        emit_json({"deleted": True, "id": args.id})
    else:
        sys.stdout.write(f"✓ Bookmark {args.id} deleted\n")
    return 0
