"""``tags`` and its ``rename``, ``delete`` and ``show`` subcommands."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from linkdingctl.cli.context import CommandError
from linkdingctl.cli.output import display_bookmark_table, display_tag_counts, emit_json
from linkdingctl.interchange.tags import count_tags, rewrite_tag, tagged_bookmarks

if TYPE_CHECKING:
    import argparse

    from linkdingctl.adapters.linkding.models import LinkdingBookmark
    from linkdingctl.adapters.linkding.protocols import RemoteCollectionPort
    from linkdingctl.cli.context import CommandContext
    from linkdingctl.interchange.tags import TagEditResult

SHOW_LIMIT = 1000


def register(subparsers: argparse._SubParsersAction) -> None:
    tags_parser = subparsers.add_parser(
        "tags",
        help="List tags with usage counts, or rename, delete and show them",
    )
    tags_parser.add_argument(
        "-s", "--sort", default="name", help="Sort by: name, count (default: name)"
    )
    tags_parser.add_argument(
        "--unused", action="store_true", help="Show only tags with 0 bookmarks"
    )
    tags_parser.set_defaults(handler=run_tags)
    tags_commands = tags_parser.add_subparsers(dest="tags_command", metavar="SUBCOMMAND")

    rename_parser = tags_commands.add_parser("rename", help="Rename a tag across all bookmarks")
    rename_parser.add_argument("old")
    rename_parser.add_argument("new")
    rename_parser.add_argument("-f", "--force", action="store_true", help="Skip confirmation")

    delete_parser = tags_commands.add_parser(
        "delete", help="Delete a tag, optionally removing it from all bookmarks"
    )
    delete_parser.add_argument("tag")
    delete_parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Skip confirmation and remove the tag from all bookmarks",
    )

    show_parser = tags_commands.add_parser("show", help="Show all bookmarks with a specific tag")
    show_parser.add_argument("tag")


def run_tags(ctx: CommandContext) -> int:
    handlers = {
        None: run_tags_list,
        "rename": run_tags_rename,
        "delete": run_tags_delete,
        "show": run_tags_show,
    }
    return handlers[ctx.args.tags_command](ctx)


def run_tags_list(ctx: CommandContext) -> int:
    args = ctx.args
    if args.sort not in ("name", "count"):
        msg = f"invalid sort option: {args.sort} (use 'name' or 'count')"
        raise CommandError(msg)

    with ctx.client() as client:
        names = [tag.name for tag in client.get_tags()]
        bookmarks = client.fetch_all(include_archived=True)

    rows = count_tags(names, bookmarks, sort_by=args.sort, unused_only=args.unused)
    if ctx.json_output:
        emit_json([row.model_dump() for row in rows])
    else:
        display_tag_counts(rows)
    return 0


def _confirm(ctx: CommandContext, message: str) -> bool:
    if ctx.json_output:
        msg = "confirmation required. Use --force with --json"
        raise CommandError(msg)
    sys.stdout.write(message + "\n")
    answer = ctx.read_line("Continue? (y/N): ", stream=sys.stdout)
    if answer.lower() in ("y", "yes"):
        return True
    sys.stdout.write("Aborted\n")
    return False


def _apply(
    ctx: CommandContext,
    client: RemoteCollectionPort,
    bookmarks: list[LinkdingBookmark],
    old: str,
    new: str | None,
) -> TagEditResult:
    def progress(index: int, total: int, bookmark: LinkdingBookmark) -> None:
        if not ctx.json_output:
            sys.stdout.write(f"Updating bookmark {index}/{total} (ID: {bookmark.id})...\n")

    def error(bookmark: LinkdingBookmark, message: str) -> None:
        if not ctx.json_output:
            sys.stdout.write(f"  Error: {message}\n")

    return rewrite_tag(client, bookmarks, old, new, on_progress=progress, on_error=error)


def _finish(ctx: CommandContext, result: TagEditResult, trailer: str | None = None) -> int:
    if ctx.json_output:
        emit_json(result.summary())
    else:
        sys.stdout.write(f"\nCompleted: {result.updated} successful, {result.failed} errors\n")
        if trailer and not result.failed:
            sys.stdout.write(trailer + "\n")
    if result.failed:
        msg = "some bookmarks failed to update"
        raise CommandError(msg)
    return 0


def run_tags_rename(ctx: CommandContext) -> int:
    args = ctx.args
    if not args.new.strip():
        msg = "new tag name cannot be empty"
        raise CommandError(msg)

    with ctx.client() as client:
        bookmarks = tagged_bookmarks(client, args.old)
        if not bookmarks:
            msg = f"no bookmarks found with tag '{args.old}'"
            raise CommandError(msg)

        if not args.force and not _confirm(
            ctx,
            f"This will rename tag '{args.old}' to '{args.new}' on {len(bookmarks)} bookmark(s).",
        ):
            return 0
        result = _apply(ctx, client, bookmarks, args.old, args.new.strip())

    return _finish(ctx, result)


def run_tags_delete(ctx: CommandContext) -> int:
    args = ctx.args
    with ctx.client() as client:
        bookmarks = tagged_bookmarks(client, args.tag)
        if bookmarks and not args.force:
            msg = (
                f"tag '{args.tag}' has {len(bookmarks)} bookmark(s). "
                "Remove tag from bookmarks first or use --force to remove from all"
            )
            raise CommandError(msg)

        if not bookmarks:
            if ctx.json_output:
                emit_json({"matched": 0, "updated": 0, "failed": 0, "errors": []})
            else:
                sys.stdout.write(f"Tag '{args.tag}' has no bookmarks; nothing to update.\n")
            return 0

        result = _apply(ctx, client, bookmarks, args.tag, None)

    return _finish(ctx, result, f"Tag '{args.tag}' has been removed from all bookmarks.")


def run_tags_show(ctx: CommandContext) -> int:
    with ctx.client() as client:
        page = client.list_bookmarks("", [ctx.args.tag], limit=SHOW_LIMIT)

    if ctx.json_output:
        emit_json(page.model_dump(mode="json"))
    else:
        display_bookmark_table(page, offset=0, limit=SHOW_LIMIT)
    return 0
