"""``import``, ``export``, ``backup`` and ``restore`` commands."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from linkdingctl.cli.output import display_import_result, display_wipe_result, emit_json
from linkdingctl.core.logging_utils import generate_correlation_id
from linkdingctl.interchange import (
    ExportOptions,
    ImportOptions,
    RestoreCancelledError,
    backup_bookmarks,
    export_bookmarks,
    import_bookmarks,
    restore_bookmarks,
)
from linkdingctl.interchange.service import DEFAULT_BACKUP_PREFIX

if TYPE_CHECKING:
    from collections.abc import Callable

    from linkdingctl.cli.context import CommandContext

logger = logging.getLogger(__name__)

FORMAT_CHOICES = ("json", "html", "csv")


def split_tag_args(values: list[str] | None) -> list[str]:
    """Flatten repeated and comma-separated tag options."""
    tags: list[str] = []
    for value in values or []:
        tags.extend(tag.strip() for tag in value.split(",") if tag.strip())
    return tags


def register(subparsers: argparse._SubParsersAction) -> None:
    import_parser = subparsers.add_parser(
        "import",
        help="Import bookmarks from a JSON, HTML or CSV file",
        description=(
            "Import bookmarks. The format is detected from the file extension "
            "(.json, .html/.htm, .csv) unless --format is given."
        ),
    )
    import_parser.add_argument("file", type=Path)
    import_parser.add_argument(
        "-f", "--format", choices=[*FORMAT_CHOICES, "auto"], default="auto"
    )
    import_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be imported without making changes",
    )
    import_parser.add_argument(
        "--skip-duplicates",
        action="store_true",
        help="Skip URLs that already exist (default: update them)",
    )
    import_parser.add_argument(
        "-T",
        "--add-tags",
        action="append",
        metavar="TAGS",
        help="Add these comma-separated tags to every imported bookmark",
    )
    import_parser.set_defaults(handler=run_import)

    export_parser = subparsers.add_parser("export", help="Export bookmarks")
    export_parser.add_argument("-f", "--format", choices=FORMAT_CHOICES, default="json")
    export_parser.add_argument(
        "-o", "--output", type=Path, help="Output file (default: stdout)"
    )
    export_parser.add_argument(
        "-T",
        "--tags",
        action="append",
        metavar="TAGS",
        help="Export only bookmarks carrying all of these tags",
    )
    export_parser.add_argument(
        "--archived",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Include archived bookmarks (default: yes)",
    )
    export_parser.set_defaults(handler=run_export)

    backup_parser = subparsers.add_parser(
        "backup", help="Write a timestamped JSON backup of all bookmarks"
    )
    backup_parser.add_argument(
        "-o", "--output", type=Path, default=Path("."), help="Output directory"
    )
    backup_parser.add_argument("--prefix", default=DEFAULT_BACKUP_PREFIX)
    backup_parser.set_defaults(handler=run_backup)

    restore_parser = subparsers.add_parser(
        "restore",
        help="Restore bookmarks from a backup file",
        description=(
            "Restore bookmarks from a backup. With --wipe every existing bookmark "
            "is deleted first, after typing 'yes' to confirm."
        ),
    )
    restore_parser.add_argument("file", type=Path)
    restore_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be restored without making changes",
    )
    restore_parser.add_argument(
        "--wipe",
        action="store_true",
        help="Delete all existing bookmarks before restoring (DANGEROUS)",
    )
    restore_parser.set_defaults(handler=run_restore)


def run_import(ctx: CommandContext) -> int:
    args = ctx.args
    options = ImportOptions(
        format=args.format,
        dry_run=args.dry_run,
        skip_duplicates=args.skip_duplicates,
        add_tags=tuple(split_tag_args(args.add_tags)),
    )
    correlation_id = generate_correlation_id()
    logger.debug(
        "cli_import_start",
        extra={"correlation_id": correlation_id, "path": str(args.file), "format": args.format},
    )

    if not ctx.json_output:
        if options.dry_run:
            sys.stderr.write("Dry run - no changes will be made\n")
        sys.stderr.write("Importing bookmarks...\n")

    with ctx.client() as client:
        result = import_bookmarks(client, args.file, options, correlation_id=correlation_id)

    if ctx.json_output:
        emit_json(result.summary())
    else:
        display_import_result(result)
    return 0


def run_export(ctx: CommandContext) -> int:
    args = ctx.args
    options = ExportOptions(
        format=args.format,
        tags=tuple(split_tag_args(args.tags)),
        include_archived=args.archived,
    )
    with ctx.client() as client:
        data = export_bookmarks(client, options)

    if args.output is None:
        sys.stdout.write(data.decode("utf-8"))
        sys.stdout.flush()
        return 0

    args.output.write_bytes(data)
    sys.stderr.write(f"Exported bookmarks to {args.output}\n")
    return 0


def run_backup(ctx: CommandContext) -> int:
    args = ctx.args
    with ctx.client() as client:
        path = backup_bookmarks(client, args.output, args.prefix)

    if ctx.json_output:
        emit_json({"file": str(path)})
    else:
        sys.stdout.write(f"Backup created: {path}\n")
    return 0


def _confirm_wipe(ctx: CommandContext) -> Callable[[int], bool]:
    def confirm(count: int) -> bool:
        if ctx.json_output:
            msg = "--wipe requires interactive confirmation. Cannot use with --json flag"
            raise RestoreCancelledError(msg)
        sys.stderr.write(
            f"WARNING: This will delete ALL {count} existing bookmarks before restoring.\n"
        )
        answer = ctx.read_line("Type 'yes' to confirm: ")
        return answer.lower() == "yes"

    return confirm


def run_restore(ctx: CommandContext) -> int:
    args = ctx.args
    if not ctx.json_output and args.dry_run:
        sys.stderr.write("Dry run - no changes will be made\n")

    with ctx.client() as client:
        result = restore_bookmarks(
            client,
            args.file,
            dry_run=args.dry_run,
            wipe=args.wipe,
            confirm=_confirm_wipe(ctx),
        )

    if ctx.json_output:
        payload = result.imported.summary()
        payload["wipe"] = result.wipe.model_dump() if result.wipe else None
        emit_json(payload)
        return 0

    if result.wipe is not None:
        display_wipe_result(result.wipe)
    display_import_result(result.imported)
    return 0
