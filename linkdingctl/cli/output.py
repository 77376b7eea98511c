"""Human and JSON renderings of command results."""

from __future__ import annotations

import json
import sys
from typing import TYPE_CHECKING, Any, TextIO

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from linkdingctl.adapters.linkding.models import (
        LinkdingBookmark,
        LinkdingBookmarkList,
        LinkdingBundle,
        UserProfile,
    )
    from linkdingctl.interchange.models import ImportResult, WipeResult
    from linkdingctl.interchange.tags import TagCount


def emit_json(data: Any, *, stream: TextIO | None = None) -> None:
    out = stream or sys.stdout
    out.write(json.dumps(data, indent=2, ensure_ascii=False, default=str))
    out.write("\n")


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    if max_length <= 3:
        return text[:max_length]
    return text[: max_length - 3] + "..."


def join_tags(tags: Iterable[str]) -> str:
    return ", ".join(tags) or "-"


def display_import_result(result: ImportResult, *, stream: TextIO | None = None) -> None:
    """Print all four counters and every per-record error, in source order."""
    out = stream or sys.stdout
    out.write(f"  ✓ {result.added} new bookmarks added\n")
    out.write(f"  ✓ {result.updated} existing bookmarks updated\n")
    out.write(f"  ⊘ {result.skipped} skipped\n")
    out.write(f"  ✗ {result.failed} failed\n")
    if result.errors:
        out.write("\nErrors:\n")
        for error in result.errors:
            out.write(f"  Line {error.line}: {error.message}\n")


def display_wipe_result(result: WipeResult, *, stream: TextIO | None = None) -> None:
    out = stream or sys.stdout
    if result.existing == 0:
        out.write("No existing bookmarks to delete.\n")
    elif result.dry_run:
        out.write(f"Dry run: Would delete {result.existing} existing bookmarks\n")
    else:
        line = f"Deleted {result.deleted} bookmarks"
        if result.not_found:
            line += f", {result.not_found} already gone"
        if result.failed:
            line += f", {result.failed} failed"
        out.write(line + "\n")


def display_bookmark(bookmark: LinkdingBookmark, *, stream: TextIO | None = None) -> None:
    out = stream or sys.stdout
    out.write(f"ID:          {bookmark.id}\n")
    out.write(f"URL:         {bookmark.url}\n")
    out.write(f"Title:       {bookmark.title}\n")
    if bookmark.description:
        out.write(f"Description: {bookmark.description}\n")
    if bookmark.notes:
        out.write(f"Notes:       {bookmark.notes}\n")
    out.write(f"Tags:        {join_tags(bookmark.tag_names)}\n")
    if bookmark.date_added:
        out.write(f"Added:       {bookmark.date_added:%Y-%m-%d %H:%M:%S}\n")
    if bookmark.date_modified:
        out.write(f"Modified:    {bookmark.date_modified:%Y-%m-%d %H:%M:%S}\n")
    out.write(f"Unread:      {str(bookmark.unread).lower()}\n")
    out.write(f"Shared:      {str(bookmark.shared).lower()}\n")
    out.write(f"Archived:    {str(bookmark.is_archived).lower()}\n")


def display_bookmark_table(
    page: LinkdingBookmarkList,
    *,
    offset: int,
    limit: int,
    stream: TextIO | None = None,
) -> None:
    out = stream or sys.stdout
    if not page.results:
        out.write("No bookmarks found\n")
        return

    rows = [("ID", "TITLE", "TAGS", "DATE"), ("--", "-----", "----", "----")]
    for bookmark in page.results:
        rows.append(
            (
                str(bookmark.id),
                truncate(bookmark.title, 50),
                truncate(join_tags(bookmark.tag_names), 30),
                f"{bookmark.date_added:%Y-%m-%d}" if bookmark.date_added else "-",
            )
        )
    widths = [max(len(row[column]) for row in rows) for column in range(3)]
    for row in rows:
        cells = [cell.ljust(width) for cell, width in zip(row, widths, strict=False)]
        out.write("  ".join([*cells, row[3]]).rstrip() + "\n")

    out.write(f"\nShowing {len(page.results)} of {page.count} total bookmarks\n")
    if page.next is not None:
        out.write(f"Use --offset {offset + limit} to see more\n")


def write_columns(rows: Sequence[Sequence[str]], out: TextIO) -> None:
    """Write rows as left-aligned columns separated by two spaces."""
    widths = [max(len(row[column]) for row in rows) for column in range(len(rows[0]))]
    for row in rows:
        cells = [cell.ljust(width) for cell, width in zip(row, widths, strict=True)]
        out.write("  ".join(cells).rstrip() + "\n")


def display_tag_counts(tags: Sequence[TagCount], *, stream: TextIO | None = None) -> None:
    out = stream or sys.stdout
    if not tags:
        out.write("No tags found\n")
        return
    rows = [("TAG", "COUNT"), ("---", "-----")]
    rows.extend((tag.name, str(tag.count)) for tag in tags)
    write_columns(rows, out)
    out.write(f"\nTotal: {len(tags)} tags\n")


def display_bundle_table(
    bundles: Sequence[LinkdingBundle], *, stream: TextIO | None = None
) -> None:
    out = stream or sys.stdout
    if not bundles:
        out.write("No bundles found\n")
        return
    rows = [("ID", "NAME", "SEARCH", "ORDER"), ("--", "----", "------", "-----")]
    rows.extend(
        (str(bundle.id), bundle.name, bundle.search or "-", str(bundle.order))
        for bundle in bundles
    )
    write_columns(rows, out)
    out.write(f"\nTotal: {len(bundles)} bundles\n")


def display_bundle(bundle: LinkdingBundle, *, stream: TextIO | None = None) -> None:
    out = stream or sys.stdout
    out.write(f"Bundle: {bundle.name}\n")
    out.write(f"  ID:            {bundle.id}\n")
    out.write(f"  Search:        {bundle.search or '-'}\n")
    out.write(f"  Any Tags:      {bundle.any_tags or '-'}\n")
    out.write(f"  All Tags:      {bundle.all_tags or '-'}\n")
    out.write(f"  Excluded Tags: {bundle.excluded_tags or '-'}\n")
    out.write(f"  Order:         {bundle.order}\n")
    if bundle.date_created:
        out.write(f"  Date Created:  {bundle.date_created:%Y-%m-%d %H:%M:%S}\n")
    if bundle.date_modified:
        out.write(f"  Date Modified: {bundle.date_modified:%Y-%m-%d %H:%M:%S}\n")


def _enabled(flag: bool) -> str:
    return "enabled" if flag else "disabled"


def display_user_profile(profile: UserProfile, *, stream: TextIO | None = None) -> None:
    out = stream or sys.stdout
    search = profile.search_preferences
    rows = [
        ("Theme:", profile.theme),
        ("Bookmark Date Display:", profile.bookmark_date_display),
        ("Bookmark Link Target:", profile.bookmark_link_target),
        ("Web Archive:", profile.web_archive_integration),
        ("Tag Search:", profile.tag_search),
        ("Sharing:", _enabled(profile.enable_sharing)),
        ("Public Sharing:", _enabled(profile.enable_public_sharing)),
        ("Favicons:", _enabled(profile.enable_favicons)),
        ("Display URL:", _enabled(profile.display_url)),
        ("Permanent Notes:", _enabled(profile.permanent_notes)),
        ("Search Sort:", search.sort),
        ("Search Shared:", search.shared),
        ("Search Unread:", search.unread),
    ]
    out.write("User Profile\n")
    for label, value in rows:
        out.write(f"  {label:<24}{value or '-'}\n")
