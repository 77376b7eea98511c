"""Collection-wide tag maintenance: usage counts, rename and removal."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field

from linkdingctl.adapters.linkding.models import BookmarkUpdate
from linkdingctl.core.logging_utils import generate_correlation_id

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Sequence

    from linkdingctl.adapters.linkding.models import LinkdingBookmark
    from linkdingctl.adapters.linkding.protocols import RemoteCollectionPort

logger = logging.getLogger(__name__)

TagSort = Literal["name", "count"]


class TagCount(BaseModel):
    name: str
    count: int = 0


class TagEditError(BaseModel):
    """A bookmark whose tags could not be rewritten."""

    bookmark_id: int
    message: str


class TagEditResult(BaseModel):
    """Outcome of rewriting one tag across the collection.

    Like an import, a failing bookmark is recorded and the batch carries on.
    """

    matched: int = 0
    updated: int = 0
    failed: int = 0
    errors: list[TagEditError] = Field(default_factory=list)

    def record_updated(self) -> None:
        self.updated += 1

    def record_failure(self, bookmark_id: int, message: str) -> None:
        self.failed += 1
        self.errors.append(TagEditError(bookmark_id=bookmark_id, message=message))

    def summary(self) -> dict[str, object]:
        return {
            "matched": self.matched,
            "updated": self.updated,
            "failed": self.failed,
            "errors": [error.model_dump() for error in self.errors],
        }


def count_tags(
    tag_names: Iterable[str],
    bookmarks: Iterable[LinkdingBookmark],
    *,
    sort_by: TagSort = "name",
    unused_only: bool = False,
) -> list[TagCount]:
    """Count how many bookmarks carry each tag.

    Every name in ``tag_names`` is listed even when no bookmark uses it.
    ``count`` ordering is descending with ties broken by name.
    """
    counts = dict.fromkeys(tag_names, 0)
    for bookmark in bookmarks:
        for name in bookmark.tag_names:
            counts[name] = counts.get(name, 0) + 1

    rows = [TagCount(name=name, count=count) for name, count in counts.items()]
    if unused_only:
        rows = [row for row in rows if row.count == 0]
    if sort_by == "count":
        rows.sort(key=lambda row: (-row.count, row.name))
    else:
        rows.sort(key=lambda row: row.name)
    return rows


def tagged_bookmarks(port: RemoteCollectionPort, tag: str) -> list[LinkdingBookmark]:
    """Every bookmark carrying ``tag``, archived ones included."""
    return port.fetch_all(tag_filter=[tag], include_archived=True)


def _same_tag(left: str, right: str) -> bool:
    # linkding matches tag names case-insensitively.
    return left.casefold() == right.casefold()


def replace_tag(tags: Sequence[str], old: str, new: str | None) -> list[str]:
    """Return ``tags`` with ``old`` swapped for ``new`` (or dropped when ``new`` is None).

    Order is kept and ``new`` appears at most once.
    """
    result: list[str] = []
    for name in tags:
        if _same_tag(name, old):
            name = new
        if name is None or any(_same_tag(name, seen) for seen in result):
            continue
        result.append(name)
    return result


def rewrite_tag(
    port: RemoteCollectionPort,
    bookmarks: Sequence[LinkdingBookmark],
    old: str,
    new: str | None,
    *,
    on_progress: Callable[[int, int, LinkdingBookmark], None] | None = None,
    on_error: Callable[[LinkdingBookmark, str], None] | None = None,
    correlation_id: str | None = None,
) -> TagEditResult:
    """Rename ``old`` to ``new`` on each bookmark, or remove it when ``new`` is None.

    Each bookmark gets one tag-only update. A failed update is counted and
    reported through ``on_error``; the remaining bookmarks are still updated.
    """
    correlation_id = correlation_id or generate_correlation_id()
    result = TagEditResult(matched=len(bookmarks))
    total = len(bookmarks)

    for index, bookmark in enumerate(bookmarks, start=1):
        if on_progress is not None:
            on_progress(index, total, bookmark)
        update = BookmarkUpdate(tag_names=replace_tag(bookmark.tag_names, old, new))
        try:
            port.update(bookmark.id, update)
        except Exception as exc:
            result.record_failure(bookmark.id, str(exc))
            logger.warning(
                "tag_rewrite_failed",
                extra={
                    "correlation_id": correlation_id,
                    "bookmark_id": bookmark.id,
                    "tag": old,
                    "error": str(exc),
                },
            )
            if on_error is not None:
                on_error(bookmark, str(exc))
            continue
        result.record_updated()

    logger.info(
        "tag_rewrite_complete",
        extra={
            "correlation_id": correlation_id,
            "tag": old,
            "new_tag": new,
            "matched": result.matched,
            "updated": result.updated,
            "failed": result.failed,
        },
    )
    return result
