"""Merge parsed bookmarks into the remote collection, keyed by URL."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from linkdingctl.adapters.linkding.models import BookmarkCreate, BookmarkUpdate
from linkdingctl.core.logging_utils import generate_correlation_id
from linkdingctl.interchange.models import ImportResult

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from linkdingctl.adapters.linkding.protocols import RemoteCollectionPort
    from linkdingctl.interchange.models import BookmarkRecord, ImportOptions, SourceEntry

logger = logging.getLogger(__name__)

MISSING_URL_MESSAGE = 'Missing required field "url"'


def build_duplicate_index(
    port: RemoteCollectionPort,
    *,
    tag_filter: Sequence[str] | None = None,
    correlation_id: str | None = None,
) -> dict[str, int]:
    """Map every remote URL to its bookmark id with one full fetch (archived included)."""
    bookmarks = port.fetch_all(tag_filter=tag_filter, include_archived=True)
    index: dict[str, int] = {}
    for bookmark in bookmarks:
        if bookmark.url:
            index[bookmark.url] = bookmark.id
    logger.debug(
        "duplicate_index_built",
        extra={"correlation_id": correlation_id, "count": len(index)},
    )
    return index


def _create_request(record: BookmarkRecord) -> BookmarkCreate:
    return BookmarkCreate(
        url=record.url,
        title=record.title,
        description=record.description,
        notes=record.notes,
        tag_names=list(record.tags),
        unread=record.unread,
        shared=record.shared,
        is_archived=record.archived,
    )


def _update_request(record: BookmarkRecord) -> BookmarkUpdate:
    # Full overwrite from the imported record; notes only when the source has them.
    return BookmarkUpdate(
        url=record.url,
        title=record.title,
        description=record.description,
        notes=record.notes or None,
        tag_names=list(record.tags),
        unread=record.unread,
        shared=record.shared,
        is_archived=record.archived,
    )


class BookmarkReconciler:
    """Classify each entry as create, update or skip and apply it to the port.

    Every per-record problem is recorded on the returned ``ImportResult``;
    only a failure to build the duplicate index escapes ``run``.
    """

    def __init__(self, port: RemoteCollectionPort, options: ImportOptions) -> None:
        self._port = port
        self._options = options

    def run(
        self,
        entries: Iterable[SourceEntry],
        *,
        index: dict[str, int] | None = None,
        correlation_id: str | None = None,
    ) -> ImportResult:
        correlation_id = correlation_id or generate_correlation_id()
        start_time = time.time()
        result = ImportResult()

        logger.info(
            "import_reconcile_start",
            extra={
                "correlation_id": correlation_id,
                "dry_run": self._options.dry_run,
                "skip_duplicates": self._options.skip_duplicates,
            },
        )

        if index is None:
            index = build_duplicate_index(self._port, correlation_id=correlation_id)

        for entry in entries:
            self._apply(entry, index, result, correlation_id=correlation_id)

        logger.info(
            "import_reconcile_complete",
            extra={
                "correlation_id": correlation_id,
                "added": result.added,
                "updated": result.updated,
                "skipped": result.skipped,
                "failed": result.failed,
                "duration": time.time() - start_time,
            },
        )
        return result

    def _apply(
        self,
        entry: SourceEntry,
        index: dict[str, int],
        result: ImportResult,
        *,
        correlation_id: str,
    ) -> None:
        if entry.error is not None or entry.record is None:
            result.record_failure(entry.line, entry.error or "Unreadable entry")
            return

        record = entry.record
        if not record.url.strip():
            result.record_failure(entry.line, MISSING_URL_MESSAGE)
            return

        if self._options.add_tags:
            record = record.model_copy(update={"tags": [*record.tags, *self._options.add_tags]})

        existing_id = index.get(record.url)
        if existing_id is not None and self._options.skip_duplicates:
            result.record_skipped()
            return

        if self._options.dry_run:
            if existing_id is None:
                result.record_added()
            else:
                result.record_updated()
            return

        if existing_id is None:
            try:
                self._port.create(_create_request(record))
            except Exception as exc:
                result.record_failure(entry.line, f"Failed to create: {exc}")
                logger.warning(
                    "import_create_failed",
                    extra={"correlation_id": correlation_id, "line": entry.line, "error": str(exc)},
                )
                return
            result.record_added()
            return

        try:
            self._port.update(existing_id, _update_request(record))
        except Exception as exc:
            result.record_failure(entry.line, f"Failed to update: {exc}")
            logger.warning(
                "import_update_failed",
                extra={
                    "correlation_id": correlation_id,
                    "line": entry.line,
                    "bookmark_id": existing_id,
                    "error": str(exc),
                },
            )
            return
        result.record_updated()


def reconcile(
    port: RemoteCollectionPort,
    entries: Iterable[SourceEntry],
    options: ImportOptions,
    *,
    index: dict[str, int] | None = None,
    correlation_id: str | None = None,
) -> ImportResult:
    return BookmarkReconciler(port, options).run(
        entries, index=index, correlation_id=correlation_id
    )
