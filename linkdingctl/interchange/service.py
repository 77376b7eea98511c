"""Import, export, backup and restore use cases over the remote collection port."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from linkdingctl.core.logging_utils import generate_correlation_id
from linkdingctl.core.time_utils import utc_now
from linkdingctl.interchange.detect import detect_format
from linkdingctl.interchange.errors import ImportFileError, RestoreCancelledError
from linkdingctl.interchange.formats import parse_records, serialize_records
from linkdingctl.interchange.models import (
    BookmarkRecord,
    ExportOptions,
    ImportOptions,
    RestoreResult,
    WipeResult,
)
from linkdingctl.interchange.reconcile import build_duplicate_index, reconcile

if TYPE_CHECKING:
    from collections.abc import Callable

    from linkdingctl.adapters.linkding.protocols import RemoteCollectionPort
    from linkdingctl.interchange.models import FormatSelector, ImportResult, SourceEntry

logger = logging.getLogger(__name__)

DEFAULT_BACKUP_PREFIX = "linkding-backup"
BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%dT%H%M%S"


def load_entries(path: str | Path, fmt: FormatSelector = "auto") -> list[SourceEntry]:
    """Read ``path`` and parse it in ``fmt`` (or the format its extension names).

    Raises:
        ImportFileError: The file cannot be read, its format is unknown, or
            its container cannot be parsed.
    """
    path = Path(path)
    resolved = detect_format(path.name) if fmt == "auto" else fmt
    if resolved is None:
        raise ImportFileError("cannot detect format from file extension. Use --format flag")

    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ImportFileError(f"failed to open file: {exc}") from exc

    entries = parse_records(resolved, data)
    logger.debug(
        "import_file_parsed",
        extra={"path": str(path), "format": resolved, "entries": len(entries)},
    )
    return entries


def import_bookmarks(
    port: RemoteCollectionPort,
    path: str | Path,
    options: ImportOptions,
    *,
    correlation_id: str | None = None,
) -> ImportResult:
    """Import a bookmark file into the remote collection."""
    correlation_id = correlation_id or generate_correlation_id()
    entries = load_entries(path, options.format)
    return reconcile(port, entries, options, correlation_id=correlation_id)


def export_bookmarks(port: RemoteCollectionPort, options: ExportOptions) -> bytes:
    """Fetch every matching remote bookmark once and serialise them in order."""
    bookmarks = port.fetch_all(
        tag_filter=list(options.tags) or None,
        include_archived=options.include_archived,
    )
    records = [BookmarkRecord.from_remote(bookmark) for bookmark in bookmarks]
    logger.info(
        "export_complete",
        extra={"format": options.format, "count": len(records), "tags": list(options.tags)},
    )
    return serialize_records(options.format, records)


def backup_bookmarks(
    port: RemoteCollectionPort,
    directory: str | Path = ".",
    prefix: str = DEFAULT_BACKUP_PREFIX,
) -> Path:
    """Write a timestamped JSON export of the whole collection into ``directory``."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / f"{prefix}-{utc_now().strftime(BACKUP_TIMESTAMP_FORMAT)}.json"

    data = export_bookmarks(port, ExportOptions(format="json", include_archived=True))
    try:
        target.write_bytes(data)
    except OSError:
        target.unlink(missing_ok=True)
        raise

    logger.info("backup_written", extra={"path": str(target), "bytes": len(data)})
    return target


def _wipe(
    port: RemoteCollectionPort,
    *,
    dry_run: bool,
    confirm: Callable[[int], bool] | None,
    correlation_id: str,
) -> WipeResult:
    existing = port.fetch_all(include_archived=True)
    result = WipeResult(existing=len(existing), dry_run=dry_run)
    if not existing or dry_run:
        return result

    if confirm is None or not confirm(len(existing)):
        raise RestoreCancelledError("restore cancelled")

    for bookmark in existing:
        try:
            deleted = port.delete(bookmark.id)
        except Exception as exc:
            result.failed += 1
            logger.warning(
                "restore_delete_failed",
                extra={
                    "correlation_id": correlation_id,
                    "bookmark_id": bookmark.id,
                    "error": str(exc),
                },
            )
            continue
        if deleted:
            result.deleted += 1
        else:
            result.not_found += 1

    logger.info(
        "restore_wipe_complete",
        extra={
            "correlation_id": correlation_id,
            "deleted": result.deleted,
            "not_found": result.not_found,
            "failed": result.failed,
        },
    )
    return result


def restore_bookmarks(
    port: RemoteCollectionPort,
    path: str | Path,
    *,
    dry_run: bool = False,
    wipe: bool = False,
    confirm: Callable[[int], bool] | None = None,
    correlation_id: str | None = None,
) -> RestoreResult:
    """Restore a backup, optionally deleting the whole collection first.

    The file is parsed before anything is deleted. With ``wipe`` the
    ``confirm`` callback receives the number of bookmarks about to be
    deleted and must return True; a zero-size collection skips it.

    Raises:
        ImportFileError: The backup cannot be read or parsed.
        RestoreCancelledError: Deletion was not confirmed.
    """
    correlation_id = correlation_id or generate_correlation_id()
    entries = load_entries(path)
    options = ImportOptions(format="auto", dry_run=dry_run, skip_duplicates=False)

    wipe_result: WipeResult | None = None
    index: dict[str, int] | None = None
    if wipe:
        wipe_result = _wipe(port, dry_run=dry_run, confirm=confirm, correlation_id=correlation_id)
        if dry_run:
            # After a wipe nothing remains to match against.
            index = {}
        else:
            index = build_duplicate_index(port, correlation_id=correlation_id)

    imported = reconcile(port, entries, options, index=index, correlation_id=correlation_id)
    return RestoreResult(wipe=wipe_result, imported=imported)
