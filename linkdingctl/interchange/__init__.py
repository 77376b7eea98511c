"""Bookmark interchange: format detection, parsers, serializers and reconciliation."""

from linkdingctl.interchange.detect import detect_format
from linkdingctl.interchange.errors import ImportFileError, InterchangeError, RestoreCancelledError
from linkdingctl.interchange.models import (
    BookmarkRecord,
    ExportOptions,
    ImportOptions,
    ImportResult,
    RestoreResult,
    SourceEntry,
    WipeResult,
)
from linkdingctl.interchange.reconcile import BookmarkReconciler, build_duplicate_index, reconcile
from linkdingctl.interchange.service import (
    backup_bookmarks,
    export_bookmarks,
    import_bookmarks,
    load_entries,
    restore_bookmarks,
)

__all__ = [
    "BookmarkReconciler",
    "BookmarkRecord",
    "ExportOptions",
    "ImportFileError",
    "ImportOptions",
    "ImportResult",
    "InterchangeError",
    "RestoreCancelledError",
    "RestoreResult",
    "SourceEntry",
    "WipeResult",
    "backup_bookmarks",
    "build_duplicate_index",
    "detect_format",
    "export_bookmarks",
    "import_bookmarks",
    "load_entries",
    "reconcile",
    "restore_bookmarks",
]
