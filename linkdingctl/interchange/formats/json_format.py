"""JSON export envelope: ``{version, exported_at, source, bookmarks}``."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from linkdingctl.core.time_utils import utc_now
from linkdingctl.interchange.errors import ImportFileError
from linkdingctl.interchange.models import (
    FORMAT_VERSION,
    BookmarkRecord,
    ExportEnvelope,
    SourceEntry,
)

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

logger = logging.getLogger(__name__)


def serialize_json(
    records: Iterable[BookmarkRecord], *, exported_at: datetime | None = None
) -> bytes:
    """Wrap ``records`` in the export envelope and encode it (2-space indent)."""
    envelope = ExportEnvelope(exported_at=exported_at or utc_now(), bookmarks=list(records))
    text = json.dumps(envelope.model_dump(mode="json"), indent=2, ensure_ascii=False)
    return (text + "\n").encode("utf-8")


def _describe_validation_error(exc: ValidationError) -> str:
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "bookmark"
    return f"Invalid field \"{field}\": {first.get('msg', 'invalid value')}"


def parse_json(data: bytes) -> list[SourceEntry]:
    """Read the export envelope; one entry per element of ``bookmarks``.

    Raises:
        ImportFileError: The document is not JSON, not an object, or its
            ``bookmarks`` member is not an array.
    """
    try:
        document = json.loads(data.decode("utf-8-sig"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise ImportFileError(f"failed to parse JSON: {exc}") from exc

    if not isinstance(document, dict):
        raise ImportFileError("failed to parse JSON: top-level value must be an object")

    version = document.get("version")
    if version is not None and str(version) != FORMAT_VERSION:
        logger.warning(
            "json_import_unknown_version",
            extra={"version": version, "supported": FORMAT_VERSION},
        )

    bookmarks = document.get("bookmarks") or []
    if not isinstance(bookmarks, list):
        raise ImportFileError('failed to parse JSON: "bookmarks" must be an array')

    entries: list[SourceEntry] = []
    for index, item in enumerate(bookmarks, start=1):
        if not isinstance(item, dict):
            entries.append(SourceEntry(line=index, error="Bookmark entry must be an object"))
            continue
        try:
            record = BookmarkRecord.model_validate(item)
        except ValidationError as exc:
            entries.append(SourceEntry(line=index, error=_describe_validation_error(exc)))
            continue
        entries.append(SourceEntry(line=index, record=record))
    return entries
