"""Tabular bookmark export: one row per bookmark under a fixed header."""

from __future__ import annotations

import csv
import io
from typing import TYPE_CHECKING

from linkdingctl.core.time_utils import parse_iso_datetime
from linkdingctl.interchange.errors import ImportFileError
from linkdingctl.interchange.models import BookmarkRecord, SourceEntry

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

CSV_HEADER = ("url", "title", "description", "tags", "date_added", "unread", "shared", "archived")

_TRUE_VALUES = frozenset({"true", "1", "yes"})


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


def _format_bool(value: bool) -> str:
    return "true" if value else "false"


# csv reports a quote left open until end of input with this message.
_END_OF_DATA = "unexpected end of data"


def _rows(lines: list[str]) -> Iterator[tuple[list[str] | None, str | None]]:
    """Yield ``(row, None)`` or ``(None, error)``; a bad row does not stop the scan.

    An unterminated quote swallows everything after it, so the scan restarts
    on the physical line after the one the broken row began on.
    """
    start = 0
    while start < len(lines):
        reader = csv.reader(lines[start:], strict=True)
        row_start = 0
        while True:
            try:
                row = next(reader)
            except StopIteration:
                return
            except csv.Error as exc:
                yield None, str(exc)
                if _END_OF_DATA in str(exc):
                    start += row_start + 1
                    break
                row_start = reader.line_num
                continue
            row_start = reader.line_num
            yield row, None


def parse_csv(data: bytes) -> list[SourceEntry]:
    """Parse a CSV export; data row *n* is reported as line *n + 1*.

    Columns are located by header name, so their order is free. A row that
    fails to tokenise becomes an error entry and the scan carries on.

    Raises:
        ImportFileError: The file is empty or has no ``url`` column.
    """
    text = data.decode("utf-8-sig", errors="replace")
    lines = io.StringIO(text, newline="").readlines()
    reader = csv.reader(lines, strict=True)

    try:
        header = next(reader)
    except StopIteration:
        raise ImportFileError("failed to parse CSV: file has no header row") from None
    except csv.Error as exc:
        raise ImportFileError(f"failed to parse CSV: {exc}") from exc

    columns = {name.strip().lower(): index for index, name in enumerate(header)}
    if "url" not in columns:
        raise ImportFileError('failed to parse CSV: header has no "url" column')

    def cell(row: list[str], name: str) -> str:
        index = columns.get(name)
        if index is None or index >= len(row):
            return ""
        return row[index]

    entries: list[SourceEntry] = []
    line = 1
    for row, error in _rows(lines[reader.line_num :]):
        line += 1
        if error is not None:
            entries.append(SourceEntry(line=line, error=f"Failed to parse CSV: {error}"))
            continue
        assert row is not None
        if not any(value.strip() for value in row):
            continue
        record = BookmarkRecord(
            url=cell(row, "url").strip(),
            title=cell(row, "title"),
            description=cell(row, "description"),
            tags=[tag.strip() for tag in cell(row, "tags").split(",") if tag.strip()],
            date_added=parse_iso_datetime(cell(row, "date_added")),
            unread=_parse_bool(cell(row, "unread")),
            shared=_parse_bool(cell(row, "shared")),
            archived=_parse_bool(cell(row, "archived")),
        )
        entries.append(SourceEntry(line=line, record=record))
    return entries


def serialize_csv(records: Iterable[BookmarkRecord]) -> bytes:
    buffer = io.StringIO(newline="")
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for record in records:
        writer.writerow(
            [
                record.url,
                record.title,
                record.description,
                ",".join(record.tags),
                record.date_added.isoformat(timespec="seconds") if record.date_added else "",
                _format_bool(record.unread),
                _format_bool(record.shared),
                _format_bool(record.archived),
            ]
        )
    return buffer.getvalue().encode("utf-8")
