"""Netscape bookmark file (the HTML dialect browsers import and export).

The format is loose markup rather than a well-formed document, so it is read
line by line with an explicit two-state scanner:

* ``IDLE``: looking for an anchor line (``<DT><A HREF=...>Title</A>``).
* ``PENDING``: an anchor was seen and its record is held back until we know
  whether a ``<DD>`` description line follows. Another anchor, or the end of
  input, releases it without a description.
"""

from __future__ import annotations

import html
import re
from enum import Enum
from typing import TYPE_CHECKING

from linkdingctl.core.time_utils import from_unix_seconds, to_unix_seconds
from linkdingctl.interchange.models import BookmarkRecord, SourceEntry

if TYPE_CHECKING:
    from collections.abc import Iterable

NETSCAPE_PREAMBLE = (
    "<!DOCTYPE NETSCAPE-Bookmark-file-1>",
    '<META HTTP-EQUIV="Content-Type" CONTENT="text/html; charset=UTF-8">',
    "<TITLE>Bookmarks</TITLE>",
    "<H1>Bookmarks</H1>",
    "<DL><p>",
)
NETSCAPE_FOOTER = "</DL><p>"

_ANCHOR_RE = re.compile(r"<DT>\s*<A\s+(?P<attrs>[^>]*)>(?P<title>.*?)</A>", re.IGNORECASE)
_ATTR_RE = re.compile(r'(?P<name>[A-Za-z_][\w-]*)\s*=\s*"(?P<value>[^"]*)"')
_DESCRIPTION_RE = re.compile(r"<DD>(?P<text>[^<\r\n]*)", re.IGNORECASE)
_INNER_TAG_RE = re.compile(r"<[^>]+>")
# Indentation the reader trims around titles and descriptions.
_MARKUP_SPACE = " \t"
_EDGE_SPACE_RE = re.compile(r"^[ \t]+|[ \t]+$")


class ScanState(Enum):
    IDLE = "idle"
    PENDING = "pending"


def split_tags(raw: str) -> list[str]:
    """Split a comma-joined tag list, keeping order and duplicates."""
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def _record_from_anchor(match: re.Match[str]) -> BookmarkRecord:
    attrs = {
        attr.group("name").upper(): html.unescape(attr.group("value"))
        for attr in _ATTR_RE.finditer(match.group("attrs"))
    }
    # Markup padding is trimmed before unescaping; escaped edge spaces survive.
    title = html.unescape(_INNER_TAG_RE.sub("", match.group("title")).strip(_MARKUP_SPACE))
    return BookmarkRecord(
        url=attrs.get("HREF", "").strip(),
        title=title,
        tags=split_tags(attrs.get("TAGS", "")),
        date_added=from_unix_seconds(attrs.get("ADD_DATE")),
        date_modified=from_unix_seconds(attrs.get("LAST_MODIFIED")),
    )


class NetscapeScanner:
    """Feed lines in order; collect the entries each call releases."""

    def __init__(self) -> None:
        self.state = ScanState.IDLE
        self._pending: tuple[int, BookmarkRecord] | None = None

    def _release(self, description: str = "") -> SourceEntry:
        assert self._pending is not None
        line, record = self._pending
        if description:
            record = record.model_copy(update={"description": description})
        self._pending = None
        self.state = ScanState.IDLE
        return SourceEntry(line=line, record=record)

    def feed(self, line_number: int, line: str) -> list[SourceEntry]:
        released: list[SourceEntry] = []

        anchor = _ANCHOR_RE.search(line)
        if anchor is not None:
            if self.state is ScanState.PENDING:
                released.append(self._release())
            self._pending = (line_number, _record_from_anchor(anchor))
            self.state = ScanState.PENDING
            # Some exporters put the <DD> on the anchor line itself.
            rest = line[anchor.end() :]
        else:
            rest = line

        if self.state is ScanState.PENDING:
            description = _DESCRIPTION_RE.search(rest)
            if description is not None:
                text = description.group("text").strip(_MARKUP_SPACE)
                released.append(self._release(html.unescape(text)))
        return released

    def finish(self) -> list[SourceEntry]:
        if self.state is ScanState.PENDING:
            return [self._release()]
        return []


def parse_html(data: bytes) -> list[SourceEntry]:
    """Parse a Netscape bookmark file; each record reports its anchor's line."""
    scanner = NetscapeScanner()
    entries: list[SourceEntry] = []
    text = data.decode("utf-8-sig", errors="replace")
    for line_number, line in enumerate(text.splitlines(), start=1):
        entries.extend(scanner.feed(line_number, line))
    entries.extend(scanner.finish())
    return entries


def _escape(value: str) -> str:
    # Line breaks become character references so each bookmark stays on one line.
    escaped = html.escape(value, quote=True).replace("\r", "&#13;").replace("\n", "&#10;")
    # Edge whitespace too, so the reader can trim markup padding without losing it.
    return _EDGE_SPACE_RE.sub(
        lambda match: "".join(f"&#{ord(char)};" for char in match.group()), escaped
    )


def serialize_html(records: Iterable[BookmarkRecord]) -> bytes:
    lines = list(NETSCAPE_PREAMBLE)
    for record in records:
        attrs = f'HREF="{_escape(record.url)}" ADD_DATE="{to_unix_seconds(record.date_added)}"'
        if record.tags:
            attrs += f' TAGS="{_escape(",".join(record.tags))}"'
        lines.append(f"    <DT><A {attrs}>{_escape(record.title)}</A>")
        if record.description:
            lines.append(f"    <DD>{_escape(record.description)}")
    lines.append(NETSCAPE_FOOTER)
    return ("\n".join(lines) + "\n").encode("utf-8")
