"""Parsers and serializers for the three interchange formats."""

from __future__ import annotations

from typing import TYPE_CHECKING

from linkdingctl.interchange.formats.csv_format import parse_csv, serialize_csv
from linkdingctl.interchange.formats.html_format import parse_html, serialize_html
from linkdingctl.interchange.formats.json_format import parse_json, serialize_json

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from linkdingctl.interchange.models import BookmarkRecord, FormatName, SourceEntry

_PARSERS: dict[FormatName, Callable[[bytes], list[SourceEntry]]] = {
    "json": parse_json,
    "html": parse_html,
    "csv": parse_csv,
}

_SERIALIZERS: dict[FormatName, Callable[[Iterable[BookmarkRecord]], bytes]] = {
    "json": serialize_json,
    "html": serialize_html,
    "csv": serialize_csv,
}


def parse_records(fmt: FormatName, data: bytes) -> list[SourceEntry]:
    try:
        parser = _PARSERS[fmt]
    except KeyError:
        raise ValueError(f"unsupported format: {fmt}") from None
    return parser(data)


def serialize_records(fmt: FormatName, records: Iterable[BookmarkRecord]) -> bytes:
    try:
        serializer = _SERIALIZERS[fmt]
    except KeyError:
        raise ValueError(f"unsupported format: {fmt}") from None
    return serializer(records)


__all__ = [
    "parse_csv",
    "parse_html",
    "parse_json",
    "parse_records",
    "serialize_csv",
    "serialize_html",
    "serialize_json",
    "serialize_records",
]
