from __future__ import annotations

import csv
import io
import unittest
from datetime import UTC, datetime, timedelta, timezone

import pytest

from linkdingctl.interchange.errors import ImportFileError
from linkdingctl.interchange.formats.csv_format import CSV_HEADER, parse_csv, serialize_csv
from linkdingctl.interchange.models import BookmarkRecord

HEADER = "url,title,description,tags,date_added,unread,shared,archived\n"


class TestParseCsv(unittest.TestCase):
    def test_garbled_booleans_are_false(self):
        data = (HEADER + "https://x.com,Title,,tags,notabool,notabool,notabool\n").encode()
        entries = parse_csv(data)
        assert len(entries) == 1
        record = entries[0].record
        assert entries[0].error is None
        assert record is not None
        assert record.url == "https://x.com"
        assert record.title == "Title"
        assert record.tags == ["tags"]
        assert (record.unread, record.shared, record.archived) == (False, False, False)

    def test_boolean_spellings(self):
        data = (
            HEADER
            + "https://a.com,,,,,TRUE,1,yes\n"
            + "https://b.com,,,,, Yes ,0,false\n"
        ).encode()
        first, second = (entry.record for entry in parse_csv(data))
        assert first is not None
        assert second is not None
        assert (first.unread, first.shared, first.archived) == (True, True, True)
        assert (second.unread, second.shared, second.archived) == (True, False, False)

    def test_columns_matched_by_header_name(self):
        data = b"Archived, TITLE ,url\ntrue,Reordered,https://x.com\n"
        record = parse_csv(data)[0].record
        assert record is not None
        assert record.url == "https://x.com"
        assert record.title == "Reordered"
        assert record.archived is True
        assert record.description == ""

    def test_line_numbers_count_the_header(self):
        data = (HEADER + "https://a.com\nhttps://b.com\n").encode()
        assert [entry.line for entry in parse_csv(data)] == [2, 3]

    def test_malformed_row_is_recorded_and_scanning_continues(self):
        data = (
            HEADER
            + "https://a.com,A\n"
            + '"https://bad.com"oops,B\n'
            + "https://c.com,C\n"
        ).encode()
        entries = parse_csv(data)
        assert len(entries) == 3
        assert entries[0].record is not None
        assert entries[1].record is None
        assert entries[1].line == 3
        assert entries[1].error is not None
        assert entries[1].error.startswith("Failed to parse CSV:")
        assert entries[2].record is not None
        assert entries[2].record.url == "https://c.com"
        assert entries[2].line == 4

    def test_unterminated_quote_does_not_swallow_later_rows(self):
        data = (
            HEADER
            + "https://a.com,A\n"
            + '"https://bad.com,B\n'
            + "https://c.com,C\n"
        ).encode()
        entries = parse_csv(data)
        assert [entry.line for entry in entries] == [2, 3, 4]
        assert entries[0].record is not None
        assert entries[0].record.url == "https://a.com"
        assert entries[1].record is None
        assert entries[1].error is not None
        assert entries[1].error.startswith("Failed to parse CSV:")
        assert entries[2].record is not None
        assert entries[2].record.url == "https://c.com"
        assert entries[2].record.title == "C"

    def test_unterminated_quote_on_last_row(self):
        data = (HEADER + "https://a.com,A\n" + '"https://bad.com,B\n').encode()
        entries = parse_csv(data)
        assert [entry.line for entry in entries] == [2, 3]
        assert entries[1].error is not None

    def test_multiline_quoted_field_is_one_row(self):
        data = (HEADER + 'https://a.com,A,"two\nlines"\nhttps://b.com,B\n').encode()
        entries = parse_csv(data)
        assert [entry.line for entry in entries] == [2, 3]
        assert entries[0].record is not None
        assert entries[0].record.description == "two\nlines"
        assert entries[1].record is not None
        assert entries[1].record.url == "https://b.com"

    def test_quoted_commas_in_tags(self):
        data = (HEADER + 'https://x.com,T,"d, with comma","a,b , c",,,,\n').encode()
        record = parse_csv(data)[0].record
        assert record is not None
        assert record.description == "d, with comma"
        assert record.tags == ["a", "b", "c"]

    def test_dates(self):
        data = (
            HEADER
            + "https://a.com,,,,2025-01-02T03:04:05+02:00,,,\n"
            + "https://b.com,,,,yesterday,,,\n"
        ).encode()
        first, second = (entry.record for entry in parse_csv(data))
        assert first is not None
        assert second is not None
        assert first.date_added == datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone(timedelta(hours=2)))
        assert second.date_added is None

    def test_blank_rows_are_skipped(self):
        data = (HEADER + "\nhttps://a.com\n,,,\n").encode()
        entries = parse_csv(data)
        assert [entry.record.url for entry in entries if entry.record] == ["https://a.com"]

    def test_short_rows_fill_with_defaults(self):
        record = parse_csv((HEADER + "https://a.com,Only title\n").encode())[0].record
        assert record is not None
        assert record.title == "Only title"
        assert record.unread is False

    def test_missing_url_value_is_left_for_reconciliation(self):
        record = parse_csv((HEADER + ",No url\n").encode())[0].record
        assert record is not None
        assert record.url == ""


@pytest.mark.parametrize("payload", [b"", b"title,description\nx,y\n"])
def test_header_problems_are_file_level(payload: bytes) -> None:
    with pytest.raises(ImportFileError):
        parse_csv(payload)


class TestSerializeCsv(unittest.TestCase):
    def test_header_and_row_shape(self):
        record = BookmarkRecord(
            url="https://x.com",
            title="Hello, world",
            description='He said "hi"',
            tags=["a", "b"],
            date_added=datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC),
            unread=True,
        )
        rows = list(csv.reader(io.StringIO(serialize_csv([record]).decode("utf-8"))))
        assert tuple(rows[0]) == CSV_HEADER
        assert rows[1] == [
            "https://x.com",
            "Hello, world",
            'He said "hi"',
            "a,b",
            "2025-01-02T03:04:05+00:00",
            "true",
            "false",
            "false",
        ]

    def test_unknown_date_is_empty(self):
        rows = serialize_csv([BookmarkRecord(url="https://x.com")]).decode().splitlines()
        assert rows[1] == "https://x.com,,,,,false,false,false"

    def test_round_trip_keeps_representable_fields(self):
        records = [
            BookmarkRecord(
                url="https://x.com",
                title="T",
                description="multi\nline",
                tags=["a", "b"],
                date_added=datetime(2025, 1, 2, 3, 4, 5, tzinfo=UTC),
                unread=True,
                shared=True,
                archived=False,
            ),
            BookmarkRecord(url="https://y.com", archived=True),
        ]
        parsed = [entry.record for entry in parse_csv(serialize_csv(records))]
        assert parsed == records
