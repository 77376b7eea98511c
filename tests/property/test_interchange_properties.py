"""Property-based tests for the bookmark formats and the reconciliation engine.

These tests check that:
- JSON exports read back to the same records
- HTML keeps titles (edge spaces included), URLs and tags intact through escaping
- every input entry is accounted for exactly once by an import
"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

hypothesis = pytest.importorskip("hypothesis")
from hypothesis import given, settings, strategies as st

from linkdingctl.interchange.formats.html_format import parse_html, serialize_html
from linkdingctl.interchange.formats.json_format import parse_json, serialize_json
from linkdingctl.interchange.models import BookmarkRecord, ImportOptions, SourceEntry
from linkdingctl.interchange.reconcile import reconcile
from tests.conftest import FakeCollection

printable = st.text(alphabet=st.characters(min_codepoint=32, max_codepoint=126), max_size=40)
tag = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789-_", min_size=1, max_size=12)
url = st.builds(
    "https://{}.example/{}".format,
    st.text(alphabet="abcdefghij", min_size=1, max_size=8),
    st.text(alphabet="abcdefghij0123456789", max_size=8),
)
timestamp = st.one_of(
    st.none(),
    st.integers(min_value=1, max_value=2_000_000_000).map(
        lambda seconds: datetime.fromtimestamp(seconds, tz=UTC)
    ),
)

record_strategy = st.builds(
    BookmarkRecord,
    id=st.one_of(st.none(), st.integers(min_value=1, max_value=10_000)),
    url=url,
    title=printable,
    description=st.text(max_size=80),
    notes=st.text(max_size=40),
    tags=st.lists(tag, max_size=5),
    date_added=timestamp,
    date_modified=timestamp,
    unread=st.booleans(),
    shared=st.booleans(),
    archived=st.booleans(),
)


class TestFormatProperties:
    @given(records=st.lists(record_strategy, max_size=8))
    @settings(max_examples=50)
    def test_json_round_trip(self, records: list[BookmarkRecord]) -> None:
        entries = parse_json(serialize_json(records))
        assert [entry.record for entry in entries] == records

    @given(records=st.lists(record_strategy, max_size=8))
    @settings(max_examples=50)
    def test_html_keeps_identity_fields(self, records: list[BookmarkRecord]) -> None:
        parsed = [entry.record for entry in parse_html(serialize_html(records))]
        assert len(parsed) == len(records)
        for original, restored in zip(records, parsed, strict=True):
            assert restored is not None
            assert restored.url == original.url
            assert restored.title == original.title
            assert restored.tags == original.tags
            assert restored.date_added == original.date_added


class TestReconcileProperties:
    @given(
        existing=st.lists(url, max_size=6, unique=True),
        incoming=st.lists(st.one_of(url, st.just("")), max_size=10),
        skip_duplicates=st.booleans(),
        dry_run=st.booleans(),
    )
    @settings(max_examples=60)
    def test_every_entry_is_counted_once(
        self,
        existing: list[str],
        incoming: list[str],
        skip_duplicates: bool,
        dry_run: bool,
    ) -> None:
        collection = FakeCollection([{"url": address} for address in existing])
        entries = [
            SourceEntry(line=index, record=BookmarkRecord(url=address))
            for index, address in enumerate(incoming, start=1)
        ]
        result = reconcile(
            collection,
            entries,
            ImportOptions(skip_duplicates=skip_duplicates, dry_run=dry_run),
        )

        assert result.total == len(incoming)
        assert result.failed == incoming.count("")
        assert len(result.errors) == result.failed
        if dry_run:
            assert collection.mutations == []
        if not skip_duplicates:
            assert result.skipped == 0

    @given(incoming=st.lists(url, min_size=1, max_size=8, unique=True))
    @settings(max_examples=30)
    def test_second_import_with_skip_changes_nothing(self, incoming: list[str]) -> None:
        collection = FakeCollection()
        entries = [
            SourceEntry(line=index, record=BookmarkRecord(url=address))
            for index, address in enumerate(incoming, start=1)
        ]
        options = ImportOptions(skip_duplicates=True)
        reconcile(collection, entries, options)
        before = len(collection.mutations)

        second = reconcile(collection, entries, options)
        assert second.skipped == len(incoming)
        assert len(collection.mutations) == before
