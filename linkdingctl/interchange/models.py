"""Data shapes shared by the bookmark parsers, serializers and the import engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime
from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

if TYPE_CHECKING:
    from linkdingctl.adapters.linkding.models import LinkdingBookmark

FormatName = Literal["json", "html", "csv"]
FormatSelector = Literal["json", "html", "csv", "auto"]

FORMAT_VERSION = "1"
EXPORT_SOURCE = "linkding"


class BookmarkRecord(BaseModel):
    """Format-agnostic bookmark; ``url`` is its only identity."""

    id: int | None = None
    url: str = ""
    title: str = ""
    description: str = ""
    notes: str = ""
    tags: list[str] = Field(default_factory=list)
    date_added: datetime | None = None
    date_modified: datetime | None = None
    unread: bool = False
    shared: bool = False
    archived: bool = False

    model_config = ConfigDict(extra="ignore")

    @field_validator("url", "title", "description", "notes", mode="before")
    @classmethod
    def _none_as_empty(cls, value: object) -> object:
        return "" if value is None else value

    @field_validator("tags", mode="before")
    @classmethod
    def _none_as_no_tags(cls, value: object) -> object:
        return [] if value is None else value

    @classmethod
    def from_remote(cls, bookmark: LinkdingBookmark) -> BookmarkRecord:
        return cls(
            id=bookmark.id,
            url=bookmark.url,
            title=bookmark.title,
            description=bookmark.description,
            notes=bookmark.notes,
            tags=list(bookmark.tag_names),
            date_added=bookmark.date_added,
            date_modified=bookmark.date_modified,
            unread=bookmark.unread,
            shared=bookmark.shared,
            archived=bookmark.is_archived,
        )


@dataclass(frozen=True)
class SourceEntry:
    """One parsed position of an input file.

    ``record`` is None when the position could not be tokenised; ``error``
    then says why.
    """

    line: int
    record: BookmarkRecord | None = None
    error: str | None = None


class ExportEnvelope(BaseModel):
    """Top-level JSON export document."""

    version: str = FORMAT_VERSION
    exported_at: datetime
    source: str = EXPORT_SOURCE
    bookmarks: list[BookmarkRecord] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class ImportOptions(BaseModel):
    """Per-invocation import configuration."""

    format: FormatSelector = "auto"
    dry_run: bool = False
    skip_duplicates: bool = False
    add_tags: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    @field_validator("add_tags", mode="before")
    @classmethod
    def _clean_tags(cls, value: object) -> object:
        if value is None:
            return ()
        if isinstance(value, str):
            value = value.split(",")
        return tuple(tag.strip() for tag in value if tag and tag.strip())


class ExportOptions(BaseModel):
    """Per-invocation export configuration."""

    format: FormatName = "json"
    tags: tuple[str, ...] = ()
    include_archived: bool = True

    model_config = ConfigDict(frozen=True)


class ImportErrorRecord(BaseModel):
    """A single per-record import failure."""

    line: int
    message: str


class ImportResult(BaseModel):
    """Outcome counters and ordered failures of one import call.

    The counters only ever go up; every per-record problem lands here
    instead of being raised.
    """

    added: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[ImportErrorRecord] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return self.added + self.updated + self.skipped + self.failed

    def record_added(self) -> None:
        self.added += 1

    def record_updated(self) -> None:
        self.updated += 1

    def record_skipped(self) -> None:
        self.skipped += 1

    def record_failure(self, line: int, message: str) -> None:
        self.failed += 1
        self.errors.append(ImportErrorRecord(line=line, message=message))

    def summary(self) -> dict[str, object]:
        return {
            "added": self.added,
            "updated": self.updated,
            "skipped": self.skipped,
            "failed": self.failed,
            "errors": [error.model_dump() for error in self.errors],
        }


class WipeResult(BaseModel):
    """Outcome of deleting the remote collection before a restore."""

    existing: int = 0
    deleted: int = 0
    not_found: int = 0
    failed: int = 0
    dry_run: bool = False


class RestoreResult(BaseModel):
    """Outcome of a restore: the optional wipe followed by the import."""

    wipe: WipeResult | None = None
    imported: ImportResult
