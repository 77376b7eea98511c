"""Pydantic models for the linkding REST API."""

from __future__ import annotations

from datetime import datetime  # noqa: TC003 - Pydantic needs this at runtime

from pydantic import BaseModel, Field


class LinkdingTag(BaseModel):
    """linkding tag model."""

    id: int
    name: str
    date_added: datetime | None = None

    model_config = {"extra": "ignore"}


class LinkdingBookmark(BaseModel):
    """linkding bookmark model."""

    id: int
    url: str = ""
    title: str = ""
    description: str = ""
    notes: str = ""
    website_title: str | None = None
    website_description: str | None = None
    is_archived: bool = False
    unread: bool = False
    shared: bool = False
    tag_names: list[str] = Field(default_factory=list)
    date_added: datetime | None = None
    date_modified: datetime | None = None

    model_config = {"extra": "ignore"}


class LinkdingBookmarkList(BaseModel):
    """Offset-paginated list of bookmarks as returned by the API."""

    count: int = 0
    next: str | None = None
    previous: str | None = None
    results: list[LinkdingBookmark] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class LinkdingTagList(BaseModel):
    """Offset-paginated list of tags."""

    count: int = 0
    next: str | None = None
    previous: str | None = None
    results: list[LinkdingTag] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class BookmarkPage(BaseModel):
    """One page of the remote collection."""

    items: list[LinkdingBookmark] = Field(default_factory=list)
    has_more: bool = False


class BookmarkCreate(BaseModel):
    """Request to create a new bookmark."""

    url: str
    title: str = ""
    description: str = ""
    notes: str = ""
    is_archived: bool = False
    unread: bool = False
    shared: bool = False
    tag_names: list[str] = Field(default_factory=list)

    def to_payload(self) -> dict:
        # Empty values are left out so the server can fill in scraped metadata.
        payload = self.model_dump()
        return {key: value for key, value in payload.items() if value not in ("", [], False)}


class BookmarkUpdate(BaseModel):
    """Partial update; only fields that are set are sent."""

    url: str | None = None
    title: str | None = None
    description: str | None = None
    notes: str | None = None
    is_archived: bool | None = None
    unread: bool | None = None
    shared: bool | None = None
    tag_names: list[str] | None = None

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)


class LinkdingBundle(BaseModel):
    """Saved search ("bundle") shown in the linkding sidebar."""

    id: int
    name: str = ""
    search: str = ""
    any_tags: str = ""
    all_tags: str = ""
    excluded_tags: str = ""
    order: int = 0
    date_created: datetime | None = None
    date_modified: datetime | None = None

    model_config = {"extra": "ignore"}


class LinkdingBundleList(BaseModel):
    """Offset-paginated list of bundles."""

    count: int = 0
    next: str | None = None
    previous: str | None = None
    results: list[LinkdingBundle] = Field(default_factory=list)

    model_config = {"extra": "ignore"}


class BundleCreate(BaseModel):
    """Request to create a bundle."""

    name: str
    search: str = ""
    any_tags: str = ""
    all_tags: str = ""
    excluded_tags: str = ""
    order: int = 0

    def to_payload(self) -> dict:
        payload = self.model_dump()
        return {
            key: value
            for key, value in payload.items()
            if key == "name" or value not in ("", 0)
        }


class BundleUpdate(BaseModel):
    """Partial bundle update; only fields that are set are sent."""

    name: str | None = None
    search: str | None = None
    any_tags: str | None = None
    all_tags: str | None = None
    excluded_tags: str | None = None
    order: int | None = None

    def to_payload(self) -> dict:
        return self.model_dump(exclude_none=True)


class SearchPreferences(BaseModel):
    sort: str = ""
    shared: str = ""
    unread: str = ""

    model_config = {"extra": "ignore"}


class UserProfile(BaseModel):
    """Preferences of the user that owns the API token."""

    theme: str = ""
    bookmark_date_display: str = ""
    bookmark_link_target: str = ""
    web_archive_integration: str = ""
    tag_search: str = ""
    enable_sharing: bool = False
    enable_public_sharing: bool = False
    enable_favicons: bool = False
    display_url: bool = False
    permanent_notes: bool = False
    search_preferences: SearchPreferences = Field(default_factory=SearchPreferences)

    model_config = {"extra": "ignore"}
