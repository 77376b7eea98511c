"""Protocol definition (port) for the remote bookmark collection.

The interchange engine only talks to this narrow surface, which keeps it
independent from the HTTP client and lets tests use an in-memory collection.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Sequence

    from linkdingctl.adapters.linkding.models import (
        BookmarkCreate,
        BookmarkPage,
        BookmarkUpdate,
        LinkdingBookmark,
    )


class RemoteCollectionPort(Protocol):
    def fetch_page(
        self,
        tag_filter: Sequence[str] | None = None,
        include_archived: bool = False,
        page_size: int = 100,
        offset: int = 0,
    ) -> BookmarkPage: ...

    def fetch_all(
        self,
        tag_filter: Sequence[str] | None = None,
        include_archived: bool = True,
    ) -> list[LinkdingBookmark]: ...

    def create(self, bookmark: BookmarkCreate) -> LinkdingBookmark: ...

    def update(self, bookmark_id: int, update: BookmarkUpdate) -> LinkdingBookmark: ...

    def delete(self, bookmark_id: int) -> bool: ...
