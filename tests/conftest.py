"""Pytest configuration and shared fixtures.

``FakeCollection`` is an in-memory stand-in for the linkding server that
implements the remote collection port and records every call it receives.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import pytest
from loguru import logger as loguru_logger

from linkdingctl.adapters.linkding import LinkdingClientError, LinkdingNotFoundError
from linkdingctl.adapters.linkding.models import (
    BookmarkPage,
    LinkdingBookmark,
    LinkdingBookmarkList,
    LinkdingBundle,
    LinkdingTag,
    UserProfile,
)

MUTATING_CALLS = frozenset(
    {"create", "update", "delete", "create_bundle", "update_bundle", "delete_bundle"}
)


class FakeCollection:
    def __init__(
        self,
        bookmarks: list[dict[str, Any]] | None = None,
        *,
        reject_urls: tuple[str, ...] = (),
        fail_delete_ids: tuple[int, ...] = (),
        vanished_ids: tuple[int, ...] = (),
        fail_update_ids: tuple[int, ...] = (),
        tags: tuple[str, ...] = (),
        bundles: list[dict[str, Any]] | None = None,
        profile: dict[str, Any] | None = None,
    ) -> None:
        self.bookmarks: dict[int, LinkdingBookmark] = {}
        self.calls: list[tuple[str, Any]] = []
        self.reject_urls = set(reject_urls)
        self.fail_delete_ids = set(fail_delete_ids)
        self.vanished_ids = set(vanished_ids)
        self.fail_update_ids = set(fail_update_ids)
        self.tags = [LinkdingTag(id=index, name=name) for index, name in enumerate(tags, start=1)]
        self.bundles: dict[int, LinkdingBundle] = {
            fields["id"]: LinkdingBundle(**fields) for fields in bundles or []
        }
        self.profile = UserProfile(**(profile or {}))
        self._next_id = 1
        for fields in bookmarks or []:
            self.seed(**fields)

    def seed(self, url: str, **fields: Any) -> LinkdingBookmark:
        bookmark = LinkdingBookmark(
            id=fields.pop("id", self._next_id),
            url=url,
            date_added=fields.pop("date_added", datetime(2024, 1, 1, tzinfo=UTC)),
            **fields,
        )
        self.bookmarks[bookmark.id] = bookmark
        self._next_id = max(self._next_id, bookmark.id) + 1
        return bookmark

    @property
    def mutations(self) -> list[tuple[str, Any]]:
        return [call for call in self.calls if call[0] in MUTATING_CALLS]

    def urls(self) -> list[str]:
        return [bookmark.url for bookmark in self.bookmarks.values()]

    def __enter__(self) -> FakeCollection:
        return self

    def __exit__(self, *args: object) -> None:
        return None

    def _matching(self, tag_filter: Any, include_archived: bool) -> list[LinkdingBookmark]:
        wanted = list(tag_filter or ())
        items = [
            bookmark
            for bookmark in self.bookmarks.values()
            if (include_archived or not bookmark.is_archived)
            and all(tag in bookmark.tag_names for tag in wanted)
        ]
        return sorted(items, key=lambda bookmark: bookmark.is_archived)

    def fetch_page(
        self,
        tag_filter: Any = None,
        include_archived: bool = False,
        page_size: int = 100,
        offset: int = 0,
    ) -> BookmarkPage:
        self.calls.append(("fetch_page", (offset, page_size)))
        items = self._matching(tag_filter, include_archived)
        return BookmarkPage(
            items=items[offset : offset + page_size],
            has_more=offset + page_size < len(items),
        )

    def fetch_all(self, tag_filter: Any = None, include_archived: bool = True) -> list[LinkdingBookmark]:
        self.calls.append(("fetch_all", {"tags": tag_filter, "archived": include_archived}))
        return self._matching(tag_filter, include_archived)

    def create(self, bookmark: Any) -> LinkdingBookmark:
        self.calls.append(("create", bookmark))
        if bookmark.url in self.reject_urls:
            raise LinkdingClientError("bad request: rejected by server")
        payload = bookmark.model_dump()
        return self.seed(payload.pop("url"), **payload)

    def update(self, bookmark_id: int, update: Any) -> LinkdingBookmark:
        self.calls.append(("update", (bookmark_id, update)))
        current = self.bookmarks.get(bookmark_id)
        if current is None:
            raise LinkdingNotFoundError(f"bookmark with ID {bookmark_id} not found")
        if bookmark_id in self.fail_update_ids:
            raise LinkdingClientError("API error (status 500): boom")
        if update.url in self.reject_urls:
            raise LinkdingClientError("bad request: rejected by server")
        updated = current.model_copy(update=update.to_payload())
        self.bookmarks[bookmark_id] = updated
        return updated

    def delete(self, bookmark_id: int) -> bool:
        self.calls.append(("delete", bookmark_id))
        if bookmark_id in self.fail_delete_ids:
            raise LinkdingClientError("API error (status 500): boom")
        if bookmark_id in self.vanished_ids:
            self.bookmarks.pop(bookmark_id, None)
            return False
        return self.bookmarks.pop(bookmark_id, None) is not None

    def get_bookmark(self, bookmark_id: int) -> LinkdingBookmark:
        self.calls.append(("get_bookmark", bookmark_id))
        try:
            return self.bookmarks[bookmark_id]
        except KeyError:
            raise LinkdingNotFoundError(f"bookmark with ID {bookmark_id} not found") from None

    def list_bookmarks(
        self,
        query: str = "",
        tags: Any = None,
        *,
        unread: bool = False,
        archived: bool = False,
        limit: int = 100,
        offset: int = 0,
    ) -> LinkdingBookmarkList:
        self.calls.append(("list_bookmarks", {"query": query, "tags": tags}))
        items = [
            bookmark
            for bookmark in self._matching(tags, True)
            if bookmark.is_archived == archived and (not unread or bookmark.unread)
        ]
        page = items[offset : offset + limit]
        return LinkdingBookmarkList(
            count=len(items),
            next="next" if offset + limit < len(items) else None,
            results=page,
        )

    def get_tags(self) -> list[LinkdingTag]:
        self.calls.append(("get_tags", None))
        return list(self.tags)

    def health_check(self, *, raise_errors: bool = False) -> bool:
        self.calls.append(("health_check", raise_errors))
        return True

    def get_user_profile(self) -> UserProfile:
        self.calls.append(("get_user_profile", None))
        return self.profile

    def list_bundles(self) -> list[LinkdingBundle]:
        self.calls.append(("list_bundles", None))
        return list(self.bundles.values())

    def get_bundle(self, bundle_id: int) -> LinkdingBundle:
        self.calls.append(("get_bundle", bundle_id))
        try:
            return self.bundles[bundle_id]
        except KeyError:
            raise LinkdingNotFoundError(f"bundle with ID {bundle_id} not found") from None

    def create_bundle(self, bundle: Any) -> LinkdingBundle:
        self.calls.append(("create_bundle", bundle))
        created = LinkdingBundle(id=max(self.bundles, default=0) + 1, **bundle.to_payload())
        self.bundles[created.id] = created
        return created

    def update_bundle(self, bundle_id: int, update: Any) -> LinkdingBundle:
        self.calls.append(("update_bundle", (bundle_id, update)))
        updated = self.get_bundle(bundle_id).model_copy(update=update.to_payload())
        self.bundles[bundle_id] = updated
        return updated

    def delete_bundle(self, bundle_id: int) -> None:
        self.calls.append(("delete_bundle", bundle_id))
        if self.bundles.pop(bundle_id, None) is None:
            raise LinkdingNotFoundError(f"bundle with ID {bundle_id} not found")


@pytest.fixture
def collection() -> FakeCollection:
    return FakeCollection()


@pytest.fixture(autouse=True)
def _isolate_linkding_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Any) -> None:
    for name in (
        "LINKDING_URL",
        "LINKDING_TOKEN",
        "LINKDING_LOG_LEVEL",
        "LINKDING_TIMEOUT",
        "LINKDING_MAX_RETRIES",
        "LINKDING_PAGE_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Any:
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    loguru_logger.remove()
