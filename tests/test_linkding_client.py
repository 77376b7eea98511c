"""Tests for the linkding HTTP client against an in-process mock server."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from linkdingctl.adapters.linkding import (
    LinkdingAuthError,
    LinkdingClient,
    LinkdingClientError,
    LinkdingNotFoundError,
)
from linkdingctl.adapters.linkding.client import retry_with_backoff
from linkdingctl.adapters.linkding.models import (
    BookmarkCreate,
    BookmarkUpdate,
    BundleCreate,
    BundleUpdate,
)


def _bookmark(bookmark_id: int, *, archived: bool = False) -> dict[str, Any]:
    return {
        "id": bookmark_id,
        "url": f"https://site{bookmark_id}.example",
        "title": f"Site {bookmark_id}",
        "tag_names": [],
        "is_archived": archived,
        "date_added": "2024-05-01T12:00:00Z",
    }


class MockLinkding:
    """Serves the bookmark listing endpoints from two in-memory lists."""

    def __init__(self, unarchived: int = 0, archived: int = 0) -> None:
        self.unarchived = [_bookmark(index) for index in range(1, unarchived + 1)]
        self.archived = [
            _bookmark(100 + index, archived=True) for index in range(1, archived + 1)
        ]
        self.requests: list[httpx.Request] = []

    def _listing(self, request: httpx.Request, items: list[dict[str, Any]]) -> httpx.Response:
        limit = int(request.url.params.get("limit", "100"))
        offset = int(request.url.params.get("offset", "0"))
        page = items[offset : offset + limit]
        has_next = offset + limit < len(items)
        return httpx.Response(
            200,
            json={
                "count": len(items),
                "next": "http://next" if has_next else None,
                "previous": None,
                "results": page,
            },
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/api/bookmarks/":
            return self._listing(request, self.unarchived)
        if request.url.path == "/api/bookmarks/archived/":
            return self._listing(request, self.archived)
        return httpx.Response(404, text="not found")


def _client(handler: Any, **kwargs: Any) -> LinkdingClient:
    kwargs.setdefault("retry_base_delay", 0.0)
    return LinkdingClient(
        "https://links.example/",
        "secret-token",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def test_requires_context_manager() -> None:
    client = _client(MockLinkding())
    with pytest.raises(LinkdingClientError, match="Use context manager"):
        _ = client.client


def test_sends_token_header() -> None:
    server = MockLinkding(unarchived=1)
    with _client(server) as client:
        client.list_bookmarks(limit=1)
    assert server.requests[0].headers["Authorization"] == "Token secret-token"
    assert str(server.requests[0].url).startswith("https://links.example/api/bookmarks/")


def test_fetch_all_walks_unarchived_then_archived() -> None:
    server = MockLinkding(unarchived=3, archived=2)
    with _client(server, page_size=2) as client:
        bookmarks = client.fetch_all()

    assert [bookmark.id for bookmark in bookmarks] == [1, 2, 3, 101, 102]
    assert bookmarks[-1].is_archived is True


def test_fetch_all_without_archived() -> None:
    server = MockLinkding(unarchived=3, archived=2)
    with _client(server, page_size=2) as client:
        bookmarks = client.fetch_all(include_archived=False)

    assert [bookmark.id for bookmark in bookmarks] == [1, 2, 3]
    assert all(request.url.path == "/api/bookmarks/" for request in server.requests)


def test_fetch_all_archived_only() -> None:
    server = MockLinkding(archived=3)
    with _client(server, page_size=2) as client:
        bookmarks = client.fetch_all()
    assert [bookmark.id for bookmark in bookmarks] == [101, 102, 103]


def test_fetch_page_reports_has_more() -> None:
    server = MockLinkding(unarchived=2, archived=1)
    with _client(server) as client:
        first = client.fetch_page(include_archived=True, page_size=2, offset=0)
        last = client.fetch_page(include_archived=True, page_size=2, offset=2)
    assert first.has_more is True
    assert last.has_more is False
    assert [bookmark.id for bookmark in last.items] == [101]


def test_tag_filter_becomes_hash_query() -> None:
    server = MockLinkding(unarchived=1)
    with _client(server) as client:
        client.fetch_all(tag_filter=["python", "#tools"], include_archived=False)
        client.list_bookmarks("search", ["x"])
    assert server.requests[0].url.params["q"] == "#python #tools"
    assert server.requests[1].url.params["q"] == "search #x"


def test_unauthorized_is_auth_error() -> None:
    with _client(lambda request: httpx.Response(401, json={"detail": "bad token"})) as client:
        with pytest.raises(LinkdingAuthError, match="authentication failed"):
            client.fetch_all()


def test_wrong_url_is_not_found() -> None:
    with _client(lambda request: httpx.Response(404, text="<html>")) as client:
        with pytest.raises(LinkdingNotFoundError, match="Check your URL"):
            client.list_bookmarks()


def test_get_missing_bookmark() -> None:
    with _client(lambda request: httpx.Response(404)) as client:
        with pytest.raises(LinkdingNotFoundError, match="bookmark with ID 9 not found"):
            client.get_bookmark(9)


def test_create_sends_only_non_empty_fields() -> None:
    seen: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        seen.append(body)
        return httpx.Response(201, json={"id": 5, **body})

    with _client(handler) as client:
        created = client.create(BookmarkCreate(url="https://x.com", tag_names=["a"], unread=True))

    assert seen == [{"url": "https://x.com", "unread": True, "tag_names": ["a"]}]
    assert created.id == 5
    assert created.unread is True


def test_create_bad_request_includes_body() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, json={"url": ["Enter a valid URL."]})

    with _client(handler) as client:
        with pytest.raises(LinkdingClientError, match="bad request: .*valid URL"):
            client.create(BookmarkCreate(url="nope"))


def test_update_patches_only_set_fields() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": 3, "url": "https://x.com", "title": "T"})

    with _client(handler) as client:
        client.update(3, BookmarkUpdate(title="T", unread=False))

    assert seen[0].method == "PATCH"
    assert seen[0].url.path == "/api/bookmarks/3/"
    assert json.loads(seen[0].content) == {"title": "T", "unread": False}


@pytest.mark.parametrize(("status", "expected"), [(204, True), (404, False)])
def test_delete_outcomes(status: int, expected: bool) -> None:
    with _client(lambda request: httpx.Response(status)) as client:
        assert client.delete(7) is expected


def test_delete_server_error_raises() -> None:
    with _client(lambda request: httpx.Response(500, text="boom"), max_retries=0) as client:
        with pytest.raises(LinkdingClientError, match="status 500"):
            client.delete(7)


def test_transient_errors_are_retried() -> None:
    attempts: list[int] = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(1)
        if len(attempts) < 3:
            return httpx.Response(503, text="unavailable")
        return httpx.Response(200, json={"count": 0, "next": None, "results": []})

    with _client(handler, max_retries=3) as client:
        page = client.list_bookmarks()
    assert page.count == 0
    assert len(attempts) == 3


def test_connection_failure_message() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with _client(handler, max_retries=1) as client:
        with pytest.raises(LinkdingClientError, match="cannot connect to https://links.example"):
            client.fetch_all()


def test_health_check() -> None:
    with _client(MockLinkding()) as client:
        assert client.health_check() is True
    with _client(lambda request: httpx.Response(401)) as client:
        assert client.health_check() is False


def test_retry_with_backoff_gives_up_on_permanent_errors() -> None:
    calls: list[int] = []

    def failing() -> None:
        calls.append(1)
        raise ValueError("permanent")

    with pytest.raises(ValueError):
        retry_with_backoff(failing, max_retries=3, base_delay=0)
    assert len(calls) == 1


def test_get_tags_follows_pagination() -> None:
    tags = [{"id": index, "name": f"tag{index}"} for index in range(1, 4)]

    def handler(request: httpx.Request) -> httpx.Response:
        limit = int(request.url.params["limit"])
        offset = int(request.url.params.get("offset", "0"))
        page = tags[offset : offset + limit]
        return httpx.Response(
            200,
            json={
                "count": len(tags),
                "next": "http://next" if offset + limit < len(tags) else None,
                "results": page,
            },
        )

    with _client(handler, page_size=2) as client:
        names = [tag.name for tag in client.get_tags()]
    assert names == ["tag1", "tag2", "tag3"]


def test_health_check_can_raise() -> None:
    with _client(lambda request: httpx.Response(401)) as client:
        with pytest.raises(LinkdingAuthError, match="authentication failed"):
            client.health_check(raise_errors=True)


def test_get_user_profile() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/user/profile/"
        return httpx.Response(
            200,
            json={
                "theme": "auto",
                "enable_favicons": True,
                "search_preferences": {"sort": "added_desc", "shared": "off"},
                "custom_css": "ignored",
            },
        )

    with _client(handler) as client:
        profile = client.get_user_profile()
    assert profile.theme == "auto"
    assert profile.enable_favicons is True
    assert profile.enable_sharing is False
    assert profile.search_preferences.sort == "added_desc"


def test_list_bundles_follows_pagination() -> None:
    bundles = [{"id": index, "name": f"b{index}", "order": index} for index in range(1, 4)]

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/bundles/"
        limit = int(request.url.params["limit"])
        offset = int(request.url.params.get("offset", "0"))
        return httpx.Response(
            200,
            json={
                "count": len(bundles),
                "next": "http://next" if offset + limit < len(bundles) else None,
                "results": bundles[offset : offset + limit],
            },
        )

    with _client(handler, page_size=2) as client:
        names = [bundle.name for bundle in client.list_bundles()]
    assert names == ["b1", "b2", "b3"]


def test_create_bundle_omits_empty_fields() -> None:
    seen: list[dict[str, Any]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        seen.append(body)
        return httpx.Response(201, json={"id": 4, **body})

    with _client(handler) as client:
        created = client.create_bundle(BundleCreate(name="Reading", all_tags="blog"))

    assert seen == [{"name": "Reading", "all_tags": "blog"}]
    assert created.id == 4
    assert created.search == ""


def test_update_bundle_patches_only_set_fields() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": 4, "name": "Renamed", "order": 0})

    with _client(handler) as client:
        bundle = client.update_bundle(4, BundleUpdate(name="Renamed", order=0))

    assert seen[0].method == "PATCH"
    assert seen[0].url.path == "/api/bundles/4/"
    assert json.loads(seen[0].content) == {"name": "Renamed", "order": 0}
    assert bundle.name == "Renamed"


def test_missing_bundle() -> None:
    with _client(lambda request: httpx.Response(404)) as client:
        with pytest.raises(LinkdingNotFoundError, match="bundle with ID 8 not found"):
            client.get_bundle(8)
        with pytest.raises(LinkdingNotFoundError, match="bundle with ID 8 not found"):
            client.delete_bundle(8)


def test_delete_bundle() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    with _client(handler) as client:
        client.delete_bundle(5)
    assert (seen[0].method, seen[0].url.path) == ("DELETE", "/api/bundles/5/")
