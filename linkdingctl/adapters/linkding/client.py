"""linkding API client."""

from __future__ import annotations

import logging
import random
import time
from typing import TYPE_CHECKING, Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from linkdingctl.adapters.linkding.models import (
    BookmarkPage,
    LinkdingBookmark,
    LinkdingBookmarkList,
    LinkdingBundle,
    LinkdingBundleList,
    LinkdingTag,
    LinkdingTagList,
    UserProfile,
)
from linkdingctl.core.logging_utils import truncate_log_content

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from typing import Self

    from linkdingctl.adapters.linkding.models import (
        BookmarkCreate,
        BookmarkUpdate,
        BundleCreate,
        BundleUpdate,
    )

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

# HTTP status codes that should trigger a retry
RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}

# Default retry configuration
DEFAULT_MAX_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0  # seconds
DEFAULT_MAX_DELAY = 30.0  # seconds
DEFAULT_JITTER = 0.1  # 10% jitter

DEFAULT_PAGE_SIZE = 100


class LinkdingClientError(Exception):
    """Base exception for linkding client errors."""


class LinkdingAuthError(LinkdingClientError):
    """The API token was rejected."""


class LinkdingNotFoundError(LinkdingClientError):
    """The requested resource (or the API itself) does not exist."""


class LinkdingRetryableError(LinkdingClientError):
    """Error that can be retried."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class LinkdingConnectionError(LinkdingRetryableError):
    """The server could not be reached."""


def _is_retryable_error(exc: Exception) -> bool:
    """Tell whether a failed linkding request is worth sending again.

    Only connection failures and the statuses in ``RETRYABLE_STATUS_CODES``
    qualify; a rejected token or a bad payload fails the same way every time.
    """
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in RETRYABLE_STATUS_CODES
    if isinstance(exc, (httpx.ConnectError, httpx.TimeoutException)):
        return True
    return isinstance(exc, LinkdingRetryableError)


def _calculate_delay(attempt: int, base_delay: float, max_delay: float, jitter: float) -> float:
    """Seconds to wait before retry number ``attempt + 1``.

    Doubles from ``base_delay``, capped at ``max_delay``, plus up to
    ``jitter`` of random slack so parallel imports do not retry in lockstep.
    """
    delay = min(base_delay * (2**attempt), max_delay)
    jitter_amount = delay * jitter * random.random()
    return delay + jitter_amount


def retry_with_backoff(
    func: Callable[[], T],
    *,
    max_retries: int = DEFAULT_MAX_RETRIES,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    jitter: float = DEFAULT_JITTER,
    operation_name: str = "operation",
) -> T:
    """Run one linkding request, retrying transient failures.

    ``func`` is called up to ``max_retries + 1`` times. Non-retryable errors
    propagate on the first attempt. When retries run out, a
    ``LinkdingClientError`` is re-raised as is and anything else is wrapped
    in one naming ``operation_name``.
    """
    last_exception: Exception | None = None

    for attempt in range(max_retries + 1):
        try:
            return func()
        except Exception as exc:
            last_exception = exc

            if not _is_retryable_error(exc):
                raise

            if attempt == max_retries:
                logger.error(
                    "linkding_retry_exhausted",
                    extra={
                        "operation": operation_name,
                        "attempts": attempt + 1,
                        "error": str(exc),
                    },
                )
                if isinstance(exc, LinkdingClientError):
                    raise
                raise LinkdingClientError(
                    f"{operation_name} failed after {attempt + 1} attempts: {exc}"
                ) from exc

            delay = _calculate_delay(attempt, base_delay, max_delay, jitter)
            logger.warning(
                "linkding_retry_attempt",
                extra={
                    "operation": operation_name,
                    "attempt": attempt + 1,
                    "max_retries": max_retries,
                    "delay_seconds": round(delay, 2),
                    "error": str(exc),
                },
            )
            time.sleep(delay)

    raise LinkdingClientError(f"{operation_name} failed") from last_exception


class LinkdingClient:
    """Blocking HTTP client for the linkding API.

    Implements the remote collection port used by the interchange engine.
    """

    # Default per-endpoint timeouts (seconds)
    DEFAULT_TIMEOUTS: dict[str, float] = {
        "list_bookmarks": 30.0,
        "get_bookmark": 15.0,
        "create": 30.0,
        "update": 15.0,
        "delete": 15.0,
        "get_tags": 30.0,
        "get_user_profile": 15.0,
        "list_bundles": 30.0,
        "get_bundle": 15.0,
        "create_bundle": 15.0,
        "update_bundle": 15.0,
        "delete_bundle": 15.0,
        "health_check": 10.0,
    }

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 30.0,
        *,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_base_delay: float = DEFAULT_BASE_DELAY,
        retry_max_delay: float = DEFAULT_MAX_DELAY,
        page_size: int = DEFAULT_PAGE_SIZE,
        endpoint_timeouts: dict[str, float] | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize linkding client.

        Args:
            base_url: Root URL of the linkding instance (e.g., https://links.example.com)
            token: REST API token from the linkding settings page
            timeout: Default request timeout in seconds
            max_retries: Maximum number of retry attempts for transient failures
            retry_base_delay: Base delay between retries in seconds
            retry_max_delay: Maximum delay between retries in seconds
            page_size: Page size used when walking the whole collection
            endpoint_timeouts: Custom per-endpoint timeouts (overrides defaults)
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.api_url = f"{self.base_url}/api"
        self.token = token
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self.page_size = page_size
        self.endpoint_timeouts = {**self.DEFAULT_TIMEOUTS}
        if endpoint_timeouts:
            self.endpoint_timeouts.update(endpoint_timeouts)
        self._transport = transport
        self._client: httpx.Client | None = None

    def get_timeout(self, endpoint: str) -> float:
        """Get timeout for a specific endpoint."""
        return self.endpoint_timeouts.get(endpoint, self.timeout)

    def __enter__(self) -> Self:
        """Enter context."""
        self._client = httpx.Client(
            base_url=self.api_url,
            headers={
                "Authorization": f"Token {self.token}",
                "Accept": "application/json",
            },
            timeout=self.timeout,
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        """Exit context."""
        if self._client:
            self._client.close()
            self._client = None

    @property
    def client(self) -> httpx.Client:
        """Get the HTTP client."""
        if self._client is None:
            raise LinkdingClientError("Client not initialized. Use context manager.")
        return self._client

    # ------------------------------------------------------------------
    # Transport helpers
    # ------------------------------------------------------------------

    def _with_retry(self, func: Callable[[], T], operation_name: str) -> T:
        return retry_with_backoff(
            func,
            max_retries=self.max_retries,
            base_delay=self.retry_base_delay,
            max_delay=self.retry_max_delay,
            operation_name=operation_name,
        )

    def _send(
        self,
        method: str,
        path: str,
        *,
        endpoint: str,
        operation_name: str | None = None,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        timeout = self.get_timeout(endpoint)

        def _request() -> httpx.Response:
            try:
                response = self.client.request(
                    method, path, params=params, json=json, timeout=timeout
                )
            except httpx.TransportError as exc:
                msg = f"cannot connect to {self.base_url}. Is linkding running?"
                raise LinkdingConnectionError(msg) from exc
            if response.status_code in RETRYABLE_STATUS_CODES:
                raise LinkdingRetryableError(
                    self._status_message(response), status_code=response.status_code
                )
            return response

        return self._with_retry(_request, operation_name or endpoint)

    @staticmethod
    def _status_message(response: httpx.Response) -> str:
        body = truncate_log_content(response.text.strip(), 300) or ""
        return f"API error (status {response.status_code}): {body}"

    def _raise_for_status(
        self,
        response: httpx.Response,
        expected: int,
        *,
        not_found: str | None = None,
    ) -> None:
        """Convert unexpected HTTP statuses into client errors with readable messages."""
        status = response.status_code
        if status == expected:
            return
        if status == 401:
            raise LinkdingAuthError("authentication failed. Check your API token")
        if status == 403:
            raise LinkdingClientError("insufficient permissions for this operation")
        if status == 404:
            raise LinkdingNotFoundError(
                not_found or f"linkding not found at {self.base_url}. Check your URL"
            )
        if status == 400:
            body = truncate_log_content(response.text.strip(), 300) or ""
            raise LinkdingClientError(f"bad request: {body}")
        raise LinkdingClientError(self._status_message(response))

    @staticmethod
    def _decode(response: httpx.Response, model: type[M]) -> M:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise LinkdingClientError(f"failed to decode response: {exc}") from exc

    @staticmethod
    def _tag_query(tags: Sequence[str] | None, query: str = "") -> str:
        terms = [query.strip()] if query.strip() else []
        terms.extend(f"#{tag.lstrip('#')}" for tag in tags or () if tag.strip())
        return " ".join(terms)

    def _get_listing(
        self,
        path: str,
        *,
        query: str,
        limit: int,
        offset: int,
        unread: bool = False,
    ) -> LinkdingBookmarkList:
        params: dict[str, Any] = {"limit": limit}
        if query:
            params["q"] = query
        if offset > 0:
            params["offset"] = offset
        if unread:
            params["unread"] = "yes"
        response = self._send("GET", path, endpoint="list_bookmarks", params=params)
        self._raise_for_status(response, 200)
        return self._decode(response, LinkdingBookmarkList)

    # ------------------------------------------------------------------
    # Remote collection port
    # ------------------------------------------------------------------

    def fetch_page(
        self,
        tag_filter: Sequence[str] | None = None,
        include_archived: bool = False,
        page_size: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> BookmarkPage:
        """Fetch one page of bookmarks.

        With ``include_archived`` the unarchived listing and the archived
        listing are treated as one offset space, unarchived first.

        Args:
            tag_filter: Only bookmarks carrying all of these tags
            include_archived: Continue into archived bookmarks
            page_size: Maximum number of bookmarks to return
            offset: Position in the (combined) listing

        Returns:
            The page and whether more bookmarks follow
        """
        query = self._tag_query(tag_filter)
        unarchived = self._get_listing(
            "/bookmarks/", query=query, limit=page_size, offset=offset
        )
        items = list(unarchived.results)
        if unarchived.next is not None:
            return BookmarkPage(items=items, has_more=True)
        if not include_archived:
            return BookmarkPage(items=items, has_more=False)

        remaining = page_size - len(items)
        if remaining <= 0:
            return BookmarkPage(items=items, has_more=True)
        archived = self._get_listing(
            "/bookmarks/archived/",
            query=query,
            limit=remaining,
            offset=max(0, offset - unarchived.count),
        )
        items.extend(archived.results)
        return BookmarkPage(items=items, has_more=archived.next is not None)

    def fetch_all(
        self,
        tag_filter: Sequence[str] | None = None,
        include_archived: bool = True,
    ) -> list[LinkdingBookmark]:
        """Get all bookmarks (handles pagination).

        Args:
            tag_filter: Only bookmarks carrying all of these tags
            include_archived: Include archived bookmarks

        Returns:
            List of all bookmarks
        """
        all_bookmarks: list[LinkdingBookmark] = []
        offset = 0

        while True:
            page = self.fetch_page(
                tag_filter,
                include_archived,
                page_size=self.page_size,
                offset=offset,
            )
            all_bookmarks.extend(page.items)
            if not page.has_more or not page.items:
                break
            offset += len(page.items)

        logger.info(
            "linkding_fetched_all_bookmarks",
            extra={
                "count": len(all_bookmarks),
                "tags": list(tag_filter or ()),
                "include_archived": include_archived,
            },
        )
        return all_bookmarks

    def create(self, bookmark: BookmarkCreate) -> LinkdingBookmark:
        """Create a new bookmark.

        Args:
            bookmark: Fields of the new bookmark

        Returns:
            Created bookmark
        """
        response = self._send("POST", "/bookmarks/", endpoint="create", json=bookmark.to_payload())
        self._raise_for_status(response, 201)
        created = self._decode(response, LinkdingBookmark)
        logger.info(
            "linkding_bookmark_created", extra={"url": bookmark.url, "bookmark_id": created.id}
        )
        return created

    def update(self, bookmark_id: int, update: BookmarkUpdate) -> LinkdingBookmark:
        """Update a bookmark; only the fields set on ``update`` change.

        Args:
            bookmark_id: Bookmark ID
            update: Partial field set

        Returns:
            Updated bookmark
        """
        response = self._send(
            "PATCH",
            f"/bookmarks/{bookmark_id}/",
            endpoint="update",
            operation_name=f"update({bookmark_id})",
            json=update.to_payload(),
        )
        self._raise_for_status(
            response, 200, not_found=f"bookmark with ID {bookmark_id} not found"
        )
        return self._decode(response, LinkdingBookmark)

    def delete(self, bookmark_id: int) -> bool:
        """Delete a bookmark.

        Args:
            bookmark_id: Bookmark ID

        Returns:
            True if deleted, False if no such bookmark exists
        """
        response = self._send(
            "DELETE",
            f"/bookmarks/{bookmark_id}/",
            endpoint="delete",
            operation_name=f"delete({bookmark_id})",
        )
        if response.status_code == 404:
            logger.info("linkding_bookmark_missing", extra={"bookmark_id": bookmark_id})
            return False
        self._raise_for_status(response, 204)
        logger.info("linkding_bookmark_deleted", extra={"bookmark_id": bookmark_id})
        return True

    # ------------------------------------------------------------------
    # Other endpoints
    # ------------------------------------------------------------------

    def list_bookmarks(
        self,
        query: str = "",
        tags: Sequence[str] | None = None,
        *,
        unread: bool = False,
        archived: bool = False,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
    ) -> LinkdingBookmarkList:
        """Search one page of bookmarks.

        Args:
            query: Free-text search
            tags: Required tags
            unread: Only unread bookmarks
            archived: Search the archived listing instead
            limit: Maximum results
            offset: Pagination offset

        Returns:
            Paginated list as returned by the server
        """
        path = "/bookmarks/archived/" if archived else "/bookmarks/"
        return self._get_listing(
            path,
            query=self._tag_query(tags, query),
            limit=limit,
            offset=offset,
            unread=unread,
        )

    def get_bookmark(self, bookmark_id: int) -> LinkdingBookmark:
        """Get a single bookmark by ID."""
        response = self._send(
            "GET",
            f"/bookmarks/{bookmark_id}/",
            endpoint="get_bookmark",
            operation_name=f"get_bookmark({bookmark_id})",
        )
        self._raise_for_status(
            response, 200, not_found=f"bookmark with ID {bookmark_id} not found"
        )
        return self._decode(response, LinkdingBookmark)

    def _walk(self, path: str, endpoint: str, model: type[M]) -> list[Any]:
        """Collect ``results`` across every page of an offset-paginated listing."""
        items: list[Any] = []
        offset = 0
        while True:
            params: dict[str, Any] = {"limit": self.page_size}
            if offset:
                params["offset"] = offset
            response = self._send("GET", path, endpoint=endpoint, params=params)
            self._raise_for_status(response, 200)
            page = self._decode(response, model)
            items.extend(page.results)
            if page.next is None or not page.results:
                break
            offset += len(page.results)
        return items

    def get_tags(self) -> list[LinkdingTag]:
        """Get all tags (handles pagination)."""
        return self._walk("/tags/", "get_tags", LinkdingTagList)

    def get_user_profile(self) -> UserProfile:
        """Get the preferences of the token's owner."""
        response = self._send("GET", "/user/profile/", endpoint="get_user_profile")
        self._raise_for_status(response, 200)
        return self._decode(response, UserProfile)

    def health_check(self, *, raise_errors: bool = False) -> bool:
        """Check if the linkding API is reachable with the configured token.

        With ``raise_errors`` the underlying client error propagates instead
        of being logged and turned into ``False``.
        """
        try:
            response = self._send(
                "GET", "/bookmarks/", endpoint="health_check", params={"limit": 1}
            )
            self._raise_for_status(response, 200)
        except LinkdingClientError as exc:
            logger.warning("linkding_health_check_failed", extra={"error": str(exc)})
            if raise_errors:
                raise
            return False
        return True

    # ------------------------------------------------------------------
    # Bundles
    # ------------------------------------------------------------------

    def list_bundles(self) -> list[LinkdingBundle]:
        """Get all bundles (handles pagination)."""
        return self._walk("/bundles/", "list_bundles", LinkdingBundleList)

    def get_bundle(self, bundle_id: int) -> LinkdingBundle:
        response = self._send(
            "GET",
            f"/bundles/{bundle_id}/",
            endpoint="get_bundle",
            operation_name=f"get_bundle({bundle_id})",
        )
        self._raise_for_status(response, 200, not_found=f"bundle with ID {bundle_id} not found")
        return self._decode(response, LinkdingBundle)

    def create_bundle(self, bundle: BundleCreate) -> LinkdingBundle:
        response = self._send(
            "POST", "/bundles/", endpoint="create_bundle", json=bundle.to_payload()
        )
        self._raise_for_status(response, 201)
        created = self._decode(response, LinkdingBundle)
        logger.info(
            "linkding_bundle_created", extra={"bundle_name": bundle.name, "bundle_id": created.id}
        )
        return created

    def update_bundle(self, bundle_id: int, update: BundleUpdate) -> LinkdingBundle:
        """Patch a bundle; only the fields set on ``update`` change."""
        response = self._send(
            "PATCH",
            f"/bundles/{bundle_id}/",
            endpoint="update_bundle",
            operation_name=f"update_bundle({bundle_id})",
            json=update.to_payload(),
        )
        self._raise_for_status(response, 200, not_found=f"bundle with ID {bundle_id} not found")
        return self._decode(response, LinkdingBundle)

    def delete_bundle(self, bundle_id: int) -> None:
        """Delete a bundle; a missing bundle is an error, unlike ``delete``."""
        response = self._send(
            "DELETE",
            f"/bundles/{bundle_id}/",
            endpoint="delete_bundle",
            operation_name=f"delete_bundle({bundle_id})",
        )
        self._raise_for_status(response, 204, not_found=f"bundle with ID {bundle_id} not found")
        logger.info("linkding_bundle_deleted", extra={"bundle_id": bundle_id})
