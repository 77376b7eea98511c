"""linkding integration adapter for remote bookmark management."""

from linkdingctl.adapters.linkding.client import (
    LinkdingAuthError,
    LinkdingClient,
    LinkdingClientError,
    LinkdingNotFoundError,
)

__all__ = [
    "LinkdingAuthError",
    "LinkdingClient",
    "LinkdingClientError",
    "LinkdingNotFoundError",
]
