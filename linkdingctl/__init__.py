"""Command-line client for managing bookmarks on a linkding server."""

__version__ = "0.4.0"
