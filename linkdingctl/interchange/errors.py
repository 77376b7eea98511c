"""Operation-level errors raised by the interchange engine."""

from __future__ import annotations


class InterchangeError(Exception):
    """Base class for errors that abort a whole import, export or restore."""


class ImportFileError(InterchangeError):
    """The input file cannot be opened, its format detected, or its container parsed."""


class RestoreCancelledError(InterchangeError):
    """The wipe confirmation was declined or could not be obtained."""
