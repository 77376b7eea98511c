from __future__ import annotations

from pathlib import PurePath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from linkdingctl.interchange.models import FormatName

_EXTENSIONS: dict[str, FormatName] = {
    ".json": "json",
    ".html": "html",
    ".htm": "html",
    ".csv": "csv",
}


def detect_format(filename: str) -> FormatName | None:
    """Map a file name to an interchange format by extension; None when unknown."""
    return _EXTENSIONS.get(PurePath(filename).suffix.lower())
