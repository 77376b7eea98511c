"""Per-invocation state shared by the command handlers."""

from __future__ import annotations

import sys
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TextIO

from linkdingctl.adapters.linkding import LinkdingClient
from linkdingctl.config import load_config

if TYPE_CHECKING:
    import argparse
    from collections.abc import Callable

    from linkdingctl.config import AppConfig


class CommandError(Exception):
    """A command was invoked with arguments it cannot act on."""


def default_client_factory(config: AppConfig) -> LinkdingClient:
    return LinkdingClient(
        config.linkding.url,
        config.linkding.token,
        timeout=float(config.runtime.request_timeout_sec),
        max_retries=config.runtime.max_retries,
        page_size=config.runtime.page_size,
    )


@dataclass
class CommandContext:
    args: argparse.Namespace
    client_factory: Callable[[AppConfig], Any] = default_client_factory
    stdin: TextIO = field(default_factory=lambda: sys.stdin)
    _config: AppConfig | None = field(default=None, init=False, repr=False)

    @property
    def json_output(self) -> bool:
        return bool(getattr(self.args, "json", False))

    def config(self) -> AppConfig:
        if self._config is None:
            self._config = load_config(
                getattr(self.args, "config", None),
                url=getattr(self.args, "url", None),
                token=getattr(self.args, "token", None),
            )
        return self._config

    def client(self) -> Any:
        """A fresh, not yet entered client; use it as a context manager."""
        return self.client_factory(self.config())

    def read_line(self, prompt: str, *, stream: TextIO | None = None) -> str:
        out = stream or sys.stderr
        out.write(prompt)
        out.flush()
        line = self.stdin.readline()
        if not line:
            msg = "failed to read input: end of file"
            raise CommandError(msg)
        return line.strip()
