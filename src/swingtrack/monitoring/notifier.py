"""Notification backends."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field


class Notifier:
    def notify(self, event: str, message: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError


@dataclass
class LogNotifier(Notifier):
    prefix: str = "[SWING]"
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("swingtrack.alerts"))

    def notify(self, event: str, message: str) -> None:
        self.logger.info("%s %s: %s", self.prefix, event, message)


@dataclass
class MemoryNotifier(Notifier):
    """Keeps notifications in memory, for dry runs and tests."""

    messages: list[tuple[str, str]] = field(default_factory=list)

    def notify(self, event: str, message: str) -> None:
        self.messages.append((event, message))
