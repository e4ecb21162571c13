"""User-facing notifications."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from rich.console import Console


class NotificationLevel(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    level: NotificationLevel
    message: str


class Notifier(Protocol):
    def notify(self, notification: Notification) -> None: ...


class ConsoleNotifier:
    """Prints notifications to the terminal."""

    STYLES = {
        NotificationLevel.SUCCESS: "bold green",
        NotificationLevel.ERROR: "bold red",
    }

    def __init__(self, console: Console | None = None):
        self.console = console or Console(stderr=True)

    def notify(self, notification: Notification) -> None:
        prefix = "✓" if notification.level is NotificationLevel.SUCCESS else "✗"
        self.console.print(
            f"{prefix} {notification.message}",
            style=self.STYLES[notification.level],
        )
