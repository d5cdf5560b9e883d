"""Transient user notifications (the toast collaborator)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from rich.console import Console


class Notifier(Protocol):
    def success(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...

    def info(self, message: str) -> None:
        ...


class ConsoleNotifier:
    """Prints notifications through rich, one line each."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True)

    def success(self, message: str) -> None:
        self._console.print(f"[green]{message}[/green]")

    def error(self, message: str) -> None:
        self._console.print(f"[red]{message}[/red]")

    def info(self, message: str) -> None:
        self._console.print(message)


@dataclass(slots=True)
class RecordingNotifier:
    """Keeps every notification in memory; handy for tests and batch runs."""

    messages: list[tuple[str, str]] = field(default_factory=list)

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def of_kind(self, kind: str) -> list[str]:
        return [text for level, text in self.messages if level == kind]
