"""Interactive operator prompts."""

from __future__ import annotations

from typing import Protocol

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

COMMIT_DEFAULT = "1"
COMMIT_CUSTOM = "2"
COMMIT_SKIP = "3"


class Prompter(Protocol):
    """Decisions the workflow asks the operator for."""

    def confirm(self, message: str) -> bool: ...

    def choose_commit_message(self, default: str) -> str | None: ...


class ConsolePrompter:
    """Prompts on the terminal using rich.

    Running out of input counts as declining, so a closed stdin never
    stages, commits or pushes anything.
    """

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console()

    def confirm(self, message: str) -> bool:
        try:
            return Confirm.ask(escape(message), console=self._console, default=False)
        except EOFError:
            return False

    def choose_commit_message(self, default: str) -> str | None:
        """Return the message to commit with, or ``None`` to skip committing."""

        options = {
            COMMIT_DEFAULT: f'Commit with "{default}"',
            COMMIT_CUSTOM: "Enter custom commit message",
            COMMIT_SKIP: "Skip commit",
        }
        for key, label in options.items():
            self._console.print(f"  {key}) {escape(label)}")

        try:
            choice = Prompt.ask(
                "Choose commit action",
                choices=list(options),
                default=COMMIT_DEFAULT,
                console=self._console,
            )
            if choice == COMMIT_DEFAULT:
                return default
            if choice == COMMIT_CUSTOM:
                message = Prompt.ask(
                    "Enter custom commit message",
                    default="",
                    show_default=False,
                    console=self._console,
                )
                return message if message.strip() else None
        except EOFError:
            return None
        return None


__all__ = ["COMMIT_CUSTOM", "COMMIT_DEFAULT", "COMMIT_SKIP", "ConsolePrompter", "Prompter"]
