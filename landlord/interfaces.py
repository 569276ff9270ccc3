"""
Collaborator interfaces consumed by the engine.

The engine never reads or prints anything itself: every player-facing
choice goes through a ``Prompter`` and every text goes through
``Messages`` by symbolic id.
"""

from enum import Enum
from typing import Protocol, Sequence


class Severity(Enum):
    """Alert levels understood by prompters."""

    INFO = "INFO"
    WARN = "WARN"
    TRANSACTION = "TRANSACTION"
    ERROR = "ERROR"


class Messages(Protocol):
    """Message catalogue for the current language."""

    def lookup(self, message_id: str) -> str:
        """Return the text for ``message_id``, or the id itself if unknown."""
        ...


class Prompter(Protocol):
    """Menus, questions and alerts shown to the player."""

    def present_menu(self, title: str, options: Sequence[str]) -> int:
        """Show a numbered menu and return the chosen option (1-based)."""
        ...

    def present_yes_no(self, prompt: str) -> bool:
        ...

    def read_line(self, prompt: str) -> str:
        ...

    def present_alert(self, severity: Severity, message: str) -> None:
        ...


def format_message(messages: Messages, message_id: str, **params: object) -> str:
    """Look up ``message_id`` and fill in its ``{named}`` placeholders."""
    text = messages.lookup(message_id)
    if not params:
        return text
    try:
        return text.format(**params)
    except (KeyError, IndexError, ValueError):
        return text
