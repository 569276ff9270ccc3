"""
Text console implementation of the ``Prompter`` interface.
"""

from typing import Callable, Sequence

from landlord.interfaces import Messages, Severity


class ConsolePrompter:
    """
    Numbered menus and yes/no questions on a text console.

    Invalid answers are reported with ``INVALID_OPTION`` and asked again,
    so callers always receive a valid choice.
    """

    def __init__(
        self,
        messages: Messages,
        input_fn: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
    ):
        self.messages = messages
        self.input_fn = input_fn
        self.output = output

    def present_menu(self, title: str, options: Sequence[str]) -> int:
        if not options:
            raise ValueError("A menu needs at least one option")
        while True:
            self.output("")
            self.output(title)
            for number, option in enumerate(options, start=1):
                self.output(f"  {number}. {option}")
            answer = self.input_fn("> ").strip()
            if answer.isdecimal() and 1 <= int(answer) <= len(options):
                return int(answer)
            self._invalid()

    def present_yes_no(self, prompt: str) -> bool:
        yes = self.messages.lookup("YES")
        no = self.messages.lookup("NO")
        while True:
            answer = self.input_fn(f"{prompt} [1: {yes} / 0: {no}] ").strip()
            if answer == "1":
                return True
            if answer == "0":
                return False
            self._invalid()

    def read_line(self, prompt: str) -> str:
        return self.input_fn(f"{prompt} ")

    def present_alert(self, severity: Severity, message: str) -> None:
        if severity is Severity.INFO:
            self.output(message)
        else:
            self.output(f"[{severity.value}] {message}")

    def _invalid(self) -> None:
        self.output(f"[{Severity.WARN.value}] {self.messages.lookup('INVALID_OPTION')}")
