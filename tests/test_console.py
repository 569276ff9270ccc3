"""
Tests for the console prompter.
"""

from collections import deque

import pytest
from conftest import IdentityMessages
from landlord.console import ConsolePrompter
from landlord.interfaces import Severity


def console(*answers):
    queue = deque(answers)
    output = []
    prompter = ConsolePrompter(IdentityMessages(), input_fn=lambda prompt: queue.popleft(), output=output.append)
    return prompter, output


def test_menu_returns_choice():
    prompter, output = console("2")

    assert prompter.present_menu("TITLE", ["first", "second"]) == 2
    assert "TITLE" in output
    assert "  1. first" in output
    assert "  2. second" in output


def test_menu_reprompts_on_invalid_input():
    prompter, output = console("x", "9", "0", "²", " 1 ")

    assert prompter.present_menu("TITLE", ["only"]) == 1
    assert output.count("[WARN] INVALID_OPTION") == 4


def test_empty_menu_is_an_error():
    prompter, _ = console()

    with pytest.raises(ValueError):
        prompter.present_menu("TITLE", [])


def test_yes_no():
    prompter, output = console("maybe", "1", "0")

    assert prompter.present_yes_no("QUESTION") is True
    assert prompter.present_yes_no("QUESTION") is False
    assert output == ["[WARN] INVALID_OPTION"]


def test_read_line_passes_text_through():
    prompter, _ = console("My Game")

    assert prompter.read_line("NAME") == "My Game"


def test_alerts_are_prefixed_by_severity():
    prompter, output = console()

    prompter.present_alert(Severity.INFO, "hello")
    prompter.present_alert(Severity.TRANSACTION, "paid")
    prompter.present_alert(Severity.ERROR, "broken")

    assert output == ["hello", "[TRANSACTION] paid", "[ERROR] broken"]
