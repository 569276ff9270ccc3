"""Shared test fixtures for landlord tests."""

from collections import deque

import pytest
from landlord import GameConfig, create_game
from landlord.turn import TurnEngine

# Turn options menu entries (1-based)
MANAGE = 1
TRADE = 2
STATUS = 3
END_TURN = 4
SAVE_AND_QUIT = 5


class IdentityMessages:
    """Message catalogue that returns every id unchanged."""

    def lookup(self, message_id):
        return message_id


class ScriptedPrompter:
    """
    Prompter answering from queues of scripted answers.

    Running out of answers fails the test, so every unexpected question shows up.
    """

    def __init__(self, menu=(), yes_no=(), lines=()):
        self.menu_answers = deque(menu)
        self.yes_no_answers = deque(yes_no)
        self.line_answers = deque(lines)
        self.menus = []
        self.questions = []
        self.alerts = []

    def script(self, menu=(), yes_no=(), lines=()):
        self.menu_answers.extend(menu)
        self.yes_no_answers.extend(yes_no)
        self.line_answers.extend(lines)
        return self

    def present_menu(self, title, options):
        self.menus.append((title, list(options)))
        if not self.menu_answers:
            raise AssertionError(f"Unexpected menu {title!r}: {list(options)}")
        return self.menu_answers.popleft()

    def present_yes_no(self, prompt):
        self.questions.append(prompt)
        if not self.yes_no_answers:
            raise AssertionError(f"Unexpected question {prompt!r}")
        return self.yes_no_answers.popleft()

    def read_line(self, prompt):
        if not self.line_answers:
            raise AssertionError(f"Unexpected prompt {prompt!r}")
        return self.line_answers.popleft()

    def present_alert(self, severity, message):
        self.alerts.append((severity, message))

    def messages(self, severity=None):
        return [message for level, message in self.alerts if severity is None or level is severity]

    @property
    def menu_titles(self):
        return [title for title, _ in self.menus]


class FixedDice:
    """Dice returning scripted rolls in order."""

    def __init__(self, *rolls):
        self.rolls = deque(rolls)

    def __call__(self):
        if not self.rolls:
            raise AssertionError("The test rolled more dice than scripted")
        return self.rolls.popleft()


@pytest.fixture
def game_config():
    """Default game configuration with fixed seed for reproducibility."""
    return GameConfig(seed=42)


@pytest.fixture
def two_players():
    """Two test players."""
    return ["Alice", "Bob"]


@pytest.fixture
def three_players():
    return ["Alice", "Bob", "Charlie"]


@pytest.fixture
def basic_game(game_config, two_players):
    """Basic game with two players and fixed seed."""
    return create_game(game_config, two_players)


@pytest.fixture
def three_player_game(game_config, three_players):
    return create_game(game_config, three_players)


@pytest.fixture
def messages():
    return IdentityMessages()


@pytest.fixture
def prompter():
    return ScriptedPrompter()


@pytest.fixture
def make_engine(messages):
    """Build a turn engine for a game with scripted dice."""

    def _make(game, prompter, *rolls):
        return TurnEngine(game, prompter, messages, FixedDice(*rolls))

    return _make
