"""
Game controller: the session around the turn engine.

Runs the main menu, sets up or loads a game, plays turns until the game
is finished or a player saves and quits, and autosaves between turns.
"""

import logging
from typing import Callable, List, Optional

from landlord.config import BoardSpec, GameConfig
from landlord.exceptions import PersistenceError
from landlord.game import GameState, create_game
from landlord.interfaces import Messages, Prompter, Severity, format_message
from landlord.persistence import SaveStore
from landlord.turn import Dice, TurnEngine, TurnOutcome

logger = logging.getLogger(__name__)

MIN_SESSION_PLAYERS = 2
MAX_SESSION_PLAYERS = 6


class GameController:
    """
    Drives whole games for one console session.

    Args:
        prompter: Collaborator for every player choice
        messages: Message catalogue for the current language
        store: Where games are saved
        config: Rules for new games
        autosave: Initial autosave flag of new games
        board_spec: Board data for new games; the configured board when None
        dice: Dice override passed to the turn engine
    """

    def __init__(
        self,
        prompter: Prompter,
        messages: Messages,
        store: SaveStore,
        config: Optional[GameConfig] = None,
        autosave: bool = True,
        board_spec: Optional[BoardSpec] = None,
        dice: Optional[Callable[[], Dice]] = None,
    ):
        self.prompter = prompter
        self.messages = messages
        self.store = store
        self.config = config if config is not None else GameConfig()
        self.autosave = autosave
        self.board_spec = board_spec
        self.dice = dice

        self.game: Optional[GameState] = None
        self.save_name: Optional[str] = None

    # === GAME SETUP ===

    def new_game(self, name: str, player_names: List[str]) -> GameState:
        """Create a game and its initial save. The save name must be unused."""
        game = create_game(self.config, player_names, self.board_spec)
        game.autosave = self.autosave
        self.store.create(game, name)
        self.game = game
        self.save_name = name.strip()
        logger.info(f"Started game {self.save_name!r}")
        return game

    def load_game(self, name: str) -> GameState:
        self.game = self.store.load(name)
        self.save_name = name.strip()
        return self.game

    def ask_new_game(self) -> GameState:
        """
        Ask for a free save name, the number of players and their names.
        If the first save cannot be written, ask for another name.
        """
        name = self._ask_save_name()

        counts = list(range(MIN_SESSION_PLAYERS, MAX_SESSION_PLAYERS + 1))
        choice = self.prompter.present_menu(self.messages.lookup("PROMPT_PLAYER_COUNT"), [str(n) for n in counts])
        count = counts[choice - 1]

        names: List[str] = []
        while len(names) < count:
            prompt = format_message(self.messages, "PROMPT_PLAYER_NAME", number=len(names) + 1)
            player_name = self.prompter.read_line(prompt).strip()
            if not player_name or player_name in names:
                self._alert(Severity.WARN, "PLAYER_NAME_INVALID")
                continue
            names.append(player_name)

        while True:
            try:
                return self.new_game(name, names)
            except PersistenceError as exc:
                logger.error(f"Cannot create save {name!r}: {exc}")
                self._alert(Severity.ERROR, "SAVE_FAILED", name=name)
            name = self._ask_save_name()

    def _ask_save_name(self) -> str:
        while True:
            name = self.prompter.read_line(self.messages.lookup("PROMPT_GAME_NAME")).strip()
            try:
                taken = self.store.exists(name)
            except PersistenceError:
                self._alert(Severity.WARN, "INVALID_SAVE_NAME")
                continue
            if not taken:
                return name
            self._alert(Severity.WARN, "FILE_EXISTS", name=name)

    def ask_load_game(self) -> Optional[GameState]:
        """Let the user pick a saved game. Returns None if there is nothing to load."""
        saves = self.store.list_saves()
        if not saves:
            self._alert(Severity.WARN, "NO_SAVED_GAMES")
            return None

        choice = self.prompter.present_menu(self.messages.lookup("CHOOSE_SAVED_GAME"), saves)
        try:
            return self.load_game(saves[choice - 1])
        except PersistenceError as exc:
            logger.error(f"Cannot load {saves[choice - 1]!r}: {exc}")
            self._alert(Severity.ERROR, "LOAD_FAILED", name=saves[choice - 1])
            return None

    # === PLAY ===

    def run(self) -> None:
        """Main menu loop of a session."""
        options = ["NEW_GAME", "LOAD_GAME", "EXIT"]
        labels = [self.messages.lookup(option) for option in options]

        while True:
            choice = options[self.prompter.present_menu(self.messages.lookup("MAIN_MENU_TITLE"), labels) - 1]
            if choice == "EXIT":
                break

            game = self.ask_load_game() if choice == "LOAD_GAME" else None
            if game is None:
                self.ask_new_game()

            if not self.play():
                break
            if not self.prompter.present_yes_no(self.messages.lookup("PLAY_AGAIN")):
                break

        self._alert(Severity.INFO, "GOODBYE")

    def play(self) -> bool:
        """
        Play the current game until it ends or a player quits.

        Returns True if the game finished (its save is then deleted),
        False if it was saved for later.
        """
        game = self.game
        if game is None:
            raise RuntimeError("No game to play: create or load one first")

        engine = TurnEngine(game, self.prompter, self.messages, self.dice)
        while not game.finished:
            outcome = engine.play_turn()
            if outcome is TurnOutcome.QUIT:
                if self._save_and_quit():
                    return False
                # Nothing was saved, so the game goes on
                continue
            if not game.finished and game.autosave:
                self._autosave()

        winner = game.get_player(game.winner)
        self._alert(Severity.INFO, "PLAYER_WINS", player=winner.name, cash=winner.cash)
        self.store.delete(self.save_name)
        return True

    def _autosave(self) -> None:
        try:
            self.store.save(self.game, self.save_name)
        except PersistenceError as exc:
            logger.warning(f"Autosave of {self.save_name!r} failed: {exc}")
            self._alert(Severity.WARN, "AUTOSAVE_FAILED")

    def _save_and_quit(self) -> bool:
        try:
            self.store.save(self.game, self.save_name)
        except PersistenceError as exc:
            logger.error(f"Saving {self.save_name!r} failed: {exc}")
            self._alert(Severity.ERROR, "SAVE_FAILED", name=self.save_name)
            return False
        self._alert(Severity.INFO, "GAME_SAVED", name=self.save_name)
        return True

    def _alert(self, severity: Severity, message_id: str, **params: object) -> None:
        self.prompter.present_alert(severity, format_message(self.messages, message_id, **params))
