"""
Save and load complete games as JSON documents.

A save is self-contained: it carries the rules, every cell with its static
data and its ownership state, both decks with their card definitions and
current order, the roster and the random generator state. Loading a save
and rolling the game's own dice replays exactly what the saved game would
have played.
"""

import logging
import os
import random
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from landlord.board import Board
from landlord.cards import CHANCE, COMMUNITY_CHEST, Card, CardType, Deck
from landlord.cells import CELL_TYPES, Cell, CellKind, OwnableCell, Service, Station, Street, Tax
from landlord.config import GameConfig
from landlord.exceptions import ConfigurationError, PersistenceError, SaveExistsError, SaveNotFoundError
from landlord.game import GameState
from landlord.money import EventType
from landlord.player import PlayerState

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1
SAVE_SUFFIX = ".json"


class CellRecord(BaseModel):
    kind: CellKind
    name: str
    price: Optional[int] = None
    mortgage_value: Optional[int] = None
    group: Optional[str] = None
    rent: Optional[int] = None
    group_rent: Optional[int] = None
    amount: Optional[int] = None
    owner_id: Optional[int] = None
    is_mortgaged: bool = False


class CardRecord(BaseModel):
    card_id: str
    text: str
    card_type: CardType
    value: int = 0
    target_position: Optional[int] = None
    collect_go: bool = True


class DeckRecord(BaseModel):
    name: str
    cards: List[CardRecord]
    order: List[str]

    @model_validator(mode="after")
    def check_order(self) -> "DeckRecord":
        ids = {card.card_id for card in self.cards}
        unknown = [card_id for card_id in self.order if card_id not in ids]
        if unknown:
            raise ValueError(f"{self.name} deck order names unknown cards {unknown}")
        return self


class PlayerRecord(BaseModel):
    player_id: int
    name: str
    cash: int = Field(ge=0)
    position: int = Field(ge=0)
    in_jail: bool = False
    jail_turns: int = Field(default=0, ge=0)
    consecutive_doubles: int = Field(default=0, ge=0)
    is_bankrupt: bool = False
    properties: List[int] = Field(default_factory=list)
    jail_cards: List[Tuple[str, str]] = Field(default_factory=list)


class SaveDocument(BaseModel):
    """Everything needed to resume a game."""

    version: int = FORMAT_VERSION
    name: str
    saved_at: datetime
    config: Dict[str, Any]
    cells: List[CellRecord] = Field(min_length=2)
    chance: DeckRecord
    community_chest: DeckRecord
    players: List[PlayerRecord] = Field(min_length=1)
    current_player_index: int = Field(ge=0)
    turn_number: int = Field(default=0, ge=0)
    autosave: bool = True
    finished: bool = False
    winner: Optional[int] = None
    free_parking_pot: int = Field(default=0, ge=0)
    rng_state: List[Any]

    @model_validator(mode="after")
    def check_references(self) -> "SaveDocument":
        if self.version != FORMAT_VERSION:
            raise ValueError(f"unsupported save format version {self.version}")

        player_ids = [player.player_id for player in self.players]
        if player_ids != list(range(len(self.players))):
            raise ValueError("player ids must follow roster order")
        if self.current_player_index >= len(self.players):
            raise ValueError("current player index is outside the roster")
        if self.winner is not None and self.winner not in player_ids:
            raise ValueError(f"winner {self.winner} is not in the roster")

        owned_by_cells = {
            (cell.owner_id, position)
            for position, cell in enumerate(self.cells)
            if cell.owner_id is not None
        }
        owned_by_players = {
            (player.player_id, position)
            for player in self.players
            for position in player.properties
        }
        if owned_by_cells != owned_by_players:
            raise ValueError("cell owners and player properties disagree")

        decks = {CHANCE: self.chance, COMMUNITY_CHEST: self.community_chest}
        for player in self.players:
            if player.position >= len(self.cells):
                raise ValueError(f"{player.name} stands outside the board")
            for deck_name, card_id in player.jail_cards:
                deck = decks.get(deck_name)
                if deck is None or card_id not in {card.card_id for card in deck.cards}:
                    raise ValueError(f"{player.name} holds unknown card {deck_name}/{card_id}")
        return self

    @classmethod
    def from_game(cls, game: GameState, name: str) -> "SaveDocument":
        version, internal, gauss_next = game.rng.getstate()
        return cls(
            name=name,
            saved_at=datetime.now(),
            config=game.config.to_dict(),
            cells=[_cell_record(cell) for cell in game.board.cells],
            chance=_deck_record(game.chance_deck),
            community_chest=_deck_record(game.community_chest_deck),
            players=[_player_record(player) for player in game.players],
            current_player_index=game.current_player_index,
            turn_number=game.turn_number,
            autosave=game.autosave,
            finished=game.finished,
            winner=game.winner,
            free_parking_pot=game.free_parking_pot,
            rng_state=[version, list(internal), gauss_next],
        )

    def to_game(self) -> GameState:
        config = GameConfig.from_dict(self.config)
        board = Board([_cell_from_record(position, record) for position, record in enumerate(self.cells)])
        players = [_player_from_record(record) for record in self.players]

        rng = random.Random()
        version, internal, gauss_next = self.rng_state
        rng.setstate((version, tuple(internal), gauss_next))

        game = GameState(
            config,
            players,
            board,
            _deck_from_record(self.chance),
            _deck_from_record(self.community_chest),
            rng,
        )
        game.current_player_index = self.current_player_index
        game.turn_number = self.turn_number
        game.autosave = self.autosave
        game.finished = self.finished
        game.winner = self.winner
        game.free_parking_pot = self.free_parking_pot
        return game


def _cell_record(cell: Cell) -> CellRecord:
    record = CellRecord(kind=cell.kind, name=cell.name)
    if isinstance(cell, OwnableCell):
        record.price = cell.price
        record.mortgage_value = cell.mortgage_value
        record.owner_id = cell.owner_id
        record.is_mortgaged = cell.is_mortgaged
    if isinstance(cell, Street):
        record.group = cell.group
        record.rent = cell.rent
        record.group_rent = cell.group_rent
    if isinstance(cell, Tax):
        record.amount = cell.amount
    return record


def _cell_from_record(position: int, record: CellRecord) -> Cell:
    cell_type = CELL_TYPES[record.kind]
    if cell_type is Street:
        cell = Street(
            record.name,
            position,
            price=record.price or 0,
            mortgage_value=record.mortgage_value or 0,
            group=record.group or "",
            rent=record.rent or 0,
            group_rent=record.group_rent,
        )
    elif cell_type in (Station, Service):
        cell = cell_type(record.name, position, price=record.price or 0, mortgage_value=record.mortgage_value or 0)
    elif cell_type is Tax:
        return Tax(record.name, position, amount=record.amount or 0)
    else:
        return cell_type(record.name, position)

    cell.owner_id = record.owner_id
    cell.is_mortgaged = record.is_mortgaged
    return cell


def _deck_record(deck: Deck) -> DeckRecord:
    cards = [
        CardRecord(
            card_id=card.card_id,
            text=card.text,
            card_type=card.card_type,
            value=card.value,
            target_position=card.target_position,
            collect_go=card.collect_go,
        )
        for card in deck.catalogue.values()
    ]
    return DeckRecord(name=deck.name, cards=cards, order=deck.order)


def _deck_from_record(record: DeckRecord) -> Deck:
    catalogue = [Card(**card.model_dump()) for card in record.cards]
    return Deck.restore(record.name, catalogue, record.order)


def _player_record(player: PlayerState) -> PlayerRecord:
    return PlayerRecord(
        player_id=player.player_id,
        name=player.name,
        cash=player.cash,
        position=player.position,
        in_jail=player.in_jail,
        jail_turns=player.jail_turns,
        consecutive_doubles=player.consecutive_doubles,
        is_bankrupt=player.is_bankrupt,
        properties=list(player.properties),
        jail_cards=list(player.jail_cards),
    )


def _player_from_record(record: PlayerRecord) -> PlayerState:
    player = PlayerState(record.player_id, record.name, record.cash)
    player.position = record.position
    player.in_jail = record.in_jail
    player.jail_turns = record.jail_turns
    player.consecutive_doubles = record.consecutive_doubles
    player.is_bankrupt = record.is_bankrupt
    player.properties = list(record.properties)
    player.jail_cards = [tuple(card) for card in record.jail_cards]
    return player


class SaveStore:
    """
    Directory of saved games, one ``<name>.json`` file per game.

    Writes are atomic: the document goes to a temporary file in the same
    directory which then replaces the previous save.
    """

    def __init__(self, directory: Union[str, Path]):
        self.directory = Path(directory)

    def path_for(self, name: str) -> Path:
        name = name.strip()
        if not name or Path(name).name != name or name.startswith("."):
            raise PersistenceError(f"Invalid save name: {name!r}")
        return self.directory / f"{name}{SAVE_SUFFIX}"

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def list_saves(self) -> List[str]:
        """Names of all saved games, sorted."""
        if not self.directory.is_dir():
            return []
        return sorted(path.stem for path in self.directory.glob(f"*{SAVE_SUFFIX}"))

    def create(self, game: GameState, name: str) -> Path:
        """Save a new game under a name that must not be in use yet."""
        if self.exists(name):
            raise SaveExistsError(f"A save named {name!r} already exists")
        return self.save(game, name)

    def save(self, game: GameState, name: str) -> Path:
        """Write (or overwrite) the save for ``name``."""
        path = self.path_for(name)
        payload = SaveDocument.from_game(game, name.strip()).model_dump_json(indent=2)

        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.directory,
                prefix=f".{path.stem}.",
                suffix=".tmp",
                delete=False,
            ) as tmp:
                tmp_name = tmp.name
                tmp.write(payload)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise PersistenceError(f"Cannot write save {path}: {exc}") from exc

        logger.info(f"Saved game to {path}")
        return path

    def load(self, name: str) -> GameState:
        """
        Rebuild a saved game.

        Raises:
            SaveNotFoundError: no save with this name
            PersistenceError: the file is unreadable or corrupt
        """
        path = self.path_for(name)
        if not path.is_file():
            raise SaveNotFoundError(f"No save named {name!r} in {self.directory}")

        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise PersistenceError(f"Cannot read save {path}: {exc}") from exc

        try:
            document = SaveDocument.model_validate_json(raw)
            game = document.to_game()
        except ValidationError as exc:
            raise PersistenceError(f"Save {path} is corrupt: {exc}") from exc
        except (ConfigurationError, KeyError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Save {path} cannot be restored: {exc}") from exc

        game.event_log.log(EventType.GAME_LOADED, name=document.name, turn=game.turn_number)
        logger.info(f"Loaded game {document.name!r} at turn {game.turn_number}")
        return game

    def delete(self, name: str) -> None:
        path = self.path_for(name)
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise PersistenceError(f"Cannot delete save {path}: {exc}") from exc
        logger.info(f"Deleted save {path}")
