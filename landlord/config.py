"""
Game configuration settings and board data files.
"""

import json
from dataclasses import asdict, dataclass, fields
from importlib import resources
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, Field, ValidationError, model_validator

from landlord.cards import CardType
from landlord.cells import OWNABLE_KINDS, CellKind
from landlord.exceptions import ConfigurationError


@dataclass
class GameConfig:
    """Rules for one game. Persisted with every save."""

    starting_cash: int = 1500
    go_salary: int = 200
    jail_fine: int = 50
    max_jail_turns: int = 3
    max_doubles: int = 3

    free_parking_pot: bool = False

    mortgage_rate: float = 0.5
    mortgage_interest_rate: float = 0.0

    full_group_rent_multiplier: int = 2
    station_fares: Tuple[int, ...] = (25, 50, 100, 200)
    service_multipliers: Tuple[int, ...] = (4, 10)

    seed: Optional[int] = None
    board_file: Optional[str] = None

    def __post_init__(self) -> None:
        self.station_fares = tuple(self.station_fares)
        self.service_multipliers = tuple(self.service_multipliers)
        if not 0 < self.mortgage_rate <= 1:
            raise ConfigurationError(f"mortgage_rate must be in (0, 1], got {self.mortgage_rate}")
        if not self.station_fares or not self.service_multipliers:
            raise ConfigurationError("Fare schedules cannot be empty")
        if self.max_jail_turns < 1 or self.max_doubles < 1:
            raise ConfigurationError("max_jail_turns and max_doubles must be positive")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["station_fares"] = list(self.station_fares)
        data["service_multipliers"] = list(self.service_multipliers)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameConfig":
        """Build a config from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


class CellSpec(BaseModel):
    """One board cell as written in the board data file."""

    kind: CellKind
    name: str = Field(min_length=1)
    price: Optional[int] = Field(default=None, gt=0)
    rent: Optional[int] = Field(default=None, ge=0)
    group_rent: Optional[int] = Field(default=None, ge=0)
    group: Optional[str] = None
    mortgage_value: Optional[int] = Field(default=None, gt=0)
    amount: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_kind_fields(self) -> "CellSpec":
        if self.kind in OWNABLE_KINDS and self.price is None:
            raise ValueError(f"{self.kind.value} '{self.name}' needs a price")
        if self.kind == CellKind.STREET and (self.group is None or self.rent is None):
            raise ValueError(f"street '{self.name}' needs a group and a rent")
        if self.kind == CellKind.TAX and self.amount is None:
            raise ValueError(f"tax '{self.name}' needs an amount")
        return self


class CardSpec(BaseModel):
    """One Chance or Community Chest card as written in the board data file."""

    id: str = Field(min_length=1)
    text: str
    card_type: CardType
    value: int = 0
    target: Optional[str] = None
    target_position: Optional[int] = Field(default=None, ge=0)
    collect_go: bool = True

    @model_validator(mode="after")
    def check_target(self) -> "CardSpec":
        if self.card_type == CardType.MOVE_TO and self.target is None and self.target_position is None:
            raise ValueError(f"card '{self.id}' moves the player but has no target")
        return self


class BoardSpec(BaseModel):
    """The whole board data file: cells in board order plus both decks."""

    cells: List[CellSpec] = Field(min_length=2)
    chance: List[CardSpec] = Field(min_length=1)
    community_chest: List[CardSpec] = Field(min_length=1)

    @model_validator(mode="after")
    def check_board(self) -> "BoardSpec":
        if self.cells[0].kind != CellKind.GO:
            raise ValueError("the first cell of the board must be the go cell")
        kinds = [cell.kind for cell in self.cells]
        for required in (CellKind.GO, CellKind.JAIL):
            if kinds.count(required) != 1:
                raise ValueError(f"board needs exactly one {required.value} cell")

        names = [cell.name for cell in self.cells]
        if len(set(names)) != len(names):
            raise ValueError("cell names must be unique")

        for deck_name, cards in (("chance", self.chance), ("community_chest", self.community_chest)):
            ids = [card.id for card in cards]
            if len(set(ids)) != len(ids):
                raise ValueError(f"card ids in the {deck_name} deck must be unique")
            for card in cards:
                if card.target is not None and card.target not in names:
                    raise ValueError(f"card '{card.id}' targets unknown cell '{card.target}'")
                if card.target_position is not None and card.target_position >= len(self.cells):
                    raise ValueError(f"card '{card.id}' targets a position outside the board")
        return self


def default_board_path() -> Path:
    """Path of the bundled standard board."""
    return Path(str(resources.files("landlord") / "data" / "board.json"))


def load_board_spec(path: Optional[Union[str, Path]] = None) -> BoardSpec:
    """
    Load and validate a board data file.

    Args:
        path: JSON file to read; the bundled standard board when None

    Raises:
        ConfigurationError: the file is unreadable, not JSON, or invalid
    """
    path = Path(path) if path is not None else default_board_path()
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read board file {path}: {exc}") from exc

    try:
        return BoardSpec.model_validate(json.loads(raw))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Board file {path} is not valid JSON: {exc}") from exc
    except ValidationError as exc:
        raise ConfigurationError(f"Board file {path} is invalid: {exc}") from exc
