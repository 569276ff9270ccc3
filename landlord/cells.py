"""
Board cell definitions and types.

The set of variants is closed: every cell class is registered in
``CELL_TYPES`` under its ``CellKind`` tag, and code that dispatches on
cells switches on ``cell.kind``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Dict, Optional, Sequence, Type

from landlord.interfaces import Messages


class CellKind(Enum):
    """Types of cells on the board."""

    GO = "go"
    STREET = "street"
    STATION = "station"
    SERVICE = "service"
    TAX = "tax"
    CHANCE = "chance"
    COMMUNITY_CHEST = "community_chest"
    JAIL = "jail"
    GO_TO_JAIL = "go_to_jail"
    FREE_PARKING = "free_parking"


OWNABLE_KINDS = frozenset({CellKind.STREET, CellKind.STATION, CellKind.SERVICE})


@dataclass
class Cell:
    """Base class for a board cell."""

    kind: ClassVar[CellKind]

    name: str
    position: int

    def summary(self, messages: Messages, due: int = 0) -> str:
        return f"[{self.name}]"

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', position={self.position})"


@dataclass(repr=False)
class OwnableCell(Cell):
    """A cell that can be bought, mortgaged and sold back to the bank."""

    price: int = 0
    mortgage_value: int = 0
    owner_id: Optional[int] = None
    is_mortgaged: bool = False

    def is_owned(self) -> bool:
        """Check if the cell is owned by any player."""
        return self.owner_id is not None

    def is_owned_by(self, player_id: int) -> bool:
        return self.owner_id == player_id

    @property
    def current_value(self) -> int:
        """Value of the cell to its owner: the mortgage value while mortgaged."""
        return self.mortgage_value if self.is_mortgaged else self.price

    def summary(self, messages: Messages, due: int = 0) -> str:
        """
        Human-readable status of this cell.

        Shows the income it currently earns and whether it is mortgaged.
        """
        mortgaged = messages.lookup("MORTGAGED")
        if self.is_mortgaged:
            return f"[{self.name}]: {mortgaged.upper()}"
        return (
            f"[{self.name}]: {messages.lookup('INCOME')}=({due}) ~ "
            f"{mortgaged}={messages.lookup('NO')}"
        )


@dataclass(repr=False)
class Street(OwnableCell):
    """A street belonging to a colour group."""

    kind: ClassVar[CellKind] = CellKind.STREET

    group: str = ""
    rent: int = 0
    group_rent: Optional[int] = None

    def rent_due(self, owns_group: bool, group_multiplier: int) -> int:
        """
        Calculate rent for this street.

        Args:
            owns_group: Whether the owner holds every street of the group, none mortgaged
            group_multiplier: Multiplier used when no explicit group rent is configured

        Returns:
            Rent amount
        """
        if not owns_group:
            return self.rent
        if self.group_rent is not None:
            return self.group_rent
        return self.rent * group_multiplier


@dataclass(repr=False)
class Station(OwnableCell):
    """A station; its fare grows with the number of stations the owner holds."""

    kind: ClassVar[CellKind] = CellKind.STATION

    def fare(self, stations_owned: int, fares: Sequence[int]) -> int:
        if stations_owned <= 0:
            return 0
        return fares[min(stations_owned, len(fares)) - 1]


@dataclass(repr=False)
class Service(OwnableCell):
    """A service company; its fare is a multiple of the last dice roll."""

    kind: ClassVar[CellKind] = CellKind.SERVICE

    def fare(self, dice_total: int, services_owned: int, multipliers: Sequence[int]) -> int:
        if services_owned <= 0:
            return 0
        return dice_total * multipliers[min(services_owned, len(multipliers)) - 1]


@dataclass(repr=False)
class Tax(Cell):
    """A tax cell paid to the bank."""

    kind: ClassVar[CellKind] = CellKind.TAX

    amount: int = 0


@dataclass(repr=False)
class Go(Cell):
    kind: ClassVar[CellKind] = CellKind.GO


@dataclass(repr=False)
class Chance(Cell):
    kind: ClassVar[CellKind] = CellKind.CHANCE


@dataclass(repr=False)
class CommunityChest(Cell):
    kind: ClassVar[CellKind] = CellKind.COMMUNITY_CHEST


@dataclass(repr=False)
class Jail(Cell):
    """The Jail / Just Visiting cell."""

    kind: ClassVar[CellKind] = CellKind.JAIL


@dataclass(repr=False)
class GoToJail(Cell):
    kind: ClassVar[CellKind] = CellKind.GO_TO_JAIL


@dataclass(repr=False)
class FreeParking(Cell):
    kind: ClassVar[CellKind] = CellKind.FREE_PARKING


CELL_TYPES: Dict[CellKind, Type[Cell]] = {
    cls.kind: cls
    for cls in (Go, Street, Station, Service, Tax, Chance, CommunityChest, Jail, GoToJail, FreeParking)
}
