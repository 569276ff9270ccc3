from typing import Dict, List, Optional, Type, TypeVar

from landlord.cells import (
    CELL_TYPES,
    Cell,
    CellKind,
    OwnableCell,
    Service,
    Station,
    Street,
)
from landlord.config import BoardSpec, CellSpec, GameConfig

CellT = TypeVar("CellT", bound=Cell)


class Board:
    """A circular board of cells; its length is fixed by the data it is built from."""

    def __init__(self, cells: List[Cell]):
        self.cells = cells
        self.size = len(cells)
        self.groups: Dict[str, List[int]] = self._build_groups()
        self.jail_position = self.positions_of(CellKind.JAIL)[0]

    @classmethod
    def from_spec(cls, spec: BoardSpec, config: GameConfig) -> "Board":
        """Build the board, fixing every mortgage value once."""
        return cls([_make_cell(position, cell, config) for position, cell in enumerate(spec.cells)])

    def _build_groups(self) -> Dict[str, List[int]]:
        """Build a mapping of colour groups to street positions."""
        groups: Dict[str, List[int]] = {}
        for cell in self.cells:
            if isinstance(cell, Street):
                groups.setdefault(cell.group, []).append(cell.position)
        return groups

    def get_cell(self, position: int) -> Cell:
        """Get the cell at the given position."""
        return self.cells[position % self.size]

    def get_ownable(self, position: int) -> Optional[OwnableCell]:
        """Get an ownable cell, or None if the cell cannot be owned."""
        cell = self.get_cell(position)
        return cell if isinstance(cell, OwnableCell) else None

    def cells_of_type(self, cell_type: Type[CellT]) -> List[CellT]:
        return [cell for cell in self.cells if isinstance(cell, cell_type)]

    def positions_of(self, kind: CellKind) -> List[int]:
        return [cell.position for cell in self.cells if cell.kind == kind]

    def position_of(self, name: str) -> int:
        for cell in self.cells:
            if cell.name == name:
                return cell.position
        raise KeyError(name)

    def get_group(self, group: str) -> List[int]:
        """Get all street positions in a colour group."""
        return self.groups.get(group, [])

    def count_owned(self, cell_type: Type[OwnableCell], owner_id: int) -> int:
        """
        How many cells of one type (stations, services) a player holds.

        Mortgaged cells still count toward the fare tier. Streets differ:
        one mortgaged street breaks the full-group rent (see ``owns_group``).
        """
        return sum(1 for cell in self.cells_of_type(cell_type) if cell.owner_id == owner_id)

    def owns_group(self, owner_id: int, group: str) -> bool:
        """
        Check if a player owns every street in a colour group.
        Returns False if any street in the group is mortgaged.
        """
        for position in self.get_group(group):
            cell = self.cells[position]
            if not isinstance(cell, OwnableCell) or cell.owner_id != owner_id or cell.is_mortgaged:
                return False
        return True


def _make_cell(position: int, spec: CellSpec, config: GameConfig) -> Cell:
    cell_type = CELL_TYPES[spec.kind]
    if cell_type is Street:
        return Street(
            spec.name,
            position,
            price=spec.price,
            mortgage_value=_mortgage_value(spec, config),
            group=spec.group,
            rent=spec.rent,
            group_rent=spec.group_rent,
        )
    if cell_type in (Station, Service):
        return cell_type(spec.name, position, price=spec.price, mortgage_value=_mortgage_value(spec, config))
    if spec.kind == CellKind.TAX:
        return cell_type(spec.name, position, amount=spec.amount)
    return cell_type(spec.name, position)


def _mortgage_value(spec: CellSpec, config: GameConfig) -> int:
    if spec.mortgage_value is not None:
        return spec.mortgage_value
    return int(spec.price * config.mortgage_rate)
