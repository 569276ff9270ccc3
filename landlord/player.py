"""
Player state and money ledger.
"""

from typing import List, Tuple

from landlord.exceptions import InsufficientFundsError


class PlayerState:
    """Represents the complete state of a player in the game."""

    def __init__(self, player_id: int, name: str, starting_cash: int):
        self.player_id = player_id
        self.name = name
        self.cash = starting_cash
        self.position = 0
        self.in_jail = False
        self.jail_turns = 0
        self.consecutive_doubles = 0
        self.is_bankrupt = False
        # Positions of owned cells, in order of acquisition
        self.properties: List[int] = []
        # (deck name, card id) of held "get out of jail" cards
        self.jail_cards: List[Tuple[str, str]] = []

    def can_afford(self, amount: int) -> bool:
        return self.cash >= amount

    def credit(self, amount: int) -> None:
        if amount < 0:
            raise ValueError(f"Cannot credit a negative amount: {amount}")
        self.cash += amount

    def debit(self, amount: int) -> None:
        """Remove money from the balance; never lets it go negative."""
        if amount < 0:
            raise ValueError(f"Cannot debit a negative amount: {amount}")
        if not self.can_afford(amount):
            raise InsufficientFundsError(self.player_id, amount, self.cash)
        self.cash -= amount

    def add_property(self, position: int) -> None:
        if position not in self.properties:
            self.properties.append(position)

    def remove_property(self, position: int) -> None:
        self.properties.remove(position)

    def __repr__(self) -> str:
        return (
            f"PlayerState(id={self.player_id}, name='{self.name}', "
            f"cash={self.cash}, position={self.position}, bankrupt={self.is_bankrupt})"
        )
