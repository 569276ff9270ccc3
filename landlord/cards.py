"""
Chance and Community Chest card system.
"""

import random
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

from landlord.exceptions import DeckEmptyError


class CardType(Enum):
    """Types of card effects."""

    MOVE_TO = "move_to"
    MOVE_SPACES = "move_spaces"
    COLLECT = "collect"
    PAY = "pay"
    COLLECT_PER_PROPERTY = "collect_per_property"
    PAY_PER_PROPERTY = "pay_per_property"
    COLLECT_FROM_PLAYERS = "collect_from_players"
    PAY_TO_PLAYERS = "pay_to_players"
    GO_TO_JAIL = "go_to_jail"
    GET_OUT_OF_JAIL = "get_out_of_jail"


CHANCE = "chance"
COMMUNITY_CHEST = "community_chest"


@dataclass(frozen=True)
class Card:
    """Represents a Chance or Community Chest card."""

    card_id: str
    text: str
    card_type: CardType
    value: int = 0
    target_position: Optional[int] = None
    collect_go: bool = True

    def __repr__(self) -> str:
        return f"Card('{self.card_id}')"


class Deck:
    """
    A deck drawn in a fixed cyclic order.

    The deck is shuffled once when the game is created. Drawn cards go back
    to the bottom after their effect is applied, except "get out of jail"
    cards, which stay with the player until used.
    """

    def __init__(self, name: str, cards: Iterable[Card], rng: Optional[random.Random] = None):
        self.name = name
        self.cards: List[Card] = list(cards)
        self.catalogue = {card.card_id: card for card in self.cards}
        if rng is not None:
            rng.shuffle(self.cards)

    @classmethod
    def restore(cls, name: str, catalogue: Iterable[Card], order: Iterable[str]) -> "Deck":
        """Rebuild a deck in a saved order without reshuffling."""
        deck = cls(name, catalogue)
        deck.cards = [deck.catalogue[card_id] for card_id in order]
        return deck

    def draw(self) -> Card:
        """Take the card at the top of the deck."""
        if not self.cards:
            raise DeckEmptyError(f"The {self.name} deck has no cards left")
        return self.cards.pop(0)

    def put_back(self, card: Card) -> None:
        """Return a card to the bottom of the deck."""
        self.cards.append(card)

    def get(self, card_id: str) -> Card:
        return self.catalogue[card_id]

    @property
    def order(self) -> List[str]:
        return [card.card_id for card in self.cards]

    def __len__(self) -> int:
        return len(self.cards)
