from dataclasses import dataclass, field
from typing import List

from landlord.money import EventLog, EventType


@dataclass
class TradeOffer:
    """
    Represents items offered in a trade.
    """

    cash: int = 0
    properties: List[int] = field(default_factory=list)  # Cell positions
    jail_cards: int = 0  # Number of "get out of jail" cards

    def __repr__(self) -> str:
        items = []
        if self.cash > 0:
            items.append(f"${self.cash}")
        if self.properties:
            items.append(f"{len(self.properties)} properties")
        if self.jail_cards > 0:
            items.append(f"{self.jail_cards} jail cards")
        return " + ".join(items) if items else "nothing"


class Trade:
    """
    A trade between two players.

    Trade flow:
    1. Proposer creates trade with their offer and request
    2. Recipient accepts or rejects
    3. If accepted, the game transfers the items atomically
    """

    def __init__(
        self,
        proposer_id: int,
        recipient_id: int,
        proposer_offer: TradeOffer,
        recipient_offer: TradeOffer,
        event_log: EventLog,
    ):
        self.proposer_id = proposer_id
        self.recipient_id = recipient_id
        self.proposer_offer = proposer_offer
        self.recipient_offer = recipient_offer
        self.event_log = event_log

        self.is_accepted = False
        self.is_rejected = False

        self.event_log.log(
            EventType.TRADE_PROPOSED,
            player_id=proposer_id,
            recipient=recipient_id,
            offers=str(proposer_offer),
            requests=str(recipient_offer),
        )

    def accept(self) -> None:
        """Recipient accepts the trade."""
        self.is_accepted = True
        self.event_log.log(EventType.TRADE_ACCEPTED, player_id=self.recipient_id, proposer=self.proposer_id)

    def reject(self) -> None:
        """Recipient rejects the trade."""
        self.is_rejected = True
        self.event_log.log(EventType.TRADE_REJECTED, player_id=self.recipient_id, proposer=self.proposer_id)
