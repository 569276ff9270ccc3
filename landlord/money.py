"""
Money movements and event logging.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of game events."""

    GAME_START = "game_start"
    GAME_LOADED = "game_loaded"
    TURN_START = "turn_start"
    DICE_ROLL = "dice_roll"
    MOVE = "move"
    PASS_GO = "pass_go"
    LAND = "land"

    PURCHASE = "purchase"
    SALE_TO_BANK = "sale_to_bank"
    MORTGAGE = "mortgage"
    PAY_OFF_MORTGAGE = "pay_off_mortgage"

    RENT_PAYMENT = "rent_payment"
    TAX_PAYMENT = "tax_payment"
    BANK_PAYMENT = "bank_payment"
    BANK_CREDIT = "bank_credit"
    PLAYER_PAYMENT = "player_payment"
    FREE_PARKING_PAYOUT = "free_parking_payout"

    CARD_DRAW = "card_draw"
    CARD_EFFECT = "card_effect"

    GO_TO_JAIL = "go_to_jail"
    JAIL_ATTEMPT = "jail_attempt"
    JAIL_RELEASE = "jail_release"

    LIQUIDATION = "liquidation"
    BANKRUPTCY = "bankruptcy"
    GAME_END = "game_end"

    TRADE_PROPOSED = "trade_proposed"
    TRADE_ACCEPTED = "trade_accepted"
    TRADE_REJECTED = "trade_rejected"
    TRADE_EXECUTED = "trade_executed"


@dataclass
class GameEvent:
    """A logged event in the game."""

    event_type: EventType
    player_id: Optional[int] = None
    details: Dict[str, Any] = field(default_factory=dict)

    def __repr__(self) -> str:
        player_str = f"P{self.player_id}" if self.player_id is not None else "System"
        return f"[{player_str}] {self.event_type.value}: {self.details}"


class EventLog:
    """Manages the game event log."""

    def __init__(self):
        self.events: List[GameEvent] = []

    def log(self, event_type: EventType, player_id: Optional[int] = None, **details: Any) -> None:
        """Log a game event."""
        event = GameEvent(event_type, player_id, details)
        self.events.append(event)
        logger.debug(repr(event))

    def get_events(self, event_type: Optional[EventType] = None) -> List[GameEvent]:
        """Get all logged events, optionally of one type."""
        if event_type is None:
            return self.events.copy()
        return [event for event in self.events if event.event_type == event_type]
