"""
Custom exception hierarchy for the landlord engine.

Provides typed errors that can be handled consistently across
the engine, the persistence layer and the console session.
"""

from typing import Optional


class LandlordError(Exception):
    """Base exception for all game-related errors."""


class ConfigurationError(LandlordError):
    """Board, card or language data is missing or malformed."""


class InvalidActionError(LandlordError):
    """Action is not legal in the current state."""


class PropertyOperationError(InvalidActionError):
    """
    A property operation was refused (mortgage twice, sell a mortgaged cell...).

    ``message_id`` is the localisation id of the warning shown to the player.
    """

    def __init__(self, message_id: str, position: Optional[int] = None):
        super().__init__(message_id)
        self.message_id = message_id
        self.position = position


class InsufficientFundsError(InvalidActionError):
    """A debit exceeds the player's balance."""

    def __init__(self, player_id: int, amount: int, balance: int):
        super().__init__(f"Player {player_id} cannot pay {amount} (balance {balance})")
        self.player_id = player_id
        self.amount = amount
        self.balance = balance


class DeckEmptyError(LandlordError):
    """Every card of a deck is held by players."""


class PersistenceError(LandlordError):
    """Saving or loading a game failed."""


class SaveNotFoundError(PersistenceError):
    """The named save does not exist."""


class SaveExistsError(PersistenceError):
    """A save with this name already exists."""
