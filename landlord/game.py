"""
Main game state and economic rules.
"""

import logging
import random
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from landlord.board import Board
from landlord.cards import CHANCE, COMMUNITY_CHEST, Card, Deck
from landlord.cells import OwnableCell, Service, Station, Street
from landlord.config import BoardSpec, CardSpec, GameConfig, load_board_spec
from landlord.exceptions import InvalidActionError, PropertyOperationError
from landlord.interfaces import Messages
from landlord.money import EventLog, EventType
from landlord.player import PlayerState
from landlord.trade import Trade, TradeOffer

logger = logging.getLogger(__name__)

MIN_PLAYERS = 2
MAX_PLAYERS = 8


class AssetAction(Enum):
    """Ways of raising cash from an owned cell."""

    MORTGAGE = "mortgage"
    SELL = "sell"


class GameState:
    """
    Represents the complete state of a game.

    This is the aggregate root: it owns the roster, the board and both decks.
    Cells refer to their owner by player id and players refer to their cells
    by position.
    """

    def __init__(
        self,
        config: GameConfig,
        players: List[PlayerState],
        board: Board,
        chance_deck: Deck,
        community_chest_deck: Deck,
        rng: Optional[random.Random] = None,
    ):
        self.config = config
        self.players = players
        self.board = board
        self.chance_deck = chance_deck
        self.community_chest_deck = community_chest_deck
        self.rng = rng if rng is not None else random.Random(config.seed)
        self.event_log = EventLog()

        self.current_player_index = 0
        self.turn_number = 0
        self.autosave = True
        self.finished = False
        self.winner: Optional[int] = None
        self.free_parking_pot = 0

        self.last_dice_roll: Optional[Tuple[int, int]] = None

    # === ROSTER ===

    def get_player(self, player_id: int) -> PlayerState:
        return self.players[player_id]

    def get_current_player(self) -> PlayerState:
        """Get the player whose turn it is."""
        return self.players[self.current_player_index % len(self.players)]

    def get_active_players(self) -> List[PlayerState]:
        """Get all non-bankrupt players."""
        return [p for p in self.players if not p.is_bankrupt]

    def deck(self, name: str) -> Deck:
        if name == CHANCE:
            return self.chance_deck
        if name == COMMUNITY_CHEST:
            return self.community_chest_deck
        raise KeyError(name)

    # === DICE AND MOVEMENT ===

    def roll_dice(self) -> Tuple[int, int]:
        """Roll two dice with the game's random generator."""
        return self.rng.randint(1, 6), self.rng.randint(1, 6)

    def record_roll(self, player_id: int, dice: Tuple[int, int]) -> None:
        self.last_dice_roll = dice
        die1, die2 = dice
        self.event_log.log(
            EventType.DICE_ROLL,
            player_id=player_id,
            die1=die1,
            die2=die2,
            total=die1 + die2,
            doubles=die1 == die2,
        )

    def move_player(self, player_id: int, spaces: int, collect_go: bool = True) -> int:
        """
        Move a player by the specified number of spaces (negative moves backwards).
        Passing or landing on Go pays the salary once. Returns the new position.
        """
        player = self.players[player_id]
        old_position = player.position
        new_position = (old_position + spaces) % self.board.size

        if collect_go and spaces > 0 and old_position + spaces >= self.board.size:
            self._collect_go(player_id)

        player.position = new_position
        self.event_log.log(EventType.MOVE, player_id=player_id, origin=old_position, to=new_position, spaces=spaces)
        return new_position

    def move_player_to(self, player_id: int, position: int, collect_go: bool = True) -> None:
        """Move a player forward to a specific position."""
        player = self.players[player_id]
        old_position = player.position

        if collect_go and position < old_position:
            self._collect_go(player_id)

        player.position = position
        self.event_log.log(EventType.MOVE, player_id=player_id, origin=old_position, to=position, direct=True)

    def _collect_go(self, player_id: int) -> None:
        """Player collects the Go salary."""
        player = self.players[player_id]
        player.credit(self.config.go_salary)
        self.event_log.log(EventType.PASS_GO, player_id=player_id, amount=self.config.go_salary, balance=player.cash)

    # === JAIL ===

    def send_to_jail(self, player_id: int) -> None:
        """Send a player to jail. Go is never collected on the way."""
        player = self.players[player_id]
        player.position = self.board.jail_position
        player.in_jail = True
        player.jail_turns = 0
        player.consecutive_doubles = 0
        self.event_log.log(EventType.GO_TO_JAIL, player_id=player_id)
        logger.info(f"{player.name} was sent to jail")

    def release_from_jail(self, player_id: int, method: str) -> None:
        player = self.players[player_id]
        player.in_jail = False
        player.jail_turns = 0
        self.event_log.log(EventType.JAIL_RELEASE, player_id=player_id, method=method)

    def use_jail_card(self, player_id: int) -> Card:
        """
        Use a held "get out of jail" card; the card goes back to the bottom of its deck.

        Raises:
            InvalidActionError: the player is not in jail or holds no card
        """
        player = self.players[player_id]
        if not player.in_jail:
            raise InvalidActionError(f"{player.name} is not in jail")
        if not player.jail_cards:
            raise InvalidActionError(f"{player.name} holds no get out of jail card")

        deck_name, card_id = player.jail_cards.pop(0)
        deck = self.deck(deck_name)
        card = deck.get(card_id)
        deck.put_back(card)
        self.release_from_jail(player_id, method="card")
        return card

    # === PROPERTY OPERATIONS ===

    def _owned_cell(self, player_id: int, position: int) -> OwnableCell:
        cell = self.board.get_ownable(position)
        if cell is None or not cell.is_owned_by(player_id):
            raise PropertyOperationError("PROPERTY_NOT_OWNED", position)
        return cell

    def purchase(self, player_id: int, position: int) -> None:
        """
        Player buys an unowned cell from the bank at face price.

        Raises:
            PropertyOperationError: cell not for sale, already owned, or unaffordable
        """
        cell = self.board.get_ownable(position)
        if cell is None:
            raise PropertyOperationError("PROPERTY_NOT_FOR_SALE", position)
        if cell.is_owned():
            raise PropertyOperationError("PROPERTY_ALREADY_OWNED", position)

        player = self.players[player_id]
        if not player.can_afford(cell.price):
            raise PropertyOperationError("PLAYER_CANT_AFFORD", position)

        player.debit(cell.price)
        player.add_property(position)
        cell.owner_id = player_id

        self.event_log.log(
            EventType.PURCHASE,
            player_id=player_id,
            property=cell.name,
            position=position,
            price=cell.price,
            balance=player.cash,
        )
        logger.info(f"{player.name} bought {cell.name} for {cell.price}")

    def mortgage_property(self, player_id: int, position: int) -> None:
        """
        Mortgage an owned cell; the owner receives its mortgage value.

        Raises:
            PropertyOperationError: not owned by the player, or already mortgaged
        """
        cell = self._owned_cell(player_id, position)
        if cell.is_mortgaged:
            raise PropertyOperationError("PROPERTY_ALREADY_MORTGAGED", position)

        player = self.players[player_id]
        player.credit(cell.mortgage_value)
        cell.is_mortgaged = True

        self.event_log.log(
            EventType.MORTGAGE,
            player_id=player_id,
            property=cell.name,
            position=position,
            value=cell.mortgage_value,
            balance=player.cash,
        )
        logger.info(f"{player.name} mortgaged {cell.name} for {cell.mortgage_value}")

    def pay_off_cost(self, position: int) -> int:
        cell = self.board.get_ownable(position)
        return int(cell.mortgage_value * (1 + self.config.mortgage_interest_rate))

    def pay_off_mortgage(self, player_id: int, position: int) -> None:
        """
        Pay the bank to lift a mortgage.

        Raises:
            PropertyOperationError: not owned, not mortgaged, or unaffordable
        """
        cell = self._owned_cell(player_id, position)
        if not cell.is_mortgaged:
            raise PropertyOperationError("PROPERTY_NOT_MORTGAGED", position)

        cost = self.pay_off_cost(position)
        player = self.players[player_id]
        if not player.can_afford(cost):
            raise PropertyOperationError("PLAYER_CANT_AFFORD", position)

        player.debit(cost)
        cell.is_mortgaged = False

        self.event_log.log(
            EventType.PAY_OFF_MORTGAGE,
            player_id=player_id,
            property=cell.name,
            position=position,
            cost=cost,
            balance=player.cash,
        )
        logger.info(f"{player.name} paid off the mortgage on {cell.name}")

    def sell_to_bank(self, player_id: int, position: int) -> None:
        """
        Sell an unmortgaged cell back to the bank at its price.

        Raises:
            PropertyOperationError: not owned by the player, or mortgaged
        """
        cell = self._owned_cell(player_id, position)
        if cell.is_mortgaged:
            raise PropertyOperationError("PROPERTY_CANT_SELL_MORTGAGED", position)

        player = self.players[player_id]
        player.credit(cell.price)
        player.remove_property(position)
        cell.owner_id = None

        self.event_log.log(
            EventType.SALE_TO_BANK,
            player_id=player_id,
            property=cell.name,
            position=position,
            price=cell.price,
            balance=player.cash,
        )
        logger.info(f"{player.name} sold {cell.name} to the bank for {cell.price}")

    def liquidation_options(self, player_id: int) -> List[Tuple[AssetAction, int]]:
        """Every mortgage or sale still available to a player short of cash."""
        options: List[Tuple[AssetAction, int]] = []
        for position in self.players[player_id].properties:
            cell = self.board.get_ownable(position)
            if not cell.is_mortgaged:
                options.append((AssetAction.MORTGAGE, position))
                options.append((AssetAction.SELL, position))
        return options

    # === RENT ===

    def calculate_due(self, position: int, dice_total: Optional[int] = None) -> int:
        """
        Calculate the amount owed for landing on a cell.

        Args:
            position: Position of the cell
            dice_total: Dice total used for services (defaults to the last roll)

        Returns:
            Amount due; 0 for bank-owned or mortgaged cells
        """
        cell = self.board.get_ownable(position)
        if cell is None or not cell.is_owned() or cell.is_mortgaged:
            return 0

        owner_id = cell.owner_id
        if isinstance(cell, Street):
            return cell.rent_due(
                self.board.owns_group(owner_id, cell.group),
                self.config.full_group_rent_multiplier,
            )
        if isinstance(cell, Station):
            return cell.fare(self.board.count_owned(Station, owner_id), self.config.station_fares)
        if isinstance(cell, Service):
            if dice_total is None:
                dice_total = sum(self.last_dice_roll) if self.last_dice_roll else 0
            return cell.fare(dice_total, self.board.count_owned(Service, owner_id), self.config.service_multipliers)
        return 0

    def summary(self, position: int, messages: Messages) -> str:
        """Status line of a cell, including what it currently earns."""
        return self.board.get_cell(position).summary(messages, self.calculate_due(position))

    # === MONEY ===

    def transfer(self, payer_id: int, amount: int, creditor_id: Optional[int] = None) -> bool:
        """
        Move money from a player to another player, or to the bank when
        ``creditor_id`` is None. Returns False, changing nothing, when the
        payer cannot cover the full amount.
        """
        payer = self.players[payer_id]
        if not payer.can_afford(amount):
            return False

        payer.debit(amount)
        if creditor_id is not None:
            creditor = self.players[creditor_id]
            creditor.credit(amount)
            self.event_log.log(
                EventType.PLAYER_PAYMENT,
                player_id=payer_id,
                creditor=creditor_id,
                amount=amount,
                payer_balance=payer.cash,
                creditor_balance=creditor.cash,
            )
        else:
            if self.config.free_parking_pot:
                self.free_parking_pot += amount
            self.event_log.log(EventType.BANK_PAYMENT, player_id=payer_id, amount=amount, balance=payer.cash)
        return True

    def credit_from_bank(self, player_id: int, amount: int) -> None:
        player = self.players[player_id]
        player.credit(amount)
        self.event_log.log(EventType.BANK_CREDIT, player_id=player_id, amount=amount, balance=player.cash)

    def collect_free_parking(self, player_id: int) -> int:
        """Pay the accumulated pot to a player. Returns the amount paid."""
        amount = self.free_parking_pot
        if amount:
            self.players[player_id].credit(amount)
            self.free_parking_pot = 0
            self.event_log.log(EventType.FREE_PARKING_PAYOUT, player_id=player_id, amount=amount)
        return amount

    def total_cash(self) -> int:
        """Sum of all active players' balances."""
        return sum(p.cash for p in self.get_active_players())

    def net_worth(self, player_id: int) -> int:
        """A player's cash plus the current value of every cell they own."""
        player = self.players[player_id]
        return player.cash + sum(self.board.get_ownable(pos).current_value for pos in player.properties)

    # === BANKRUPTCY ===

    def declare_bankruptcy(self, player_id: int, creditor_id: Optional[int] = None) -> None:
        """
        Player is bankrupt.

        If creditor is specified, their cash, cells (mortgages kept) and jail
        cards go to the creditor. Otherwise everything goes back to the bank:
        cells become unowned with their mortgages cleared and jail cards
        return to the bottom of their decks.
        """
        player = self.players[player_id]
        properties = list(player.properties)

        for position in properties:
            cell = self.board.get_ownable(position)
            if creditor_id is not None:
                cell.owner_id = creditor_id
                self.players[creditor_id].add_property(position)
            else:
                cell.owner_id = None
                cell.is_mortgaged = False
        player.properties.clear()

        if creditor_id is not None:
            creditor = self.players[creditor_id]
            creditor.credit(player.cash)
            creditor.jail_cards.extend(player.jail_cards)
        else:
            for deck_name, card_id in player.jail_cards:
                deck = self.deck(deck_name)
                deck.put_back(deck.get(card_id))
        player.jail_cards.clear()

        lost_cash = player.cash
        player.cash = 0
        player.in_jail = False
        player.jail_turns = 0
        player.consecutive_doubles = 0
        player.is_bankrupt = True

        self.event_log.log(
            EventType.BANKRUPTCY,
            player_id=player_id,
            creditor=creditor_id,
            properties=properties,
            cash=lost_cash,
        )
        logger.info(f"{player.name} is bankrupt (creditor: {creditor_id if creditor_id is not None else 'bank'})")

        self.check_winner()

    def check_winner(self) -> Optional[int]:
        """Finish the game once exactly one player is left standing."""
        active = self.get_active_players()
        if len(active) == 1 and not self.finished:
            self.finished = True
            self.winner = active[0].player_id
            self.event_log.log(EventType.GAME_END, player_id=self.winner, winner=active[0].name)
            logger.info(f"{active[0].name} wins the game")
        return self.winner

    # === TURN CURSOR ===

    def end_turn(self) -> None:
        """End the current player's turn and advance to the next non-bankrupt player."""
        current = self.get_current_player()
        current.consecutive_doubles = 0
        self.last_dice_roll = None

        for _ in range(len(self.players)):
            self.current_player_index = (self.current_player_index + 1) % len(self.players)
            if not self.get_current_player().is_bankrupt:
                break

        self.turn_number += 1
        self.event_log.log(EventType.TURN_START, player_id=self.get_current_player().player_id, turn=self.turn_number)

    # === TRADING ===

    def validate_trade_offer(self, player_id: int, offer: TradeOffer) -> Tuple[bool, str]:
        """
        Validate that a player can offer the specified items.

        Returns:
            (valid, error_message) tuple
        """
        player = self.players[player_id]

        if player.is_bankrupt:
            return False, f"{player.name} is bankrupt"

        if offer.cash < 0 or offer.cash > player.cash:
            return False, f"Insufficient cash: has ${player.cash}, offering ${offer.cash}"

        if offer.jail_cards > len(player.jail_cards):
            return False, f"Insufficient jail cards: has {len(player.jail_cards)}, offering {offer.jail_cards}"

        for pos in offer.properties:
            if pos not in player.properties:
                return False, f"Player doesn't own property at position {pos}"

        return True, ""

    def execute_trade(self, trade: Trade) -> bool:
        """
        Execute an accepted trade, transferring all items atomically.

        Returns:
            True if successful, False if validation failed
        """
        if not trade.is_accepted:
            return False

        for player_id, offer in ((trade.proposer_id, trade.proposer_offer), (trade.recipient_id, trade.recipient_offer)):
            valid, error = self.validate_trade_offer(player_id, offer)
            if not valid:
                self.event_log.log(EventType.TRADE_EXECUTED, player_id=None, success=False, error=error)
                return False

        proposer = self.players[trade.proposer_id]
        recipient = self.players[trade.recipient_id]
        self._hand_over(proposer, recipient, trade.proposer_offer)
        self._hand_over(recipient, proposer, trade.recipient_offer)

        self.event_log.log(
            EventType.TRADE_EXECUTED,
            player_id=None,
            success=True,
            proposer=trade.proposer_id,
            recipient=trade.recipient_id,
            proposer_gave=str(trade.proposer_offer),
            recipient_gave=str(trade.recipient_offer),
        )
        logger.info(f"Trade between {proposer.name} and {recipient.name} executed")
        return True

    def _hand_over(self, giver: PlayerState, receiver: PlayerState, offer: TradeOffer) -> None:
        giver.debit(offer.cash)
        receiver.credit(offer.cash)

        for pos in offer.properties:
            giver.remove_property(pos)
            receiver.add_property(pos)
            self.board.get_ownable(pos).owner_id = receiver.player_id

        for _ in range(offer.jail_cards):
            receiver.jail_cards.append(giver.jail_cards.pop(0))


def build_deck(name: str, specs: Sequence[CardSpec], board: Board, rng: Optional[random.Random]) -> Deck:
    """Turn card data into a deck, resolving named targets to board positions."""
    cards = []
    for spec in specs:
        target = spec.target_position
        if spec.target is not None:
            target = board.position_of(spec.target)
        cards.append(
            Card(
                card_id=spec.id,
                text=spec.text,
                card_type=spec.card_type,
                value=spec.value,
                target_position=target,
                collect_go=spec.collect_go,
            )
        )
    return Deck(name, cards, rng)


def create_game(
    config: GameConfig,
    player_names: Sequence[str],
    board_spec: Optional[BoardSpec] = None,
) -> GameState:
    """
    Create a new game with the specified configuration and players.

    Args:
        config: Game configuration
        player_names: Unique player names, in turn order
        board_spec: Board data; loaded from ``config.board_file`` when None

    Returns:
        Initialized GameState
    """
    names = [name.strip() for name in player_names]
    if not MIN_PLAYERS <= len(names) <= MAX_PLAYERS:
        raise ValueError(f"Game requires {MIN_PLAYERS}-{MAX_PLAYERS} players, got {len(names)}")
    if any(not name for name in names):
        raise ValueError("Player names cannot be empty")
    if len(set(names)) != len(names):
        raise ValueError("Player names must be unique")

    if board_spec is None:
        board_spec = load_board_spec(config.board_file)

    rng = random.Random(config.seed)
    board = Board.from_spec(board_spec, config)
    players = [PlayerState(i, name, config.starting_cash) for i, name in enumerate(names)]

    game = GameState(
        config,
        players,
        board,
        build_deck(CHANCE, board_spec.chance, board, rng),
        build_deck(COMMUNITY_CHEST, board_spec.community_chest, board, rng),
        rng,
    )
    game.event_log.log(
        EventType.GAME_START,
        players=names,
        starting_cash=config.starting_cash,
        seed=config.seed,
    )
    logger.info(f"New game with players: {', '.join(names)}")
    return game
