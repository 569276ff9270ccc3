"""
Turn engine: one player's turn as an explicit state machine.

    AWAITING_ROLL -> MOVING -> LANDED_ON_CELL -> TURN_OPTIONS -> END_OF_TURN

Every choice is delegated to the ``Prompter`` and every text goes through
``Messages`` by id. Payments that the player cannot cover trigger the
liquidation flow; if that still falls short the player is declared bankrupt
and the turn ends at once.
"""

import logging
from enum import Enum
from typing import Callable, Optional, Tuple

from landlord.cards import Card, CardType, Deck
from landlord.cells import Cell, CellKind, OwnableCell, Tax
from landlord.exceptions import DeckEmptyError, InvalidActionError, PropertyOperationError
from landlord.game import AssetAction, GameState
from landlord.interfaces import Messages, Prompter, Severity, format_message
from landlord.money import EventType
from landlord.player import PlayerState
from landlord.trade import Trade, TradeOffer

logger = logging.getLogger(__name__)

Dice = Tuple[int, int]


class TurnPhase(Enum):
    """States of a single turn."""

    AWAITING_ROLL = "awaiting_roll"
    MOVING = "moving"
    LANDED_ON_CELL = "landed_on_cell"
    TURN_OPTIONS = "turn_options"
    END_OF_TURN = "end_of_turn"
    DONE = "done"


class TurnOutcome(Enum):
    """How a turn ended."""

    COMPLETED = "completed"
    BANKRUPT = "bankrupt"
    QUIT = "quit"


class TurnOption(Enum):
    MANAGE_PROPERTIES = "TURN_OPTION_MANAGE"
    TRADE = "TURN_OPTION_TRADE"
    STATUS = "TURN_OPTION_STATUS"
    END_TURN = "TURN_OPTION_END_TURN"
    SAVE_AND_QUIT = "TURN_OPTION_SAVE_AND_QUIT"


class JailOption(Enum):
    PAY_FINE = "JAIL_OPTION_PAY_FINE"
    USE_CARD = "JAIL_OPTION_USE_CARD"
    ROLL = "JAIL_OPTION_ROLL"


class ManagementOption(Enum):
    MORTGAGE = "PROPERTY_MANAGEMENT_MORTGAGE"
    PAY_OFF = "PROPERTY_MANAGEMENT_PAY_OFF_MORTGAGE"
    SELL = "PROPERTY_MANAGEMENT_SELL"
    EXIT = "EXIT"


class TurnEngine:
    """
    Plays turns of a game.

    Args:
        game: The game to mutate
        prompter: Collaborator for every player choice
        messages: Message catalogue for the current language
        dice: Callable returning two dice; the game's own RNG when None
    """

    def __init__(
        self,
        game: GameState,
        prompter: Prompter,
        messages: Messages,
        dice: Optional[Callable[[], Dice]] = None,
    ):
        self.game = game
        self.prompter = prompter
        self.messages = messages
        self.dice = dice if dice is not None else game.roll_dice
        self._roll_again = False

        self._handlers = {
            CellKind.GO: self._resolve_go,
            CellKind.STREET: self._resolve_ownable,
            CellKind.STATION: self._resolve_ownable,
            CellKind.SERVICE: self._resolve_ownable,
            CellKind.TAX: self._resolve_tax,
            CellKind.CHANCE: self._resolve_chance,
            CellKind.COMMUNITY_CHEST: self._resolve_community_chest,
            CellKind.JAIL: self._resolve_jail,
            CellKind.GO_TO_JAIL: self._resolve_go_to_jail,
            CellKind.FREE_PARKING: self._resolve_free_parking,
        }
        missing = set(CellKind) - self._handlers.keys()
        if missing:
            raise RuntimeError(f"No landing handler for {sorted(k.value for k in missing)}")

    # === STATE MACHINE ===

    def play_turn(self) -> TurnOutcome:
        """Play the current player's turn to one of its terminal states."""
        game = self.game
        if game.finished:
            raise InvalidActionError("The game is already finished")

        player = game.get_current_player()
        self._roll_again = False
        quit_requested = False
        roll: Optional[Dice] = None
        phase = TurnPhase.AWAITING_ROLL

        self._alert(Severity.INFO, "TURN_START", player=player.name, cash=player.cash)

        while phase is not TurnPhase.DONE:
            if phase is not TurnPhase.END_OF_TURN and (player.is_bankrupt or game.finished):
                phase = TurnPhase.END_OF_TURN
                continue

            if phase is TurnPhase.AWAITING_ROLL:
                phase, roll = self._awaiting_roll(player)
            elif phase is TurnPhase.MOVING:
                self._move(player, roll)
                phase = TurnPhase.LANDED_ON_CELL
            elif phase is TurnPhase.LANDED_ON_CELL:
                self.resolve_cell(player)
                phase = TurnPhase.TURN_OPTIONS
            elif phase is TurnPhase.TURN_OPTIONS:
                quit_requested = not self.turn_options(player)
                phase = TurnPhase.END_OF_TURN
            elif phase is TurnPhase.END_OF_TURN:
                phase = self._end_of_turn(player, quit_requested)

        if player.is_bankrupt:
            return TurnOutcome.BANKRUPT
        if quit_requested:
            return TurnOutcome.QUIT
        return TurnOutcome.COMPLETED

    def _awaiting_roll(self, player: PlayerState) -> Tuple[TurnPhase, Optional[Dice]]:
        if player.in_jail:
            jailed = self._jail_turn(player)
            if jailed is not None:
                return jailed

        roll = self._roll(player)
        if roll[0] != roll[1]:
            player.consecutive_doubles = 0
            self._roll_again = False
            return TurnPhase.MOVING, roll

        player.consecutive_doubles += 1
        if player.consecutive_doubles >= self.game.config.max_doubles:
            self._roll_again = False
            self.game.send_to_jail(player.player_id)
            self._alert(Severity.WARN, "THREE_DOUBLES_JAIL", player=player.name)
            return TurnPhase.END_OF_TURN, None

        self._roll_again = True
        return TurnPhase.MOVING, roll

    def _end_of_turn(self, player: PlayerState, quit_requested: bool) -> TurnPhase:
        if self._roll_again and not (player.in_jail or player.is_bankrupt or self.game.finished):
            if quit_requested:
                # The same player rolls again when the game is resumed
                return TurnPhase.DONE
            self._alert(Severity.INFO, "ROLL_AGAIN", player=player.name)
            return TurnPhase.AWAITING_ROLL

        self.game.end_turn()
        return TurnPhase.DONE

    def _roll(self, player: PlayerState) -> Dice:
        roll = self.dice()
        self.game.record_roll(player.player_id, roll)
        logger.debug(f"{player.name} rolled {roll}")
        self._alert(Severity.INFO, "PLAYER_ROLLED", player=player.name, die1=roll[0], die2=roll[1])
        return roll

    def _move(self, player: PlayerState, roll: Dice) -> None:
        position = self.game.move_player(player.player_id, sum(roll))
        self._alert(Severity.INFO, "PLAYER_MOVED", player=player.name, cell=self.game.board.get_cell(position).name)

    # === JAIL ===

    def _jail_turn(self, player: PlayerState) -> Optional[Tuple[TurnPhase, Optional[Dice]]]:
        """
        Let a jailed player try to leave.

        Returns None when the player is free to roll normally, otherwise the
        next phase (and the roll that got them out, if any).
        """
        game = self.game
        fine = game.config.jail_fine
        options = [JailOption.PAY_FINE, JailOption.ROLL]
        if player.jail_cards:
            options.insert(1, JailOption.USE_CARD)

        title = format_message(
            self.messages,
            "JAIL_MENU",
            player=player.name,
            turns=game.config.max_jail_turns - player.jail_turns,
        )
        labels = [format_message(self.messages, option.value, fine=fine) for option in options]
        while True:
            choice = options[self.prompter.present_menu(title, labels) - 1]
            if choice is not JailOption.PAY_FINE or player.can_afford(fine):
                break
            # A voluntary fine is paid from cash only
            self._alert(Severity.WARN, "PLAYER_CANT_AFFORD")

        if choice is JailOption.PAY_FINE:
            game.transfer(player.player_id, fine)
            game.release_from_jail(player.player_id, method="fine")
            self._alert(Severity.TRANSACTION, "JAIL_FINE_PAID", player=player.name, fine=fine)
            return None

        if choice is JailOption.USE_CARD:
            game.use_jail_card(player.player_id)
            self._alert(Severity.INFO, "JAIL_CARD_USED", player=player.name)
            return None

        roll = self._roll(player)
        player.jail_turns += 1
        game.event_log.log(
            EventType.JAIL_ATTEMPT,
            player_id=player.player_id,
            attempt=player.jail_turns,
            doubles=roll[0] == roll[1],
        )

        if roll[0] == roll[1]:
            game.release_from_jail(player.player_id, method="doubles")
            self._alert(Severity.INFO, "JAIL_DOUBLES", player=player.name)
            return TurnPhase.MOVING, roll

        if player.jail_turns >= game.config.max_jail_turns:
            self._alert(Severity.WARN, "JAIL_FORCED_FINE", player=player.name, fine=fine)
            if not self.pay(player, fine):
                return TurnPhase.END_OF_TURN, None
            game.release_from_jail(player.player_id, method="forced_fine")
            return TurnPhase.MOVING, roll

        self._alert(Severity.INFO, "JAIL_STAY", player=player.name)
        return TurnPhase.TURN_OPTIONS, None

    # === LANDING ===

    def resolve_cell(self, player: PlayerState, cell: Optional[Cell] = None) -> None:
        """Apply the landing effect of ``cell`` (the player's current cell by default)."""
        if cell is None:
            cell = self.game.board.get_cell(player.position)
        self.game.event_log.log(EventType.LAND, player_id=player.player_id, cell=cell.name, position=cell.position)
        self._handlers[cell.kind](player, cell)

    def _resolve_ownable(self, player: PlayerState, cell: OwnableCell) -> None:
        game = self.game

        if not cell.is_owned():
            prompt = format_message(self.messages, "PROPERTY_ASK_BUY", property=cell.name, price=cell.price)
            if not self.prompter.present_yes_no(prompt):
                self._alert(Severity.INFO, "PLAYER_DONT_BUY_PROPERTY")
                return
            try:
                game.purchase(player.player_id, cell.position)
            except PropertyOperationError as exc:
                self._alert(Severity.WARN, exc.message_id)
                return
            self._alert(Severity.TRANSACTION, "PROPERTY_BOUGHT", player=player.name, property=cell.name, price=cell.price)
            return

        if cell.is_owned_by(player.player_id):
            if self.prompter.present_yes_no(self.messages.lookup("ASK_MANAGE_PROPERTY")):
                self.manage_property(player, cell.position)
            return

        due = game.calculate_due(cell.position)
        if due <= 0:
            self._alert(Severity.TRANSACTION, "PROPERTY_IS_MORTGAGED")
            return

        owner = game.get_player(cell.owner_id)
        self._alert(
            Severity.TRANSACTION,
            "SUMMARY_PLAYER_PAY_RENT",
            player=player.name,
            amount=due,
            owner=owner.name,
            property=cell.name,
        )
        if self.pay(player, due, owner.player_id):
            game.event_log.log(
                EventType.RENT_PAYMENT,
                player_id=player.player_id,
                owner=owner.player_id,
                property=cell.name,
                amount=due,
            )

    def _resolve_tax(self, player: PlayerState, cell: Tax) -> None:
        self._alert(Severity.TRANSACTION, "PLAYER_PAYS_TAX", player=player.name, amount=cell.amount, tax=cell.name)
        if self.pay(player, cell.amount):
            self.game.event_log.log(EventType.TAX_PAYMENT, player_id=player.player_id, tax=cell.name, amount=cell.amount)

    def _resolve_go(self, player: PlayerState, cell: Cell) -> None:
        # The salary is paid while moving, exactly once per pass
        pass

    def _resolve_jail(self, player: PlayerState, cell: Cell) -> None:
        if not player.in_jail:
            self._alert(Severity.INFO, "JUST_VISITING", player=player.name)

    def _resolve_go_to_jail(self, player: PlayerState, cell: Cell) -> None:
        self.game.send_to_jail(player.player_id)
        self._alert(Severity.WARN, "PLAYER_GOES_TO_JAIL", player=player.name)

    def _resolve_free_parking(self, player: PlayerState, cell: Cell) -> None:
        if not self.game.config.free_parking_pot:
            return
        amount = self.game.collect_free_parking(player.player_id)
        if amount:
            self._alert(Severity.TRANSACTION, "FREE_PARKING_COLLECT", player=player.name, amount=amount)

    def _resolve_chance(self, player: PlayerState, cell: Cell) -> None:
        self.draw_card(player, self.game.chance_deck)

    def _resolve_community_chest(self, player: PlayerState, cell: Cell) -> None:
        self.draw_card(player, self.game.community_chest_deck)

    # === CARDS ===

    def draw_card(self, player: PlayerState, deck: Deck) -> Optional[Card]:
        """Draw the next card of ``deck`` and apply it to ``player``."""
        try:
            card = deck.draw()
        except DeckEmptyError:
            self._alert(Severity.INFO, "DECK_EMPTY")
            return None

        self.game.event_log.log(EventType.CARD_DRAW, player_id=player.player_id, deck=deck.name, card=card.card_id)
        self._alert(Severity.INFO, "CARD_DRAWN", player=player.name, card=self.messages.lookup(card.text))
        self.apply_card(player, card, deck)
        return card

    def apply_card(self, player: PlayerState, card: Card, deck: Deck) -> None:
        """Execute the effect of a drawn card, then return it to the bottom of its deck."""
        game = self.game
        game.event_log.log(EventType.CARD_EFFECT, player_id=player.player_id, card=card.card_id, type=card.card_type.value)

        if card.card_type == CardType.GET_OUT_OF_JAIL:
            # Held by the player instead of going back to the deck
            player.jail_cards.append((deck.name, card.card_id))
            return

        try:
            self._card_effect(player, card)
        finally:
            deck.put_back(card)

    def _card_effect(self, player: PlayerState, card: Card) -> None:
        game = self.game
        pid = player.player_id

        if card.card_type == CardType.MOVE_TO:
            game.move_player_to(pid, card.target_position, card.collect_go)
            self.resolve_cell(player)

        elif card.card_type == CardType.MOVE_SPACES:
            game.move_player(pid, card.value, card.collect_go)
            self.resolve_cell(player)

        elif card.card_type == CardType.COLLECT:
            game.credit_from_bank(pid, card.value)

        elif card.card_type == CardType.PAY:
            self.pay(player, card.value)

        elif card.card_type == CardType.COLLECT_PER_PROPERTY:
            game.credit_from_bank(pid, card.value * len(player.properties))

        elif card.card_type == CardType.PAY_PER_PROPERTY:
            self.pay(player, card.value * len(player.properties))

        elif card.card_type == CardType.COLLECT_FROM_PLAYERS:
            for other in game.get_active_players():
                if other.player_id != pid:
                    self.pay(other, card.value, pid)

        elif card.card_type == CardType.PAY_TO_PLAYERS:
            for other in game.get_active_players():
                if other.player_id != pid and not self.pay(player, card.value, other.player_id):
                    break

        elif card.card_type == CardType.GO_TO_JAIL:
            game.send_to_jail(pid)
            self._alert(Severity.WARN, "PLAYER_GOES_TO_JAIL", player=player.name)

    # === PAYMENTS ===

    def pay(self, player: PlayerState, amount: int, creditor_id: Optional[int] = None) -> bool:
        """
        Make ``player`` pay ``amount`` to a player or to the bank.

        Liquidation runs first when cash alone does not cover the amount.
        Returns False if the player went bankrupt instead of paying.
        """
        if amount <= 0:
            return True

        if not player.can_afford(amount):
            self.liquidate(player, amount)

        if self.game.transfer(player.player_id, amount, creditor_id):
            return True

        self._alert(Severity.WARN, "PLAYER_BANKRUPT", player=player.name, amount=amount)
        self.game.declare_bankruptcy(player.player_id, creditor_id)
        return False

    def liquidate(self, player: PlayerState, amount: int) -> None:
        """
        Let a player mortgage or sell cells until ``amount`` is covered
        or nothing is left to raise money from.
        """
        game = self.game
        self._alert(Severity.WARN, "LIQUIDATION_REQUIRED", player=player.name, amount=amount, cash=player.cash)
        game.event_log.log(EventType.LIQUIDATION, player_id=player.player_id, amount=amount, cash=player.cash)

        while not player.can_afford(amount):
            options = game.liquidation_options(player.player_id)
            if not options:
                break

            labels = []
            for action, position in options:
                cell = game.board.get_ownable(position)
                if action is AssetAction.MORTGAGE:
                    labels.append(format_message(self.messages, "LIQUIDATE_MORTGAGE", property=cell.name, amount=cell.mortgage_value))
                else:
                    labels.append(format_message(self.messages, "LIQUIDATE_SELL", property=cell.name, amount=cell.price))

            title = format_message(self.messages, "LIQUIDATION_MENU", player=player.name, amount=amount, cash=player.cash)
            action, position = options[self.prompter.present_menu(title, labels) - 1]
            if action is AssetAction.MORTGAGE:
                game.mortgage_property(player.player_id, position)
            else:
                game.sell_to_bank(player.player_id, position)

    # === PROPERTY MANAGEMENT ===

    def manage_property(self, player: PlayerState, position: int) -> None:
        """
        Management menu for one owned cell, repeated until the player exits
        or the cell leaves their hands.
        """
        game = self.game
        options = list(ManagementOption)

        while True:
            cell = game.board.get_ownable(position)
            if cell is None or not cell.is_owned_by(player.player_id):
                return

            amounts = {
                ManagementOption.MORTGAGE: cell.mortgage_value,
                ManagementOption.PAY_OFF: game.pay_off_cost(position),
                ManagementOption.SELL: cell.price,
            }
            labels = [
                f"{self.messages.lookup(option.value)} (${amounts[option]})" if option in amounts
                else self.messages.lookup(option.value)
                for option in options
            ]
            title = format_message(self.messages, "PROPERTY_MANAGEMENT_MENU", property=game.summary(position, self.messages))
            choice = options[self.prompter.present_menu(title, labels) - 1]

            if choice is ManagementOption.EXIT:
                return
            try:
                if choice is ManagementOption.MORTGAGE:
                    game.mortgage_property(player.player_id, position)
                elif choice is ManagementOption.PAY_OFF:
                    game.pay_off_mortgage(player.player_id, position)
                else:
                    game.sell_to_bank(player.player_id, position)
            except PropertyOperationError as exc:
                self._alert(Severity.WARN, exc.message_id)
                continue
            self._alert(Severity.TRANSACTION, "PLAYER_BALANCE", player=player.name, cash=player.cash)

    # === TURN OPTIONS ===

    def turn_options(self, player: PlayerState) -> bool:
        """
        Post-move options loop. Returns False if the player asked to save and quit.
        """
        options = list(TurnOption)
        labels = [self.messages.lookup(option.value) for option in options]

        while True:
            if player.is_bankrupt or self.game.finished:
                return True
            title = format_message(self.messages, "TURN_OPTIONS_MENU", player=player.name, cash=player.cash)
            choice = options[self.prompter.present_menu(title, labels) - 1]

            if choice is TurnOption.MANAGE_PROPERTIES:
                self._choose_property_to_manage(player)
            elif choice is TurnOption.TRADE:
                self.propose_trade(player)
            elif choice is TurnOption.STATUS:
                self.show_status()
            elif choice is TurnOption.END_TURN:
                return True
            else:
                return False

    def _choose_property_to_manage(self, player: PlayerState) -> None:
        if not player.properties:
            self._alert(Severity.INFO, "NO_PROPERTIES")
            return
        positions = list(player.properties)
        labels = [self.game.summary(pos, self.messages) for pos in positions]
        labels.append(self.messages.lookup("EXIT"))
        choice = self.prompter.present_menu(self.messages.lookup("CHOOSE_PROPERTY"), labels)
        if choice <= len(positions):
            self.manage_property(player, positions[choice - 1])

    def show_status(self) -> None:
        """Alert one status line per player, bankrupt players included."""
        game = self.game
        for other in game.players:
            if other.is_bankrupt:
                self._alert(Severity.INFO, "STATUS_BANKRUPT", player=other.name)
                continue
            self._alert(
                Severity.INFO,
                "STATUS_PLAYER",
                player=other.name,
                cash=other.cash,
                cell=game.board.get_cell(other.position).name,
                worth=game.net_worth(other.player_id),
                jail=self.messages.lookup("YES" if other.in_jail else "NO"),
                cards=len(other.jail_cards),
            )
            for position in other.properties:
                self.prompter.present_alert(Severity.INFO, "  " + game.summary(position, self.messages))

    def propose_trade(self, player: PlayerState) -> Optional[Trade]:
        """
        Offer one owned cell or a held jail card to another player for cash.
        Returns the trade, whatever its result, or None if nothing was proposed.
        """
        game = self.game
        others = [p for p in game.get_active_players() if p.player_id != player.player_id]
        if not others or not (player.properties or player.jail_cards):
            self._alert(Severity.INFO, "TRADE_NOTHING_TO_OFFER")
            return None

        labels = [p.name for p in others] + [self.messages.lookup("EXIT")]
        choice = self.prompter.present_menu(self.messages.lookup("TRADE_CHOOSE_PLAYER"), labels)
        if choice > len(others):
            return None
        recipient = others[choice - 1]

        items = [game.summary(pos, self.messages) for pos in player.properties]
        if player.jail_cards:
            items.append(self.messages.lookup("TRADE_JAIL_CARD"))
        items.append(self.messages.lookup("EXIT"))
        choice = self.prompter.present_menu(self.messages.lookup("TRADE_CHOOSE_ITEM"), items)
        if choice == len(items):
            return None
        if choice <= len(player.properties):
            position = player.properties[choice - 1]
            offer = TradeOffer(properties=[position])
            item = game.board.get_cell(position).name
        else:
            offer = TradeOffer(jail_cards=1)
            item = self.messages.lookup("TRADE_JAIL_CARD")

        price = self._read_amount(format_message(self.messages, "TRADE_ASK_PRICE", item=item, player=recipient.name))
        if price is None:
            return None

        trade = Trade(player.player_id, recipient.player_id, offer, TradeOffer(cash=price), game.event_log)
        prompt = format_message(
            self.messages,
            "TRADE_ASK_ACCEPT",
            recipient=recipient.name,
            proposer=player.name,
            item=item,
            price=price,
        )
        if not self.prompter.present_yes_no(prompt):
            trade.reject()
            self._alert(Severity.INFO, "TRADE_REJECTED", player=recipient.name)
            return trade

        trade.accept()
        if game.execute_trade(trade):
            self._alert(Severity.TRANSACTION, "TRADE_DONE", proposer=player.name, recipient=recipient.name, item=item, price=price)
        else:
            self._alert(Severity.WARN, "TRADE_INVALID")
        return trade

    def _read_amount(self, prompt: str) -> Optional[int]:
        raw = self.prompter.read_line(prompt).strip()
        try:
            amount = int(raw)
        except ValueError:
            amount = -1
        if amount < 0:
            self._alert(Severity.WARN, "INVALID_AMOUNT")
            return None
        return amount

    def _alert(self, severity: Severity, message_id: str, **params: object) -> None:
        self.prompter.present_alert(severity, format_message(self.messages, message_id, **params))
