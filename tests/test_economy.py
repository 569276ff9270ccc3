"""
Tests for purchases, mortgages, bank payments and the money ledger.
"""

import pytest
from conftest import END_TURN, ScriptedPrompter
from landlord import GameConfig, create_game
from landlord.exceptions import InsufficientFundsError, PropertyOperationError
from landlord.interfaces import Severity
from landlord.money import EventType


def test_purchase_on_landing(basic_game, make_engine):
    """Landing on an unowned 200 cell and accepting takes 1500 down to 1300."""
    game = basic_game
    alice = game.players[0]

    prompter = ScriptedPrompter(menu=[END_TURN], yes_no=[True])
    make_engine(game, prompter, (2, 3)).play_turn()

    assert alice.position == 5  # Reading Railroad
    assert alice.cash == 1300
    assert game.board.get_cell(5).owner_id == 0
    assert alice.properties == [5]
    assert prompter.questions == ["PROPERTY_ASK_BUY"]
    assert "PROPERTY_BOUGHT" in prompter.messages(Severity.TRANSACTION)


def test_declined_purchase_leaves_cell_with_bank(basic_game, make_engine):
    game = basic_game
    prompter = ScriptedPrompter(menu=[END_TURN], yes_no=[False])
    make_engine(game, prompter, (2, 3)).play_turn()

    assert not game.board.get_cell(5).is_owned()
    assert game.players[0].cash == 1500
    assert "PLAYER_DONT_BUY_PROPERTY" in prompter.messages(Severity.INFO)


def test_unaffordable_purchase_is_refused(basic_game, make_engine):
    game = basic_game
    alice = game.players[0]
    alice.cash = 100

    prompter = ScriptedPrompter(menu=[END_TURN], yes_no=[True])
    make_engine(game, prompter, (2, 3)).play_turn()

    assert alice.cash == 100
    assert not game.board.get_cell(5).is_owned()
    assert "PLAYER_CANT_AFFORD" in prompter.messages(Severity.WARN)


def test_purchase_errors(basic_game):
    basic_game.purchase(0, 1)

    with pytest.raises(PropertyOperationError) as exc:
        basic_game.purchase(1, 1)
    assert exc.value.message_id == "PROPERTY_ALREADY_OWNED"

    with pytest.raises(PropertyOperationError) as exc:
        basic_game.purchase(1, 4)  # Income Tax
    assert exc.value.message_id == "PROPERTY_NOT_FOR_SALE"


def test_mortgage_pays_mortgage_value(basic_game):
    game = basic_game
    game.purchase(0, 1)  # Mediterranean, price 60
    alice = game.players[0]

    game.mortgage_property(0, 1)

    assert game.board.get_cell(1).is_mortgaged
    assert alice.cash == 1500 - 60 + 30


def test_mortgage_twice_is_rejected_without_change(basic_game):
    """The second mortgage request is refused and changes nothing."""
    game = basic_game
    game.purchase(0, 1)
    game.mortgage_property(0, 1)
    cash = game.players[0].cash

    with pytest.raises(PropertyOperationError) as exc:
        game.mortgage_property(0, 1)

    assert exc.value.message_id == "PROPERTY_ALREADY_MORTGAGED"
    assert game.players[0].cash == cash
    assert game.board.get_cell(1).is_mortgaged


def test_pay_off_unmortgaged_is_rejected(basic_game):
    game = basic_game
    game.purchase(0, 1)
    cash = game.players[0].cash

    with pytest.raises(PropertyOperationError) as exc:
        game.pay_off_mortgage(0, 1)

    assert exc.value.message_id == "PROPERTY_NOT_MORTGAGED"
    assert game.players[0].cash == cash


def test_pay_off_costs_mortgage_value(basic_game):
    game = basic_game
    game.purchase(0, 1)
    game.mortgage_property(0, 1)

    game.pay_off_mortgage(0, 1)

    assert not game.board.get_cell(1).is_mortgaged
    assert game.players[0].cash == 1500 - 60


def test_pay_off_interest_is_configurable(two_players):
    game = create_game(GameConfig(seed=42, mortgage_interest_rate=0.1), two_players)
    game.purchase(0, 1)
    game.mortgage_property(0, 1)

    assert game.pay_off_cost(1) == 33
    game.pay_off_mortgage(0, 1)
    assert game.players[0].cash == 1500 - 60 + 30 - 33


def test_pay_off_unaffordable_is_rejected(basic_game):
    game = basic_game
    game.purchase(0, 1)
    game.mortgage_property(0, 1)
    game.players[0].cash = 10

    with pytest.raises(PropertyOperationError) as exc:
        game.pay_off_mortgage(0, 1)

    assert exc.value.message_id == "PLAYER_CANT_AFFORD"
    assert game.board.get_cell(1).is_mortgaged
    assert game.players[0].cash == 10


def test_sell_to_bank_pays_full_price(basic_game):
    game = basic_game
    game.purchase(0, 5)

    game.sell_to_bank(0, 5)

    assert game.players[0].cash == 1500
    assert game.players[0].properties == []
    assert not game.board.get_cell(5).is_owned()
    assert len(game.event_log.get_events(EventType.SALE_TO_BANK)) == 1


def test_mortgaged_cell_cannot_be_sold(basic_game):
    game = basic_game
    game.purchase(0, 5)
    game.mortgage_property(0, 5)

    with pytest.raises(PropertyOperationError) as exc:
        game.sell_to_bank(0, 5)

    assert exc.value.message_id == "PROPERTY_CANT_SELL_MORTGAGED"
    assert game.board.get_cell(5).owner_id == 0


def test_operations_on_foreign_cell_are_rejected(basic_game):
    basic_game.purchase(0, 1)

    for operation in (basic_game.mortgage_property, basic_game.pay_off_mortgage, basic_game.sell_to_bank):
        with pytest.raises(PropertyOperationError) as exc:
            operation(1, 1)
        assert exc.value.message_id == "PROPERTY_NOT_OWNED"


def test_management_menu_surfaces_warning(basic_game, make_engine):
    """A refused action in the management menu is a warning, not a failure."""
    game = basic_game
    game.purchase(0, 1)
    game.mortgage_property(0, 1)
    alice = game.players[0]
    cash = alice.cash

    prompter = ScriptedPrompter(menu=[1, 1, 4])  # mortgage, mortgage again, exit
    make_engine(game, prompter).manage_property(alice, 1)

    assert prompter.messages(Severity.WARN) == ["PROPERTY_ALREADY_MORTGAGED", "PROPERTY_ALREADY_MORTGAGED"]
    assert alice.cash == cash


def test_management_menu_sell_leaves_loop(basic_game, make_engine):
    game = basic_game
    game.purchase(0, 1)
    alice = game.players[0]

    prompter = ScriptedPrompter(menu=[3])  # sell to bank
    make_engine(game, prompter).manage_property(alice, 1)

    assert alice.cash == 1500
    assert not game.board.get_cell(1).is_owned()
    assert len(prompter.menus) == 1


def test_exact_balance_payment_needs_no_liquidation(basic_game, make_engine):
    """Paying exactly the whole balance leaves zero cash and no liquidation."""
    game = basic_game
    game.purchase(0, 39)  # Boardwalk, rent 50
    game.current_player_index = 1
    bob = game.players[1]
    bob.position = 36
    bob.cash = 50

    prompter = ScriptedPrompter(menu=[END_TURN])
    make_engine(game, prompter, (1, 2)).play_turn()

    assert bob.cash == 0
    assert not bob.is_bankrupt
    assert "LIQUIDATION_MENU" not in prompter.menu_titles
    assert not game.event_log.get_events(EventType.LIQUIDATION)


def test_tax_is_paid_to_bank(basic_game, make_engine):
    game = basic_game
    prompter = ScriptedPrompter(menu=[END_TURN])
    make_engine(game, prompter, (1, 3)).play_turn()

    assert game.players[0].cash == 1300
    assert game.free_parking_pot == 0
    assert "PLAYER_PAYS_TAX" in prompter.messages(Severity.TRANSACTION)


def test_free_parking_pot_collects_bank_payments(two_players, make_engine):
    game = create_game(GameConfig(seed=42, free_parking_pot=True), two_players)
    alice, bob = game.players

    make_engine(game, ScriptedPrompter(menu=[END_TURN]), (1, 3)).play_turn()
    assert game.free_parking_pot == 200

    bob.position = 17
    prompter = ScriptedPrompter(menu=[END_TURN])
    make_engine(game, prompter, (1, 2)).play_turn()

    assert bob.position == 20
    assert bob.cash == 1700
    assert game.free_parking_pot == 0
    assert "FREE_PARKING_COLLECT" in prompter.messages(Severity.TRANSACTION)


def test_passing_go_pays_salary(basic_game):
    alice = basic_game.players[0]
    alice.position = 38

    basic_game.move_player(0, 4)

    assert alice.position == 2
    assert alice.cash == 1700


def test_landing_on_go_pays_salary_once(basic_game):
    alice = basic_game.players[0]
    alice.position = 36

    basic_game.move_player(0, 4)

    assert alice.position == 0
    assert alice.cash == 1700
    assert len(basic_game.event_log.get_events(EventType.PASS_GO)) == 1


def test_transfer_never_overdraws(basic_game):
    alice, bob = basic_game.players
    alice.cash = 40

    assert not basic_game.transfer(0, 50, 1)
    assert alice.cash == 40
    assert bob.cash == 1500

    assert basic_game.transfer(0, 40, 1)
    assert alice.cash == 0
    assert bob.cash == 1540


def test_debit_beyond_balance_raises(basic_game):
    with pytest.raises(InsufficientFundsError):
        basic_game.players[0].debit(1501)


def test_net_worth_counts_current_cell_values(basic_game):
    game = basic_game
    game.purchase(0, 1)  # 60
    game.purchase(0, 5)  # 200
    game.mortgage_property(0, 5)  # worth its mortgage value, 100

    assert game.net_worth(0) == game.players[0].cash + 60 + 100
