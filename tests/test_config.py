"""
Tests for rules configuration, board data files, languages and settings.
"""

import json

import pytest
from landlord import GameConfig, create_game
from landlord.board import Board
from landlord.cells import CellKind, Station, Street
from landlord.config import default_board_path, load_board_spec
from landlord.exceptions import ConfigurationError
from landlord.messages import MessageCatalog, available_languages
from landlord.settings import LandlordSettings
from pydantic import ValidationError


def write_board(tmp_path, data):
    path = tmp_path / "board.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def minimal_board():
    return {
        "cells": [
            {"kind": "go", "name": "Start"},
            {"kind": "street", "name": "Lane", "price": 100, "group": "red", "rent": 10},
            {"kind": "jail", "name": "Cell Block"},
            {"kind": "chance", "name": "Luck"},
        ],
        "chance": [{"id": "c1", "text": "T", "card_type": "move_to", "target": "Lane"}],
        "community_chest": [{"id": "k1", "text": "T", "card_type": "collect", "value": 10}],
    }


def test_default_board(basic_game):
    board = basic_game.board

    assert board.size == 40
    assert board.jail_position == 10
    assert len(board.groups) == 8
    assert len(board.cells_of_type(Station)) == 4
    assert board.get_cell(40).name == "Go"
    assert len(basic_game.chance_deck) == 16
    assert len(basic_game.community_chest_deck) == 16


def test_default_mortgage_values(basic_game):
    assert basic_game.board.get_cell(39).mortgage_value == 200
    assert basic_game.board.get_cell(12).mortgage_value == 75


def test_custom_board_file(tmp_path, two_players):
    path = write_board(tmp_path, minimal_board())
    game = create_game(GameConfig(seed=3, board_file=str(path)), two_players)

    assert game.board.size == 4
    assert game.board.jail_position == 2
    assert isinstance(game.board.get_cell(1), Street)
    assert game.chance_deck.get("c1").target_position == 1


def test_explicit_mortgage_value(tmp_path):
    data = minimal_board()
    data["cells"][1]["mortgage_value"] = 70
    spec = load_board_spec(write_board(tmp_path, data))

    board = Board.from_spec(spec, GameConfig())
    assert board.get_cell(1).mortgage_value == 70


@pytest.mark.parametrize(
    "mutate",
    [
        lambda d: d["cells"][1].pop("price"),
        lambda d: d["cells"][1].pop("group"),
        lambda d: d["cells"].insert(0, {"kind": "free_parking", "name": "Lot"}),
        lambda d: d["cells"].append({"kind": "jail", "name": "Second Jail"}),
        lambda d: d["cells"].append({"kind": "tax", "name": "Tax"}),
        lambda d: d["cells"].append({"kind": "chance", "name": "Luck"}),
        lambda d: d["chance"][0].update(target="Nowhere"),
        lambda d: d["chance"][0].pop("target"),
        lambda d: d["community_chest"].append(dict(d["community_chest"][0])),
        lambda d: d["cells"][1].update(kind="castle"),
    ],
)
def test_invalid_board_data(tmp_path, mutate):
    data = minimal_board()
    mutate(data)

    with pytest.raises(ConfigurationError):
        load_board_spec(write_board(tmp_path, data))


def test_board_file_not_json(tmp_path):
    path = tmp_path / "board.json"
    path.write_text("cells: []", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_board_spec(path)


def test_missing_board_file(tmp_path):
    with pytest.raises(ConfigurationError):
        load_board_spec(tmp_path / "missing.json")


def test_bundled_board_is_valid():
    spec = load_board_spec(default_board_path())

    assert spec.cells[0].kind == CellKind.GO


@pytest.mark.parametrize(
    "kwargs",
    [
        {"mortgage_rate": 0},
        {"mortgage_rate": 1.5},
        {"station_fares": ()},
        {"max_jail_turns": 0},
        {"max_doubles": 0},
    ],
)
def test_invalid_rules(kwargs):
    with pytest.raises(ConfigurationError):
        GameConfig(**kwargs)


def test_config_dict_round_trip():
    config = GameConfig(seed=9, station_fares=[10, 20], free_parking_pot=True)

    data = config.to_dict()
    assert data["station_fares"] == [10, 20]

    data["unknown_rule"] = True
    assert GameConfig.from_dict(data) == config


@pytest.mark.parametrize("names", [["Solo"], ["Ann", "Ann"], ["Ann", " "], [f"P{i}" for i in range(9)]])
def test_create_game_validates_players(game_config, names):
    with pytest.raises(ValueError):
        create_game(game_config, names)


def test_bundled_languages():
    languages = available_languages()
    assert "English" in languages
    assert "Spanish" in languages

    english = MessageCatalog.load("English")
    spanish = MessageCatalog.load("Spanish")
    assert set(english.texts) == set(spanish.texts)
    assert english.lookup("YES") == "Yes"
    assert spanish.lookup("YES") == "Sí"


def test_every_card_text_is_translated(basic_game):
    english = MessageCatalog.load("English")

    for deck in (basic_game.chance_deck, basic_game.community_chest_deck):
        for card in deck.catalogue.values():
            assert card.text in english


def test_unknown_message_falls_back_to_id():
    assert MessageCatalog("Test", {}).lookup("SOMETHING_NEW") == "SOMETHING_NEW"


def test_unknown_language(tmp_path):
    with pytest.raises(ConfigurationError):
        MessageCatalog.load("Klingon", tmp_path)


@pytest.mark.parametrize("content", ["{broken", "[1, 2]", '{"YES": 1}'])
def test_malformed_language_file(tmp_path, content):
    (tmp_path / "Broken.json").write_text(content, encoding="utf-8")

    with pytest.raises(ConfigurationError):
        MessageCatalog.load("Broken", tmp_path)


def test_settings_from_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("LANDLORD_LANGUAGE", "Spanish")
    monkeypatch.setenv("LANDLORD_SAVES_DIR", str(tmp_path))
    monkeypatch.setenv("LANDLORD_LOG_LEVEL", "debug")
    monkeypatch.setenv("LANDLORD_AUTOSAVE", "false")

    settings = LandlordSettings()

    assert settings.language == "Spanish"
    assert settings.saves_dir == tmp_path
    assert settings.log_level == "DEBUG"
    assert settings.autosave is False


def test_settings_reject_unknown_log_level(monkeypatch):
    monkeypatch.setenv("LANDLORD_LOG_LEVEL", "chatty")

    with pytest.raises(ValidationError):
        LandlordSettings()
