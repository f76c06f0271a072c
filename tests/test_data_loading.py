import json
from pathlib import Path

import pytest

from frontier.data.errors import DataLoadError, DataReferenceError, DataValidationError
from frontier.data.repositories import CardsRepository, CharactersRepository
from frontier.domain.defs import DamageEffect, GoldStealEffect, TrapEffect, UpgradeEffect


def test_cards_repo_parses_effect_variants(tmp_path: Path) -> None:
    definitions_dir = _make_definitions_dir(tmp_path)
    _write_json(
        definitions_dir / "cards.json",
        {
            "threat_thief": {
                "name": "Thief",
                "type": "Threat",
                "subtype": "human",
                "health": 6,
                "gold_value": 10,
                "effect": {"kind": "damage", "amount": 3},
                "immediate_effect": {"kind": "random_gold_steal", "max_amount": 5},
                "tags": ["night_raider"],
            },
            "item_trap": {
                "name": "Medium Trap",
                "type": "Item",
                "sell_value": 8,
                "buy_cost": 16,
                "effect": {"kind": "trap", "size": "medium", "break_damage": 2},
            },
            "upgrade_hat": {
                "name": "Hat",
                "type": "Upgrade",
                "effect": {"kind": "upgrade", "subtype": "damage_negation", "max_health": 2},
            },
        },
    )

    repo = CardsRepository(base_path=definitions_dir)
    thief = repo.get("threat_thief")
    trap = repo.get("item_trap")
    hat = repo.get("upgrade_hat")

    assert thief.effect == DamageEffect(amount=3)
    assert thief.immediate_effect == GoldStealEffect(max_amount=5)
    assert thief.has_tag("night_raider")
    assert thief.is_combatant
    assert trap.effect == TrapEffect(size="medium", break_damage=2)
    assert isinstance(hat.effect, UpgradeEffect)
    assert hat.effect.persistent is True
    assert len(repo.catalog()) == 3


def test_cards_repo_rejects_unknown_effect_kind(tmp_path: Path) -> None:
    definitions_dir = _make_definitions_dir(tmp_path)
    _write_json(
        definitions_dir / "cards.json",
        {"odd": {"name": "Odd", "type": "Item", "effect": {"kind": "teleport"}}},
    )

    with pytest.raises(DataValidationError, match="unknown effect kind"):
        CardsRepository(base_path=definitions_dir).all()


def test_cards_repo_rejects_unknown_fields(tmp_path: Path) -> None:
    definitions_dir = _make_definitions_dir(tmp_path)
    _write_json(
        definitions_dir / "cards.json",
        {"odd": {"name": "Odd", "type": "Item", "weight": 3}},
    )

    with pytest.raises(DataValidationError, match="unknown fields"):
        CardsRepository(base_path=definitions_dir).all()


def test_cards_repo_missing_file_raises_load_error(tmp_path: Path) -> None:
    definitions_dir = _make_definitions_dir(tmp_path)

    with pytest.raises(DataLoadError):
        CardsRepository(base_path=definitions_dir).all()


def test_characters_repo_rejects_missing_starter_card(tmp_path: Path) -> None:
    definitions_dir = _make_definitions_dir(tmp_path)
    _write_json(
        definitions_dir / "cards.json",
        {"provision_hardtack": {"name": "Hardtack", "type": "Provision", "effect": {"kind": "heal", "amount": 2}}},
    )
    _write_json(
        definitions_dir / "characters.json",
        {
            "cook": {
                "name": "Cook",
                "health": 20,
                "gold": 10,
                "ability": "Cooks.",
                "starter_deck": ["provision_hardtack", "provision_pie"],
            }
        },
    )

    with pytest.raises(DataReferenceError, match="provision_pie"):
        CharactersRepository(base_path=definitions_dir).all()


def test_bundled_definitions_load_and_starters_exist() -> None:
    cards_repo = CardsRepository()
    characters_repo = CharactersRepository(cards_repo)

    characters = characters_repo.all()
    catalog = cards_repo.catalog()

    assert len(characters) == 8
    for character in characters:
        assert len(character.starter_deck) == 4
        assert all(card_id in catalog for card_id in character.starter_deck)
    assert sum(1 for card in catalog.values() if card.is_threat and card.subtype == "animal") >= 8
    assert sum(1 for card in catalog.values() if card.is_threat and card.subtype == "human") >= 7
    assert all(card_id in catalog for card_id in ("provision_hardtack", "provision_dried_meat", "item_knife_t1"))


def _write_json(path: Path, data: dict) -> None:
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def _make_definitions_dir(tmp_path: Path) -> Path:
    definitions_dir = tmp_path / "definitions"
    definitions_dir.mkdir()
    return definitions_dir
