from dataclasses import replace

from frontier.domain.catalog import Catalog
from frontier.domain.content_scaling import milestone_for, scale_card, scale_catalog
from frontier.domain.defs import DamageEffect, WeaponEffect

from tests.helpers.builders import make_provision, make_threat, make_upgrade, make_weapon


def _base_catalog() -> Catalog:
    return Catalog.from_cards(
        [
            make_threat("wolf", health=6, damage=3, gold=6),
            make_threat("rabbit", health=2, damage=0, gold=2),
            make_threat("thief", subtype="human", health=6, damage=3, gold=10),
            make_weapon("rifle", 4, sell_value=10, buy_cost=20),
            make_provision("hardtack", 2, sell_value=1),
            make_upgrade("boots", "storage", capacity=1, sell_value=0),
        ]
    )


def test_level_zero_returns_base_catalog_unchanged() -> None:
    base = _base_catalog()

    scaled = scale_catalog(base, 0)

    assert scaled.mode == "base"
    assert scaled.catalog is base


def test_manual_scaling_bumps_only_non_zero_values() -> None:
    base = _base_catalog()

    scaled = scale_catalog(base, 3).catalog

    wolf = scaled["wolf"]
    assert (wolf.health, wolf.gold_value, wolf.effect) == (9, 9, DamageEffect(amount=6))
    rabbit = scaled["rabbit"]
    assert rabbit.effect == DamageEffect(amount=0)
    assert rabbit.health == 5
    rifle = scaled["rifle"]
    assert rifle.effect == WeaponEffect(attack=7)
    assert (rifle.sell_value, rifle.buy_cost) == (13, 23)
    assert scaled["hardtack"].effect == base["hardtack"].effect
    assert scaled["boots"].sell_value == 0
    assert scaled["boots"].buy_cost == 0


def test_scaling_preserves_ids_types_and_tags() -> None:
    base = Catalog.from_cards([make_threat("skunk", damage=2, tags=("night_raider",))])

    skunk = scale_card(base["skunk"], level=4)

    assert (skunk.id, skunk.card_type, skunk.subtype, skunk.tags) == ("skunk", "Threat", "animal", ("night_raider",))


def test_milestone_uses_remix_result() -> None:
    base = _base_catalog()
    themed = base.with_cards([replace(base["wolf"], name="Ash Wolf", health=20)])
    calls = []

    def remix(catalog: Catalog, level: int) -> Catalog:
        calls.append(level)
        return themed

    scaled = scale_catalog(base, 10, remix=remix)

    assert calls == [10]
    assert scaled.mode == "themed"
    assert scaled.themed is themed
    assert scaled.catalog["wolf"].name == "Ash Wolf"


def test_milestone_falls_back_to_manual_when_remix_fails() -> None:
    base = _base_catalog()

    def failing_remix(catalog: Catalog, level: int) -> Catalog:
        raise RuntimeError("offline")

    raised = scale_catalog(base, 10, remix=failing_remix)
    empty = scale_catalog(base, 10, remix=lambda catalog, level: None)

    assert raised.mode == "manual"
    assert raised.themed is None
    assert raised.catalog["wolf"].health == 16
    assert empty.catalog == raised.catalog


def test_incremental_scaling_composes_from_themed_milestone() -> None:
    base = _base_catalog()
    themed = scale_catalog(base, 10, remix=lambda catalog, level: catalog.with_cards([replace(catalog["wolf"], health=30)])).themed
    assert themed is not None

    scaled = scale_catalog(base, 15, prior_themed=themed)

    assert scaled.mode == "incremental"
    assert scaled.milestone == 10
    assert scaled.catalog["wolf"].health == 35
    assert scaled.catalog == scale_catalog(themed, 5).catalog


def test_non_milestone_without_themed_catalog_scales_from_base() -> None:
    base = _base_catalog()

    scaled = scale_catalog(base, 12)

    assert scaled.mode == "manual"
    assert scaled.catalog["wolf"].health == 18


def test_milestone_for_rounds_down_to_interval() -> None:
    assert [milestone_for(level) for level in (0, 1, 9, 10, 19, 20, 25)] == [0, 0, 0, 10, 10, 20, 20]
