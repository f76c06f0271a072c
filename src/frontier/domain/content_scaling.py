"""NG+ content scaling for the card catalog."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Literal

from frontier.domain.catalog import Catalog
from frontier.domain.defs import (
    CardDef,
    ConditionalWeaponEffect,
    DamageEffect,
    Effect,
    PoisonEffect,
    WeaponEffect,
)

logger = logging.getLogger(__name__)

# Each bump is +1 per NG+ level and only touches values that are already non-zero.
MILESTONE_INTERVAL = 10

ScalingMode = Literal["base", "manual", "themed", "incremental"]
RemixFn = Callable[[Catalog, int], "Catalog | None"]


@dataclass(frozen=True, slots=True)
class ScaledCatalog:
    catalog: Catalog
    mode: ScalingMode
    milestone: int
    themed: Catalog | None = None


def milestone_for(level: int, interval: int = MILESTONE_INTERVAL) -> int:
    """Return the most recent milestone at or below ``level``."""
    if level <= 0:
        return 0
    return (level // interval) * interval


def _scale_threat_effect(effect: Effect | None, level: int) -> Effect | None:
    if isinstance(effect, DamageEffect) and effect.amount:
        return replace(effect, amount=effect.amount + level)
    if isinstance(effect, PoisonEffect) and effect.damage:
        return replace(effect, damage=effect.damage + level)
    return effect


def scale_card(card: CardDef, *, level: int) -> CardDef:
    """Apply the flat per-level bump to one card."""
    if level <= 0:
        return card
    changes: dict[str, object] = {}
    if card.is_combatant:
        if card.health is not None:
            changes["health"] = max(1, card.health + level)
        scaled_effect = _scale_threat_effect(card.effect, level)
        if scaled_effect is not card.effect:
            changes["effect"] = scaled_effect
        if card.gold_value:
            changes["gold_value"] = card.gold_value + level
    elif isinstance(card.effect, (WeaponEffect, ConditionalWeaponEffect)) and card.effect.attack:
        changes["effect"] = replace(card.effect, attack=card.effect.attack + level)
    if card.sell_value:
        changes["sell_value"] = card.sell_value + level
    if card.buy_cost:
        changes["buy_cost"] = card.buy_cost + level
    if not changes:
        return card
    return replace(card, **changes)


def scale_catalog_manually(catalog: Catalog, *, level: int) -> Catalog:
    if level <= 0:
        return catalog
    return catalog.map_cards(lambda card: scale_card(card, level=level))


def scale_catalog(
    base: Catalog,
    ng_plus_level: int,
    *,
    prior_themed: Catalog | None = None,
    remix: RemixFn | None = None,
    interval: int = MILESTONE_INTERVAL,
) -> ScaledCatalog:
    """Produce the catalog for a run at ``ng_plus_level``.

    Milestone levels try ``remix`` for a themed replacement and fall back to manual scaling of
    ``base``. Other levels scale incrementally from ``prior_themed`` (the themed catalog of the
    latest milestone) when one exists, else manually from ``base``.
    """
    level = max(0, ng_plus_level)
    if level == 0:
        return ScaledCatalog(catalog=base, mode="base", milestone=0)

    milestone = milestone_for(level, interval)
    if level == milestone:
        themed = None
        if remix is not None:
            try:
                themed = remix(base, level)
            except Exception:
                logger.warning("Catalog remix raised at NG+%s; scaling manually", level, exc_info=True)
                themed = None
        if themed:
            return ScaledCatalog(catalog=themed, mode="themed", milestone=milestone, themed=themed)
        logger.warning("No themed catalog for NG+%s; scaling manually", level)
        return ScaledCatalog(catalog=scale_catalog_manually(base, level=level), mode="manual", milestone=milestone)

    if milestone > 0 and prior_themed:
        delta = level - milestone
        return ScaledCatalog(
            catalog=scale_catalog_manually(prior_themed, level=delta),
            mode="incremental",
            milestone=milestone,
        )
    return ScaledCatalog(catalog=scale_catalog_manually(base, level=level), mode="manual", milestone=milestone)
