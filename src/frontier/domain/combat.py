"""Attack and heal arithmetic."""
from __future__ import annotations

from frontier.core.types import CardSource
from frontier.domain.card_rules import is_firearm
from frontier.domain.defs import (
    TAG_BOW,
    TAG_HERB,
    TAG_KNIFE,
    CardDef,
    ConditionalWeaponEffect,
    HealEffect,
    UpgradeEffect,
    WeaponEffect,
)
from frontier.domain.entities import PlayerState

EQUIPPED_ATTACK_BONUS = 1


def _has_other_firearm(player: PlayerState, source: CardSource, index: int | None) -> bool:
    for slot, card in enumerate(player.hand):
        if source == "hand" and slot == index:
            continue
        if is_firearm(card):
            return True
    for slot, card in enumerate(player.equipped):
        if source == "equipped" and slot == index:
            continue
        if is_firearm(card):
            return True
    return False


def _firearm_boost(player: PlayerState) -> int:
    for _, effect in player.iter_upgrades("firearm_boost"):
        return effect.amount
    for card in player.hand_cards():
        effect = card.effect
        if isinstance(effect, UpgradeEffect) and effect.subtype == "firearm_boost":
            return effect.amount
    return 0


def attack_power(
    card: CardDef,
    player: PlayerState,
    source: CardSource = "hand",
    index: int | None = None,
    target: CardDef | None = None,
) -> int:
    """Damage ``card`` deals when played from ``source`` at slot ``index``.

    Additive bonuses are applied first, then the double-fire and quiver multipliers.
    """
    del target
    effect = card.effect
    if not isinstance(effect, (WeaponEffect, ConditionalWeaponEffect)):
        return 0

    attack = effect.attack
    if isinstance(effect, ConditionalWeaponEffect):
        if effect.condition == "is_firearm" and _has_other_firearm(player, source, index):
            attack += effect.bonus_attack
    if source == "equipped":
        attack += EQUIPPED_ATTACK_BONUS

    if card.has_tag(TAG_BOW):
        attack += player.upgrade_total("bow_boost")
    if card.has_tag(TAG_KNIFE):
        attack += player.upgrade_total("knife_boost")
    if is_firearm(card):
        attack += _firearm_boost(player)

    if is_firearm(card) and player.has_upgrade("double_fire"):
        attack *= 2
    if card.has_tag(TAG_BOW) and player.has_upgrade("quiver_boost"):
        attack *= 2
    return max(0, attack)


def heal_amount(card: CardDef, player: PlayerState) -> int:
    """Heal value of a heal card including provision and herb boosts."""
    effect = card.effect
    if not isinstance(effect, HealEffect):
        return 0
    amount = effect.amount + player.upgrade_total("provision_heal_boost")
    if card.has_tag(TAG_HERB):
        amount += player.upgrade_total("herb_boost")
    return amount
