"""Damage, healing and persistent-upgrade bookkeeping on a player."""
from __future__ import annotations

from dataclasses import dataclass
from typing import List

from frontier.domain.defs import TAG_ROCKSLIDE_IMMUNE, CardDef, UpgradeEffect
from frontier.domain.entities import PlayerState


@dataclass(slots=True)
class DamageOutcome:
    """Result of one damage instance after negation and reduction."""

    requested: int
    dealt: int
    negated_by: CardDef | None = None
    reduced_by: int = 0

    @property
    def had_effect(self) -> bool:
        return self.dealt > 0 or self.negated_by is not None


def apply_damage(player: PlayerState, amount: int) -> DamageOutcome:
    """Run one damage instance through the hat, reduction and health steps."""
    if amount <= 0:
        return DamageOutcome(requested=max(0, amount), dealt=0)

    hat = next(player.iter_upgrades("damage_negation"), None) if player.hat_negation_available else None
    if hat is not None:
        card, effect = hat
        player.equipped.remove(card)
        player.discard.append(card)
        player.max_health = max(1, player.max_health - effect.max_health)
        player.health = min(player.health, player.max_health)
        player.hat_negation_available = False
        player.hat_negation_used_this_turn = True
        return DamageOutcome(requested=amount, dealt=0, negated_by=card)

    reduction = player.upgrade_total("damage_reduction")
    dealt = max(0, amount - reduction)
    player.health = max(0, player.health - dealt)
    return DamageOutcome(requested=amount, dealt=dealt, reduced_by=amount - dealt)


def apply_heal(player: PlayerState, amount: int) -> int:
    """Heal up to max health and return the amount actually restored."""
    if amount <= 0:
        return 0
    before = player.health
    player.health = min(player.max_health, player.health + amount)
    return player.health - before


def apply_equip_effects(player: PlayerState, card: CardDef) -> None:
    """Apply the persistent side effects of a card that was just equipped."""
    effect = card.effect
    if not isinstance(effect, UpgradeEffect) or not effect.persistent:
        return
    if effect.subtype == "max_health":
        player.max_health += effect.amount
        player.health += effect.amount
    elif effect.subtype == "damage_negation":
        player.hat_negation_available = True
        if effect.max_health:
            player.max_health += effect.max_health
            player.health += effect.max_health


def unwind_equip_effects(player: PlayerState, card: CardDef) -> List[CardDef]:
    """Reverse ``apply_equip_effects`` for a card already removed from ``equipped``.

    Returns satchel contents that no longer fit once a storage upgrade is gone.
    """
    effect = card.effect
    if not isinstance(effect, UpgradeEffect) or not effect.persistent:
        return []
    if effect.subtype == "max_health":
        player.max_health = max(1, player.max_health - effect.amount)
        player.health = min(player.health, player.max_health)
    elif effect.subtype == "damage_negation":
        if effect.max_health:
            player.max_health = max(1, player.max_health - effect.max_health)
            player.health = min(player.health, player.max_health)
        if not player.has_upgrade("damage_negation"):
            player.hat_negation_available = False
    elif effect.subtype == "storage":
        capacity = player.satchel_capacity
        released = player.satchel[capacity:]
        player.satchel = player.satchel[:capacity]
        return released
    return []


def remove_equipped(player: PlayerState, index: int) -> tuple[CardDef, List[CardDef]]:
    """Take the equipped card at ``index`` off and unwind it.

    Returns the card and any satchel contents it released.
    """
    card = player.equipped.pop(index)
    released = unwind_equip_effects(player, card)
    return card, released


def discard_vulnerable_equipment(player: PlayerState) -> List[CardDef]:
    """Discard every equipped card not tagged as immune, unwinding each one."""
    discarded: List[CardDef] = []
    index = 0
    while index < len(player.equipped):
        if player.equipped[index].has_tag(TAG_ROCKSLIDE_IMMUNE):
            index += 1
            continue
        card, released = remove_equipped(player, index)
        player.discard.append(card)
        player.discard.extend(released)
        discarded.append(card)
    return discarded
