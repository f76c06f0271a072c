"""Card classification, ordering and trophy rules."""
from __future__ import annotations

from typing import List, Literal

from frontier.core.config import DEFAULT_CONFIG, GameConfig
from frontier.domain.defs import (
    TAG_FIREARM,
    TAG_VALUABLE,
    CardDef,
    ConditionalWeaponEffect,
    WeaponEffect,
)

AnimalSize = Literal["small", "medium", "large"]

_CATEGORY_ORDER = {
    "Upgrade": 1,
    "Provision": 3,
    "Action": 4,
    "Trophy": 5,
    "BountyProof": 5,
}


def hand_sort_key(card: CardDef) -> tuple[int, str]:
    """Upgrades, weapons, provisions, actions, trophies/bounties, then everything else."""
    if isinstance(card.effect, (WeaponEffect, ConditionalWeaponEffect)) and card.card_type != "Upgrade":
        rank = 2
    else:
        rank = _CATEGORY_ORDER.get(card.card_type, 6)
    return rank, card.name.lower()


def sort_hand(hand: List[CardDef | None], hand_size: int) -> List[CardDef | None]:
    """Return the hand with cards ordered first and empty slots padded to ``hand_size``."""
    cards = sorted((card for card in hand if card is not None), key=hand_sort_key)
    return cards + [None] * (hand_size - len(cards))


def is_firearm(card: CardDef | None) -> bool:
    return card is not None and card.has_tag(TAG_FIREARM)


def is_valuable(card: CardDef) -> bool:
    return card.has_tag(TAG_VALUABLE)


def animal_size(card: CardDef, config: GameConfig = DEFAULT_CONFIG) -> AnimalSize | None:
    """Size band of an animal threat from its current health."""
    if card.subtype != "animal" or card.health is None:
        return None
    if card.health <= config.small_animal_max_health:
        return "small"
    if card.health <= config.medium_animal_max_health:
        return "medium"
    return "large"


def is_hostile_event(card: CardDef | None) -> bool:
    """Whether the active event blocks trading with the store."""
    if card is None or not card.is_threat:
        return False
    if card.subtype in ("illness", "environmental"):
        return True
    return card.is_alive


def make_trophy(threat: CardDef, instance_id: str) -> CardDef:
    """Mint the sellable proof of a defeated threat."""
    if threat.subtype == "animal":
        name, card_type, description = f"{threat.name} Pelt", "Trophy", f"The pelt of a {threat.name}."
    elif threat.subtype == "human":
        name, card_type, description = f"{threat.name} Bounty", "BountyProof", f"Proof that {threat.name} was brought to justice."
    else:
        name, card_type, description = "Remnants", "Trophy", f"What remains of {threat.name}."
    return CardDef(
        id=instance_id,
        name=name,
        card_type=card_type,  # type: ignore[arg-type]
        description=description,
        sell_value=threat.gold_value,
    )
