"""Card effect variants.

Each effect kind is its own frozen dataclass carrying only the fields that kind uses. ``Effect``
is the closed union of all variants; resolvers dispatch on the concrete class.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from frontier.core.types import TrapSize, UpgradeSubtype


@dataclass(frozen=True, slots=True)
class HealEffect:
    amount: int
    cures: bool = False
    persistent: bool = False


@dataclass(frozen=True, slots=True)
class WeaponEffect:
    attack: int


@dataclass(frozen=True, slots=True)
class ConditionalWeaponEffect:
    attack: int
    bonus_attack: int
    condition: str = "is_firearm"


@dataclass(frozen=True, slots=True)
class CampfireEffect:
    pass


@dataclass(frozen=True, slots=True)
class GoldEffect:
    min_amount: int = 1
    max_amount: int = 3


@dataclass(frozen=True, slots=True)
class DrawEffect:
    amount: int


@dataclass(frozen=True, slots=True)
class TrapEffect:
    size: TrapSize
    break_damage: int = 0


@dataclass(frozen=True, slots=True)
class ScoutEffect:
    pass


@dataclass(frozen=True, slots=True)
class FireArrowEffect:
    damage: int = 2


@dataclass(frozen=True, slots=True)
class UpgradeEffect:
    """Persistent equipment bonus.

    ``amount`` is the subtype's magnitude (max health, boost, reduction), ``capacity`` applies to
    storage and ``max_health`` is the bonus granted by damage-negation hats.
    """

    subtype: UpgradeSubtype
    amount: int = 0
    capacity: int = 0
    max_health: int = 0
    persistent: bool = True


@dataclass(frozen=True, slots=True)
class DamageEffect:
    amount: int
    turn_end: bool = False
    discard_equipped: bool = False


@dataclass(frozen=True, slots=True)
class PoisonEffect:
    damage: int
    turn_end: bool = False


@dataclass(frozen=True, slots=True)
class DamagePercentEffect:
    fraction: float
    turn_end: bool = False


@dataclass(frozen=True, slots=True)
class GoldStealEffect:
    max_amount: int


Effect = Union[
    HealEffect,
    WeaponEffect,
    ConditionalWeaponEffect,
    CampfireEffect,
    GoldEffect,
    DrawEffect,
    TrapEffect,
    ScoutEffect,
    FireArrowEffect,
    UpgradeEffect,
    DamageEffect,
    PoisonEffect,
    DamagePercentEffect,
    GoldStealEffect,
]


def threat_damage(effect: Effect | None) -> int:
    """Return the flat damage a threat effect deals, or 0."""
    if isinstance(effect, DamageEffect):
        return effect.amount
    if isinstance(effect, PoisonEffect):
        return effect.damage
    return 0


def ends_turn(effect: Effect | None) -> bool:
    if isinstance(effect, (DamageEffect, PoisonEffect, DamagePercentEffect)):
        return effect.turn_end
    return False
