"""Domain definition exports."""

from .card_def import (
    TAG_BOSS,
    TAG_BOW,
    TAG_FIREARM,
    TAG_HERB,
    TAG_KNIFE,
    TAG_NIGHT_RAIDER,
    TAG_REVEAL_DAMAGE,
    TAG_ROCKSLIDE_IMMUNE,
    TAG_VALUABLE,
    CardDef,
)
from .character_def import CharacterDef
from .effect_def import (
    CampfireEffect,
    ConditionalWeaponEffect,
    DamageEffect,
    DamagePercentEffect,
    DrawEffect,
    Effect,
    FireArrowEffect,
    GoldEffect,
    GoldStealEffect,
    HealEffect,
    PoisonEffect,
    ScoutEffect,
    TrapEffect,
    UpgradeEffect,
    WeaponEffect,
    ends_turn,
    threat_damage,
)

__all__ = [
    "CampfireEffect",
    "CardDef",
    "CharacterDef",
    "ConditionalWeaponEffect",
    "DamageEffect",
    "DamagePercentEffect",
    "DrawEffect",
    "Effect",
    "FireArrowEffect",
    "GoldEffect",
    "GoldStealEffect",
    "HealEffect",
    "PoisonEffect",
    "ScoutEffect",
    "TAG_BOSS",
    "TAG_BOW",
    "TAG_FIREARM",
    "TAG_HERB",
    "TAG_KNIFE",
    "TAG_NIGHT_RAIDER",
    "TAG_REVEAL_DAMAGE",
    "TAG_ROCKSLIDE_IMMUNE",
    "TAG_VALUABLE",
    "TrapEffect",
    "UpgradeEffect",
    "WeaponEffect",
    "ends_turn",
    "threat_damage",
]
