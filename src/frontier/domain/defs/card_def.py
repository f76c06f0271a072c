"""Card definition structures."""
from __future__ import annotations

from dataclasses import dataclass

from frontier.core.types import CardType, ThreatKind

from .effect_def import Effect

TAG_FIREARM = "firearm"
TAG_BOW = "bow"
TAG_KNIFE = "knife"
TAG_HERB = "herb"
TAG_VALUABLE = "valuable"
TAG_NIGHT_RAIDER = "night_raider"
TAG_ROCKSLIDE_IMMUNE = "rockslide_immune"
TAG_REVEAL_DAMAGE = "reveal_damage"
TAG_BOSS = "boss"


@dataclass(frozen=True, slots=True)
class CardDef:
    """Immutable card definition shared by every copy in decks, hands and piles."""

    id: str
    name: str
    card_type: CardType
    description: str = ""
    subtype: ThreatKind | None = None
    health: int | None = None
    gold_value: int = 0
    effect: Effect | None = None
    immediate_effect: Effect | None = None
    sell_value: int = 0
    buy_cost: int = 0
    tags: tuple[str, ...] = ()

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    @property
    def is_threat(self) -> bool:
        return self.card_type == "Threat"

    @property
    def is_combatant(self) -> bool:
        """Animal or human threat, the kinds that have health and can be fought."""
        return self.is_threat and self.subtype in ("animal", "human")

    @property
    def is_alive(self) -> bool:
        return self.health is not None and self.health > 0
