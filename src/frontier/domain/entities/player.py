"""Player runtime state."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Iterator, List

from frontier.core.types import UpgradeSubtype
from frontier.domain.defs import CardDef, CharacterDef, UpgradeEffect


@dataclass(slots=True)
class PlayerState:
    """Mutable player aggregate.

    ``hand`` always has exactly ``hand_size`` entries; ``None`` marks an empty slot.
    """

    name: str
    character: CharacterDef | None
    health: int
    max_health: int
    gold: int
    hand_size: int
    hand: List[CardDef | None] = field(default_factory=list)
    equipped: List[CardDef] = field(default_factory=list)
    active_trap: CardDef | None = None
    satchel: List[CardDef] = field(default_factory=list)
    deck: List[CardDef] = field(default_factory=list)
    discard: List[CardDef] = field(default_factory=list)
    turn_ended: bool = False
    has_taken_action_this_turn: bool = False
    has_equipped_this_turn: bool = False
    has_restocked_this_turn: bool = False
    hat_negation_available: bool = False
    hat_negation_used_this_turn: bool = False
    campfire_active: bool = False
    ng_plus_level: int = 0

    def __post_init__(self) -> None:
        if len(self.hand) < self.hand_size:
            self.hand.extend([None] * (self.hand_size - len(self.hand)))
        elif len(self.hand) > self.hand_size:
            raise ValueError(f"Hand holds {len(self.hand)} slots; expected {self.hand_size}.")

    def clone(self) -> "PlayerState":
        """Return a copy whose piles can be mutated without touching this instance."""
        return replace(
            self,
            hand=list(self.hand),
            equipped=list(self.equipped),
            satchel=list(self.satchel),
            deck=list(self.deck),
            discard=list(self.discard),
        )

    @property
    def is_alive(self) -> bool:
        return self.health > 0

    def hand_cards(self) -> List[CardDef]:
        return [card for card in self.hand if card is not None]

    def first_empty_slot(self) -> int | None:
        for index, card in enumerate(self.hand):
            if card is None:
                return index
        return None

    def iter_upgrades(self, subtype: UpgradeSubtype) -> Iterator[tuple[CardDef, UpgradeEffect]]:
        """Yield equipped cards whose upgrade effect has the given subtype."""
        for card in self.equipped:
            effect = card.effect
            if isinstance(effect, UpgradeEffect) and effect.subtype == subtype:
                yield card, effect

    def upgrade_total(self, subtype: UpgradeSubtype) -> int:
        return sum(effect.amount for _, effect in self.iter_upgrades(subtype))

    def has_upgrade(self, subtype: UpgradeSubtype) -> bool:
        return any(True for _ in self.iter_upgrades(subtype))

    @property
    def satchel_capacity(self) -> int:
        """Capacity of the first equipped storage upgrade (0 when none is equipped)."""
        for _, effect in self.iter_upgrades("storage"):
            return effect.capacity
        return 0
