"""Cross-run New Game Plus progress."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List


@dataclass(slots=True)
class RunProgress:
    """Carry-over values written when a run ends.

    The carried ids are consumed by the next run's deck setup and then cleared.
    """

    ng_plus_level: int = 0
    carried_gold: int | None = None
    carried_deck_ids: List[str] = field(default_factory=list)
    carried_equipped_ids: List[str] = field(default_factory=list)
    boss_defeated: bool = False
    player_name: str | None = None
    character_id: str | None = None

    def reset(self) -> None:
        self.ng_plus_level = 0
        self.carried_gold = None
        self.carried_deck_ids = []
        self.carried_equipped_ids = []
        self.boss_defeated = False
        self.player_name = None
        self.character_id = None
