"""Character archetype definitions."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CharacterDef:
    id: str
    name: str
    health: int
    gold: int
    ability: str
    starter_deck: tuple[str, ...]
    story_description: str = ""
