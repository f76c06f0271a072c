"""Factory for creating player state from character definitions."""
from __future__ import annotations

from frontier.core.config import DEFAULT_CONFIG, GameConfig
from frontier.domain.defs import CharacterDef
from frontier.domain.entities import PlayerState


def ng_plus_max_health(base_health: int, ng_plus_level: int, config: GameConfig = DEFAULT_CONFIG) -> int:
    """Starting max health: +10 every 10 NG+ levels, -1 per level, never below 1."""
    level = max(0, ng_plus_level)
    boosts = level // config.health_boost_interval
    return max(1, base_health + boosts * config.health_boost_amount - level)


def create_player_state(
    character: CharacterDef,
    name: str,
    *,
    ng_plus_level: int = 0,
    carried_gold: int | None = None,
    config: GameConfig = DEFAULT_CONFIG,
) -> PlayerState:
    """Instantiate a player with an empty hand and no cards yet."""
    max_health = ng_plus_max_health(character.health, ng_plus_level, config)
    gold = character.gold if ng_plus_level == 0 or carried_gold is None else carried_gold
    return PlayerState(
        name=name.strip() or character.name,
        character=character,
        health=max_health,
        max_health=max_health,
        gold=gold,
        hand_size=config.hand_size,
        ng_plus_level=ng_plus_level,
    )
