"""Shared type aliases for the core and domain layers."""
from typing import Literal

GameStatus = Literal[
    "setup",
    "generating_boss_intro",
    "showing_boss_intro",
    "playing_initial_reveal",
    "playing",
    "finished",
]
CardType = Literal["Threat", "Provision", "Item", "Action", "Upgrade", "Trophy", "BountyProof"]
ThreatKind = Literal["animal", "human", "illness", "environmental"]
TrapSize = Literal["small", "medium", "large"]
UpgradeSubtype = Literal[
    "max_health",
    "damage_negation",
    "storage",
    "double_fire",
    "quiver_boost",
    "bow_boost",
    "knife_boost",
    "firearm_boost",
    "provision_heal_boost",
    "herb_boost",
    "sell_boost",
    "damage_reduction",
]
LogType = Literal["event", "action", "gold", "error", "info", "debug", "system"]
CardSource = Literal["hand", "equipped"]
RunOutcome = Literal["victory", "defeat"]

__all__ = [
    "CardSource",
    "CardType",
    "GameStatus",
    "LogType",
    "RunOutcome",
    "ThreatKind",
    "TrapSize",
    "UpgradeSubtype",
]
