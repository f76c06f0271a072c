"""Rule constants and per-user configuration persistence."""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Dict

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GameConfig:
    """Tunable rule constants for a frontier run."""

    hand_size: int = 6
    equip_slots: int = 3
    store_display_size: int = 3
    event_deck_size: int = 20
    player_deck_size: int = 13
    store_deck_size: int = 20
    animal_quota: int = 8
    human_quota: int = 7
    natural_quota: int = 2
    max_event_valuables: int = 3
    max_player_valuables: int = 2
    max_log_entries: int = 500
    max_persisted_log_entries: int = 200
    milestone_interval: int = 10
    health_boost_interval: int = 10
    health_boost_amount: int = 10
    small_trap_threshold: int = 4
    medium_trap_threshold: int = 6
    large_trap_threshold: int = 8
    small_animal_max_health: int = 4
    medium_animal_max_health: int = 8
    base_buy_multiplier: int = 2
    restock_cost: int = 1
    store_refill_delay: float = 1.0
    banner_duration: float = 3.0
    effect_flash_duration: float = 0.6
    player_id: str = "player1"
    filler_card_ids: tuple[str, ...] = ("provision_hardtack", "provision_dried_meat", "item_knife_t1")

    def trap_threshold(self, size: str) -> int:
        if size == "small":
            return self.small_trap_threshold
        if size == "medium":
            return self.medium_trap_threshold
        return self.large_trap_threshold


DEFAULT_CONFIG = GameConfig()


def get_user_data_dir() -> Path:
    """Return the per-user data directory."""
    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / "FrontierRun"
        return Path.home() / "FrontierRun"
    return Path.home() / ".config" / "frontier_run"


def get_default_config_path() -> Path:
    """Return the default per-user config path."""
    return get_user_data_dir() / "config.json"


def get_save_dir() -> Path:
    """Return the per-user save directory."""
    return get_user_data_dir() / "saves"


def _coerce_override(name: str, value: object, default: object) -> object | None:
    if isinstance(default, bool) or value is None:
        return None
    if isinstance(default, int) and isinstance(value, int) and not isinstance(value, bool):
        return value if value >= 0 else None
    if isinstance(default, float) and isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value) if value >= 0 else None
    if isinstance(default, str) and isinstance(value, str) and value:
        return value
    if isinstance(default, tuple) and isinstance(value, list) and all(isinstance(v, str) for v in value):
        return tuple(value) if value else None
    logger.warning("Ignoring config override %s=%r", name, value)
    return None


def load_config(path: Path | None = None) -> GameConfig:
    """Load config overrides from disk or return defaults."""
    config_path = path or get_default_config_path()
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return DEFAULT_CONFIG
    except (OSError, ValueError):
        logger.warning("Unreadable config at %s; using defaults", config_path)
        return DEFAULT_CONFIG
    if not isinstance(raw, dict):
        return DEFAULT_CONFIG
    overrides: Dict[str, object] = {}
    for config_field in fields(GameConfig):
        if config_field.name not in raw:
            continue
        value = _coerce_override(config_field.name, raw[config_field.name], getattr(DEFAULT_CONFIG, config_field.name))
        if value is not None:
            overrides[config_field.name] = value
    return replace(DEFAULT_CONFIG, **overrides)
