"""Factory helpers for runtime entities."""

from .id_factory import make_instance_id, make_run_id
from .player_factory import create_player_state, ng_plus_max_health

__all__ = [
    "create_player_state",
    "make_instance_id",
    "make_run_id",
    "ng_plus_max_health",
]
