"""Runtime entity exports."""

from .player import PlayerState

__all__ = [
    "PlayerState",
]
