"""Repository exports."""

from .cards_repo import CardsRepository
from .characters_repo import CharactersRepository

__all__ = [
    "CardsRepository",
    "CharactersRepository",
]
