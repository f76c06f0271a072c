"""Card catalog repository."""
from __future__ import annotations

from typing import Dict

from frontier.data.card_codec import parse_cards
from frontier.data.repositories.base import RepositoryBase
from frontier.domain.catalog import Catalog
from frontier.domain.defs import CardDef


class CardsRepository(RepositoryBase[CardDef]):
    """Loads and validates the base card catalog."""

    def __init__(self, base_path=None) -> None:
        super().__init__("cards.json", base_path)

    def _build(self, raw: dict[str, object]) -> Dict[str, CardDef]:
        return parse_cards(raw, context="cards.json")

    def catalog(self) -> Catalog:
        """Return the base catalog as an immutable value."""
        return Catalog.from_cards(self._ensure_loaded().values())
