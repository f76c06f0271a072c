"""Characters repository with starter-card reference validation."""
from __future__ import annotations

from typing import Dict

from frontier.data.errors import DataReferenceError, DataValidationError
from frontier.data.repositories.base import RepositoryBase
from frontier.data.repositories.cards_repo import CardsRepository
from frontier.domain.defs import CharacterDef


class CharactersRepository(RepositoryBase[CharacterDef]):
    """Loads character archetypes and ensures their starter cards exist."""

    def __init__(self, cards_repo: CardsRepository | None = None, base_path=None) -> None:
        super().__init__("characters.json", base_path)
        self._cards_repo = cards_repo or CardsRepository(base_path=base_path)

    def _build(self, raw: dict[str, object]) -> Dict[str, CharacterDef]:
        card_ids = {card.id for card in self._cards_repo.all()}

        characters: Dict[str, CharacterDef] = {}
        for raw_id, payload in raw.items():
            context = f"character '{raw_id}'"
            data = self._require_mapping(payload, context)
            self._assert_exact_fields(
                data,
                {"name", "health", "gold", "ability", "starter_deck"},
                context,
                optional_fields={"story_description"},
            )
            health = self._require_int(data["health"], f"{context} health")
            if health <= 0:
                raise DataValidationError(f"{context} health must be positive.")
            starter_raw = data["starter_deck"]
            if not isinstance(starter_raw, list) or not starter_raw:
                raise DataValidationError(f"{context} starter_deck must be a non-empty list.")
            starter_deck = tuple(
                self._require_str(card_id, f"{context} starter_deck entry") for card_id in starter_raw
            )
            for card_id in starter_deck:
                if card_id not in card_ids:
                    raise DataReferenceError(f"{context} references missing card '{card_id}'.")

            characters[raw_id] = CharacterDef(
                id=raw_id,
                name=self._require_str(data["name"], f"{context} name"),
                health=health,
                gold=self._require_int(data["gold"], f"{context} gold"),
                ability=self._require_str(data["ability"], f"{context} ability"),
                starter_deck=starter_deck,
                story_description=self._require_str(
                    data.get("story_description", ""), f"{context} story_description"
                ),
            )
        return characters

    def starter_card_ids(self) -> set[str]:
        """Return the union of every character's starter card ids."""
        return {card_id for character in self.all() for card_id in character.starter_deck}
