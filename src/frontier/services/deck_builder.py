"""Run deck assembly: event deck, player deck and store."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from frontier.core.config import DEFAULT_CONFIG, GameConfig
from frontier.core.rng import RNG
from frontier.domain.card_rules import is_valuable
from frontier.domain.catalog import Catalog
from frontier.domain.defs import TAG_BOSS, CardDef, CharacterDef
from frontier.services.errors import DeckBuildError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class DeckBuild:
    event_deck: List[CardDef] = field(default_factory=list)
    player_deck: List[CardDef] = field(default_factory=list)
    store_deck: List[CardDef] = field(default_factory=list)
    store_display: List[CardDef | None] = field(default_factory=list)


def _is_general(card: CardDef) -> bool:
    """Non-threat, non-valuable card that can appear in a player or store deck."""
    return not card.is_threat and card.card_type not in ("Trophy", "BountyProof") and not is_valuable(card)


class DeckBuilder:
    """Samples a run's decks from the catalog under category quotas.

    Each pick is removed from the shared pool, so apart from starter cards no card id lands in
    more than one of the event, player and store decks.
    """

    def __init__(self, rng: RNG, config: GameConfig = DEFAULT_CONFIG) -> None:
        self._rng = rng
        self._config = config

    def build_decks(
        self,
        catalog: Catalog,
        character: CharacterDef,
        ng_plus_level: int,
        *,
        excluded_ids: Iterable[str] = (),
        boss_id: str | None = None,
    ) -> DeckBuild:
        """Assemble every deck for a run.

        ``excluded_ids`` should hold all characters' starter ids; they are never sampled.
        """
        excluded = set(excluded_ids) | set(character.starter_deck)
        if boss_id is not None:
            excluded.add(boss_id)
        pool = [card for card in catalog.cards() if card.id not in excluded and not card.has_tag(TAG_BOSS)]
        used: set[str] = set()

        event_deck = self._build_event_deck(pool, ng_plus_level, used)
        player_deck = self._build_player_deck(catalog, character, pool, used)
        store_deck = self._build_store_deck(pool, used)

        display_size = self._config.store_display_size
        store_display: List[CardDef | None] = list(store_deck[:display_size])
        store_display.extend([None] * (display_size - len(store_display)))
        return DeckBuild(
            event_deck=event_deck,
            player_deck=player_deck,
            store_deck=store_deck[display_size:],
            store_display=store_display,
        )

    def _take(self, candidates: List[CardDef], count: int, used: set[str]) -> List[CardDef]:
        picks: List[CardDef] = []
        for card in candidates:
            if len(picks) >= count:
                break
            if card.id in used:
                continue
            used.add(card.id)
            picks.append(card)
        return picks

    def _shuffled(self, cards: Iterable[CardDef]) -> List[CardDef]:
        result = list(cards)
        self._rng.shuffle(result)
        return result

    def _ordered_threats(self, cards: Iterable[CardDef], ng_plus_level: int) -> List[CardDef]:
        threats = self._shuffled(cards)
        if ng_plus_level == 0:
            # Stable sort keeps the shuffle as the tie-break between equal health values.
            threats.sort(key=lambda card: card.health or 0)
        return threats

    def _build_event_deck(self, pool: List[CardDef], ng_plus_level: int, used: set[str]) -> List[CardDef]:
        config = self._config
        animals = self._ordered_threats((c for c in pool if c.is_threat and c.subtype == "animal"), ng_plus_level)
        humans = self._ordered_threats((c for c in pool if c.is_threat and c.subtype == "human"), ng_plus_level)
        natural = self._shuffled(c for c in pool if c.is_threat and c.subtype in ("illness", "environmental"))
        valuables = self._shuffled(c for c in pool if is_valuable(c))

        deck = self._take(animals, config.animal_quota, used)
        deck += self._take(humans, config.human_quota, used)
        deck += self._take(natural, config.natural_quota, used)
        valuable_count = self._rng.randint(0, config.max_event_valuables)
        deck += self._take(valuables, valuable_count, used)

        remaining = config.event_deck_size - len(deck)
        if remaining > 0:
            deck += self._take(self._shuffled(c for c in pool if _is_general(c)), remaining, used)
        if len(deck) < config.event_deck_size:
            logger.warning("Event deck short: %s of %s cards", len(deck), config.event_deck_size)
        self._rng.shuffle(deck)
        return deck

    def _build_player_deck(
        self,
        catalog: Catalog,
        character: CharacterDef,
        pool: List[CardDef],
        used: set[str],
    ) -> List[CardDef]:
        config = self._config
        try:
            starters = [catalog[card_id] for card_id in character.starter_deck]
        except KeyError as exc:
            raise DeckBuildError(f"Starter card {exc} for '{character.id}' is not in the catalog.") from exc

        augment_target = max(0, config.player_deck_size - len(starters))
        valuables = self._shuffled(c for c in pool if is_valuable(c))
        augmentation = self._take(valuables, self._rng.randint(0, config.max_player_valuables), used)
        augmentation += self._take(
            self._shuffled(c for c in pool if _is_general(c)),
            augment_target - len(augmentation),
            used,
        )

        deck = starters + augmentation
        fillers = [catalog[card_id] for card_id in config.filler_card_ids if card_id in catalog]
        index = 0
        while fillers and len(deck) < config.player_deck_size:
            filler = fillers[index % len(fillers)]
            used.add(filler.id)
            deck.append(filler)
            index += 1
        return deck

    def _build_store_deck(self, pool: List[CardDef], used: set[str]) -> List[CardDef]:
        candidates = self._shuffled(c for c in pool if _is_general(c) and c.buy_cost > 0)
        return self._take(candidates, self._config.store_deck_size, used)
