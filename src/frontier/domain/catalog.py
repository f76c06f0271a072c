"""Immutable per-run card catalog."""
from __future__ import annotations

from types import MappingProxyType
from typing import Callable, Iterable, Iterator, Mapping

from frontier.domain.defs import CardDef


class Catalog(Mapping[str, CardDef]):
    """Read-only id -> card mapping.

    The session owns the catalog for a run and swaps the whole value when NG+ scaling produces a
    new one; nothing mutates a catalog in place.
    """

    __slots__ = ("_cards",)

    def __init__(self, cards: Mapping[str, CardDef] | None = None) -> None:
        self._cards = MappingProxyType(dict(cards or {}))

    @classmethod
    def from_cards(cls, cards: Iterable[CardDef]) -> "Catalog":
        return cls({card.id: card for card in cards})

    def __getitem__(self, card_id: str) -> CardDef:
        return self._cards[card_id]

    def __iter__(self) -> Iterator[str]:
        return iter(self._cards)

    def __len__(self) -> int:
        return len(self._cards)

    def __repr__(self) -> str:
        return f"Catalog({len(self._cards)} cards)"

    def cards(self) -> list[CardDef]:
        """Return all cards sorted by id."""
        return [self._cards[key] for key in sorted(self._cards)]

    def map_cards(self, transform: Callable[[CardDef], CardDef]) -> "Catalog":
        return Catalog({card_id: transform(card) for card_id, card in self._cards.items()})

    def with_cards(self, cards: Iterable[CardDef]) -> "Catalog":
        """Return a copy with the given cards added or replaced by id."""
        merged = dict(self._cards)
        merged.update({card.id: card for card in cards})
        return Catalog(merged)
