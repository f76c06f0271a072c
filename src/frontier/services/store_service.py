"""Store transactions: buy, sell, restock and delayed slot refills."""
from __future__ import annotations

from typing import List

from frontier.core.config import DEFAULT_CONFIG, GameConfig
from frontier.core.rng import RNG
from frontier.core.types import CardSource
from frontier.domain.card_rules import is_hostile_event
from frontier.domain.defs import CardDef
from frontier.domain.player_effects import remove_equipped
from frontier.domain.state import GameState
from frontier.services.events import (
    ActionFailedEvent,
    ActionResult,
    CardBoughtEvent,
    CardSoldEvent,
    GameEvent,
    StoreRefillRequest,
    StoreRestockedEvent,
    StoreSlotRefilledEvent,
)
from frontier.services.resolution import record


def _failed(state: GameState, reason: str, message: str) -> ActionResult:
    return ActionResult(state, [ActionFailedEvent(reason=reason, message=message)])


class StoreService:
    """Store logic for the trading post shown beside the trail."""

    def __init__(self, rng: RNG, config: GameConfig = DEFAULT_CONFIG) -> None:
        self._rng = rng
        self._config = config

    def price_for(self, card: CardDef, ng_plus_level: int) -> int:
        """Buy price: doubled on a first run, catalog price on NG+ runs."""
        multiplier = self._config.base_buy_multiplier if ng_plus_level == 0 else 1
        return card.buy_cost * multiplier

    def _trade_blocked(self, state: GameState) -> ActionResult | None:
        event = state.active_event
        if is_hostile_event(event):
            assert event is not None
            return _failed(state, "trade_blocked", f"The store is shuttered while the {event.name} is about.")
        return None

    def buy(self, state: GameState, slot: int) -> ActionResult:
        player = state.require_player()
        if not 0 <= slot < len(state.store_display):
            return _failed(state, "invalid_slot", f"Store slot {slot} does not exist.")
        card = state.store_display[slot]
        if card is None:
            return _failed(state, "sold_out", "That shelf is empty; the shopkeeper is restocking.")
        blocked = self._trade_blocked(state)
        if blocked is not None:
            return blocked
        cost = self.price_for(card, state.ng_plus_level)
        if cost <= 0:
            return _failed(state, "not_for_sale", f"{card.name} is not for sale.")
        if player.gold < cost:
            return _failed(state, "insufficient_gold", f"{card.name} costs {cost} gold; you have {player.gold}.")

        working = state.clone()
        buyer = working.require_player()
        buyer.gold -= cost
        buyer.discard.append(card)
        working.store_display[slot] = None
        events: List[GameEvent] = []
        record(
            working,
            events,
            CardBoughtEvent(card_id=card.id, card_name=card.name, cost=cost, total_gold=buyer.gold),
            f"Bought {card.name} for {cost} gold. It goes to your discard pile.",
            "gold",
        )
        return ActionResult(working, events, scheduled=[StoreRefillRequest(slot=slot)])

    def sell(self, state: GameState, source: CardSource, index: int) -> ActionResult:
        player = state.require_player()
        pile = player.hand if source == "hand" else player.equipped
        if not 0 <= index < len(pile) or pile[index] is None:
            return _failed(state, "missing_card", f"No card at {source} slot {index}.")
        card = pile[index]
        assert card is not None
        if card.sell_value <= 0:
            return _failed(state, "unsellable", f"Nobody will pay for {card.name}.")
        blocked = self._trade_blocked(state)
        if blocked is not None:
            return blocked

        working = state.clone()
        seller = working.require_player()
        # The boost counts while its card is still equipped, so a map sells for its own bonus too.
        gain = card.sell_value + seller.upgrade_total("sell_boost")
        if source == "hand":
            seller.hand[index] = None
        else:
            _, released = remove_equipped(seller, index)
            seller.discard.extend(released)
        seller.gold += gain
        events: List[GameEvent] = []
        record(
            working,
            events,
            CardSoldEvent(card_id=card.id, card_name=card.name, gain=gain, total_gold=seller.gold),
            f"Sold {card.name} for {gain} gold.",
            "gold",
        )
        return ActionResult(working, events)

    def restock(self, state: GameState) -> ActionResult:
        player = state.require_player()
        config = self._config
        if player.has_restocked_this_turn:
            return _failed(state, "already_restocked", "The store has already been restocked today.")
        if player.gold < config.restock_cost:
            return _failed(state, "insufficient_gold", f"Restocking costs {config.restock_cost} gold.")
        blocked = self._trade_blocked(state)
        if blocked is not None:
            return blocked

        working = state.clone()
        buyer = working.require_player()
        buyer.gold -= config.restock_cost
        buyer.has_restocked_this_turn = True
        working.store_deck.extend(card for card in working.store_display if card is not None)
        if len(working.store_deck) < config.store_display_size and working.store_discard:
            working.store_deck.extend(working.store_discard)
            working.store_discard = []
        self._rng.shuffle(working.store_deck)
        display: List[CardDef | None] = []
        for _ in range(config.store_display_size):
            display.append(working.store_deck.pop(0) if working.store_deck else None)
        working.store_display = display
        events: List[GameEvent] = []
        record(
            working,
            events,
            StoreRestockedEvent(card_ids=[card.id for card in display if card is not None]),
            f"Paid {config.restock_cost} gold to restock the store.",
            "gold",
        )
        return ActionResult(working, events)

    def refill_slot(self, state: GameState, slot: int, run_id: str) -> ActionResult:
        """Fill an emptied display slot from the store deck, if the run and slot are still current."""
        if state.run_id != run_id or state.is_finished:
            return ActionResult(state)
        if not 0 <= slot < len(state.store_display) or state.store_display[slot] is not None:
            return ActionResult(state)
        if not state.store_deck:
            return ActionResult(state)
        working = state.clone()
        card = working.store_deck.pop(0)
        working.store_display[slot] = card
        events: List[GameEvent] = []
        record(
            working,
            events,
            StoreSlotRefilledEvent(slot=slot, card_id=card.id),
            f"The shopkeeper puts out {card.name}.",
            "info",
        )
        return ActionResult(working, events)
