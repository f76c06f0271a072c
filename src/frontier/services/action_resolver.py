"""Validation and application of player commands within a day."""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable, Dict, List

from frontier.core.config import DEFAULT_CONFIG, GameConfig
from frontier.core.rng import RNG
from frontier.core.types import CardSource
from frontier.domain.combat import attack_power, heal_amount
from frontier.domain.defs import (
    TAG_BOW,
    CampfireEffect,
    CardDef,
    ConditionalWeaponEffect,
    DrawEffect,
    FireArrowEffect,
    GoldEffect,
    HealEffect,
    ScoutEffect,
    TrapEffect,
    UpgradeEffect,
    WeaponEffect,
)
from frontier.domain.entities import PlayerState
from frontier.domain.player_effects import apply_equip_effects, remove_equipped
from frontier.domain.state import GameState
from frontier.services.events import (
    ActionFailedEvent,
    ActionResult,
    CardDiscardedEvent,
    CardEquippedEvent,
    CardPlayedEvent,
    CardsDrawnEvent,
    CardStoredEvent,
    EventClearedEvent,
    GameEvent,
    GoldChangedEvent,
    ScoutedEvent,
    ThreatDamagedEvent,
    TrapSetEvent,
)
from frontier.services.resolution import defeat_active_threat, draw_cards, heal_player, record
from frontier.services.store_service import StoreService

logger = logging.getLogger(__name__)

_ATTACK_EFFECTS = (WeaponEffect, ConditionalWeaponEffect, FireArrowEffect)


@dataclass(slots=True)
class PlayerAction:
    """A single command issued by the player.

    ``index`` addresses the hand or equipment slot named by ``source``, the satchel position for
    ``use_from_satchel`` or the store display slot for ``buy``.
    """

    action_type: str
    source: CardSource = "hand"
    index: int = 0


def _failed(state: GameState, reason: str, message: str) -> ActionResult:
    return ActionResult(state, [ActionFailedEvent(reason=reason, message=message)])


def _card_at(player: PlayerState, source: CardSource, index: int) -> CardDef | None:
    pile = player.hand if source == "hand" else player.equipped
    if 0 <= index < len(pile):
        return pile[index]
    return None


def _has_bow(player: PlayerState) -> bool:
    return any(card.has_tag(TAG_BOW) for card in player.hand_cards() + player.equipped)


def _is_equippable(card: CardDef) -> bool:
    """Upgrades and weapon items can be worn; everything else is played or stored."""
    if card.card_type == "Upgrade":
        return True
    return card.card_type == "Item" and isinstance(card.effect, (WeaponEffect, ConditionalWeaponEffect))


def _stays_equipped(card: CardDef) -> bool:
    effect = card.effect
    if card.card_type == "Upgrade":
        return True
    return isinstance(effect, (UpgradeEffect, HealEffect)) and effect.persistent


class ActionResolver:
    """Applies player commands to a state snapshot.

    A rejected command returns the original state object together with an ``ActionFailedEvent``;
    an accepted one returns a new state and never touches the input.
    """

    def __init__(
        self,
        rng: RNG,
        config: GameConfig = DEFAULT_CONFIG,
        store_service: StoreService | None = None,
    ) -> None:
        self._rng = rng
        self._config = config
        self._store = store_service or StoreService(rng, config)
        self._handlers: Dict[str, Callable[[GameState, PlayerAction], ActionResult]] = {
            "play": self._play,
            "equip": self._equip,
            "store": self._store_in_satchel,
            "use_from_satchel": self._use_from_satchel,
            "buy": self._buy,
            "sell": self._sell,
            "take_event_item": self._take_event_item,
            "discard_equipped": self._discard_equipped,
            "restock": self._restock,
        }

    def resolve(self, state: GameState, action: PlayerAction) -> ActionResult:
        handler = self._handlers.get(action.action_type)
        if handler is None:
            logger.warning("Rejected unknown action type %r", action.action_type)
            return _failed(state, "unknown_action", f"Unknown action '{action.action_type}'.")
        if state.status != "playing":
            return _failed(state, "not_playing", f"Cannot act while the run is '{state.status}'.")
        player = state.player
        if player is None:
            return _failed(state, "no_player", "No player has been selected.")
        if player.turn_ended:
            return _failed(state, "turn_ended", "The day is already over for you.")
        return handler(state, action)

    # Play ---------------------------------------------------------------------------------------

    def _play(self, state: GameState, action: PlayerAction) -> ActionResult:
        player = state.require_player()
        source, index = action.source, action.index
        card = _card_at(player, source, index)
        if card is None:
            return _failed(state, "missing_card", f"No card at {source} slot {index}.")
        effect = card.effect
        if effect is None or isinstance(effect, UpgradeEffect):
            return _failed(state, "not_playable", f"{card.name} cannot be played; equip it instead.")
        if isinstance(effect, HealEffect) and effect.persistent:
            return _failed(state, "not_playable", f"{card.name} works while equipped.")
        if isinstance(effect, _ATTACK_EFFECTS):
            threat = state.active_event
            if threat is None or not threat.is_combatant or not threat.is_alive:
                return _failed(state, "no_target", f"There is nothing on the trail for {card.name} to attack.")
            if isinstance(effect, FireArrowEffect) and not _has_bow(player):
                return _failed(state, "requires_bow", f"{card.name} needs a bow in hand or equipped.")
        if isinstance(effect, CampfireEffect) and player.campfire_active:
            return _failed(state, "campfire_lit", "A campfire is already burning tonight.")

        working = state.clone()
        events: List[GameEvent] = []
        actor = working.require_player()
        damage = 0
        if isinstance(effect, (WeaponEffect, ConditionalWeaponEffect)):
            damage = attack_power(card, actor, source, index, working.active_event)

        keeps_slot = source == "equipped" and _stays_equipped(card)
        if not keeps_slot:
            if source == "hand":
                actor.hand[index] = None
            else:
                _, released = remove_equipped(actor, index)
                actor.discard.extend(released)
        record(
            working,
            events,
            CardPlayedEvent(card_id=card.id, card_name=card.name, source=source),
            f"{actor.name} plays {card.name}.",
            "action",
        )

        if isinstance(effect, (WeaponEffect, ConditionalWeaponEffect)):
            self._strike(working, events, card, damage)
        elif isinstance(effect, FireArrowEffect):
            self._strike(working, events, card, effect.damage)
        elif isinstance(effect, HealEffect):
            self._heal(working, events, card, effect)
        elif isinstance(effect, CampfireEffect):
            actor.campfire_active = True
            working.add_log("A campfire crackles. Nothing new will find you tonight.", "action")
        elif isinstance(effect, GoldEffect):
            amount = self._rng.randint(effect.min_amount, effect.max_amount)
            actor.gold += amount
            record(
                working,
                events,
                GoldChangedEvent(amount=amount, total_gold=actor.gold, reason=card.name),
                f"{card.name} turns up {amount} gold.",
                "gold",
            )
        elif isinstance(effect, DrawEffect):
            self._draw(working, events, card, effect.amount)
        elif isinstance(effect, TrapEffect):
            self._set_trap(working, events, card)
            return ActionResult(working, events)
        elif isinstance(effect, ScoutEffect):
            self._scout(working, events)
        else:
            logger.debug("Played %s with no resolvable effect", card.id)

        if not keeps_slot:
            actor.discard.append(card)
        return ActionResult(working, events)

    def _strike(self, state: GameState, events: List[GameEvent], card: CardDef, damage: int) -> None:
        threat = state.active_event
        assert threat is not None
        remaining = max(0, (threat.health or 0) - damage)
        state.active_event = replace(threat, health=remaining)
        state.active_event_attacked_today = True
        record(
            state,
            events,
            ThreatDamagedEvent(threat_name=threat.name, damage=damage, remaining_health=remaining),
            f"{card.name} hits the {threat.name} for {damage} damage ({remaining} health left).",
            "action",
        )
        if remaining == 0:
            defeat_active_threat(state, events, self._rng)

    def _heal(self, state: GameState, events: List[GameEvent], card: CardDef, effect: HealEffect) -> None:
        player = state.require_player()
        heal_player(state, events, heal_amount(card, player), card.name)
        illness = state.active_event
        if effect.cures and illness is not None and illness.is_threat and illness.subtype == "illness":
            state.event_discard.append(illness)
            state.active_event = None
            state.active_event_turn_counter = 0
            record(
                state,
                events,
                EventClearedEvent(card_id=illness.id, card_name=illness.name, reason="cured"),
                f"{card.name} cures {player.name} of {illness.name}!",
                "info",
            )

    def _draw(self, state: GameState, events: List[GameEvent], card: CardDef, amount: int) -> None:
        player = state.require_player()
        drawn = draw_cards(player, amount, self._rng)
        record(state, events, CardsDrawnEvent(count=drawn), f"{card.name}: drew {drawn} card(s).", "action")

    def _set_trap(self, state: GameState, events: List[GameEvent], card: CardDef) -> None:
        player = state.require_player()
        replaced = player.active_trap
        if replaced is not None:
            player.discard.append(replaced)
        player.active_trap = card
        message = f"{card.name} is set on the trail."
        if replaced is not None:
            message += f" The old {replaced.name} is discarded."
        record(
            state,
            events,
            TrapSetEvent(trap_name=card.name, replaced=replaced.name if replaced is not None else None),
            message,
            "action",
        )

    def _scout(self, state: GameState, events: List[GameEvent]) -> None:
        top = state.event_deck[0] if state.event_deck else None
        state.scouted_card = top
        if top is None:
            message = "You scout ahead but the trail is empty."
        else:
            message = f"Scouting ahead, you spot {top.name}."
        record(
            state,
            events,
            ScoutedEvent(card_id=top.id if top else None, card_name=top.name if top else None),
            message,
            "info",
        )

    # Equipment and satchel ----------------------------------------------------------------------

    def _equip(self, state: GameState, action: PlayerAction) -> ActionResult:
        player = state.require_player()
        card = _card_at(player, "hand", action.index)
        if card is None:
            return _failed(state, "missing_card", f"No card at hand slot {action.index}.")
        if not _is_equippable(card):
            return _failed(state, "not_equippable", f"{card.name} cannot be equipped.")
        if player.has_equipped_this_turn:
            return _failed(state, "already_equipped", "You can only equip one item per day.")
        if len(player.equipped) >= self._config.equip_slots:
            return _failed(state, "no_free_slot", "All equipment slots are full.")

        working = state.clone()
        actor = working.require_player()
        actor.hand[action.index] = None
        actor.equipped.append(card)
        actor.has_equipped_this_turn = True
        apply_equip_effects(actor, card)
        events: List[GameEvent] = []
        record(
            working,
            events,
            CardEquippedEvent(card_id=card.id, card_name=card.name),
            f"{actor.name} equips {card.name}.",
            "action",
        )
        return ActionResult(working, events)

    def _store_in_satchel(self, state: GameState, action: PlayerAction) -> ActionResult:
        player = state.require_player()
        card = _card_at(player, "hand", action.index)
        if card is None:
            return _failed(state, "missing_card", f"No card at hand slot {action.index}.")
        if card.card_type != "Provision":
            return _failed(state, "not_storable", "Only provisions fit in the satchel.")
        capacity = player.satchel_capacity
        if capacity == 0:
            return _failed(state, "no_satchel", "Equip a satchel first.")
        if len(player.satchel) >= capacity:
            return _failed(state, "satchel_full", f"The satchel is full ({capacity} items).")

        working = state.clone()
        actor = working.require_player()
        actor.hand[action.index] = None
        actor.satchel.append(card)
        events: List[GameEvent] = []
        record(
            working,
            events,
            CardStoredEvent(card_id=card.id, card_name=card.name),
            f"{card.name} is stowed in the satchel.",
            "action",
        )
        return ActionResult(working, events)

    def _use_from_satchel(self, state: GameState, action: PlayerAction) -> ActionResult:
        player = state.require_player()
        if not 0 <= action.index < len(player.satchel):
            return _failed(state, "missing_card", "That satchel pocket is empty.")
        card = player.satchel[action.index]
        effect = card.effect
        if not isinstance(effect, (HealEffect, DrawEffect)):
            return _failed(state, "unsupported_from_satchel", f"{card.name} cannot be used from the satchel.")

        working = state.clone()
        actor = working.require_player()
        del actor.satchel[action.index]
        events: List[GameEvent] = []
        working.add_log(f"{actor.name} takes {card.name} from the satchel.", "action")
        if isinstance(effect, HealEffect):
            self._heal(working, events, card, effect)
        else:
            self._draw(working, events, card, effect.amount)
        actor.discard.append(card)
        return ActionResult(working, events)

    def _discard_equipped(self, state: GameState, action: PlayerAction) -> ActionResult:
        player = state.require_player()
        card = _card_at(player, "equipped", action.index)
        if card is None:
            return _failed(state, "missing_card", f"No equipped item at slot {action.index}.")

        working = state.clone()
        actor = working.require_player()
        _, released = remove_equipped(actor, action.index)
        actor.discard.append(card)
        actor.discard.extend(released)
        events: List[GameEvent] = []
        message = f"{actor.name} discards equipped {card.name}."
        if released:
            message += f" {len(released)} satchel item(s) spill into the discard pile."
        record(working, events, CardDiscardedEvent(card_id=card.id, card_name=card.name), message, "action")
        return ActionResult(working, events)

    # Event slot and store -----------------------------------------------------------------------

    def _take_event_item(self, state: GameState, action: PlayerAction) -> ActionResult:
        del action
        player = state.require_player()
        if player.has_taken_action_this_turn:
            return _failed(state, "action_taken", "You have already taken an action today.")
        item = state.active_event
        if item is None or item.is_threat:
            return _failed(state, "nothing_to_take", "There is no item on the trail to take.")

        working = state.clone()
        actor = working.require_player()
        actor.discard.append(item)
        actor.has_taken_action_this_turn = True
        working.active_event = None
        working.active_event_turn_counter = 0
        events: List[GameEvent] = []
        record(
            working,
            events,
            EventClearedEvent(card_id=item.id, card_name=item.name, reason="taken"),
            f"{actor.name} takes {item.name}, adding it to their discard pile.",
            "action",
        )
        return ActionResult(working, events)

    def _buy(self, state: GameState, action: PlayerAction) -> ActionResult:
        return self._store.buy(state, action.index)

    def _sell(self, state: GameState, action: PlayerAction) -> ActionResult:
        return self._store.sell(state, action.source, action.index)

    def _restock(self, state: GameState, action: PlayerAction) -> ActionResult:
        del action
        return self._store.restock(state)
