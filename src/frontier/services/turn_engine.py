"""Day lifecycle: event reveal, immediate effects and end-of-day resolution."""
from __future__ import annotations

import logging
import math
from dataclasses import replace
from typing import List

from frontier.core.config import DEFAULT_CONFIG, GameConfig
from frontier.core.rng import RNG
from frontier.domain.card_rules import animal_size
from frontier.domain.combat import heal_amount
from frontier.domain.defs import (
    TAG_BOSS,
    TAG_NIGHT_RAIDER,
    TAG_REVEAL_DAMAGE,
    CardDef,
    DamageEffect,
    DamagePercentEffect,
    GoldStealEffect,
    HealEffect,
    PoisonEffect,
    TrapEffect,
    ends_turn,
    threat_damage,
)
from frontier.domain.player_effects import discard_vulnerable_equipment
from frontier.domain.state import Banner, GameState
from frontier.services.events import (
    ActionFailedEvent,
    DayStartedEvent,
    EventClearedEvent,
    EventRevealedEvent,
    GameEvent,
    GoldChangedEvent,
    TrapSprungEvent,
    TurnResult,
)
from frontier.services.resolution import (
    damage_player,
    discard_hand,
    draw_cards,
    finish_run,
    heal_player,
    mint_trophy,
    record,
)

logger = logging.getLogger(__name__)


def _returns_to_trail(card: CardDef) -> bool:
    """Everything in the event discard except the boss goes back on a reshuffle."""
    return not card.has_tag(TAG_BOSS)


class TurnEngine:
    """Owns the day state machine.

    Public methods take a state snapshot and return a new one; the input is never mutated.
    """

    def __init__(self, rng: RNG, config: GameConfig = DEFAULT_CONFIG) -> None:
        self._rng = rng
        self._config = config

    def reveal_initial_event(self, state: GameState) -> TurnResult:
        """Reveal the first event of a run and enter normal play."""
        if state.status not in ("showing_boss_intro", "playing_initial_reveal"):
            return TurnResult(
                state,
                [ActionFailedEvent("invalid_status", f"Cannot begin play while the run is '{state.status}'.")],
            )
        working = state.clone()
        events: List[GameEvent] = []
        working.status = "playing_initial_reveal"
        if working.active_event is None:
            self._reveal_next_event(working, events)
        if working.status != "finished":
            working.status = "playing"
            if working.pending_auto_end_day:
                working.require_player().turn_ended = True
        return TurnResult(working, events)

    def end_day(self, state: GameState) -> TurnResult:
        """Resolve the night and set up the next day."""
        if state.status != "playing":
            return TurnResult(
                state,
                [ActionFailedEvent("invalid_status", f"Cannot end the day while the run is '{state.status}'.")],
            )
        working = state.clone()
        events: List[GameEvent] = []
        player = working.require_player()
        working.banner = None
        working.pending_auto_end_day = False
        working.scouted_card = None
        working.damage_flash = False
        working.lightning_flash = False
        working.skunk_spray = False
        player.turn_ended = True
        attacked_today = working.active_event_attacked_today
        working.add_log(f"Day {working.day} draws to a close.", "system")

        self._resolve_night_raider(working, events, attacked_today)
        if working.is_finished:
            return TurnResult(working, events)

        discard_hand(player)
        self._resolve_small_animal_flight(working, events, attacked_today)
        self._return_unclaimed_item(working, events)
        working.active_event_attacked_today = False

        carried_over = working.active_event is not None
        if carried_over:
            working.active_event_turn_counter += 1
        else:
            working.active_event_turn_counter = 0
            self._spring_trap(working, events)
            if player.campfire_active:
                working.add_log("The campfire keeps the trail quiet tonight. No new event.", "event")
            else:
                self._reveal_next_event(working, events)
            if working.is_finished:
                return TurnResult(working, events)

        if carried_over:
            self._resolve_morning_attack(working, events, attacked_today)
            if working.is_finished:
                return TurnResult(working, events)

        self._apply_nightly_heals(working, events)
        player.campfire_active = False

        draw_cards(player, None, self._rng)
        player.turn_ended = working.pending_auto_end_day
        player.has_taken_action_this_turn = False
        player.has_equipped_this_turn = False
        player.has_restocked_this_turn = False
        player.hat_negation_used_this_turn = False
        working.day += 1
        record(working, events, DayStartedEvent(day=working.day), f"Day {working.day} begins.", "system")
        return TurnResult(working, events)

    def _resolve_night_raider(self, state: GameState, events: List[GameEvent], attacked_today: bool) -> None:
        event = state.active_event
        if event is None or not event.has_tag(TAG_NIGHT_RAIDER) or not event.is_alive:
            return
        if attacked_today:
            return
        player = state.require_player()
        if player.campfire_active and event.subtype == "animal":
            state.add_log(f"The campfire keeps the {event.name} at bay.", "event")
        else:
            if event.subtype == "animal":
                state.skunk_spray = True
            damage_player(state, events, threat_damage(event.effect), event.name)
        self._clear_active_event(state, events, "left", f"The {event.name} slips away into the night.")

    def _resolve_small_animal_flight(self, state: GameState, events: List[GameEvent], attacked_today: bool) -> None:
        event = state.active_event
        if event is None or not event.is_alive or attacked_today:
            return
        if animal_size(event, self._config) == "small":
            self._clear_active_event(state, events, "fled", f"The {event.name} loses interest and flees.")

    def _return_unclaimed_item(self, state: GameState, events: List[GameEvent]) -> None:
        event = state.active_event
        if event is None or event.is_threat:
            return
        state.store_deck.append(event)
        state.active_event = None
        state.active_event_turn_counter = 0
        record(
            state,
            events,
            EventClearedEvent(card_id=event.id, card_name=event.name, reason="unclaimed"),
            f"The unclaimed {event.name} finds its way to the store.",
            "info",
        )

    def _clear_active_event(self, state: GameState, events: List[GameEvent], reason: str, message: str) -> None:
        event = state.active_event
        assert event is not None
        state.event_discard.append(event)
        state.active_event = None
        state.active_event_turn_counter = 0
        state.active_event_attacked_today = False
        record(state, events, EventClearedEvent(card_id=event.id, card_name=event.name, reason=reason), message, "event")

    def _spring_trap(self, state: GameState, events: List[GameEvent]) -> None:
        """Test the active trap against the top event card without drawing it."""
        player = state.require_player()
        trap = player.active_trap
        if trap is None or not state.event_deck or not isinstance(trap.effect, TrapEffect):
            return
        target = state.event_deck[0]
        if not target.is_combatant:
            state.add_log(f"The {trap.name} waits; nothing on the trail ahead will spring it.", "debug")
            return

        player.active_trap = None
        player.discard.append(trap)
        threshold = self._config.trap_threshold(trap.effect.size)
        if target.subtype == "animal" and (target.health or 0) <= threshold:
            state.event_deck.pop(0)
            trophy = mint_trophy(target, self._rng)
            player.discard.append(trophy)
            state.banner = Banner(f"{target.name} Defeated!", kind="threat_defeated")
            record(
                state,
                events,
                TrapSprungEvent(trap_name=trap.name, threat_name=target.name, caught=True),
                f"The {trap.name} caught the {target.name}! {trophy.name} added to discard.",
                "event",
            )
            return

        damage = trap.effect.break_damage
        if damage <= 0:
            record(
                state,
                events,
                TrapSprungEvent(trap_name=trap.name, threat_name=target.name, caught=False),
                f"The {target.name} tears free of the {trap.name} unharmed.",
                "event",
            )
            return
        remaining = max(0, (target.health or 0) - damage)
        record(
            state,
            events,
            TrapSprungEvent(trap_name=trap.name, threat_name=target.name, caught=False, damage=damage),
            f"The {target.name} breaks the {trap.name}, taking {damage} damage.",
            "event",
        )
        if remaining > 0:
            state.event_deck[0] = replace(target, health=remaining)
            return
        state.event_deck.pop(0)
        trophy = mint_trophy(target, self._rng)
        player.discard.append(trophy)
        state.banner = Banner(f"{target.name} Defeated!", kind="threat_defeated")
        state.add_log(f"The breaking trap finished off the {target.name}. {trophy.name} added to discard.", "event")

    def _draw_event_card(self, state: GameState) -> CardDef | None:
        if not state.event_deck:
            returning = [card for card in state.event_discard if _returns_to_trail(card)]
            if returning:
                state.event_discard = [card for card in state.event_discard if not _returns_to_trail(card)]
                self._rng.shuffle(returning)
                state.event_deck = returning
                state.add_log("The spent events are shuffled back onto the trail.", "info")
        if not state.event_deck:
            return None
        return state.event_deck.pop(0)

    def _reveal_next_event(self, state: GameState, events: List[GameEvent]) -> None:
        card = self._draw_event_card(state)
        if card is None:
            logger.debug("Event deck exhausted for run %s (boss placed=%s)", state.run_id, state.boss_placed)
            boss = state.boss
            if boss is not None and not state.boss_placed and not state.boss_defeated:
                state.boss_placed = True
                state.banner = Banner(f"{boss.name} blocks the trail!", kind="boss")
                self._place_event(state, events, boss, is_boss=True, resolve_effects=False)
                return
            player = state.require_player()
            finish_run(state, events, "victory", f"{player.name} has conquered the frontier!")
            return
        self._place_event(state, events, card)

    def _place_event(
        self,
        state: GameState,
        events: List[GameEvent],
        card: CardDef,
        *,
        is_boss: bool = False,
        resolve_effects: bool = True,
    ) -> None:
        state.active_event = card
        state.active_event_turn_counter = 1
        state.active_event_attacked_today = False
        record(
            state,
            events,
            EventRevealedEvent(card_id=card.id, card_name=card.name, is_boss=is_boss),
            f"{card.name} appears on the trail.",
            "event",
        )
        if resolve_effects:
            self.resolve_immediate_effects(state, events, card)

    def resolve_immediate_effects(self, state: GameState, events: List[GameEvent], card: CardDef) -> None:
        """Apply what a freshly revealed event does before the player can act."""
        player = state.require_player()
        if isinstance(card.immediate_effect, GoldStealEffect):
            stolen = min(player.gold, self._rng.randint(0, card.immediate_effect.max_amount))
            if stolen:
                player.gold -= stolen
                record(
                    state,
                    events,
                    GoldChangedEvent(amount=-stolen, total_gold=player.gold, reason="stolen"),
                    f"The {card.name} snatches {stolen} gold!",
                    "gold",
                )
            else:
                state.add_log(f"The {card.name} comes up empty-handed.", "gold")

        effect = card.effect
        if card.subtype == "human" and not card.has_tag(TAG_NIGHT_RAIDER):
            damage = threat_damage(effect)
            if damage > 0:
                damage_player(state, events, damage, card.name)
            return
        if card.subtype == "animal":
            if animal_size(card, self._config) == "large" and threat_damage(effect) > 0:
                damage_player(state, events, threat_damage(effect), card.name)
            return
        if card.subtype in ("illness", "environmental") and ends_turn(effect):
            self._resolve_turn_ending_event(state, events, card)

    def _resolve_turn_ending_event(self, state: GameState, events: List[GameEvent], card: CardDef) -> None:
        player = state.require_player()
        effect = card.effect
        discard_hand(player)
        damage = 0
        # Only tagged hazards hurt on arrival; the rest just cost the day.
        if card.has_tag(TAG_REVEAL_DAMAGE):
            if isinstance(effect, DamagePercentEffect):
                damage = math.ceil(player.health * effect.fraction)
                state.lightning_flash = True
            elif isinstance(effect, (DamageEffect, PoisonEffect)):
                damage = threat_damage(effect)
        if damage > 0:
            damage_player(state, events, damage, card.name)
            if state.is_finished:
                return
        if isinstance(effect, DamageEffect) and effect.discard_equipped:
            lost = discard_vulnerable_equipment(player)
            if lost:
                state.add_log(f"The {card.name} buries {', '.join(c.name for c in lost)}.", "event")
        self._clear_active_event(state, events, "resolved", f"{card.name} ends {player.name}'s day.")
        state.banner = Banner(f"{card.name}! The day is over.", kind="turn_end", auto_end_day=True)
        state.pending_auto_end_day = True

    def _resolve_morning_attack(self, state: GameState, events: List[GameEvent], attacked_yesterday: bool) -> None:
        event = state.active_event
        player = state.require_player()
        if event is None or event.subtype != "animal" or not event.is_alive or player.campfire_active:
            return
        damage = threat_damage(event.effect)
        if damage <= 0:
            return
        size = animal_size(event, self._config)
        if size == "small" and attacked_yesterday:
            damage_player(state, events, damage, event.name)
        elif size == "medium" and not event.has_tag(TAG_NIGHT_RAIDER) and state.active_event_turn_counter == 2:
            damage_player(state, events, damage, event.name)
        elif size == "large" and not attacked_yesterday:
            damage_player(state, events, damage, event.name)

    def _apply_nightly_heals(self, state: GameState, events: List[GameEvent]) -> None:
        player = state.require_player()
        for card in list(player.equipped):
            effect = card.effect
            if isinstance(effect, HealEffect) and effect.persistent:
                amount = heal_amount(card, player)
                if amount > 0 and player.health < player.max_health:
                    heal_player(state, events, amount, card.name)
