"""Resolution steps shared by the turn engine and the action resolver.

All helpers mutate the working copy of the state they are given and append the events they
produce; callers are responsible for cloning first.
"""
from __future__ import annotations

from typing import List

from frontier.core.rng import RNG
from frontier.core.types import LogType, RunOutcome
from frontier.domain.card_rules import make_trophy, sort_hand
from frontier.domain.defs import TAG_BOSS, CardDef
from frontier.domain.entities import PlayerState
from frontier.domain.player_effects import DamageOutcome, apply_damage, apply_heal
from frontier.domain.state import Banner, GameState
from frontier.services.events import (
    DamageTakenEvent,
    GameEvent,
    HealedEvent,
    RunFinishedEvent,
    ThreatDefeatedEvent,
)
from frontier.services.factories import make_instance_id


def record(state: GameState, events: List[GameEvent], event: GameEvent | None, message: str, log_type: LogType = "info") -> None:
    if event is not None:
        events.append(event)
    state.add_log(message, log_type)


def finish_run(state: GameState, events: List[GameEvent], outcome: RunOutcome, reason: str) -> None:
    if state.status == "finished":
        return
    state.status = "finished"
    state.outcome = outcome
    state.finish_reason = reason
    state.pending_auto_end_day = False
    state.banner = Banner(reason, kind="victory" if outcome == "victory" else "defeat")
    record(state, events, RunFinishedEvent(outcome=outcome, reason=reason), reason, "system")


def damage_player(state: GameState, events: List[GameEvent], amount: int, source_name: str) -> DamageOutcome:
    """Run damage through the player's pipeline and end the run if health hits zero."""
    player = state.require_player()
    outcome = apply_damage(player, amount)
    if not outcome.had_effect:
        return outcome
    event = DamageTakenEvent(
        source_name=source_name,
        requested=outcome.requested,
        dealt=outcome.dealt,
        health=player.health,
        negated_by=outcome.negated_by.name if outcome.negated_by is not None else None,
    )
    if outcome.negated_by is not None:
        message = f"{outcome.negated_by.name} took the blow from {source_name} and is lost."
    else:
        message = f"{source_name} deals {outcome.dealt} damage to {player.name}."
        if outcome.reduced_by:
            message += f" ({outcome.reduced_by} blocked)"
        state.damage_flash = True
    record(state, events, event, message, "event")
    if player.health <= 0:
        finish_run(state, events, "defeat", f"{player.name} has perished on the frontier.")
    return outcome


def heal_player(state: GameState, events: List[GameEvent], amount: int, source_name: str) -> int:
    player = state.require_player()
    healed = apply_heal(player, amount)
    record(
        state,
        events,
        HealedEvent(source_name=source_name, amount=healed, health=player.health),
        f"{source_name} restores {healed} health ({player.health}/{player.max_health}).",
        "action",
    )
    return healed


def mint_trophy(threat: CardDef, rng: RNG) -> CardDef:
    return make_trophy(threat, make_instance_id(f"trophy_{threat.id}", rng))


def defeat_active_threat(state: GameState, events: List[GameEvent], rng: RNG) -> CardDef:
    """Award gold and a trophy for the active threat and clear the event slot."""
    player = state.require_player()
    threat = state.active_event
    assert threat is not None
    trophy = mint_trophy(threat, rng)
    player.gold += threat.gold_value
    player.discard.append(trophy)
    state.active_event = None
    state.active_event_turn_counter = 0
    state.active_event_attacked_today = False
    state.banner = Banner(f"{threat.name} Defeated!", kind="threat_defeated")
    record(
        state,
        events,
        ThreatDefeatedEvent(
            threat_id=threat.id,
            threat_name=threat.name,
            gold_awarded=threat.gold_value,
            trophy_id=trophy.id,
        ),
        f"{threat.name} is defeated. +{threat.gold_value} gold, {trophy.name} added to discard.",
        "gold",
    )
    if threat.has_tag(TAG_BOSS):
        state.boss_defeated = True
        finish_run(state, events, "victory", f"{player.name} defeated {threat.name} and has conquered the frontier!")
    return trophy


def draw_cards(player: PlayerState, count: int | None, rng: RNG) -> int:
    """Draw into empty hand slots, reshuffling the discard when the deck runs out.

    ``count=None`` fills every empty slot. Returns the number of cards drawn.
    """
    drawn = 0
    while count is None or drawn < count:
        slot = player.first_empty_slot()
        if slot is None:
            break
        if not player.deck:
            if not player.discard:
                break
            player.deck = list(player.discard)
            player.discard = []
            rng.shuffle(player.deck)
        player.hand[slot] = player.deck.pop(0)
        drawn += 1
    if drawn:
        player.hand = sort_hand(player.hand, player.hand_size)
    return drawn


def discard_hand(player: PlayerState) -> int:
    cards = player.hand_cards()
    player.discard.extend(cards)
    player.hand = [None] * player.hand_size
    return len(cards)
