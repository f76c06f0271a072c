from frontier.core.rng import RNG
from frontier.domain.defs import DamageEffect, DamagePercentEffect, GoldStealEffect
from frontier.services.events import ActionFailedEvent, DamageTakenEvent, EventClearedEvent, TrapSprungEvent
from frontier.services.turn_engine import TurnEngine

from tests.helpers.builders import make_item, make_player, make_provision, make_state, make_threat, make_trap, make_upgrade, make_weapon


def _engine(seed: int = 7) -> TurnEngine:
    return TurnEngine(RNG(seed))


def test_end_day_leaves_input_state_untouched() -> None:
    state = make_state(active_event=make_threat("wolf", health=6, damage=3), event_deck=[make_threat("fox", health=5)])

    result = _engine().end_day(state)

    assert state.day == 1
    assert state.player.health == 20
    assert result.state is not state
    assert result.state.day == 2


def test_end_day_rejected_outside_play() -> None:
    state = make_state(status="showing_boss_intro")

    result = _engine().end_day(state)

    assert result.state is state
    assert isinstance(result.events[0], ActionFailedEvent)


def test_unattacked_small_animal_flees_overnight() -> None:
    rabbit = make_threat("rabbit", health=2, damage=1)
    wolf = make_threat("wolf", health=6, damage=3)
    state = make_state(active_event=rabbit, event_deck=[wolf])

    result = _engine().end_day(state)

    assert result.state.active_event == wolf
    assert rabbit in result.state.event_discard
    assert result.state.player.health == 20
    assert any(isinstance(event, EventClearedEvent) and event.reason == "fled" for event in result.events)


def test_attacked_small_animal_stays_and_strikes_back() -> None:
    rabbit = make_threat("rabbit", health=2, damage=1)
    state = make_state(active_event=rabbit)
    state.active_event_attacked_today = True

    result = _engine().end_day(state)

    assert result.state.active_event == rabbit
    assert result.state.player.health == 19


def test_medium_animal_attacks_only_on_its_second_day() -> None:
    wolf = make_threat("wolf", health=6, damage=3)
    engine = _engine()
    state = make_state(active_event=wolf)

    second_day = engine.end_day(state).state
    third_day = engine.end_day(second_day).state

    assert second_day.active_event_turn_counter == 2
    assert second_day.player.health == 17
    assert third_day.active_event_turn_counter == 3
    assert third_day.player.health == 17


def test_large_animal_attacks_on_reveal_and_each_unprovoked_morning() -> None:
    bear = make_threat("bear", health=15, damage=5)
    engine = _engine()
    revealed = engine.end_day(make_state(event_deck=[bear])).state
    assert revealed.player.health == 15

    next_day = engine.end_day(revealed).state

    assert next_day.player.health == 10


def test_small_trap_catches_animal_at_threshold() -> None:
    badger = make_threat("badger", health=4, damage=2)
    wolf = make_threat("wolf", health=6, damage=3)
    trap = make_trap("small_trap", "small")
    state = make_state(make_player(active_trap=trap), event_deck=[badger, wolf])

    result = _engine().end_day(state)

    player = result.state.player
    assert player.active_trap is None
    assert trap in player.discard
    assert any(card.card_type == "Trophy" for card in player.discard)
    assert result.state.active_event == wolf
    assert result.state.event_discard == []
    assert any(isinstance(event, TrapSprungEvent) and event.caught for event in result.events)


def test_small_trap_misses_animal_above_threshold() -> None:
    badger = make_threat("badger", health=5, damage=2)
    trap = make_trap("small_trap", "small")
    state = make_state(make_player(active_trap=trap), event_deck=[badger])

    result = _engine().end_day(state)

    assert result.state.player.active_trap is None
    assert trap in result.state.player.discard
    assert result.state.active_event == badger


def test_breaking_trap_wounds_the_animal() -> None:
    elk = make_threat("elk", health=12, damage=5)
    trap = make_trap("medium_trap", "medium", break_damage=2)
    state = make_state(make_player(active_trap=trap), event_deck=[elk])

    result = _engine().end_day(state)

    assert result.state.active_event.health == 10


def test_trap_never_catches_humans() -> None:
    thief = make_threat("thief", subtype="human", health=2, damage=2)
    trap = make_trap("large_trap", "large")
    state = make_state(make_player(active_trap=trap), event_deck=[thief])

    result = _engine().end_day(state)

    assert result.state.active_event == thief
    assert result.state.player.active_trap is None
    assert result.state.player.health == 18


def test_trap_waits_when_next_event_is_not_a_threat() -> None:
    nugget = make_item("nugget")
    trap = make_trap("small_trap", "small")
    state = make_state(make_player(active_trap=trap), event_deck=[nugget, make_threat("rabbit", health=2)])

    result = _engine().end_day(state)

    assert result.state.player.active_trap == trap
    assert result.state.active_event == nugget


def test_night_raider_strikes_and_leaves() -> None:
    skunk = make_threat("skunk", health=2, damage=2, tags=("night_raider",))
    state = make_state(active_event=skunk, event_deck=[make_threat("fox", health=5)])

    result = _engine().end_day(state)

    assert result.state.player.health == 18
    assert result.state.skunk_spray is True
    assert skunk in result.state.event_discard
    assert result.state.active_event.id == "fox"


def test_campfire_deters_animal_raider_and_skips_next_event() -> None:
    skunk = make_threat("skunk", health=2, damage=2, tags=("night_raider",))
    state = make_state(make_player(campfire_active=True), active_event=skunk, event_deck=[make_threat("fox", health=5)])

    result = _engine().end_day(state)

    assert result.state.player.health == 20
    assert result.state.active_event is None
    assert len(result.state.event_deck) == 1
    assert result.state.player.campfire_active is False


def test_campfire_does_not_deter_human_raider() -> None:
    thief = make_threat("thief", subtype="human", health=6, damage=3, tags=("night_raider",))
    state = make_state(make_player(campfire_active=True), active_event=thief)

    result = _engine().end_day(state)

    assert result.state.player.health == 17
    assert thief in result.state.event_discard


def test_unclaimed_item_returns_to_store_deck() -> None:
    nugget = make_item("nugget")
    state = make_state(active_event=nugget, event_deck=[make_threat("fox", health=5)])

    result = _engine().end_day(state)

    assert nugget in result.state.store_deck
    assert result.state.active_event.id == "fox"


def test_gold_steal_never_takes_more_than_the_player_has() -> None:
    thief = make_threat("thief", subtype="human", health=6, damage=0, immediate_effect=GoldStealEffect(max_amount=5))
    state = make_state(make_player(gold=2), event_deck=[thief])

    result = _engine().end_day(state)

    assert 0 <= result.state.player.gold <= 2


def test_reshuffle_returns_spent_events_before_the_boss() -> None:
    malaria = make_threat("malaria", subtype="illness", health=None, effect=DamageEffect(amount=2, turn_end=True))
    boss = make_threat("boss", subtype="human", health=25, damage=15, tags=("boss",))
    state = make_state(boss=boss)
    state.event_discard = [malaria]

    result = _engine().end_day(state)

    assert result.state.boss_placed is False
    assert result.state.active_event is None
    assert result.state.event_discard == [malaria]
    assert result.state.player.health == 20
    assert result.state.player.turn_ended is True


def test_reshuffle_leaves_the_boss_in_the_discard() -> None:
    wolf = make_threat("wolf", health=6, damage=3)
    boss = make_threat("boss", subtype="human", health=25, damage=15, tags=("boss",))
    state = make_state()
    state.event_discard = [wolf, boss]

    result = _engine().end_day(state)

    assert result.state.active_event == wolf
    assert result.state.event_discard == [boss]


def test_boss_is_placed_when_trail_runs_dry_then_victory_after() -> None:
    boss = make_threat("boss", subtype="animal", health=25, damage=15, tags=("boss",))
    engine = _engine()
    state = make_state(boss=boss)

    placed = engine.end_day(state).state

    assert placed.boss_placed is True
    assert placed.active_event == boss
    assert placed.banner is not None and placed.banner.kind == "boss"
    assert placed.player.health == 20
    assert not any(isinstance(event, DamageTakenEvent) for event in engine.end_day(state).events)

    cleared = placed.clone()
    cleared.active_event = None
    finished = engine.end_day(cleared).state

    assert finished.status == "finished"
    assert finished.outcome == "victory"


def test_lightning_takes_rounded_up_share_and_ends_the_day() -> None:
    lightning = make_threat(
        "lightning",
        subtype="environmental",
        health=None,
        effect=DamagePercentEffect(fraction=0.25, turn_end=True),
        tags=("reveal_damage",),
    )
    state = make_state(make_player(health=15), event_deck=[lightning, make_threat("fox", health=5)])

    result = _engine().end_day(state)

    new_state = result.state
    assert new_state.player.health == 11
    assert new_state.lightning_flash is True
    assert new_state.active_event is None
    assert lightning in new_state.event_discard
    assert new_state.banner is not None and new_state.banner.auto_end_day is True
    assert new_state.pending_auto_end_day is True
    assert new_state.player.turn_ended is True


def test_rockslide_spares_immune_equipment() -> None:
    rockslide = make_threat(
        "rockslide",
        subtype="environmental",
        health=None,
        effect=DamageEffect(amount=2, turn_end=True, discard_equipped=True),
        tags=("reveal_damage",),
    )
    coat = make_upgrade("coat", "damage_reduction", amount=1)
    bible = make_upgrade("bible", "provision_heal_boost", amount=1, tags=("rockslide_immune",))
    state = make_state(make_player(equipped=[coat, bible]), event_deck=[rockslide])

    result = _engine().end_day(state)

    player = result.state.player
    assert player.equipped == [bible]
    assert coat in player.discard
    assert player.health == 19


def test_reveal_initial_event_enters_play() -> None:
    wolf = make_threat("wolf", health=6, damage=3)
    state = make_state(status="showing_boss_intro", event_deck=[wolf])

    result = _engine().reveal_initial_event(state)

    assert result.state.status == "playing"
    assert result.state.active_event == wolf
    assert result.state.active_event_turn_counter == 1


def test_reveal_initial_event_rejected_during_play() -> None:
    state = make_state()

    result = _engine().reveal_initial_event(state)

    assert result.state is state
    assert result.events[0].reason == "invalid_status"


def test_human_threat_attacks_on_reveal() -> None:
    bandit = make_threat("bandit", subtype="human", health=10, damage=8)
    state = make_state(event_deck=[bandit])

    result = _engine().end_day(state)

    assert result.state.active_event == bandit
    assert result.state.player.health == 12


def test_night_raider_holds_its_attack_until_nightfall() -> None:
    thief = make_threat("thief", subtype="human", health=6, damage=3, tags=("night_raider",))
    state = make_state(event_deck=[thief])

    revealed = _engine().end_day(state).state

    assert revealed.active_event == thief
    assert revealed.player.health == 20


def test_illness_without_reveal_damage_only_costs_the_day() -> None:
    malaria = make_threat("malaria", subtype="illness", health=None, effect=DamageEffect(amount=2, turn_end=True))
    state = make_state(event_deck=[malaria, make_threat("fox", health=5)])

    result = _engine().end_day(state)

    assert result.state.player.health == 20
    assert malaria in result.state.event_discard
    assert result.state.player.turn_ended is True
    assert not any(isinstance(event, DamageTakenEvent) for event in result.events)


def test_scarlet_fever_strikes_when_revealed() -> None:
    fever = make_threat(
        "scarlet_fever",
        subtype="illness",
        health=None,
        effect=DamageEffect(amount=3, turn_end=True),
        tags=("reveal_damage",),
    )
    state = make_state(event_deck=[fever])

    result = _engine().end_day(state)

    assert result.state.player.health == 17


def test_illness_on_first_reveal_discards_the_opening_hand() -> None:
    hardtack = make_provision("hardtack")
    rifle = make_weapon("rifle", 4, tags=("firearm",))
    malaria = make_threat("malaria", subtype="illness", health=None, effect=DamageEffect(amount=2, turn_end=True))
    state = make_state(make_player(hand=[hardtack, rifle]), status="showing_boss_intro", event_deck=[malaria])

    result = _engine().reveal_initial_event(state)

    player = result.state.player
    assert result.state.status == "playing"
    assert player.hand_cards() == []
    assert hardtack in player.discard and rifle in player.discard
    assert player.turn_ended is True
    assert player.health == 20
