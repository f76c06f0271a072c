"""Run orchestration: setup, command dispatch, timers, persistence and NG+ carry-over."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List

from frontier.core.config import GameConfig, load_config
from frontier.core.rng import RNG
from frontier.core.types import CardSource
from frontier.data.repositories import CardsRepository, CharactersRepository
from frontier.domain.catalog import Catalog
from frontier.domain.content_scaling import milestone_for, scale_catalog
from frontier.domain.defs import CardDef, CharacterDef
from frontier.domain.player_effects import apply_equip_effects
from frontier.domain.progress import RunProgress
from frontier.domain.state import GameLog, GameState
from frontier.services.action_resolver import ActionResolver, PlayerAction
from frontier.services.deck_builder import DeckBuilder
from frontier.services.errors import SaveLoadError
from frontier.services.events import ActionFailedEvent, ActionResult, GameEvent, StoreRefillRequest, TurnResult
from frontier.services.factories import create_player_state, make_run_id
from frontier.services.narrative_service import NarrativeService
from frontier.services.resolution import draw_cards, finish_run
from frontier.services.save_service import SaveService
from frontier.services.save_store import SaveStore
from frontier.services.scheduler import TaskScheduler
from frontier.services.store_service import StoreService
from frontier.services.turn_engine import TurnEngine

logger = logging.getLogger(__name__)

_RESUMABLE_STATUSES = ("showing_boss_intro", "playing_initial_reveal", "playing")
_FLASH_FLAGS = ("damage_flash", "lightning_flash", "skunk_spray")


class GameSession:
    """Owns the current run and routes every command through the engine services.

    Each command replaces ``state`` with the snapshot returned by the services, checks the run
    invariants, schedules follow-up timers and persists the result. Rejected commands leave the
    state untouched apart from an ``error`` entry in its log.
    """

    def __init__(
        self,
        *,
        cards_repo: CardsRepository | None = None,
        characters_repo: CharactersRepository | None = None,
        narrative: NarrativeService | None = None,
        save_store: SaveStore | None = None,
        config: GameConfig | None = None,
        config_path: Path | None = None,
        rng: RNG | None = None,
        scheduler: TaskScheduler | None = None,
    ) -> None:
        config = config if config is not None else load_config(config_path)
        self._config = config
        self._rng = rng or RNG()
        self._cards_repo = cards_repo or CardsRepository()
        self._characters_repo = characters_repo or CharactersRepository(self._cards_repo)
        self._narrative = narrative or NarrativeService(rng=self._rng)
        self._save_store = save_store
        self._save_service = SaveService(config)
        self._scheduler = scheduler or TaskScheduler()
        self._deck_builder = DeckBuilder(self._rng, config)
        self._store_service = StoreService(self._rng, config)
        self._resolver = ActionResolver(self._rng, config, self._store_service)
        self._engine = TurnEngine(self._rng, config)
        self._progress = RunProgress()
        self._catalog: Catalog | None = None
        self._state: GameState | None = None
        self._character: CharacterDef | None = None
        self._player_name: str | None = None
        self._epilogue: str | None = None

    # Queries ------------------------------------------------------------------------------------

    @property
    def state(self) -> GameState:
        if self._state is None:
            raise RuntimeError("No run is active; call load_or_start() or new_run() first.")
        return self._state

    @property
    def catalog(self) -> Catalog:
        if self._catalog is None:
            self._catalog = self._cards_repo.catalog()
        return self._catalog

    @property
    def progress(self) -> RunProgress:
        return self._progress

    @property
    def selected_character(self) -> CharacterDef | None:
        return self._character

    @property
    def epilogue(self) -> str | None:
        return self._epilogue

    @property
    def scheduler(self) -> TaskScheduler:
        return self._scheduler

    def characters(self) -> List[CharacterDef]:
        return self._characters_repo.all()

    # Run lifecycle ------------------------------------------------------------------------------

    def load_or_start(self) -> GameState:
        """Resume the saved run when it is intact, otherwise begin a fresh one."""
        self._load_progress()
        if self._save_store is not None:
            payload = self._save_store.read_game_state()
            if payload is not None:
                try:
                    state = self._save_service.deserialize(payload)
                except SaveLoadError as exc:
                    logger.error("Discarding unreadable saved run: %s", exc)
                    self._save_store.delete_game_state()
                else:
                    if state.status in _RESUMABLE_STATUSES and state.player is not None:
                        return self._resume(state)
                    logger.debug("Saved run in status %s cannot be resumed", state.status)
                    self._save_store.delete_game_state()
        return self.new_run()

    def _resume(self, state: GameState) -> GameState:
        self._state = state
        self._character = state.require_player().character
        self._player_name = state.require_player().name
        state.add_log("Welcome back to the trail.", "system")
        for slot, card in enumerate(state.store_display):
            if card is None:
                self._schedule_refill(state.run_id, slot)
        if state.status == "playing" and state.pending_auto_end_day:
            self._schedule(
                "auto_end_day", self._config.banner_duration, state.run_id, lambda: self._auto_end_day(state.run_id)
            )
        return state

    def new_run(self) -> GameState:
        """Scale the catalog for the current NG+ level, summon a boss and enter setup."""
        if self._state is not None:
            self._scheduler.cancel_run(self._state.run_id)
        level = self._progress.ng_plus_level
        self._catalog = self._scaled_catalog(level)
        boss = self._narrative.generate_boss()
        state = GameState(
            run_id=make_run_id(self._rng),
            status="setup",
            player_id=self._config.player_id,
            ng_plus_level=level,
            boss=boss.value,
            log=GameLog(self._config.max_log_entries),
        )
        state.add_log("A great evil awakens in the west...", "system")
        if boss.used_fallback:
            state.add_log("Failed to summon a unique threat. A familiar foe waits instead.", "error")
        if level:
            state.add_log(f"New Game Plus {level}: the frontier grows more dangerous.", "system")
        self._state = state
        self._character = None
        self._player_name = None
        self._epilogue = None
        self._persist()
        return state

    def _scaled_catalog(self, level: int) -> Catalog:
        base = self._cards_repo.catalog()
        milestone = milestone_for(level, self._config.milestone_interval)
        prior_themed = self._load_theme(milestone) if milestone and milestone != level else None
        remix = self._narrative.remix_catalog if self._narrative.available else None
        scaled = scale_catalog(
            base,
            level,
            prior_themed=prior_themed,
            remix=remix,
            interval=self._config.milestone_interval,
        )
        if scaled.mode == "themed" and scaled.themed is not None and self._save_store is not None:
            self._save_store.write_theme(milestone, self._save_service.serialize_catalog(scaled.themed))
        logger.info("Catalog for NG+%s built in %s mode", level, scaled.mode)
        return scaled.catalog

    def _load_theme(self, milestone: int) -> Catalog | None:
        if self._save_store is None:
            return None
        payload = self._save_store.read_theme(milestone)
        if payload is None:
            return None
        try:
            return self._save_service.deserialize_catalog(payload)
        except SaveLoadError as exc:
            logger.warning("Ignoring stored theme for NG+%s: %s", milestone, exc)
            return None

    def _load_progress(self) -> None:
        if self._save_store is None:
            return
        payload = self._save_store.read_progress()
        if payload is None:
            return
        try:
            self._progress = self._save_service.deserialize_progress(payload)
        except SaveLoadError as exc:
            logger.error("Discarding unreadable NG+ progress: %s", exc)
            self._progress = RunProgress()
            self._save_store.delete_progress()

    def _save_progress(self) -> None:
        if self._save_store is not None:
            self._save_store.write_progress(self._save_service.serialize_progress(self._progress))

    # Setup commands -----------------------------------------------------------------------------

    def select_character(self, character_id: str) -> ActionResult:
        state = self.state
        if state.status != "setup":
            return self._reject("invalid_status", "Characters can only be chosen during setup.")
        try:
            character = self._characters_repo.get(character_id)
        except KeyError:
            return self._reject("unknown_character", f"Unknown character '{character_id}'.")
        self._character = character
        state.add_log(f"{character.name} selected.", "system")
        self._persist()
        return ActionResult(state)

    def confirm_name(self, name: str) -> ActionResult:
        state = self.state
        if state.status != "setup":
            return self._reject("invalid_status", "The name can only be set during setup.")
        cleaned = name.strip()
        if not cleaned:
            return self._reject("invalid_name", "Please enter a name for your adventurer.")
        self._player_name = cleaned
        self._progress.player_name = cleaned
        state.add_log(f"The trail will remember the name {cleaned}.", "system")
        return ActionResult(state)

    def start_game(self) -> ActionResult:
        """Build the decks, create the player and move on to the boss introduction."""
        state = self.state
        if state.status != "setup":
            return self._reject("invalid_status", "A run is already under way.")
        character = self._character
        if character is None:
            return self._reject("no_character", "Choose a character before starting.")
        name = self._player_name or character.name
        catalog = self.catalog
        level = state.ng_plus_level

        build = self._deck_builder.build_decks(
            catalog,
            character,
            level,
            excluded_ids=self._characters_repo.starter_card_ids(),
            boss_id=state.boss.id if state.boss else None,
        )
        player = create_player_state(
            character,
            name,
            ng_plus_level=level,
            carried_gold=self._progress.carried_gold,
            config=self._config,
        )
        carried_cards = self._lookup_carried(catalog, self._progress.carried_deck_ids)
        for card in self._lookup_carried(catalog, self._progress.carried_equipped_ids)[: self._config.equip_slots]:
            player.equipped.append(card)
            apply_equip_effects(player, card)
        player.deck = build.player_deck + carried_cards
        self._rng.shuffle(player.deck)
        draw_cards(player, None, self._rng)

        working = state.clone()
        working.players = {working.player_id: player}
        working.event_deck = build.event_deck
        working.store_deck = build.store_deck
        working.store_display = build.store_display
        working.status = "generating_boss_intro"
        working.add_log(f"{name} the {character.name} sets out on the trail.", "system")
        if carried_cards or player.equipped:
            working.add_log(
                f"Carried over {len(carried_cards)} card(s) and {len(player.equipped)} piece(s) of gear.",
                "system",
            )

        intro = self._narrative.generate_intro_story(name, character, working.boss)
        working.intro_title = intro.value.title
        working.intro_paragraph = intro.value.paragraph
        working.status = "showing_boss_intro"

        self._progress.character_id = character.id
        self._progress.player_name = name
        self._progress.carried_deck_ids = []
        self._progress.carried_equipped_ids = []
        self._save_progress()
        return self._commit(ActionResult(working))

    def _lookup_carried(self, catalog: Catalog, card_ids: List[str]) -> List[CardDef]:
        cards: List[CardDef] = []
        for card_id in card_ids:
            card = catalog.get(card_id)
            if card is None:
                logger.debug("Carried card %s is not in this run's catalog", card_id)
                continue
            cards.append(card)
        return cards

    def proceed_to_game_play(self) -> TurnResult:
        result = self._engine.reveal_initial_event(self.state)
        return self._commit_turn(result)

    # Gameplay commands --------------------------------------------------------------------------

    def perform(self, action: PlayerAction) -> ActionResult:
        result = self._resolver.resolve(self.state, action)
        return self._commit(result)

    def play_card(self, index: int, source: CardSource = "hand") -> ActionResult:
        return self.perform(PlayerAction("play", source=source, index=index))

    def equip_card(self, index: int) -> ActionResult:
        return self.perform(PlayerAction("equip", index=index))

    def store_in_satchel(self, index: int) -> ActionResult:
        return self.perform(PlayerAction("store", index=index))

    def use_from_satchel(self, index: int = 0) -> ActionResult:
        return self.perform(PlayerAction("use_from_satchel", index=index))

    def buy_card(self, slot: int) -> ActionResult:
        return self.perform(PlayerAction("buy", index=slot))

    def sell_card(self, index: int, source: CardSource = "hand") -> ActionResult:
        return self.perform(PlayerAction("sell", source=source, index=index))

    def take_event_item(self) -> ActionResult:
        return self.perform(PlayerAction("take_event_item"))

    def discard_equipped(self, index: int) -> ActionResult:
        return self.perform(PlayerAction("discard_equipped", source="equipped", index=index))

    def restock_store(self) -> ActionResult:
        return self.perform(PlayerAction("restock"))

    def end_day(self) -> TurnResult:
        self._scheduler.cancel("auto_end_day")
        return self._commit_turn(self._engine.end_day(self.state))

    def reset_game(self) -> GameState:
        """Abandon the run and all NG+ progress and start over at NG+0."""
        if self._state is not None:
            self._scheduler.cancel_run(self._state.run_id)
        self._progress.reset()
        if self._save_store is not None:
            self._save_store.delete_game_state()
            self._save_store.delete_progress()
            self._save_store.clear_themes()
        return self.new_run()

    def generate_epilogue(self) -> str:
        state = self.state
        if self._epilogue is not None:
            return self._epilogue
        player = state.player
        name = player.name if player else (self._player_name or "The wanderer")
        story = self._narrative.generate_epilogue(name, state.log.entries(), state.outcome, state.finish_reason)
        if story.used_fallback:
            state.add_log("The storyteller falters; a plainer telling will have to do.", "error")
        self._epilogue = story.value
        return story.value

    def tick(self, now: float | None = None) -> int:
        """Run due timers (store refills, banner and effect clears, auto end of day)."""
        return self._scheduler.run_due(now)

    # Commit pipeline ----------------------------------------------------------------------------

    def _reject(self, reason: str, message: str) -> ActionResult:
        state = self.state
        state.add_log(message, "error")
        return ActionResult(state, [ActionFailedEvent(reason=reason, message=message)])

    def _commit(self, result: ActionResult) -> ActionResult:
        if not result.succeeded:
            for event in result.events:
                if isinstance(event, ActionFailedEvent):
                    result.state.add_log(event.message, "error")
            return result
        self._apply(result.state, result.events, result.scheduled)
        return result

    def _commit_turn(self, result: TurnResult) -> TurnResult:
        failures = [event for event in result.events if isinstance(event, ActionFailedEvent)]
        if failures:
            for event in failures:
                result.state.add_log(event.message, "error")
            return result
        self._apply(result.state, result.events, [])
        return result

    def _apply(self, state: GameState, events: List[GameEvent], scheduled: List[StoreRefillRequest]) -> None:
        previous = self._state
        was_finished = previous is not None and previous.is_finished
        self._enforce_invariants(state, events)
        self._state = state
        for request in scheduled:
            self._schedule_refill(state.run_id, request.slot)
        self._schedule_signals(previous, state)
        if state.is_finished and not was_finished:
            self._finalize(state)
            return
        self._persist()

    def _enforce_invariants(self, state: GameState, events: List[GameEvent]) -> None:
        player = state.player
        if state.is_finished or player is None or state.status not in ("playing", "playing_initial_reveal"):
            return
        if player.health <= 0:
            logger.error("Run %s: player at %s health while %s; forcing defeat", state.run_id, player.health, state.status)
            finish_run(state, events, "defeat", f"{player.name} has perished on the frontier.")
        elif not player.deck and not player.hand_cards() and not player.discard:
            logger.error("Run %s: player has no cards left; forcing the run to end", state.run_id)
            finish_run(state, events, "defeat", f"{player.name} ran out of supplies on the trail.")

    def _finalize(self, state: GameState) -> None:
        self._scheduler.cancel_run(state.run_id)
        player = state.player
        if state.outcome == "victory" and player is not None:
            owned = player.deck + player.hand_cards() + player.discard + player.satchel
            self._progress.ng_plus_level = state.ng_plus_level + 1
            self._progress.carried_gold = player.gold
            self._progress.carried_deck_ids = [card.id for card in owned]
            self._progress.carried_equipped_ids = [card.id for card in player.equipped]
            self._progress.boss_defeated = state.boss_defeated
            self._save_progress()
            state.add_log(f"New Game Plus {self._progress.ng_plus_level} awaits.", "system")
        else:
            self._progress.reset()
            if self._save_store is not None:
                self._save_store.delete_progress()
                self._save_store.clear_themes()
        if self._save_store is not None:
            self._save_store.delete_game_state()

    def _persist(self) -> None:
        if self._save_store is None or self._state is None or self._state.is_finished:
            return
        self._save_store.write_game_state(self._save_service.serialize(self._state))

    # Timers -------------------------------------------------------------------------------------

    def _schedule(self, key: str, delay: float, run_id: str, callback: Callable[[], None]) -> None:
        self._scheduler.schedule(key, delay, run_id, callback)

    def _schedule_refill(self, run_id: str, slot: int) -> None:
        self._schedule(f"store_refill_{slot}", self._config.store_refill_delay, run_id, lambda: self._refill(run_id, slot))

    def _schedule_signals(self, previous: GameState | None, state: GameState) -> None:
        if state.is_finished:
            return
        run_id = state.run_id
        banner = state.banner
        if banner is not None and (previous is None or previous.banner is not banner):
            self._schedule("banner", self._config.banner_duration, run_id, lambda: self._clear_banner(run_id, banner))
            if banner.auto_end_day and state.pending_auto_end_day:
                self._schedule("auto_end_day", self._config.banner_duration, run_id, lambda: self._auto_end_day(run_id))
        for flag in _FLASH_FLAGS:
            if getattr(state, flag) and (previous is None or not getattr(previous, flag)):
                self._schedule(flag, self._config.effect_flash_duration, run_id, lambda flag=flag: self._clear_flag(run_id, flag))

    def _is_current(self, run_id: str) -> bool:
        state = self._state
        if state is None or state.run_id != run_id or state.is_finished:
            logger.debug("Dropping stale timer for run %s", run_id)
            return False
        return True

    def _refill(self, run_id: str, slot: int) -> None:
        if not self._is_current(run_id):
            return
        result = self._store_service.refill_slot(self.state, slot, run_id)
        if result.state is not self._state:
            self._state = result.state
            self._persist()

    def _clear_banner(self, run_id: str, banner: object) -> None:
        if not self._is_current(run_id) or self.state.banner is not banner:
            return
        working = self.state.clone()
        working.banner = None
        self._state = working

    def _clear_flag(self, run_id: str, flag: str) -> None:
        if not self._is_current(run_id):
            return
        working = self.state.clone()
        setattr(working, flag, False)
        self._state = working

    def _auto_end_day(self, run_id: str) -> None:
        if not self._is_current(run_id):
            return
        state = self.state
        if state.status != "playing" or not state.pending_auto_end_day:
            return
        self.end_day()
