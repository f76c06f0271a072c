"""Serialization helpers for the persisted run, NG+ progress and themed catalogs."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, get_args

from frontier.core.config import DEFAULT_CONFIG, GameConfig
from frontier.core.types import GameStatus, LogType, RunOutcome
from frontier.data.card_codec import card_to_payload, parse_card
from frontier.data.errors import DataValidationError
from frontier.domain.catalog import Catalog
from frontier.domain.defs import CardDef, CharacterDef
from frontier.domain.entities import PlayerState
from frontier.domain.progress import RunProgress
from frontier.domain.state import GameLog, GameState, LogEntry
from frontier.services.errors import SaveLoadError

SavePayload = Dict[str, Any]
_VALID_STATUSES: tuple[GameStatus, ...] = get_args(GameStatus)
_VALID_LOG_TYPES: tuple[LogType, ...] = get_args(LogType)
_VALID_OUTCOMES: tuple[RunOutcome, ...] = get_args(RunOutcome)


class SaveService:
    """Converts runtime state to/from a validated payload."""

    SAVE_VERSION = 1

    def __init__(self, config: GameConfig = DEFAULT_CONFIG) -> None:
        self._config = config

    # Game state ---------------------------------------------------------------------------------

    def serialize(self, state: GameState) -> SavePayload:
        """Return a JSON-serializable payload for disk persistence."""
        return {
            "save_version": self.SAVE_VERSION,
            "metadata": self._build_metadata(state),
            "state": self._serialize_state(state),
        }

    def deserialize(self, payload: Mapping[str, Any]) -> GameState:
        """Rehydrate a GameState from a persisted payload."""
        if not isinstance(payload, Mapping):
            raise SaveLoadError("Save data must be a JSON object.")
        if payload.get("save_version") != self.SAVE_VERSION:
            raise SaveLoadError("Save format changed. Please start a new run.")
        data = self._require_dict(payload.get("state"), "state")

        status = data.get("status")
        if status not in _VALID_STATUSES:
            raise SaveLoadError(f"Invalid status value: {status}")
        players_payload = self._require_dict(data.get("players"), "state.players")
        players = {
            self._require_str(player_id, "state.players key"): self._coerce_player(entry, f"state.players.{player_id}")
            for player_id, entry in players_payload.items()
        }
        player_id = self._require_str(data.get("player_id"), "state.player_id")
        if players and player_id not in players:
            raise SaveLoadError(f"state.player_id '{player_id}' has no player entry.")
        outcome = data.get("outcome")
        if outcome is not None and outcome not in _VALID_OUTCOMES:
            raise SaveLoadError(f"Invalid outcome value: {outcome}")

        state = GameState(
            run_id=self._require_str(data.get("run_id"), "state.run_id"),
            status=status,
            player_id=player_id,
            players=players,
            ng_plus_level=self._coerce_non_negative_int(data.get("ng_plus_level"), "state.ng_plus_level", default=0),
            day=self._require_int(data.get("day"), "state.day"),
            event_deck=self._coerce_cards(data.get("event_deck"), "state.event_deck"),
            event_discard=self._coerce_cards(data.get("event_discard"), "state.event_discard"),
            active_event=self._coerce_optional_card(data.get("active_event"), "state.active_event"),
            active_event_turn_counter=self._coerce_non_negative_int(
                data.get("active_event_turn_counter"), "state.active_event_turn_counter", default=0
            ),
            active_event_attacked_today=self._coerce_bool(
                data.get("active_event_attacked_today"), "state.active_event_attacked_today", default=False
            ),
            store_deck=self._coerce_cards(data.get("store_deck"), "state.store_deck"),
            store_display=self._coerce_display(data.get("store_display")),
            store_discard=self._coerce_cards(data.get("store_discard"), "state.store_discard"),
            boss=self._coerce_optional_card(data.get("boss"), "state.boss"),
            boss_placed=self._coerce_bool(data.get("boss_placed"), "state.boss_placed", default=False),
            boss_defeated=self._coerce_bool(data.get("boss_defeated"), "state.boss_defeated", default=False),
            intro_title=self._coerce_optional_str(data.get("intro_title"), "state.intro_title"),
            intro_paragraph=self._coerce_optional_str(data.get("intro_paragraph"), "state.intro_paragraph"),
            outcome=outcome,
            finish_reason=self._coerce_optional_str(data.get("finish_reason"), "state.finish_reason"),
            log=self._coerce_log(data.get("log")),
            pending_auto_end_day=self._coerce_bool(
                data.get("pending_auto_end_day"), "state.pending_auto_end_day", default=False
            ),
        )
        return state

    def _build_metadata(self, state: GameState) -> Dict[str, Any]:
        player = state.player
        return {
            "player_name": player.name if player else None,
            "character_id": player.character.id if player and player.character else None,
            "day": state.day,
            "ng_plus_level": state.ng_plus_level,
            "status": state.status,
            "saved_at": datetime.now(timezone.utc).isoformat(),
        }

    def _serialize_state(self, state: GameState) -> Dict[str, Any]:
        log_entries = state.log.tail(self._config.max_persisted_log_entries)
        return {
            "run_id": state.run_id,
            "status": state.status,
            "player_id": state.player_id,
            "players": {player_id: self._serialize_player(player) for player_id, player in state.players.items()},
            "ng_plus_level": state.ng_plus_level,
            "day": state.day,
            "event_deck": [serialize_card(card) for card in state.event_deck],
            "event_discard": [serialize_card(card) for card in state.event_discard],
            "active_event": serialize_card(state.active_event) if state.active_event else None,
            "active_event_turn_counter": state.active_event_turn_counter,
            "active_event_attacked_today": state.active_event_attacked_today,
            "store_deck": [serialize_card(card) for card in state.store_deck],
            "store_display": [serialize_card(card) if card else None for card in state.store_display],
            "store_discard": [serialize_card(card) for card in state.store_discard],
            "boss": serialize_card(state.boss) if state.boss else None,
            "boss_placed": state.boss_placed,
            "boss_defeated": state.boss_defeated,
            "intro_title": state.intro_title,
            "intro_paragraph": state.intro_paragraph,
            "outcome": state.outcome,
            "finish_reason": state.finish_reason,
            "pending_auto_end_day": state.pending_auto_end_day,
            "log": [
                {"message": entry.message, "type": entry.type, "timestamp": entry.timestamp}
                for entry in log_entries
            ],
        }

    def _serialize_player(self, player: PlayerState) -> Dict[str, Any]:
        character = player.character
        return {
            "name": player.name,
            "character": _serialize_character(character) if character else None,
            "health": player.health,
            "max_health": player.max_health,
            "gold": player.gold,
            "hand_size": player.hand_size,
            "hand": [serialize_card(card) if card else None for card in player.hand],
            "equipped": [serialize_card(card) for card in player.equipped],
            "active_trap": serialize_card(player.active_trap) if player.active_trap else None,
            "satchel": [serialize_card(card) for card in player.satchel],
            "deck": [serialize_card(card) for card in player.deck],
            "discard": [serialize_card(card) for card in player.discard],
            "turn_ended": player.turn_ended,
            "has_taken_action_this_turn": player.has_taken_action_this_turn,
            "has_equipped_this_turn": player.has_equipped_this_turn,
            "has_restocked_this_turn": player.has_restocked_this_turn,
            "hat_negation_available": player.hat_negation_available,
            "hat_negation_used_this_turn": player.hat_negation_used_this_turn,
            "campfire_active": player.campfire_active,
            "ng_plus_level": player.ng_plus_level,
        }

    def _coerce_player(self, value: Any, context: str) -> PlayerState:
        mapping = self._require_dict(value, context)
        hand_size = self._require_int(mapping.get("hand_size"), f"{context}.hand_size")
        hand = self._require_list(mapping.get("hand"), f"{context}.hand")
        if len(hand) != hand_size:
            raise SaveLoadError(f"{context}.hand must hold exactly {hand_size} slots.")
        health = self._require_int(mapping.get("health"), f"{context}.health")
        max_health = self._require_int(mapping.get("max_health"), f"{context}.max_health")
        if not 0 <= health <= max_health:
            raise SaveLoadError(f"{context}.health must be between 0 and max_health.")
        character_payload = mapping.get("character")
        flags = {
            name: self._coerce_bool(mapping.get(name), f"{context}.{name}", default=False)
            for name in (
                "turn_ended",
                "has_taken_action_this_turn",
                "has_equipped_this_turn",
                "has_restocked_this_turn",
                "hat_negation_available",
                "hat_negation_used_this_turn",
                "campfire_active",
            )
        }
        return PlayerState(
            name=self._require_str(mapping.get("name"), f"{context}.name"),
            character=None if character_payload is None else self._coerce_character(character_payload, f"{context}.character"),
            health=health,
            max_health=max_health,
            gold=self._coerce_non_negative_int(mapping.get("gold"), f"{context}.gold", default=0),
            hand_size=hand_size,
            hand=[self._coerce_optional_card(entry, f"{context}.hand[{index}]") for index, entry in enumerate(hand)],
            equipped=self._coerce_cards(mapping.get("equipped"), f"{context}.equipped"),
            active_trap=self._coerce_optional_card(mapping.get("active_trap"), f"{context}.active_trap"),
            satchel=self._coerce_cards(mapping.get("satchel"), f"{context}.satchel"),
            deck=self._coerce_cards(mapping.get("deck"), f"{context}.deck"),
            discard=self._coerce_cards(mapping.get("discard"), f"{context}.discard"),
            ng_plus_level=self._coerce_non_negative_int(mapping.get("ng_plus_level"), f"{context}.ng_plus_level", default=0),
            **flags,
        )

    def _coerce_character(self, value: Any, context: str) -> CharacterDef:
        mapping = self._require_dict(value, context)
        starters = self._require_list(mapping.get("starter_deck"), f"{context}.starter_deck")
        return CharacterDef(
            id=self._require_str(mapping.get("id"), f"{context}.id"),
            name=self._require_str(mapping.get("name"), f"{context}.name"),
            health=self._require_int(mapping.get("health"), f"{context}.health"),
            gold=self._require_int(mapping.get("gold"), f"{context}.gold"),
            ability=self._require_str(mapping.get("ability"), f"{context}.ability"),
            starter_deck=tuple(self._require_str(entry, f"{context}.starter_deck") for entry in starters),
            story_description=self._coerce_optional_str(mapping.get("story_description"), f"{context}.story_description") or "",
        )

    def _coerce_log(self, value: Any) -> GameLog:
        entries: List[LogEntry] = []
        for index, entry in enumerate(self._require_list(value if value is not None else [], "state.log")):
            mapping = self._require_dict(entry, f"state.log[{index}]")
            log_type = mapping.get("type", "info")
            if log_type not in _VALID_LOG_TYPES:
                raise SaveLoadError(f"state.log[{index}].type is invalid: {log_type}")
            timestamp = mapping.get("timestamp", 0.0)
            if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
                raise SaveLoadError(f"state.log[{index}].timestamp must be a number.")
            entries.append(
                LogEntry(
                    message=self._require_str(mapping.get("message"), f"state.log[{index}].message"),
                    type=log_type,
                    timestamp=float(timestamp),
                )
            )
        return GameLog(self._config.max_log_entries, entries)

    def _coerce_display(self, value: Any) -> List[CardDef | None]:
        return [
            self._coerce_optional_card(entry, f"state.store_display[{index}]")
            for index, entry in enumerate(self._require_list(value, "state.store_display"))
        ]

    def _coerce_cards(self, value: Any, context: str) -> List[CardDef]:
        return [self._coerce_card(entry, f"{context}[{index}]") for index, entry in enumerate(self._require_list(value, context))]

    def _coerce_optional_card(self, value: Any, context: str) -> CardDef | None:
        if value is None:
            return None
        return self._coerce_card(value, context)

    def _coerce_card(self, value: Any, context: str) -> CardDef:
        mapping = self._require_dict(value, context)
        card_id = self._require_str(mapping.get("id"), f"{context}.id")
        body = {key: entry for key, entry in mapping.items() if key != "id"}
        try:
            return parse_card(card_id, body, context)
        except DataValidationError as exc:
            raise SaveLoadError(str(exc)) from exc

    # NG+ progress and themed catalogs -----------------------------------------------------------

    def serialize_progress(self, progress: RunProgress) -> SavePayload:
        return {
            "ng_plus_level": progress.ng_plus_level,
            "carried_gold": progress.carried_gold,
            "carried_deck_ids": list(progress.carried_deck_ids),
            "carried_equipped_ids": list(progress.carried_equipped_ids),
            "boss_defeated": progress.boss_defeated,
            "player_name": progress.player_name,
            "character_id": progress.character_id,
        }

    def deserialize_progress(self, payload: Any) -> RunProgress:
        mapping = self._require_dict(payload, "progress")
        carried_gold = mapping.get("carried_gold")
        return RunProgress(
            ng_plus_level=self._coerce_non_negative_int(mapping.get("ng_plus_level"), "progress.ng_plus_level", default=0),
            carried_gold=None if carried_gold is None else self._coerce_non_negative_int(carried_gold, "progress.carried_gold", default=0),
            carried_deck_ids=self._coerce_str_list(mapping.get("carried_deck_ids"), "progress.carried_deck_ids"),
            carried_equipped_ids=self._coerce_str_list(mapping.get("carried_equipped_ids"), "progress.carried_equipped_ids"),
            boss_defeated=self._coerce_bool(mapping.get("boss_defeated"), "progress.boss_defeated", default=False),
            player_name=self._coerce_optional_str(mapping.get("player_name"), "progress.player_name"),
            character_id=self._coerce_optional_str(mapping.get("character_id"), "progress.character_id"),
        )

    def serialize_catalog(self, catalog: Catalog) -> SavePayload:
        return {card.id: card_to_payload(card) for card in catalog.cards()}

    def deserialize_catalog(self, payload: Any) -> Catalog:
        mapping = self._require_dict(payload, "themed catalog")
        cards = []
        for card_id, entry in mapping.items():
            key = self._require_str(card_id, "themed catalog key")
            try:
                cards.append(parse_card(key, entry, f"themed catalog card '{key}'"))
            except DataValidationError as exc:
                raise SaveLoadError(str(exc)) from exc
        if not cards:
            raise SaveLoadError("Themed catalog is empty.")
        return Catalog.from_cards(cards)

    # Validation helpers -------------------------------------------------------------------------

    def _coerce_str_list(self, value: Any, context: str) -> List[str]:
        if value is None:
            return []
        return [self._require_str(entry, context) for entry in self._require_list(value, context)]

    def _coerce_non_negative_int(self, value: Any, context: str, *, default: int) -> int:
        if value is None:
            return default
        value_int = self._require_int(value, context)
        if value_int < 0:
            raise SaveLoadError(f"{context} must be a non-negative integer.")
        return value_int

    def _coerce_optional_str(self, value: Any, context: str) -> str | None:
        if value is None:
            return None
        return self._require_str(value, context)

    @staticmethod
    def _coerce_bool(value: Any, context: str, *, default: bool) -> bool:
        if value is None:
            return default
        if not isinstance(value, bool):
            raise SaveLoadError(f"{context} must be a boolean.")
        return value

    @staticmethod
    def _require_str(value: Any, context: str) -> str:
        if not isinstance(value, str):
            raise SaveLoadError(f"{context} must be a string.")
        return value

    @staticmethod
    def _require_int(value: Any, context: str) -> int:
        if not isinstance(value, int) or isinstance(value, bool):
            raise SaveLoadError(f"{context} must be an integer.")
        return value

    @staticmethod
    def _require_dict(value: Any, context: str) -> Mapping[str, Any]:
        if not isinstance(value, Mapping):
            raise SaveLoadError(f"{context} must be an object.")
        return value

    @staticmethod
    def _require_list(value: Any, context: str) -> List[Any]:
        if not isinstance(value, list):
            raise SaveLoadError(f"{context} must be a list.")
        return value


def serialize_card(card: CardDef) -> Dict[str, Any]:
    """Full card payload including its id, as stored inside piles."""
    return {"id": card.id, **card_to_payload(card)}


def _serialize_character(character: CharacterDef) -> Dict[str, Any]:
    return {
        "id": character.id,
        "name": character.name,
        "health": character.health,
        "gold": character.gold,
        "ability": character.ability,
        "starter_deck": list(character.starter_deck),
        "story_description": character.story_description,
    }
