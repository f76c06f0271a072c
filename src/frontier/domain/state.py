"""Domain-level game state tracking."""
from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Deque, Dict, Iterable, List

from frontier.core.types import GameStatus, LogType, RunOutcome
from frontier.domain.defs import CardDef
from frontier.domain.entities import PlayerState


@dataclass(frozen=True, slots=True)
class LogEntry:
    message: str
    type: LogType = "info"
    timestamp: float = 0.0


class GameLog:
    """Bounded ring buffer of log entries, oldest first."""

    __slots__ = ("_entries",)

    def __init__(self, max_entries: int = 500, entries: Iterable[LogEntry] = ()) -> None:
        self._entries: Deque[LogEntry] = deque(entries, maxlen=max_entries)

    def add(self, message: str, log_type: LogType = "info", timestamp: float | None = None) -> LogEntry:
        entry = LogEntry(message=message, type=log_type, timestamp=time.time() if timestamp is None else timestamp)
        self._entries.append(entry)
        return entry

    def entries(self) -> List[LogEntry]:
        return list(self._entries)

    def tail(self, count: int) -> List[LogEntry]:
        if count <= 0:
            return []
        return list(self._entries)[-count:]

    def copy(self) -> "GameLog":
        return GameLog(self.max_entries, self._entries)

    @property
    def max_entries(self) -> int:
        return self._entries.maxlen or 0

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True, slots=True)
class Banner:
    """Transient headline for the presentation layer."""

    message: str
    kind: str = "info"
    auto_end_day: bool = False


@dataclass(slots=True)
class GameState:
    """Session root for a single frontier run."""

    run_id: str
    status: GameStatus
    player_id: str
    players: Dict[str, PlayerState] = field(default_factory=dict)
    ng_plus_level: int = 0
    day: int = 1
    event_deck: List[CardDef] = field(default_factory=list)
    event_discard: List[CardDef] = field(default_factory=list)
    active_event: CardDef | None = None
    active_event_turn_counter: int = 0
    active_event_attacked_today: bool = False
    store_deck: List[CardDef] = field(default_factory=list)
    store_display: List[CardDef | None] = field(default_factory=list)
    store_discard: List[CardDef] = field(default_factory=list)
    boss: CardDef | None = None
    boss_placed: bool = False
    boss_defeated: bool = False
    intro_title: str | None = None
    intro_paragraph: str | None = None
    outcome: RunOutcome | None = None
    finish_reason: str | None = None
    log: GameLog = field(default_factory=GameLog)
    banner: Banner | None = None
    pending_auto_end_day: bool = False
    damage_flash: bool = False
    lightning_flash: bool = False
    skunk_spray: bool = False
    scouted_card: CardDef | None = None

    @property
    def player(self) -> PlayerState | None:
        return self.players.get(self.player_id)

    def require_player(self) -> PlayerState:
        player = self.player
        if player is None:
            raise ValueError("No player has been selected for this run.")
        return player

    def clone(self) -> "GameState":
        """Return a structurally independent copy; card definitions are shared."""
        return replace(
            self,
            players={player_id: player.clone() for player_id, player in self.players.items()},
            event_deck=list(self.event_deck),
            event_discard=list(self.event_discard),
            store_deck=list(self.store_deck),
            store_display=list(self.store_display),
            store_discard=list(self.store_discard),
            log=self.log.copy(),
        )

    def add_log(self, message: str, log_type: LogType = "info") -> LogEntry:
        return self.log.add(message, log_type)

    @property
    def is_finished(self) -> bool:
        return self.status == "finished"
