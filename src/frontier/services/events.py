"""Events emitted by gameplay state transitions."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from frontier.core.types import CardSource, RunOutcome
from frontier.domain.state import GameState


@dataclass(slots=True)
class GameEvent:
    """Base class for gameplay events."""


@dataclass(slots=True)
class ActionFailedEvent(GameEvent):
    reason: str
    message: str


@dataclass(slots=True)
class CardPlayedEvent(GameEvent):
    card_id: str
    card_name: str
    source: CardSource


@dataclass(slots=True)
class CardEquippedEvent(GameEvent):
    card_id: str
    card_name: str


@dataclass(slots=True)
class CardStoredEvent(GameEvent):
    card_id: str
    card_name: str


@dataclass(slots=True)
class CardDiscardedEvent(GameEvent):
    card_id: str
    card_name: str


@dataclass(slots=True)
class CardsDrawnEvent(GameEvent):
    count: int


@dataclass(slots=True)
class DamageTakenEvent(GameEvent):
    source_name: str
    requested: int
    dealt: int
    health: int
    negated_by: str | None = None


@dataclass(slots=True)
class HealedEvent(GameEvent):
    source_name: str
    amount: int
    health: int


@dataclass(slots=True)
class GoldChangedEvent(GameEvent):
    amount: int
    total_gold: int
    reason: str


@dataclass(slots=True)
class ThreatDamagedEvent(GameEvent):
    threat_name: str
    damage: int
    remaining_health: int


@dataclass(slots=True)
class ThreatDefeatedEvent(GameEvent):
    threat_id: str
    threat_name: str
    gold_awarded: int
    trophy_id: str


@dataclass(slots=True)
class TrapSetEvent(GameEvent):
    trap_name: str
    replaced: str | None = None


@dataclass(slots=True)
class TrapSprungEvent(GameEvent):
    trap_name: str
    threat_name: str
    caught: bool
    damage: int = 0


@dataclass(slots=True)
class EventRevealedEvent(GameEvent):
    card_id: str
    card_name: str
    is_boss: bool = False


@dataclass(slots=True)
class EventClearedEvent(GameEvent):
    card_id: str
    card_name: str
    reason: str


@dataclass(slots=True)
class ScoutedEvent(GameEvent):
    card_id: str | None
    card_name: str | None


@dataclass(slots=True)
class CardBoughtEvent(GameEvent):
    card_id: str
    card_name: str
    cost: int
    total_gold: int


@dataclass(slots=True)
class CardSoldEvent(GameEvent):
    card_id: str
    card_name: str
    gain: int
    total_gold: int


@dataclass(slots=True)
class StoreRestockedEvent(GameEvent):
    card_ids: List[str]


@dataclass(slots=True)
class StoreSlotRefilledEvent(GameEvent):
    slot: int
    card_id: str


@dataclass(slots=True)
class DayStartedEvent(GameEvent):
    day: int


@dataclass(slots=True)
class RunFinishedEvent(GameEvent):
    outcome: RunOutcome
    reason: str


@dataclass(slots=True)
class StoreRefillRequest:
    """Ask the session to refill a store display slot after a delay."""

    slot: int


@dataclass(slots=True)
class ActionResult:
    state: GameState
    events: List[GameEvent] = field(default_factory=list)
    scheduled: List[StoreRefillRequest] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not any(isinstance(event, ActionFailedEvent) for event in self.events)


@dataclass(slots=True)
class TurnResult:
    state: GameState
    events: List[GameEvent] = field(default_factory=list)
