"""Service layer exports."""

from .errors import DeckBuildError, NarrativeError, SaveLoadError
from .events import ActionFailedEvent, ActionResult, GameEvent, TurnResult
from .action_resolver import ActionResolver, PlayerAction
from .deck_builder import DeckBuild, DeckBuilder
from .narrative_service import IntroStory, Narrated, NarrativeService, TextGenerator
from .save_service import SaveService
from .save_store import SaveStore
from .scheduler import TaskScheduler
from .store_service import StoreService
from .turn_engine import TurnEngine
from .game_session import GameSession

__all__ = [
    "ActionFailedEvent",
    "ActionResolver",
    "ActionResult",
    "DeckBuild",
    "DeckBuildError",
    "DeckBuilder",
    "GameEvent",
    "GameSession",
    "IntroStory",
    "Narrated",
    "NarrativeError",
    "NarrativeService",
    "PlayerAction",
    "SaveLoadError",
    "SaveService",
    "SaveStore",
    "StoreService",
    "TaskScheduler",
    "TextGenerator",
    "TurnEngine",
    "TurnResult",
]
