"""Boss, themed-catalog and story generation with deterministic fallbacks.

The text backend is optional. Every public method recovers locally: a missing backend, a
generator error or a malformed response yields the fallback value instead of an exception.
"""
from __future__ import annotations

import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, Iterable, Mapping, TypeVar

from frontier.core.rng import RNG
from frontier.core.types import RunOutcome
from frontier.data.card_codec import card_to_payload, parse_card
from frontier.data.errors import DataValidationError
from frontier.domain.catalog import Catalog
from frontier.domain.content_scaling import scale_card
from frontier.domain.defs import TAG_BOSS, CardDef, CharacterDef, DamageEffect
from frontier.domain.state import LogEntry
from frontier.services.errors import NarrativeError
from frontier.services.factories import make_instance_id

logger = logging.getLogger(__name__)

T = TypeVar("T")

FALLBACK_BOSS_ID = "default_boss_fallback"
FALLBACK_BOSS_DESCRIPTION = (
    "A shadowy figure of legend, spoken of only in hushed whispers. It is said this entity feeds on "
    "despair, its presence chilling the very air and twisting familiar trails into nightmarish "
    "labyrinths. Every victory against its lesser minions only seems to draw its baleful attention closer."
)
FALLBACK_INTRO_TITLE = "The Weight of the West"
LOG_SUMMARY_LIMIT = 150

_FENCE_PATTERN = re.compile(r"^```(\w*)?\s*\n?(.*?)\n?\s*```$", re.DOTALL)
_CLOTHING_PATTERN = re.compile(r"duster|hides|boots|coat|shirt", re.IGNORECASE)
# Keys a themed card may not change; they drive rules rather than flavor.
_LOCKED_KEYS = ("id", "type", "subtype", "tags")

BOSS_PROMPT = """Create a unique, final boss for a gritty western-themed survival card game.
The boss is a single entity: an infamous outlaw, a legendary animal, an organized gang or a
western folklore figure (no high fantasy). Provide its name, a one-paragraph atmospheric
description, its health (integer between 20 and 40) and the damage it deals (integer between
10 and 20). Respond ONLY with a JSON object:
{"name": "Boss Name", "health": 25, "damage": 15, "description": "lore..."}"""

REMIX_PROMPT = """You are a game designer. These are the cards of a western-themed card game, keyed by id:
{cards}
The player has reached New Game Plus level {level}. Rename threats into more dangerous or
legendary versions, raise threat health and damage and weapon attack to suit the level, and give
every other card a more epic name and a one-sentence description. Keep every id, type, subtype,
tag and effect kind unchanged. Return ONLY the modified JSON object keyed by the same ids."""

INTRO_PROMPT = """You are a master storyteller of the Old West. Write a short chapter title (3-5 words) and
one narrative paragraph (100-150 words) explaining why {player_name}, a {character_name}
described as "{character_description}", must confront {boss_name}: "{boss_description}".
Respond ONLY with a JSON object: {{"title": "...", "paragraph": "..."}}"""

EPILOGUE_PROMPT = """You are a master storyteller of the Old West. Write a 3-5 paragraph tale of {player_name}'s
journey using these key events from the trail. Do not list the events; bring a few of them to life.

KEY EVENTS:
{summary}

FINAL OUTCOME: {outcome}"""


class TextGenerator(ABC):
    """Backend that turns a prompt into text."""

    @abstractmethod
    def generate(self, prompt: str, system_prompt: str | None = None) -> str:
        """Return the completion for ``prompt``; raise on failure."""


@dataclass(frozen=True, slots=True)
class Narrated(Generic[T]):
    """A narrative value and, when the fallback was used, why."""

    value: T
    fallback_reason: str | None = None

    @property
    def used_fallback(self) -> bool:
        return self.fallback_reason is not None


@dataclass(frozen=True, slots=True)
class IntroStory:
    title: str
    paragraph: str


def strip_code_fence(text: str) -> str:
    """Return ``text`` without a surrounding Markdown code fence."""
    stripped = text.strip()
    match = _FENCE_PATTERN.match(stripped)
    if match and match.group(2):
        return match.group(2).strip()
    return stripped


def parse_json_response(text: str) -> object:
    try:
        return json.loads(strip_code_fence(text))
    except json.JSONDecodeError as exc:
        raise NarrativeError(f"Response is not valid JSON: {exc}") from exc


def build_log_summary(entries: Iterable[LogEntry], limit: int = LOG_SUMMARY_LIMIT) -> str:
    """Oldest-first non-debug messages, keeping the most recent ``limit``."""
    messages = [entry.message for entry in entries if entry.type != "debug"]
    return "\n".join(messages[-limit:])


def _positive_int(value: object, default: int) -> int:
    if isinstance(value, bool):
        return default
    try:
        number = int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def make_boss_card(card_id: str, name: str, description: str, health: int, damage: int) -> CardDef:
    return CardDef(
        id=card_id,
        name=name,
        card_type="Threat",
        description=description,
        subtype="human",
        health=health,
        gold_value=health * 2,
        effect=DamageEffect(amount=damage),
        tags=(TAG_BOSS,),
    )


def fallback_boss() -> CardDef:
    return make_boss_card(FALLBACK_BOSS_ID, "The Nameless Dread", FALLBACK_BOSS_DESCRIPTION, 25, 15)


def fallback_intro(player_name: str, character: CharacterDef, boss: CardDef | None) -> IntroStory:
    boss_name = boss.name if boss is not None else "The Nameless Dread"
    match = _CLOTHING_PATTERN.search(character.story_description)
    clothing = match.group(0) if match else "worn gear"
    paragraph = (
        f"The grit of the trail clung to {player_name}'s {clothing}, a second skin earned through "
        f"miles of hard travel. But a new name had begun to drift across the plains: {boss_name}. "
        f"It was spoken in hushed tones around flickering campfires, a name that tasted like ash and "
        f"stale fear. For a {character.name} like {player_name}, who had faced down their share of "
        f"devils, this was different. This was personal. To turn back now and let that shadow "
        f"lengthen was not an option. A reckoning was due, and {player_name} aimed to deliver it."
    )
    return IntroStory(title=FALLBACK_INTRO_TITLE, paragraph=paragraph)


def fallback_epilogue(player_name: str, outcome: RunOutcome | None) -> str:
    if outcome == "victory":
        return (
            f"The dust settled at last. {player_name} rode on, carrying scars and stories the "
            f"frontier would not soon forget. Few who walked that trail came back to tell of it."
        )
    if outcome == "defeat":
        return (
            f"The wind carried {player_name}'s name a little way across the plains, then let it go. "
            f"The frontier keeps what it takes, and it took everything."
        )
    return "The storyteller is missing. Your tale remains untold, but your deeds are remembered."


class NarrativeService:
    """Front door to the text backend with local fallbacks for every request."""

    def __init__(self, generator: TextGenerator | None = None, rng: RNG | None = None) -> None:
        self._generator = generator
        self._rng = rng or RNG()

    @property
    def available(self) -> bool:
        return self._generator is not None

    def _request(self, prompt: str, system_prompt: str | None = None) -> str:
        if self._generator is None:
            raise NarrativeError("No text generator configured.")
        try:
            text = self._generator.generate(prompt, system_prompt)
        except NarrativeError:
            raise
        except Exception as exc:
            raise NarrativeError(f"Text generator failed: {exc}") from exc
        if not isinstance(text, str) or not text.strip():
            raise NarrativeError("Text generator returned an empty response.")
        return text

    def _request_json(self, prompt: str) -> Mapping[str, object]:
        payload = parse_json_response(self._request(prompt))
        if not isinstance(payload, Mapping):
            raise NarrativeError("Expected a JSON object.")
        return payload

    def generate_boss(self) -> Narrated[CardDef]:
        try:
            payload = self._request_json(BOSS_PROMPT)
            name = payload.get("name")
            if not isinstance(name, str) or not name.strip():
                raise NarrativeError("Boss response has no name.")
            description = payload.get("description")
            health = _positive_int(payload.get("health"), 25)
            damage = _positive_int(payload.get("damage"), 15)
            boss = make_boss_card(
                make_instance_id("ai_boss", self._rng),
                name.strip(),
                description.strip() if isinstance(description, str) else "",
                health,
                damage,
            )
        except NarrativeError as exc:
            logger.warning("Boss generation fell back to the default boss: %s", exc)
            return Narrated(fallback_boss(), str(exc))
        return Narrated(boss)

    def remix_catalog(self, catalog: Catalog, level: int) -> Catalog | None:
        """Return a themed catalog for ``level`` or ``None`` when nothing usable came back.

        Entries that are missing or fail validation are scaled manually at ``level``.
        """
        try:
            cards = json.dumps({card.id: card_to_payload(card) for card in catalog.cards()})
            payload = self._request_json(REMIX_PROMPT.format(cards=cards, level=level))
        except NarrativeError as exc:
            logger.warning("Catalog remix for NG+%s failed: %s", level, exc)
            return None

        themed: list[CardDef] = []
        usable = 0
        for base in catalog.cards():
            card = self._themed_card(base, payload.get(base.id))
            if card is None:
                themed.append(scale_card(base, level=level))
            else:
                usable += 1
                themed.append(card)
        if usable == 0:
            logger.warning("Catalog remix for NG+%s returned no usable cards", level)
            return None
        if usable < len(catalog):
            logger.info("Catalog remix for NG+%s: %s of %s cards themed", level, usable, len(catalog))
        return Catalog.from_cards(themed)

    def _themed_card(self, base: CardDef, raw: object) -> CardDef | None:
        if not isinstance(raw, Mapping):
            return None
        merged = card_to_payload(base)
        merged.update({key: value for key, value in raw.items() if key not in _LOCKED_KEYS})
        try:
            card = parse_card(base.id, merged, f"themed card '{base.id}'")
        except DataValidationError as exc:
            logger.debug("Discarding themed card: %s", exc)
            return None
        if base.effect is not None and type(card.effect) is not type(base.effect):
            logger.debug("Discarding themed card %s: effect kind changed", base.id)
            return None
        return card

    def generate_intro_story(self, player_name: str, character: CharacterDef, boss: CardDef | None) -> Narrated[IntroStory]:
        boss_name = boss.name if boss is not None else "The Nameless Dread"
        boss_description = boss.description if boss is not None and boss.description else FALLBACK_BOSS_DESCRIPTION
        prompt = INTRO_PROMPT.format(
            player_name=player_name,
            character_name=character.name,
            character_description=character.story_description,
            boss_name=boss_name,
            boss_description=boss_description,
        )
        try:
            payload = self._request_json(prompt)
            title = payload.get("title")
            paragraph = payload.get("paragraph")
            if not isinstance(title, str) or not title.strip() or not isinstance(paragraph, str) or not paragraph.strip():
                raise NarrativeError("Intro story is incomplete.")
        except NarrativeError as exc:
            logger.info("Intro story fell back to the template: %s", exc)
            return Narrated(fallback_intro(player_name, character, boss), str(exc))
        return Narrated(IntroStory(title=title.strip(), paragraph=paragraph.strip()))

    def generate_epilogue(
        self,
        player_name: str,
        log_entries: Iterable[LogEntry],
        outcome: RunOutcome | None,
        finish_reason: str | None = None,
    ) -> Narrated[str]:
        prompt = EPILOGUE_PROMPT.format(
            player_name=player_name,
            summary=build_log_summary(log_entries),
            outcome=finish_reason or "Their fate remains unknown.",
        )
        try:
            text = self._request(prompt).strip()
        except NarrativeError as exc:
            logger.info("Epilogue fell back to the template: %s", exc)
            return Narrated(fallback_epilogue(player_name, outcome), str(exc))
        return Narrated(text)
