import json

from frontier.core.rng import RNG
from frontier.domain.catalog import Catalog
from frontier.domain.defs import DamageEffect, WeaponEffect
from frontier.domain.state import LogEntry
from frontier.services.narrative_service import (
    FALLBACK_BOSS_ID,
    FALLBACK_INTRO_TITLE,
    NarrativeService,
    TextGenerator,
    build_log_summary,
    strip_code_fence,
)

from tests.helpers.builders import make_character, make_threat, make_weapon


class ScriptedGenerator(TextGenerator):
    def __init__(self, *responses: str) -> None:
        self._responses = list(responses)
        self.prompts: list[str] = []

    def generate(self, prompt: str, system_prompt: str | None = None) -> str:
        self.prompts.append(prompt)
        return self._responses.pop(0)


class BrokenGenerator(TextGenerator):
    def generate(self, prompt: str, system_prompt: str | None = None) -> str:
        raise RuntimeError("connection refused")


def test_without_generator_every_request_falls_back() -> None:
    narrative = NarrativeService()
    character = make_character()

    boss = narrative.generate_boss()
    intro = narrative.generate_intro_story("Ada", character, boss.value)
    epilogue = narrative.generate_epilogue("Ada", [], "victory")

    assert not narrative.available
    assert boss.used_fallback
    assert boss.value.id == FALLBACK_BOSS_ID
    assert (boss.value.health, boss.value.gold_value) == (25, 50)
    assert boss.value.effect == DamageEffect(amount=15)
    assert boss.value.has_tag("boss")
    assert intro.used_fallback
    assert intro.value.title == FALLBACK_INTRO_TITLE
    assert "coat" in intro.value.paragraph
    assert "The Nameless Dread" in intro.value.paragraph
    assert epilogue.used_fallback
    assert "Ada" in epilogue.value


def test_boss_parsed_from_fenced_json() -> None:
    response = '```json\n{"name": "Black Jack Ketchum", "health": 30, "damage": 12, "description": "An outlaw."}\n```'
    narrative = NarrativeService(ScriptedGenerator(response), RNG(1))

    boss = narrative.generate_boss()

    assert not boss.used_fallback
    assert boss.value.name == "Black Jack Ketchum"
    assert boss.value.id.startswith("ai_boss_")
    assert (boss.value.health, boss.value.gold_value) == (30, 60)
    assert boss.value.subtype == "human"


def test_boss_with_bad_numbers_uses_defaults() -> None:
    response = json.dumps({"name": "The Widowmaker", "health": "lots", "damage": -3})
    narrative = NarrativeService(ScriptedGenerator(response))

    boss = narrative.generate_boss().value

    assert (boss.health, boss.effect) == (25, DamageEffect(amount=15))


def test_generator_errors_become_fallbacks() -> None:
    narrative = NarrativeService(BrokenGenerator())

    boss = narrative.generate_boss()
    epilogue = narrative.generate_epilogue("Ada", [], "defeat")

    assert boss.value.id == FALLBACK_BOSS_ID
    assert "connection refused" in boss.fallback_reason
    assert epilogue.used_fallback


def test_malformed_json_falls_back() -> None:
    narrative = NarrativeService(ScriptedGenerator("The boss is a big bear.", '{"title": "Only a title"}'))

    assert narrative.generate_boss().used_fallback
    assert narrative.generate_intro_story("Ada", make_character(), None).used_fallback


def test_intro_story_from_generator() -> None:
    response = json.dumps({"title": "Dust and Debts", "paragraph": "Ada rode west."})
    narrative = NarrativeService(ScriptedGenerator(response))

    intro = narrative.generate_intro_story("Ada", make_character(), None)

    assert intro.value.title == "Dust and Debts"
    assert intro.value.paragraph == "Ada rode west."


def test_epilogue_prompt_summarizes_recent_non_debug_entries() -> None:
    generator = ScriptedGenerator("A fine tale.")
    narrative = NarrativeService(generator)
    entries = [LogEntry(message=f"entry {index}", type="event") for index in range(200)]
    entries.insert(190, LogEntry(message="secret debug", type="debug"))

    epilogue = narrative.generate_epilogue("Ada", entries, "victory", "Ada has conquered the frontier!")

    prompt = generator.prompts[0]
    assert epilogue.value == "A fine tale."
    assert "entry 199" in prompt
    assert "entry 50\n" in prompt
    assert "entry 49\n" not in prompt
    assert "secret debug" not in prompt
    assert "Ada has conquered the frontier!" in prompt


def test_partial_remix_keeps_rule_keys_and_scales_the_rest() -> None:
    catalog = Catalog.from_cards([make_threat("wolf", health=6, damage=3), make_weapon("rifle", 4)])
    response = json.dumps(
        {
            "wolf": {"name": "Ash Wolf", "health": 20, "id": "renamed", "tags": ["boss"]},
            "rifle": {"name": "Thunder Rifle", "effect": {"kind": "heal", "amount": 5}},
        }
    )
    narrative = NarrativeService(ScriptedGenerator(response))

    themed = narrative.remix_catalog(catalog, 10)

    assert themed is not None
    wolf = themed["wolf"]
    assert (wolf.name, wolf.health, wolf.tags) == ("Ash Wolf", 20, ())
    rifle = themed["rifle"]
    assert rifle.name == "Rifle"
    assert rifle.effect == WeaponEffect(attack=14)


def test_remix_with_no_usable_cards_returns_none() -> None:
    catalog = Catalog.from_cards([make_threat("wolf")])

    assert NarrativeService(ScriptedGenerator("{}")).remix_catalog(catalog, 10) is None
    assert NarrativeService(ScriptedGenerator("not json")).remix_catalog(catalog, 10) is None
    assert NarrativeService().remix_catalog(catalog, 10) is None


def test_strip_code_fence_and_log_summary_helpers() -> None:
    assert strip_code_fence('```\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fence('  {"a": 1} ') == '{"a": 1}'
    entries = [LogEntry("one"), LogEntry("hidden", "debug"), LogEntry("two")]
    assert build_log_summary(entries) == "one\ntwo"
    assert build_log_summary(entries, limit=1) == "two"
