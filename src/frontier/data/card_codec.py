"""Conversion between card definitions and their JSON payloads.

Used by the definition repositories, the save service and themed-catalog parsing so that every
card on disk shares one schema.
"""
from __future__ import annotations

from typing import Callable, Dict, Mapping, get_args

from frontier.core.types import CardType, ThreatKind, TrapSize, UpgradeSubtype
from frontier.data.errors import DataValidationError
from frontier.domain.defs import (
    CampfireEffect,
    CardDef,
    ConditionalWeaponEffect,
    DamageEffect,
    DamagePercentEffect,
    DrawEffect,
    Effect,
    FireArrowEffect,
    GoldEffect,
    GoldStealEffect,
    HealEffect,
    PoisonEffect,
    ScoutEffect,
    TrapEffect,
    UpgradeEffect,
    WeaponEffect,
)

_CARD_TYPES = set(get_args(CardType))
_THREAT_KINDS = set(get_args(ThreatKind))
_TRAP_SIZES = set(get_args(TrapSize))
_UPGRADE_SUBTYPES = set(get_args(UpgradeSubtype))

_CARD_REQUIRED = {"name", "type"}
_CARD_OPTIONAL = {
    "description",
    "subtype",
    "health",
    "gold_value",
    "effect",
    "immediate_effect",
    "sell_value",
    "buy_cost",
    "tags",
}

# kind -> (required fields, optional fields)
_EFFECT_FIELDS: Dict[str, tuple[set[str], set[str]]] = {
    "heal": ({"amount"}, {"cures", "persistent"}),
    "weapon": ({"attack"}, set()),
    "conditional_weapon": ({"attack", "bonus_attack"}, {"condition"}),
    "campfire": (set(), set()),
    "gold": (set(), {"min_amount", "max_amount"}),
    "draw": ({"amount"}, set()),
    "trap": ({"size"}, {"break_damage"}),
    "scout": (set(), set()),
    "fire_arrow": (set(), {"damage"}),
    "upgrade": ({"subtype"}, {"amount", "capacity", "max_health", "persistent"}),
    "damage": ({"amount"}, {"turn_end", "discard_equipped"}),
    "poison": ({"damage"}, {"turn_end"}),
    "damage_percent": ({"fraction"}, {"turn_end"}),
    "random_gold_steal": ({"max_amount"}, set()),
}


def _require_str(value: object, context: str) -> str:
    if not isinstance(value, str):
        raise DataValidationError(f"{context} must be a string.")
    return value


def _require_int(value: object, context: str) -> int:
    if not isinstance(value, int) or isinstance(value, bool):
        raise DataValidationError(f"{context} must be an integer.")
    return value


def _require_bool(value: object, context: str) -> bool:
    if not isinstance(value, bool):
        raise DataValidationError(f"{context} must be a boolean.")
    return value


def _require_number(value: object, context: str) -> float:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise DataValidationError(f"{context} must be a number.")
    return float(value)


def _require_mapping(value: object, context: str) -> Mapping[str, object]:
    if not isinstance(value, dict):
        raise DataValidationError(f"{context} must be an object/dict.")
    return value


def _check_fields(payload: Mapping[str, object], required: set[str], optional: set[str], context: str) -> None:
    actual_keys = set(payload.keys())
    missing = required - actual_keys
    unknown = actual_keys - required - optional
    pieces = []
    if missing:
        pieces.append(f"missing fields: {sorted(missing)}")
    if unknown:
        pieces.append(f"unknown fields: {sorted(unknown)}")
    if pieces:
        raise DataValidationError(f"{context} has schema issues ({'; '.join(pieces)}).")


def parse_effect(raw: object, context: str) -> Effect:
    """Build an effect variant from its JSON payload."""
    data = _require_mapping(raw, context)
    kind = _require_str(data.get("kind"), f"{context} kind")
    if kind not in _EFFECT_FIELDS:
        raise DataValidationError(f"{context} has unknown effect kind '{kind}'.")
    required, optional = _EFFECT_FIELDS[kind]
    body = {key: value for key, value in data.items() if key != "kind"}
    _check_fields(body, required, optional, context)

    def int_field(name: str, default: int = 0) -> int:
        if name not in body:
            return default
        return _require_int(body[name], f"{context} {name}")

    def bool_field(name: str, default: bool = False) -> bool:
        if name not in body:
            return default
        return _require_bool(body[name], f"{context} {name}")

    if kind == "heal":
        return HealEffect(
            amount=int_field("amount"),
            cures=bool_field("cures"),
            persistent=bool_field("persistent"),
        )
    if kind == "weapon":
        return WeaponEffect(attack=int_field("attack"))
    if kind == "conditional_weapon":
        condition = _require_str(body.get("condition", "is_firearm"), f"{context} condition")
        return ConditionalWeaponEffect(
            attack=int_field("attack"),
            bonus_attack=int_field("bonus_attack"),
            condition=condition,
        )
    if kind == "campfire":
        return CampfireEffect()
    if kind == "gold":
        min_amount = int_field("min_amount", 1)
        max_amount = int_field("max_amount", 3)
        if max_amount < min_amount:
            raise DataValidationError(f"{context} max_amount must be >= min_amount.")
        return GoldEffect(min_amount=min_amount, max_amount=max_amount)
    if kind == "draw":
        return DrawEffect(amount=int_field("amount"))
    if kind == "trap":
        size = _require_str(body["size"], f"{context} size")
        if size not in _TRAP_SIZES:
            raise DataValidationError(f"{context} size must be one of {sorted(_TRAP_SIZES)}.")
        return TrapEffect(size=size, break_damage=int_field("break_damage"))  # type: ignore[arg-type]
    if kind == "scout":
        return ScoutEffect()
    if kind == "fire_arrow":
        return FireArrowEffect(damage=int_field("damage", 2))
    if kind == "upgrade":
        subtype = _require_str(body["subtype"], f"{context} subtype")
        if subtype not in _UPGRADE_SUBTYPES:
            raise DataValidationError(f"{context} has unknown upgrade subtype '{subtype}'.")
        return UpgradeEffect(
            subtype=subtype,  # type: ignore[arg-type]
            amount=int_field("amount"),
            capacity=int_field("capacity"),
            max_health=int_field("max_health"),
            persistent=bool_field("persistent", True),
        )
    if kind == "damage":
        return DamageEffect(
            amount=int_field("amount"),
            turn_end=bool_field("turn_end"),
            discard_equipped=bool_field("discard_equipped"),
        )
    if kind == "poison":
        return PoisonEffect(damage=int_field("damage"), turn_end=bool_field("turn_end"))
    if kind == "damage_percent":
        fraction = _require_number(body["fraction"], f"{context} fraction")
        if not 0 <= fraction <= 1:
            raise DataValidationError(f"{context} fraction must be between 0 and 1.")
        return DamagePercentEffect(fraction=fraction, turn_end=bool_field("turn_end"))
    return GoldStealEffect(max_amount=int_field("max_amount"))


_EFFECT_KINDS: Dict[type, str] = {
    HealEffect: "heal",
    WeaponEffect: "weapon",
    ConditionalWeaponEffect: "conditional_weapon",
    CampfireEffect: "campfire",
    GoldEffect: "gold",
    DrawEffect: "draw",
    TrapEffect: "trap",
    ScoutEffect: "scout",
    FireArrowEffect: "fire_arrow",
    UpgradeEffect: "upgrade",
    DamageEffect: "damage",
    PoisonEffect: "poison",
    DamagePercentEffect: "damage_percent",
    GoldStealEffect: "random_gold_steal",
}


def effect_to_payload(effect: Effect) -> Dict[str, object]:
    """Serialize an effect variant, omitting fields left at their defaults."""
    kind = _EFFECT_KINDS[type(effect)]
    payload: Dict[str, object] = {"kind": kind}
    required, optional = _EFFECT_FIELDS[kind]
    defaults = type(effect).__dataclass_fields__
    for name in sorted(required | optional):
        value = getattr(effect, name)
        if name in required or value != defaults[name].default:
            payload[name] = value
    return payload


def parse_card(card_id: str, raw: object, context: str | None = None) -> CardDef:
    """Build a card definition from its JSON payload."""
    context = context or f"card '{card_id}'"
    data = _require_mapping(raw, context)
    _check_fields(data, _CARD_REQUIRED, _CARD_OPTIONAL, context)

    card_type = _require_str(data["type"], f"{context} type")
    if card_type not in _CARD_TYPES:
        raise DataValidationError(f"{context} type must be one of {sorted(_CARD_TYPES)}.")
    subtype = None
    if data.get("subtype") is not None:
        subtype = _require_str(data["subtype"], f"{context} subtype")
        if subtype not in _THREAT_KINDS:
            raise DataValidationError(f"{context} subtype must be one of {sorted(_THREAT_KINDS)}.")
    health = None
    if data.get("health") is not None:
        health = _require_int(data["health"], f"{context} health")

    tags_raw = data.get("tags", [])
    if not isinstance(tags_raw, list):
        raise DataValidationError(f"{context} tags must be a list.")
    tags = tuple(_require_str(tag, f"{context} tag") for tag in tags_raw)

    def optional_effect(name: str) -> Effect | None:
        if data.get(name) is None:
            return None
        return parse_effect(data[name], f"{context} {name}")

    def int_field(name: str) -> int:
        if name not in data:
            return 0
        return _require_int(data[name], f"{context} {name}")

    return CardDef(
        id=card_id,
        name=_require_str(data["name"], f"{context} name"),
        card_type=card_type,  # type: ignore[arg-type]
        description=_require_str(data.get("description", ""), f"{context} description"),
        subtype=subtype,  # type: ignore[arg-type]
        health=health,
        gold_value=int_field("gold_value"),
        effect=optional_effect("effect"),
        immediate_effect=optional_effect("immediate_effect"),
        sell_value=int_field("sell_value"),
        buy_cost=int_field("buy_cost"),
        tags=tags,
    )


def card_to_payload(card: CardDef) -> Dict[str, object]:
    """Serialize a card definition into the catalog JSON schema (id excluded)."""
    payload: Dict[str, object] = {"name": card.name, "type": card.card_type}
    if card.description:
        payload["description"] = card.description
    if card.subtype is not None:
        payload["subtype"] = card.subtype
    if card.health is not None:
        payload["health"] = card.health
    optional_ints: Dict[str, int] = {
        "gold_value": card.gold_value,
        "sell_value": card.sell_value,
        "buy_cost": card.buy_cost,
    }
    payload.update({key: value for key, value in optional_ints.items() if value})
    if card.effect is not None:
        payload["effect"] = effect_to_payload(card.effect)
    if card.immediate_effect is not None:
        payload["immediate_effect"] = effect_to_payload(card.immediate_effect)
    if card.tags:
        payload["tags"] = list(card.tags)
    return payload


def parse_cards(raw: Mapping[str, object], context: str = "catalog", on_error: Callable[[str, Exception], None] | None = None) -> Dict[str, CardDef]:
    """Parse an id-keyed mapping of card payloads.

    With ``on_error`` set, invalid entries are reported and skipped instead of raising.
    """
    cards: Dict[str, CardDef] = {}
    for raw_id, payload in raw.items():
        if not isinstance(raw_id, str):
            raise DataValidationError(f"{context} card IDs must be strings.")
        try:
            cards[raw_id] = parse_card(raw_id, payload, f"{context} card '{raw_id}'")
        except DataValidationError as exc:
            if on_error is None:
                raise
            on_error(raw_id, exc)
    return cards
