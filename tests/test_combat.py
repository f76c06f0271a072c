from frontier.domain.combat import attack_power, heal_amount

from tests.helpers.builders import make_player, make_provision, make_upgrade, make_weapon


def test_plain_weapon_uses_base_attack_from_hand() -> None:
    knife = make_weapon("knife", 2, tags=("knife",))
    player = make_player(hand=[knife])

    assert attack_power(knife, player, "hand", 0) == 2


def test_equipped_weapon_gets_flat_bonus() -> None:
    knife = make_weapon("knife", 2, tags=("knife",))
    player = make_player(equipped=[knife])

    assert attack_power(knife, player, "equipped", 0) == 3


def test_conditional_firearm_bonus_needs_a_second_firearm() -> None:
    sawed_off = make_weapon("sawed_off", 3, tags=("firearm",), bonus_attack=2)
    six_shooter = make_weapon("six_shooter", 2, tags=("firearm",))

    alone = make_player(hand=[sawed_off])
    paired = make_player(hand=[sawed_off], equipped=[six_shooter])

    assert attack_power(sawed_off, alone, "hand", 0) == 3
    assert attack_power(sawed_off, paired, "hand", 0) == 5


def test_weapon_boosts_match_weapon_tags() -> None:
    knife = make_weapon("knife", 2, tags=("knife",))
    bow = make_weapon("bow", 3, tags=("bow",))
    whetstone = make_upgrade("whetstone", "knife_boost", amount=1)
    arrowhead = make_upgrade("arrowhead", "bow_boost", amount=2)
    player = make_player(hand=[knife, bow], equipped=[whetstone, arrowhead])

    assert attack_power(knife, player, "hand", 0) == 3
    assert attack_power(bow, player, "hand", 1) == 5


def test_double_fire_doubles_after_additive_bonuses() -> None:
    rifle = make_weapon("rifle", 4, tags=("firearm",))
    bandolier = make_upgrade("bandolier", "double_fire")
    lucky_bullet = make_upgrade("lucky_bullet", "firearm_boost", amount=1)
    player = make_player(hand=[rifle], equipped=[bandolier, lucky_bullet])

    assert attack_power(rifle, player, "hand", 0) == 10


def test_firearm_boost_does_not_stack() -> None:
    rifle = make_weapon("rifle", 4, tags=("firearm",))
    first = make_upgrade("lucky_bullet", "firearm_boost", amount=1)
    second = make_upgrade("gun_oil", "firearm_boost", amount=3)
    player = make_player(hand=[rifle, second], equipped=[first])

    assert attack_power(rifle, player, "hand", 0) == 5


def test_firearm_boost_counts_from_hand_when_not_equipped() -> None:
    rifle = make_weapon("rifle", 4, tags=("firearm",))
    lucky_bullet = make_upgrade("lucky_bullet", "firearm_boost", amount=1)
    player = make_player(hand=[rifle, lucky_bullet])

    assert attack_power(rifle, player, "hand", 0) == 5


def test_quiver_doubles_bow_attack() -> None:
    bow = make_weapon("bow", 3, tags=("bow",))
    quiver = make_upgrade("quiver", "quiver_boost")
    arrowhead = make_upgrade("arrowhead", "bow_boost", amount=1)
    player = make_player(equipped=[bow, quiver, arrowhead])

    assert attack_power(bow, player, "equipped", 0) == 10


def test_non_weapon_has_no_attack() -> None:
    hardtack = make_provision("hardtack", 2)

    assert attack_power(hardtack, make_player(hand=[hardtack]), "hand", 0) == 0


def test_heal_amount_adds_provision_and_herb_boosts() -> None:
    sage = make_provision("sage", 2, tags=("herb",))
    hardtack = make_provision("hardtack", 2)
    journal = make_upgrade("journal", "provision_heal_boost", amount=1)
    pouch = make_upgrade("pouch", "herb_boost", amount=2)
    player = make_player(hand=[sage, hardtack], equipped=[journal, pouch])

    assert heal_amount(sage, player) == 5
    assert heal_amount(hardtack, player) == 3
