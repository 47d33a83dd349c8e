import sys
from pathlib import Path

import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from weirdo_builder.data.catalog import game_data
from weirdo_builder.schemas import Attributes, Equipment, PsychicPower, Warband, Weapon, Weirdo
from weirdo_builder.services import costs

ABILITIES = [
    None,
    "Cyborgs",
    "Fanatics",
    "Living Weapons",
    "Heavily Armed",
    "Mutants",
    "Soldiers",
    "Undead",
]


def _basic_attributes(**overrides) -> Attributes:
    values = {
        "speed": 1,
        "defense": "2d6",
        "firepower": "None",
        "prowess": "2d6",
        "willpower": "2d6",
    }
    values.update(overrides)
    return Attributes(**values)


def _weirdo(**overrides) -> Weirdo:
    data = game_data()
    values = {
        "id": "w1",
        "name": "Grunt",
        "type": "trooper",
        "attributes": _basic_attributes(),
        "close_combat_weapons": [data.find_weapon("close", "Melee Weapon")],
    }
    values.update(overrides)
    return Weirdo(**values)


@pytest.mark.parametrize(
    "attribute,level,expected",
    [
        ("speed", 1, 0),
        ("speed", 2, 1),
        ("speed", 3, 3),
        ("defense", "2d6", 2),
        ("defense", "2d8", 4),
        ("defense", "2d10", 8),
        ("firepower", "None", 0),
        ("firepower", "2d8", 2),
        ("firepower", "2d10", 4),
        ("prowess", "2d10", 6),
        ("willpower", "2d8", 4),
    ],
)
def test_attribute_base_costs(attribute, level, expected):
    assert costs.attribute_cost(attribute, level, None) == expected


def test_mutants_discount_speed_only():
    assert costs.attribute_cost("speed", 2, "Mutants") == 0
    assert costs.attribute_cost("speed", 2, None) == 1
    assert costs.attribute_cost("speed", 3, "Mutants") == 2
    assert costs.attribute_cost("speed", 1, "Mutants") == 0
    assert costs.attribute_cost("defense", "2d10", "Mutants") == 8


@pytest.mark.parametrize("level", [0, 4, "fast", None, True])
def test_unknown_speed_level_raises(level):
    with pytest.raises(costs.UnknownAttributeLevel) as excinfo:
        costs.attribute_cost("speed", level, None)
    assert excinfo.value.attribute == "speed"
    assert isinstance(excinfo.value, ValueError)


def test_unknown_attribute_name_raises():
    with pytest.raises(costs.UnknownAttributeLevel):
        costs.attribute_cost("luck", "2d6", None)


def test_mutants_discount_natural_weapons():
    claws = Weapon(name="Claws & Teeth", kind="close", base_cost=2)
    free_claws = Weapon(name="Claws & Teeth", kind="close", base_cost=0)
    sword = Weapon(name="Melee Weapon", kind="close", base_cost=1)

    assert costs.weapon_cost(claws, "Mutants") == 1
    assert costs.weapon_cost(free_claws, "Mutants") == 0
    assert costs.weapon_cost(sword, "Mutants") == 1
    assert costs.weapon_cost(Weapon(name="Whip/Tail", base_cost=2), "Mutants") == 1
    assert costs.weapon_cost(Weapon(name="Horrible Claws & Teeth", base_cost=3), "Mutants") == 2


def test_mutants_discount_requires_exact_name():
    assert costs.weapon_cost(Weapon(name="claws & teeth", base_cost=2), "Mutants") == 2


def test_heavily_armed_discounts_ranged_weapons():
    data = game_data()
    assert costs.weapon_cost(data.find_weapon("ranged", "Beam Rifle"), "Heavily Armed") == 3
    assert costs.weapon_cost(data.find_weapon("ranged", "Auto Pistol"), "Heavily Armed") == 0
    assert costs.weapon_cost(data.find_weapon("close", "Heavy Melee Weapon"), "Heavily Armed") == 3


def test_soldiers_get_free_standard_kit():
    data = game_data()
    for name in ("Grenade", "Heavy Armor", "Medkit"):
        assert costs.equipment_cost(data.find_equipment(name), "Soldiers") == 0
        assert costs.equipment_cost(data.find_equipment(name), None) == 1
    assert costs.equipment_cost(data.find_equipment("Stealth Suit"), "Soldiers") == 2


@pytest.mark.parametrize("ability", ABILITIES)
def test_psychic_power_cost_ignores_ability(ability):
    power = PsychicPower(name="Mind Stab", kind="Attack", cost=3)
    weirdo = _weirdo(psychic_powers=[power])
    without_power = _weirdo()

    assert costs.psychic_power_cost(power) == 3
    assert costs.weirdo_cost(weirdo, ability) - costs.weirdo_cost(without_power, ability) == 3


def test_unknown_ability_uses_base_costs():
    assert costs.cost_modifier("Space Pirates") is costs.NO_MODIFIER
    assert costs.cost_modifier(None) is costs.NO_MODIFIER
    assert costs.cost_modifier("Mutants") is costs.MUTANTS


def test_weirdo_cost_sums_every_part():
    data = game_data()
    weirdo = _weirdo(
        attributes=_basic_attributes(speed=2, firepower="2d8"),
        ranged_weapons=[data.find_weapon("ranged", "Auto Rifle")],
        equipment=[data.find_equipment("Medkit")],
        psychic_powers=[data.find_psychic_power("Fear")],
    )

    breakdown = costs.weirdo_cost_breakdown(weirdo, None)

    assert breakdown.to_dict() == {
        "attributes": 9,
        "weapons": 2,
        "equipment": 1,
        "psychicPowers": 1,
        "total": 13,
    }
    assert costs.weirdo_cost(weirdo, None) == 13
    assert costs.weirdo_cost(weirdo, "Soldiers") == 12


@pytest.mark.parametrize("ability", ABILITIES)
def test_weirdo_cost_is_deterministic(ability):
    weirdo = _weirdo()
    assert costs.weirdo_cost(weirdo, ability) == costs.weirdo_cost(weirdo, ability)


def test_weirdo_without_attributes_cannot_be_costed():
    weirdo = _weirdo(attributes=None)
    with pytest.raises(costs.UnknownAttributeLevel):
        costs.weirdo_cost(weirdo, None)
    assert costs.known_weirdo_cost(weirdo, None) is None


def test_incomplete_attributes_are_detected():
    weirdo = _weirdo(attributes=_basic_attributes(willpower=None))
    assert not costs.attributes_complete(weirdo)
    assert costs.first_missing_attribute(weirdo) == "willpower"
    assert costs.attributes_complete(_weirdo())


def test_warband_cost_applies_warband_ability():
    claws = Weapon(name="Claws & Teeth", kind="close", base_cost=2)
    warband = Warband(
        name="Mutant Horde",
        ability="Mutants",
        point_limit=75,
        weirdos=[
            _weirdo(id="a", attributes=_basic_attributes(speed=2), close_combat_weapons=[claws]),
            _weirdo(id="b"),
        ],
    )

    assert costs.warband_cost(warband) == (6 + 0 + 1) + (6 + 1)


def test_known_warband_cost_skips_incomplete_weirdos():
    warband = Warband(
        name="Half Done",
        weirdos=[_weirdo(id="a"), _weirdo(id="b", attributes=_basic_attributes(defense=None))],
    )

    assert costs.known_warband_cost(warband) == 7


def test_attribute_options_show_modified_costs():
    options = costs.attribute_options("Mutants")

    speed = {entry["level"]: entry for entry in options["speed"]}
    assert speed[2]["baseCost"] == 1
    assert speed[2]["cost"] == 0
    assert [entry["level"] for entry in options["firepower"]] == ["None", "2d8", "2d10"]
