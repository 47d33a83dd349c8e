"""Point cost calculator for weirdos and warbands.

Base costs come from fixed lookup tables. A warband ability may modify
them through its :class:`CostModifier`; at most one ability applies.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Iterable

from ..schemas import Equipment, PsychicPower, Warband, Weapon, Weirdo

ATTRIBUTE_NAMES = ("speed", "defense", "firepower", "prowess", "willpower")

ATTRIBUTE_COSTS: dict[str, dict[Any, int]] = {
    "speed": {1: 0, 2: 1, 3: 3},
    "defense": {"2d6": 2, "2d8": 4, "2d10": 8},
    "firepower": {"None": 0, "2d8": 2, "2d10": 4},
    "prowess": {"2d6": 2, "2d8": 4, "2d10": 6},
    "willpower": {"2d6": 2, "2d8": 4, "2d10": 6},
}

MUTANT_DISCOUNT = 1
HEAVILY_ARMED_DISCOUNT = 1

MUTANT_WEAPONS = frozenset({"Claws & Teeth", "Horrible Claws & Teeth", "Whip/Tail"})
SOLDIER_FREE_EQUIPMENT = frozenset({"Grenade", "Heavy Armor", "Medkit"})


class UnknownAttributeLevel(ValueError):
    """Raised when an attribute level is missing or not in its cost table."""

    def __init__(self, attribute: str, level: Any) -> None:
        super().__init__(f"Unknown level {level!r} for attribute {attribute!r}")
        self.attribute = attribute
        self.level = level


@dataclass(frozen=True)
class CostModifier:
    attribute: Callable[[str, int], int]
    weapon: Callable[[Weapon], int]
    equipment: Callable[[Equipment], int]


@dataclass(frozen=True)
class CostBreakdown:
    attributes: int
    weapons: int
    equipment: int
    psychic_powers: int

    @property
    def total(self) -> int:
        return self.attributes + self.weapons + self.equipment + self.psychic_powers

    def to_dict(self) -> dict[str, int]:
        return {
            "attributes": self.attributes,
            "weapons": self.weapons,
            "equipment": self.equipment,
            "psychicPowers": self.psychic_powers,
            "total": self.total,
        }


def _base_attribute(attribute: str, base_cost: int) -> int:
    return base_cost


def _base_weapon(weapon: Weapon) -> int:
    return weapon.base_cost


def _base_equipment(equipment: Equipment) -> int:
    return equipment.base_cost


def _mutants_attribute(attribute: str, base_cost: int) -> int:
    if attribute == "speed":
        return max(0, base_cost - MUTANT_DISCOUNT)
    return base_cost


def _mutants_weapon(weapon: Weapon) -> int:
    if weapon.name in MUTANT_WEAPONS:
        return max(0, weapon.base_cost - MUTANT_DISCOUNT)
    return weapon.base_cost


def _heavily_armed_weapon(weapon: Weapon) -> int:
    if weapon.kind == "ranged":
        return max(0, weapon.base_cost - HEAVILY_ARMED_DISCOUNT)
    return weapon.base_cost


def _soldiers_equipment(equipment: Equipment) -> int:
    if equipment.name in SOLDIER_FREE_EQUIPMENT:
        return 0
    return equipment.base_cost


NO_MODIFIER = CostModifier(_base_attribute, _base_weapon, _base_equipment)
MUTANTS = CostModifier(_mutants_attribute, _mutants_weapon, _base_equipment)
HEAVILY_ARMED = CostModifier(_base_attribute, _heavily_armed_weapon, _base_equipment)
SOLDIERS = CostModifier(_base_attribute, _base_weapon, _soldiers_equipment)


def cost_modifier(ability: str | None) -> CostModifier:
    match ability:
        case "Mutants":
            return MUTANTS
        case "Heavily Armed":
            return HEAVILY_ARMED
        case "Soldiers":
            return SOLDIERS
        case _:
            return NO_MODIFIER


def base_attribute_cost(attribute: str, level: Any) -> int:
    table = ATTRIBUTE_COSTS.get(attribute)
    if table is None:
        raise UnknownAttributeLevel(attribute, level)
    if isinstance(level, bool):
        raise UnknownAttributeLevel(attribute, level)
    try:
        return table[level]
    except (KeyError, TypeError):
        raise UnknownAttributeLevel(attribute, level) from None


def attribute_cost(attribute: str, level: Any, ability: str | None) -> int:
    base_cost = base_attribute_cost(attribute, level)
    return cost_modifier(ability).attribute(attribute, base_cost)


def weapon_cost(weapon: Weapon, ability: str | None) -> int:
    return cost_modifier(ability).weapon(weapon)


def equipment_cost(equipment: Equipment, ability: str | None) -> int:
    return cost_modifier(ability).equipment(equipment)


def psychic_power_cost(power: PsychicPower) -> int:
    return power.cost


def attributes_complete(weirdo: Weirdo) -> bool:
    return weirdo.attributes is not None and first_missing_attribute(weirdo) is None


def first_missing_attribute(weirdo: Weirdo) -> str | None:
    attributes = weirdo.attributes
    if attributes is None:
        return None
    for name in ATTRIBUTE_NAMES:
        level = getattr(attributes, name, None)
        if isinstance(level, bool) or level not in ATTRIBUTE_COSTS[name]:
            return name
    return None


def weirdo_cost_breakdown(weirdo: Weirdo, ability: str | None) -> CostBreakdown:
    attributes = weirdo.attributes
    if attributes is None:
        raise UnknownAttributeLevel("attributes", None)
    attribute_total = sum(
        attribute_cost(name, getattr(attributes, name), ability)
        for name in ATTRIBUTE_NAMES
    )
    weapons_total = sum(
        weapon_cost(weapon, ability)
        for weapon in _chain(weirdo.close_combat_weapons, weirdo.ranged_weapons)
    )
    equipment_total = sum(equipment_cost(item, ability) for item in weirdo.equipment)
    powers_total = sum(psychic_power_cost(power) for power in weirdo.psychic_powers)
    return CostBreakdown(
        attributes=attribute_total,
        weapons=weapons_total,
        equipment=equipment_total,
        psychic_powers=powers_total,
    )


def weirdo_cost(weirdo: Weirdo, ability: str | None) -> int:
    return weirdo_cost_breakdown(weirdo, ability).total


def warband_cost(warband: Warband) -> int:
    return sum(weirdo_cost(weirdo, warband.ability) for weirdo in warband.weirdos)


def known_weirdo_cost(weirdo: Weirdo, ability: str | None) -> int | None:
    """Return the weirdo's cost, or ``None`` when its attributes are incomplete."""

    if not attributes_complete(weirdo):
        return None
    return weirdo_cost(weirdo, ability)


def known_warband_cost(warband: Warband) -> int:
    total = 0
    for weirdo in warband.weirdos:
        cost = known_weirdo_cost(weirdo, warband.ability)
        if cost is not None:
            total += cost
    return total


def attribute_options(ability: str | None = None) -> dict[str, list[dict[str, Any]]]:
    return {
        name: [
            {
                "level": level,
                "baseCost": base_cost,
                "cost": cost_modifier(ability).attribute(name, base_cost),
            }
            for level, base_cost in ATTRIBUTE_COSTS[name].items()
        ]
        for name in ATTRIBUTE_NAMES
    }


def _chain(*groups: Iterable[Weapon]) -> Iterable[Weapon]:
    for group in groups:
        yield from group
