from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from typing import List, Sequence

from ..schemas import (
    DICE_LEVELS,
    FIREPOWER_LEVELS,
    SPEED_LEVELS,
    Equipment,
    PsychicPower,
    Weapon,
)


@dataclass(frozen=True)
class TraitDefinition:
    name: str
    description: str

    def to_dict(self) -> dict:
        return {"name": self.name, "description": self.description}


CLOSE_COMBAT_WEAPONS: List[Weapon] = [
    Weapon(
        id="unarmed",
        name="Unarmed",
        kind="close",
        base_cost=0,
        max_actions=3,
        notes="-1 DMG. Every weirdo is assumed to have this if nothing else is chosen.",
    ),
    Weapon(
        id="claws-teeth",
        name="Claws & Teeth",
        kind="close",
        base_cost=2,
        max_actions=3,
        notes="",
    ),
    Weapon(
        id="horrible-claws-teeth",
        name="Horrible Claws & Teeth",
        kind="close",
        base_cost=3,
        max_actions=3,
        notes="+1 DMG.",
    ),
    Weapon(
        id="whip-tail",
        name="Whip/Tail",
        kind="close",
        base_cost=2,
        max_actions=3,
        notes="Reach: may attack enemies within 3\".",
    ),
    Weapon(
        id="melee-weapon",
        name="Melee Weapon",
        kind="close",
        base_cost=1,
        max_actions=2,
        notes="",
    ),
    Weapon(
        id="heavy-melee-weapon",
        name="Heavy Melee Weapon",
        kind="close",
        base_cost=3,
        max_actions=1,
        notes="+1 DMG. Two-handed.",
    ),
]

RANGED_WEAPONS: List[Weapon] = [
    Weapon(
        id="auto-pistol",
        name="Auto Pistol",
        kind="ranged",
        base_cost=0,
        max_actions=3,
        notes="Range 12\". Aim.",
    ),
    Weapon(
        id="auto-rifle",
        name="Auto Rifle",
        kind="ranged",
        base_cost=1,
        max_actions=3,
        notes="Range 24\". Aim, Auto.",
    ),
    Weapon(
        id="beam-pistol",
        name="Beam Pistol",
        kind="ranged",
        base_cost=3,
        max_actions=3,
        notes="Range 12\". +1 DMG.",
    ),
    Weapon(
        id="beam-rifle",
        name="Beam Rifle",
        kind="ranged",
        base_cost=4,
        max_actions=3,
        notes="Range 24\". +1 DMG, Aim.",
    ),
    Weapon(
        id="flamethrower",
        name="Flamethrower",
        kind="ranged",
        base_cost=3,
        max_actions=1,
        notes="Template. Ignores cover.",
    ),
    Weapon(
        id="grenade-launcher",
        name="Grenade Launcher",
        kind="ranged",
        base_cost=3,
        max_actions=1,
        notes="Range 24\". Blast.",
    ),
    Weapon(
        id="rocket-launcher",
        name="Rocket Launcher",
        kind="ranged",
        base_cost=5,
        max_actions=1,
        notes="Range 36\". +2 DMG, Blast.",
    ),
]

EQUIPMENT: List[Equipment] = [
    Equipment(
        id="cybernetics",
        name="Cybernetics",
        kind="Passive",
        base_cost=1,
        effect="+1 to Power rolls.",
    ),
    Equipment(
        id="grenade",
        name="Grenade",
        kind="Action",
        base_cost=1,
        effect="Once per game: ranged attack with Blast, range 8\".",
    ),
    Equipment(
        id="heavy-armor",
        name="Heavy Armor",
        kind="Passive",
        base_cost=1,
        effect="+1 to Defense rolls, -1\" movement.",
    ),
    Equipment(
        id="jump-pack",
        name="Jump Pack",
        kind="Action",
        base_cost=1,
        effect="Move up to 10\" ignoring terrain.",
    ),
    Equipment(
        id="medkit",
        name="Medkit",
        kind="Action",
        base_cost=1,
        effect="Once per game: remove a wound from a weirdo in base contact.",
    ),
    Equipment(
        id="psychic-focus",
        name="Psychic Focus",
        kind="Passive",
        base_cost=1,
        effect="+1 to Willpower rolls when using psychic powers.",
    ),
    Equipment(
        id="stealth-suit",
        name="Stealth Suit",
        kind="Passive",
        base_cost=2,
        effect="Enemies at more than 12\" count as in cover when targeting this weirdo.",
    ),
]

PSYCHIC_POWERS: List[PsychicPower] = [
    PsychicPower(
        id="fear",
        name="Fear",
        kind="Attack",
        cost=1,
        effect="Target makes a Willpower roll or moves 3\" away.",
    ),
    PsychicPower(
        id="healing",
        name="Healing",
        kind="Effect",
        cost=1,
        effect="Remove a wound from a weirdo within 6\".",
    ),
    PsychicPower(
        id="mind-stab",
        name="Mind Stab",
        kind="Attack",
        cost=3,
        effect="Ranged attack using Willpower, +1 DMG.",
    ),
    PsychicPower(
        id="telekinesis",
        name="Telekinesis",
        kind="Either",
        cost=2,
        effect="Move a weirdo or object within 12\" up to 4\".",
    ),
    PsychicPower(
        id="force-shield",
        name="Force Shield",
        kind="Effect",
        cost=2,
        effect="+1 to Defense rolls for a weirdo within 6\" until next activation.",
    ),
]

LEADER_TRAITS: List[TraitDefinition] = [
    TraitDefinition("Bounty Hunter", "Ranged attacks against enemy leaders gain +1 DMG."),
    TraitDefinition("Healer", "Once per game remove a wound from a weirdo within 3\"."),
    TraitDefinition("Majestic", "Friendly weirdos within 6\" add +1 to Willpower rolls."),
    TraitDefinition("Monstrous", "Close combat attacks gain +1 DMG."),
    TraitDefinition("Political Officer", "Friendly weirdos within 6\" may re-roll failed panic tests."),
    TraitDefinition("Sorcerer", "May use one psychic power per turn without a Willpower roll."),
    TraitDefinition("Tactician", "Gain one extra initiative point at the start of the game."),
]

WARBAND_ABILITIES: List[TraitDefinition] = [
    TraitDefinition("Cyborgs", "Each weirdo may carry one additional piece of equipment."),
    TraitDefinition("Fanatics", "Weirdos never panic while within 6\" of the leader."),
    TraitDefinition("Living Weapons", "Unarmed attacks do not suffer the -1 DMG penalty."),
    TraitDefinition("Heavily Armed", "Ranged weapons cost 1 point less (minimum 0)."),
    TraitDefinition(
        "Mutants",
        "Speed costs 1 point less; Claws & Teeth, Horrible Claws & Teeth and Whip/Tail cost 1 point less (minimum 0).",
    ),
    TraitDefinition("Soldiers", "Grenades, Heavy Armor and Medkits are free."),
    TraitDefinition("Undead", "Weirdos reduced to zero wounds stay in play on a 6+."),
]

ATTRIBUTE_LEVELS: dict[str, Sequence] = {
    "speed": SPEED_LEVELS,
    "defense": DICE_LEVELS,
    "firepower": FIREPOWER_LEVELS,
    "prowess": DICE_LEVELS,
    "willpower": DICE_LEVELS,
}


@dataclass(frozen=True)
class GameData:
    """Reference data for a running application, loaded once and passed explicitly."""

    close_combat_weapons: tuple[Weapon, ...]
    ranged_weapons: tuple[Weapon, ...]
    equipment: tuple[Equipment, ...]
    psychic_powers: tuple[PsychicPower, ...]
    leader_traits: tuple[TraitDefinition, ...]
    warband_abilities: tuple[TraitDefinition, ...]
    attribute_levels: dict[str, Sequence] = field(default_factory=dict, compare=False)

    def weapons(self, kind: str) -> tuple[Weapon, ...]:
        if kind == "ranged":
            return self.ranged_weapons
        return self.close_combat_weapons

    def find_weapon(self, kind: str, name: str | None) -> Weapon | None:
        return _find_by_name(self.weapons(kind), name)

    def find_equipment(self, name: str | None) -> Equipment | None:
        return _find_by_name(self.equipment, name)

    def find_psychic_power(self, name: str | None) -> PsychicPower | None:
        return _find_by_name(self.psychic_powers, name)

    @property
    def leader_trait_names(self) -> frozenset[str]:
        return frozenset(trait.name for trait in self.leader_traits)

    @property
    def warband_ability_names(self) -> frozenset[str]:
        return frozenset(ability.name for ability in self.warband_abilities)


def _find_by_name(items, name):
    if not name:
        return None
    for item in items:
        if item.name == name:
            return item
    return None


@lru_cache()
def game_data() -> GameData:
    return GameData(
        close_combat_weapons=tuple(CLOSE_COMBAT_WEAPONS),
        ranged_weapons=tuple(RANGED_WEAPONS),
        equipment=tuple(EQUIPMENT),
        psychic_powers=tuple(PSYCHIC_POWERS),
        leader_traits=tuple(LEADER_TRAITS),
        warband_abilities=tuple(WARBAND_ABILITIES),
        attribute_levels=dict(ATTRIBUTE_LEVELS),
    )
