from __future__ import annotations

from fastapi import APIRouter

from ..data.catalog import game_data
from ..services import costs

router = APIRouter(prefix="/api/game-data", tags=["game-data"])


@router.get("/attributes")
def attributes(ability: str | None = None):
    return costs.attribute_options(ability)


@router.get("/weapons/close")
def close_combat_weapons():
    return [weapon.to_json() for weapon in game_data().close_combat_weapons]


@router.get("/weapons/ranged")
def ranged_weapons():
    return [weapon.to_json() for weapon in game_data().ranged_weapons]


@router.get("/equipment")
def equipment():
    return [item.to_json() for item in game_data().equipment]


@router.get("/psychic-powers")
def psychic_powers():
    return [power.to_json() for power in game_data().psychic_powers]


@router.get("/leader-traits")
def leader_traits():
    return [trait.to_dict() for trait in game_data().leader_traits]


@router.get("/warband-abilities")
def warband_abilities():
    return [ability.to_dict() for ability in game_data().warband_abilities]
