import sys
from pathlib import Path

import pytest
from fastapi import HTTPException

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from weirdo_builder import main
from weirdo_builder.routers import calculations, game_data
from weirdo_builder.schemas import CostRequest, RealTimeCostRequest, ValidateRequest, Warband


def _weirdo_json(weirdo_id: str = "w1", **overrides) -> dict:
    data = {
        "id": weirdo_id,
        "name": "Bruiser",
        "type": "trooper",
        "attributes": {
            "speed": 3,
            "defense": "2d10",
            "firepower": "None",
            "prowess": "2d10",
            "willpower": "2d6",
        },
        "closeCombatWeapons": [{"name": "Heavy Melee Weapon", "type": "close", "baseCost": 3}],
        "equipment": [{"name": "Cybernetics", "type": "Passive", "baseCost": 1}],
    }
    data.update(overrides)
    return data


def test_health():
    assert main.health() == {"status": "ok"}


def test_calculate_cost_for_weirdo_and_warband():
    weirdo_cost = calculations.calculate_cost(
        CostRequest.model_validate({"weirdo": _weirdo_json(), "warbandAbility": "Mutants"})
    )
    warband_cost = calculations.calculate_cost(
        CostRequest.model_validate(
            {"warband": {"name": "Crew", "pointLimit": 75, "weirdos": [_weirdo_json()]}}
        )
    )

    assert weirdo_cost == {"cost": 22}
    assert warband_cost == {"cost": 23}


def test_calculate_cost_requires_subject():
    with pytest.raises(HTTPException) as excinfo:
        calculations.calculate_cost(CostRequest())

    assert excinfo.value.status_code == 400
    assert excinfo.value.detail["code"] == "INVALID_REQUEST"


def test_calculate_cost_rejects_unknown_level():
    weirdo = _weirdo_json(attributes={"speed": 5, "defense": "2d6", "firepower": "None",
                                      "prowess": "2d6", "willpower": "2d6"})

    with pytest.raises(HTTPException) as excinfo:
        calculations.calculate_cost(CostRequest.model_validate({"weirdo": weirdo}))

    assert excinfo.value.status_code == 400
    assert "speed" in excinfo.value.detail["context"]["details"]


def test_realtime_cost_reports_breakdown_and_warnings():
    result = calculations.calculate_cost_realtime(
        RealTimeCostRequest.model_validate({"weirdo": _weirdo_json()})
    )

    assert result["success"] is True
    data = result["data"]
    assert data["totalCost"] == 23
    assert data["breakdown"] == {
        "attributes": 19,
        "weapons": 3,
        "equipment": 1,
        "psychicPowers": 0,
        "total": 23,
    }
    assert data["warnings"] == ["Cost is within 2 points of the 25-point limit"]
    assert data["isApproachingLimit"] is True
    assert data["isOverLimit"] is False
    assert data["calculationTime"] >= 0


def test_realtime_cost_flags_over_limit():
    attributes = {
        "speed": 3,
        "defense": "2d10",
        "firepower": "2d10",
        "prowess": "2d10",
        "willpower": "2d10",
    }
    result = calculations.calculate_cost_realtime(
        RealTimeCostRequest.model_validate({"weirdo": _weirdo_json(attributes=attributes)})
    )

    assert result["data"]["totalCost"] == 31
    assert result["data"]["isOverLimit"] is True
    assert result["data"]["warnings"] == []


def test_realtime_cost_uses_warband_ability():
    payload = RealTimeCostRequest.model_validate(
        {
            "weirdo": _weirdo_json(),
            "warband": {"name": "Crew", "ability": "Mutants", "weirdos": []},
        }
    )

    assert calculations.calculate_cost_realtime(payload)["data"]["totalCost"] == 22


def test_validate_single_weirdo():
    weirdo = _weirdo_json(closeCombatWeapons=[])

    result = calculations.validate(ValidateRequest.model_validate({"weirdo": weirdo}))

    assert result["valid"] is False
    assert [error["code"] for error in result["errors"]] == ["CLOSE_COMBAT_WEAPON_REQUIRED"]


def test_validate_weirdo_in_warband_context():
    other = _weirdo_json("w2")
    payload = ValidateRequest.model_validate(
        {
            "weirdo": _weirdo_json(),
            "warband": {"name": "Crew", "pointLimit": 125, "weirdos": [_weirdo_json(), other]},
        }
    )

    result = calculations.validate_weirdo(payload)

    assert result["valid"] is True
    assert result["warnings"] == []


def test_validate_warband_includes_reference_warnings():
    warband = Warband.model_validate(
        {"name": "Crew", "pointLimit": 75, "ability": "Pirates", "weirdos": [_weirdo_json()]}
    )

    result = calculations.validate_warband(warband)

    assert result["valid"] is True
    codes = {warning["code"] for warning in result["warnings"]}
    assert "UNKNOWN_WARBAND_ABILITY_REFERENCE" in codes


def test_validate_requires_subject():
    with pytest.raises(HTTPException):
        calculations.validate(ValidateRequest())
    with pytest.raises(HTTPException):
        calculations.validate_weirdo(ValidateRequest())


def test_game_data_endpoints():
    speed = game_data.attributes(ability="Mutants")["speed"]
    assert [option["cost"] for option in speed] == [0, 0, 2]

    close = game_data.close_combat_weapons()
    assert {"name": "Claws & Teeth", "type": "close"}.items() <= close[1].items()
    assert all(weapon["type"] == "ranged" for weapon in game_data.ranged_weapons())
    assert any(item["name"] == "Medkit" for item in game_data.equipment())
    assert any(power["name"] == "Mind Stab" for power in game_data.psychic_powers())
    assert len(game_data.leader_traits()) == 7
    assert {ability["name"] for ability in game_data.warband_abilities()} >= {
        "Mutants",
        "Soldiers",
        "Heavily Armed",
    }
