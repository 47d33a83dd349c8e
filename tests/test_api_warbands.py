from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import pytest
from fastapi import HTTPException
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from starlette.requests import Request

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from weirdo_builder.db import Base  # noqa: E402
from weirdo_builder.routers import transfer as transfer_routes  # noqa: E402
from weirdo_builder.routers import warbands as warband_routes  # noqa: E402
from weirdo_builder.schemas import Warband, WarbandForm, Weirdo  # noqa: E402

WEIRDO_JSON = {
    "name": "Scout",
    "type": "trooper",
    "attributes": {
        "speed": 2,
        "defense": "2d6",
        "firepower": "2d8",
        "prowess": "2d6",
        "willpower": "2d6",
    },
    "closeCombatWeapons": [{"name": "Melee Weapon", "type": "close", "baseCost": 1}],
    "rangedWeapons": [{"name": "Auto Rifle", "type": "ranged", "baseCost": 1}],
}


def _session():
    engine = create_engine("sqlite:///:memory:", future=True)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)()


def _build_request(body: bytes, content_type: str = "application/json") -> Request:
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/warbands/import",
        "headers": [(b"content-type", content_type.encode("latin-1"))],
        "query_string": b"",
        "client": ("testclient", 50000),
        "server": ("testserver", 80),
        "scheme": "http",
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


def _create(session, name: str = "Star Rats", point_limit: int = 75) -> dict:
    form = WarbandForm(name=name, pointLimit=point_limit)
    return warband_routes.create_warband(form, db=session)


def test_create_and_fetch_warband():
    session = _session()
    try:
        created = _create(session)

        fetched = warband_routes.get_warband(created["id"], db=session)

        assert fetched["name"] == "Star Rats"
        assert fetched["pointLimit"] == 75
        assert fetched["weirdos"] == []
        assert fetched["totalCost"] == 0
    finally:
        session.close()


@pytest.mark.parametrize(
    "form,code",
    [
        (WarbandForm(pointLimit=75), "MISSING_REQUIRED_FIELDS"),
        (WarbandForm(name="Crew"), "MISSING_REQUIRED_FIELDS"),
        (WarbandForm(name="Crew", pointLimit=100), "INVALID_POINT_LIMIT"),
    ],
)
def test_create_rejects_bad_forms(form, code):
    session = _session()
    try:
        with pytest.raises(HTTPException) as excinfo:
            warband_routes.create_warband(form, db=session)
    finally:
        session.close()

    assert excinfo.value.status_code == 400
    assert excinfo.value.detail["code"] == code


def test_missing_warband_is_404():
    session = _session()
    try:
        with pytest.raises(HTTPException) as excinfo:
            warband_routes.get_warband("nope", db=session)
    finally:
        session.close()

    assert excinfo.value.status_code == 404
    assert excinfo.value.detail == {"error": "Warband not found", "code": "NOT_FOUND"}


def test_weirdo_routes_return_recosted_warband():
    session = _session()
    try:
        warband_id = _create(session)["id"]

        added = warband_routes.add_weirdo(
            warband_id, Weirdo.model_validate(WEIRDO_JSON), db=session
        )
        assert added["totalCost"] == 11
        weirdo = added["weirdos"][0]
        assert weirdo["totalCost"] == 11

        changed = dict(WEIRDO_JSON, name="Sniper", rangedWeapons=[
            {"name": "Beam Rifle", "type": "ranged", "baseCost": 4}
        ])
        updated = warband_routes.update_weirdo(
            warband_id, weirdo["id"], Weirdo.model_validate(changed), db=session
        )
        assert updated["weirdos"][0]["name"] == "Sniper"
        assert updated["totalCost"] == 14

        emptied = warband_routes.delete_weirdo(warband_id, weirdo["id"], db=session)
        assert emptied["weirdos"] == []
        assert emptied["totalCost"] == 0
    finally:
        session.close()


def test_put_replaces_whole_warband():
    session = _session()
    try:
        warband_id = _create(session)["id"]
        payload = Warband.model_validate(
            {
                "name": "Renamed",
                "pointLimit": 125,
                "ability": "Mutants",
                "weirdos": [WEIRDO_JSON],
            }
        )

        updated = warband_routes.update_warband(warband_id, payload, db=session)

        assert updated["name"] == "Renamed"
        assert updated["pointLimit"] == 125
        assert updated["ability"] == "Mutants"
        assert updated["totalCost"] == 10

        cleared = warband_routes.update_warband(
            warband_id, payload.model_copy(update={"ability": None}), db=session
        )
        assert cleared["ability"] is None
    finally:
        session.close()


def test_list_and_delete():
    session = _session()
    try:
        warband_id = _create(session)["id"]
        _create(session, "Second Crew", 125)

        listing = warband_routes.list_warbands(db=session)
        assert {entry["name"] for entry in listing} == {"Star Rats", "Second Crew"}
        assert all("weirdoCount" in entry for entry in listing)

        response = warband_routes.delete_warband(warband_id, db=session)
        assert response.status_code == 204
        assert len(warband_routes.list_warbands(db=session)) == 1
    finally:
        session.close()


def test_name_check_uses_stored_names():
    session = _session()
    try:
        _create(session)

        taken = warband_routes.check_name("star rats", db=session)
        free = warband_routes.check_name("Void Crew", db=session)
    finally:
        session.close()

    assert taken["available"] is False
    assert taken["suggestions"]
    assert free["valid"] is True


def test_export_returns_attachment():
    session = _session()
    try:
        warband_id = _create(session)["id"]
        warband_routes.add_weirdo(warband_id, Weirdo.model_validate(WEIRDO_JSON), db=session)

        response = transfer_routes.export_warband(warband_id, db=session)
    finally:
        session.close()

    payload = json.loads(response.body)
    assert response.headers["content-disposition"] == 'attachment; filename="Star_Rats.json"'
    assert payload["exportVersion"] == "1.0"
    assert payload["weirdos"][0]["closeCombatWeapons"][0]["type"] == "close"


def test_parse_import_bytes_limits_size():
    with pytest.raises(HTTPException) as excinfo:
        transfer_routes.parse_import_bytes(b"x" * 11, limit=10)

    assert excinfo.value.status_code == 413
    assert excinfo.value.detail["code"] == "FILE_TOO_LARGE"


@pytest.mark.parametrize("raw", [b"{not json", b"\xff\xfe"])
def test_parse_import_bytes_rejects_bad_json(raw):
    with pytest.raises(HTTPException) as excinfo:
        transfer_routes.parse_import_bytes(raw)

    assert excinfo.value.status_code == 400
    assert excinfo.value.detail["code"] == "INVALID_JSON_FORMAT"


def test_export_then_import_creates_renamed_copy():
    session = _session()
    try:
        warband_id = _create(session)["id"]
        warband_routes.add_weirdo(warband_id, Weirdo.model_validate(WEIRDO_JSON), db=session)
        exported = transfer_routes.export_warband(warband_id, db=session).body

        imported = asyncio.run(
            transfer_routes.import_warband(_build_request(exported), db=session)
        )
    finally:
        session.close()

    assert imported["id"] != warband_id
    assert imported["name"] == "Star Rats v2"
    assert imported["totalCost"] == 11
    assert imported["weirdos"][0]["name"] == "Scout"


def test_validate_import_endpoint_reports_errors():
    body = json.dumps({"name": "Crew", "pointLimit": 80, "weirdos": []}).encode()

    result = asyncio.run(transfer_routes.validate_import(_build_request(body)))

    assert result["valid"] is False
    assert [error["code"] for error in result["errors"]] == ["INVALID_POINT_LIMIT"]
