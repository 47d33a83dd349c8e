from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ..db import get_db
from ..errors import api_error
from ..schemas import POINT_LIMITS, Warband, WarbandForm, Weirdo
from ..services import names, warbands

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/warbands", tags=["warbands"])


def _payload(warband) -> dict:
    return warbands.warband_record(warband).to_json()


@router.post("", status_code=201)
def create_warband(form: WarbandForm, db: Session = Depends(get_db)):
    if not form.name or not form.name.strip() or not form.point_limit:
        raise api_error(
            400,
            "Missing required fields",
            "MISSING_REQUIRED_FIELDS",
            context={"required": ["name", "pointLimit"]},
        )
    if form.point_limit not in POINT_LIMITS:
        raise api_error(
            400,
            "Invalid point limit",
            "INVALID_POINT_LIMIT",
            context={"pointLimit": form.point_limit, "validValues": list(POINT_LIMITS)},
        )
    record = Warband(name=form.name, point_limit=form.point_limit, ability=form.ability)
    return _payload(warbands.create_warband(db, record))


@router.get("")
def list_warbands(db: Session = Depends(get_db)):
    return [summary.to_json() for summary in warbands.warband_summaries(db)]


@router.get("/name-check")
def check_name(name: str = "", db: Session = Depends(get_db)):
    return names.validate_name(name, warbands.existing_names(db)).to_dict()


@router.get("/{warband_id}")
def get_warband(warband_id: str, db: Session = Depends(get_db)):
    return _payload(warbands.get_warband(db, warband_id))


@router.put("/{warband_id}")
def update_warband(warband_id: str, payload: Warband, db: Session = Depends(get_db)):
    warband = warbands.get_warband(db, warband_id)
    updated = warbands.update_warband(
        db,
        warband,
        name=payload.name,
        point_limit=payload.point_limit,
        ability=payload.ability,
        weirdos=payload.weirdos,
        clear_ability=True,
    )
    return _payload(updated)


@router.delete("/{warband_id}", status_code=204)
def delete_warband(warband_id: str, db: Session = Depends(get_db)):
    warband = warbands.get_warband(db, warband_id)
    warbands.delete_warband(db, warband)
    return Response(status_code=204)


@router.post("/{warband_id}/weirdos", status_code=201)
def add_weirdo(warband_id: str, weirdo: Weirdo, db: Session = Depends(get_db)):
    warband = warbands.get_warband(db, warband_id)
    warbands.add_weirdo(db, warband, weirdo)
    return _payload(warband)


@router.put("/{warband_id}/weirdos/{weirdo_id}")
def update_weirdo(
    warband_id: str, weirdo_id: str, weirdo: Weirdo, db: Session = Depends(get_db)
):
    warband = warbands.get_warband(db, warband_id)
    warbands.replace_weirdo(db, warband, weirdo_id, weirdo)
    return _payload(warband)


@router.delete("/{warband_id}/weirdos/{weirdo_id}")
def delete_weirdo(warband_id: str, weirdo_id: str, db: Session = Depends(get_db)):
    warband = warbands.get_warband(db, warband_id)
    warbands.remove_weirdo(db, warband, weirdo_id)
    return _payload(warband)
