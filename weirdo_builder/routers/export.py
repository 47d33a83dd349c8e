from __future__ import annotations

from datetime import datetime
from pathlib import Path

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session

from ..db import get_db
from ..schemas import Warband
from ..services import costs, validation, warbands
from ..services.costs import ATTRIBUTE_NAMES

router = APIRouter(prefix="/warbands", tags=["export"])
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parents[1] / "templates"))


def roster_entries(warband: Warband) -> list[dict]:
    entries: list[dict] = []
    for weirdo in warband.weirdos:
        attributes = weirdo.attributes
        breakdown = None
        if costs.attributes_complete(weirdo):
            breakdown = costs.weirdo_cost_breakdown(weirdo, warband.ability).to_dict()
        entries.append(
            {
                "name": weirdo.name,
                "type": weirdo.type,
                "attributes": [
                    (name, getattr(attributes, name, None) if attributes else None)
                    for name in ATTRIBUTE_NAMES
                ],
                "close_combat": [weapon.name for weapon in weirdo.close_combat_weapons],
                "ranged": [weapon.name for weapon in weirdo.ranged_weapons],
                "equipment": [item.name for item in weirdo.equipment],
                "psychic_powers": [power.name for power in weirdo.psychic_powers],
                "leader_trait": weirdo.leader_trait,
                "notes": weirdo.notes,
                "cost": breakdown["total"] if breakdown else None,
                "breakdown": breakdown,
            }
        )
    return entries


@router.get("/{warband_id}/print", response_class=HTMLResponse)
def warband_print(warband_id: str, request: Request, db: Session = Depends(get_db)):
    record = warbands.warband_record(warbands.get_warband(db, warband_id))
    result = validation.validate_warband(record)
    return templates.TemplateResponse(
        request,
        "warband_print.html",
        {
            "warband": record,
            "entries": roster_entries(record),
            "total_cost": costs.known_warband_cost(record),
            "errors": result.errors,
            "warnings": result.warnings,
            "generated_at": datetime.utcnow(),
        },
    )
