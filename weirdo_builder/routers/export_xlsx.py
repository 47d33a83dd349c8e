from __future__ import annotations

from io import BytesIO

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from sqlalchemy.orm import Session

from ..db import get_db
from ..schemas import Warband, Weirdo
from ..services import costs, warbands
from ..services.costs import ATTRIBUTE_NAMES

router = APIRouter(prefix="/api/warbands", tags=["export"])


def _names(items) -> str:
    return ", ".join(item.name for item in items) or "-"


def _fit_columns(sheet, maximum: int) -> None:
    for column_cells in sheet.columns:
        max_length = max(len(str(cell.value or "")) for cell in column_cells)
        column_letter = column_cells[0].column_letter
        sheet.column_dimensions[column_letter].width = min(max_length + 2, maximum)


def _weirdo_cost(weirdo: Weirdo, ability: str | None) -> int | str:
    cost = costs.known_weirdo_cost(weirdo, ability)
    return "-" if cost is None else cost


def _append_warband_sheet(workbook: Workbook, warband: Warband) -> int:
    sheet = workbook.active
    sheet.title = "Warband"
    sheet.append(["Warband", warband.name])
    sheet.append(["Ability", warband.ability or "-"])
    sheet.append(["Point limit", warband.point_limit])
    sheet.append([])
    sheet.append(
        [
            "Name",
            "Type",
            "Speed",
            "Defense",
            "Firepower",
            "Prowess",
            "Willpower",
            "Close combat",
            "Ranged",
            "Equipment",
            "Psychic powers",
            "Leader trait",
            "Cost [pts]",
        ]
    )

    total_cost = 0
    for weirdo in warband.weirdos:
        attributes = weirdo.attributes
        levels = [
            getattr(attributes, name, None) if attributes is not None else None
            for name in ATTRIBUTE_NAMES
        ]
        cost = _weirdo_cost(weirdo, warband.ability)
        if isinstance(cost, int):
            total_cost += cost
        sheet.append(
            [
                weirdo.name,
                weirdo.type,
                *[level if level is not None else "-" for level in levels],
                _names(weirdo.close_combat_weapons),
                _names(weirdo.ranged_weapons),
                _names(weirdo.equipment),
                _names(weirdo.psychic_powers),
                weirdo.leader_trait or "-",
                cost,
            ]
        )

    sheet.append(["", "", "", "", "", "", "", "", "", "", "", "Total", total_cost])
    _fit_columns(sheet, 60)
    return total_cost


def _append_items_sheet(workbook: Workbook, warband: Warband) -> None:
    sheet = workbook.create_sheet("Items")
    sheet.append(["Name", "Kind", "Cost [pts]", "Notes"])
    used: dict[str, tuple[str, int, str]] = {}
    for weirdo in warband.weirdos:
        for weapon in [*weirdo.close_combat_weapons, *weirdo.ranged_weapons]:
            used.setdefault(
                weapon.name,
                (weapon.kind, costs.weapon_cost(weapon, warband.ability), weapon.notes),
            )
        for item in weirdo.equipment:
            used.setdefault(
                item.name,
                (item.kind, costs.equipment_cost(item, warband.ability), item.effect),
            )
        for power in weirdo.psychic_powers:
            used.setdefault(
                power.name, (power.kind, costs.psychic_power_cost(power), power.effect)
            )
    for name in sorted(used):
        sheet.append([name, *used[name]])
    _fit_columns(sheet, 50)


@router.get("/{warband_id}/export/xlsx")
def export_xlsx(warband_id: str, db: Session = Depends(get_db)):
    model = warbands.get_warband(db, warband_id)
    record = warbands.warband_record(model)

    workbook = Workbook()
    total_cost = _append_warband_sheet(workbook, record)
    _append_items_sheet(workbook, record)

    buffer = BytesIO()
    workbook.save(buffer)
    buffer.seek(0)
    filename = f"warband_{warband_id[:8]}_{total_cost}.xlsx"
    headers = {"Content-Disposition": f"attachment; filename={filename}"}
    return StreamingResponse(
        buffer,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers=headers,
    )
