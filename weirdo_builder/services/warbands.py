from __future__ import annotations

import json
import logging
from typing import Any, Iterable

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from .. import models
from ..errors import api_error, not_found
from ..schemas import (
    POINT_LIMITS,
    Attributes,
    Equipment,
    PsychicPower,
    Warband,
    WarbandSummary,
    Weapon,
    Weirdo,
)
from . import costs

logger = logging.getLogger(__name__)

LOADOUT_SECTIONS = (
    ("closeCombatWeapons", Weapon),
    ("rangedWeapons", Weapon),
    ("equipment", Equipment),
    ("psychicPowers", PsychicPower),
)


def _parse_loadout(text: str | None) -> dict[str, list]:
    loadout: dict[str, list] = {section: [] for section, _ in LOADOUT_SECTIONS}
    if not text:
        return loadout
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Ignoring malformed loadout payload")
        return loadout
    if not isinstance(data, dict):
        return loadout
    for section, record_type in LOADOUT_SECTIONS:
        entries = data.get(section)
        if not isinstance(entries, list):
            continue
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            try:
                loadout[section].append(record_type.model_validate(entry))
            except PydanticValidationError:
                logger.warning("Skipping invalid %s entry in stored loadout", section)
    return loadout


def _dump_loadout(weirdo: Weirdo) -> str:
    payload = {
        "closeCombatWeapons": [item.to_json() for item in weirdo.close_combat_weapons],
        "rangedWeapons": [item.to_json() for item in weirdo.ranged_weapons],
        "equipment": [item.to_json() for item in weirdo.equipment],
        "psychicPowers": [item.to_json() for item in weirdo.psychic_powers],
    }
    return json.dumps(payload, ensure_ascii=False)


def weirdo_record(model: models.Weirdo) -> Weirdo:
    loadout = _parse_loadout(model.loadout_json)
    return Weirdo(
        id=model.id,
        name=model.name or "",
        type=model.type or "trooper",
        attributes=Attributes(
            speed=model.speed,
            defense=model.defense,
            firepower=model.firepower,
            prowess=model.prowess,
            willpower=model.willpower,
        ),
        close_combat_weapons=loadout["closeCombatWeapons"],
        ranged_weapons=loadout["rangedWeapons"],
        equipment=loadout["equipment"],
        psychic_powers=loadout["psychicPowers"],
        leader_trait=model.leader_trait,
        notes=model.notes or "",
        total_cost=model.cached_cost or 0,
    )


def warband_record(model: models.Warband) -> Warband:
    return Warband(
        id=model.id,
        name=model.name,
        ability=model.ability,
        point_limit=model.point_limit,
        total_cost=model.cached_cost or 0,
        weirdos=[weirdo_record(weirdo) for weirdo in model.weirdos],
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def apply_weirdo(model: models.Weirdo, record: Weirdo) -> models.Weirdo:
    attributes = record.attributes or Attributes()
    model.name = record.name
    model.type = record.type
    model.speed = attributes.speed
    model.defense = attributes.defense
    model.firepower = attributes.firepower
    model.prowess = attributes.prowess
    model.willpower = attributes.willpower
    model.leader_trait = record.leader_trait
    model.notes = record.notes
    model.loadout_json = _dump_loadout(record)
    return model


def _new_weirdo(record: Weirdo, position: int) -> models.Weirdo:
    model = models.Weirdo(id=record.id or models.new_id(), position=position)
    return apply_weirdo(model, record)


def refresh_cached_costs(warband: models.Warband) -> int:
    """Recompute and store weirdo and warband costs; returns the warband total."""

    total = 0
    for weirdo in warband.weirdos:
        cost = costs.known_weirdo_cost(weirdo_record(weirdo), warband.ability)
        weirdo.cached_cost = cost
        total += cost or 0
    warband.cached_cost = total
    return total


def ensure_saveable(name: str | None, point_limit: Any) -> None:
    if not name or not name.strip():
        raise api_error(400, "Warband name is required", "MISSING_REQUIRED_FIELDS")
    if isinstance(point_limit, bool) or point_limit not in POINT_LIMITS:
        raise api_error(400, "Point limit must be 75 or 125", "INVALID_POINT_LIMIT")


def get_warband(db: Session, warband_id: str) -> models.Warband:
    warband = db.execute(
        select(models.Warband)
        .options(selectinload(models.Warband.weirdos))
        .where(models.Warband.id == warband_id)
    ).scalar_one_or_none()
    if warband is None:
        raise not_found()
    return warband


def _find_weirdo(warband: models.Warband, weirdo_id: str) -> models.Weirdo:
    for weirdo in warband.weirdos:
        if weirdo.id == weirdo_id:
            return weirdo
    raise not_found("Weirdo")


def _set_weirdos(db: Session, warband: models.Warband, records: Iterable[Weirdo]) -> None:
    existing = {weirdo.id: weirdo for weirdo in warband.weirdos}
    used: set[str] = set()
    ordered: list[models.Weirdo] = []
    for position, record in enumerate(records):
        model = existing.get(record.id) if record.id not in used else None
        if model is None:
            if record.id and (record.id in used or db.get(models.Weirdo, record.id) is not None):
                record = record.model_copy(update={"id": models.new_id()})
            model = _new_weirdo(record, position)
        else:
            apply_weirdo(model, record)
            model.position = position
        used.add(model.id)
        ordered.append(model)
    warband.weirdos = ordered


def create_warband(db: Session, record: Warband) -> models.Warband:
    ensure_saveable(record.name, record.point_limit)
    warband = models.Warband(
        name=record.name.strip(),
        ability=record.ability,
        point_limit=record.point_limit,
        id=record.id or models.new_id(),
    )
    db.add(warband)
    _set_weirdos(db, warband, record.weirdos)
    refresh_cached_costs(warband)
    db.commit()
    db.refresh(warband)
    logger.info("Created warband %s (%s)", warband.id, warband.name)
    return warband


def update_warband(
    db: Session,
    warband: models.Warband,
    *,
    name: str | None = None,
    point_limit: int | None = None,
    ability: str | None = None,
    weirdos: list[Weirdo] | None = None,
    clear_ability: bool = False,
) -> models.Warband:
    new_name = warband.name if name is None else name
    new_limit = warband.point_limit if point_limit is None else point_limit
    ensure_saveable(new_name, new_limit)
    warband.name = new_name.strip()
    warband.point_limit = new_limit
    if ability is not None or clear_ability:
        warband.ability = ability
    if weirdos is not None:
        _set_weirdos(db, warband, weirdos)
    refresh_cached_costs(warband)
    db.commit()
    db.refresh(warband)
    return warband


def delete_warband(db: Session, warband: models.Warband) -> None:
    logger.info("Deleting warband %s (%s)", warband.id, warband.name)
    db.delete(warband)
    db.commit()


def add_weirdo(db: Session, warband: models.Warband, record: Weirdo) -> models.Weirdo:
    if record.id and db.get(models.Weirdo, record.id) is not None:
        record = record.model_copy(update={"id": ""})
    model = _new_weirdo(record, len(warband.weirdos))
    warband.weirdos.append(model)
    refresh_cached_costs(warband)
    db.commit()
    db.refresh(warband)
    return model


def replace_weirdo(
    db: Session, warband: models.Warband, weirdo_id: str, record: Weirdo
) -> models.Weirdo:
    model = _find_weirdo(warband, weirdo_id)
    apply_weirdo(model, record)
    refresh_cached_costs(warband)
    db.commit()
    db.refresh(warband)
    return model


def remove_weirdo(db: Session, warband: models.Warband, weirdo_id: str) -> None:
    model = _find_weirdo(warband, weirdo_id)
    warband.weirdos.remove(model)
    for position, weirdo in enumerate(warband.weirdos):
        weirdo.position = position
    refresh_cached_costs(warband)
    db.commit()
    db.refresh(warband)


def warband_summaries(db: Session) -> list[WarbandSummary]:
    warbands = (
        db.execute(
            select(models.Warband)
            .options(selectinload(models.Warband.weirdos))
            .order_by(models.Warband.updated_at.desc(), models.Warband.name)
        )
        .scalars()
        .all()
    )
    return [
        WarbandSummary(
            id=warband.id,
            name=warband.name,
            ability=warband.ability,
            point_limit=warband.point_limit,
            total_cost=warband.cached_cost or 0,
            weirdo_count=len(warband.weirdos),
            updated_at=warband.updated_at,
        )
        for warband in warbands
    ]


def existing_names(db: Session) -> list[str]:
    return list(db.execute(select(models.Warband.name)).scalars().all())
