"""JSON export and import of warbands.

Imports are checked structurally first, then every string and number is
sanitized before the warband is stored under fresh ids.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Sequence

from sqlalchemy.orm import Session

from .. import models
from ..data.catalog import GameData
from ..errors import api_error
from ..schemas import (
    POINT_LIMITS,
    WEIRDO_TYPES,
    Attributes,
    Equipment,
    PsychicPower,
    Warband,
    Weapon,
    Weirdo,
)
from . import names, warbands
from .costs import ATTRIBUTE_NAMES
from .validation import ValidationError

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"
EXPORTED_BY = "Space Weirdos Warband Builder"

MAX_WEIRDOS = 20
MAX_WEAPONS = 10
MAX_EQUIPMENT = 10
MAX_PSYCHIC_POWERS = 5
MAX_ITEM_COST = max(POINT_LIMITS) * 2
NAME_LENGTH = 100
NOTES_LENGTH = 500
TEXT_LENGTH = 200

REQUIRED_FIELDS = ("name", "pointLimit", "weirdos")
REQUIRED_WEIRDO_FIELDS = ("name", "type", "attributes")
REQUIRED_FIELD_MESSAGES = {
    "name": 'Warband name is required. Make sure your file contains a "name" field with the warband name.',
    "pointLimit": 'Point limit is required. Make sure your file contains a "pointLimit" field (75 or 125).',
    "weirdos": 'Weirdos array is required. Make sure your file contains a "weirdos" field with an array of warband members.',
}

_TAG_RE = re.compile(r"<[^>]*>")
_ENTITY_RE = re.compile(r"&[#\w]+;")
_SCRIPT_SCHEME_RE = re.compile(r"javascript:|vbscript:|data:", re.IGNORECASE)
_EVENT_HANDLER_RE = re.compile(r"on\w+\s*=", re.IGNORECASE)
_QUOTES_RE = re.compile(r"['\";]")
_SQL_COMMENT_RE = re.compile(r"--|/\*|\*/")
_TRAVERSAL_RE = re.compile(r"\.\.")
_SEPARATOR_RE = re.compile(r"[\\/]")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass
class ImportValidation:
    errors: List[ValidationError] = field(default_factory=list)
    warnings: List[ValidationError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "errors": [error.to_dict() for error in self.errors],
            "warnings": [warning.to_dict() for warning in self.warnings],
        }


def export_payload(warband: Warband) -> dict[str, Any]:
    payload = warband.to_json()
    payload.update(
        {
            "exportVersion": EXPORT_VERSION,
            "exportedAt": datetime.now(timezone.utc).isoformat(),
            "exportedBy": EXPORTED_BY,
        }
    )
    return payload


def export_filename(warband: Warband) -> str:
    base = names.sanitize_name(warband.name).replace(" ", "_") or "warband"
    return f"{base}.json"


def _missing(data: dict, key: str) -> bool:
    return data.get(key) is None


def _check_required_fields(data: dict, result: ImportValidation) -> None:
    for key in REQUIRED_FIELDS:
        if _missing(data, key):
            result.errors.append(
                ValidationError(key, REQUIRED_FIELD_MESSAGES[key], "MISSING_REQUIRED_FIELD")
            )
    if all(_missing(data, key) for key in REQUIRED_FIELDS):
        result.errors.append(
            ValidationError(
                "file",
                "This file does not appear to be a valid warband export. Please make sure "
                "you are importing a file that was exported from the Space Weirdos Warband Builder.",
                "INVALID_WARBAND_FILE",
            )
        )


def _check_attributes(attributes: Any, index: int, result: ImportValidation) -> None:
    if not isinstance(attributes, dict):
        result.errors.append(
            ValidationError(
                f"weirdos[{index}].attributes",
                "Attributes must be an object",
                "INVALID_ATTRIBUTES_STRUCTURE",
            )
        )
        return
    for attribute in ATTRIBUTE_NAMES:
        if attributes.get(attribute) is None:
            result.errors.append(
                ValidationError(
                    f"weirdos[{index}].attributes.{attribute}",
                    f"Required attribute '{attribute}' is missing",
                    "MISSING_ATTRIBUTE",
                )
            )


def _check_weirdo(weirdo: Any, index: int, result: ImportValidation) -> None:
    if not isinstance(weirdo, dict):
        result.errors.append(
            ValidationError(
                f"weirdos[{index}]", "Weirdo must be an object", "INVALID_WEIRDO_STRUCTURE"
            )
        )
        return
    for key in REQUIRED_WEIRDO_FIELDS:
        if _missing(weirdo, key):
            result.errors.append(
                ValidationError(
                    f"weirdos[{index}].{key}",
                    f"Required weirdo field '{key}' is missing",
                    "MISSING_WEIRDO_FIELD",
                )
            )
    if "type" in weirdo and weirdo["type"] not in WEIRDO_TYPES:
        result.errors.append(
            ValidationError(
                f"weirdos[{index}].type",
                'Weirdo type must be "leader" or "trooper"',
                "INVALID_WEIRDO_TYPE",
            )
        )
    if "attributes" in weirdo:
        _check_attributes(weirdo["attributes"], index, result)


def _check_field_types(data: dict, result: ImportValidation) -> None:
    if "name" in data and not isinstance(data["name"], str):
        result.errors.append(ValidationError("name", "Name must be a string", "INVALID_FIELD_TYPE"))
    if "pointLimit" in data and (
        isinstance(data["pointLimit"], bool) or data["pointLimit"] not in POINT_LIMITS
    ):
        result.errors.append(
            ValidationError("pointLimit", "Point limit must be 75 or 125", "INVALID_POINT_LIMIT")
        )
    if data.get("ability") is not None and not isinstance(data["ability"], str):
        result.errors.append(
            ValidationError("ability", "Ability must be a string or null", "INVALID_FIELD_TYPE")
        )
    if "weirdos" in data:
        if not isinstance(data["weirdos"], list):
            result.errors.append(
                ValidationError("weirdos", "Weirdos must be an array", "INVALID_FIELD_TYPE")
            )
        else:
            for index, weirdo in enumerate(data["weirdos"]):
                _check_weirdo(weirdo, index, result)


def _named_entries(entries: Any):
    if not isinstance(entries, list):
        return
    for index, entry in enumerate(entries):
        if isinstance(entry, dict) and isinstance(entry.get("name"), str):
            yield index, entry["name"].strip()


def _check_references(data: dict, game_data: GameData, result: ImportValidation) -> None:
    weirdos = data.get("weirdos")
    if isinstance(weirdos, list):
        for index, weirdo in enumerate(weirdos):
            if not isinstance(weirdo, dict):
                continue
            for section, kind, label in (
                ("closeCombatWeapons", "close", "Close combat weapon"),
                ("rangedWeapons", "ranged", "Ranged weapon"),
            ):
                for item_index, name in _named_entries(weirdo.get(section)):
                    if game_data.find_weapon(kind, name) is None:
                        result.warnings.append(
                            ValidationError(
                                f"weirdos[{index}].{section}[{item_index}].name",
                                f"{label} '{name}' not found in current game data",
                                "MISSING_WEAPON_REFERENCE",
                            )
                        )
            for item_index, name in _named_entries(weirdo.get("equipment")):
                if game_data.find_equipment(name) is None:
                    result.warnings.append(
                        ValidationError(
                            f"weirdos[{index}].equipment[{item_index}].name",
                            f"Equipment '{name}' not found in current game data",
                            "MISSING_EQUIPMENT_REFERENCE",
                        )
                    )
            for item_index, name in _named_entries(weirdo.get("psychicPowers")):
                if game_data.find_psychic_power(name) is None:
                    result.warnings.append(
                        ValidationError(
                            f"weirdos[{index}].psychicPowers[{item_index}].name",
                            f"Psychic power '{name}' not found in current game data",
                            "MISSING_PSYCHIC_POWER_REFERENCE",
                        )
                    )
            trait = weirdo.get("leaderTrait")
            if isinstance(trait, str) and trait not in game_data.leader_trait_names:
                result.warnings.append(
                    ValidationError(
                        f"weirdos[{index}].leaderTrait",
                        f"Leader trait '{trait}' not found in current game data",
                        "MISSING_LEADER_TRAIT_REFERENCE",
                    )
                )
    ability = data.get("ability")
    if isinstance(ability, str) and ability not in game_data.warband_ability_names:
        result.warnings.append(
            ValidationError(
                "ability",
                f"Warband ability '{ability}' not found in current game data",
                "MISSING_WARBAND_ABILITY_REFERENCE",
            )
        )


def validate_import(data: Any, game_data: GameData) -> ImportValidation:
    result = ImportValidation()
    if not isinstance(data, dict) or not data:
        result.errors.append(
            ValidationError(
                "root", "Invalid JSON data: must be an object", "INVALID_JSON_STRUCTURE"
            )
        )
        return result
    _check_required_fields(data, result)
    _check_field_types(data, result)
    _check_references(data, game_data, result)
    return result


def sanitize_string(text: Any, max_length: int = TEXT_LENGTH) -> str:
    if not isinstance(text, str):
        return ""
    cleaned = _TAG_RE.sub("", text)
    cleaned = _ENTITY_RE.sub("", cleaned)
    cleaned = _SCRIPT_SCHEME_RE.sub("", cleaned)
    cleaned = _EVENT_HANDLER_RE.sub("", cleaned)
    cleaned = _QUOTES_RE.sub("", cleaned)
    cleaned = _SQL_COMMENT_RE.sub("", cleaned)
    cleaned = _TRAVERSAL_RE.sub("", cleaned)
    cleaned = _SEPARATOR_RE.sub("", cleaned)
    cleaned = _CONTROL_RE.sub("", cleaned)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip()
    return cleaned[:max_length]


def sanitize_number(value: Any, minimum: int = 0, maximum: int = MAX_ITEM_COST) -> int:
    if isinstance(value, bool):
        return minimum
    if isinstance(value, (int, float)) and math.isfinite(value):
        return max(minimum, min(maximum, math.floor(value)))
    if isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            return minimum
        return max(minimum, min(maximum, parsed))
    return minimum


def _sanitize_speed(value: Any, levels: Sequence[int]) -> int:
    if isinstance(value, bool):
        return levels[0]
    if isinstance(value, int) and value in levels:
        return value
    if isinstance(value, str):
        try:
            parsed = int(value.strip())
        except ValueError:
            return levels[0]
        if parsed in levels:
            return parsed
    return levels[0]


def _sanitize_level(value: Any, levels: Sequence[str]) -> str:
    if isinstance(value, str) and value in levels:
        return value
    return levels[0]


def _sanitize_attributes(raw: Any, game_data: GameData) -> Attributes:
    if not isinstance(raw, dict):
        raw = {}
    levels = game_data.attribute_levels
    return Attributes(
        speed=_sanitize_speed(raw.get("speed"), levels["speed"]),
        defense=_sanitize_level(raw.get("defense"), levels["defense"]),
        firepower=_sanitize_level(raw.get("firepower"), levels["firepower"]),
        prowess=_sanitize_level(raw.get("prowess"), levels["prowess"]),
        willpower=_sanitize_level(raw.get("willpower"), levels["willpower"]),
    )


def _raw_name(entry: dict) -> str:
    name = entry.get("name")
    return name.strip() if isinstance(name, str) else ""


def _entry_cost(entry: dict, *keys: str) -> int:
    for key in keys:
        if key in entry:
            return sanitize_number(entry[key])
    return 0


def _sanitize_weapons(entries: Any, kind: str, game_data: GameData) -> list[Weapon]:
    if not isinstance(entries, list):
        return []
    weapons: list[Weapon] = []
    for entry in entries[:MAX_WEAPONS]:
        if not isinstance(entry, dict):
            continue
        known = game_data.find_weapon(kind, _raw_name(entry))
        if known is not None:
            weapons.append(known)
            continue
        weapons.append(
            Weapon(
                id=sanitize_string(entry.get("id"), NAME_LENGTH),
                name=sanitize_string(entry.get("name"), NAME_LENGTH),
                kind=kind,
                base_cost=_entry_cost(entry, "baseCost", "cost"),
                max_actions=sanitize_number(entry.get("maxActions"), 0, 3),
                notes=sanitize_string(entry.get("notes")),
            )
        )
    return weapons


def _sanitize_equipment(entries: Any, game_data: GameData) -> list[Equipment]:
    if not isinstance(entries, list):
        return []
    items: list[Equipment] = []
    for entry in entries[:MAX_EQUIPMENT]:
        if not isinstance(entry, dict):
            continue
        known = game_data.find_equipment(_raw_name(entry))
        if known is not None:
            items.append(known)
            continue
        items.append(
            Equipment(
                id=sanitize_string(entry.get("id"), NAME_LENGTH),
                name=sanitize_string(entry.get("name"), NAME_LENGTH),
                kind=sanitize_string(entry.get("type"), NAME_LENGTH) or "Passive",
                base_cost=_entry_cost(entry, "baseCost", "cost"),
                effect=sanitize_string(entry.get("effect")),
            )
        )
    return items


def _sanitize_powers(entries: Any, game_data: GameData) -> list[PsychicPower]:
    if not isinstance(entries, list):
        return []
    powers: list[PsychicPower] = []
    for entry in entries[:MAX_PSYCHIC_POWERS]:
        if not isinstance(entry, dict):
            continue
        known = game_data.find_psychic_power(_raw_name(entry))
        if known is not None:
            powers.append(known)
            continue
        powers.append(
            PsychicPower(
                id=sanitize_string(entry.get("id"), NAME_LENGTH),
                name=sanitize_string(entry.get("name"), NAME_LENGTH),
                kind=sanitize_string(entry.get("type"), NAME_LENGTH) or "Effect",
                cost=_entry_cost(entry, "cost", "baseCost"),
                effect=sanitize_string(entry.get("effect")),
            )
        )
    return powers


def _sanitize_weirdo(raw: dict, game_data: GameData) -> Weirdo:
    weirdo_type = raw.get("type") if raw.get("type") in WEIRDO_TYPES else "trooper"
    trait = raw.get("leaderTrait")
    leader_trait = None
    if isinstance(trait, str):
        cleaned = sanitize_string(trait, NAME_LENGTH)
        if cleaned in game_data.leader_trait_names:
            leader_trait = cleaned
    return Weirdo(
        id=models.new_id(),
        name=sanitize_string(raw.get("name"), NAME_LENGTH),
        type=weirdo_type,
        attributes=_sanitize_attributes(raw.get("attributes"), game_data),
        close_combat_weapons=_sanitize_weapons(raw.get("closeCombatWeapons"), "close", game_data),
        ranged_weapons=_sanitize_weapons(raw.get("rangedWeapons"), "ranged", game_data),
        equipment=_sanitize_equipment(raw.get("equipment"), game_data),
        psychic_powers=_sanitize_powers(raw.get("psychicPowers"), game_data),
        leader_trait=leader_trait,
        notes=sanitize_string(raw.get("notes"), NOTES_LENGTH),
    )


def sanitize_warband(data: dict, game_data: GameData) -> Warband:
    ability = data.get("ability")
    if not isinstance(ability, str) or ability not in game_data.warband_ability_names:
        ability = None
    point_limit = data.get("pointLimit")
    if isinstance(point_limit, bool) or point_limit not in POINT_LIMITS:
        point_limit = POINT_LIMITS[0]
    raw_weirdos = data.get("weirdos")
    if not isinstance(raw_weirdos, list):
        raw_weirdos = []
    return Warband(
        id=models.new_id(),
        name=sanitize_string(data.get("name"), NAME_LENGTH),
        ability=ability,
        point_limit=point_limit,
        weirdos=[
            _sanitize_weirdo(raw, game_data)
            for raw in raw_weirdos[:MAX_WEIRDOS]
            if isinstance(raw, dict)
        ],
    )


def import_warband(
    db: Session, data: Any, game_data: GameData, resolve_conflicts: bool = True
) -> models.Warband:
    validation = validate_import(data, game_data)
    if not validation.valid:
        logger.warning(
            "Rejected warband import: %s",
            ", ".join(error.code for error in validation.errors),
        )
        raise api_error(
            400,
            "Imported warband failed validation",
            "VALIDATION_FAILED",
            context={
                "errors": [error.to_dict() for error in validation.errors],
                "warnings": [warning.to_dict() for warning in validation.warnings],
            },
        )

    record = sanitize_warband(data, game_data)
    existing = warbands.existing_names(db)
    if names.name_taken(record.name, existing):
        if not resolve_conflicts:
            logger.warning("Rejected warband import: name %r already exists", record.name)
            raise api_error(
                409,
                f'A warband named "{record.name}" already exists',
                "NAME_CONFLICT",
                context={
                    "conflictingName": record.name,
                    "suggestions": names.suggest_names(record.name, existing),
                },
            )
        record = record.model_copy(update={"name": names.unique_name(record.name, existing)})

    warband = warbands.create_warband(db, record)
    logger.info("Imported warband %s as %s", warband.name, warband.id)
    return warband
