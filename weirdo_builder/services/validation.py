"""Rule checks for weirdos and warbands.

Every check is independent and returns a finding or ``None``. Callers get
the full list of violations in a fixed order, never just the first one.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterable, List, Optional

from ..schemas import POINT_LIMITS, Warband, Weirdo
from . import costs
from .messages import validation_message

if TYPE_CHECKING:
    from ..data.catalog import GameData

logger = logging.getLogger(__name__)

TROOPER_STANDARD_LIMIT = 20
TROOPER_MAXIMUM_LIMIT = 25
SPECIAL_SLOT_MIN = 21
SPECIAL_SLOT_MAX = 25
COST_WARNING_THRESHOLD = 3
WARBAND_WARNING_RATIO = 0.9

EQUIPMENT_LIMITS = {
    ("leader", False): 2,
    ("leader", True): 3,
    ("trooper", False): 1,
    ("trooper", True): 2,
}

RANGED_FIREPOWER_LEVELS = ("2d8", "2d10")


@dataclass(frozen=True)
class ValidationError:
    field: str
    message: str
    code: str

    def to_dict(self) -> dict:
        return {"field": self.field, "message": self.message, "code": self.code}


ValidationWarning = ValidationError


@dataclass
class ValidationResult:
    errors: List[ValidationError] = field(default_factory=list)
    warnings: List[ValidationWarning] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "errors": [error.to_dict() for error in self.errors],
            "warnings": [warning.to_dict() for warning in self.warnings],
        }


Check = Callable[[], Optional[ValidationError]]


def _collect(checks: Iterable[Check]) -> list[ValidationError]:
    return [finding for finding in (check() for check in checks) if finding is not None]


def _error(field_name: str, code: str, **params) -> ValidationError:
    return ValidationError(
        field=field_name, message=validation_message(code, **params), code=code
    )


def _in_special_slot(cost: int | None) -> bool:
    return cost is not None and SPECIAL_SLOT_MIN <= cost <= SPECIAL_SLOT_MAX


def _prefix(weirdo: Weirdo) -> str:
    return f"weirdo.{weirdo.id}"


def validate_warband_name(name: str | None) -> ValidationError | None:
    if not name or not name.strip():
        return _error("name", "WARBAND_NAME_REQUIRED")
    return None


def validate_point_limit(point_limit) -> ValidationError | None:
    if isinstance(point_limit, bool) or point_limit not in POINT_LIMITS:
        return _error("pointLimit", "INVALID_POINT_LIMIT")
    return None


def validate_weirdo_name(weirdo: Weirdo) -> ValidationError | None:
    if not weirdo.name or not weirdo.name.strip():
        return _error(f"{_prefix(weirdo)}.name", "WEIRDO_NAME_REQUIRED")
    return None


def validate_attributes(weirdo: Weirdo) -> ValidationError | None:
    if weirdo.attributes is None:
        return _error(f"{_prefix(weirdo)}.attributes", "ATTRIBUTES_INCOMPLETE")
    missing = costs.first_missing_attribute(weirdo)
    if missing is not None:
        return _error(f"{_prefix(weirdo)}.attributes.{missing}", "ATTRIBUTES_INCOMPLETE")
    return None


def validate_close_combat_weapon(weirdo: Weirdo) -> ValidationError | None:
    if not weirdo.close_combat_weapons:
        return _error(f"{_prefix(weirdo)}.closeCombatWeapons", "CLOSE_COMBAT_WEAPON_REQUIRED")
    return None


def validate_ranged_weapon(weirdo: Weirdo) -> ValidationError | None:
    if weirdo.attributes is None:
        return None
    if weirdo.attributes.firepower in RANGED_FIREPOWER_LEVELS and not weirdo.ranged_weapons:
        return _error(f"{_prefix(weirdo)}.rangedWeapons", "RANGED_WEAPON_REQUIRED")
    return None


def validate_firepower_for_ranged(weirdo: Weirdo) -> ValidationError | None:
    if weirdo.attributes is None:
        return None
    if weirdo.ranged_weapons and weirdo.attributes.firepower == "None":
        return _error(
            f"{_prefix(weirdo)}.attributes.firepower",
            "FIREPOWER_REQUIRED_FOR_RANGED_WEAPON",
        )
    return None


def equipment_limit(weirdo_type: str, ability: str | None) -> int:
    kind = "leader" if weirdo_type == "leader" else "trooper"
    return EQUIPMENT_LIMITS[(kind, ability == "Cyborgs")]


def validate_equipment_limits(weirdo: Weirdo, ability: str | None) -> ValidationError | None:
    limit = equipment_limit(weirdo.type, ability)
    if len(weirdo.equipment) > limit:
        return _error(
            f"{_prefix(weirdo)}.equipment",
            "EQUIPMENT_LIMIT_EXCEEDED",
            type=weirdo.type,
            limit=limit,
        )
    return None


def _other_in_special_slot(weirdo: Weirdo, warband: Warband) -> bool:
    for other in warband.weirdos:
        if other is weirdo:
            continue
        if _in_special_slot(costs.known_weirdo_cost(other, warband.ability)):
            return True
    return False


def trooper_limit(weirdo: Weirdo, warband: Warband) -> int:
    if _other_in_special_slot(weirdo, warband):
        return TROOPER_STANDARD_LIMIT
    return TROOPER_MAXIMUM_LIMIT


def validate_weirdo_point_limit(weirdo: Weirdo, warband: Warband) -> ValidationError | None:
    """Check a trooper against the 20/25 point caps.

    A trooper whose own cost falls in the special slot range is left to the
    warband level ``MULTIPLE_25_POINT_WEIRDOS`` check when the slot is shared.
    """

    if weirdo.type != "trooper":
        return None
    cost = costs.known_weirdo_cost(weirdo, warband.ability)
    if cost is None:
        return None
    limit = trooper_limit(weirdo, warband)
    if cost <= limit:
        return None
    if _in_special_slot(cost):
        return None
    return _error(
        f"{_prefix(weirdo)}.totalCost",
        "TROOPER_POINT_LIMIT_EXCEEDED",
        cost=cost,
        limit=limit,
    )


def validate_leader_trait(weirdo: Weirdo) -> ValidationError | None:
    if weirdo.type != "leader" and weirdo.leader_trait is not None:
        return _error(f"{_prefix(weirdo)}.leaderTrait", "LEADER_TRAIT_INVALID")
    return None


def validate_weapon_requirements(weirdo: Weirdo) -> list[ValidationError]:
    return _collect(
        [
            lambda: validate_close_combat_weapon(weirdo),
            lambda: validate_ranged_weapon(weirdo),
            lambda: validate_firepower_for_ranged(weirdo),
        ]
    )


def validate_weirdo(weirdo: Weirdo, warband: Warband) -> list[ValidationError]:
    errors = _collect(
        [
            lambda: validate_weirdo_name(weirdo),
            lambda: validate_attributes(weirdo),
        ]
    )
    errors.extend(validate_weapon_requirements(weirdo))
    errors.extend(
        _collect(
            [
                lambda: validate_equipment_limits(weirdo, warband.ability),
                lambda: validate_weirdo_point_limit(weirdo, warband),
                lambda: validate_leader_trait(weirdo),
            ]
        )
    )
    return errors


def validate_special_slot(warband: Warband) -> ValidationError | None:
    occupants = [
        weirdo
        for weirdo in warband.weirdos
        if _in_special_slot(costs.known_weirdo_cost(weirdo, warband.ability))
    ]
    if len(occupants) > 1:
        return _error(
            "warband.weirdos",
            "MULTIPLE_25_POINT_WEIRDOS",
            min=SPECIAL_SLOT_MIN,
            max=SPECIAL_SLOT_MAX,
        )
    return None


def validate_warband_point_limit(warband: Warband) -> ValidationError | None:
    total_cost = costs.known_warband_cost(warband)
    if total_cost > warband.point_limit:
        return _error(
            "warband.totalCost",
            "WARBAND_POINT_LIMIT_EXCEEDED",
            totalCost=total_cost,
            pointLimit=warband.point_limit,
        )
    return None


def _points_phrase(points: int) -> str:
    return f"{points} point" if points == 1 else f"{points} points"


def _approaching(cost: int, limit: int) -> int | None:
    remaining = limit - cost
    if 0 <= remaining <= COST_WARNING_THRESHOLD:
        return remaining
    return None


def weirdo_cost_warnings(weirdo: Weirdo, warband: Warband) -> list[ValidationWarning]:
    cost = costs.known_weirdo_cost(weirdo, warband.ability)
    if cost is None:
        return []
    field_name = f"{_prefix(weirdo)}.totalCost"
    warnings: list[ValidationWarning] = []

    def warn(remaining: int, limit: int, suffix: str = "") -> None:
        warnings.append(
            ValidationWarning(
                field=field_name,
                message=(
                    f"Cost is within {_points_phrase(remaining)} of the "
                    f"{limit}-point limit{suffix}"
                ),
                code="COST_APPROACHING_LIMIT",
            )
        )

    if _other_in_special_slot(weirdo, warband):
        remaining = _approaching(cost, TROOPER_STANDARD_LIMIT)
        if remaining is not None:
            warn(remaining, TROOPER_STANDARD_LIMIT)
    elif _in_special_slot(cost):
        remaining = _approaching(cost, TROOPER_MAXIMUM_LIMIT)
        if remaining is not None:
            warn(remaining, TROOPER_MAXIMUM_LIMIT)
    else:
        remaining = _approaching(cost, TROOPER_STANDARD_LIMIT)
        if remaining is not None:
            warn(remaining, TROOPER_STANDARD_LIMIT)
        remaining = _approaching(cost, TROOPER_MAXIMUM_LIMIT)
        if remaining is not None:
            warn(remaining, TROOPER_MAXIMUM_LIMIT, " (premium weirdo slot)")
    return warnings


def warband_cost_warnings(warband: Warband) -> list[ValidationWarning]:
    if not warband.point_limit or validate_point_limit(warband.point_limit):
        return []
    total_cost = costs.known_warband_cost(warband)
    if WARBAND_WARNING_RATIO * warband.point_limit <= total_cost <= warband.point_limit:
        return [
            ValidationWarning(
                field="warband.totalCost",
                message=(
                    f"Warband cost ({total_cost}) is approaching the point limit "
                    f"({warband.point_limit})"
                ),
                code="WARBAND_APPROACHING_LIMIT",
            )
        ]
    return []


def reference_warnings(warband: Warband, game_data: "GameData") -> list[ValidationWarning]:
    """Report names that are missing from the supplied game data catalog."""

    warnings: list[ValidationWarning] = []
    if warband.ability and warband.ability not in game_data.warband_ability_names:
        warnings.append(
            ValidationWarning(
                field="ability",
                message=f'Warband ability "{warband.ability}" is not recognised',
                code="UNKNOWN_WARBAND_ABILITY_REFERENCE",
            )
        )
    for weirdo in warband.weirdos:
        prefix = _prefix(weirdo)
        for attr, weapons in (
            ("closeCombatWeapons", weirdo.close_combat_weapons),
            ("rangedWeapons", weirdo.ranged_weapons),
        ):
            kind = "ranged" if attr == "rangedWeapons" else "close"
            for weapon in weapons:
                if game_data.find_weapon(kind, weapon.name) is None:
                    warnings.append(
                        ValidationWarning(
                            field=f"{prefix}.{attr}",
                            message=f'Weapon "{weapon.name}" is not recognised',
                            code="UNKNOWN_WEAPON_REFERENCE",
                        )
                    )
        for item in weirdo.equipment:
            if game_data.find_equipment(item.name) is None:
                warnings.append(
                    ValidationWarning(
                        field=f"{prefix}.equipment",
                        message=f'Equipment "{item.name}" is not recognised',
                        code="UNKNOWN_EQUIPMENT_REFERENCE",
                    )
                )
        for power in weirdo.psychic_powers:
            if game_data.find_psychic_power(power.name) is None:
                warnings.append(
                    ValidationWarning(
                        field=f"{prefix}.psychicPowers",
                        message=f'Psychic power "{power.name}" is not recognised',
                        code="UNKNOWN_PSYCHIC_POWER_REFERENCE",
                    )
                )
        if weirdo.leader_trait and weirdo.leader_trait not in game_data.leader_trait_names:
            warnings.append(
                ValidationWarning(
                    field=f"{prefix}.leaderTrait",
                    message=f'Leader trait "{weirdo.leader_trait}" is not recognised',
                    code="UNKNOWN_LEADER_TRAIT_REFERENCE",
                )
            )
    return warnings


def validate_weirdo_result(weirdo: Weirdo, warband: Warband) -> ValidationResult:
    return ValidationResult(
        errors=validate_weirdo(weirdo, warband),
        warnings=weirdo_cost_warnings(weirdo, warband),
    )


def validate_warband(
    warband: Warband, game_data: "GameData | None" = None
) -> ValidationResult:
    result = ValidationResult()
    result.errors.extend(
        _collect(
            [
                lambda: validate_warband_name(warband.name),
                lambda: validate_point_limit(warband.point_limit),
            ]
        )
    )
    for weirdo in warband.weirdos:
        result.errors.extend(validate_weirdo(weirdo, warband))
        result.warnings.extend(weirdo_cost_warnings(weirdo, warband))
    result.errors.extend(
        _collect(
            [
                lambda: validate_special_slot(warband),
                lambda: validate_warband_point_limit(warband),
            ]
        )
    )
    result.warnings.extend(warband_cost_warnings(warband))
    if game_data is not None:
        result.warnings.extend(reference_warnings(warband, game_data))
    logger.debug(
        "Validated warband %s: %d errors, %d warnings",
        warband.id or "<new>",
        len(result.errors),
        len(result.warnings),
    )
    return result
