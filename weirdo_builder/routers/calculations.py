from __future__ import annotations

import logging
import time

from fastapi import APIRouter

from ..data.catalog import game_data
from ..errors import api_error
from ..schemas import CostRequest, RealTimeCostRequest, ValidateRequest, Warband
from ..services import costs, validation

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["calculations"])


def _invalid_request(details: str) -> Exception:
    return api_error(400, "Invalid request", "INVALID_REQUEST", context={"details": details})


def _weirdo_context(weirdo, warband: Warband | None, ability: str | None = None) -> Warband:
    if warband is not None:
        if weirdo.id and any(member.id == weirdo.id for member in warband.weirdos):
            members = [weirdo if member.id == weirdo.id else member for member in warband.weirdos]
            return warband.model_copy(update={"weirdos": members})
        return warband.model_copy(update={"weirdos": [*warband.weirdos, weirdo]})
    return Warband(id="temp", name="temp", point_limit=75, ability=ability, weirdos=[weirdo])


@router.post("/calculate-cost")
def calculate_cost(payload: CostRequest):
    logger.debug(
        "Calculate cost request: weirdo=%s warband=%s ability=%s",
        payload.weirdo is not None,
        payload.warband is not None,
        payload.warband_ability,
    )
    try:
        if payload.weirdo is not None:
            return {"cost": costs.weirdo_cost(payload.weirdo, payload.warband_ability)}
        if payload.warband is not None:
            return {"cost": costs.warband_cost(payload.warband)}
    except costs.UnknownAttributeLevel as exc:
        raise _invalid_request(str(exc)) from exc
    raise _invalid_request("Must provide either weirdo or warband")


@router.post("/cost/calculate")
def calculate_cost_realtime(payload: RealTimeCostRequest):
    started = time.perf_counter()
    weirdo = payload.weirdo
    ability = payload.warband_ability
    if ability is None and payload.warband is not None:
        ability = payload.warband.ability
    try:
        breakdown = costs.weirdo_cost_breakdown(weirdo, ability)
    except costs.UnknownAttributeLevel as exc:
        raise _invalid_request(str(exc)) from exc

    context = _weirdo_context(weirdo, payload.warband, ability)
    if context.ability != ability:
        context = context.model_copy(update={"ability": ability})
    warnings = validation.weirdo_cost_warnings(weirdo, context)
    is_over_limit = (
        breakdown.total > validation.TROOPER_MAXIMUM_LIMIT
        or validation.validate_weirdo_point_limit(weirdo, context) is not None
    )
    elapsed = (time.perf_counter() - started) * 1000
    logger.debug("Real-time cost for weirdo %s: %s", weirdo.id or "<new>", breakdown.total)
    return {
        "success": True,
        "data": {
            "totalCost": breakdown.total,
            "breakdown": breakdown.to_dict(),
            "warnings": [warning.message for warning in warnings],
            "isApproachingLimit": bool(warnings),
            "isOverLimit": is_over_limit,
            "calculationTime": round(elapsed, 3),
        },
    }


@router.post("/validate")
def validate(payload: ValidateRequest):
    if payload.weirdo is not None:
        context = _weirdo_context(payload.weirdo, payload.warband)
        errors = validation.validate_weirdo(payload.weirdo, context)
        return {"valid": not errors, "errors": [error.to_dict() for error in errors]}
    if payload.warband is not None:
        return validation.validate_warband(payload.warband).to_dict()
    raise _invalid_request("Must provide either weirdo or warband")


@router.post("/validation/warband")
def validate_warband(warband: Warband):
    return validation.validate_warband(warband, game_data()).to_dict()


@router.post("/validation/weirdo")
def validate_weirdo(payload: ValidateRequest):
    if payload.weirdo is None:
        raise _invalid_request("Must provide a weirdo")
    context = _weirdo_context(payload.weirdo, payload.warband)
    return validation.validate_weirdo_result(payload.weirdo, context).to_dict()

