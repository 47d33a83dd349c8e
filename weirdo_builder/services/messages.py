from __future__ import annotations

from typing import Any

VALIDATION_MESSAGES: dict[str, str] = {
    "WARBAND_NAME_REQUIRED": "Warband name is required",
    "WEIRDO_NAME_REQUIRED": "Weirdo name is required",
    "INVALID_POINT_LIMIT": "Point limit must be 75 or 125",
    "ATTRIBUTES_INCOMPLETE": "All five attributes must be selected",
    "CLOSE_COMBAT_WEAPON_REQUIRED": "At least one close combat weapon is required",
    "RANGED_WEAPON_REQUIRED": "Ranged weapon required when Firepower is 2d8 or 2d10",
    "FIREPOWER_REQUIRED_FOR_RANGED_WEAPON": (
        "Firepower level 2d8 or 2d10 required to use ranged weapons"
    ),
    "EQUIPMENT_LIMIT_EXCEEDED": "Equipment limit exceeded: {type} can have {limit} items",
    "TROOPER_POINT_LIMIT_EXCEEDED": "Trooper cost ({cost}) exceeds {limit}-point limit",
    "MULTIPLE_25_POINT_WEIRDOS": "Only one weirdo may cost {min}-{max} points",
    "WARBAND_POINT_LIMIT_EXCEEDED": (
        "Warband total cost ({totalCost}) exceeds point limit ({pointLimit})"
    ),
    "LEADER_TRAIT_INVALID": "Leader trait can only be assigned to leaders",
}


def validation_message(code: str, **params: Any) -> str:
    """Render the message for ``code``, substituting ``{name}`` placeholders.

    Placeholders without a matching parameter are left untouched.
    """

    message = VALIDATION_MESSAGES.get(code, code)
    for key, value in params.items():
        message = message.replace("{" + key + "}", str(value))
    return message
