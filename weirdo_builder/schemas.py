from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

SPEED_LEVELS = (1, 2, 3)
DICE_LEVELS = ("2d6", "2d8", "2d10")
FIREPOWER_LEVELS = ("None", "2d8", "2d10")
POINT_LIMITS = (75, 125)
WEIRDO_TYPES = ("leader", "trooper")


class Record(BaseModel):
    """Immutable value record serialized with camelCase keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Attributes(Record):
    speed: int | None = None
    defense: str | None = None
    firepower: str | None = None
    prowess: str | None = None
    willpower: str | None = None


class Weapon(Record):
    id: str = ""
    name: str
    kind: str = Field("close", alias="type")
    base_cost: int = Field(0, ge=0)
    max_actions: int = 1
    notes: str = ""


class Equipment(Record):
    id: str = ""
    name: str
    kind: str = Field("Passive", alias="type")
    base_cost: int = Field(0, ge=0)
    effect: str = ""


class PsychicPower(Record):
    id: str = ""
    name: str
    kind: str = Field("Effect", alias="type")
    cost: int = Field(0, ge=0)
    effect: str = ""


class Weirdo(Record):
    id: str = ""
    name: str = ""
    type: str = "trooper"
    attributes: Attributes | None = None
    close_combat_weapons: list[Weapon] = Field(default_factory=list)
    ranged_weapons: list[Weapon] = Field(default_factory=list)
    equipment: list[Equipment] = Field(default_factory=list)
    psychic_powers: list[PsychicPower] = Field(default_factory=list)
    leader_trait: str | None = None
    notes: str = ""
    total_cost: int = 0


class Warband(Record):
    id: str = ""
    name: str = ""
    ability: str | None = None
    point_limit: int = 75
    total_cost: int = 0
    weirdos: list[Weirdo] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None


class WarbandSummary(Record):
    id: str
    name: str
    ability: str | None = None
    point_limit: int
    total_cost: int
    weirdo_count: int
    updated_at: datetime | None = None


class WarbandForm(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    name: str | None = Field(None, max_length=120)
    point_limit: int | None = None
    ability: str | None = None


class CostRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    weirdo: Weirdo | None = None
    warband: Warband | None = None
    warband_ability: str | None = None


class RealTimeCostRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    weirdo: Weirdo
    warband_ability: str | None = None
    warband: Warband | None = None


class ValidateRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    weirdo: Weirdo | None = None
    warband: Warband | None = None
