from __future__ import annotations

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


def new_id() -> str:
    return str(uuid.uuid4())


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


def touch_timestamps(mapper, connection, target) -> None:  # pragma: no cover - SQLAlchemy hook
    now = datetime.utcnow()
    if getattr(target, "created_at", None) is None:
        target.created_at = now
    target.updated_at = now


class Warband(TimestampMixin, Base):
    __tablename__ = "warbands"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    ability: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    point_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=75)
    cached_cost: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    weirdos: Mapped[List["Weirdo"]] = relationship(
        back_populates="warband",
        cascade="all, delete-orphan",
        order_by="Weirdo.position",
    )


class Weirdo(TimestampMixin, Base):
    __tablename__ = "weirdos"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    warband_id: Mapped[str] = mapped_column(ForeignKey("warbands.id"), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    type: Mapped[str] = mapped_column(String(20), nullable=False, default="trooper")
    speed: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    defense: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    firepower: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    prowess: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    willpower: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    leader_trait: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    loadout_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    cached_cost: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    warband: Mapped[Warband] = relationship(back_populates="weirdos")


for cls in [Warband, Weirdo]:
    event.listen(cls, "before_insert", touch_timestamps)
    event.listen(cls, "before_update", touch_timestamps)
