"""Emergency report model."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from alertivo.core.clock import utcnow
from alertivo.db.base import Base


def _new_id() -> str:
    return uuid.uuid4().hex


class EmergencyReport(Base):
    """A report filed by a student. Immutable apart from its status."""

    __tablename__ = "emergency_reports"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    type: Mapped[str] = mapped_column(String(20), nullable=False)  # security | medical | fire
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    details: Mapped[Any] = mapped_column(JSON, nullable=False, default="")  # free text or a structured form
    notes: Mapped[str] = mapped_column(Text, nullable=False, default="")
    urgency: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    contact_method: Mapped[str] = mapped_column(String(20), nullable=False, default="chat")
    additional_info: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    creator_id: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    display_code: Mapped[str] = mapped_column(String(32), nullable=False, default="ANON")
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")  # pending | completed
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
