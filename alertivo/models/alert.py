"""Responder alert model."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from alertivo.core.clock import utcnow
from alertivo.db.base import Base


class Alert(Base):
    """Dispatch record for a security report.

    The primary key is the report id, so a report can own at most one alert.
    """

    __tablename__ = "alerts"

    id: Mapped[str] = mapped_column(
        ForeignKey("emergency_reports.id", ondelete="CASCADE"), primary_key=True
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    details: Mapped[Any] = mapped_column(JSON, nullable=False, default="")
    urgency: Mapped[str] = mapped_column(String(20), nullable=False, default="medium")
    display_code: Mapped[str] = mapped_column(String(32), nullable=False, default="ANON")
    assigned_responder: Mapped[str | None] = mapped_column(
        ForeignKey("responders.id"), nullable=True, index=True
    )
    responder_uid: Mapped[str | None] = mapped_column(String(128), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")  # pending | accepted | declined | completed
    routed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    declined_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    @property
    def emergency_id(self) -> str:
        return self.id
