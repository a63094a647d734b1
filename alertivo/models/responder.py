"""Responder registry model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Float, String
from sqlalchemy.orm import Mapped, mapped_column

from alertivo.core.clock import utcnow
from alertivo.db.base import Base


class Responder(Base):
    """Field responder tracked through heartbeats.

    ``assigned_emergency`` is set exactly when ``status`` is ``busy``.
    """

    __tablename__ = "responders"

    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    full_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="inactive", index=True)  # active | busy | inactive
    current_latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    current_longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    location_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_heartbeat: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_active_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_inactive_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    assigned_emergency: Mapped[str | None] = mapped_column(String(36), nullable=True)
    push_token: Mapped[str | None] = mapped_column(String(255), nullable=True)
    push_updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def has_location(self) -> bool:
        return self.current_latitude is not None and self.current_longitude is not None
