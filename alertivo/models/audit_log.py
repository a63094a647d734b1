"""Append-only audit log."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from alertivo.core.clock import utcnow
from alertivo.db.base import Base


class AuditLogEntry(Base):
    __tablename__ = "audit_log"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    action: Mapped[str] = mapped_column(String(40), nullable=False)  # OTP_SENT | OTP_FAILED | USER_VERIFIED
    email: Mapped[str | None] = mapped_column(String(255), nullable=True, index=True)
    uid: Mapped[str | None] = mapped_column(String(36), nullable=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    details: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
