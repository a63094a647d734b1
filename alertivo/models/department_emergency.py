"""Department emergency list entry (medical and fire reports)."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from alertivo.core.clock import utcnow
from alertivo.db.base import Base


class DepartmentEmergency(Base):
    """A report routed to a department's emergency list."""

    __tablename__ = "department_emergencies"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    report_id: Mapped[str] = mapped_column(
        ForeignKey("emergency_reports.id", ondelete="CASCADE"), unique=True, nullable=False
    )
    department: Mapped[str] = mapped_column(String(20), nullable=False, index=True)  # clinic | fire_dept
    routed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
