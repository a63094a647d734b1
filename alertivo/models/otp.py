"""OTP gate models: challenge, rate limit and lockout records keyed by email."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from alertivo.core.clock import utcnow
from alertivo.db.base import Base


class OTPChallenge(Base):
    """Outstanding one-time code for an email. Single use."""

    __tablename__ = "otp_challenges"

    email: Mapped[str] = mapped_column(String(255), primary_key=True)
    code_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    request_ip: Mapped[str | None] = mapped_column(String(64), nullable=True)


class RateLimitRecord(Base):
    """OTP requests counted inside the current window."""

    __tablename__ = "otp_rate_limits"

    email: Mapped[str] = mapped_column(String(255), primary_key=True)
    attempt_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    window_reset_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class LockoutRecord(Base):
    """Consecutive verification failures for an email."""

    __tablename__ = "otp_lockouts"

    email: Mapped[str] = mapped_column(String(255), primary_key=True)
    failure_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    locked_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
