"""SQLAlchemy models."""

from __future__ import annotations

from alertivo.models.account import Account, Profile
from alertivo.models.alert import Alert
from alertivo.models.audit_log import AuditLogEntry
from alertivo.models.department_emergency import DepartmentEmergency
from alertivo.models.emergency_report import EmergencyReport
from alertivo.models.otp import LockoutRecord, OTPChallenge, RateLimitRecord
from alertivo.models.responder import Responder

__all__ = [
    "Account",
    "Alert",
    "AuditLogEntry",
    "DepartmentEmergency",
    "EmergencyReport",
    "LockoutRecord",
    "OTPChallenge",
    "Profile",
    "RateLimitRecord",
    "Responder",
]
