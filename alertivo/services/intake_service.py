"""Report intake and department routing."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from alertivo.core.dispatch_policies import DEPARTMENT_BY_TYPE, REPORT_TYPES
from alertivo.core.errors import NotFoundError, ValidationError
from alertivo.models.alert import Alert
from alertivo.models.department_emergency import DepartmentEmergency
from alertivo.models.emergency_report import EmergencyReport
from alertivo.schemas.report import ReportCreate
from alertivo.services.assignment_service import assign_nearest_responder

logger = logging.getLogger(__name__)


@dataclass
class IntakeResult:
    """What happened to a submitted report."""

    report: EmergencyReport
    alert: Alert | None = None
    push_token: str | None = None
    department: str | None = None


def _validate(data: ReportCreate) -> None:
    missing = [
        name
        for name, value in (("type", data.type), ("location", data.location), ("creator_id", data.creator_id))
        if value is None or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        raise ValidationError(f"Missing required emergency fields: {', '.join(missing)}")
    if data.type not in REPORT_TYPES:
        raise ValidationError(f"Unknown emergency type '{data.type}'. Use one of: {', '.join(REPORT_TYPES)}")


def get_report(db: Session, report_id: str) -> EmergencyReport:
    report = db.get(EmergencyReport, report_id)
    if report is None:
        raise NotFoundError(f"Emergency {report_id} not found")
    return report


def submit_report(db: Session, data: ReportCreate) -> IntakeResult:
    """
    Persist a report, then route it by type.

    The report is committed before routing starts, so the caller always gets
    its id back. A routing failure is logged and leaves the report in place.
    """
    _validate(data)
    report = EmergencyReport(
        type=data.type,
        latitude=data.location.lat,
        longitude=data.location.lng,
        address=data.location.address,
        details=data.details,
        notes=data.notes,
        urgency=data.urgency or "medium",
        contact_method=data.contact_method or "chat",
        additional_info=data.additional_info,
        creator_id=data.creator_id,
        display_code=data.display_code or "ANON",
        status="pending",
    )
    db.add(report)
    db.commit()
    db.refresh(report)
    logger.info("Emergency %s (%s) created by %s", report.id, report.type, report.creator_id)

    try:
        if report.type == "security":
            return _route_security(db, report)
        return _route_department(db, report)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Routing failed for emergency %s", report.id)
        return IntakeResult(report=report)


def _route_security(db: Session, report: EmergencyReport) -> IntakeResult:
    chosen = assign_nearest_responder(db, report.id, report.latitude, report.longitude)
    alert = Alert(
        id=report.id,
        type=report.type,
        latitude=report.latitude,
        longitude=report.longitude,
        address=report.address,
        details=report.details,
        urgency=report.urgency,
        display_code=report.display_code,
        assigned_responder=chosen.responder_id if chosen else None,
        status="pending",
    )
    db.add(alert)
    db.commit()
    db.refresh(alert)
    logger.info("Nearest responder assigned to %s: %s", report.id, alert.assigned_responder or "None available")
    return IntakeResult(report=report, alert=alert, push_token=chosen.push_token if chosen else None)


def _route_department(db: Session, report: EmergencyReport) -> IntakeResult:
    department = DEPARTMENT_BY_TYPE[report.type]
    db.add(DepartmentEmergency(report_id=report.id, department=department))
    db.commit()
    logger.info("Emergency %s routed to %s", report.id, department)
    return IntakeResult(report=report, department=department)


def medical_sync_payload(report: EmergencyReport) -> dict[str, Any]:
    """Body posted to the admin panel for medical emergencies."""
    return {
        "reportId": report.id,
        "type": "medical",
        "location": {"lat": report.latitude, "lng": report.longitude, "address": report.address},
        "details": report.details or {},
        "notes": report.notes,
        "urgency": report.urgency,
        "contact_method": report.contact_method,
        "created_by_uid": report.creator_id,
        "display_code": report.display_code,
    }
