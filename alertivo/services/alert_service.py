"""Alert lifecycle: accept, decline, complete."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from alertivo.core.clock import utcnow
from alertivo.core.errors import ConflictError, NotFoundError
from alertivo.models.alert import Alert
from alertivo.models.emergency_report import EmergencyReport
from alertivo.models.responder import Responder
from alertivo.schemas.alert import AlertResponse

logger = logging.getLogger(__name__)


def get_alert(db: Session, alert_id: str) -> Alert:
    alert = db.get(Alert, alert_id)
    if alert is None:
        raise NotFoundError(f"Alert {alert_id} not found")
    return alert


def list_alerts(
    db: Session,
    responder_id: str | None = None,
    status: str | None = None,
    limit: int = 50,
) -> list[Alert]:
    """List alerts, newest first. Filter by assigned responder and/or status."""
    stmt = select(Alert).order_by(Alert.routed_at.desc(), Alert.id.desc()).limit(limit)
    if responder_id is not None:
        stmt = stmt.where(Alert.assigned_responder == responder_id)
    if status is not None:
        stmt = stmt.where(Alert.status == status)
    return list(db.scalars(stmt).all())


def serialize_alert(alert: Alert) -> dict[str, Any]:
    """JSON-ready alert, as pushed to subscribers."""
    return AlertResponse.model_validate(alert).model_dump(mode="json")


def _transition(db: Session, alert: Alert, source: str, values: dict[str, Any]) -> None:
    """Apply a precondition-checked status change; ConflictError if the alert left ``source``."""
    result = db.execute(
        update(Alert)
        .where(Alert.id == alert.id, Alert.status == source)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise ConflictError(f"Alert {alert.id} is {alert.status}, expected {source}")


def _release_holders(db: Session, alert_id: str, now: datetime, keep: str | None = None) -> int:
    """Return responders holding ``alert_id`` to the available pool, except ``keep``."""
    stmt = update(Responder).where(Responder.status == "busy", Responder.assigned_emergency == alert_id)
    if keep is not None:
        stmt = stmt.where(Responder.id != keep)
    result = db.execute(
        stmt.values(status="active", assigned_emergency=None, last_active_at=now).execution_options(
            synchronize_session=False
        )
    )
    return result.rowcount


def _free_or_holding(emergency_id: str):
    """Responder is not busy, or is busy on ``emergency_id`` itself."""
    return or_(Responder.status != "busy", Responder.assigned_emergency == emergency_id)


def accept(db: Session, alert_id: str, responder_id: str) -> Alert:
    """
    Responder accepts a pending alert.

    The accepting responder becomes the alert's responder and is marked busy
    on it (a no-op when the assigner already did so). If someone else had been
    assigned, they are released. A responder already busy on a different
    emergency cannot accept it (ConflictError).
    """
    alert = get_alert(db, alert_id)
    if db.get(Responder, responder_id) is None:
        raise NotFoundError(f"Responder {responder_id} not found")

    now = utcnow()
    _transition(
        db,
        alert,
        "pending",
        {
            "status": "accepted",
            "accepted_at": now,
            "responder_uid": responder_id,
            "assigned_responder": responder_id,
        },
    )
    claimed = db.execute(
        update(Responder)
        .where(Responder.id == responder_id, _free_or_holding(alert_id))
        .values(status="busy", assigned_emergency=alert_id)
        .execution_options(synchronize_session=False)
    )
    if claimed.rowcount != 1:
        db.rollback()
        raise ConflictError(f"Responder {responder_id} is busy on another emergency")
    released = _release_holders(db, alert_id, now, keep=responder_id)
    db.commit()
    db.refresh(alert)
    if released:
        logger.info("Alert %s taken over by %s; released %s previous holder(s)", alert_id, responder_id, released)
    logger.info("Responder %s accepted alert %s", responder_id, alert_id)
    return alert


def decline(db: Session, alert_id: str) -> Alert:
    """
    Decline a pending alert.

    The responder holding it goes back to active. Nobody is re-matched
    automatically; see ``assignment_service.retry_assignment``.
    """
    alert = get_alert(db, alert_id)
    now = utcnow()
    _transition(db, alert, "pending", {"status": "declined", "declined_at": now})
    released = _release_holders(db, alert_id, now)
    db.commit()
    db.refresh(alert)
    logger.info("Alert %s declined (%s responder(s) released)", alert_id, released)
    return alert


def complete(db: Session, responder_id: str, emergency_id: str) -> Alert | None:
    """
    Close out an emergency.

    Whoever holds the emergency is released, and the completing responder
    returns to active unless it is busy on a different emergency. The report
    keeps its first completion time; the alert moves accepted → completed.
    Returns the alert, if the emergency has one.
    """
    if db.get(Responder, responder_id) is None:
        raise NotFoundError(f"Responder {responder_id} not found")
    if db.get(EmergencyReport, emergency_id) is None:
        raise NotFoundError(f"Emergency {emergency_id} not found")

    now = utcnow()
    freed = db.execute(
        update(Responder)
        .where(Responder.id == responder_id, _free_or_holding(emergency_id))
        .values(status="active", assigned_emergency=None, last_active_at=now)
        .execution_options(synchronize_session=False)
    )
    released = _release_holders(db, emergency_id, now)
    db.execute(
        update(EmergencyReport)
        .where(EmergencyReport.id == emergency_id, EmergencyReport.status != "completed")
        .values(status="completed", completed_at=now)
        .execution_options(synchronize_session=False)
    )
    alert_result = db.execute(
        update(Alert)
        .where(Alert.id == emergency_id, Alert.status == "accepted")
        .values(status="completed", completed_at=now)
        .execution_options(synchronize_session=False)
    )
    db.commit()

    alert = db.get(Alert, emergency_id)
    if alert is not None:
        db.refresh(alert)
        if alert_result.rowcount == 0 and alert.status != "completed":
            logger.warning("Emergency %s completed while its alert was %s", emergency_id, alert.status)
    if released:
        logger.info("Released %s responder(s) still holding emergency %s", released, emergency_id)
    if freed.rowcount:
        logger.info("Responder %s returned to active after completing emergency %s", responder_id, emergency_id)
    else:
        logger.info("Responder %s completed emergency %s but stays busy on another", responder_id, emergency_id)
    return alert
