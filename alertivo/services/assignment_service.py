"""Nearest-match assignment of security reports to active responders."""

from __future__ import annotations

import logging

from sqlalchemy import update
from sqlalchemy.orm import Session

from alertivo.core.errors import ConflictError, NotFoundError
from alertivo.models.alert import Alert
from alertivo.models.responder import Responder
from alertivo.services.geo_service import RankedResponder, rank_by_distance
from alertivo.services.registry_service import list_active

logger = logging.getLogger(__name__)


def claim_responder(db: Session, responder_id: str, emergency_id: str) -> bool:
    """Mark an active responder busy. False if someone else changed its status first."""
    result = db.execute(
        update(Responder)
        .where(Responder.id == responder_id, Responder.status == "active")
        .values(status="busy", assigned_emergency=emergency_id)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def assign_nearest_responder(db: Session, emergency_id: str, lat: float, lng: float) -> RankedResponder | None:
    """
    Claim the active responder closest to (lat, lng) for an emergency.

    Candidates are tried nearest first; each claim is a conditional write on
    the responder's status, so two reports scanning at the same time can never
    both take the same responder. The loser moves on to its next candidate.
    The caller owns the transaction and commits the claim with the alert.
    """
    ranked = rank_by_distance(list_active(db), lat, lng)
    if not ranked:
        logger.info("No active responder with a known location for emergency %s", emergency_id)
        return None

    for candidate in ranked:
        if claim_responder(db, candidate.responder_id, emergency_id):
            logger.info(
                "Assigned responder %s to emergency %s (%.0f m away)",
                candidate.responder_id,
                emergency_id,
                candidate.distance_m,
            )
            return candidate
        logger.info("Responder %s was claimed concurrently, trying next candidate", candidate.responder_id)

    logger.info("Every candidate for emergency %s was claimed concurrently", emergency_id)
    return None


def retry_assignment(db: Session, alert_id: str) -> tuple[Alert, RankedResponder | None]:
    """Re-run matching for a pending alert that has nobody assigned."""
    alert = db.get(Alert, alert_id)
    if alert is None:
        raise NotFoundError(f"Alert {alert_id} not found")
    if alert.status != "pending" or alert.assigned_responder is not None:
        raise ConflictError(f"Alert {alert_id} is not awaiting assignment")

    chosen = assign_nearest_responder(db, alert.id, alert.latitude, alert.longitude)
    if chosen is None:
        db.rollback()
        return alert, None

    result = db.execute(
        update(Alert)
        .where(Alert.id == alert_id, Alert.status == "pending", Alert.assigned_responder.is_(None))
        .values(assigned_responder=chosen.responder_id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        # the alert moved on while we were matching; release the claim with it
        db.rollback()
        raise ConflictError(f"Alert {alert_id} changed during assignment")
    db.commit()
    db.refresh(alert)
    return alert, chosen
