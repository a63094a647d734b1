"""Responder registry: registration, heartbeats and availability."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from sqlalchemy import case, or_, select, update
from sqlalchemy.orm import Session

from alertivo.core.clock import utcnow
from alertivo.core.dispatch_policies import RESPONDER_STATUSES
from alertivo.core.errors import ConflictError, NotFoundError, ValidationError
from alertivo.models.responder import Responder
from alertivo.schemas.responder import HeartbeatLocation, ResponderCreate

logger = logging.getLogger(__name__)


def get_responder(db: Session, responder_id: str) -> Responder:
    """Get responder by id. Raises NotFoundError if absent."""
    responder = db.get(Responder, responder_id)
    if responder is None:
        raise NotFoundError(f"Responder {responder_id} not found")
    return responder


def register_responder(db: Session, data: ResponderCreate) -> Responder:
    """Create a responder. New responders start inactive until they go on duty."""
    if db.get(Responder, data.id) is not None:
        raise ConflictError(f"Responder {data.id} is already registered")
    responder = Responder(
        id=data.id,
        full_name=data.full_name,
        status="inactive",
        push_token=data.push_token,
        push_updated_at=utcnow() if data.push_token else None,
    )
    db.add(responder)
    db.commit()
    db.refresh(responder)
    logger.info("Registered responder %s", responder.id)
    return responder


def list_active(db: Session) -> Iterator[Responder]:
    """Stream responders currently marked active. No ordering is implied."""
    stmt = select(Responder).where(Responder.status == "active").execution_options(yield_per=100)
    yield from db.scalars(stmt)


def list_responders(db: Session, status: str | None = None, limit: int = 100) -> list[Responder]:
    stmt = select(Responder).order_by(Responder.id).limit(limit)
    if status is not None:
        stmt = stmt.where(Responder.status == status)
    return list(db.scalars(stmt).all())


def record_heartbeat(db: Session, responder_id: str, location: HeartbeatLocation | None = None) -> Responder:
    """
    Refresh a responder's liveness.

    Busy responders stay busy; anyone else becomes active. The status is
    decided inside the UPDATE so an assignment committed after our read is
    never overwritten. Older heartbeats never replace newer ones.
    """
    get_responder(db, responder_id)
    now = utcnow()
    values: dict[str, Any] = {
        "last_heartbeat": now,
        "last_active_at": now,
        "status": case((Responder.status == "busy", "busy"), else_="active"),
    }
    if location is not None and location.lat is not None and location.lng is not None:
        values["current_latitude"] = location.lat
        values["current_longitude"] = location.lng
        values["location_updated_at"] = now

    result = db.execute(
        update(Responder)
        .where(
            Responder.id == responder_id,
            or_(Responder.last_heartbeat.is_(None), Responder.last_heartbeat <= now),
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    if result.rowcount == 0:
        logger.debug("Heartbeat for %s superseded by a newer one", responder_id)
    else:
        logger.info("Heartbeat updated for responder %s%s", responder_id, " (with location)" if "current_latitude" in values else "")
    responder = get_responder(db, responder_id)
    db.refresh(responder)
    return responder


def set_status(
    db: Session,
    responder_id: str,
    status: str,
    extra: dict[str, Any] | None = None,
) -> Responder:
    """Set availability manually. busy requires ``extra["assigned_emergency"]``."""
    if status not in RESPONDER_STATUSES:
        raise ValidationError(f"Unknown responder status '{status}'")
    get_responder(db, responder_id)

    extra = extra or {}
    now = utcnow()
    values: dict[str, Any] = {"status": status}
    if status == "busy":
        assigned = extra.get("assigned_emergency")
        if not assigned:
            raise ValidationError("A busy responder must have an assigned emergency")
        values["assigned_emergency"] = assigned
    else:
        values["assigned_emergency"] = None
        if status == "active":
            values["last_active_at"] = now
        else:
            values["last_inactive_at"] = now

    db.execute(
        update(Responder)
        .where(Responder.id == responder_id)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    responder = get_responder(db, responder_id)
    db.refresh(responder)
    logger.info("Responder %s set to %s", responder_id, status)
    return responder


def update_push_token(db: Session, responder_id: str, push_token: str) -> Responder:
    responder = get_responder(db, responder_id)
    responder.push_token = push_token
    responder.push_updated_at = utcnow()
    db.commit()
    db.refresh(responder)
    return responder
