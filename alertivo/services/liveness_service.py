"""Liveness monitor: demote active responders whose heartbeat has expired."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta

from sqlalchemy import and_, or_, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from alertivo.core.clock import as_utc, utcnow
from alertivo.core.dispatch_policies import HEARTBEAT_TIMEOUT_SECONDS
from alertivo.models.responder import Responder

logger = logging.getLogger(__name__)


def _stale_since(cutoff: datetime):
    """Row-level staleness test, re-evaluated at write time so a fresh heartbeat wins."""
    return or_(
        Responder.last_heartbeat < cutoff,
        and_(
            Responder.last_heartbeat.is_(None),
            or_(Responder.last_active_at.is_(None), Responder.last_active_at < cutoff),
        ),
    )


def sweep_inactive_responders(
    db: Session,
    now: datetime | None = None,
    timeout_seconds: int = HEARTBEAT_TIMEOUT_SECONDS,
) -> int:
    """
    Mark active responders inactive when their last heartbeat (or, if they
    never sent one, their last activity) is older than the timeout.

    Only active responders are scanned, so re-running the sweep is a no-op for
    anyone already demoted. Each demotion commits on its own; a failing row is
    logged and skipped. Returns the number of responders demoted.
    """
    now = now or utcnow()
    cutoff = now - timedelta(seconds=timeout_seconds)

    rows = db.execute(
        select(Responder.id, Responder.last_heartbeat, Responder.last_active_at).where(
            Responder.status == "active"
        )
    ).all()

    demoted = 0
    for responder_id, last_heartbeat, last_active_at in rows:
        last_seen = as_utc(last_heartbeat or last_active_at)
        if last_seen is not None and last_seen >= cutoff:
            continue
        try:
            result = db.execute(
                update(Responder)
                .where(Responder.id == responder_id, Responder.status == "active", _stale_since(cutoff))
                .values(status="inactive", last_inactive_at=now)
                .execution_options(synchronize_session=False)
            )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception("Failed to mark responder %s inactive", responder_id)
            continue
        if result.rowcount == 1:
            demoted += 1
            logger.info("Responder %s marked inactive due to heartbeat timeout", responder_id)
        else:
            logger.debug("Responder %s changed during the sweep, left as is", responder_id)

    logger.info("Liveness sweep complete. %s responders updated.", demoted)
    return demoted


def _sweep_once(session_factory: sessionmaker) -> int:
    db = session_factory()
    try:
        return sweep_inactive_responders(db)
    finally:
        db.close()


async def run_liveness_loop(session_factory: sessionmaker, interval_seconds: int) -> None:
    """
    Sweep on a fixed cadence until cancelled.

    Started from the FastAPI lifespan. Each sweep runs in a worker thread with
    its own session.
    """
    logger.info("Liveness monitor started (every %ss)", interval_seconds)
    while True:
        try:
            await asyncio.to_thread(_sweep_once, session_factory)
        except Exception:  # noqa: BLE001 - the monitor must outlive a bad sweep
            logger.exception("Liveness sweep failed")
        await asyncio.sleep(interval_seconds)
