"""Alert lifecycle API."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, Query
from sqlalchemy.orm import Session

from alertivo.core.alert_feed import AlertFeed
from alertivo.core.deps import get_alert_feed, get_push_notifier
from alertivo.db.session import get_db
from alertivo.schemas.alert import AcceptRequest, AlertResponse
from alertivo.schemas.responder import OkResponse
from alertivo.services.alert_service import accept, decline, get_alert, list_alerts, serialize_alert
from alertivo.services.assignment_service import retry_assignment
from alertivo.services.notification_service import PushNotifier

router = APIRouter(prefix="/alerts", tags=["alerts"])


@router.get("", response_model=list[AlertResponse])
def list_all(
    responder_id: str | None = None,
    status: str | None = Query(default=None, pattern="^(pending|accepted|declined|completed)$"),
    limit: int = Query(default=50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    """Alerts newest first; ``responder_id`` + ``status=pending`` is a responder's inbox."""
    return list_alerts(db, responder_id, status, limit)


@router.get("/{alert_id}", response_model=AlertResponse)
def read_alert(alert_id: str, db: Session = Depends(get_db)):
    return get_alert(db, alert_id)


@router.post("/{alert_id}/accept", response_model=OkResponse)
def accept_alert(
    alert_id: str,
    data: AcceptRequest,
    db: Session = Depends(get_db),
    feed: AlertFeed = Depends(get_alert_feed),
):
    alert = accept(db, alert_id, data.responder_id)
    feed.publish(serialize_alert(alert))
    return OkResponse()


@router.post("/{alert_id}/decline", response_model=OkResponse)
def decline_alert(
    alert_id: str,
    db: Session = Depends(get_db),
    feed: AlertFeed = Depends(get_alert_feed),
):
    alert = decline(db, alert_id)
    feed.publish(serialize_alert(alert))
    return OkResponse()


@router.post("/{alert_id}/retry-assignment", response_model=AlertResponse)
def retry(
    alert_id: str,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    feed: AlertFeed = Depends(get_alert_feed),
    notifier: PushNotifier = Depends(get_push_notifier),
):
    """Re-run nearest-match for a pending alert nobody was assigned to."""
    alert, chosen = retry_assignment(db, alert_id)
    payload = serialize_alert(alert)
    if chosen is not None:
        feed.publish(payload)
        if chosen.push_token:
            background_tasks.add_task(notifier.notify_assignment, chosen.push_token, payload)
    return alert
