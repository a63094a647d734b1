"""Emergency report API."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from alertivo.core.alert_feed import AlertFeed
from alertivo.core.deps import get_admin_sync, get_alert_feed, get_push_notifier
from alertivo.db.session import get_db
from alertivo.schemas.report import CompleteRequest, ReportCreate, ReportCreated, ReportResponse
from alertivo.schemas.responder import OkResponse
from alertivo.services.alert_service import complete, serialize_alert
from alertivo.services.intake_service import get_report, medical_sync_payload, submit_report
from alertivo.services.notification_service import AdminSyncClient, PushNotifier

router = APIRouter(prefix="/reports", tags=["reports"])


@router.post("", response_model=ReportCreated, status_code=status.HTTP_201_CREATED)
def create_report(
    data: ReportCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    feed: AlertFeed = Depends(get_alert_feed),
    notifier: PushNotifier = Depends(get_push_notifier),
    admin_sync: AdminSyncClient = Depends(get_admin_sync),
):
    """Submit an emergency. Security reports are assigned to the nearest active responder."""
    result = submit_report(db, data)

    if result.alert is not None:
        payload = serialize_alert(result.alert)
        feed.publish(payload)
        if result.push_token:
            background_tasks.add_task(notifier.notify_assignment, result.push_token, payload)

    if result.department == "clinic":
        background_tasks.add_task(admin_sync.sync_medical_report, medical_sync_payload(result.report))

    return ReportCreated(report_id=result.report.id)


@router.get("/{report_id}", response_model=ReportResponse)
def read_report(report_id: str, db: Session = Depends(get_db)):
    return get_report(db, report_id)


@router.post("/{report_id}/complete", response_model=OkResponse)
def complete_report(
    report_id: str,
    data: CompleteRequest,
    db: Session = Depends(get_db),
    feed: AlertFeed = Depends(get_alert_feed),
):
    """Responder finished the emergency and is available again."""
    alert = complete(db, data.responder_id, report_id)
    if alert is not None:
        feed.publish(serialize_alert(alert))
    return OkResponse()
