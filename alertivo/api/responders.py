"""Responder registry and liveness API."""

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from alertivo.db.session import get_db
from alertivo.schemas.responder import (
    HeartbeatRequest,
    OkResponse,
    PushTokenUpdate,
    ResponderCreate,
    ResponderResponse,
    StatusUpdate,
    SweepResponse,
)
from alertivo.services.liveness_service import sweep_inactive_responders
from alertivo.services.registry_service import (
    get_responder,
    list_responders,
    record_heartbeat,
    register_responder,
    set_status,
    update_push_token,
)

router = APIRouter(prefix="/responders", tags=["responders"])


@router.post("", response_model=ResponderResponse, status_code=status.HTTP_201_CREATED)
def register(data: ResponderCreate, db: Session = Depends(get_db)):
    """Register a responder. Starts inactive."""
    return register_responder(db, data)


@router.get("", response_model=list[ResponderResponse])
def list_all(
    status_filter: str | None = Query(default=None, alias="status", pattern="^(active|busy|inactive)$"),
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return list_responders(db, status_filter, limit)


@router.post("/sweep", response_model=SweepResponse)
def sweep(db: Session = Depends(get_db)):
    """Run the liveness sweep now (it also runs on a timer)."""
    return SweepResponse(demoted_count=sweep_inactive_responders(db))


@router.get("/{responder_id}", response_model=ResponderResponse)
def read_responder(responder_id: str, db: Session = Depends(get_db)):
    return get_responder(db, responder_id)


@router.post("/{responder_id}/heartbeat", response_model=OkResponse)
def heartbeat(
    responder_id: str,
    data: HeartbeatRequest | None = Body(default=None),
    db: Session = Depends(get_db),
):
    """Responder app liveness ping, optionally with its current location."""
    record_heartbeat(db, responder_id, data.location if data else None)
    return OkResponse()


@router.post("/{responder_id}/status", response_model=ResponderResponse)
def change_status(responder_id: str, data: StatusUpdate, db: Session = Depends(get_db)):
    """Go on duty (active), off duty (inactive), or mark busy on an emergency."""
    return set_status(db, responder_id, data.status, {"assigned_emergency": data.assigned_emergency})


@router.put("/{responder_id}/push-token", response_model=ResponderResponse)
def set_push_token(responder_id: str, data: PushTokenUpdate, db: Session = Depends(get_db)):
    return update_push_token(db, responder_id, data.push_token)
