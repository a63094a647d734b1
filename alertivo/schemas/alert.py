"""Alert lifecycle schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class AcceptRequest(BaseModel):
    responder_id: str = Field(..., min_length=1)


class AlertResponse(BaseModel):
    id: str
    emergency_id: str
    type: str
    latitude: float
    longitude: float
    address: str | None = None
    details: str | dict[str, Any]
    urgency: str
    display_code: str
    assigned_responder: str | None = None
    responder_uid: str | None = None
    status: str
    routed_at: datetime
    accepted_at: datetime | None = None
    declined_at: datetime | None = None
    completed_at: datetime | None = None

    model_config = {"from_attributes": True}
