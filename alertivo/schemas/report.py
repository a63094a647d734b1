"""Emergency report schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class LocationIn(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    address: str | None = Field(default=None, max_length=500)


class ReportCreate(BaseModel):
    """Incoming report. type, location and creator_id are checked by the intake service."""

    type: str | None = None
    location: LocationIn | None = None
    details: str | dict[str, Any] = ""
    notes: str = ""
    urgency: str = "medium"
    contact_method: str = "chat"
    additional_info: dict[str, Any] = Field(default_factory=dict)
    creator_id: str | None = None
    display_code: str = "ANON"


class ReportCreated(BaseModel):
    report_id: str


class ReportResponse(BaseModel):
    id: str
    type: str
    latitude: float
    longitude: float
    address: str | None = None
    details: str | dict[str, Any]
    notes: str
    urgency: str
    contact_method: str
    additional_info: dict[str, Any]
    creator_id: str
    display_code: str
    status: str
    created_at: datetime
    completed_at: datetime | None = None

    model_config = {"from_attributes": True}


class CompleteRequest(BaseModel):
    responder_id: str = Field(..., min_length=1)
