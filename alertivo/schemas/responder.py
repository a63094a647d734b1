"""Responder registry schemas."""

from datetime import datetime

from pydantic import BaseModel, Field


class ResponderCreate(BaseModel):
    id: str = Field(..., min_length=1, max_length=128)
    full_name: str | None = None
    push_token: str | None = None


class HeartbeatLocation(BaseModel):
    lat: float | None = Field(default=None, ge=-90, le=90)
    lng: float | None = Field(default=None, ge=-180, le=180)


class HeartbeatRequest(BaseModel):
    location: HeartbeatLocation | None = None


class StatusUpdate(BaseModel):
    status: str = Field(..., pattern="^(active|busy|inactive)$")
    assigned_emergency: str | None = None


class PushTokenUpdate(BaseModel):
    push_token: str = Field(..., min_length=1, max_length=255)


class ResponderResponse(BaseModel):
    id: str
    full_name: str | None = None
    status: str
    current_latitude: float | None = None
    current_longitude: float | None = None
    location_updated_at: datetime | None = None
    last_heartbeat: datetime | None = None
    last_active_at: datetime | None = None
    last_inactive_at: datetime | None = None
    assigned_emergency: str | None = None

    model_config = {"from_attributes": True}


class SweepResponse(BaseModel):
    demoted_count: int


class OkResponse(BaseModel):
    ok: bool = True
