"""Dispatch, liveness and OTP policy constants."""

from __future__ import annotations

# Mean Earth radius used by the haversine distance, in meters
EARTH_RADIUS_M = 6_371_000

# A responder whose last heartbeat is older than this is presumed gone
HEARTBEAT_TIMEOUT_SECONDS = 3 * 60

# Report types and where they are routed
REPORT_TYPES = ("security", "medical", "fire")
DEPARTMENT_BY_TYPE = {
    "medical": "clinic",
    "fire": "fire_dept",
}

# Responder availability
RESPONDER_STATUSES = ("active", "busy", "inactive")

# Alert lifecycle: {from_status: (to_status, ...)}
ALERT_TRANSITIONS = {
    "pending": ("accepted", "declined"),
    "accepted": ("completed",),
    "declined": (),
    "completed": (),
}

# OTP gate
OTP_LENGTH = 6
OTP_EXPIRY_MINUTES = 5
OTP_MAX_REQUESTS_PER_WINDOW = 3
OTP_RATE_WINDOW_MINUTES = 60
OTP_LOCKOUT_THRESHOLD = 5
OTP_LOCKOUT_MINUTES = 30
