"""Best-effort outbound side effects: responder push and admin panel sync.

Failures here are logged and reported as False; they never fail the request
that triggered them.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class PushNotifier:
    """Expo push notifications to responder devices."""

    def __init__(self, url: str, timeout: float = 10.0) -> None:
        self.url = url
        self.timeout = timeout

    def notify_assignment(self, push_token: str, alert: dict[str, Any]) -> bool:
        address = alert.get("address") or "Nearby"
        message = {
            "to": push_token,
            "title": "New Emergency Alert",
            "body": f"{str(alert.get('type', '')).upper()} - {alert.get('urgency', 'medium')} priority at {address}",
            "data": {"type": "emergency", "alertId": alert.get("id")},
        }
        try:
            response = httpx.post(self.url, json=message, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Push notification for alert %s failed: %s", alert.get("id"), exc)
            return False
        logger.info("Push notification sent for alert %s", alert.get("id"))
        return True


class AdminSyncClient:
    """Mirrors medical emergencies to the administrative panel."""

    def __init__(self, url: str, timeout: float = 10.0) -> None:
        self.url = url
        self.timeout = timeout

    def sync_medical_report(self, payload: dict[str, Any]) -> bool:
        if not self.url:
            logger.debug("Admin sync URL not configured, skipping report %s", payload.get("reportId"))
            return False
        try:
            response = httpx.post(self.url, json=payload, timeout=self.timeout)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("Failed to sync medical emergency %s to admin panel: %s", payload.get("reportId"), exc)
            return False
        logger.info("Medical emergency %s synced to admin panel", payload.get("reportId"))
        return True
