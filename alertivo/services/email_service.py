"""OTP email delivery."""

from __future__ import annotations

import logging

import httpx

from alertivo.core.config import Settings, settings
from alertivo.core.dispatch_policies import OTP_EXPIRY_MINUTES
from alertivo.core.errors import InternalError

logger = logging.getLogger(__name__)


class SendGridEmailSender:
    """Sends OTP codes through the SendGrid v3 mail API."""

    def __init__(self, api_key: str, sender: str, url: str, timeout: float = 10.0) -> None:
        self.api_key = api_key
        self.sender = sender
        self.url = url
        self.timeout = timeout

    def send_otp(self, email: str, code: str) -> None:
        if not self.api_key or not self.sender:
            logger.error("SendGrid is not configured - cannot send OTP email")
            raise InternalError("Failed to initialize email service.")

        payload = {
            "personalizations": [{"to": [{"email": email}]}],
            "from": {"email": self.sender},
            "subject": "Your Alertivo OTP",
            "content": [
                {
                    "type": "text/plain",
                    "value": f"Your one-time code is {code}. Expires in {OTP_EXPIRY_MINUTES} minutes.",
                }
            ],
        }
        try:
            response = httpx.post(
                self.url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.error("SendGrid send error for %s: %s", email, exc)
            raise InternalError("Failed to send OTP.") from exc
        logger.info("OTP sent to %s", email)


class LoggingEmailSender:
    """Development backend: writes the code to the log instead of mailing it."""

    def send_otp(self, email: str, code: str) -> None:
        logger.warning("OTP for %s is %s (log email backend, do not use in production)", email, code)


def build_email_sender(config: Settings = settings) -> SendGridEmailSender | LoggingEmailSender:
    backend = config.email_backend.strip().lower()
    if backend == "log":
        return LoggingEmailSender()
    if backend != "sendgrid":
        raise ValueError(f"Unsupported email backend '{config.email_backend}'. Use 'sendgrid' or 'log'.")
    return SendGridEmailSender(
        api_key=config.sendgrid_api_key,
        sender=config.sendgrid_sender,
        url=config.sendgrid_url,
        timeout=config.outbound_timeout_seconds,
    )


EmailSender = SendGridEmailSender | LoggingEmailSender
