"""FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.requests import HTTPConnection
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from alertivo.core.alert_feed import AlertFeed
from alertivo.core.config import settings
from alertivo.core.security import decode_access_token
from alertivo.db.session import get_db
from alertivo.models.account import Account
from alertivo.services.email_service import EmailSender, build_email_sender
from alertivo.services.notification_service import AdminSyncClient, PushNotifier

security = HTTPBearer(auto_error=False)


def get_alert_feed(connection: HTTPConnection) -> AlertFeed:
    """The application's alert feed (created in ``alertivo.main``)."""
    return connection.app.state.alert_feed


def get_email_sender() -> EmailSender:
    return build_email_sender(settings)


def get_push_notifier() -> PushNotifier:
    return PushNotifier(settings.expo_push_url, timeout=settings.outbound_timeout_seconds)


def get_admin_sync() -> AdminSyncClient:
    return AdminSyncClient(settings.admin_sync_url, timeout=settings.outbound_timeout_seconds)


def get_current_account(
    db: Annotated[Session, Depends(get_db)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Account:
    """Require an authenticated account. Raises 401 if not authenticated."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    payload = decode_access_token(credentials.credentials)
    if not payload or "sub" not in payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    # sub is the account id for our tokens
    account = db.get(Account, payload["sub"])
    if not account:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Account not found",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return account
