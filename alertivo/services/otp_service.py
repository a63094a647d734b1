"""OTP security gate: email verification with rate limiting and lockout."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from alertivo.core.clock import as_utc, utcnow
from alertivo.core.config import settings
from alertivo.core.dispatch_policies import (
    OTP_EXPIRY_MINUTES,
    OTP_LOCKOUT_MINUTES,
    OTP_LOCKOUT_THRESHOLD,
    OTP_MAX_REQUESTS_PER_WINDOW,
    OTP_RATE_WINDOW_MINUTES,
)
from alertivo.core.errors import AccountLocked, InvalidOrExpiredOTP, RateLimitExceeded, ValidationError
from alertivo.core.security import generate_otp_code, hash_otp_code, hash_password, otp_code_matches, verify_password
from alertivo.models.account import Account, Profile
from alertivo.models.audit_log import AuditLogEntry
from alertivo.models.otp import LockoutRecord, OTPChallenge, RateLimitRecord
from alertivo.services.email_service import EmailSender

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _seconds_until(moment: datetime, now: datetime) -> int:
    return max(1, math.ceil((moment - now).total_seconds()))


def _audit(db: Session, action: str, email: str, now: datetime, uid: str | None = None, **details: Any) -> None:
    db.add(AuditLogEntry(action=action, email=email, uid=uid, timestamp=now, details=details))


def _check_email_domain(email: str) -> None:
    domain = settings.otp_allowed_email_domain.lower()
    if not email.endswith(f"@{domain}"):
        raise ValidationError("Invalid student email.")


def _consume_request_quota(db: Session, email: str, now: datetime) -> int:
    """
    Count one OTP request against the email's window and return the running count.

    The increment is a single conditional UPDATE so concurrent requests cannot
    both slip under the limit. A request over the limit is not recorded.
    """
    bumped = db.execute(
        update(RateLimitRecord)
        .where(
            RateLimitRecord.email == email,
            RateLimitRecord.window_reset_at > now,
            RateLimitRecord.attempt_count < OTP_MAX_REQUESTS_PER_WINDOW,
        )
        .values(attempt_count=RateLimitRecord.attempt_count + 1)
        .execution_options(synchronize_session=False)
    )
    if bumped.rowcount == 1:
        return db.scalar(select(RateLimitRecord.attempt_count).where(RateLimitRecord.email == email))

    window_end = now + timedelta(minutes=OTP_RATE_WINDOW_MINUTES)
    record = db.get(RateLimitRecord, email)
    if record is None:
        db.add(RateLimitRecord(email=email, attempt_count=1, window_reset_at=window_end))
        return 1
    reset_at = as_utc(record.window_reset_at)
    if reset_at <= now:
        record.attempt_count = 1
        record.window_reset_at = window_end
        return 1
    raise RateLimitExceeded(
        "Too many attempts. Try again in an hour.",
        retry_after_seconds=_seconds_until(reset_at, now),
    )


def _ensure_not_locked(db: Session, email: str, now: datetime) -> None:
    lockout = db.get(LockoutRecord, email)
    locked_until = as_utc(lockout.locked_until) if lockout else None
    if locked_until is not None and locked_until > now:
        raise AccountLocked(
            "Account locked due to too many failed attempts.",
            retry_after_seconds=_seconds_until(locked_until, now),
        )


def _record_failure(db: Session, email: str, now: datetime) -> int:
    """Count a failed verification; lock the email once the threshold is reached."""
    bumped = db.execute(
        update(LockoutRecord)
        .where(LockoutRecord.email == email)
        .values(failure_count=LockoutRecord.failure_count + 1)
        .execution_options(synchronize_session=False)
    )
    if bumped.rowcount == 0:
        db.add(LockoutRecord(email=email, failure_count=1))
        db.flush()
    failures = db.scalar(select(LockoutRecord.failure_count).where(LockoutRecord.email == email))
    if failures >= OTP_LOCKOUT_THRESHOLD:
        db.execute(
            update(LockoutRecord)
            .where(LockoutRecord.email == email)
            .values(locked_until=now + timedelta(minutes=OTP_LOCKOUT_MINUTES))
            .execution_options(synchronize_session=False)
        )
        logger.warning("OTP verification locked for %s after %s failures", email, failures)
    _audit(db, "OTP_FAILED", email, now, fails=failures)
    db.commit()
    return failures


def request_otp(
    db: Session,
    email: str,
    sender: EmailSender,
    request_ip: str | None = None,
    now: datetime | None = None,
) -> None:
    """
    Issue a fresh OTP for ``email`` and mail it.

    Raises ValidationError for a foreign domain, RateLimitExceeded past the
    hourly quota, AccountLocked during a lockout and InternalError when the
    email could not be sent.
    """
    email = normalize_email(email)
    _check_email_domain(email)
    now = now or utcnow()

    attempts = _consume_request_quota(db, email, now)
    db.commit()
    _ensure_not_locked(db, email, now)

    code = generate_otp_code()
    db.execute(delete(OTPChallenge).where(OTPChallenge.email == email))
    db.add(
        OTPChallenge(
            email=email,
            code_hash=hash_otp_code(code),
            created_at=now,
            expires_at=now + timedelta(minutes=OTP_EXPIRY_MINUTES),
            request_ip=request_ip,
        )
    )
    db.commit()

    sender.send_otp(email, code)

    _audit(db, "OTP_SENT", email, now, attempts=attempts)
    db.commit()


def verify_otp(
    db: Session,
    email: str,
    code: str,
    password: str | None = None,
    now: datetime | None = None,
) -> Account:
    """
    Check an OTP and provision the account behind it.

    A missing, wrong or expired code raises InvalidOrExpiredOTP and counts
    toward the lockout. On success the challenge is consumed, rate-limit and
    lockout state is cleared, and the account, its optional password and its
    profile are written.
    """
    email = normalize_email(email)
    now = now or utcnow()
    _ensure_not_locked(db, email, now)

    challenge = db.get(OTPChallenge, email)
    if challenge is None or not otp_code_matches(code, challenge.code_hash) or as_utc(challenge.expires_at) < now:
        _record_failure(db, email, now)
        raise InvalidOrExpiredOTP("Invalid or expired OTP.")

    consumed = db.execute(
        delete(OTPChallenge)
        .where(OTPChallenge.email == email, OTPChallenge.code_hash == challenge.code_hash)
        .execution_options(synchronize_session=False)
    )
    db.expunge(challenge)
    if consumed.rowcount != 1:
        # a concurrent verification got there first
        db.rollback()
        _record_failure(db, email, now)
        raise InvalidOrExpiredOTP("Invalid or expired OTP.")

    db.execute(delete(RateLimitRecord).where(RateLimitRecord.email == email))
    db.execute(delete(LockoutRecord).where(LockoutRecord.email == email))

    account = get_account_by_email(db, email)
    if account is None:
        account = Account(email=email, email_verified=True, created_at=now)
        db.add(account)
        db.flush()
    account.email_verified = True
    account.last_login_at = now

    if password:
        try:
            account.hashed_password = hash_password(password)
        except ValueError:
            # account exists either way; the password can be reset later
            logger.error("Password update failed for account %s", account.id, exc_info=True)

    profile = db.get(Profile, account.id)
    if profile is None:
        db.add(Profile(uid=account.id, email=email, verified=True, role="student", created_at=now))
    else:
        profile.verified = True

    _audit(db, "USER_VERIFIED", email, now, uid=account.id)
    db.commit()
    db.refresh(account)
    logger.info("Account %s verified for %s", account.id, email)
    return account


def get_account_by_email(db: Session, email: str) -> Account | None:
    return db.execute(select(Account).where(Account.email == normalize_email(email))).scalar_one_or_none()


def authenticate_account(db: Session, email: str, password: str) -> Account | None:
    """Authenticate a verified account by email and password."""
    account = get_account_by_email(db, email)
    if not account or not account.hashed_password or not account.email_verified:
        return None
    if not verify_password(password, account.hashed_password):
        return None
    account.last_login_at = utcnow()
    db.commit()
    db.refresh(account)
    return account
