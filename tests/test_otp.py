"""OTP security gate tests."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from alertivo.core.clock import utcnow
from alertivo.core.errors import InvalidOrExpiredOTP
from alertivo.models.account import Account, Profile
from alertivo.models.audit_log import AuditLogEntry
from alertivo.services import otp_service
from alertivo.services.otp_service import request_otp, verify_otp

EMAIL = "ada.obi@students.unilorin.edu.ng"


def _request(client, email=EMAIL):
    return client.post("/auth/otp/request", json={"email": email})


def _verify(client, code, email=EMAIL, **extra):
    return client.post("/auth/otp/verify", json={"email": email, "code": code, **extra})


def test_round_trip_provisions_account(client, db, email_sender):
    r = _request(client)
    assert r.status_code == 200
    assert r.json() == {"ok": True}

    code = email_sender.last_code(EMAIL)
    assert len(code) == 6 and code.isdigit()

    r = _verify(client, code)
    assert r.status_code == 200
    account_id = r.json()["account_id"]
    assert r.json()["access_token"]

    account = db.get(Account, account_id)
    assert account.email == EMAIL
    assert account.email_verified is True
    profile = db.get(Profile, account_id)
    assert profile.verified is True
    assert profile.role == "student"

    actions = db.scalars(select(AuditLogEntry.action).where(AuditLogEntry.email == EMAIL)).all()
    assert "OTP_SENT" in actions
    assert "USER_VERIFIED" in actions


def test_second_verification_keeps_account_id(client, email_sender):
    _request(client)
    first = _verify(client, email_sender.last_code(EMAIL)).json()["account_id"]

    _request(client)
    second = _verify(client, email_sender.last_code(EMAIL)).json()["account_id"]

    assert first == second


def test_replayed_code_is_rejected(client, email_sender):
    _request(client)
    code = email_sender.last_code(EMAIL)
    assert _verify(client, code).status_code == 200

    r = _verify(client, code)
    assert r.status_code == 400
    assert r.json()["error"] == "invalid_or_expired_otp"


def test_new_request_replaces_previous_code(client, email_sender):
    _request(client)
    old_code = email_sender.last_code(EMAIL)
    _request(client)
    new_code = email_sender.last_code(EMAIL)

    if old_code != new_code:
        assert _verify(client, old_code).status_code == 400
    assert _verify(client, new_code).status_code == 200


def test_email_is_normalized(client, email_sender):
    assert _request(client, "Ada.Obi@Students.Unilorin.edu.ng").status_code == 200
    assert _verify(client, email_sender.last_code(EMAIL)).status_code == 200


def test_foreign_domain_is_rejected(client, email_sender):
    r = _request(client, "someone@gmail.com")
    assert r.status_code == 422
    assert r.json()["error"] == "validation_error"
    assert email_sender.sent == []


def test_fourth_request_in_window_is_rate_limited(client, email_sender):
    for _ in range(3):
        assert _request(client).status_code == 200

    r = _request(client)
    assert r.status_code == 429
    assert r.json()["error"] == "rate_limit_exceeded"
    assert 0 < r.json()["retry_after_seconds"] <= 3600
    assert r.headers["Retry-After"] == str(r.json()["retry_after_seconds"])
    assert len(email_sender.sent) == 3


def test_rate_limit_window_resets(db, email_sender):
    start = utcnow() - timedelta(minutes=61)
    for _ in range(3):
        request_otp(db, EMAIL, email_sender, now=start)

    request_otp(db, EMAIL, email_sender)

    assert len(email_sender.sent) == 4


def test_five_failures_lock_and_correct_code_is_then_refused(client, email_sender):
    _request(client)
    code = email_sender.last_code(EMAIL)
    wrong = "000000" if code != "000000" else "111111"

    for _ in range(5):
        assert _verify(client, wrong).status_code == 400

    r = _verify(client, code)
    assert r.status_code == 423
    assert r.json()["error"] == "account_locked"
    assert 0 < r.json()["retry_after_seconds"] <= 30 * 60
    assert "Retry-After" in r.headers

    # a locked email cannot request new codes either
    assert _request(client).status_code == 423


def test_lockout_expires(db, email_sender):
    past = utcnow() - timedelta(minutes=31)
    request_otp(db, EMAIL, email_sender, now=past)
    for _ in range(5):
        with pytest.raises(InvalidOrExpiredOTP):
            verify_otp(db, EMAIL, "not-it", now=past)

    request_otp(db, EMAIL, email_sender)
    account = verify_otp(db, EMAIL, email_sender.last_code(EMAIL))

    assert account.email_verified is True


def test_expired_code_is_rejected(db, email_sender):
    request_otp(db, EMAIL, email_sender, now=utcnow() - timedelta(minutes=6))

    with pytest.raises(InvalidOrExpiredOTP):
        verify_otp(db, EMAIL, email_sender.last_code(EMAIL))


def test_verify_without_request_is_rejected(client):
    r = _verify(client, "123456")
    assert r.status_code == 400


def test_mailer_failure_is_reported(client, email_sender):
    email_sender.fail = True

    r = _request(client)
    assert r.status_code == 502
    assert r.json()["error"] == "internal_error"


def test_password_set_on_verify_allows_login(client, email_sender):
    _request(client)
    token = _verify(client, email_sender.last_code(EMAIL), password="campus-safe-42").json()["access_token"]

    r = client.post("/auth/login", json={"email": EMAIL, "password": "campus-safe-42"})
    assert r.status_code == 200
    assert r.json()["access_token"]

    assert client.post("/auth/login", json={"email": EMAIL, "password": "wrong"}).status_code == 401

    me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["email"] == EMAIL


def test_password_failure_does_not_block_verification(client, db, email_sender, monkeypatch):
    def broken_hash(password):
        raise ValueError("password cannot be longer than 72 bytes")

    monkeypatch.setattr(otp_service, "hash_password", broken_hash)
    _request(client)

    r = _verify(client, email_sender.last_code(EMAIL), password="x")
    assert r.status_code == 200
    assert db.get(Account, r.json()["account_id"]).hashed_password is None


def test_me_requires_token(client):
    assert client.get("/auth/me").status_code == 401
    assert client.get("/auth/me", headers={"Authorization": "Bearer junk"}).status_code == 401
