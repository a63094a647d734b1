"""Password hashing, OTP digests and session tokens."""

import hashlib
import secrets
from datetime import timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from alertivo.core.clock import utcnow
from alertivo.core.config import settings
from alertivo.core.dispatch_policies import OTP_LENGTH

TOKEN_TYPE = "access"


def hash_password(password: str) -> str:
    """bcrypt hash of ``password``. bcrypt refuses inputs over 72 bytes with ValueError."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt()).decode()


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode(), hashed.encode())
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def generate_otp_code() -> str:
    """Random numeric code of OTP_LENGTH digits, never starting with 0."""
    low = 10 ** (OTP_LENGTH - 1)
    return str(low + secrets.randbelow(9 * low))


def hash_otp_code(code: str) -> str:
    return hashlib.sha256(code.strip().encode()).hexdigest()


def otp_code_matches(code: str, code_hash: str) -> bool:
    return secrets.compare_digest(hash_otp_code(code), code_hash)


def create_access_token(account_id: str, claims: dict[str, Any] | None = None) -> str:
    """Signed session token for a verified account; ``sub`` is the account id."""
    issued = utcnow()
    payload: dict[str, Any] = dict(claims or {})
    payload.update(
        sub=account_id,
        typ=TOKEN_TYPE,
        iss=settings.app_name,
        iat=issued,
        exp=issued + timedelta(minutes=settings.jwt_expire_minutes),
    )
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Claims of a valid, unexpired access token issued here; None otherwise."""
    try:
        claims = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            issuer=settings.app_name,
        )
    except JWTError:
        return None
    if claims.get("typ") != TOKEN_TYPE:
        return None
    return claims
