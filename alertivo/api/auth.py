"""OTP verification and session API."""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from alertivo.core.deps import get_current_account, get_email_sender
from alertivo.core.security import create_access_token
from alertivo.db.session import get_db
from alertivo.models.account import Account
from alertivo.schemas.auth import (
    AccountMe,
    LoginRequest,
    OTPRequest,
    OTPVerifyRequest,
    OTPVerifyResponse,
    TokenResponse,
)
from alertivo.schemas.responder import OkResponse
from alertivo.services.email_service import EmailSender
from alertivo.services.otp_service import authenticate_account, request_otp, verify_otp

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/otp/request", response_model=OkResponse)
def otp_request(
    data: OTPRequest,
    request: Request,
    db: Session = Depends(get_db),
    sender: EmailSender = Depends(get_email_sender),
):
    """Email a one-time code to a student address."""
    request_ip = request.client.host if request.client else None
    request_otp(db, data.email, sender, request_ip=request_ip)
    return OkResponse()


@router.post("/otp/verify", response_model=OTPVerifyResponse)
def otp_verify(data: OTPVerifyRequest, db: Session = Depends(get_db)):
    """Exchange a valid code for a verified account and an access token."""
    account = verify_otp(db, data.email, data.code, password=data.password)
    token = create_access_token(account.id, {"email": account.email})
    return OTPVerifyResponse(account_id=account.id, access_token=token)


@router.post("/login", response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    """Password login for accounts that set one during verification."""
    account = authenticate_account(db, data.email, data.password)
    if not account:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )
    return TokenResponse(access_token=create_access_token(account.id, {"email": account.email}))


@router.get("/me", response_model=AccountMe)
def me(current: Account = Depends(get_current_account)):
    """Get current account. Requires Bearer token."""
    return current
