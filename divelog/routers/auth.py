import logging
import smtplib
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from divelog.auth.dependencies import get_current_user
from divelog.auth.hashing import hash_password, verify_password
from divelog.auth.jwt import PASSWORD_RESET, create_access_token, create_reset_token, decode_token
from divelog.config import settings
from divelog.database import get_db
from divelog.models.audit_log import A
from divelog.models.profile import Profile
from divelog.models.user import User
from divelog.schemas.auth import (
    LoginRequest,
    PasswordResetConfirm,
    PasswordResetRequest,
    PasswordUpdate,
    SessionOut,
    SignupRequest,
    TokenResponse,
)
from divelog.utils.audit import log_event
from divelog.utils.mailer import send_password_reset
from divelog.utils.profiles import ensure_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(user: User, profile: Optional[Profile]) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.email),
        user_id=user.id,
        email=user.email,
        role=user.role,
        full_name=profile.full_name if profile else None,
    )


@router.post("/signup", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def signup(body: SignupRequest, request: Request, db: Session = Depends(get_db)):
    email = body.email.strip().lower()
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="User already exists. Please login.")
    user = User(email=email, password_hash=hash_password(body.password), role=settings.default_signup_role)
    db.add(user)
    db.flush()
    ensure_profile(db, user)
    profile = db.get(Profile, user.id)
    if body.full_name:
        profile.full_name = body.full_name
    log_event(db, user, A.AUTH_SIGNUP, resource_type="user", resource_id=user.id, request=request)
    db.commit()
    return _token_response(user, profile)


@router.post("/login", response_model=TokenResponse)
def login(body: LoginRequest, request: Request, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    if not user or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    log_event(db, user, A.AUTH_LOGIN, request=request)
    db.commit()
    return _token_response(user, db.get(Profile, user.id))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(_: User = Depends(get_current_user)):
    # JWT is stateless; the client discards the token
    return None


@router.get("/session", response_model=SessionOut)
def current_session(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    profile = db.get(Profile, user.id)
    return SessionOut(
        user_id=user.id,
        email=user.email,
        role=user.role,
        full_name=profile.full_name if profile else None,
    )


@router.post("/password-reset", status_code=status.HTTP_202_ACCEPTED)
def request_password_reset(body: PasswordResetRequest, request: Request, db: Session = Depends(get_db)):
    # Same answer whether or not the address is registered
    user = db.query(User).filter(User.email == body.email.strip().lower()).first()
    if user is not None:
        token = create_reset_token(user.email)
        try:
            send_password_reset(user.email, token)
        except (OSError, smtplib.SMTPException):
            logger.exception("Failed to send password reset mail to %s", user.email)
        log_event(db, user, A.AUTH_PASSWORD_RESET, resource_type="user", resource_id=user.id, request=request)
        db.commit()
    return {"detail": "If the address is registered, a reset link has been sent."}


@router.post("/password-reset/confirm", status_code=status.HTTP_204_NO_CONTENT)
def confirm_password_reset(body: PasswordResetConfirm, request: Request, db: Session = Depends(get_db)):
    email = decode_token(body.token, purpose=PASSWORD_RESET)
    user = db.query(User).filter(User.email == email).first() if email else None
    if user is None:
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")
    user.password_hash = hash_password(body.password)
    log_event(db, user, A.AUTH_PASSWORD_UPDATE, resource_type="user", resource_id=user.id, request=request)
    db.commit()


@router.put("/password", status_code=status.HTTP_204_NO_CONTENT)
def update_password(
    body: PasswordUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    current_user.password_hash = hash_password(body.password)
    log_event(db, current_user, A.AUTH_PASSWORD_UPDATE, resource_type="user", resource_id=current_user.id, request=request)
    db.commit()
