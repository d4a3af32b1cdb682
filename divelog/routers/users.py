"""
Account administration. Every account that can log dives has a profile row
with the same id; these endpoints keep the two in step.
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from divelog.auth.dependencies import get_current_user, require_admin
from divelog.auth.hashing import hash_password
from divelog.database import get_db
from divelog.models.audit_log import A
from divelog.models.profile import Profile
from divelog.models.user import User
from divelog.schemas.user import AccountCreate, AccountOut, AccountUpdate
from divelog.utils.audit import log_event
from divelog.utils.profiles import ensure_profile

router = APIRouter(prefix="/users", tags=["users"])


def _account_or_404(db: Session, user_id: UUID) -> User:
    account = db.get(User, user_id)
    if account is None:
        raise HTTPException(status_code=404, detail="User not found")
    return account


def _email_taken(db: Session, email: str, exclude_id: UUID = None) -> bool:
    query = db.query(User.id).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    return query.first() is not None


@router.get("/me", response_model=AccountOut)
def who_am_i(current_user: User = Depends(get_current_user)):
    return current_user


@router.get("", response_model=List[AccountOut])
def list_accounts(
    db: Session = Depends(get_db),
    _: User = Depends(require_admin),
):
    return db.query(User).order_by(User.email).all()


@router.post("", response_model=AccountOut, status_code=status.HTTP_201_CREATED)
def create_account(
    body: AccountCreate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    email = body.email.lower()
    if _email_taken(db, email):
        raise HTTPException(status_code=409, detail="Email already registered")

    account = User(email=email, password_hash=hash_password(body.password), role=body.role)
    db.add(account)
    db.flush()
    ensure_profile(db, account)
    if body.full_name:
        db.get(Profile, account.id).full_name = body.full_name
    log_event(db, admin, A.USER_CREATE, resource_type="user", resource_id=account.id,
              detail={"role": body.role}, request=request)
    db.commit()
    db.refresh(account)
    return account


@router.put("/{user_id}", response_model=AccountOut)
def update_account(
    user_id: UUID,
    body: AccountUpdate,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    account = _account_or_404(db, user_id)
    changed = []

    if body.email is not None:
        email = body.email.lower()
        if _email_taken(db, email, exclude_id=user_id):
            raise HTTPException(status_code=409, detail="Email already registered")
        account.email = email
        changed.append("email")
    if body.password is not None:
        account.password_hash = hash_password(body.password)
        changed.append("password")
    if body.role is not None:
        account.role = body.role
        profile = db.get(Profile, user_id)
        if profile is not None:
            profile.role = body.role
        changed.append("role")

    log_event(db, admin, A.USER_UPDATE, resource_type="user", resource_id=user_id,
              detail={"changed": changed}, request=request)
    db.commit()
    db.refresh(account)
    return account


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_account(
    user_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Dives the account supervised keep their rows; their supervisor link is cleared."""
    if admin.id == user_id:
        raise HTTPException(status_code=409, detail="Cannot delete your own account")
    account = _account_or_404(db, user_id)
    profile = db.get(Profile, user_id)
    if profile is not None:
        db.delete(profile)
        db.flush()
    log_event(db, admin, A.USER_DELETE, resource_type="user", resource_id=user_id,
              detail={"email": account.email}, request=request)
    db.delete(account)
    db.commit()
