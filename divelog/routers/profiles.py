from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from divelog.auth.dependencies import get_current_profile, get_current_user
from divelog.database import get_db
from divelog.models.audit_log import A
from divelog.models.profile import Profile
from divelog.models.user import User
from divelog.schemas.profile import ProfileOut, ProfileUpdate
from divelog.utils.audit import log_event
from divelog.utils.profiles import ensure_profile

router = APIRouter(prefix="/profiles", tags=["profiles"])


def _get_or_404(db: Session, user_id: UUID) -> Profile:
    profile = db.get(Profile, user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.get("/me", response_model=ProfileOut)
def get_my_profile(profile: Profile = Depends(get_current_profile)):
    return profile


@router.put("/{user_id}", response_model=ProfileOut)
def provision_profile(
    user_id: UUID,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Ensure a profile row exists for ``user_id``. Safe to repeat: 201 when
    this call created it, 200 when it was already there."""
    if user_id != current_user.id and current_user.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    created = ensure_profile(db, user)
    if created:
        log_event(db, current_user, A.PROFILE_CREATE, resource_type="profile", resource_id=user_id, request=request)
        response.status_code = status.HTTP_201_CREATED
    db.commit()
    return _get_or_404(db, user_id)


@router.patch("/me", response_model=ProfileOut)
def update_my_profile(
    body: ProfileUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    profile: Profile = Depends(get_current_profile),
):
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(profile, field, value)
    log_event(db, current_user, A.PROFILE_UPDATE, resource_type="profile", resource_id=current_user.id, request=request)
    db.commit()
    db.refresh(profile)
    return profile
