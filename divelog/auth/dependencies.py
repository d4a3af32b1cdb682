from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from divelog.auth.jwt import decode_token
from divelog.database import get_db
from divelog.models.profile import Profile
from divelog.models.user import User

bearer = HTTPBearer()

# Who may write to the dive log, and who may manage accounts
SUPERVISOR_ROLES = ("supervisor", "admin")
ADMIN_ROLES = ("admin",)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(bearer),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer access token to its user. Reset tokens are refused."""
    email = decode_token(credentials.credentials)
    if email is None:
        raise _unauthorized("Invalid or expired token")
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise _unauthorized("Account no longer exists")
    return user


def get_current_profile(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Profile:
    profile = db.get(Profile, user.id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


def require_role(*roles: str):
    def dep(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user
    return dep


require_supervisor = require_role(*SUPERVISOR_ROLES)
require_admin = require_role(*ADMIN_ROLES)
