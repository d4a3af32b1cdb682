"""Idempotent supervisor profile provisioning."""
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from divelog.models.profile import Profile
from divelog.models.user import User

_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


def default_full_name(email: str) -> str:
    return email.split("@", 1)[0]


def ensure_profile(db: Session, user: User) -> bool:
    """Create the profile row for ``user`` if it is missing.

    Uses INSERT ... ON CONFLICT DO NOTHING so two near-simultaneous callers
    cannot both insert. Returns True when this call created the row.
    """
    values = {
        "id": user.id,
        "username": user.email,
        "full_name": default_full_name(user.email),
        "role": user.role,
    }
    insert = _INSERTS.get(db.get_bind().dialect.name)
    if insert is None:
        # no native upsert: fall back to a guarded insert inside the transaction
        if db.get(Profile, user.id) is not None:
            return False
        db.add(Profile(**values))
        db.flush()
        return True

    stmt = insert(Profile).values(**values).on_conflict_do_nothing(index_elements=["id"])
    result = db.execute(stmt)
    return result.rowcount == 1
