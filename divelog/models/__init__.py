# Import all models here so that Alembic autogenerate can discover them
# and so callers can do: from divelog.models import User, Dive, ...

from divelog.models.user import User
from divelog.models.profile import Profile
from divelog.models.job import Job, JobStatus
from divelog.models.rank import Rank
from divelog.models.diver import Diver
from divelog.models.dive import Dive, DiveStatus
from divelog.models.dive_event import DiveEvent
from divelog.models.audit_log import AuditLog

__all__ = [
    "User",
    "Profile",
    "Job",
    "JobStatus",
    "Rank",
    "Diver",
    "Dive",
    "DiveStatus",
    "DiveEvent",
    "AuditLog",
]
