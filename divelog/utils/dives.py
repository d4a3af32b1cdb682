"""Dive row helpers shared by the dive, job-history and report routers."""
from datetime import date, datetime, time, timezone
from typing import Iterable, List
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from divelog.models.dive import Dive
from divelog.models.dive_event import DiveEvent
from divelog.models.diver import Diver
from divelog.models.job import Job
from divelog.schemas.dive import DiveSummary


def as_utc(dt: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything stored is UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def next_dive_no(db: Session, job_id: UUID) -> int:
    current = db.query(func.max(Dive.dive_no)).filter(Dive.job_id == job_id).scalar()
    return (current or 0) + 1


def refresh_max_depth(db: Session, dive: Dive) -> None:
    db.flush()
    dive.max_depth = (
        db.query(func.max(DiveEvent.depth)).filter(DiveEvent.dive_id == dive.id).scalar()
    )


def delete_events(db: Session, dive_id: UUID) -> int:
    return (
        db.query(DiveEvent)
        .filter(DiveEvent.dive_id == dive_id)
        .delete(synchronize_session=False)
    )


def delete_dive_cascade(db: Session, dive: Dive) -> int:
    """Remove dependent events, then the dive. Returns the number of events removed.

    Both statements run in the caller's transaction; if the events delete
    raises, the dive delete is never issued."""
    removed = delete_events(db, dive.id)
    db.flush()
    db.delete(dive)
    return removed


def combine_clock_time(base: datetime, hhmmss: str) -> datetime:
    """Put a ``HH:MM[:SS]`` wall-clock time on the calendar day of ``base``."""
    parts = [int(p) for p in hhmmss.split(":")]
    hours, minutes = parts[0], parts[1]
    seconds = parts[2] if len(parts) > 2 else 0
    base = as_utc(base)
    return base.replace(hour=hours, minute=minutes, second=seconds, microsecond=0)


def day_start(day: date) -> datetime:
    return datetime.combine(day, time.min, tzinfo=timezone.utc)


def summarize(db: Session, dives: Iterable[Dive]) -> List[DiveSummary]:
    """Attach job and diver names with two batched lookups instead of one per row."""
    dives = list(dives)
    if not dives:
        return []
    job_ids = {d.job_id for d in dives}
    diver_ids = {d.diver_id for d in dives}
    job_names = dict(db.query(Job.id, Job.job_name).filter(Job.id.in_(job_ids)).all())
    diver_names = dict(db.query(Diver.id, Diver.full_name).filter(Diver.id.in_(diver_ids)).all())

    results = []
    for d in dives:
        out = DiveSummary.model_validate(d)
        out.job_name = job_names.get(d.job_id)
        out.diver_name = diver_names.get(d.diver_id)
        results.append(out)
    return results
