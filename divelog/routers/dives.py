import asyncio
import logging
from datetime import date, datetime, timezone
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from divelog.auth.dependencies import get_current_user, require_supervisor
from divelog.database import get_db
from divelog.models.audit_log import A
from divelog.models.dive import Dive, DiveStatus
from divelog.models.dive_event import DiveEvent
from divelog.models.diver import Diver
from divelog.models.job import Job, JobStatus
from divelog.models.profile import Profile
from divelog.models.user import User
from divelog.schemas.dive import DiveCreate, DiveDetail, DiveSummary, DiveUpdate
from divelog.schemas.dive_event import DiveEventCreate, DiveEventOut, DiveEventUpdate
from divelog.utils.audit import log_event
from divelog.utils.dives import (
    as_utc,
    delete_dive_cascade,
    delete_events,
    next_dive_no,
    refresh_max_depth,
    summarize,
)
from divelog.utils.notify import dive_changes, format_sse

logger = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 15.0

router = APIRouter(prefix="/dives", tags=["dives"])
events_router = APIRouter(prefix="/dive-events", tags=["dives"])


def _get_or_404(db: Session, dive_id: UUID) -> Dive:
    dive = db.get(Dive, dive_id)
    if not dive:
        raise HTTPException(status_code=404, detail="Dive not found")
    return dive


def _get_event_or_404(db: Session, event_id: UUID) -> DiveEvent:
    event = db.get(DiveEvent, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Dive event not found")
    return event


def _events_of(db: Session, dive_id: UUID) -> List[DiveEvent]:
    return (
        db.query(DiveEvent)
        .filter(DiveEvent.dive_id == dive_id)
        .order_by(DiveEvent.event_time, DiveEvent.created_at)
        .all()
    )


# ── dives ─────────────────────────────────────────────────────────────────────

@router.get("", response_model=List[DiveSummary])
def list_dives(
    job_id: Optional[UUID] = None,
    status: Optional[DiveStatus] = None,
    on: Optional[date] = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    query = db.query(Dive)
    if job_id:
        query = query.filter(Dive.job_id == job_id)
    if status is not None:
        query = query.filter(Dive.status == status)
    if on is not None:
        query = query.filter(Dive.date == on)
    return summarize(db, query.order_by(Dive.date.desc(), Dive.created_at.desc()).all())


@router.get("/active", response_model=DiveSummary)
def get_active_dive(
    supervisor_id: Optional[UUID] = None,
    job_id: Optional[UUID] = None,
    diver_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    """Most recent in-progress dive matching the filters; the persisted row is
    what a reloaded client resumes from."""
    query = db.query(Dive).filter(Dive.status == DiveStatus.in_progress)
    if supervisor_id:
        query = query.filter(Dive.supervisor_id == supervisor_id)
    if job_id:
        query = query.filter(Dive.job_id == job_id)
    if diver_id:
        query = query.filter(Dive.diver_id == diver_id)
    dive = query.order_by(Dive.started_at.desc()).first()
    if dive is None:
        raise HTTPException(status_code=404, detail="No dive in progress")
    return summarize(db, [dive])[0]


@router.get("/changes")
async def stream_dive_changes(request: Request, _: User = Depends(get_current_user)):
    """Server-sent events: one message per insert/update/delete on dives."""
    sub = dive_changes.subscribe()

    async def _stream():
        try:
            yield ": connected\n\n"
            while not await request.is_disconnected():
                try:
                    message = await asyncio.wait_for(sub.get(), KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue
                yield format_sse(message)
        finally:
            dive_changes.unsubscribe(sub)

    return StreamingResponse(
        _stream(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )


@router.post("", response_model=DiveSummary, status_code=status.HTTP_201_CREATED)
def start_dive(
    body: DiveCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor),
):
    job = db.get(Job, body.job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    if job.status != JobStatus.active:
        raise HTTPException(status_code=409, detail="Dives can only be logged against active jobs")
    if not db.get(Diver, body.diver_id):
        raise HTTPException(status_code=404, detail="Diver not found")

    supervisor_id = body.supervisor_id or current_user.id
    if supervisor_id != current_user.id and current_user.role != "admin":
        raise HTTPException(status_code=403, detail="Cannot start a dive for another supervisor")
    if not db.get(Profile, supervisor_id):
        raise HTTPException(status_code=409, detail="Supervisor profile missing")

    in_progress = (
        db.query(Dive.id)
        .filter(
            Dive.job_id == body.job_id,
            Dive.diver_id == body.diver_id,
            Dive.status == DiveStatus.in_progress,
        )
        .first()
    )
    if in_progress:
        raise HTTPException(status_code=409, detail="Diver already has a dive in progress on this job")

    started_at = as_utc(body.started_at) if body.started_at else datetime.now(timezone.utc)
    dive = Dive(
        job_id=body.job_id,
        diver_id=body.diver_id,
        supervisor_id=supervisor_id,
        date=started_at.date(),
        started_at=started_at,
        status=DiveStatus.in_progress,
        dive_no=next_dive_no(db, body.job_id),
    )
    db.add(dive)
    db.flush()
    log_event(db, current_user, A.DIVE_START, resource_type="dive", resource_id=dive.id, request=request)
    db.commit()
    db.refresh(dive)
    dive_changes.publish("insert", dive.id, dive.status.value)
    return summarize(db, [dive])[0]


@router.get("/{dive_id}", response_model=DiveDetail)
def get_dive(
    dive_id: UUID,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    dive = _get_or_404(db, dive_id)
    detail = DiveDetail.model_validate(summarize(db, [dive])[0].model_dump())
    detail.events = [DiveEventOut.model_validate(e) for e in _events_of(db, dive_id)]
    return detail


@router.put("/{dive_id}", response_model=DiveSummary)
def update_dive(
    dive_id: UUID,
    body: DiveUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor),
):
    dive = _get_or_404(db, dive_id)
    was_open = dive.status == DiveStatus.in_progress
    for field, value in body.model_dump(exclude_unset=True, exclude_none=True).items():
        if field == "ended_at":
            value = as_utc(value)
        setattr(dive, field, value)

    completing = was_open and dive.status == DiveStatus.completed
    if completing:
        if dive.ended_at is None:
            dive.ended_at = datetime.now(timezone.utc)
        refresh_max_depth(db, dive)
    action = A.DIVE_COMPLETE if completing else A.DIVE_UPDATE
    log_event(db, current_user, action, resource_type="dive", resource_id=dive_id, request=request)
    db.commit()
    db.refresh(dive)
    dive_changes.publish("update", dive.id, dive.status.value)
    return summarize(db, [dive])[0]


@router.delete("/{dive_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_dive(
    dive_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor),
):
    dive = _get_or_404(db, dive_id)
    removed = delete_dive_cascade(db, dive)
    log_event(
        db, current_user, A.DIVE_DELETE, resource_type="dive", resource_id=dive_id,
        detail={"events_removed": removed}, request=request,
    )
    db.commit()
    dive_changes.publish("delete", dive_id)


# ── events of a dive ──────────────────────────────────────────────────────────

@router.get("/{dive_id}/events", response_model=List[DiveEventOut])
def list_dive_events(
    dive_id: UUID,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    _get_or_404(db, dive_id)
    return _events_of(db, dive_id)


@router.post("/{dive_id}/events", response_model=DiveEventOut, status_code=status.HTTP_201_CREATED)
def append_dive_event(
    dive_id: UUID,
    body: DiveEventCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor),
):
    dive = _get_or_404(db, dive_id)
    event = DiveEvent(
        dive_id=dive_id,
        event_time=as_utc(body.event_time) if body.event_time else datetime.now(timezone.utc),
        depth=body.depth,
        event_type=body.event_type,
        description=body.description,
    )
    db.add(event)
    db.flush()
    refresh_max_depth(db, dive)
    log_event(db, current_user, A.EVENT_CREATE, resource_type="dive_event", resource_id=event.id, request=request)
    db.commit()
    db.refresh(event)
    return event


@router.delete("/{dive_id}/events", status_code=status.HTTP_204_NO_CONTENT)
def clear_dive_events(
    dive_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor),
):
    dive = _get_or_404(db, dive_id)
    removed = delete_events(db, dive_id)
    dive.max_depth = None
    log_event(
        db, current_user, A.EVENTS_CLEAR, resource_type="dive", resource_id=dive_id,
        detail={"events_removed": removed}, request=request,
    )
    db.commit()


# ── single events ─────────────────────────────────────────────────────────────

@events_router.put("/{event_id}", response_model=DiveEventOut)
def update_dive_event(
    event_id: UUID,
    body: DiveEventUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor),
):
    event = _get_event_or_404(db, event_id)
    for field, value in body.model_dump(exclude_unset=True, exclude_none=True).items():
        if field == "event_time":
            value = as_utc(value)
        setattr(event, field, value)
    refresh_max_depth(db, db.get(Dive, event.dive_id))
    log_event(db, current_user, A.EVENT_UPDATE, resource_type="dive_event", resource_id=event_id, request=request)
    db.commit()
    db.refresh(event)
    return event


@events_router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_dive_event(
    event_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor),
):
    event = _get_event_or_404(db, event_id)
    dive = db.get(Dive, event.dive_id)
    db.delete(event)
    refresh_max_depth(db, dive)
    log_event(db, current_user, A.EVENT_DELETE, resource_type="dive_event", resource_id=event_id, request=request)
    db.commit()
