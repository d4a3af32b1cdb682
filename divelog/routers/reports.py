"""
Report endpoints: dashboard figures, daily operations report, per-dive report.

Per-dive reports are available as JSON, as an A4 PDF, and as a shareable link
to the PDF in object storage. The daily report also exports to Excel.
"""
import io
import logging
from datetime import date, datetime, timezone
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import StreamingResponse
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter
from sqlalchemy import func
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
from divelog.schemas.dive import DiveOut
from divelog.schemas.dive_event import DiveEventOut, ReportEventEntry
from divelog.schemas.diver import DiverOut
from divelog.schemas.job import JobOut
from divelog.schemas.report import DailyReportOut, DailyReportRow, DashboardOut, DiveReportOut, ShareOut
from divelog.storage.minio import is_configured, publish_report
from divelog.utils.audit import log_event
from divelog.utils.dives import as_utc, combine_clock_time, refresh_max_depth, summarize
from divelog.utils.report_pdf import render_dive_report, report_filename

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/reports", tags=["reports"])

RECENT_DIVES = 5
NO_ACTIVE_JOB = "No Active Job"

_HEADER_FILL = PatternFill("solid", fgColor="0B3954")
_HEADER_FONT = Font(bold=True, color="FFFFFF")


# ── helpers ───────────────────────────────────────────────────────────────────

def _today() -> date:
    return datetime.now(timezone.utc).date()


def _build_dive_report(db: Session, dive_id: UUID) -> DiveReportOut:
    dive = db.get(Dive, dive_id)
    if not dive:
        raise HTTPException(status_code=404, detail="Dive not found")
    job = db.get(Job, dive.job_id)
    diver = db.get(Diver, dive.diver_id)
    supervisor = db.get(Profile, dive.supervisor_id) if dive.supervisor_id else None
    events = (
        db.query(DiveEvent)
        .filter(DiveEvent.dive_id == dive_id)
        .order_by(DiveEvent.event_time, DiveEvent.created_at)
        .all()
    )
    return DiveReportOut(
        dive=DiveOut.model_validate(dive),
        job=JobOut.model_validate(job),
        diver=DiverOut.model_validate(diver),
        supervisor_name=supervisor.full_name if supervisor else None,
        events=[DiveEventOut.model_validate(e) for e in events],
    )


def _daily_rows(db: Session, day: date) -> list[DailyReportRow]:
    dives = db.query(Dive).filter(Dive.date == day).order_by(Dive.dive_no, Dive.started_at).all()
    if not dives:
        return []
    dive_ids = [d.id for d in dives]
    event_counts = dict(
        db.query(DiveEvent.dive_id, func.count(DiveEvent.id))
        .filter(DiveEvent.dive_id.in_(dive_ids))
        .group_by(DiveEvent.dive_id)
        .all()
    )
    clients = dict(db.query(Job.id, Job.client_name).filter(Job.id.in_({d.job_id for d in dives})).all())
    ranks = dict(db.query(Diver.id, Diver.rank).filter(Diver.id.in_({d.diver_id for d in dives})).all())

    rows = []
    for summary in summarize(db, dives):
        row = DailyReportRow(**summary.model_dump())
        row.client_name = clients.get(summary.job_id)
        row.diver_rank = ranks.get(summary.diver_id)
        row.events_count = event_counts.get(summary.id, 0)
        rows.append(row)
    return rows


def _pdf_response(data: bytes, filename: str) -> StreamingResponse:
    return StreamingResponse(
        io.BytesIO(data),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ── dashboard ─────────────────────────────────────────────────────────────────

@router.get("/dashboard", response_model=DashboardOut)
def dashboard(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    active = db.query(func.count(Dive.id)).filter(Dive.status == DiveStatus.in_progress).scalar()
    today = db.query(func.count(Dive.id)).filter(Dive.date >= _today()).scalar()
    job = (
        db.query(Job.job_name)
        .filter(Job.status == JobStatus.active)
        .order_by(Job.created_at.desc())
        .first()
    )
    recent = db.query(Dive).order_by(Dive.started_at.desc()).limit(RECENT_DIVES).all()
    return DashboardOut(
        active_dives=active or 0,
        dives_today=today or 0,
        active_job=job[0] if job else NO_ACTIVE_JOB,
        recent_dives=summarize(db, recent),
    )


# ── daily report ──────────────────────────────────────────────────────────────

@router.get("/daily", response_model=DailyReportOut)
def daily_report(
    on: Optional[date] = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    day = on or _today()
    return DailyReportOut(date=day, dives=_daily_rows(db, day))


@router.get("/daily/export")
def export_daily_report(
    on: Optional[date] = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    """Daily operations report as an Excel workbook."""
    day = on or _today()
    rows = _daily_rows(db, day)

    wb = Workbook()
    ws = wb.active
    ws.title = day.strftime("%d-%m-%Y")
    headers = ["Dive No", "Job", "Client", "Diver", "Rank", "Start", "End", "Bottom Time", "Max Depth", "Events", "Status"]
    ws.append(headers)
    for col in range(1, len(headers) + 1):
        cell = ws.cell(1, col)
        cell.font = _HEADER_FONT
        cell.fill = _HEADER_FILL
        cell.alignment = Alignment(horizontal="center")
    ws.freeze_panes = "A2"

    for row in rows:
        ws.append([
            row.dive_no,
            row.job_name or "",
            row.client_name or "",
            row.diver_name or "",
            row.diver_rank or "",
            as_utc(row.started_at).strftime("%H:%M"),
            as_utc(row.ended_at).strftime("%H:%M") if row.ended_at else "",
            row.bottom_time or "",
            row.max_depth,
            row.events_count,
            row.status.value,
        ])

    for col in ws.columns:
        width = max((len(str(c.value or "")) for c in col), default=10)
        ws.column_dimensions[get_column_letter(col[0].column)].width = min(width + 4, 50)

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return StreamingResponse(
        buf,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": f'attachment; filename="daily_report_{day.isoformat()}.xlsx"'},
    )


# ── per-dive report ───────────────────────────────────────────────────────────

@router.get("/dives/{dive_id}", response_model=DiveReportOut)
def dive_report(
    dive_id: UUID,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return _build_dive_report(db, dive_id)


@router.get("/dives/{dive_id}/pdf")
def dive_report_pdf(
    dive_id: UUID,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    report = _build_dive_report(db, dive_id)
    return _pdf_response(render_dive_report(report), report_filename(report))


@router.post("/dives/{dive_id}/share", response_model=ShareOut)
def share_dive_report(
    dive_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Publish the PDF to object storage and return a time-limited link.

    When storage is not configured or the upload fails, answer with the
    direct-download URL instead; the caller falls back to downloading."""
    report = _build_dive_report(db, dive_id)
    filename = report_filename(report)
    download_url = str(request.url_for("dive_report_pdf", dive_id=dive_id))

    if not is_configured():
        return ShareOut(shared=False, filename=filename, url=download_url, dive_id=dive_id)

    try:
        object_key, url = publish_report(render_dive_report(report), dive_id, filename)
    except Exception:
        logger.exception("Failed to publish report for dive %s", dive_id)
        return ShareOut(shared=False, filename=filename, url=download_url, dive_id=dive_id)

    log_event(db, current_user, A.REPORT_SHARE, resource_type="dive", resource_id=dive_id,
              detail={"object_key": object_key}, request=request)
    db.commit()
    return ShareOut(shared=True, filename=filename, url=url, dive_id=dive_id)


# ── log editing from the report ───────────────────────────────────────────────

@router.post("/dives/{dive_id}/events", response_model=DiveEventOut, status_code=status.HTTP_201_CREATED)
def add_report_entry(
    dive_id: UUID,
    body: ReportEventEntry,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor),
):
    """Add a log line by wall-clock time; it lands on the dive's own date."""
    dive = db.get(Dive, dive_id)
    if not dive:
        raise HTTPException(status_code=404, detail="Dive not found")
    base = datetime.combine(dive.date, datetime.min.time(), tzinfo=timezone.utc)
    try:
        event_time = combine_clock_time(base, body.time)
    except ValueError:
        raise HTTPException(status_code=422, detail="time must be a valid HH:MM[:SS]")
    event = DiveEvent(
        dive_id=dive_id,
        event_time=event_time,
        depth=body.depth,
        event_type=body.event_type,
        description=body.description,
    )
    db.add(event)
    refresh_max_depth(db, dive)
    log_event(db, current_user, A.EVENT_CREATE, resource_type="dive_event", resource_id=event.id, request=request)
    db.commit()
    db.refresh(event)
    return event


@router.put("/events/{event_id}", response_model=DiveEventOut)
def edit_report_entry(
    event_id: UUID,
    body: ReportEventEntry,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor),
):
    """Edit a log line; the event keeps its original calendar day."""
    event = db.get(DiveEvent, event_id)
    if not event:
        raise HTTPException(status_code=404, detail="Dive event not found")
    try:
        event.event_time = combine_clock_time(event.event_time, body.time)
    except ValueError:
        raise HTTPException(status_code=422, detail="time must be a valid HH:MM[:SS]")
    event.depth = body.depth
    event.event_type = body.event_type
    event.description = body.description
    refresh_max_depth(db, db.get(Dive, event.dive_id))
    log_event(db, current_user, A.EVENT_UPDATE, resource_type="dive_event", resource_id=event_id, request=request)
    db.commit()
    db.refresh(event)
    return event
