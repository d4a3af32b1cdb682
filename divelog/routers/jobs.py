from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from divelog.auth.dependencies import get_current_user, require_supervisor
from divelog.database import get_db
from divelog.models.audit_log import A
from divelog.models.dive import Dive
from divelog.models.job import Job, JobStatus
from divelog.models.user import User
from divelog.schemas.dive import DiveSummary
from divelog.schemas.job import JobCreate, JobOut, JobUpdate
from divelog.utils.audit import log_event
from divelog.utils.dives import summarize

router = APIRouter(prefix="/jobs", tags=["jobs"])


def _get_or_404(db: Session, job_id: UUID) -> Job:
    job = db.get(Job, job_id)
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


@router.get("", response_model=List[JobOut])
def list_jobs(
    status: Optional[JobStatus] = None,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    query = db.query(Job)
    if status is not None:
        query = query.filter(Job.status == status)
    return query.order_by(Job.created_at.desc()).all()


@router.get("/{job_id}", response_model=JobOut)
def get_job(
    job_id: UUID,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return _get_or_404(db, job_id)


@router.get("/{job_id}/dives", response_model=List[DiveSummary])
def list_job_dives(
    job_id: UUID,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    """Dive history for a job, most recently created first."""
    _get_or_404(db, job_id)
    dives = (
        db.query(Dive)
        .filter(Dive.job_id == job_id)
        .order_by(Dive.created_at.desc(), Dive.dive_no.desc())
        .all()
    )
    return summarize(db, dives)


@router.post("", response_model=JobOut, status_code=status.HTTP_201_CREATED)
def create_job(
    body: JobCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor),
):
    job = Job(**body.model_dump())
    db.add(job)
    db.flush()
    log_event(db, current_user, A.JOB_CREATE, resource_type="job", resource_id=job.id, request=request)
    db.commit()
    db.refresh(job)
    return job


@router.put("/{job_id}", response_model=JobOut)
def update_job(
    job_id: UUID,
    body: JobUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor),
):
    job = _get_or_404(db, job_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(job, field, value)
    log_event(db, current_user, A.JOB_UPDATE, resource_type="job", resource_id=job_id, request=request)
    db.commit()
    db.refresh(job)
    return job


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_job(
    job_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor),
):
    job = _get_or_404(db, job_id)
    if db.query(Dive.id).filter(Dive.job_id == job_id).first():
        raise HTTPException(status_code=409, detail="Job has logged dives; mark it completed or cancelled instead")
    log_event(db, current_user, A.JOB_DELETE, resource_type="job", resource_id=job_id, request=request)
    db.delete(job)
    db.commit()
