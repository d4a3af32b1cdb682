from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from divelog.auth.dependencies import get_current_user, require_supervisor
from divelog.database import get_db
from divelog.models.audit_log import A
from divelog.models.dive import Dive
from divelog.models.diver import Diver
from divelog.models.user import User
from divelog.schemas.diver import DiverCreate, DiverOut, DiverUpdate
from divelog.utils.audit import log_event

router = APIRouter(prefix="/divers", tags=["divers"])


def _get_or_404(db: Session, diver_id: UUID) -> Diver:
    diver = db.get(Diver, diver_id)
    if not diver:
        raise HTTPException(status_code=404, detail="Diver not found")
    return diver


@router.get("", response_model=List[DiverOut])
def list_divers(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return db.query(Diver).order_by(Diver.full_name).all()


@router.get("/{diver_id}", response_model=DiverOut)
def get_diver(
    diver_id: UUID,
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return _get_or_404(db, diver_id)


@router.post("", response_model=DiverOut, status_code=status.HTTP_201_CREATED)
def create_diver(
    body: DiverCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor),
):
    diver = Diver(**body.model_dump())
    db.add(diver)
    db.flush()
    log_event(db, current_user, A.DIVER_CREATE, resource_type="diver", resource_id=diver.id, request=request)
    db.commit()
    db.refresh(diver)
    return diver


@router.put("/{diver_id}", response_model=DiverOut)
def update_diver(
    diver_id: UUID,
    body: DiverUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor),
):
    diver = _get_or_404(db, diver_id)
    for field, value in body.model_dump(exclude_unset=True).items():
        setattr(diver, field, value)
    log_event(db, current_user, A.DIVER_UPDATE, resource_type="diver", resource_id=diver_id, request=request)
    db.commit()
    db.refresh(diver)
    return diver


@router.delete("/{diver_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_diver(
    diver_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor),
):
    diver = _get_or_404(db, diver_id)
    if db.query(Dive.id).filter(Dive.diver_id == diver_id).first():
        raise HTTPException(status_code=409, detail="Diver appears in dive logs and cannot be deleted")
    log_event(db, current_user, A.DIVER_DELETE, resource_type="diver", resource_id=diver_id, request=request)
    db.delete(diver)
    db.commit()
