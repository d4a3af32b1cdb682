from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from divelog.auth.dependencies import get_current_user, require_supervisor
from divelog.database import get_db
from divelog.models.audit_log import A
from divelog.models.rank import Rank
from divelog.models.user import User
from divelog.schemas.rank import RankCreate, RankOut
from divelog.utils.audit import log_event

router = APIRouter(prefix="/ranks", tags=["ranks"])


@router.get("", response_model=List[RankOut])
def list_ranks(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return db.query(Rank).order_by(Rank.name).all()


@router.get("/names", response_model=List[str])
def list_rank_names(
    db: Session = Depends(get_db),
    _: User = Depends(get_current_user),
):
    return [name for (name,) in db.query(Rank.name).order_by(Rank.name).all()]


@router.post("", response_model=RankOut, status_code=status.HTTP_201_CREATED)
def create_rank(
    body: RankCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor),
):
    if db.query(Rank).filter(Rank.name == body.name).first():
        raise HTTPException(status_code=409, detail="Rank already exists")
    rank = Rank(name=body.name)
    db.add(rank)
    db.flush()
    log_event(db, current_user, A.RANK_CREATE, resource_type="rank", resource_id=rank.id, request=request)
    db.commit()
    db.refresh(rank)
    return rank


@router.delete("/{rank_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_rank(
    rank_id: UUID,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_supervisor),
):
    rank = db.get(Rank, rank_id)
    if not rank:
        raise HTTPException(status_code=404, detail="Rank not found")
    log_event(db, current_user, A.RANK_DELETE, resource_type="rank", resource_id=rank_id, request=request)
    db.delete(rank)
    db.commit()
