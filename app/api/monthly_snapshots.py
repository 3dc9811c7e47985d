import datetime as dt
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select
from uuid import UUID
from typing import List, Optional

from app.core.clock import get_now, get_today
from app.core.security import get_current_user
from app.database import get_session
from app.models.monthly_snapshot import MonthlySnapshot
from app.schemas.monthly_snapshot import MonthlySnapshotPreview, MonthlySnapshotRead
from app.services.monthly_aggregator import calculate_monthly_data
from app.services.snapshot_store import get_snapshot, refresh_open_snapshot

router = APIRouter(prefix="/monthly-snapshots", tags=["monthly-snapshots"])


@router.get("/", response_model=List[MonthlySnapshotRead])
def list_snapshots(
    year: Optional[int] = Query(None),
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    query = select(MonthlySnapshot).where(MonthlySnapshot.user_id == user_id)
    if year:
        query = query.where(MonthlySnapshot.year == year)
    return session.exec(query.order_by(MonthlySnapshot.year.desc(), MonthlySnapshot.month.desc())).all()


@router.get("/current", response_model=MonthlySnapshotPreview)
def current_month_preview(
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
    today: dt.date = Depends(get_today),
):
    """Live figures for the running month; nothing is stored."""
    data = calculate_monthly_data(session, user_id, today.year, today.month)
    existing = get_snapshot(session, user_id, today.year, today.month)
    return MonthlySnapshotPreview(
        **data.model_dump(),
        year=today.year,
        month=today.month,
        is_closed=bool(existing and existing.is_closed),
    )


@router.post("/current/refresh", response_model=MonthlySnapshotRead)
def refresh_current_month(
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
    today: dt.date = Depends(get_today),
    now: dt.datetime = Depends(get_now),
):
    return refresh_open_snapshot(session, user_id, today.year, today.month, now=now)


@router.get("/{year}/{month}", response_model=MonthlySnapshotRead)
def get_month_snapshot(
    year: int,
    month: int,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    if not 1 <= month <= 12:
        raise HTTPException(status_code=400, detail="month must be between 1 and 12")
    snapshot = get_snapshot(session, user_id, year, month)
    if not snapshot:
        raise HTTPException(status_code=404, detail="No snapshot for this month")
    return snapshot
