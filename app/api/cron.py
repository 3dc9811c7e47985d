import datetime as dt
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from typing import Optional

from app.core.clock import get_now, get_today
from app.core.security import verify_cron_secret
from app.database import get_session
from app.schemas.monthly_snapshot import ClosureStats
from app.schemas.sip import SIPExecutionStats
from app.services.prices import PriceLookup, get_price_lookup
from app.services.sip_execution import run_sip_executions
from app.services.snapshot_store import close_month_for_all_users, period_before

router = APIRouter(prefix="/cron", tags=["cron"], dependencies=[Depends(verify_cron_secret)])


@router.post("/monthly-snapshot", response_model=ClosureStats)
def monthly_snapshot(
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
    session: Session = Depends(get_session),
    today: dt.date = Depends(get_today),
    now: dt.datetime = Depends(get_now),
):
    """Close the previous month for every user (or an explicit year/month)."""
    if year is None or month is None:
        year, month = period_before(today)
    return close_month_for_all_users(session, year, month, now=now)


@router.post("/sip-execution", response_model=SIPExecutionStats)
def sip_execution(
    session: Session = Depends(get_session),
    today: dt.date = Depends(get_today),
    lookup: PriceLookup = Depends(get_price_lookup),
):
    return run_sip_executions(session, today, lookup)
