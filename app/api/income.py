from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select
from uuid import UUID
from typing import List, Optional

from app.core.security import get_current_user
from app.database import get_session
from app.models.income import Income
from app.schemas.income import IncomeCreate, IncomeRead, IncomeUpdate
from app.services.member_ledger import settlement_entry_for
from app.services.monthly_aggregator import month_bounds
from app.services.period_guard import ensure_month_open

router = APIRouter(prefix="/income", tags=["income"])


def _get_owned_income(session: Session, user_id: UUID, income_id: int) -> Income:
    income = session.exec(select(Income).where(Income.id == income_id, Income.user_id == user_id)).first()
    if not income:
        raise HTTPException(status_code=404, detail="Income not found")
    return income


def _ensure_not_settlement(session: Session, income: Income) -> None:
    if settlement_entry_for(session, income_id=income.id) is not None:
        raise HTTPException(status_code=400, detail="This income was booked by a member settlement; unsettle it instead.")


@router.get("/", response_model=List[IncomeRead])
def list_income(
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    query = select(Income).where(Income.user_id == user_id)
    if year and month:
        start, end = month_bounds(year, month)
        query = query.where(Income.date >= start, Income.date <= end)
    return session.exec(query.order_by(Income.date.desc())).all()


@router.post("/", response_model=IncomeRead)
def create_income(
    data: IncomeCreate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_month_open(session, user_id, data.date, "add income")

    income = Income(**data.model_dump(), user_id=user_id)
    session.add(income)
    session.commit()
    session.refresh(income)
    return income


@router.put("/{income_id}", response_model=IncomeRead)
def update_income(
    income_id: int,
    data: IncomeUpdate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    income = _get_owned_income(session, user_id, income_id)
    _ensure_not_settlement(session, income)
    ensure_month_open(session, user_id, income.date, "update income")
    if data.date is not None and data.date != income.date:
        ensure_month_open(session, user_id, data.date, "move income")

    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(income, field, value)
    session.add(income)
    session.commit()
    session.refresh(income)
    return income


@router.delete("/{income_id}")
def delete_income(
    income_id: int,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    income = _get_owned_income(session, user_id, income_id)
    _ensure_not_settlement(session, income)
    ensure_month_open(session, user_id, income.date, "delete income")

    session.delete(income)
    session.commit()
    return {"message": "Income deleted"}
