from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select
from uuid import UUID
from typing import List, Optional

from app.core.security import get_current_user
from app.database import get_session
from app.models.expense import Expense
from app.schemas.expense import ExpenseCreate, ExpenseRead
from app.services.member_ledger import apply_expense, reverse_expense, settlement_entry_for
from app.services.monthly_aggregator import month_bounds
from app.services.period_guard import ensure_month_open

router = APIRouter(prefix="/expenses", tags=["expenses"])


def _get_owned_expense(session: Session, user_id: UUID, expense_id: int) -> Expense:
    expense = session.exec(select(Expense).where(Expense.id == expense_id, Expense.user_id == user_id)).first()
    if not expense:
        raise HTTPException(status_code=404, detail="Expense not found")
    return expense


def _ensure_not_settlement(session: Session, expense: Expense) -> None:
    if settlement_entry_for(session, expense_id=expense.id) is not None:
        raise HTTPException(status_code=400, detail="This expense was booked by a member settlement; unsettle it instead.")


@router.get("/", response_model=List[ExpenseRead])
def list_expenses(
    year: Optional[int] = Query(None),
    month: Optional[int] = Query(None, ge=1, le=12),
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    query = select(Expense).where(Expense.user_id == user_id)
    if year and month:
        start, end = month_bounds(year, month)
        query = query.where(Expense.date >= start, Expense.date <= end)
    return session.exec(query.order_by(Expense.date.desc(), Expense.id.desc())).all()


@router.post("/", response_model=ExpenseRead)
def create_expense(
    data: ExpenseCreate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_month_open(session, user_id, data.date, "add expenses")

    expense = Expense(**data.model_dump(), user_id=user_id)
    session.add(expense)
    session.flush()
    apply_expense(session, user_id, expense)
    session.commit()
    session.refresh(expense)
    return expense


@router.put("/{expense_id}", response_model=ExpenseRead)
def update_expense(
    expense_id: int,
    data: ExpenseCreate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    expense = _get_owned_expense(session, user_id, expense_id)
    _ensure_not_settlement(session, expense)
    ensure_month_open(session, user_id, expense.date, "update expenses")
    if data.date != expense.date:
        ensure_month_open(session, user_id, data.date, "move expenses")

    # Member balance: undo the old entry, then book the new one, same commit
    reverse_expense(session, expense)
    for field, value in data.model_dump().items():
        setattr(expense, field, value)
    session.add(expense)
    apply_expense(session, user_id, expense)

    session.commit()
    session.refresh(expense)
    return expense


@router.delete("/{expense_id}")
def delete_expense(
    expense_id: int,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    expense = _get_owned_expense(session, user_id, expense_id)
    _ensure_not_settlement(session, expense)
    ensure_month_open(session, user_id, expense.date, "delete expenses")

    reverse_expense(session, expense)
    session.delete(expense)
    session.commit()
    return {"message": "Expense deleted"}
