import datetime as dt
from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select
from uuid import UUID
from typing import List, Optional

from app.core.clock import get_today, utcnow
from app.core.security import get_current_user
from app.database import get_session
from app.models.borrowed_fund import BorrowedFund
from app.schemas.borrowed_fund import BorrowedFundCreate, BorrowedFundRead, BorrowedFundReturn, BorrowedFundUpdate
from app.services.borrowed_funds import apply_return, link_investments, recompute
from app.services.member_ledger import get_owned_member
from app.services.period_guard import ensure_month_open

router = APIRouter(prefix="/borrowed-funds", tags=["borrowed-funds"])


def _get_owned_fund(session: Session, user_id: UUID, fund_id: int) -> BorrowedFund:
    fund = session.exec(select(BorrowedFund).where(BorrowedFund.id == fund_id, BorrowedFund.user_id == user_id)).first()
    if not fund:
        raise HTTPException(status_code=404, detail="Borrowed fund not found")
    return fund


@router.get("/", response_model=List[BorrowedFundRead])
def list_borrowed_funds(
    include_returned: bool = Query(True),
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    query = select(BorrowedFund).where(BorrowedFund.user_id == user_id)
    if not include_returned:
        query = query.where(BorrowedFund.is_fully_returned == False)
    return session.exec(query.order_by(BorrowedFund.borrowed_date.desc())).all()


@router.post("/", response_model=BorrowedFundRead)
def create_borrowed_fund(
    data: BorrowedFundCreate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    ensure_month_open(session, user_id, data.borrowed_date, "record borrowed funds")
    if data.member_id is not None:
        get_owned_member(session, user_id, data.member_id)

    fund = BorrowedFund(**data.model_dump(exclude={"transaction_ids", "sip_execution_ids"}), user_id=user_id)
    link_investments(session, fund, data.transaction_ids, data.sip_execution_ids)
    recompute(session, fund)
    session.add(fund)
    session.commit()
    session.refresh(fund)
    return fund


@router.get("/{fund_id}", response_model=BorrowedFundRead)
def get_borrowed_fund(fund_id: int, user_id: UUID = Depends(get_current_user), session: Session = Depends(get_session)):
    return _get_owned_fund(session, user_id, fund_id)


@router.put("/{fund_id}", response_model=BorrowedFundRead)
def update_borrowed_fund(
    fund_id: int,
    data: BorrowedFundUpdate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    fund = _get_owned_fund(session, user_id, fund_id)
    ensure_month_open(session, user_id, fund.borrowed_date, "update borrowed funds")
    if data.borrowed_date is not None and data.borrowed_date != fund.borrowed_date:
        ensure_month_open(session, user_id, data.borrowed_date, "move borrowed funds")

    changes = data.model_dump(exclude_unset=True, exclude={"transaction_ids", "sip_execution_ids"})
    if changes.get("borrowed_amount") is not None and changes["borrowed_amount"] < fund.returned_amount:
        raise HTTPException(status_code=400, detail="Borrowed amount cannot be less than what was already returned")
    for field, value in changes.items():
        setattr(fund, field, value)

    if data.transaction_ids is not None or data.sip_execution_ids is not None:
        link_investments(
            session,
            fund,
            data.transaction_ids if data.transaction_ids is not None else fund.transaction_ids,
            data.sip_execution_ids if data.sip_execution_ids is not None else fund.sip_execution_ids,
        )

    recompute(session, fund)
    fund.is_fully_returned = fund.borrowed_amount - fund.returned_amount <= 0.005
    fund.updated_at = utcnow()
    session.add(fund)
    session.commit()
    session.refresh(fund)
    return fund


@router.post("/{fund_id}/return", response_model=BorrowedFundRead)
def return_borrowed_fund(
    fund_id: int,
    data: BorrowedFundReturn,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
    today: dt.date = Depends(get_today),
):
    fund = _get_owned_fund(session, user_id, fund_id)
    return_date = data.return_date or today
    ensure_month_open(session, user_id, return_date, "return borrowed funds")

    apply_return(fund, data.amount)
    if fund.is_fully_returned:
        fund.actual_return_date = return_date
    fund.updated_at = utcnow()
    session.add(fund)
    session.commit()
    session.refresh(fund)
    return fund


@router.delete("/{fund_id}")
def delete_borrowed_fund(fund_id: int, user_id: UUID = Depends(get_current_user), session: Session = Depends(get_session)):
    fund = _get_owned_fund(session, user_id, fund_id)
    ensure_month_open(session, user_id, fund.borrowed_date, "delete borrowed funds")

    session.delete(fund)
    session.commit()
    return {"message": "Borrowed fund deleted"}
