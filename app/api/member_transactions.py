import datetime as dt
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select
from uuid import UUID
from typing import Optional

from app.core.clock import get_today
from app.core.security import get_current_user
from app.database import get_session
from app.models.member import MemberTransaction
from app.schemas.member import (
    MemberLedgerSummary,
    MemberSettle,
    MemberTransactionCreate,
    MemberTransactionList,
    MemberTransactionRead,
)
from app.services.member_ledger import (
    OWED_TO_USER,
    delete_entry,
    get_owned_entry,
    record_entry,
    settle_entry,
    unsettle_entry,
)

router = APIRouter(prefix="/member-transactions", tags=["members"])


@router.get("/", response_model=MemberTransactionList)
def list_member_transactions(
    member_id: Optional[int] = Query(None),
    is_settled: Optional[bool] = Query(None),
    limit: int = Query(50, ge=1, le=500),
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    query = select(MemberTransaction).where(MemberTransaction.user_id == user_id)
    if member_id is not None:
        query = query.where(MemberTransaction.member_id == member_id)
    if is_settled is not None:
        query = query.where(MemberTransaction.is_settled == is_settled)
    entries = session.exec(
        query.order_by(MemberTransaction.date.desc(), MemberTransaction.id.desc()).limit(limit)
    ).all()

    summary = MemberLedgerSummary(total_transactions=len(entries))
    for entry in entries:
        if entry.is_settled:
            summary.settled_count += 1
            continue
        summary.unsettled_count += 1
        if entry.transaction_type in OWED_TO_USER:
            summary.total_owed_to_you += entry.amount
        else:
            summary.total_you_owe += entry.amount
    summary.net_balance = round(summary.total_owed_to_you - summary.total_you_owe, 2)

    return MemberTransactionList(
        transactions=[MemberTransactionRead.model_validate(e) for e in entries],
        summary=summary,
    )


@router.post("/", response_model=MemberTransactionRead, status_code=201)
def create_member_transaction(
    data: MemberTransactionCreate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    entry = record_entry(session, user_id, **data.model_dump())
    session.commit()
    session.refresh(entry)
    return entry


@router.get("/{entry_id}", response_model=MemberTransactionRead)
def get_member_transaction(
    entry_id: int,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return get_owned_entry(session, user_id, entry_id)


@router.delete("/{entry_id}")
def delete_member_transaction(
    entry_id: int,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    delete_entry(session, user_id, entry_id)
    session.commit()
    return {"message": "Transaction deleted"}


@router.post("/{entry_id}/settle", response_model=MemberTransactionRead)
def settle_member_transaction(
    entry_id: int,
    data: MemberSettle,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
    today: dt.date = Depends(get_today),
):
    entry = settle_entry(
        session,
        user_id,
        entry_id,
        today=today,
        settled_amount=data.settled_amount,
        notes=data.settled_notes,
    )
    session.commit()
    session.refresh(entry)
    return entry


@router.post("/{entry_id}/unsettle", response_model=MemberTransactionRead)
def unsettle_member_transaction(
    entry_id: int,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    entry = unsettle_entry(session, user_id, entry_id)
    session.commit()
    session.refresh(entry)
    return entry
