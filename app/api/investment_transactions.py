from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select
from uuid import UUID
from typing import List, Optional

from app.core.security import get_current_user
from app.database import get_session
from app.models.enums import InvestmentBucket, TransactionType
from app.models.transaction import Transaction
from app.schemas.transaction import TransactionRead, TransactionUpdate
from app.services.cost_basis import delete_transaction, edit_transaction, get_owned_transaction

router = APIRouter(prefix="/investments/transactions", tags=["investment-transactions"])


@router.get("/", response_model=List[TransactionRead])
def list_transactions(
    bucket: Optional[InvestmentBucket] = Query(None),
    holding_id: Optional[int] = Query(None),
    transaction_type: Optional[TransactionType] = Query(None),
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    query = select(Transaction).where(Transaction.user_id == user_id)
    if bucket:
        query = query.where(Transaction.bucket == bucket)
    if holding_id:
        query = query.where(Transaction.holding_id == holding_id)
    if transaction_type:
        query = query.where(Transaction.transaction_type == transaction_type)
    return session.exec(query.order_by(Transaction.purchase_date.desc(), Transaction.id.desc())).all()


@router.get("/{transaction_id}", response_model=TransactionRead)
def get_transaction(
    transaction_id: int,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return get_owned_transaction(session, user_id, transaction_id)


@router.patch("/{transaction_id}", response_model=TransactionRead)
def update_transaction(
    transaction_id: int,
    data: TransactionUpdate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    return edit_transaction(session, user_id, transaction_id, **data.model_dump(exclude_unset=True))


@router.delete("/{transaction_id}")
def remove_transaction(
    transaction_id: int,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    holding_deleted = delete_transaction(session, user_id, transaction_id)
    return {"message": "Transaction deleted", "holding_deleted": holding_deleted}
