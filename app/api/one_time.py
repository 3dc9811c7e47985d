import datetime as dt
import logging
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session, select
from uuid import UUID
from typing import List, Optional

from app.core.clock import get_today
from app.core.errors import PriceUnavailableError
from app.core.security import get_current_user
from app.database import get_session
from app.models.enums import Currency, InvestmentBucket, TransactionType
from app.models.transaction import Transaction
from app.schemas.transaction import OneTimePurchaseCreate, TransactionRead
from app.services.allocation import bucket_availability, ensure_purchase_fits
from app.services.cost_basis import record_transaction
from app.services.prices import PriceLookup, get_price_lookup

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/investments/one-time", tags=["one-time-purchases"])


@router.get("/", response_model=List[TransactionRead])
def list_one_time_purchases(
    bucket: Optional[InvestmentBucket] = Query(None),
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    query = select(Transaction).where(
        Transaction.user_id == user_id,
        Transaction.transaction_type == TransactionType.ONE_TIME_PURCHASE,
    )
    if bucket:
        query = query.where(Transaction.bucket == bucket)
    return session.exec(query.order_by(Transaction.purchase_date.desc(), Transaction.id.desc())).all()


@router.post("/", response_model=TransactionRead)
def create_one_time_purchase(
    data: OneTimePurchaseCreate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
    today: dt.date = Depends(get_today),
    lookup: PriceLookup = Depends(get_price_lookup),
):
    """Buy outside any SIP, as long as the bucket's allocation for the purchase month has room."""
    purchase_date = data.purchase_date or today
    rate = data.usd_inr_rate
    if data.currency == Currency.USD and rate is None:
        rate = lookup.get_usd_inr_rate()

    amount = data.qty * data.price
    amount_inr = amount * rate if data.currency == Currency.USD else amount

    availability = bucket_availability(session, user_id, data.bucket, purchase_date)
    ensure_purchase_fits(availability, amount_inr)

    try:
        current_price = lookup.get_price(data.symbol, data.bucket, data.currency)
    except PriceUnavailableError as exc:
        logger.warning("No current price for %s: %s", data.symbol, exc.message)
        current_price = None

    return record_transaction(
        session,
        user_id,
        bucket=data.bucket,
        symbol=data.symbol,
        name=data.name,
        qty=data.qty,
        price=data.price,
        transaction_type=TransactionType.ONE_TIME_PURCHASE,
        purchase_date=purchase_date,
        currency=data.currency,
        usd_inr_rate=rate if data.currency == Currency.USD else None,
        description=data.description,
        current_price=current_price,
    )
