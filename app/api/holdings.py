import datetime as dt
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session
from uuid import UUID

from app.core.clock import get_today
from app.core.errors import PriceUnavailableError
from app.core.security import get_current_user
from app.database import get_session
from app.models.enums import TransactionType
from app.schemas.holding import (
    HoldingCreate,
    HoldingRead,
    HoldingUpdate,
    HoldingValuation,
    PortfolioSummary,
    PriceRefreshResult,
)
from app.services.cost_basis import (
    delete_holding,
    find_holding,
    get_owned_holding,
    manual_edit_holding,
    record_transaction,
)
from app.services.prices import PriceLookup, get_price_lookup
from app.services.valuation import portfolio_summary, refresh_prices, value_holding

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/investments/holdings", tags=["holdings"])


def _market_usd_inr(lookup: PriceLookup):
    try:
        return lookup.get_usd_inr_rate()
    except PriceUnavailableError:
        logger.warning("USD/INR rate unavailable, valuing USD holdings at their purchase rate")
        return None


@router.get("/", response_model=PortfolioSummary)
def get_portfolio(
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
    lookup: PriceLookup = Depends(get_price_lookup),
):
    return portfolio_summary(session, user_id, _market_usd_inr(lookup))


@router.post("/", response_model=HoldingRead)
def create_manual_holding(
    data: HoldingCreate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
    today: dt.date = Depends(get_today),
):
    """Record a position bought elsewhere; adds to an existing holding of the same symbol."""
    tx = record_transaction(
        session,
        user_id,
        bucket=data.bucket,
        symbol=data.symbol,
        name=data.name,
        qty=data.qty,
        price=data.avg_cost,
        transaction_type=TransactionType.MANUAL_ENTRY,
        purchase_date=data.purchase_date or today,
        currency=data.currency,
        usd_inr_rate=data.usd_inr_rate,
        description="Manual entry",
        current_price=data.current_price,
        is_manual=data.is_manual,
    )
    return find_holding(session, user_id, data.bucket, tx.symbol)


@router.get("/{holding_id}", response_model=HoldingValuation)
def get_holding(
    holding_id: int,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
    lookup: PriceLookup = Depends(get_price_lookup),
):
    holding = get_owned_holding(session, user_id, holding_id)
    return value_holding(holding, _market_usd_inr(lookup))


@router.put("/{holding_id}", response_model=HoldingRead)
def edit_holding(
    holding_id: int,
    data: HoldingUpdate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
    today: dt.date = Depends(get_today),
):
    if data.qty == 0:
        raise HTTPException(status_code=400, detail="Quantity must be positive; delete the holding instead")
    return manual_edit_holding(session, user_id, holding_id, edit_date=today, **data.model_dump(exclude_unset=True))


@router.delete("/{holding_id}")
def remove_holding(holding_id: int, user_id: UUID = Depends(get_current_user), session: Session = Depends(get_session)):
    delete_holding(session, user_id, holding_id)
    return {"message": "Holding deleted"}


@router.post("/refresh-prices", response_model=PriceRefreshResult)
def refresh_holding_prices(
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
    lookup: PriceLookup = Depends(get_price_lookup),
):
    return refresh_prices(session, user_id, lookup)
