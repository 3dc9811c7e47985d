import logging
from typing import Dict, List, Optional
from uuid import UUID

from sqlmodel import Session, select

from app.core.clock import utcnow
from app.core.errors import PriceUnavailableError
from app.models.enums import Currency, InvestmentBucket
from app.models.holding import Holding
from app.schemas.holding import BucketHoldings, HoldingValuation, PortfolioSummary, PriceRefreshResult
from app.services.prices import PriceLookup

logger = logging.getLogger(__name__)


def value_holding(holding: Holding, usd_inr_rate: Optional[float] = None) -> HoldingValuation:
    """Investment, current value and P&L of one holding.

    ``*_inr`` figures convert USD holdings with the holding's own weighted
    purchase rate for cost and ``usd_inr_rate`` (falling back to the same
    weighted rate) for market value.
    """
    investment = holding.qty * holding.avg_cost
    price = holding.current_price if holding.current_price is not None else holding.avg_cost
    current_value = holding.qty * price

    if holding.currency == Currency.USD:
        cost_rate = holding.usd_inr_rate or usd_inr_rate or 1.0
        market_rate = usd_inr_rate or cost_rate
        investment_inr = investment * cost_rate
        current_value_inr = current_value * market_rate
    else:
        investment_inr = investment
        current_value_inr = current_value

    pnl = current_value_inr - investment_inr
    return HoldingValuation(
        id=holding.id,
        bucket=holding.bucket,
        symbol=holding.symbol,
        name=holding.name,
        qty=holding.qty,
        avg_cost=holding.avg_cost,
        current_price=holding.current_price,
        currency=holding.currency,
        usd_inr_rate=holding.usd_inr_rate,
        is_manual=holding.is_manual,
        investment=round(investment, 2),
        current_value=round(current_value, 2),
        investment_inr=round(investment_inr, 2),
        current_value_inr=round(current_value_inr, 2),
        pnl=round(pnl, 2),
        pnl_percent=round(pnl / investment_inr * 100, 2) if investment_inr else 0.0,
        updated_at=holding.updated_at,
    )


def list_holdings(session: Session, user_id: UUID, bucket: Optional[InvestmentBucket] = None) -> List[Holding]:
    query = select(Holding).where(Holding.user_id == user_id)
    if bucket is not None:
        query = query.where(Holding.bucket == bucket)
    return session.exec(query.order_by(Holding.bucket, Holding.symbol)).all()


def portfolio_summary(
    session: Session,
    user_id: UUID,
    usd_inr_rate: Optional[float] = None,
) -> PortfolioSummary:
    grouped: Dict[InvestmentBucket, List[HoldingValuation]] = {}
    for holding in list_holdings(session, user_id):
        grouped.setdefault(holding.bucket, []).append(value_holding(holding, usd_inr_rate))

    buckets = []
    for bucket, items in grouped.items():
        investment = sum(i.investment_inr for i in items)
        current = sum(i.current_value_inr for i in items)
        buckets.append(
            BucketHoldings(
                bucket=bucket,
                holdings=items,
                total_investment=round(investment, 2),
                total_current_value=round(current, 2),
                pnl=round(current - investment, 2),
            )
        )

    total_investment = sum(b.total_investment for b in buckets)
    total_current = sum(b.total_current_value for b in buckets)
    pnl = total_current - total_investment
    return PortfolioSummary(
        buckets=buckets,
        total_investment=round(total_investment, 2),
        total_current_value=round(total_current, 2),
        pnl=round(pnl, 2),
        pnl_percent=round(pnl / total_investment * 100, 2) if total_investment else 0.0,
    )


def refresh_prices(session: Session, user_id: UUID, lookup: PriceLookup) -> PriceRefreshResult:
    """Pull a fresh price for every priced holding of the user.

    A failed lookup leaves that holding's last price in place and the batch
    moves on; emergency-fund holdings have no market price and are skipped.
    """
    result = PriceRefreshResult()
    now = utcnow()

    for holding in list_holdings(session, user_id):
        if holding.bucket == InvestmentBucket.EMERGENCY_FUND:
            result.skipped += 1
            continue

        try:
            price = lookup.get_price(holding.symbol, holding.bucket, holding.currency)
        except PriceUnavailableError as exc:
            result.failed += 1
            result.errors.append(f"{holding.symbol}: {exc.message}")
            continue

        holding.current_price = price
        holding.updated_at = now
        session.add(holding)
        result.updated += 1

    session.commit()
    logger.info(
        "Price refresh for user %s: %d updated, %d failed, %d skipped",
        user_id, result.updated, result.failed, result.skipped,
    )
    return result
