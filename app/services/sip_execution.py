"""Daily SIP run: buys units for every SIP due today."""
import datetime as dt
import logging
from typing import Optional

from sqlalchemy import or_
from sqlmodel import Session, select

from app.core.errors import ValidationError
from app.models.enums import Currency, InvestmentBucket, SIPExecutionStatus, SIPFrequency, TransactionType
from app.models.sip import SIP, SIPExecution
from app.schemas.sip import SIPExecutionStats
from app.services.cost_basis import record_transaction
from app.services.prices import PriceLookup

logger = logging.getLogger(__name__)


def is_due(sip: SIP, today: dt.date) -> bool:
    if sip.frequency == SIPFrequency.MONTHLY:
        return today.day == sip.start_date.day
    if sip.frequency == SIPFrequency.YEARLY:
        return today.day == sip.start_date.day and today.month == sip.start_date.month
    return sip.custom_day == today.day


def already_executed(session: Session, sip: SIP, today: dt.date) -> bool:
    return session.exec(
        select(SIPExecution.id).where(
            SIPExecution.sip_id == sip.id,
            SIPExecution.execution_date == today,
        )
    ).first() is not None


def execute_sip(session: Session, sip: SIP, today: dt.date, lookup: PriceLookup) -> SIPExecution:
    """Buy ``amount / price`` units and log the execution, without committing.

    A SIP with no symbol has nothing to buy; it is logged as a successful
    execution only.
    """
    execution = SIPExecution(
        sip_id=sip.id,
        user_id=sip.user_id,
        execution_date=today,
        amount=sip.amount,
        status=SIPExecutionStatus.SUCCESS,
    )

    if sip.symbol and sip.bucket != InvestmentBucket.EMERGENCY_FUND:
        currency = Currency.USD if sip.bucket == InvestmentBucket.US_STOCK else Currency.INR
        rate: Optional[float] = None
        spend = sip.amount
        if currency == Currency.USD:
            rate = lookup.get_usd_inr_rate()
            spend = sip.amount / rate

        price = lookup.get_price(sip.symbol, sip.bucket, currency)
        if price <= 0:
            raise ValidationError(f"No price available for {sip.symbol}")
        qty = spend / price

        tx = record_transaction(
            session,
            sip.user_id,
            bucket=sip.bucket,
            symbol=sip.symbol,
            name=sip.name,
            qty=qty,
            price=price,
            transaction_type=TransactionType.SIP_EXECUTION,
            purchase_date=today,
            currency=currency,
            usd_inr_rate=rate,
            amount_inr=sip.amount if currency == Currency.USD else None,
            description=f"SIP execution for {sip.name}",
            current_price=price,
            commit=False,
        )
        execution.holding_id = tx.holding_id
        execution.qty = qty
        execution.price = price

    session.add(execution)
    session.flush()
    return execution


def run_sip_executions(session: Session, today: dt.date, lookup: PriceLookup) -> SIPExecutionStats:
    sips = session.exec(
        select(SIP).where(
            SIP.is_active == True,
            SIP.start_date <= today,
            or_(SIP.end_date == None, SIP.end_date >= today),
        )
    ).all()
    stats = SIPExecutionStats(execution_date=today, total=len(sips))

    logger.info("Running SIP execution for %s (%d active SIPs)", today, len(sips))

    for sip in sips:
        # Read up front: a rollback expires the instance
        sip_id, user_id, amount = sip.id, sip.user_id, sip.amount

        if not is_due(sip, today) or already_executed(session, sip, today):
            stats.skipped += 1
            continue

        try:
            execute_sip(session, sip, today, lookup)
            session.commit()
        except Exception as exc:
            session.rollback()
            stats.failed += 1
            stats.errors.append(f"SIP {sip_id}: {exc}")
            logger.exception("Failed to execute SIP %s", sip_id)

            session.add(
                SIPExecution(
                    sip_id=sip_id,
                    user_id=user_id,
                    execution_date=today,
                    amount=amount,
                    status=SIPExecutionStatus.FAILED,
                    error_message=str(exc),
                )
            )
            session.commit()
            continue

        stats.executed += 1
        logger.info("Executed SIP %s for user %s", sip_id, user_id)

    logger.info(
        "SIP execution complete: %d executed, %d skipped, %d failed",
        stats.executed, stats.skipped, stats.failed,
    )
    return stats
