import datetime as dt
import logging
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlmodel import Session, select

from app.core.errors import AllocationExceededError, NotFoundError, ValidationError
from app.models.allocation import InvestmentAllocation
from app.models.enums import AllocationType, InvestmentBucket, TransactionType
from app.models.sip import SIP
from app.models.transaction import Transaction
from app.schemas.allocation import BucketAvailability
from app.services.monthly_aggregator import (
    after_tax_income,
    month_bounds,
    sip_monthly_equivalent,
    total_active_emi,
)

logger = logging.getLogger(__name__)


def find_allocation(session: Session, user_id: UUID, bucket: InvestmentBucket) -> Optional[InvestmentAllocation]:
    return session.exec(
        select(InvestmentAllocation).where(
            InvestmentAllocation.user_id == user_id,
            InvestmentAllocation.bucket == bucket,
        )
    ).first()


def available_for_investment(session: Session, user_id: UUID, today: dt.date) -> float:
    """after-tax salary minus active EMIs, evaluated live for today's month."""
    _, _, after_tax = after_tax_income(session, user_id, today.year, today.month)
    return after_tax - total_active_emi(session, user_id, today.year, today.month)


def allocation_amount(allocation: InvestmentAllocation, investable: float) -> float:
    if allocation.allocation_type == AllocationType.PERCENTAGE and allocation.percent:
        return investable * allocation.percent / 100
    if allocation.allocation_type == AllocationType.AMOUNT and allocation.custom_amount:
        return allocation.custom_amount
    return 0.0


def sip_commitments_by_bucket(session: Session, user_id: UUID) -> Dict[InvestmentBucket, float]:
    sips = session.exec(select(SIP).where(SIP.user_id == user_id, SIP.is_active == True)).all()
    totals: Dict[InvestmentBucket, float] = {}
    for sip in sips:
        totals[sip.bucket] = totals.get(sip.bucket, 0.0) + sip_monthly_equivalent(sip)
    return totals


def one_time_spent_by_bucket(session: Session, user_id: UUID, today: dt.date) -> Dict[InvestmentBucket, float]:
    start, end = month_bounds(today.year, today.month)
    rows = session.exec(
        select(Transaction.bucket, func.sum(func.coalesce(Transaction.amount_inr, Transaction.amount)))
        .where(
            Transaction.user_id == user_id,
            Transaction.transaction_type == TransactionType.ONE_TIME_PURCHASE,
            Transaction.purchase_date >= start,
            Transaction.purchase_date <= end,
        )
        .group_by(Transaction.bucket)
    ).all()
    return {bucket: float(total or 0) for bucket, total in rows}


def _build(
    bucket: InvestmentBucket,
    total_allocation: float,
    existing_sips: float,
    used_this_month: float,
) -> BucketAvailability:
    available_for_one_time = total_allocation - existing_sips
    return BucketAvailability(
        bucket=bucket,
        total_allocation=round(total_allocation, 2),
        existing_sips=round(existing_sips, 2),
        available_for_one_time=round(available_for_one_time, 2),
        used_this_month=round(used_this_month, 2),
        remaining=round(available_for_one_time - used_this_month, 2),
    )


def bucket_availability(
    session: Session,
    user_id: UUID,
    bucket: InvestmentBucket,
    today: dt.date,
) -> BucketAvailability:
    allocation = find_allocation(session, user_id, bucket)
    if not allocation:
        raise NotFoundError(
            f"You must configure allocation for {bucket.value} bucket first."
        )

    investable = available_for_investment(session, user_id, today)
    return _build(
        bucket,
        allocation_amount(allocation, investable),
        sip_commitments_by_bucket(session, user_id).get(bucket, 0.0),
        one_time_spent_by_bucket(session, user_id, today).get(bucket, 0.0),
    )


def all_bucket_availability(session: Session, user_id: UUID, today: dt.date) -> List[BucketAvailability]:
    allocations = session.exec(
        select(InvestmentAllocation).where(InvestmentAllocation.user_id == user_id)
    ).all()
    if not allocations:
        return []

    investable = available_for_investment(session, user_id, today)
    sips = sip_commitments_by_bucket(session, user_id)
    spent = one_time_spent_by_bucket(session, user_id, today)
    return [
        _build(a.bucket, allocation_amount(a, investable), sips.get(a.bucket, 0.0), spent.get(a.bucket, 0.0))
        for a in allocations
    ]


def ensure_purchase_fits(availability: BucketAvailability, amount: float) -> None:
    # Tolerate paise-level rounding in the stored figures
    if amount - availability.remaining > 0.005:
        raise AllocationExceededError(
            bucket=availability.bucket.value,
            total_allocation=availability.total_allocation,
            used=availability.existing_sips + availability.used_this_month,
            remaining=availability.remaining,
            requested=amount,
        )


def replace_allocations(
    session: Session,
    user_id: UUID,
    allocations: List[InvestmentAllocation],
) -> List[InvestmentAllocation]:
    """Swap the user's whole allocation set in one commit."""
    buckets = [a.bucket for a in allocations]
    if len(buckets) != len(set(buckets)):
        raise ValidationError("Each bucket can only be allocated once.")

    total_percent = sum(
        a.percent or 0.0 for a in allocations if a.allocation_type == AllocationType.PERCENTAGE
    )
    if total_percent > 100 + 1e-6:
        raise ValidationError(f"Percentage allocations add up to {total_percent:g}%, which exceeds 100%.")

    existing = session.exec(
        select(InvestmentAllocation).where(InvestmentAllocation.user_id == user_id)
    ).all()
    for row in existing:
        session.delete(row)
    session.flush()

    for allocation in allocations:
        allocation.user_id = user_id
        session.add(allocation)

    session.commit()
    for allocation in allocations:
        session.refresh(allocation)
    logger.info("Replaced %d allocations for user %s", len(allocations), user_id)
    return allocations
