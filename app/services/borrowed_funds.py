import logging
from typing import Iterable, List
from uuid import UUID

from sqlmodel import Session, select

from app.core.errors import ValidationError
from app.models.borrowed_fund import BorrowedFund
from app.models.enums import SIPExecutionStatus
from app.models.sip import SIPExecution
from app.models.transaction import Transaction

logger = logging.getLogger(__name__)


def _owned_ids(session: Session, model, user_id: UUID, ids: Iterable[int]) -> List[int]:
    wanted = sorted(set(ids))
    if not wanted:
        return []
    found = session.exec(
        select(model.id).where(model.id.in_(wanted), model.user_id == user_id)
    ).all()
    missing = set(wanted) - set(found)
    if missing:
        raise ValidationError(
            f"Unknown {model.__name__} ids: {', '.join(str(i) for i in sorted(missing))}"
        )
    return wanted


def link_investments(
    session: Session,
    fund: BorrowedFund,
    transaction_ids: Iterable[int],
    sip_execution_ids: Iterable[int],
) -> None:
    fund.transaction_ids = _owned_ids(session, Transaction, fund.user_id, transaction_ids)
    fund.sip_execution_ids = _owned_ids(session, SIPExecution, fund.user_id, sip_execution_ids)


def invested_amount(session: Session, fund: BorrowedFund) -> float:
    """INR put to work from this fund: linked transactions plus successful SIP runs.

    Links to rows that were deleted since are ignored.
    """
    total = 0.0
    if fund.transaction_ids:
        txs = session.exec(
            select(Transaction).where(
                Transaction.id.in_(fund.transaction_ids),
                Transaction.user_id == fund.user_id,
            )
        ).all()
        total += sum(tx.amount_inr if tx.amount_inr is not None else tx.amount for tx in txs)

    if fund.sip_execution_ids:
        executions = session.exec(
            select(SIPExecution).where(
                SIPExecution.id.in_(fund.sip_execution_ids),
                SIPExecution.user_id == fund.user_id,
                SIPExecution.status == SIPExecutionStatus.SUCCESS,
            )
        ).all()
        total += sum(e.amount for e in executions)
    return total


def recompute(session: Session, fund: BorrowedFund) -> BorrowedFund:
    fund.invested_amount = round(invested_amount(session, fund), 2)
    fund.surplus_amount = round(fund.borrowed_amount - fund.invested_amount, 2)
    return fund


def apply_return(fund: BorrowedFund, amount: float) -> BorrowedFund:
    outstanding = fund.borrowed_amount - fund.returned_amount
    if amount <= 0:
        raise ValidationError("Return amount must be positive")
    if amount - outstanding > 0.005:
        raise ValidationError(
            f"Cannot return ₹{amount:,.2f}; only ₹{outstanding:,.2f} is outstanding."
        )
    fund.returned_amount = round(fund.returned_amount + amount, 2)
    fund.is_fully_returned = fund.borrowed_amount - fund.returned_amount <= 0.005
    logger.debug("Borrowed fund %s returned %.2f of %.2f", fund.id, fund.returned_amount, fund.borrowed_amount)
    return fund
