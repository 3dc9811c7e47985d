"""Member balances: shared expenses, direct GAVE/OWE entries and settlements.

A positive balance means the member owes the user. Nothing here commits;
the routes commit the ledger change together with whatever caused it.
"""
import datetime as dt
import logging
from typing import Optional
from uuid import UUID

from sqlmodel import Session, select

from app.core.errors import NotFoundError, ValidationError
from app.models.enums import ExpenseCategory, ExpenseType, MemberTransactionType
from app.models.expense import Expense
from app.models.income import Income
from app.models.member import Member, MemberTransaction
from app.services.period_guard import ensure_month_open

logger = logging.getLogger(__name__)

# Entry types where the member ends up owing the user
OWED_TO_USER = (MemberTransactionType.GAVE, MemberTransactionType.EXPENSE_PAID_FOR_THEM)

SETTLEMENT_CATEGORY = "Settlement"


def get_owned_member(session: Session, user_id: UUID, member_id: int) -> Member:
    member = session.exec(
        select(Member).where(Member.id == member_id, Member.user_id == user_id)
    ).first()
    if not member:
        raise NotFoundError("Member not found")
    return member


def get_owned_entry(session: Session, user_id: UUID, entry_id: int) -> MemberTransaction:
    entry = session.exec(
        select(MemberTransaction).where(
            MemberTransaction.id == entry_id,
            MemberTransaction.user_id == user_id,
        )
    ).first()
    if not entry:
        raise NotFoundError("Transaction not found")
    return entry


def entry_type_for(expense: Expense) -> Optional[MemberTransactionType]:
    if expense.member_id is None:
        return None
    if expense.paid_for_member:
        return MemberTransactionType.EXPENSE_PAID_FOR_THEM
    if expense.paid_by_member:
        return MemberTransactionType.EXPENSE_PAID_BY_THEM
    return None


def balance_delta(entry_type: MemberTransactionType, amount: float) -> float:
    return amount if entry_type in OWED_TO_USER else -amount


def apply_expense(session: Session, user_id: UUID, expense: Expense) -> Optional[MemberTransaction]:
    entry_type = entry_type_for(expense)
    if entry_type is None:
        return None

    member = get_owned_member(session, user_id, expense.member_id)
    if expense.id is None:
        session.flush()

    member.current_balance += balance_delta(entry_type, expense.amount)
    entry = MemberTransaction(
        user_id=user_id,
        member_id=member.id,
        expense_id=expense.id,
        transaction_type=entry_type,
        amount=expense.amount,
        date=expense.date,
        description=expense.title,
    )
    session.add(member)
    session.add(entry)
    logger.debug("Member %s balance now %.2f", member.id, member.current_balance)
    return entry


def reverse_expense(session: Session, expense: Expense) -> None:
    """Undo the balance change an expense made, if it made one."""
    if expense.id is None:
        return
    entry = session.exec(
        select(MemberTransaction).where(MemberTransaction.expense_id == expense.id)
    ).first()
    if not entry:
        return
    if entry.is_settled:
        raise ValidationError("This expense's member entry is settled; unsettle it first.")

    member = session.get(Member, entry.member_id)
    if member is not None:
        member.current_balance -= balance_delta(entry.transaction_type, entry.amount)
        session.add(member)
    session.delete(entry)
    # The unique expense_id slot must be free before a replacement entry is added
    session.flush()


def record_entry(
    session: Session,
    user_id: UUID,
    *,
    member_id: int,
    transaction_type: MemberTransactionType,
    amount: float,
    date: dt.date,
    description: Optional[str] = None,
) -> MemberTransaction:
    member = get_owned_member(session, user_id, member_id)
    member.current_balance += balance_delta(transaction_type, amount)
    entry = MemberTransaction(
        user_id=user_id,
        member_id=member.id,
        transaction_type=transaction_type,
        amount=amount,
        date=date,
        description=description,
    )
    session.add(member)
    session.add(entry)
    session.flush()
    return entry


def delete_entry(session: Session, user_id: UUID, entry_id: int) -> None:
    entry = get_owned_entry(session, user_id, entry_id)
    if entry.is_settled:
        raise ValidationError("Cannot delete a settled transaction")
    if entry.expense_id is not None:
        raise ValidationError("This entry belongs to an expense; delete or edit the expense instead.")

    member = session.get(Member, entry.member_id)
    if member is not None:
        member.current_balance -= balance_delta(entry.transaction_type, entry.amount)
        session.add(member)
    session.delete(entry)


def _settlement_side(entry_type: MemberTransactionType, difference: float) -> bool:
    """True when a settlement difference is a gain for the user (booked as income).

    Receiving more than owed, or paying less than owed, is a gain; the
    other two cases are a loss booked as an expense.
    """
    return (difference > 0) == (entry_type in OWED_TO_USER)


def settle_entry(
    session: Session,
    user_id: UUID,
    entry_id: int,
    *,
    today: dt.date,
    settled_amount: Optional[float] = None,
    notes: Optional[str] = None,
) -> MemberTransaction:
    """Close an entry out and take its effect off the member's balance.

    When the amount actually settled differs from the entry, the difference
    is booked today as an income (gain) or an AVOID expense (loss) and
    tracked on the member's ``extra_owe`` / ``extra_spent``.
    """
    entry = get_owned_entry(session, user_id, entry_id)
    if entry.is_settled:
        raise ValidationError("Transaction is already settled")

    member = session.get(Member, entry.member_id)
    settled = settled_amount if settled_amount is not None else entry.amount
    difference = round(settled - entry.amount, 2)

    if difference != 0:
        ensure_month_open(session, user_id, today, "settle member transactions")
        extra = abs(difference)
        title = f"Settlement difference - {member.name}"
        if _settlement_side(entry.transaction_type, difference):
            income = Income(
                user_id=user_id,
                date=today,
                title=title,
                description=f"Settlement with {member.name}: gained ₹{extra:,.2f}",
                amount=extra,
                category=SETTLEMENT_CATEGORY,
            )
            session.add(income)
            session.flush()
            entry.settlement_income_id = income.id
            member.extra_owe += extra
        else:
            expense = Expense(
                user_id=user_id,
                date=today,
                title=title,
                description=f"Settlement with {member.name}: lost ₹{extra:,.2f}",
                amount=extra,
                expense_type=ExpenseType.UNEXPECTED,
                category=ExpenseCategory.AVOID,
            )
            session.add(expense)
            session.flush()
            entry.settlement_expense_id = expense.id
            member.extra_spent += extra

    member.current_balance -= balance_delta(entry.transaction_type, entry.amount)
    entry.is_settled = True
    entry.settled_date = today
    entry.settled_amount = settled
    entry.settled_notes = notes
    session.add(member)
    session.add(entry)
    session.flush()
    logger.info("Settled member entry %s (difference %.2f)", entry.id, difference)
    return entry


def unsettle_entry(session: Session, user_id: UUID, entry_id: int) -> MemberTransaction:
    entry = get_owned_entry(session, user_id, entry_id)
    if not entry.is_settled:
        raise ValidationError("Transaction is not settled")

    member = session.get(Member, entry.member_id)
    income = session.get(Income, entry.settlement_income_id) if entry.settlement_income_id else None
    expense = session.get(Expense, entry.settlement_expense_id) if entry.settlement_expense_id else None
    for record in (income, expense):
        if record is not None:
            ensure_month_open(session, user_id, record.date, "unsettle member transactions")

    extra = abs(round((entry.settled_amount or entry.amount) - entry.amount, 2))
    if income is not None:
        member.extra_owe -= extra
    if expense is not None:
        member.extra_spent -= extra
    member.current_balance += balance_delta(entry.transaction_type, entry.amount)

    entry.is_settled = False
    entry.settled_date = None
    entry.settled_amount = None
    entry.settled_notes = None
    entry.settlement_income_id = None
    entry.settlement_expense_id = None
    session.add(member)
    session.add(entry)
    session.flush()

    for record in (income, expense):
        if record is not None:
            session.delete(record)
    return entry


def settlement_entry_for(
    session: Session, *, income_id: Optional[int] = None, expense_id: Optional[int] = None
) -> Optional[MemberTransaction]:
    """The member entry a settlement income/expense was booked for, if any."""
    query = select(MemberTransaction)
    if income_id is not None:
        query = query.where(MemberTransaction.settlement_income_id == income_id)
    else:
        query = query.where(MemberTransaction.settlement_expense_id == expense_id)
    return session.exec(query).first()
