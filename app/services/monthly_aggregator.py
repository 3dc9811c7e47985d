import calendar
import datetime as dt
import logging
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy import or_
from sqlmodel import Session, select

from app.models.enums import ExpenseCategory, ExpenseType, SIPFrequency, TaxMode
from app.models.expense import Expense
from app.models.loan import Loan
from app.models.monthly_snapshot import MonthlySnapshot
from app.models.salary import SalaryRecord
from app.models.sip import SIP
from app.models.tax_setting import TaxSetting
from app.schemas.monthly_snapshot import MonthlySnapshotData

logger = logging.getLogger(__name__)


def month_bounds(year: int, month: int) -> Tuple[dt.date, dt.date]:
    """First and last calendar day of the month."""
    last_day = calendar.monthrange(year, month)[1]
    return dt.date(year, month, 1), dt.date(year, month, last_day)


def previous_period(year: int, month: int) -> Tuple[int, int]:
    return (year - 1, 12) if month == 1 else (year, month - 1)


def months_since(start: dt.date, year: int, month: int) -> int:
    """Whole-month distance between (year, month) and the start date's month."""
    return (year - start.year) * 12 + (month - start.month)


def is_emi_active(loan: Loan, year: int, month: int) -> bool:
    elapsed = months_since(loan.start_date, year, month)
    return 0 <= elapsed < loan.tenure


def is_sip_active_in_month(sip: SIP, year: int, month: int) -> bool:
    start, end = month_bounds(year, month)
    if not sip.is_active or sip.start_date > end:
        return False
    return sip.end_date is None or sip.end_date >= start


def sip_contribution_for_month(sip: SIP, year: int, month: int) -> float:
    """What a SIP adds to the month's committed outflow.

    YEARLY plans only count, as amount/12, in their start month; the other
    eleven months get nothing.
    """
    if not is_sip_active_in_month(sip, year, month):
        return 0.0
    if sip.frequency == SIPFrequency.MONTHLY:
        return sip.amount
    if sip.frequency == SIPFrequency.YEARLY:
        return sip.amount / 12 if sip.start_date.month == month else 0.0
    # CUSTOM: no day-of-month gating, the full amount counts every month
    return sip.amount


def sip_monthly_equivalent(sip: SIP) -> float:
    if sip.frequency == SIPFrequency.YEARLY:
        return sip.amount / 12
    return sip.amount


def compute_tax_amount(setting: Optional[TaxSetting], net_salary: float) -> float:
    if setting is None or net_salary <= 0:
        return 0.0

    percent_part = net_salary * setting.percentage / 100 if setting.percentage else 0.0
    fixed_part = setting.fixed_amount or 0.0

    if setting.mode == TaxMode.PERCENTAGE:
        return percent_part
    if setting.mode == TaxMode.FIXED:
        return fixed_part
    return percent_part + fixed_part


def resolve_net_salary(session: Session, user_id: UUID, as_of: dt.date) -> float:
    record = session.exec(
        select(SalaryRecord)
        .where(SalaryRecord.user_id == user_id, SalaryRecord.effective_from <= as_of)
        .order_by(SalaryRecord.effective_from.desc(), SalaryRecord.id.desc())
    ).first()
    return record.monthly if record else 0.0


def current_tax_setting(session: Session, user_id: UUID) -> Optional[TaxSetting]:
    return session.exec(
        select(TaxSetting)
        .where(TaxSetting.user_id == user_id)
        .order_by(TaxSetting.updated_at.desc(), TaxSetting.id.desc())
    ).first()


def total_active_emi(session: Session, user_id: UUID, year: int, month: int) -> float:
    _, end = month_bounds(year, month)
    loans = session.exec(
        select(Loan).where(Loan.user_id == user_id, Loan.start_date <= end)
    ).all()
    return sum(loan.emi_amount for loan in loans if is_emi_active(loan, year, month))


def after_tax_income(session: Session, user_id: UUID, year: int, month: int) -> Tuple[float, float, float]:
    """(net_salary, tax_amount, after_tax) for the month."""
    _, end = month_bounds(year, month)
    net_salary = resolve_net_salary(session, user_id, end)
    tax_amount = compute_tax_amount(current_tax_setting(session, user_id), net_salary)
    return net_salary, tax_amount, net_salary - tax_amount


def calculate_monthly_data(session: Session, user_id: UUID, year: int, month: int) -> MonthlySnapshotData:
    """Aggregate a user's month into snapshot figures without persisting them.

    Missing inputs (no salary, no tax setting, no loans...) count as zero;
    this never fails because data is absent.
    """
    start, end = month_bounds(year, month)

    net_salary, tax_amount, after_tax = after_tax_income(session, user_id, year, month)
    total_loans = total_active_emi(session, user_id, year, month)

    sips = session.exec(
        select(SIP).where(
            SIP.user_id == user_id,
            SIP.is_active == True,
            SIP.start_date <= end,
            or_(SIP.end_date == None, SIP.end_date >= start),
        )
    ).all()
    total_sips = sum(sip_contribution_for_month(sip, year, month) for sip in sips)

    expenses = session.exec(
        select(Expense).where(
            Expense.user_id == user_id,
            Expense.date >= start,
            Expense.date <= end,
        )
    ).all()

    total_expenses = 0.0
    expected = 0.0
    unexpected = 0.0
    needs = 0.0
    avoid = 0.0
    for expense in expenses:
        total_expenses += expense.amount

        if expense.expense_type == ExpenseType.EXPECTED:
            expected += expense.amount
        else:
            unexpected += expense.amount

        if expense.category == ExpenseCategory.NEEDS:
            needs += expense.amount
        elif expense.category == ExpenseCategory.PARTIAL_NEEDS:
            needs += expense.needs_portion or 0.0
            avoid += expense.avoid_portion or 0.0
        else:
            avoid += expense.amount

    available = after_tax - total_loans - total_sips
    surplus = available - total_expenses

    prev_year, prev_month = previous_period(year, month)
    previous = session.exec(
        select(MonthlySnapshot).where(
            MonthlySnapshot.user_id == user_id,
            MonthlySnapshot.year == prev_year,
            MonthlySnapshot.month == prev_month,
        )
    ).first()

    logger.debug("Aggregated %s/%s for user %s: surplus=%.2f", month, year, user_id, surplus)

    return MonthlySnapshotData(
        net_salary=net_salary,
        tax_amount=tax_amount,
        after_tax=after_tax,
        total_loans=total_loans,
        total_sips=total_sips,
        total_expenses=total_expenses,
        expected_expenses=expected,
        unexpected_expenses=unexpected,
        needs_expenses=needs,
        avoid_expenses=avoid,
        available_amount=available,
        spent_amount=total_expenses,
        surplus_amount=surplus,
        previous_surplus=previous.surplus_amount if previous else 0.0,
    )
