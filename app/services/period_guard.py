import datetime as dt
from uuid import UUID

from sqlmodel import Session, select

from app.core.errors import ClosedPeriodError
from app.models.monthly_snapshot import MonthlySnapshot


def is_month_closed(session: Session, user_id: UUID, when: dt.date) -> bool:
    closed = session.exec(
        select(MonthlySnapshot.is_closed).where(
            MonthlySnapshot.user_id == user_id,
            MonthlySnapshot.year == when.year,
            MonthlySnapshot.month == when.month,
        )
    ).first()
    return bool(closed)


def ensure_month_open(
    session: Session,
    user_id: UUID,
    when: dt.date,
    action: str = "perform this action",
) -> None:
    """Raise ClosedPeriodError if ``when`` falls in a closed month.

    Edits that move a record between months must call this for both the old
    and the new date.
    """
    if is_month_closed(session, user_id, when):
        label = when.strftime("%B %Y")
        raise ClosedPeriodError(
            f"Cannot {action} in {label} - this month has been closed. Please select a future month."
        )
