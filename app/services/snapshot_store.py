import datetime as dt
import logging
from typing import Optional, Tuple
from uuid import UUID

from sqlmodel import Session, select

from app.core.clock import utcnow
from app.core.errors import ClosedPeriodError
from app.models.monthly_snapshot import MonthlySnapshot
from app.models.user import User
from app.schemas.monthly_snapshot import ClosureStats
from app.services.monthly_aggregator import calculate_monthly_data, previous_period

logger = logging.getLogger(__name__)

CREATED = "created"
UPDATED = "updated"
SKIPPED = "skipped"


def period_before(today: dt.date) -> Tuple[int, int]:
    """(year, month) of the calendar month preceding ``today``."""
    return previous_period(today.year, today.month)


def get_snapshot(session: Session, user_id: UUID, year: int, month: int) -> Optional[MonthlySnapshot]:
    return session.exec(
        select(MonthlySnapshot).where(
            MonthlySnapshot.user_id == user_id,
            MonthlySnapshot.year == year,
            MonthlySnapshot.month == month,
        )
    ).first()


def _write_snapshot(
    session: Session,
    existing: Optional[MonthlySnapshot],
    user_id: UUID,
    year: int,
    month: int,
    close: bool,
    now: dt.datetime,
) -> MonthlySnapshot:
    data = calculate_monthly_data(session, user_id, year, month)

    snapshot = existing or MonthlySnapshot(user_id=user_id, year=year, month=month, created_at=now)
    for field, value in data.model_dump().items():
        setattr(snapshot, field, value)
    snapshot.updated_at = now
    if close:
        snapshot.is_closed = True
        snapshot.closed_at = now

    session.add(snapshot)
    return snapshot


def close_month(
    session: Session,
    user_id: UUID,
    year: int,
    month: int,
    now: Optional[dt.datetime] = None,
) -> str:
    """Freeze one user's month. Returns "created", "updated" or "skipped".

    A month that is already closed is left untouched, so running this twice
    never recomputes the figures.
    """
    existing = get_snapshot(session, user_id, year, month)
    if existing is not None and existing.is_closed:
        return SKIPPED

    _write_snapshot(session, existing, user_id, year, month, close=True, now=now or utcnow())
    session.commit()
    return UPDATED if existing is not None else CREATED


def close_month_for_all_users(
    session: Session,
    year: int,
    month: int,
    now: Optional[dt.datetime] = None,
) -> ClosureStats:
    users = session.exec(select(User.id, User.email)).all()
    stats = ClosureStats(year=year, month=month, total_users=len(users))

    logger.info("Starting monthly snapshot for %s/%s (%d users)", month, year, len(users))

    for user_id, email in users:
        try:
            outcome = close_month(session, user_id, year, month, now=now)
        except Exception:
            session.rollback()
            stats.failed += 1
            logger.exception("Failed to close %s/%s for %s", month, year, email)
            continue

        if outcome == SKIPPED:
            stats.skipped += 1
            logger.info("Skipped %s - already closed", email)
        elif outcome == UPDATED:
            stats.updated += 1
            logger.info("Updated snapshot for %s", email)
        else:
            stats.created += 1
            logger.info("Created snapshot for %s", email)

    logger.info(
        "Monthly snapshot complete: %d created, %d updated, %d skipped, %d failed",
        stats.created, stats.updated, stats.skipped, stats.failed,
    )
    return stats


def refresh_open_snapshot(
    session: Session,
    user_id: UUID,
    year: int,
    month: int,
    now: Optional[dt.datetime] = None,
) -> MonthlySnapshot:
    """Recompute an open month's snapshot in place (is_closed stays false)."""
    existing = get_snapshot(session, user_id, year, month)
    if existing is not None and existing.is_closed:
        raise ClosedPeriodError(f"Snapshot for {month}/{year} is closed and can no longer be refreshed.")

    snapshot = _write_snapshot(session, existing, user_id, year, month, close=False, now=now or utcnow())
    session.commit()
    session.refresh(snapshot)
    return snapshot
