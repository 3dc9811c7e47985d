"""Close a month for every user without going through the cron endpoint.

    python -m app.scripts.close_month            # previous month
    python -m app.scripts.close_month 2025 3     # March 2025
"""
import sys

from sqlmodel import Session

from app.core.clock import today
from app.core.logging import configure_logging
from app.database import engine
from app.services.snapshot_store import close_month_for_all_users, period_before


def close_month(year=None, month=None):
    if year is None or month is None:
        year, month = period_before(today())
    with Session(engine) as session:
        return close_month_for_all_users(session, year, month)


if __name__ == "__main__":
    configure_logging()
    args = [int(a) for a in sys.argv[1:3]]
    stats = close_month(*args) if len(args) == 2 else close_month()
    print(stats.model_dump_json(indent=2))
