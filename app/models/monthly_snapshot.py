# app/models/monthly_snapshot.py

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field
from uuid import UUID
from typing import Optional
from datetime import datetime


class MonthlySnapshot(SQLModel, table=True):
    __tablename__ = "monthly_snapshot"
    __table_args__ = (
        UniqueConstraint("user_id", "year", "month", name="uq_snapshot_user_year_month"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: UUID = Field(foreign_key="user.id", index=True)
    year: int
    month: int  # 1-12

    net_salary: float = 0.0
    tax_amount: float = 0.0
    after_tax: float = 0.0
    total_loans: float = 0.0
    total_sips: float = 0.0
    total_expenses: float = 0.0
    expected_expenses: float = 0.0
    unexpected_expenses: float = 0.0
    needs_expenses: float = 0.0
    avoid_expenses: float = 0.0
    available_amount: float = 0.0  # after_tax - loans - SIPs
    spent_amount: float = 0.0
    surplus_amount: float = 0.0  # available - spent
    previous_surplus: float = 0.0  # Informational only, never added to surplus

    is_closed: bool = Field(default=False)
    closed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
