# app/models/borrowed_fund.py

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field
from uuid import UUID
from typing import List, Optional
from datetime import date, datetime


class BorrowedFund(SQLModel, table=True):
    __tablename__ = "borrowed_fund"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: UUID = Field(foreign_key="user.id", index=True)
    member_id: Optional[int] = Field(default=None, foreign_key="member.id")
    lender_name: str
    borrowed_amount: float
    borrowed_date: date
    expected_return_date: Optional[date] = None
    returned_amount: float = 0.0
    is_fully_returned: bool = Field(default=False)
    actual_return_date: Optional[date] = None

    # Investment transactions / SIP executions made with this money
    transaction_ids: List[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    sip_execution_ids: List[int] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    # Derived: recomputed whenever the links or the borrowed amount change
    invested_amount: float = 0.0
    surplus_amount: float = 0.0

    interest_rate: Optional[float] = None
    purpose: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
