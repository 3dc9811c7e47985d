# app/models/expense.py

import datetime as dt
from sqlmodel import SQLModel, Field
from uuid import UUID
from typing import Optional

from app.models.enums import ExpenseCategory, ExpenseType


class Expense(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: UUID = Field(foreign_key="user.id", index=True)
    date: dt.date = Field(index=True)
    title: str
    description: Optional[str] = None
    amount: float
    expense_type: ExpenseType = Field(default=ExpenseType.EXPECTED)
    category: ExpenseCategory = Field(default=ExpenseCategory.NEEDS)
    # Only set for PARTIAL_NEEDS; both portions must add up to amount
    needs_portion: Optional[float] = None
    avoid_portion: Optional[float] = None

    member_id: Optional[int] = Field(default=None, foreign_key="member.id")
    paid_by_member: bool = Field(default=False)
    paid_for_member: bool = Field(default=False)
    created_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)
