# app/models/member.py

import datetime as dt
from sqlmodel import SQLModel, Field
from uuid import UUID
from typing import Optional

from app.models.enums import MemberTransactionType


class Member(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: UUID = Field(foreign_key="user.id", index=True)
    name: str
    relation: Optional[str] = None  # e.g. "Roommate", "Brother"
    # Positive: the member owes the user. Negative: the user owes the member.
    current_balance: float = 0.0
    # Running settlement differences: lost by the user / gained by the user
    extra_spent: float = 0.0
    extra_owe: float = 0.0
    created_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)


class MemberTransaction(SQLModel, table=True):
    __tablename__ = "member_transaction"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: UUID = Field(foreign_key="user.id")
    member_id: int = Field(foreign_key="member.id", index=True)
    expense_id: Optional[int] = Field(default=None, foreign_key="expense.id", unique=True)
    transaction_type: MemberTransactionType
    amount: float
    date: dt.date
    description: Optional[str] = None

    is_settled: bool = Field(default=False)
    settled_date: Optional[dt.date] = None
    settled_amount: Optional[float] = None
    settled_notes: Optional[str] = None
    settlement_income_id: Optional[int] = Field(default=None, foreign_key="income.id")
    settlement_expense_id: Optional[int] = Field(default=None, foreign_key="expense.id")
