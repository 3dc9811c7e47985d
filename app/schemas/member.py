import datetime as dt
from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import List, Optional

from app.models.enums import MemberTransactionType


class MemberCreate(BaseModel):
    name: str
    relation: Optional[str] = None


class MemberRead(MemberCreate):
    id: int
    current_balance: float
    extra_spent: float = 0.0
    extra_owe: float = 0.0

    model_config = ConfigDict(from_attributes=True)


class MemberTransactionCreate(BaseModel):
    member_id: int
    transaction_type: MemberTransactionType
    amount: float = Field(gt=0)
    date: dt.date
    description: Optional[str] = None

    @field_validator("transaction_type")
    @classmethod
    def direct_types_only(cls, value):
        # Expense entries are written by the expense routes
        if value not in (MemberTransactionType.GAVE, MemberTransactionType.OWE):
            raise ValueError("Only GAVE or OWE entries can be added directly")
        return value


class MemberSettle(BaseModel):
    settled_amount: Optional[float] = Field(default=None, gt=0)
    settled_notes: Optional[str] = None


class MemberTransactionRead(BaseModel):
    id: int
    member_id: int
    expense_id: Optional[int] = None
    transaction_type: MemberTransactionType
    amount: float
    date: dt.date
    description: Optional[str] = None
    is_settled: bool = False
    settled_date: Optional[dt.date] = None
    settled_amount: Optional[float] = None
    settled_notes: Optional[str] = None
    settlement_income_id: Optional[int] = None
    settlement_expense_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)


class MemberLedgerSummary(BaseModel):
    total_transactions: int = 0
    total_owed_to_you: float = 0.0
    total_you_owe: float = 0.0
    settled_count: int = 0
    unsettled_count: int = 0
    net_balance: float = 0.0


class MemberTransactionList(BaseModel):
    transactions: List[MemberTransactionRead]
    summary: MemberLedgerSummary


class MemberDetail(MemberRead):
    transactions: List[MemberTransactionRead] = []
