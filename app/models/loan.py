# app/models/loan.py

from sqlmodel import Relationship, SQLModel, Field
from uuid import UUID
from typing import List, Optional
from datetime import date, datetime


class Loan(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: UUID = Field(foreign_key="user.id", index=True)
    name: str  # e.g. "HDFC home loan"
    principal_amount: float
    emi_amount: float
    interest_rate: float = 0.0  # Annual, in percent
    tenure: int  # Number of monthly installments
    start_date: date
    current_outstanding: float
    is_closed: bool = Field(default=False)
    closed_at: Optional[date] = None

    emis: List["LoanEmi"] = Relationship(
        back_populates="loan",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "LoanEmi.installment_number"},
    )


class LoanEmi(SQLModel, table=True):
    __tablename__ = "loan_emi"

    id: Optional[int] = Field(default=None, primary_key=True)
    loan_id: int = Field(foreign_key="loan.id", index=True)
    installment_number: int
    due_date: date
    amount: float
    is_paid: bool = Field(default=False)
    paid_date: Optional[date] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    loan: Optional[Loan] = Relationship(back_populates="emis")
