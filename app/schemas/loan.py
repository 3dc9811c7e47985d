from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import date


class LoanCreate(BaseModel):
    name: str
    principal_amount: float = Field(gt=0)
    emi_amount: float = Field(gt=0)
    interest_rate: float = Field(default=0.0, ge=0)
    tenure: int = Field(gt=0)
    start_date: date
    current_outstanding: Optional[float] = Field(default=None, ge=0)  # Defaults to the principal


class LoanUpdate(BaseModel):
    name: Optional[str] = None
    interest_rate: Optional[float] = Field(default=None, ge=0)
    current_outstanding: Optional[float] = Field(default=None, ge=0)


class LoanEmiRead(BaseModel):
    id: int
    installment_number: int
    due_date: date
    amount: float
    is_paid: bool
    paid_date: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)


class LoanRead(BaseModel):
    id: int
    name: str
    principal_amount: float
    emi_amount: float
    interest_rate: float
    tenure: int
    start_date: date
    current_outstanding: float
    is_closed: bool
    closed_at: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)


class LoanDetail(LoanRead):
    emis: List[LoanEmiRead] = []


class EmiPayment(BaseModel):
    paid_date: Optional[date] = None  # Defaults to today


class LoanClose(BaseModel):
    closed_at: Optional[date] = None  # Defaults to today
