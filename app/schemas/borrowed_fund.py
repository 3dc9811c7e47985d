from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import date, datetime


class BorrowedFundCreate(BaseModel):
    member_id: Optional[int] = None
    lender_name: str
    borrowed_amount: float = Field(gt=0)
    borrowed_date: date
    expected_return_date: Optional[date] = None
    interest_rate: Optional[float] = Field(default=None, ge=0)
    purpose: Optional[str] = None
    notes: Optional[str] = None
    transaction_ids: List[int] = []
    sip_execution_ids: List[int] = []


class BorrowedFundUpdate(BaseModel):
    lender_name: Optional[str] = None
    borrowed_amount: Optional[float] = Field(default=None, gt=0)
    borrowed_date: Optional[date] = None
    expected_return_date: Optional[date] = None
    interest_rate: Optional[float] = Field(default=None, ge=0)
    purpose: Optional[str] = None
    notes: Optional[str] = None
    transaction_ids: Optional[List[int]] = None
    sip_execution_ids: Optional[List[int]] = None


class BorrowedFundReturn(BaseModel):
    amount: float = Field(gt=0)
    return_date: Optional[date] = None  # Defaults to today


class BorrowedFundRead(BaseModel):
    id: int
    member_id: Optional[int] = None
    lender_name: str
    borrowed_amount: float
    borrowed_date: date
    expected_return_date: Optional[date] = None
    returned_amount: float
    is_fully_returned: bool
    actual_return_date: Optional[date] = None
    transaction_ids: List[int]
    sip_execution_ids: List[int]
    invested_amount: float
    surplus_amount: float
    interest_rate: Optional[float] = None
    purpose: Optional[str] = None
    notes: Optional[str] = None
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
