from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional
from datetime import date

from app.models.enums import InvestmentBucket, SIPExecutionStatus, SIPFrequency


class SIPCreate(BaseModel):
    name: str
    bucket: InvestmentBucket = InvestmentBucket.MUTUAL_FUND
    symbol: Optional[str] = None
    amount: float = Field(gt=0)
    frequency: SIPFrequency = SIPFrequency.MONTHLY
    custom_day: Optional[int] = Field(default=None, ge=1, le=31)
    start_date: date
    end_date: Optional[date] = None
    is_active: bool = True

    @model_validator(mode="after")
    def check_schedule(self):
        if self.frequency == SIPFrequency.CUSTOM and self.custom_day is None:
            raise ValueError("custom_day is required for CUSTOM SIPs")
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class SIPUpdate(BaseModel):
    name: Optional[str] = None
    symbol: Optional[str] = None
    amount: Optional[float] = Field(default=None, gt=0)
    custom_day: Optional[int] = Field(default=None, ge=1, le=31)
    end_date: Optional[date] = None
    is_active: Optional[bool] = None


class SIPRead(SIPCreate):
    id: int
    monthly_equivalent: float = 0.0

    model_config = ConfigDict(from_attributes=True)


class SIPExecutionRead(BaseModel):
    id: int
    sip_id: int
    holding_id: Optional[int] = None
    execution_date: date
    amount: float
    qty: Optional[float] = None
    price: Optional[float] = None
    status: SIPExecutionStatus
    error_message: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SIPExecutionStats(BaseModel):
    execution_date: date
    total: int = 0
    executed: int = 0
    skipped: int = 0
    failed: int = 0
    errors: List[str] = []
