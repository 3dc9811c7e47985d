# app/models/sip.py

from sqlmodel import SQLModel, Field
from uuid import UUID
from typing import Optional
from datetime import date, datetime

from app.models.enums import InvestmentBucket, SIPExecutionStatus, SIPFrequency


class SIP(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: UUID = Field(foreign_key="user.id", index=True)
    name: str
    bucket: InvestmentBucket = Field(default=InvestmentBucket.MUTUAL_FUND)
    symbol: Optional[str] = None  # Scheme code / ticker; executions need it to buy units
    amount: float
    frequency: SIPFrequency = Field(default=SIPFrequency.MONTHLY)
    custom_day: Optional[int] = None  # Day of month, CUSTOM frequency only
    start_date: date
    end_date: Optional[date] = None
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class SIPExecution(SQLModel, table=True):
    __tablename__ = "sip_execution"

    id: Optional[int] = Field(default=None, primary_key=True)
    sip_id: int = Field(foreign_key="sip.id", index=True)
    user_id: UUID = Field(foreign_key="user.id")
    holding_id: Optional[int] = Field(default=None, foreign_key="holding.id")
    execution_date: date
    amount: float
    qty: Optional[float] = None
    price: Optional[float] = None
    status: SIPExecutionStatus = Field(default=SIPExecutionStatus.SUCCESS)
    error_message: Optional[str] = None
