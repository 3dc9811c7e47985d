from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import date, datetime

from app.models.enums import Currency, InvestmentBucket, TransactionType


class TransactionRead(BaseModel):
    id: int
    holding_id: Optional[int] = None
    bucket: InvestmentBucket
    symbol: str
    name: Optional[str] = None
    qty: float
    price: float
    amount: float
    currency: Currency
    amount_inr: Optional[float] = None
    usd_inr_rate: Optional[float] = None
    transaction_type: TransactionType
    purchase_date: date
    description: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TransactionUpdate(BaseModel):
    qty: Optional[float] = Field(default=None, gt=0)
    price: Optional[float] = Field(default=None, gt=0)
    usd_inr_rate: Optional[float] = Field(default=None, gt=0)
    amount_inr: Optional[float] = Field(default=None, ge=0)
    purchase_date: Optional[date] = None
    description: Optional[str] = None


class OneTimePurchaseCreate(BaseModel):
    bucket: InvestmentBucket
    symbol: str = Field(min_length=1)
    name: str
    qty: float = Field(gt=0)
    price: float = Field(gt=0)
    currency: Currency = Currency.INR
    usd_inr_rate: Optional[float] = Field(default=None, gt=0)
    purchase_date: Optional[date] = None  # Defaults to today
    description: Optional[str] = None
