from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional
from datetime import date, datetime

from app.models.enums import Currency, InvestmentBucket


class HoldingCreate(BaseModel):
    bucket: InvestmentBucket
    symbol: str = Field(min_length=1)
    name: str
    qty: float = Field(gt=0)
    avg_cost: float = Field(gt=0)
    currency: Currency = Currency.INR
    usd_inr_rate: Optional[float] = Field(default=None, gt=0)
    current_price: Optional[float] = None
    purchase_date: Optional[date] = None
    is_manual: bool = False


class HoldingUpdate(BaseModel):
    name: Optional[str] = None
    qty: Optional[float] = Field(default=None, ge=0)
    avg_cost: Optional[float] = Field(default=None, gt=0)
    current_price: Optional[float] = None
    usd_inr_rate: Optional[float] = Field(default=None, gt=0)


class HoldingRead(BaseModel):
    id: int
    bucket: InvestmentBucket
    symbol: str
    name: str
    qty: float
    avg_cost: float
    current_price: Optional[float] = None
    currency: Currency
    usd_inr_rate: Optional[float] = None
    is_manual: bool
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class HoldingValuation(HoldingRead):
    investment: float
    current_value: float
    investment_inr: float
    current_value_inr: float
    pnl: float
    pnl_percent: float


class BucketHoldings(BaseModel):
    bucket: InvestmentBucket
    holdings: List[HoldingValuation]
    total_investment: float
    total_current_value: float
    pnl: float


class PortfolioSummary(BaseModel):
    buckets: List[BucketHoldings]
    total_investment: float
    total_current_value: float
    pnl: float
    pnl_percent: float


class PriceRefreshResult(BaseModel):
    updated: int = 0
    failed: int = 0
    skipped: int = 0
    errors: List[str] = []
