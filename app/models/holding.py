# app/models/holding.py

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field
from uuid import UUID
from typing import Optional
from datetime import datetime

from app.models.enums import Currency, InvestmentBucket


class Holding(SQLModel, table=True):
    __table_args__ = (
        UniqueConstraint("user_id", "bucket", "symbol", name="uq_holding_user_bucket_symbol"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: UUID = Field(foreign_key="user.id", index=True)
    bucket: InvestmentBucket
    symbol: str  # Always stored trimmed and upper-case
    name: str
    qty: float
    avg_cost: float
    current_price: Optional[float] = None
    currency: Currency = Field(default=Currency.INR)
    usd_inr_rate: Optional[float] = None  # Investment-weighted purchase rate, USD holdings only
    is_manual: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
