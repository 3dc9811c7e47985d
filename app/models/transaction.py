import datetime as dt
from uuid import UUID
from sqlmodel import SQLModel, Field
from typing import Optional

from app.models.enums import Currency, InvestmentBucket, TransactionType


class Transaction(SQLModel, table=True):
    """Investment ledger entry.

    Every change to a holding's qty/avg_cost/usd_inr_rate is derived from
    these rows, so they are only written together with the holding update.
    """

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: UUID = Field(foreign_key="user.id", index=True)
    holding_id: Optional[int] = Field(default=None, foreign_key="holding.id", index=True)
    bucket: InvestmentBucket
    symbol: str
    name: Optional[str] = None
    qty: float
    price: float
    amount: float  # qty * price, in the transaction currency
    currency: Currency = Field(default=Currency.INR)
    amount_inr: Optional[float] = None
    usd_inr_rate: Optional[float] = None
    transaction_type: TransactionType
    purchase_date: dt.date = Field(index=True)
    description: Optional[str] = None
    created_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)
    updated_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)
