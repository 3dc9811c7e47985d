from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field
from uuid import UUID
from typing import Optional

from app.models.enums import AllocationType, InvestmentBucket


class InvestmentAllocation(SQLModel, table=True):
    __tablename__ = "investment_allocation"
    __table_args__ = (
        UniqueConstraint("user_id", "bucket", name="uq_allocation_user_bucket"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: UUID = Field(foreign_key="user.id", index=True)
    bucket: InvestmentBucket
    allocation_type: AllocationType = Field(default=AllocationType.PERCENTAGE)
    percent: Optional[float] = None  # Of the monthly amount available for investment
    custom_amount: Optional[float] = None
