# app/models/tax_setting.py

from sqlmodel import SQLModel, Field
from uuid import UUID
from typing import Optional
from datetime import datetime

from app.models.enums import TaxMode


class TaxSetting(SQLModel, table=True):
    __tablename__ = "tax_setting"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: UUID = Field(foreign_key="user.id", index=True)
    mode: TaxMode = Field(default=TaxMode.PERCENTAGE)
    percentage: Optional[float] = None
    fixed_amount: Optional[float] = None
    updated_at: datetime = Field(default_factory=datetime.utcnow)
