import datetime as dt
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class IncomeCreate(BaseModel):
    date: dt.date
    title: str
    description: Optional[str] = None
    amount: float = Field(gt=0)
    category: str = "OTHER"
    is_recurring: bool = False


class IncomeUpdate(BaseModel):
    date: Optional[dt.date] = None
    title: Optional[str] = None
    description: Optional[str] = None
    amount: Optional[float] = Field(default=None, gt=0)
    category: Optional[str] = None
    is_recurring: Optional[bool] = None


class IncomeRead(IncomeCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)
