import datetime as dt
from sqlmodel import SQLModel, Field
from uuid import UUID
from typing import Optional


class Income(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: UUID = Field(foreign_key="user.id", index=True)
    date: dt.date = Field(index=True)
    title: str
    description: Optional[str] = None
    amount: float
    category: str = Field(default="OTHER")
    is_recurring: bool = Field(default=False)
    created_at: dt.datetime = Field(default_factory=dt.datetime.utcnow)
