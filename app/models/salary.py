# app/models/salary.py

from sqlmodel import SQLModel, Field
from uuid import UUID
from typing import Optional
from datetime import date, datetime


class SalaryRecord(SQLModel, table=True):
    __tablename__ = "salary_record"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: UUID = Field(foreign_key="user.id", index=True)
    monthly: float  # Net monthly take-home
    effective_from: date = Field(index=True)
    effective_to: Optional[date] = None  # Set when a newer record supersedes this one
    created_at: datetime = Field(default_factory=datetime.utcnow)
