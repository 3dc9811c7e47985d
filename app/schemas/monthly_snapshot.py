from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class MonthlySnapshotData(BaseModel):
    net_salary: float = 0.0
    tax_amount: float = 0.0
    after_tax: float = 0.0
    total_loans: float = 0.0
    total_sips: float = 0.0
    total_expenses: float = 0.0
    expected_expenses: float = 0.0
    unexpected_expenses: float = 0.0
    needs_expenses: float = 0.0
    avoid_expenses: float = 0.0
    available_amount: float = 0.0
    spent_amount: float = 0.0
    surplus_amount: float = 0.0
    previous_surplus: float = 0.0


class MonthlySnapshotRead(MonthlySnapshotData):
    id: int
    year: int
    month: int
    is_closed: bool
    closed_at: Optional[datetime] = None
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MonthlySnapshotPreview(MonthlySnapshotData):
    year: int
    month: int
    is_closed: bool = False


class ClosureStats(BaseModel):
    year: int
    month: int
    total_users: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
