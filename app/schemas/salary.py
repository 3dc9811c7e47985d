from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import date


class SalaryCreate(BaseModel):
    monthly: float = Field(ge=0)
    effective_from: Optional[date] = None  # Defaults to today


class SalaryRead(BaseModel):
    id: int
    monthly: float
    effective_from: date
    effective_to: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)
