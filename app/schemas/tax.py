from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional
from datetime import datetime

from app.models.enums import TaxMode


class TaxSettingCreate(BaseModel):
    mode: TaxMode = TaxMode.PERCENTAGE
    percentage: Optional[float] = Field(default=None, ge=0, le=100)
    fixed_amount: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_mode_fields(self):
        if self.mode in (TaxMode.PERCENTAGE, TaxMode.HYBRID) and self.percentage is None:
            raise ValueError(f"percentage is required for {self.mode.value} tax")
        if self.mode in (TaxMode.FIXED, TaxMode.HYBRID) and self.fixed_amount is None:
            raise ValueError(f"fixed_amount is required for {self.mode.value} tax")
        return self


class TaxSettingRead(TaxSettingCreate):
    id: int
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)
