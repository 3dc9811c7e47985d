from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional

from app.models.enums import AllocationType, InvestmentBucket


class AllocationItem(BaseModel):
    bucket: InvestmentBucket
    allocation_type: AllocationType = AllocationType.PERCENTAGE
    percent: Optional[float] = Field(default=None, ge=0, le=100)
    custom_amount: Optional[float] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def check_value_for_type(self):
        if self.allocation_type == AllocationType.PERCENTAGE and self.percent is None:
            raise ValueError("percent is required for PERCENTAGE allocations")
        if self.allocation_type == AllocationType.AMOUNT and self.custom_amount is None:
            raise ValueError("custom_amount is required for AMOUNT allocations")
        return self


class AllocationReplace(BaseModel):
    allocations: List[AllocationItem]


class AllocationRead(AllocationItem):
    id: int

    model_config = ConfigDict(from_attributes=True)


class BucketAvailability(BaseModel):
    bucket: InvestmentBucket
    total_allocation: float
    existing_sips: float
    available_for_one_time: float
    used_this_month: float
    remaining: float
