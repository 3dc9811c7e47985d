import datetime as dt
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional

from app.models.enums import ExpenseCategory, ExpenseType


class ExpenseCreate(BaseModel):
    date: dt.date
    title: str
    description: Optional[str] = None
    amount: float = Field(gt=0)
    expense_type: ExpenseType = ExpenseType.EXPECTED
    category: ExpenseCategory = ExpenseCategory.NEEDS
    needs_portion: Optional[float] = Field(default=None, ge=0)
    avoid_portion: Optional[float] = Field(default=None, ge=0)
    member_id: Optional[int] = None
    paid_by_member: bool = False
    paid_for_member: bool = False

    @model_validator(mode="after")
    def check_split_and_member(self):
        if self.category == ExpenseCategory.PARTIAL_NEEDS:
            if self.needs_portion is None or self.avoid_portion is None:
                raise ValueError("needs_portion and avoid_portion are required for PARTIAL_NEEDS")
            if abs(self.needs_portion + self.avoid_portion - self.amount) >= 0.01:
                raise ValueError("needs_portion + avoid_portion must equal amount")
        else:
            self.needs_portion = None
            self.avoid_portion = None

        if self.paid_by_member and self.paid_for_member:
            raise ValueError("An expense cannot be both paid by and paid for a member")
        if (self.paid_by_member or self.paid_for_member) and self.member_id is None:
            raise ValueError("member_id is required when a member paid or was paid for")
        return self


class ExpenseRead(ExpenseCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)
