import datetime as dt
from fastapi import APIRouter, Depends
from sqlmodel import Session, select
from uuid import UUID
from typing import List

from app.core.clock import get_today
from app.core.security import get_current_user
from app.database import get_session
from app.models.allocation import InvestmentAllocation
from app.models.enums import InvestmentBucket
from app.schemas.allocation import AllocationRead, AllocationReplace, BucketAvailability
from app.services.allocation import all_bucket_availability, bucket_availability, replace_allocations

router = APIRouter(prefix="/investments/allocations", tags=["allocations"])


@router.get("/", response_model=List[AllocationRead])
def list_allocations(user_id: UUID = Depends(get_current_user), session: Session = Depends(get_session)):
    return session.exec(
        select(InvestmentAllocation).where(InvestmentAllocation.user_id == user_id).order_by(InvestmentAllocation.bucket)
    ).all()


@router.post("/", response_model=List[AllocationRead])
def save_allocations(
    data: AllocationReplace,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    rows = [InvestmentAllocation(**item.model_dump(), user_id=user_id) for item in data.allocations]
    return replace_allocations(session, user_id, rows)


@router.get("/availability", response_model=List[BucketAvailability])
def availability_for_all_buckets(
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
    today: dt.date = Depends(get_today),
):
    return all_bucket_availability(session, user_id, today)


@router.get("/availability/{bucket}", response_model=BucketAvailability)
def availability_for_bucket(
    bucket: InvestmentBucket,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
    today: dt.date = Depends(get_today),
):
    return bucket_availability(session, user_id, bucket, today)
