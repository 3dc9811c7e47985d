from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from uuid import UUID
from typing import List
import datetime as dt

from app.core.clock import get_today
from app.core.security import get_current_user
from app.database import get_session
from app.models.salary import SalaryRecord
from app.schemas.salary import SalaryCreate, SalaryRead

router = APIRouter(prefix="/profile/salary", tags=["salary"])


@router.get("/", response_model=List[SalaryRead])
def salary_history(user_id: UUID = Depends(get_current_user), session: Session = Depends(get_session)):
    return session.exec(
        select(SalaryRecord)
        .where(SalaryRecord.user_id == user_id)
        .order_by(SalaryRecord.effective_from.desc(), SalaryRecord.id.desc())
    ).all()


@router.get("/current", response_model=SalaryRead)
def current_salary(
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
    today: dt.date = Depends(get_today),
):
    record = session.exec(
        select(SalaryRecord)
        .where(SalaryRecord.user_id == user_id, SalaryRecord.effective_from <= today)
        .order_by(SalaryRecord.effective_from.desc(), SalaryRecord.id.desc())
    ).first()
    if not record:
        raise HTTPException(status_code=404, detail="No salary on record")
    return record


@router.post("/", response_model=SalaryRead)
def set_salary(
    data: SalaryCreate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
    today: dt.date = Depends(get_today),
):
    """Start a new salary period; the open one ends where the new one begins."""
    effective_from = data.effective_from or today

    open_record = session.exec(
        select(SalaryRecord).where(SalaryRecord.user_id == user_id, SalaryRecord.effective_to == None)
    ).first()
    if open_record:
        if effective_from <= open_record.effective_from:
            raise HTTPException(
                status_code=400,
                detail="New salary must start after the current one "
                f"({open_record.effective_from.isoformat()})",
            )
        open_record.effective_to = effective_from
        session.add(open_record)

    record = SalaryRecord(user_id=user_id, monthly=data.monthly, effective_from=effective_from)
    session.add(record)
    session.commit()
    session.refresh(record)
    return record
