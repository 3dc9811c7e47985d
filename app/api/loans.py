import calendar
import datetime as dt
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from uuid import UUID
from typing import List

from app.core.clock import get_today
from app.core.security import get_current_user
from app.database import get_session
from app.models.loan import Loan, LoanEmi
from app.schemas.loan import EmiPayment, LoanClose, LoanCreate, LoanDetail, LoanEmiRead, LoanRead, LoanUpdate
from app.services.period_guard import ensure_month_open

router = APIRouter(prefix="/loans", tags=["loans"])


def _add_months(start: dt.date, months: int) -> dt.date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    # Clamp e.g. Jan 31 + 1 month to the last day of February
    day = min(start.day, calendar.monthrange(year, month)[1])
    return dt.date(year, month, day)


def emi_schedule(loan: Loan) -> List[LoanEmi]:
    return [
        LoanEmi(installment_number=n + 1, due_date=_add_months(loan.start_date, n), amount=loan.emi_amount)
        for n in range(loan.tenure)
    ]


def _get_owned_loan(session: Session, user_id: UUID, loan_id: int) -> Loan:
    loan = session.exec(select(Loan).where(Loan.id == loan_id, Loan.user_id == user_id)).first()
    if not loan:
        raise HTTPException(status_code=404, detail="Loan not found")
    return loan


def _detail(loan: Loan) -> LoanDetail:
    return LoanDetail(
        **LoanRead.model_validate(loan).model_dump(),
        emis=[LoanEmiRead.model_validate(e) for e in loan.emis],
    )


@router.get("/", response_model=List[LoanRead])
def list_loans(user_id: UUID = Depends(get_current_user), session: Session = Depends(get_session)):
    return session.exec(select(Loan).where(Loan.user_id == user_id).order_by(Loan.start_date.desc())).all()


@router.post("/", response_model=LoanDetail)
def create_loan(
    data: LoanCreate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    values = data.model_dump()
    if values["current_outstanding"] is None:
        values["current_outstanding"] = data.principal_amount

    loan = Loan(**values, user_id=user_id)
    loan.emis = emi_schedule(loan)
    session.add(loan)
    session.commit()
    session.refresh(loan)
    return _detail(loan)


@router.get("/{loan_id}", response_model=LoanDetail)
def get_loan(loan_id: int, user_id: UUID = Depends(get_current_user), session: Session = Depends(get_session)):
    return _detail(_get_owned_loan(session, user_id, loan_id))


@router.put("/{loan_id}", response_model=LoanRead)
def update_loan(
    loan_id: int,
    data: LoanUpdate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    loan = _get_owned_loan(session, user_id, loan_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(loan, field, value)
    session.add(loan)
    session.commit()
    session.refresh(loan)
    return loan


@router.post("/{loan_id}/emis/{emi_id}/pay", response_model=LoanDetail)
def pay_emi(
    loan_id: int,
    emi_id: int,
    payment: EmiPayment,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
    today: dt.date = Depends(get_today),
):
    loan = _get_owned_loan(session, user_id, loan_id)
    emi = session.exec(select(LoanEmi).where(LoanEmi.id == emi_id, LoanEmi.loan_id == loan.id)).first()
    if not emi:
        raise HTTPException(status_code=404, detail="EMI not found")
    if emi.is_paid:
        raise HTTPException(status_code=400, detail="This EMI is already paid")
    if loan.is_closed:
        raise HTTPException(status_code=400, detail="This loan is closed")

    paid_date = payment.paid_date or today
    ensure_month_open(session, user_id, paid_date, "pay EMIs")

    emi.is_paid = True
    emi.paid_date = paid_date
    loan.current_outstanding = max(0.0, loan.current_outstanding - emi.amount)
    session.add(emi)
    session.add(loan)
    session.commit()
    session.refresh(loan)
    return _detail(loan)


@router.post("/{loan_id}/close", response_model=LoanRead)
def close_loan(
    loan_id: int,
    data: LoanClose,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
    today: dt.date = Depends(get_today),
):
    loan = _get_owned_loan(session, user_id, loan_id)
    if loan.is_closed:
        raise HTTPException(status_code=400, detail="This loan is already closed")

    closed_at = data.closed_at or today
    ensure_month_open(session, user_id, closed_at, "close loans")

    loan.is_closed = True
    loan.closed_at = closed_at
    loan.current_outstanding = 0.0
    session.add(loan)
    session.commit()
    session.refresh(loan)
    return loan


@router.delete("/{loan_id}")
def delete_loan(loan_id: int, user_id: UUID = Depends(get_current_user), session: Session = Depends(get_session)):
    loan = _get_owned_loan(session, user_id, loan_id)
    session.delete(loan)
    session.commit()
    return {"message": "Loan deleted"}
