from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from uuid import UUID
from typing import List

from app.core.security import get_current_user
from app.database import get_session
from app.models.sip import SIP, SIPExecution
from app.schemas.sip import SIPCreate, SIPExecutionRead, SIPRead, SIPUpdate
from app.services.cost_basis import normalize_symbol
from app.services.monthly_aggregator import sip_monthly_equivalent

router = APIRouter(prefix="/sips", tags=["sips"])


def _read(sip: SIP) -> SIPRead:
    return SIPRead.model_validate(sip).model_copy(update={"monthly_equivalent": round(sip_monthly_equivalent(sip), 2)})


def _get_owned_sip(session: Session, user_id: UUID, sip_id: int) -> SIP:
    sip = session.exec(select(SIP).where(SIP.id == sip_id, SIP.user_id == user_id)).first()
    if not sip:
        raise HTTPException(status_code=404, detail="SIP not found")
    return sip


@router.get("/", response_model=List[SIPRead])
def list_sips(user_id: UUID = Depends(get_current_user), session: Session = Depends(get_session)):
    sips = session.exec(select(SIP).where(SIP.user_id == user_id).order_by(SIP.start_date)).all()
    return [_read(s) for s in sips]


@router.post("/", response_model=SIPRead)
def create_sip(data: SIPCreate, user_id: UUID = Depends(get_current_user), session: Session = Depends(get_session)):
    values = data.model_dump()
    if values["symbol"]:
        values["symbol"] = normalize_symbol(values["symbol"])

    sip = SIP(**values, user_id=user_id)
    session.add(sip)
    session.commit()
    session.refresh(sip)
    return _read(sip)


@router.put("/{sip_id}", response_model=SIPRead)
def update_sip(
    sip_id: int,
    data: SIPUpdate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    sip = _get_owned_sip(session, user_id, sip_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if field == "symbol" and value:
            value = normalize_symbol(value)
        setattr(sip, field, value)

    if sip.end_date is not None and sip.end_date < sip.start_date:
        raise HTTPException(status_code=400, detail="end_date cannot be before start_date")

    session.add(sip)
    session.commit()
    session.refresh(sip)
    return _read(sip)


@router.delete("/{sip_id}")
def delete_sip(sip_id: int, user_id: UUID = Depends(get_current_user), session: Session = Depends(get_session)):
    sip = _get_owned_sip(session, user_id, sip_id)

    has_executions = session.exec(select(SIPExecution.id).where(SIPExecution.sip_id == sip.id).limit(1)).first()
    if has_executions is not None:
        # Executions are part of the investment history; stop the SIP instead
        sip.is_active = False
        session.add(sip)
        session.commit()
        return {"message": "SIP has executions and was deactivated"}

    session.delete(sip)
    session.commit()
    return {"message": "SIP deleted"}


@router.get("/{sip_id}/executions", response_model=List[SIPExecutionRead])
def list_executions(sip_id: int, user_id: UUID = Depends(get_current_user), session: Session = Depends(get_session)):
    sip = _get_owned_sip(session, user_id, sip_id)
    return session.exec(
        select(SIPExecution)
        .where(SIPExecution.sip_id == sip.id)
        .order_by(SIPExecution.execution_date.desc(), SIPExecution.id.desc())
    ).all()
