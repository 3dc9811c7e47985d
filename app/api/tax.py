from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session
from uuid import UUID

from app.core.clock import utcnow
from app.core.security import get_current_user
from app.database import get_session
from app.models.tax_setting import TaxSetting
from app.schemas.tax import TaxSettingCreate, TaxSettingRead
from app.services.monthly_aggregator import current_tax_setting

router = APIRouter(prefix="/tax", tags=["tax"])


@router.get("/", response_model=TaxSettingRead)
def get_tax_setting(user_id: UUID = Depends(get_current_user), session: Session = Depends(get_session)):
    setting = current_tax_setting(session, user_id)
    if not setting:
        raise HTTPException(status_code=404, detail="No tax setting configured")
    return setting


@router.put("/", response_model=TaxSettingRead)
def save_tax_setting(
    data: TaxSettingCreate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    setting = current_tax_setting(session, user_id) or TaxSetting(user_id=user_id)
    setting.mode = data.mode
    setting.percentage = data.percentage
    setting.fixed_amount = data.fixed_amount
    setting.updated_at = utcnow()
    session.add(setting)
    session.commit()
    session.refresh(setting)
    return setting


@router.delete("/")
def delete_tax_setting(user_id: UUID = Depends(get_current_user), session: Session = Depends(get_session)):
    setting = current_tax_setting(session, user_id)
    if not setting:
        raise HTTPException(status_code=404, detail="No tax setting configured")
    session.delete(setting)
    session.commit()
    return {"message": "Tax setting deleted"}
