from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from uuid import UUID
from typing import List

from app.core.security import get_current_user
from app.database import get_session
from app.models.expense import Expense
from app.models.member import Member, MemberTransaction
from app.schemas.member import MemberCreate, MemberDetail, MemberRead, MemberTransactionRead
from app.services.member_ledger import get_owned_member

router = APIRouter(prefix="/members", tags=["members"])


@router.get("/", response_model=List[MemberRead])
def list_members(user_id: UUID = Depends(get_current_user), session: Session = Depends(get_session)):
    return session.exec(select(Member).where(Member.user_id == user_id).order_by(Member.name)).all()


@router.post("/", response_model=MemberRead)
def create_member(
    data: MemberCreate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    member = Member(**data.model_dump(), user_id=user_id)
    session.add(member)
    session.commit()
    session.refresh(member)
    return member


@router.get("/{member_id}", response_model=MemberDetail)
def get_member(member_id: int, user_id: UUID = Depends(get_current_user), session: Session = Depends(get_session)):
    member = get_owned_member(session, user_id, member_id)
    transactions = session.exec(
        select(MemberTransaction)
        .where(MemberTransaction.member_id == member.id)
        .order_by(MemberTransaction.date.desc(), MemberTransaction.id.desc())
    ).all()
    return MemberDetail(
        **MemberRead.model_validate(member).model_dump(),
        transactions=[MemberTransactionRead.model_validate(t) for t in transactions],
    )


@router.put("/{member_id}", response_model=MemberRead)
def update_member(
    member_id: int,
    data: MemberCreate,
    user_id: UUID = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    member = get_owned_member(session, user_id, member_id)
    member.name = data.name
    member.relation = data.relation
    session.add(member)
    session.commit()
    session.refresh(member)
    return member


@router.delete("/{member_id}")
def delete_member(member_id: int, user_id: UUID = Depends(get_current_user), session: Session = Depends(get_session)):
    member = get_owned_member(session, user_id, member_id)

    has_expenses = session.exec(select(Expense.id).where(Expense.member_id == member.id).limit(1)).first() is not None
    if has_expenses:
        raise HTTPException(400, "Cannot delete this member: expenses still reference them.")
    has_entries = session.exec(
        select(MemberTransaction.id).where(MemberTransaction.member_id == member.id).limit(1)
    ).first() is not None
    if has_entries:
        raise HTTPException(400, "Cannot delete this member: delete their transactions first.")

    session.delete(member)
    session.commit()
    return {"message": "Member deleted"}
