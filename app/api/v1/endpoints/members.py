import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.api.v1.dependencies import get_db
from app.api.v1.dependencies_auth import (
    ensure_self_or_staff,
    get_current_principal,
    require_staff,
)
from app.core.security import hash_password
from app.db.models import Fine, Loan, Member
from app.schemas.auth import Principal
from app.schemas.loan import FineRead, LoanRead
from app.schemas.member import MemberCreate, MemberRead, MemberUpdate

logger = logging.getLogger("api.members")

router = APIRouter(
    prefix="/api/members",
    tags=["members"],
)


def _get_member_or_404(db: Session, member_id: int) -> Member:
    member = db.get(Member, member_id)
    if member is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Member not found.",
        )
    return member


@router.post("/register", response_model=MemberRead, status_code=status.HTTP_201_CREATED)
def register_member(
    payload: MemberCreate,
    db: Session = Depends(get_db),
):
    existing = db.query(Member).filter(Member.email == payload.email).first()
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered.",
        )

    member = Member(
        first_name=payload.first_name.strip(),
        last_name=payload.last_name.strip(),
        email=payload.email,
        phone=payload.phone,
        hashed_password=hash_password(payload.password),
    )
    db.add(member)
    db.commit()
    db.refresh(member)

    logger.info(
        "member_registered",
        extra={
            "operation": "member_register",
            "resource": "member",
            "member_id": member.id,
            "status_code": 201,
        },
    )
    return member


@router.get("/", response_model=List[MemberRead], dependencies=[Depends(require_staff)])
def list_members(
    q: Optional[str] = Query(None),
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    query = db.query(Member)

    if q:
        term = f"%{q}%"
        query = query.filter(
            or_(
                Member.first_name.ilike(term),
                Member.last_name.ilike(term),
                Member.email.ilike(term),
            )
        )

    return query.order_by(Member.last_name, Member.first_name).offset(skip).limit(limit).all()


@router.get("/{member_id}", response_model=MemberRead)
def get_member(
    member_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_self_or_staff(principal, member_id)
    return _get_member_or_404(db, member_id)


@router.put("/{member_id}", response_model=MemberRead)
def update_member(
    member_id: int,
    payload: MemberUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_self_or_staff(principal, member_id)
    member = _get_member_or_404(db, member_id)

    for field, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(member, field, value)

    db.commit()
    db.refresh(member)
    return member


@router.delete(
    "/{member_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_staff)],
)
def delete_member(
    member_id: int,
    db: Session = Depends(get_db),
):
    member = _get_member_or_404(db, member_id)
    if db.query(Loan.id).filter(Loan.member_id == member_id).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Member has loans.",
        )

    db.delete(member)
    db.commit()

    logger.info(
        "member_deleted",
        extra={
            "operation": "member_delete",
            "resource": "member",
            "member_id": member_id,
            "status_code": 204,
        },
    )
    return None


@router.get("/{member_id}/loans", response_model=List[LoanRead])
def list_member_loans(
    member_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_self_or_staff(principal, member_id)
    _get_member_or_404(db, member_id)
    return (
        db.query(Loan)
        .filter(Loan.member_id == member_id)
        .order_by(Loan.borrowed_at.desc())
        .all()
    )


@router.get("/{member_id}/fines", response_model=List[FineRead])
def list_member_fines(
    member_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    ensure_self_or_staff(principal, member_id)
    _get_member_or_404(db, member_id)
    return (
        db.query(Fine)
        .join(Loan, Fine.loan_id == Loan.id)
        .filter(Loan.member_id == member_id)
        .order_by(Fine.is_paid.asc(), Fine.id.desc())
        .all()
    )
