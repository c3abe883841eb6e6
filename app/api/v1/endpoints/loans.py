import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.v1.dependencies import get_db
from app.api.v1.dependencies_auth import (
    ensure_self_or_staff,
    get_current_principal,
    require_staff,
)
from app.db.models import Book, Loan, Member
from app.schemas.book import BookStatus
from app.schemas.auth import Principal
from app.schemas.loan import LoanCreate, LoanRead

logger = logging.getLogger("api.loans")

router = APIRouter(
    prefix="/api/loans",
    tags=["loans"],
)

LOAN_STATUS_FILTERS = ("active", "returned", "overdue")


def _get_loan_or_404(db: Session, loan_id: int) -> Loan:
    loan = db.get(Loan, loan_id)
    if loan is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Loan not found.",
        )
    return loan


@router.get("/", response_model=List[LoanRead], dependencies=[Depends(require_staff)])
def list_loans(
    status_filter: Optional[str] = Query(None, alias="status"),
    member_id: Optional[int] = Query(None),
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    query = db.query(Loan)

    if member_id is not None:
        query = query.filter(Loan.member_id == member_id)

    wanted = (status_filter or "").strip().lower()
    if wanted == "active":
        query = query.filter(Loan.returned_at.is_(None))
    elif wanted == "returned":
        query = query.filter(Loan.returned_at.is_not(None))
    elif wanted == "overdue":
        query = query.filter(Loan.returned_at.is_(None), Loan.due_date < date.today())
    elif wanted:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"status must be one of: {', '.join(LOAN_STATUS_FILTERS)}.",
        )

    return query.order_by(Loan.borrowed_at.desc(), Loan.id.desc()).offset(skip).limit(limit).all()


@router.get("/{loan_id}", response_model=LoanRead)
def get_loan(
    loan_id: int,
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    loan = _get_loan_or_404(db, loan_id)
    ensure_self_or_staff(principal, loan.member_id)
    return loan


@router.post("/", response_model=LoanRead, status_code=status.HTTP_201_CREATED)
def create_loan(
    payload: LoanCreate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_staff),
):
    if db.get(Member, payload.member_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Member not found.",
        )

    book = db.get(Book, payload.book_id)
    if book is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Book not found.",
        )
    if book.status != BookStatus.AVAILABLE:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Book is not available.",
        )

    loan = Loan(
        member_id=payload.member_id,
        book_id=payload.book_id,
        librarian_id=principal.id,
        due_date=payload.due_date,
    )
    book.status = BookStatus.BORROWED
    db.add(loan)
    db.commit()
    db.refresh(loan)

    logger.info(
        "loan_created",
        extra={
            "operation": "loan_create",
            "resource": "loan",
            "loan_id": loan.id,
            "member_id": loan.member_id,
            "book_id": loan.book_id,
            "status_code": 201,
        },
    )
    return loan


@router.put("/{loan_id}/return", response_model=LoanRead, dependencies=[Depends(require_staff)])
def return_loan(
    loan_id: int,
    db: Session = Depends(get_db),
):
    loan = _get_loan_or_404(db, loan_id)
    if loan.returned_at is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Loan already returned.",
        )

    loan.returned_at = datetime.now(timezone.utc)
    loan.book.status = BookStatus.AVAILABLE
    db.commit()
    db.refresh(loan)

    logger.info(
        "loan_returned",
        extra={
            "operation": "loan_return",
            "resource": "loan",
            "loan_id": loan.id,
            "status_code": 200,
        },
    )
    return loan
