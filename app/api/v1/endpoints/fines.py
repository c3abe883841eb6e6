import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.api.v1.dependencies import get_db
from app.api.v1.dependencies_auth import require_staff
from app.db.models import Book, Fine, Loan, Member
from app.schemas.loan import FineRead

logger = logging.getLogger("api.fines")

router = APIRouter(
    prefix="/api/fines",
    tags=["fines"],
    dependencies=[Depends(require_staff)],
)

FINE_STATUS_FILTERS = ("paid", "unpaid")


@router.get("/", response_model=List[FineRead])
def list_fines(
    q: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    member_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
):
    query = (
        db.query(Fine)
        .join(Loan, Fine.loan_id == Loan.id)
        .join(Member, Loan.member_id == Member.id)
        .join(Book, Loan.book_id == Book.id)
    )

    if q:
        term = f"%{q}%"
        query = query.filter(
            or_(
                Member.first_name.ilike(term),
                Member.last_name.ilike(term),
                (Member.first_name + " " + Member.last_name).ilike(term),
                Book.title.ilike(term),
            )
        )

    wanted = (status_filter or "").strip().lower()
    if wanted == "unpaid":
        query = query.filter(Fine.is_paid.is_(False))
    elif wanted == "paid":
        query = query.filter(Fine.is_paid.is_(True))
    elif wanted:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"status must be one of: {', '.join(FINE_STATUS_FILTERS)}.",
        )

    if member_id is not None:
        query = query.filter(Loan.member_id == member_id)

    return query.order_by(Fine.is_paid.asc(), Loan.due_date.desc()).all()


@router.put("/settle/{fine_id}", response_model=FineRead)
def settle_fine(
    fine_id: int,
    db: Session = Depends(get_db),
):
    fine = db.get(Fine, fine_id)
    if fine is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Fine not found.",
        )

    fine.is_paid = True
    db.commit()
    db.refresh(fine)

    logger.info(
        "fine_settled",
        extra={
            "operation": "fine_settle",
            "resource": "fine",
            "fine_id": fine.id,
            "status_code": 200,
        },
    )
    return fine
