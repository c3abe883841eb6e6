from datetime import date, datetime, time, timedelta, timezone
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.api.v1.dependencies import get_db
from app.api.v1.dependencies_auth import require_staff
from app.core.logging import get_logger
from app.db.models import Book, Fine, Loan, Member
from app.schemas.auth import Principal
from app.schemas.dashboard import DashboardStats, LoanActivity, PopularBook

logger = get_logger("api.dashboard")

router = APIRouter(
    prefix="/api/dashboard",
    tags=["dashboard"],
)

POPULAR_BOOKS_LIMIT = 10
ACTIVITY_DAYS = 14


def _utc_day_start(day: date) -> datetime:
    # borrowed_at se guarda en UTC sin zona
    return datetime.combine(day, time.min)


def _utc_today() -> date:
    return datetime.now(timezone.utc).date()


@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_staff),
):
    """
    Contadores del panel de la consola de staff.
    """
    today_start = _utc_day_start(_utc_today())

    # === Catálogo / socios ===
    total_books = db.query(func.count(Book.id)).scalar() or 0
    total_members = db.query(func.count(Member.id)).scalar() or 0

    # === Préstamos ===
    active_loans = (
        db.query(func.count(Loan.id))
        .filter(Loan.returned_at.is_(None))
        .scalar()
        or 0
    )
    overdue_loans = (
        db.query(func.count(Loan.id))
        .filter(Loan.returned_at.is_(None), Loan.due_date < date.today())
        .scalar()
        or 0
    )
    today_loans = (
        db.query(func.count(Loan.id))
        .filter(Loan.borrowed_at >= today_start, Loan.borrowed_at < today_start + timedelta(days=1))
        .scalar()
        or 0
    )

    # === Multas ===
    unpaid_fines = (
        db.query(func.coalesce(func.sum(Fine.amount), 0))
        .filter(Fine.is_paid.is_(False))
        .scalar()
        or 0
    )

    stats = DashboardStats(
        total_books=total_books,
        total_members=total_members,
        active_loans=active_loans,
        overdue_loans=overdue_loans,
        today_loans=today_loans,
        unpaid_fines=float(unpaid_fines),
    )

    logger.info(
        "dashboard_stats_fetched",
        extra={
            "operation": "dashboard_stats",
            "resource": "stats",
            "staff_id": principal.id,
        },
    )
    return stats


@router.get("/popular-books", response_model=List[PopularBook], dependencies=[Depends(require_staff)])
def get_popular_books(db: Session = Depends(get_db)):
    """Libros más prestados en el mes en curso."""
    month_start = _utc_day_start(_utc_today().replace(day=1))
    borrow_count = func.count(Loan.id).label("borrow_count")

    rows = (
        db.query(Book.id, Book.title, borrow_count)
        .join(Loan, Loan.book_id == Book.id)
        .filter(Loan.borrowed_at >= month_start)
        .group_by(Book.id, Book.title)
        .order_by(borrow_count.desc(), Book.title)
        .limit(POPULAR_BOOKS_LIMIT)
        .all()
    )
    return [PopularBook(book_id=book_id, title=title, borrow_count=count) for book_id, title, count in rows]


@router.get("/loan-activity", response_model=List[LoanActivity], dependencies=[Depends(require_staff)])
def get_loan_activity(db: Session = Depends(get_db)):
    """Préstamos por día en las últimas dos semanas."""
    since = _utc_day_start(_utc_today() - timedelta(days=ACTIVITY_DAYS))
    day = func.date(Loan.borrowed_at).label("day")

    rows = (
        db.query(day, func.count(Loan.id))
        .filter(Loan.borrowed_at >= since)
        .group_by(day)
        .order_by(day)
        .all()
    )
    return [LoanActivity(date=d, count=count) for d, count in rows]
