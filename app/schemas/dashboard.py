from datetime import date

from pydantic import BaseModel


class DashboardStats(BaseModel):
    # Catálogo y socios
    total_books: int
    total_members: int

    # Préstamos
    active_loans: int
    overdue_loans: int
    today_loans: int

    # Suma de multas sin pagar
    unpaid_fines: float


class PopularBook(BaseModel):
    book_id: int
    title: str
    borrow_count: int


class LoanActivity(BaseModel):
    date: date
    count: int
