from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class LoanCreate(BaseModel):
    member_id: int
    book_id: int
    # Lo decide quien llama; aquí no hay política de duración
    due_date: date


class LoanRead(BaseModel):
    id: int
    member_id: int
    book_id: int
    librarian_id: Optional[int] = None
    borrowed_at: datetime
    due_date: date
    returned_at: Optional[datetime] = None
    status: str  # "active", "returned" u "overdue"

    class Config:
        from_attributes = True


class FineRead(BaseModel):
    id: int
    loan_id: int
    amount: Decimal
    is_paid: bool

    class Config:
        from_attributes = True
