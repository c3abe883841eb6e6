from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class BookStatus(str, Enum):
    AVAILABLE = "available"
    BORROWED = "borrowed"


class BookCreate(BaseModel):
    title: str
    isbn: str
    author_id: Optional[int] = None


class BookUpdate(BaseModel):
    title: Optional[str] = None
    isbn: Optional[str] = None
    author_id: Optional[int] = None


class BookRead(BaseModel):
    id: int
    title: str
    isbn: str
    status: BookStatus
    author_id: Optional[int] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
