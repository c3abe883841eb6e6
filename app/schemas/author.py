from typing import List, Optional

from pydantic import BaseModel

from app.schemas.book import BookRead


class AuthorCreate(BaseModel):
    first_name: str
    last_name: str


class AuthorUpdate(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class AuthorRead(BaseModel):
    id: int
    first_name: str
    last_name: str
    book_count: int = 0

    class Config:
        from_attributes = True


class AuthorDetail(AuthorRead):
    books: List[BookRead] = []
