from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.api.v1.dependencies import get_db
from app.api.v1.dependencies_auth import require_staff
from app.db.models import Author, Book, Loan
from app.schemas.book import BookCreate, BookRead, BookStatus, BookUpdate

router = APIRouter(
    prefix="/api/books",
    tags=["books"],
)

REQUIRED_BOOK_FIELDS = ("title", "isbn")


def _get_book_or_404(db: Session, book_id: int) -> Book:
    book = db.get(Book, book_id)
    if book is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Book not found.",
        )
    return book


def _check_author(db: Session, author_id: Optional[int]) -> None:
    if author_id is not None and db.get(Author, author_id) is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Author not found.",
        )


@router.get("/", response_model=List[BookRead])
def list_books(
    q: Optional[str] = Query(None),
    author_id: Optional[int] = Query(None),
    available: Optional[bool] = Query(None),
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    query = db.query(Book)

    if q:
        term = f"%{q}%"
        query = query.filter(or_(Book.title.ilike(term), Book.isbn.ilike(term)))
    if author_id is not None:
        query = query.filter(Book.author_id == author_id)
    if available is not None:
        wanted = BookStatus.AVAILABLE if available else BookStatus.BORROWED
        query = query.filter(Book.status == wanted)

    return query.order_by(Book.title).offset(skip).limit(limit).all()


@router.get("/{book_id}", response_model=BookRead)
def get_book(
    book_id: int,
    db: Session = Depends(get_db),
):
    return _get_book_or_404(db, book_id)


@router.post(
    "/",
    response_model=BookRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_staff)],
)
def create_book(
    payload: BookCreate,
    db: Session = Depends(get_db),
):
    _check_author(db, payload.author_id)

    if db.query(Book).filter(Book.isbn == payload.isbn).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="ISBN already exists.",
        )

    book = Book(
        title=payload.title,
        isbn=payload.isbn,
        author_id=payload.author_id,
        status=BookStatus.AVAILABLE,
    )
    db.add(book)
    db.commit()
    db.refresh(book)
    return book


@router.put("/{book_id}", response_model=BookRead, dependencies=[Depends(require_staff)])
def update_book(
    book_id: int,
    payload: BookUpdate,
    db: Session = Depends(get_db),
):
    book = _get_book_or_404(db, book_id)

    update_data = payload.model_dump(exclude_unset=True)

    # title e isbn son obligatorios; author_id=null desvincula el autor
    for field in REQUIRED_BOOK_FIELDS:
        if field in update_data and update_data[field] is None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"{field} cannot be null.",
            )

    if "author_id" in update_data:
        _check_author(db, update_data["author_id"])

    for field, value in update_data.items():
        setattr(book, field, value)

    db.commit()
    db.refresh(book)
    return book


@router.delete(
    "/{book_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_staff)],
)
def delete_book(
    book_id: int,
    db: Session = Depends(get_db),
):
    book = _get_book_or_404(db, book_id)
    if db.query(Loan.id).filter(Loan.book_id == book_id).first() is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Book has loans.",
        )

    db.delete(book)
    db.commit()
    return None
