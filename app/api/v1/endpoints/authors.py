from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.api.v1.dependencies import get_db
from app.api.v1.dependencies_auth import require_staff
from app.db.models import Author, Book
from app.schemas.author import AuthorCreate, AuthorDetail, AuthorRead, AuthorUpdate

router = APIRouter(
    prefix="/api/authors",
    tags=["authors"],
)


def _get_author_or_404(db: Session, author_id: int) -> Author:
    author = db.get(Author, author_id)
    if author is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Author not found.",
        )
    return author


@router.get("/", response_model=List[AuthorRead])
def list_authors(
    q: Optional[str] = Query(None),
    db: Session = Depends(get_db),
):
    query = (
        db.query(Author, func.count(Book.id))
        .outerjoin(Book, Book.author_id == Author.id)
        .group_by(Author.id, Author.first_name, Author.last_name)
    )

    if q:
        term = f"%{q}%"
        query = query.filter(or_(Author.first_name.ilike(term), Author.last_name.ilike(term)))

    rows = query.order_by(Author.last_name, Author.first_name).all()
    return [
        AuthorRead(
            id=author.id,
            first_name=author.first_name,
            last_name=author.last_name,
            book_count=book_count,
        )
        for author, book_count in rows
    ]


@router.get("/{author_id}", response_model=AuthorDetail)
def get_author(
    author_id: int,
    db: Session = Depends(get_db),
):
    author = _get_author_or_404(db, author_id)
    books = sorted(author.books, key=lambda b: b.title)
    return AuthorDetail(
        id=author.id,
        first_name=author.first_name,
        last_name=author.last_name,
        book_count=len(books),
        books=books,
    )


@router.post(
    "/",
    response_model=AuthorRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_staff)],
)
def create_author(
    payload: AuthorCreate,
    db: Session = Depends(get_db),
):
    first_name = payload.first_name.strip()
    last_name = payload.last_name.strip()
    if not first_name or not last_name:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="first_name and last_name are required.",
        )

    author = Author(first_name=first_name, last_name=last_name)
    db.add(author)
    db.commit()
    db.refresh(author)
    return AuthorRead(id=author.id, first_name=author.first_name, last_name=author.last_name)


@router.put("/{author_id}", response_model=AuthorRead, dependencies=[Depends(require_staff)])
def update_author(
    author_id: int,
    payload: AuthorUpdate,
    db: Session = Depends(get_db),
):
    author = _get_author_or_404(db, author_id)

    # Los valores vacíos no pisan lo que ya hay
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value and value.strip():
            setattr(author, field, value.strip())

    db.commit()
    db.refresh(author)
    return AuthorRead(
        id=author.id,
        first_name=author.first_name,
        last_name=author.last_name,
        book_count=len(author.books),
    )


@router.delete(
    "/{author_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_staff)],
)
def delete_author(
    author_id: int,
    db: Session = Depends(get_db),
):
    author = _get_author_or_404(db, author_id)
    for book in author.books:
        book.author_id = None
    db.delete(author)
    db.commit()
    return None
