"""Book Routes — catalog listing, details, add, and admin delete.

Invariants:
    - GET /books defaults to status=published, newest first; limit=0 means no limit
    - DELETE cascades to the book's orders (invoices are kept)

Design Decisions:
    - Thin catalog surface: the order core only needs reads; add/delete exist so the
      catalog can be seeded and cleaned without another service
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_catalog
from app.core.domain_types import BookStatus
from app.schemas.book import BookCreate, BookResponse
from app.services.catalog import CatalogService

router = APIRouter(prefix="/api/v1/books", tags=["books"])


@router.get("", response_model=list[BookResponse])
async def list_books(
    limit: int = Query(0, ge=0, le=100),
    status_filter: BookStatus = Query(BookStatus.PUBLISHED, alias="status"),
    catalog: CatalogService = Depends(get_catalog),
):
    books = await catalog.list_books(status=status_filter, limit=limit)
    return [BookResponse.from_model(b) for b in books]


@router.get("/{book_id}", response_model=BookResponse)
async def get_book(
    book_id: UUID, catalog: CatalogService = Depends(get_catalog),
):
    return BookResponse.from_model(await catalog.get(book_id))


@router.post(
    "", response_model=BookResponse, status_code=status.HTTP_201_CREATED,
)
async def add_book(
    body: BookCreate, catalog: CatalogService = Depends(get_catalog),
):
    return BookResponse.from_model(await catalog.add_book(body))


@router.delete("/{book_id}")
async def delete_book(
    book_id: UUID, catalog: CatalogService = Depends(get_catalog),
):
    """Admin: delete a book and every order that references it."""
    removed = await catalog.delete_book(book_id)
    return {"deleted": True, "orders_deleted": removed}
