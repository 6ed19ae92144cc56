from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.dependencies import (
    get_book_service,
    get_collection_service,
    get_openlibrary_service,
)
from app.core.auth import CurrentUser, get_current_user
from app.schemas.book import (
    BookCreate,
    BookListResponse,
    BookResponse,
    BookWrite,
    CollectionAddRequest,
    IsbnImportRequest,
)
from app.schemas.common import MessageResponse
from app.services.book_service import BookService, BookWriteResult
from app.services.collection_service import CollectionService
from app.services.openlibrary_service import OpenLibraryService

router = APIRouter(prefix="/books", tags=["Books"])

BookServiceDep = Annotated[BookService, Depends(get_book_service)]
CollectionServiceDep = Annotated[CollectionService, Depends(get_collection_service)]
OpenLibraryServiceDep = Annotated[OpenLibraryService, Depends(get_openlibrary_service)]
CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


def _write_response(result: BookWriteResult, response: Response) -> BookResponse:
    response.status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return BookResponse(message=result.message, book=result.book)


@router.get("", response_model=BookListResponse)
def list_books(service: BookServiceDep) -> BookListResponse:
    """All books ordered by title, each with its authors (primary first)."""
    return BookListResponse(books=service.list_books())


@router.get("/search", response_model=BookListResponse)
def search_books(
    service: BookServiceDep,
    q: Annotated[str | None, Query(description="Matches title, description and author names")] = None,
) -> BookListResponse:
    return BookListResponse(books=service.search_books(q))


@router.get("/search/openlibrary")
async def search_openlibrary(
    openlibrary: OpenLibraryServiceDep,
    query: Annotated[str | None, Query(description="ISBN, author name or title")] = None,
    search_type: Annotated[
        str | None, Query(alias="type", description="isbn, author or title (default)")
    ] = None,
    limit: Annotated[int | None, Query(ge=1, le=100)] = None,
) -> dict[str, Any]:
    """Search OpenLibrary; the response shape depends on ``type``.

    Each outbound call spends the shared OpenLibrary budget (429 when
    exhausted); cached lookups are free.
    """
    result = await openlibrary.search(query, search_type, limit=limit)
    return result.model_dump(by_alias=True)


@router.post("/isbn", response_model=BookResponse)
async def import_book_by_isbn(
    payload: IsbnImportRequest,
    response: Response,
    user: CurrentUserDep,
    service: BookServiceDep,
    openlibrary: OpenLibraryServiceDep,
) -> BookResponse:
    """Create a book from OpenLibrary metadata (201), or collect an existing one (200)."""
    result = await service.import_by_isbn(
        payload.isbn,
        openlibrary=openlibrary,
        user_id=user.id,
        add_to_collection_requested=payload.add_to_collection,
    )
    return _write_response(result, response)


@router.get("/user/collection", response_model=BookListResponse)
def list_collection(user: CurrentUserDep, service: CollectionServiceDep) -> BookListResponse:
    return BookListResponse(books=service.list_books(user.id))


@router.post("/user/collection", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def add_to_collection(
    payload: CollectionAddRequest,
    user: CurrentUserDep,
    service: CollectionServiceDep,
) -> MessageResponse:
    added = service.add_book(user.id, payload.book_id)
    message = "Book added to collection" if added else "Book is already in your collection"
    return MessageResponse(message=message)


@router.delete("/user/collection/{book_id}", response_model=MessageResponse)
def remove_from_collection(
    book_id: int,
    user: CurrentUserDep,
    service: CollectionServiceDep,
) -> MessageResponse:
    service.remove_book(user.id, book_id)
    return MessageResponse(message="Book removed from collection")


@router.get("/{book_id}", response_model=BookResponse)
def get_book(book_id: int, service: BookServiceDep) -> BookResponse:
    return BookResponse(book=service.get_book(book_id))


@router.post("", response_model=BookResponse)
def create_book(
    payload: BookCreate,
    response: Response,
    user: CurrentUserDep,
    service: BookServiceDep,
) -> BookResponse:
    """Create a book (201); an already-known ISBN returns the existing book (200)."""
    result = service.create_book(payload, user_id=user.id)
    return _write_response(result, response)


@router.put("/{book_id}", response_model=BookResponse)
def update_book(
    book_id: int,
    payload: BookWrite,
    _: CurrentUserDep,
    service: BookServiceDep,
) -> BookResponse:
    book = service.update_book(book_id, payload)
    return BookResponse(message="Book updated successfully", book=book)


@router.delete("/{book_id}", response_model=MessageResponse)
def delete_book(book_id: int, _: CurrentUserDep, service: BookServiceDep) -> MessageResponse:
    service.delete_book(book_id)
    return MessageResponse(message="Book deleted successfully")
