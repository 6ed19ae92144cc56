from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from app.api.dependencies import get_book_service, get_openlibrary_service
from app.core.auth import CurrentUser, require_admin
from app.schemas.book import BookCreate, BookListResponse, BookResponse, BookWrite, IsbnImportRequest
from app.schemas.common import MessageResponse
from app.services.book_service import BookService, BookWriteResult
from app.services.openlibrary_service import OpenLibraryService

router = APIRouter(prefix="/books")

ServiceDep = Annotated[BookService, Depends(get_book_service)]
OpenLibraryServiceDep = Annotated[OpenLibraryService, Depends(get_openlibrary_service)]
AdminDep = Annotated[CurrentUser, Depends(require_admin)]


def _write_response(result: BookWriteResult, response: Response) -> BookResponse:
    response.status_code = status.HTTP_201_CREATED if result.created else status.HTTP_200_OK
    return BookResponse(message=result.message, book=result.book)


@router.get("", response_model=BookListResponse)
def list_books(service: ServiceDep) -> BookListResponse:
    return BookListResponse(books=service.list_books())


@router.post("/isbn", response_model=BookResponse)
async def import_book_by_isbn(
    payload: IsbnImportRequest,
    response: Response,
    admin: AdminDep,
    service: ServiceDep,
    openlibrary: OpenLibraryServiceDep,
) -> BookResponse:
    result = await service.import_by_isbn(
        payload.isbn,
        openlibrary=openlibrary,
        user_id=admin.id,
        add_to_collection_requested=payload.add_to_collection,
    )
    return _write_response(result, response)


@router.get("/{book_id}", response_model=BookResponse)
def get_book(book_id: int, service: ServiceDep) -> BookResponse:
    return BookResponse(book=service.get_book(book_id))


@router.post("", response_model=BookResponse)
def create_book(payload: BookCreate, response: Response, admin: AdminDep, service: ServiceDep) -> BookResponse:
    return _write_response(service.create_book(payload, user_id=admin.id), response)


@router.put("/{book_id}", response_model=BookResponse)
def update_book(book_id: int, payload: BookWrite, service: ServiceDep) -> BookResponse:
    return BookResponse(message="Book updated successfully", book=service.update_book(book_id, payload))


@router.delete("/{book_id}", response_model=MessageResponse)
def delete_book(book_id: int, service: ServiceDep) -> MessageResponse:
    service.delete_book(book_id)
    return MessageResponse(message="Book deleted successfully")
