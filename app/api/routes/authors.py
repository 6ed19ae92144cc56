from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Depends, Query, Response, status

from app.api.dependencies import get_author_service, get_openlibrary_service
from app.core.auth import CurrentUser, get_current_user
from app.schemas.author import (
    AuthorBookLinkRequest,
    AuthorBookLinkResponse,
    AuthorDetailResponse,
    AuthorListResponse,
    AuthorResponse,
    AuthorWrite,
)
from app.schemas.common import MessageResponse
from app.services.author_service import AuthorService
from app.services.openlibrary_service import OpenLibraryService

router = APIRouter(prefix="/authors", tags=["Authors"])

AuthorServiceDep = Annotated[AuthorService, Depends(get_author_service)]
OpenLibraryServiceDep = Annotated[OpenLibraryService, Depends(get_openlibrary_service)]
CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]


@router.get("", response_model=AuthorListResponse)
def list_authors(service: AuthorServiceDep) -> AuthorListResponse:
    """All authors ordered by name, with their linked book count."""
    return AuthorListResponse(authors=service.list_authors())


@router.get("/info")
async def author_info(
    openlibrary: OpenLibraryServiceDep,
    name: Annotated[str | None, Query(description="Author name to look up on OpenLibrary")] = None,
    author_name: Annotated[str | None, Query(alias="authorName", include_in_schema=False)] = None,
) -> dict[str, Any]:
    """OpenLibrary profile (birth date, top work, photo) and ten works for an author."""
    result = await openlibrary.author_info(name or author_name)
    return result.model_dump(by_alias=True)


@router.get("/id/{author_id}", response_model=AuthorDetailResponse)
def get_author(author_id: int, service: AuthorServiceDep) -> AuthorDetailResponse:
    author, books = service.get_author_with_books(author_id)
    return AuthorDetailResponse(author=author, books=books)


@router.get("/name/{name}", response_model=AuthorDetailResponse)
def get_author_by_name(name: str, service: AuthorServiceDep) -> AuthorDetailResponse:
    author, books = service.get_author_by_name(name)
    return AuthorDetailResponse(author=author, books=books)


@router.post("", response_model=AuthorResponse, status_code=status.HTTP_201_CREATED)
def create_author(payload: AuthorWrite, _: CurrentUserDep, service: AuthorServiceDep) -> AuthorResponse:
    """Create an author; a case-insensitive name match is a 409 carrying the existing author."""
    author = service.create_author(payload)
    return AuthorResponse(message="Author created successfully", author=author)


@router.post("/book", response_model=AuthorBookLinkResponse)
def link_author_to_book(
    payload: AuthorBookLinkRequest,
    response: Response,
    _: CurrentUserDep,
    service: AuthorServiceDep,
) -> AuthorBookLinkResponse:
    """Link an author to a book (201), or update the primary flag of an existing link (200)."""
    link, created = service.link_book(payload.author_id, payload.book_id, is_primary=payload.is_primary)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    message = "Author linked to book successfully" if created else "Author-book link updated"
    return AuthorBookLinkResponse(message=message, link=link)


@router.delete("/{author_id}/book/{book_id}", response_model=MessageResponse)
def unlink_author_from_book(
    author_id: int,
    book_id: int,
    _: CurrentUserDep,
    service: AuthorServiceDep,
) -> MessageResponse:
    service.unlink_book(author_id, book_id)
    return MessageResponse(message="Author unlinked from book successfully")


@router.put("/{author_id}", response_model=AuthorResponse)
def update_author(
    author_id: int,
    payload: AuthorWrite,
    _: CurrentUserDep,
    service: AuthorServiceDep,
) -> AuthorResponse:
    author = service.update_author(author_id, payload)
    return AuthorResponse(message="Author updated successfully", author=author)


@router.delete("/{author_id}", response_model=MessageResponse)
def delete_author(author_id: int, _: CurrentUserDep, service: AuthorServiceDep) -> MessageResponse:
    service.delete_author(author_id)
    return MessageResponse(message="Author deleted successfully")
