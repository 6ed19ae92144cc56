from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from app.api.dependencies import get_author_service
from app.schemas.author import AuthorDetailResponse, AuthorListResponse, AuthorResponse, AuthorWrite
from app.schemas.common import MessageResponse
from app.services.author_service import AuthorService

router = APIRouter(prefix="/authors")

ServiceDep = Annotated[AuthorService, Depends(get_author_service)]


@router.get("", response_model=AuthorListResponse)
def list_authors(service: ServiceDep) -> AuthorListResponse:
    return AuthorListResponse(authors=service.list_authors())


@router.get("/{author_id}", response_model=AuthorDetailResponse)
def get_author(author_id: int, service: ServiceDep) -> AuthorDetailResponse:
    author, books = service.get_author_with_books(author_id)
    return AuthorDetailResponse(author=author, books=books)


@router.post("", response_model=AuthorResponse, status_code=status.HTTP_201_CREATED)
def create_author(payload: AuthorWrite, service: ServiceDep) -> AuthorResponse:
    return AuthorResponse(message="Author created successfully", author=service.create_author(payload))


@router.put("/{author_id}", response_model=AuthorResponse)
def update_author(author_id: int, payload: AuthorWrite, service: ServiceDep) -> AuthorResponse:
    return AuthorResponse(message="Author updated successfully", author=service.update_author(author_id, payload))


@router.delete("/{author_id}", response_model=MessageResponse)
def delete_author(author_id: int, service: ServiceDep) -> MessageResponse:
    service.delete_author(author_id)
    return MessageResponse(message="Author deleted successfully")
