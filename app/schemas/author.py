"""Schemas for authors and author/book links."""

from pydantic import Field

from app.schemas.book import Book
from app.schemas.common import APIModel


class Author(APIModel):
    id: int
    name: str
    biography: str | None = None
    birth_date: str | None = None
    photo_url: str | None = None
    created_at: str | None = Field(None, alias="createdAt")
    updated_at: str | None = Field(None, alias="updatedAt")
    book_count: int | None = None


class AuthorWrite(APIModel):
    name: str | None = None
    biography: str | None = None
    birth_date: str | None = None
    photo_url: str | None = None


class AuthorResponse(APIModel):
    message: str | None = None
    author: Author


class AuthorListResponse(APIModel):
    authors: list[Author]


class AuthorDetailResponse(APIModel):
    author: Author
    books: list[Book]


class AuthorBookLinkRequest(APIModel):
    author_id: int | None = Field(None, alias="authorId")
    book_id: int | None = Field(None, alias="bookId")
    is_primary: bool = Field(False, alias="isPrimary")


class AuthorBookLink(APIModel):
    author_id: int
    book_id: int
    is_primary: bool


class AuthorBookLinkResponse(APIModel):
    message: str
    link: AuthorBookLink
