"""Schemas for books, their author links and user collections."""

from pydantic import Field

from app.schemas.common import APIModel


class BookAuthor(APIModel):
    """An author as linked to a specific book."""

    id: int
    name: str
    is_primary: bool = False


class Book(APIModel):
    id: int
    title: str
    isbn: str | None = None
    publish_year: int | None = Field(None, alias="publishYear")
    author: str | None = Field(None, description="Comma-separated author names (legacy).")
    cover: str | None = None
    description: str | None = None
    created_at: str | None = Field(None, alias="createdAt")
    updated_at: str | None = Field(None, alias="updatedAt")
    authors: list[BookAuthor] = Field(default_factory=list)


class AuthorRef(APIModel):
    """Author given on book writes: an existing id, a name, or both."""

    id: int | None = None
    name: str | None = None


class BookWrite(APIModel):
    title: str | None = None
    isbn: str | None = None
    publish_year: int | None = Field(None, alias="publishYear")
    author: str | None = None
    authors: list[AuthorRef] | None = Field(
        None,
        description="Takes precedence over the comma-separated author string; first is primary.",
    )
    cover: str | None = None
    description: str | None = None


class BookCreate(BookWrite):
    add_to_collection: bool = Field(False, alias="addToCollection")


class IsbnImportRequest(APIModel):
    isbn: str | None = None
    add_to_collection: bool = Field(False, alias="addToCollection")


class CollectionAddRequest(APIModel):
    book_id: int | None = Field(None, alias="bookId")


class BookResponse(APIModel):
    message: str | None = None
    book: Book


class BookListResponse(APIModel):
    books: list[Book]
