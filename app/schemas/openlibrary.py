"""Response shapes for OpenLibrary-backed search and author lookups."""

from pydantic import Field

from app.schemas.common import APIModel


class OpenLibraryIsbnBook(APIModel):
    title: str
    author: str
    publish_year: int | None = Field(None, alias="publishYear")
    isbn: str
    cover: str | None = None
    description: str | None = None
    publisher: str | None = None
    subjects: list[str] = Field(default_factory=list)
    url: str | None = None


class OpenLibraryIsbnResult(APIModel):
    book: OpenLibraryIsbnBook


class OpenLibraryAuthorWork(APIModel):
    title: str
    author: str
    work_key: str | None = Field(None, alias="workKey")
    cover_id: int | None = Field(None, alias="coverId")
    cover: str | None = None
    first_publish_year: int | None = Field(None, alias="firstPublishYear")
    url: str | None = None
    description: str | None = None


class OpenLibraryAuthorResult(APIModel):
    author: str
    books: list[OpenLibraryAuthorWork]
    total: int


class OpenLibraryTitleBook(APIModel):
    title: str
    author: str
    first_publish_year: int | None = Field(None, alias="firstPublishYear")
    isbn: str | None = None
    cover_id: int | None = Field(None, alias="coverId")
    cover: str | None = None
    key: str | None = None
    url: str | None = None
    languages: list[str] = Field(default_factory=list)
    publishers: list[str] = Field(default_factory=list)


class OpenLibraryTitleResult(APIModel):
    books: list[OpenLibraryTitleBook]
    total: int
    offset: int
    limit: int


class OpenLibraryAuthorInfo(APIModel):
    name: str
    key: str
    birth_date: str | None = Field(None, alias="birthDate")
    top_work: str | None = Field(None, alias="topWork")
    work_count: int = Field(0, alias="workCount")
    photo_url: str | None = Field(None, alias="photoUrl")


class OpenLibraryWorkSummary(APIModel):
    title: str
    key: str | None = None
    first_publish_year: int | None = Field(None, alias="firstPublishYear")
    cover_id: int | None = Field(None, alias="coverId")
    cover: str | None = None


class OpenLibraryAuthorInfoResult(APIModel):
    author: OpenLibraryAuthorInfo
    works: list[OpenLibraryWorkSummary]
