"""Schemas for book reviews."""

from pydantic import Field

from app.schemas.common import APIModel


class Review(APIModel):
    id: int
    book_id: int = Field(..., alias="bookId")
    user_id: int | None = Field(None, alias="userId")
    username: str
    rating: int = Field(..., ge=1, le=5)
    comment: str
    created_at: str | None = Field(None, alias="createdAt")
    updated_at: str | None = Field(None, alias="updatedAt")
    book_title: str | None = None
    user_name: str | None = None


class ReviewCreate(APIModel):
    rating: int | None = None
    comment: str | None = None
    username: str | None = Field(None, description="Required for anonymous reviews.")


class ReviewUpdate(APIModel):
    rating: int | None = None
    comment: str | None = None


class ReviewResponse(APIModel):
    message: str | None = None
    review: Review


class ReviewListResponse(APIModel):
    reviews: list[Review]
