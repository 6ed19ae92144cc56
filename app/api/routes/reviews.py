from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from app.api.dependencies import get_review_service
from app.core.auth import CurrentUser, get_optional_user
from app.schemas.review import Review, ReviewCreate, ReviewResponse, ReviewUpdate
from app.services.review_service import ReviewService

router = APIRouter(tags=["Reviews"])

ReviewServiceDep = Annotated[ReviewService, Depends(get_review_service)]
OptionalUserDep = Annotated[CurrentUser | None, Depends(get_optional_user)]


@router.get("/books/{book_id}/reviews", response_model=list[Review])
def list_book_reviews(book_id: int, service: ReviewServiceDep) -> list[Review]:
    """Reviews for a book, newest first."""
    return service.list_for_book(book_id)


@router.post(
    "/books/{book_id}/reviews",
    response_model=ReviewResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_review(
    book_id: int,
    payload: ReviewCreate,
    user: OptionalUserDep,
    service: ReviewServiceDep,
) -> ReviewResponse:
    """Post a review. Anonymous reviewers must give a username; signed-in ones default to their name."""
    review = service.create_review(book_id, payload, user=user)
    return ReviewResponse(message="Review created successfully", review=review)


@router.get("/reviews/{review_id}", response_model=ReviewResponse)
def get_review(review_id: int, service: ReviewServiceDep) -> ReviewResponse:
    return ReviewResponse(review=service.get_review(review_id))


@router.put("/reviews/{review_id}", response_model=ReviewResponse)
def update_review(
    review_id: int,
    payload: ReviewUpdate,
    user: OptionalUserDep,
    service: ReviewServiceDep,
) -> ReviewResponse:
    """Owner or admin only; accepts rating and/or comment."""
    review = service.update_review(review_id, payload, user=user)
    return ReviewResponse(message="Review updated successfully", review=review)


@router.delete("/reviews/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_review(review_id: int, user: OptionalUserDep, service: ReviewServiceDep) -> Response:
    service.delete_review(review_id, user=user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
