from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from app.api.dependencies import get_review_service
from app.core.auth import CurrentUser, require_admin
from app.schemas.review import ReviewListResponse, ReviewResponse, ReviewUpdate
from app.services.review_service import ReviewService

router = APIRouter(prefix="/reviews")

ServiceDep = Annotated[ReviewService, Depends(get_review_service)]
AdminDep = Annotated[CurrentUser, Depends(require_admin)]


@router.get("", response_model=ReviewListResponse)
def list_reviews(service: ServiceDep) -> ReviewListResponse:
    """Every review with reviewer account name and book title, newest first."""
    return ReviewListResponse(reviews=service.list_all())


@router.get("/book/{book_id}", response_model=ReviewListResponse)
def list_book_reviews(book_id: int, service: ServiceDep) -> ReviewListResponse:
    return ReviewListResponse(reviews=service.list_for_book(book_id))


@router.put("/{review_id}", response_model=ReviewResponse)
def update_review(review_id: int, payload: ReviewUpdate, admin: AdminDep, service: ServiceDep) -> ReviewResponse:
    review = service.update_review(review_id, payload, user=admin)
    return ReviewResponse(message="Review updated successfully", review=review)


@router.delete("/{review_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_review(review_id: int, admin: AdminDep, service: ServiceDep) -> Response:
    service.delete_review(review_id, user=admin)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
