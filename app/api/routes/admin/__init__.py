"""Admin-only routes; every endpoint requires an ADMIN bearer token."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.api.routes.admin.authors import router as authors_router
from app.api.routes.admin.books import router as books_router
from app.api.routes.admin.reviews import router as reviews_router
from app.api.routes.admin.users import router as users_router
from app.core.auth import require_admin

router = APIRouter(prefix="/admin", tags=["Admin"], dependencies=[Depends(require_admin)])
router.include_router(users_router)
router.include_router(books_router)
router.include_router(authors_router)
router.include_router(reviews_router)

__all__ = ["router"]
