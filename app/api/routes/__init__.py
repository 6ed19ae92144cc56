from __future__ import annotations

from app.api.routes.admin import router as admin_router
from app.api.routes.auth import router as auth_router
from app.api.routes.authors import router as authors_router
from app.api.routes.books import router as books_router
from app.api.routes.health import router as health_router
from app.api.routes.reviews import router as reviews_router

__all__ = [
    "admin_router",
    "auth_router",
    "authors_router",
    "books_router",
    "health_router",
    "reviews_router",
]
