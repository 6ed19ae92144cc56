from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) to
improve testability and separation of concerns compared to a monolithic main.
"""

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import (
    admin_router,
    auth_router,
    authors_router,
    books_router,
    health_router,
    reviews_router,
)
from app.core.config import settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import enforce_rate_limit

API_PREFIX = "/api"


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Library API",
        description=(
            "REST API for a library platform: users with email verification and "
            "JWT auth, books, authors, reviews and personal collections, with "
            "OpenLibrary lookups for metadata enrichment."
        ),
        version="1.0.0",
        docs_url="/api-docs",
        openapi_url="/api-docs.json",
        redoc_url=None,
        debug=settings.app.debug,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.app.cors_origin_list,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[settings.log.request_id_header, "Retry-After"],
    )
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    @app.get("/", include_in_schema=False)
    def root() -> dict:
        return {"message": "Library API is running"}

    app.include_router(health_router)
    api_dependencies = [Depends(enforce_rate_limit)]
    for router in (auth_router, books_router, authors_router, reviews_router, admin_router):
        app.include_router(router, prefix=API_PREFIX, dependencies=api_dependencies)

    # OpenAPI customizations (security scheme, tags, exemptions)
    apply_openapi_customizations(app)

    return app
