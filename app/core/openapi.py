"""OpenAPI metadata and customization utilities.

Provides a helper to enrich the generated OpenAPI schema with:
- Tags metadata
- Bearer (JWT) security scheme with per-operation overrides

This keeps documentation concerns decoupled from the app factory.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI

# Operations reachable without a token: (method, path)
PUBLIC_OPERATIONS: set[tuple[str, str]] = {
    ("get", "/health"),
    ("post", "/api/auth/register"),
    ("post", "/api/auth/login"),
    ("post", "/api/auth/logout"),
    ("get", "/api/auth/verify-email/{token}"),
    ("post", "/api/auth/resend-verification"),
    ("post", "/api/auth/request-password-reset"),
    ("post", "/api/auth/reset-password"),
    ("get", "/api/books"),
    ("get", "/api/books/search"),
    ("get", "/api/books/search/openlibrary"),
    ("get", "/api/books/{book_id}"),
    ("get", "/api/books/{book_id}/reviews"),
    ("get", "/api/authors"),
    ("get", "/api/authors/info"),
    ("get", "/api/authors/id/{author_id}"),
    ("get", "/api/authors/name/{name}"),
    ("get", "/api/reviews/{review_id}"),
}

# Operations where a token is optional (anonymous reviews, owner checks)
OPTIONAL_AUTH_OPERATIONS: set[tuple[str, str]] = {
    ("post", "/api/books/{book_id}/reviews"),
    ("put", "/api/reviews/{review_id}"),
    ("delete", "/api/reviews/{review_id}"),
}

TAGS_METADATA = [
    {"name": "Auth", "description": "Registration, email verification, login and account management."},
    {"name": "Books", "description": "Book catalogue, search, OpenLibrary import and personal collections."},
    {"name": "Authors", "description": "Authors, author/book links and OpenLibrary author info."},
    {"name": "Reviews", "description": "Book reviews (anonymous or signed-in)."},
    {"name": "Admin", "description": "Administrative management; requires an ADMIN token."},
    {"name": "Health", "description": "Liveness checks."},
]


def apply_openapi_customizations(app: FastAPI) -> None:
    """Patch FastAPI's OpenAPI generation to add tags and bearer security.

    - Injects components.securitySchemes.BearerAuth (HTTP bearer, JWT)
    - Marks all operations as requiring it by default, then sets
      ``security: []`` on public ones and ``[{}, BearerAuth]`` where optional
    """

    original_openapi = app.openapi

    def custom_openapi() -> Dict[str, Any]:
        if app.openapi_schema:
            return app.openapi_schema

        schema = original_openapi()

        components = schema.setdefault("components", {})
        security_schemes = components.setdefault("securitySchemes", {})
        security_schemes.setdefault(
            "BearerAuth",
            {
                "type": "http",
                "scheme": "bearer",
                "bearerFormat": "JWT",
                "description": "Token from POST /api/auth/login, sent as 'Authorization: Bearer <token>'.",
            },
        )
        schema.setdefault("security", [{"BearerAuth": []}])

        tags = schema.setdefault("tags", [])
        existing_tag_names = {t.get("name") for t in tags}
        for tag in TAGS_METADATA:
            if tag["name"] not in existing_tag_names:
                tags.append(tag)

        for path, methods in schema.get("paths", {}).items():
            for method, operation in methods.items():
                if not isinstance(operation, dict):
                    continue
                if (method, path) in PUBLIC_OPERATIONS:
                    operation["security"] = []
                elif (method, path) in OPTIONAL_AUTH_OPERATIONS:
                    operation["security"] = [{}, {"BearerAuth": []}]

        app.openapi_schema = schema
        return schema

    app.openapi = custom_openapi  # type: ignore[assignment]
