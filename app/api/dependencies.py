"""Request-scoped service providers for FastAPI routes."""

from __future__ import annotations

import sqlite3
from typing import Annotated

from fastapi import Depends

from app.adapters.email.base import AbstractEmailSender
from app.adapters.email.factory import get_email_sender
from app.adapters.openlibrary.base import AbstractOpenLibraryClient
from app.adapters.openlibrary.factory import get_openlibrary_client
from app.db.database import get_connection
from app.services.auth_service import AuthService
from app.services.author_service import AuthorService
from app.services.book_service import BookService
from app.services.collection_service import CollectionService
from app.services.email_service import EmailService
from app.services.openlibrary_service import OpenLibraryService
from app.services.review_service import ReviewService
from app.services.user_admin_service import UserAdminService

Connection = Annotated[sqlite3.Connection, Depends(get_connection)]


def get_email_service(
    sender: Annotated[AbstractEmailSender, Depends(get_email_sender)],
) -> EmailService:
    return EmailService(sender)


def get_auth_service(
    conn: Connection,
    email_service: Annotated[EmailService, Depends(get_email_service)],
) -> AuthService:
    return AuthService(conn, email_service)


def get_user_admin_service(
    conn: Connection,
    email_service: Annotated[EmailService, Depends(get_email_service)],
) -> UserAdminService:
    return UserAdminService(conn, email_service)


def get_book_service(conn: Connection) -> BookService:
    return BookService(conn)


def get_collection_service(conn: Connection) -> CollectionService:
    return CollectionService(conn)


def get_author_service(conn: Connection) -> AuthorService:
    return AuthorService(conn)


def get_review_service(conn: Connection) -> ReviewService:
    return ReviewService(conn)


def get_openlibrary_service(
    client: Annotated[AbstractOpenLibraryClient, Depends(get_openlibrary_client)],
) -> OpenLibraryService:
    return OpenLibraryService(client)
