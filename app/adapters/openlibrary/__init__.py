"""OpenLibrary adapter layer - metadata lookups with an outbound budget."""

from app.adapters.openlibrary.base import AbstractOpenLibraryClient
from app.adapters.openlibrary.factory import create_openlibrary_client, get_openlibrary_client
from app.adapters.openlibrary.http_client import OpenLibraryClient

__all__ = [
    "AbstractOpenLibraryClient",
    "OpenLibraryClient",
    "create_openlibrary_client",
    "get_openlibrary_client",
]
