"""Clients for the external school library services."""

from bookreader.services.books_client import (
    AuthenticationError,
    BookNotFoundError,
    BooksApiError,
    BooksClient,
    resolve_pdf_url,
)
from bookreader.services.models import Book, BookPage, User
from bookreader.services.session import clear_session, get_session, init_session

__all__ = [
    "AuthenticationError",
    "Book",
    "BookNotFoundError",
    "BookPage",
    "BooksApiError",
    "BooksClient",
    "User",
    "clear_session",
    "get_session",
    "init_session",
    "resolve_pdf_url",
]
