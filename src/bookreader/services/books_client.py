"""Client for the school library REST API (books resource).

Only the calls the reader needs are implemented:
- get_book_by_id(book_id) -> Book
- list_books(...) -> BookPage
- resolve_pdf_url(path) / resolve_file_url(path): make /uploads paths absolute
"""

from __future__ import annotations

import re
from typing import Any

import httpx
import structlog
from pydantic import ValidationError

from bookreader.config.app_config import load_app_config
from bookreader.services.models import Book, BookPage
from bookreader.services.session import UserSession, get_session

logger = structlog.get_logger(__name__)

_API_SUFFIX = re.compile(r"/api/?$")


class BooksApiError(Exception):
    """Base exception for books API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class BookNotFoundError(BooksApiError):
    """Raised when the API has no book with the given id."""

    def __init__(self, book_id: str):
        self.book_id = book_id
        super().__init__(f"Livro não encontrado: {book_id}", status_code=404)


class AuthenticationError(BooksApiError):
    """Raised when the API rejects the session token."""

    def __init__(self) -> None:
        super().__init__("Sessão expirada ou inválida", status_code=401)


def server_root(api_url: str) -> str:
    """Root origin of the API server (the API URL minus a trailing /api)."""
    return _API_SUFFIX.sub("", api_url)


def resolve_pdf_url(path: str, api_url: str, uploads_prefix: str = "/uploads") -> str:
    """Make an uploaded-file path absolute; other URLs pass through.

    >>> resolve_pdf_url("/uploads/a.pdf", "http://localhost:3001/api")
    'http://localhost:3001/uploads/a.pdf'
    >>> resolve_pdf_url("https://cdn.example.com/a.pdf", "http://localhost:3001/api")
    'https://cdn.example.com/a.pdf'
    """
    if path.startswith(uploads_prefix):
        return f"{server_root(api_url)}{path}"
    return path


class BooksClient:
    """Async client for /books.

    Args:
        base_url: API base URL (defaults to config api.base_url).
        timeout: Request timeout in seconds (defaults to config).
        session: User session providing the bearer token.
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        session: UserSession | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        api_config = load_app_config().api
        self.base_url = (base_url or api_config.base_url).rstrip("/")
        self.uploads_prefix = api_config.uploads_prefix
        self.timeout = timeout if timeout is not None else api_config.timeout
        self._session = session
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=transport,
        )

    @property
    def session(self) -> UserSession:
        return self._session if self._session is not None else get_session()

    async def __aenter__(self) -> BooksClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get_book_by_id(self, book_id: str) -> Book:
        """Fetch one book.

        Raises:
            BookNotFoundError: If the API answers 404.
            AuthenticationError: If the API answers 401.
            BooksApiError: On any other failure.
        """
        response = await self._get(f"/books/{book_id}")
        if response.status_code == 404:
            raise BookNotFoundError(book_id)
        self._raise_for_status(response, "Erro ao carregar o livro")
        return self._parse(Book, response, "Erro ao carregar o livro")

    async def list_books(
        self,
        search: str | None = None,
        curriculum_component: str | None = None,
        class_group: str | None = None,
        professor_id: str | None = None,
        student_id: str | None = None,
    ) -> BookPage:
        """List books with optional filters ("all" means no filter)."""
        params: dict[str, str] = {}
        if search:
            params["search"] = search
        filters = {
            "curriculum_component": curriculum_component,
            "class_group": class_group,
            "professor_id": professor_id,
            "student_id": student_id,
        }
        for name, value in filters.items():
            if value and value != "all":
                params[name] = value

        response = await self._get("/books", params=params)
        self._raise_for_status(response, "Erro ao buscar livros")
        return self._parse(BookPage, response, "Erro ao buscar livros")

    def resolve_pdf_url(self, path: str) -> str:
        return resolve_pdf_url(path, self.base_url, self.uploads_prefix)

    def resolve_file_url(self, path: str) -> str:
        if not path:
            return ""
        return resolve_pdf_url(path, self.base_url, self.uploads_prefix)

    async def _get(self, url: str, params: dict[str, str] | None = None) -> httpx.Response:
        try:
            response = await self._client.get(
                url, params=params, headers=self.session.auth_headers()
            )
        except httpx.HTTPError as e:
            logger.warning("books_client.request_failed", url=url, error=str(e))
            raise BooksApiError(f"Erro de rede: {e}") from e

        logger.debug("books_client.response", url=url, status=response.status_code)
        if response.status_code == 401:
            self.session.clear_token()
            logger.info("books_client.unauthorized", url=url)
            raise AuthenticationError()
        return response

    @staticmethod
    def _parse(model: Any, response: httpx.Response, message: str) -> Any:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.warning(
                "books_client.invalid_payload", url=str(response.url), error=str(e)
            )
            raise BooksApiError(message, status_code=response.status_code) from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, message: str) -> None:
        if response.is_success:
            return
        detail = message
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("error"):
            detail = f"{message}: {body['error']}"
        raise BooksApiError(detail, status_code=response.status_code)
