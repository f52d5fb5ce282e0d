"""Reader session management for the Web API.

Each session is one ReaderShell (one open book) living on the server's
event loop, so flip timers and page renders keep running between requests.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog

from bookreader.core.clock import Scheduler
from bookreader.core.pdf_source import FitzPdfSource, PdfSource
from bookreader.core.reader import BookProvider, ReaderShell
from bookreader.services.books_client import BooksClient

logger = structlog.get_logger(__name__)


@dataclass
class ReaderSession:
    """An open reader."""

    session_id: str
    book_id: str
    shell: ReaderShell
    created_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for API response."""
        return {
            "session_id": self.session_id,
            "book_id": self.book_id,
            "created_at": self.created_at,
            "view": self.shell.view().to_dict(),
        }


class ReaderSessionManager:
    """Registry of open reader sessions.

    Args:
        books: Books service shared by all sessions (BooksClient by default).
        pdf_source: PDF capability shared by all sessions.
        scheduler: Timer source for flips (asyncio loop by default).
    """

    def __init__(
        self,
        books: BookProvider | None = None,
        pdf_source: PdfSource | None = None,
        scheduler: Scheduler | None = None,
    ):
        self._books = books
        self._pdf_source = pdf_source
        self._scheduler = scheduler
        self._sessions: dict[str, ReaderSession] = {}
        self._lock = asyncio.Lock()

    @property
    def books(self) -> BookProvider:
        if self._books is None:
            self._books = BooksClient()
        return self._books

    @property
    def pdf_source(self) -> PdfSource:
        if self._pdf_source is None:
            self._pdf_source = FitzPdfSource()
        return self._pdf_source

    async def create_session(self, book_id: str) -> ReaderSession:
        """Open a book in a new reader session.

        The session is created even when loading fails; its view then
        carries the error or "PDF unavailable" status.
        """
        session_id = str(uuid.uuid4())[:8]
        shell = ReaderShell(
            book_id,
            self.books,
            self.pdf_source,
            scheduler=self._scheduler,
        )
        await shell.open()

        session = ReaderSession(session_id=session_id, book_id=book_id, shell=shell)
        async with self._lock:
            self._sessions[session_id] = session

        logger.info(
            "reader_session_created",
            session_id=session_id,
            book_id=book_id,
            status=shell.status.value,
        )
        return session

    async def get_session(self, session_id: str) -> ReaderSession | None:
        """Get a session by ID."""
        async with self._lock:
            return self._sessions.get(session_id)

    async def end_session(self, session_id: str) -> bool:
        """Close a session and release its document.

        Returns:
            True if session was ended, False if not found
        """
        async with self._lock:
            session = self._sessions.pop(session_id, None)

        if session is None:
            return False

        session.shell.close()
        logger.info("reader_session_ended", session_id=session_id)
        return True

    async def list_sessions(self) -> list[ReaderSession]:
        """List all open sessions."""
        async with self._lock:
            return list(self._sessions.values())

    async def close_all(self) -> None:
        """End every session and close the shared books client."""
        async with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.shell.close()
        if isinstance(self._books, BooksClient):
            await self._books.aclose()
            self._books = None


# Global session manager instance
_session_manager: ReaderSessionManager | None = None


def get_session_manager() -> ReaderSessionManager:
    """Get the global session manager instance."""
    global _session_manager
    if _session_manager is None:
        _session_manager = ReaderSessionManager()
    return _session_manager


def reset_session_manager(manager: ReaderSessionManager | None = None) -> None:
    """Replace the session manager (for testing)."""
    global _session_manager
    _session_manager = manager
