"""Reader shell: one open book in the reader.

Wires the pieces together:
- loads the Book record and its PDF document
- keyboard input -> FlipStateMachine (navigation) / ZoomController (zoom)
- every spread or scale change -> PreloadScheduler
- view() -> snapshot of what the UI should draw

Status flow:
    LOADING -> READY
            -> PDF_UNAVAILABLE  (book has no pdf_url; no document load attempted)
            -> ERROR            (book or document failed to load; no retry)
    any     -> CLOSED
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Protocol

import structlog

from bookreader.config.app_config import ReaderConfig, load_app_config
from bookreader.core.clock import AsyncioScheduler, Scheduler
from bookreader.core.flip import FlipDirection, FlipStateMachine
from bookreader.core.pdf_source import PdfDocument, PdfSource, PdfSourceError
from bookreader.core.preload import PreloadScheduler
from bookreader.core.spread_model import Spread, compute_spread, page_range_label, total_spreads
from bookreader.core.zoom import ZoomController
from bookreader.services.books_client import BooksApiError
from bookreader.services.models import Book

logger = structlog.get_logger(__name__)

# User-facing messages
MSG_MISSING_ID = "ID do livro não fornecido"
MSG_BOOK_LOAD_FAILED = "Erro ao carregar o livro"
MSG_PDF_UNAVAILABLE = "Este livro ainda não possui um arquivo PDF associado."
MSG_PDF_LOAD_FAILED = "Erro ao carregar o PDF"
MSG_PDF_EMPTY = "O PDF não possui páginas"

SAVE_PRINT_KEYS = {"s", "p"}


class ReaderStatus(str, Enum):
    LOADING = "loading"
    READY = "ready"
    PDF_UNAVAILABLE = "pdf_unavailable"
    ERROR = "error"
    CLOSED = "closed"


class BookProvider(Protocol):
    """What the shell needs from the books service."""

    async def get_book_by_id(self, book_id: str) -> Book: ...

    def resolve_pdf_url(self, path: str) -> str: ...


@dataclass(frozen=True)
class KeyEvent:
    """A key press as reported by the UI."""

    key: str
    ctrl: bool = False
    meta: bool = False
    shift: bool = False


@dataclass
class ReaderView:
    """Everything the UI needs to draw the reader."""

    status: str
    book_id: str | None = None
    title: str = ""
    author: str = ""
    curriculum_component: str = ""
    class_groups: list[str] = field(default_factory=list)
    error: str | None = None
    spread_index: int | None = None
    total_spreads: int = 0
    page_count: int = 0
    is_cover: bool = False
    left_page: int = 0
    right_page: int = 0
    page_label: str = ""
    loading: bool = False
    flip_phase: str = "idle"
    flip_direction: str | None = None
    scale: float = 1.0
    can_zoom_in: bool = False
    can_zoom_out: bool = False
    can_go_back: bool = False
    can_go_forward: bool = False
    fullscreen: bool = False
    css_classes: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class ReaderShell:
    """A reader session for a single book.

    Args:
        book_id: Id of the book to open.
        books: Books service (BooksClient or a double).
        pdf_source: PDF rendering capability.
        scheduler: Timer source for flip animations (asyncio by default).
        config: Reader settings (loaded from app config by default).
    """

    def __init__(
        self,
        book_id: str | None,
        books: BookProvider,
        pdf_source: PdfSource,
        scheduler: Scheduler | None = None,
        config: ReaderConfig | None = None,
    ):
        self.book_id = book_id
        self.books = books
        self.pdf_source = pdf_source
        self.scheduler = scheduler or AsyncioScheduler()
        self.config = config or load_app_config().reader

        self.status = ReaderStatus.LOADING
        self.error: str | None = None
        self.book: Book | None = None
        self.document: PdfDocument | None = None
        self.flip: FlipStateMachine | None = None
        self.preloader: PreloadScheduler | None = None
        self.zoom = ZoomController(self.config.zoom_levels, self.config.default_zoom_index)
        self.zoom.on_change(self._on_zoom_change)
        self.fullscreen = False

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def open(self) -> ReaderStatus:
        """Load the book record and its PDF document."""
        if self.document is not None or self.preloader is not None:
            self.close()
        self.status = ReaderStatus.LOADING
        self.error = None

        if not self.book_id:
            return self._fail(MSG_MISSING_ID)

        try:
            self.book = await self.books.get_book_by_id(self.book_id)
        except BooksApiError as e:
            logger.warning("reader.book_load_failed", book_id=self.book_id, error=str(e))
            return self._fail(MSG_BOOK_LOAD_FAILED)

        if not self.book.pdf_url:
            logger.info("reader.pdf_unavailable", book_id=self.book_id)
            self.status = ReaderStatus.PDF_UNAVAILABLE
            self.error = MSG_PDF_UNAVAILABLE
            return self.status

        pdf_url = self.books.resolve_pdf_url(self.book.pdf_url)
        try:
            document = await self.pdf_source.load_document(pdf_url)
        except PdfSourceError as e:
            logger.warning(
                "reader.document_load_failed",
                book_id=self.book_id,
                pdf_url=pdf_url,
                error=str(e),
            )
            return self._fail(MSG_PDF_LOAD_FAILED)

        if document.page_count == 0:
            document.close()
            return self._fail(MSG_PDF_EMPTY)

        self._attach(document)
        logger.info(
            "reader.opened",
            book_id=self.book_id,
            page_count=document.page_count,
            total_spreads=self.flip.total_spreads if self.flip else 0,
        )
        return self.status

    async def load_book(self, book_id: str) -> ReaderStatus:
        """Replace the open book with another one."""
        self.close()
        self.book_id = book_id
        self.book = None
        return await self.open()

    def close(self) -> None:
        """Release the document and stop pending work."""
        if self.flip is not None:
            self.flip.cancel()
            self.flip = None
        if self.preloader is not None:
            self.preloader.close()
            self.preloader = None
        if self.document is not None:
            self.document.close()
            self.document = None
        if self.status is not ReaderStatus.CLOSED:
            logger.debug("reader.closed", book_id=self.book_id)
        self.status = ReaderStatus.CLOSED

    def _attach(self, document: PdfDocument) -> None:
        self.document = document
        self.flip = FlipStateMachine(
            total_spreads(document.page_count),
            self.scheduler,
            phase_delay=self.config.flip_phase_seconds,
        )
        self.flip.subscribe(lambda _machine: self._preload_current())
        self.preloader = PreloadScheduler(self.pdf_source, document)
        self.status = ReaderStatus.READY
        self._preload_current()

    def _fail(self, message: str) -> ReaderStatus:
        self.status = ReaderStatus.ERROR
        self.error = message
        return self.status

    # -------------------------------------------------------------------------
    # Spread state
    # -------------------------------------------------------------------------

    @property
    def is_ready(self) -> bool:
        return self.status is ReaderStatus.READY

    def current_spread(self) -> Spread | None:
        if not self.is_ready or self.flip is None or self.document is None:
            return None
        return compute_spread(self.document.page_count, self.flip.spread_index)

    def is_spread_ready(self) -> bool:
        spread = self.current_spread()
        if spread is None or self.preloader is None:
            return False
        return self.preloader.is_ready(spread, self.zoom.current_scale())

    def page_label(self) -> str:
        spread = self.current_spread()
        return page_range_label(spread) if spread else ""

    def _preload_current(self) -> None:
        spread = self.current_spread()
        if spread is not None and self.preloader is not None:
            self.preloader.preload(spread, self.zoom.current_scale())

    def _on_zoom_change(self, scale: float) -> None:
        logger.debug("reader.zoom_changed", book_id=self.book_id, scale=scale)
        self._preload_current()

    # -------------------------------------------------------------------------
    # Navigation
    # -------------------------------------------------------------------------

    def navigate(self, direction: FlipDirection) -> bool:
        if not self.is_ready or self.flip is None:
            return False
        return self.flip.navigate(direction)

    def next_spread(self) -> bool:
        return self.navigate(FlipDirection.FORWARD)

    def previous_spread(self) -> bool:
        return self.navigate(FlipDirection.BACKWARD)

    def go_first(self) -> bool:
        if not self.is_ready or self.flip is None:
            return False
        return self.flip.jump_to_first()

    def go_last(self) -> bool:
        if not self.is_ready or self.flip is None:
            return False
        return self.flip.jump_to_last()

    # -------------------------------------------------------------------------
    # Input
    # -------------------------------------------------------------------------

    def handle_key(self, event: KeyEvent) -> bool:
        """Dispatch a key press.

        Returns:
            True if the browser default action should be prevented.
        """
        key = event.key
        if (event.ctrl or event.meta) and key.lower() in SAVE_PRINT_KEYS:
            logger.debug("reader.save_print_blocked", key=key)
            return True

        if key in ("ArrowRight", " ", "Space", "Spacebar"):
            self.next_spread()
            return True
        if key == "ArrowLeft":
            self.previous_spread()
            return True
        if key == "Home":
            self.go_first()
            return True
        if key == "End":
            self.go_last()
            return True
        return False

    def on_context_menu(self) -> bool:
        """Right-click is always suppressed."""
        return True

    def zoom_in(self) -> bool:
        return self.zoom.zoom_in()

    def zoom_out(self) -> bool:
        return self.zoom.zoom_out()

    def zoom_reset(self) -> bool:
        return self.zoom.zoom_reset()

    def toggle_fullscreen(self) -> bool:
        """Request the opposite fullscreen state; returns the new state."""
        self.fullscreen = not self.fullscreen
        return self.fullscreen

    def on_fullscreen_change(self, active: bool) -> None:
        """Sync with the platform's fullscreen change event (e.g. Esc)."""
        self.fullscreen = active

    # -------------------------------------------------------------------------
    # View
    # -------------------------------------------------------------------------

    def view(self) -> ReaderView:
        view = ReaderView(
            status=self.status.value,
            book_id=self.book_id,
            error=self.error,
            scale=self.zoom.current_scale(),
            can_zoom_in=self.zoom.can_zoom_in,
            can_zoom_out=self.zoom.can_zoom_out,
            fullscreen=self.fullscreen,
            loading=self.status is ReaderStatus.LOADING,
        )
        if self.book is not None:
            view.title = self.book.title
            view.author = self.book.author
            view.curriculum_component = self.book.curriculum_component
            view.class_groups = list(self.book.class_groups)

        spread = self.current_spread()
        if spread is not None and self.flip is not None:
            view.spread_index = spread.index
            view.total_spreads = spread.total_spreads
            view.page_count = spread.page_count
            view.is_cover = spread.is_cover
            view.left_page = spread.left_page
            view.right_page = spread.right_page if spread.has_right_page else 0
            view.page_label = page_range_label(spread)
            view.loading = not self.is_spread_ready()
            view.flip_phase = self.flip.phase.value
            view.flip_direction = self.flip.direction.value if self.flip.direction else None
            view.can_go_back = self.flip.can_navigate(FlipDirection.BACKWARD)
            view.can_go_forward = self.flip.can_navigate(FlipDirection.FORWARD)

        view.css_classes = self._css_classes(view)
        return view

    @staticmethod
    def _css_classes(view: ReaderView) -> list[str]:
        classes = ["book-reader"]
        if view.fullscreen:
            classes.append("fullscreen")
        if view.flip_phase != "idle" and view.flip_direction:
            classes.append(f"flip-{view.flip_phase}-{view.flip_direction}")
        if view.loading:
            classes.append("loading")
        return classes
