"""PDF source adapter.

Responsibilities:
- Open a PDF from a URL (downloaded) or a local path
- Report page count and embedded metadata
- Render one page at a given scale into a PNG surface

Rendering is blocking in PyMuPDF, so FitzPdfSource runs it in a worker
thread and exposes async methods. Anything implementing the PdfSource
protocol (e.g. a test double) can replace it.

Dependencies:
- pymupdf (fitz)
- httpx
"""

from __future__ import annotations

import asyncio
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import fitz
import httpx
import structlog

logger = structlog.get_logger(__name__)


class PdfSourceError(Exception):
    """Base exception for PDF source errors."""

    pass


class PdfLoadError(PdfSourceError):
    """Raised when a document cannot be fetched or decoded."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"No se pudo abrir el PDF '{source}': {reason}")


class PageRenderError(PdfSourceError):
    """Raised when a single page cannot be rendered."""

    def __init__(self, page_number: int, reason: str):
        self.page_number = page_number
        self.reason = reason
        super().__init__(f"No se pudo renderizar la página {page_number}: {reason}")


@dataclass
class PdfDocument:
    """Handle to a decoded PDF."""

    source: str
    page_count: int
    metadata: dict = field(default_factory=dict)
    handle: Any = field(default=None, repr=False)
    closed: bool = False
    # fitz documents must not be used from two threads at once
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self.handle is not None and hasattr(self.handle, "close"):
            with self.lock:
                self.handle.close()
        logger.debug("pdf_source.closed", source=self.source)


@dataclass(frozen=True)
class RenderedPage:
    """A rendered page surface."""

    page_number: int
    scale: float
    width: int
    height: int
    png: bytes = field(repr=False)


class PdfSource(Protocol):
    """Capability interface over the PDF rendering library."""

    async def load_document(self, url: str) -> PdfDocument: ...

    async def render_page(
        self, document: PdfDocument, page_number: int, scale: float
    ) -> RenderedPage: ...


class FitzPdfSource:
    """PdfSource implemented with PyMuPDF.

    Args:
        timeout: HTTP timeout (seconds) for remote documents.
        client: Optional shared httpx.AsyncClient.
    """

    def __init__(self, timeout: float = 30.0, client: httpx.AsyncClient | None = None):
        self.timeout = timeout
        self._client = client

    async def load_document(self, url: str) -> PdfDocument:
        """Open the PDF at url.

        Raises:
            PdfLoadError: On network errors, missing files, corrupt or
                password-protected documents.
        """
        logger.info("pdf_source.load_start", source=url)

        if url.startswith(("http://", "https://")):
            data = await self._download(url)
            document = await asyncio.to_thread(_open_stream, url, data)
        else:
            path = Path(url)
            if not path.exists():
                raise PdfLoadError(url, "archivo no encontrado")
            document = await asyncio.to_thread(_open_path, path)

        logger.info(
            "pdf_source.loaded",
            source=url,
            page_count=document.page_count,
            title=document.metadata.get("title"),
        )
        return document

    async def render_page(
        self, document: PdfDocument, page_number: int, scale: float
    ) -> RenderedPage:
        """Render a 1-indexed page at scale.

        Raises:
            PageRenderError: If the page is out of range, the document is
                closed, or PyMuPDF fails.
        """
        if document.closed:
            raise PageRenderError(page_number, "documento cerrado")
        if not 1 <= page_number <= document.page_count:
            raise PageRenderError(page_number, "página fuera de rango")
        if scale <= 0:
            raise PageRenderError(page_number, f"escala inválida: {scale}")

        return await asyncio.to_thread(_render_sync, document, page_number, scale)

    async def _download(self, url: str) -> bytes:
        try:
            if self._client is not None:
                response = await self._client.get(url, timeout=self.timeout)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning("pdf_source.download_failed", source=url, error=str(e))
            raise PdfLoadError(url, str(e)) from e
        return response.content


def _open_stream(source: str, data: bytes) -> PdfDocument:
    try:
        doc = fitz.open(stream=data, filetype="pdf")
    except (RuntimeError, ValueError) as e:
        raise PdfLoadError(source, f"PDF inválido o corrupto ({e})") from e
    return _wrap(source, doc)


def _open_path(path: Path) -> PdfDocument:
    try:
        doc = fitz.open(path)
    except (RuntimeError, ValueError) as e:
        raise PdfLoadError(str(path), f"PDF inválido o corrupto ({e})") from e
    return _wrap(str(path), doc)


def _wrap(source: str, doc: fitz.Document) -> PdfDocument:
    if doc.is_encrypted:
        doc.close()
        raise PdfLoadError(source, "PDF protegido con contraseña")
    return PdfDocument(
        source=source,
        page_count=len(doc),
        metadata=_extract_pdf_metadata(doc),
        handle=doc,
    )


def _render_sync(document: PdfDocument, page_number: int, scale: float) -> RenderedPage:
    with document.lock:
        if document.closed:
            raise PageRenderError(page_number, "documento cerrado")
        try:
            page = document.handle.load_page(page_number - 1)
            pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), annots=True)
            png = pix.tobytes("png")
        except (RuntimeError, ValueError) as e:
            raise PageRenderError(page_number, str(e)) from e

    return RenderedPage(
        page_number=page_number,
        scale=scale,
        width=pix.width,
        height=pix.height,
        png=png,
    )


def _extract_pdf_metadata(doc: fitz.Document) -> dict:
    """Extract embedded metadata from PDF.

    Args:
        doc: PyMuPDF document

    Returns:
        Dictionary with available metadata
    """
    metadata = doc.metadata or {}
    return {
        "title": metadata.get("title") or None,
        "author": metadata.get("author") or None,
        "subject": metadata.get("subject") or None,
        "creator": metadata.get("creator") or None,
        "producer": metadata.get("producer") or None,
    }
