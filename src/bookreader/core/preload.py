"""Page preloading and render readiness.

For the spread on screen the scheduler renders its pages plus the pages
of the previous and next spreads, so that a flip shows already-rendered
pages. Renders are fire-and-forget asyncio tasks: nothing is cancelled on
navigation and results that arrive late are kept for reuse.

Readiness is keyed by (page, scale). After a zoom change a page rendered
at the old scale does not count as ready at the new one.
"""

from __future__ import annotations

import asyncio
from typing import Callable

import structlog

from bookreader.core.pdf_source import PdfDocument, PdfSource, PdfSourceError, RenderedPage
from bookreader.core.spread_model import Spread

logger = structlog.get_logger(__name__)

RenderKey = tuple[int, float]


def pages_to_render(left_page: int, right_page: int, page_count: int) -> list[int]:
    """Pages to render for a spread, in priority order.

    Current spread first, then the previous spread, then the next one.
    Pages outside [1, page_count] are dropped and duplicates removed.

    >>> pages_to_render(10, 11, 48)
    [10, 11, 8, 9, 12, 13]
    >>> pages_to_render(1, 0, 48)
    [1, 2, 3]
    """
    if left_page == 1:
        # Cover: nothing before it, next spread is pages 2-3
        candidates = [left_page, left_page + 1, left_page + 2]
    else:
        # A right_page of 0 or past the end is an empty right slot
        has_right = 0 < right_page <= page_count
        last = right_page if has_right else left_page
        candidates = [left_page]
        if has_right:
            candidates.append(right_page)
        candidates += [left_page - 2, left_page - 1, last + 1, last + 2]

    result: list[int] = []
    for page in candidates:
        if 1 <= page <= page_count and page not in result:
            result.append(page)
    return result


def spread_ready(
    left_page: int, right_page: int, rendered_pages: set[int], page_count: int
) -> bool:
    """Whether every visible page of a spread has been rendered."""
    if left_page not in rendered_pages:
        return False
    return right_page == 0 or right_page > page_count or right_page in rendered_pages


class RenderedPageSet:
    """Pages known to be rendered, per scale."""

    def __init__(self) -> None:
        self._keys: set[RenderKey] = set()

    def add(self, page: int, scale: float) -> None:
        self._keys.add((page, scale))

    def has(self, page: int, scale: float) -> bool:
        return (page, scale) in self._keys

    def pages_at(self, scale: float) -> set[int]:
        return {page for page, s in self._keys if s == scale}

    def clear(self) -> None:
        self._keys.clear()

    def __len__(self) -> int:
        return len(self._keys)

    def __contains__(self, key: object) -> bool:
        return key in self._keys


class PreloadScheduler:
    """Requests page renders and tracks which ones completed.

    Args:
        source: PDF rendering capability.
        document: The open document.
    """

    def __init__(self, source: PdfSource, document: PdfDocument):
        self.source = source
        self.document = document
        self.rendered = RenderedPageSet()
        self._surfaces: dict[RenderKey, RenderedPage] = {}
        self._in_flight: dict[RenderKey, asyncio.Task[None]] = {}
        self._failed: set[RenderKey] = set()
        self._listeners: list[Callable[[int, float], None]] = []

    @property
    def page_count(self) -> int:
        return self.document.page_count

    def on_rendered(self, listener: Callable[[int, float], None]) -> None:
        """Register a callback run with (page, scale) after each render."""
        self._listeners.append(listener)

    def preload(self, spread: Spread, scale: float) -> list[int]:
        """Schedule renders for a spread and its neighbours.

        Returns:
            Pages for which a new render was started.
        """
        pages = pages_to_render(spread.left_page, spread.right_page, self.page_count)
        return self.request(pages, scale)

    def request(self, pages: list[int], scale: float) -> list[int]:
        """Schedule renders for pages at scale, skipping known ones.

        Must be called from inside a running event loop.
        """
        loop = asyncio.get_running_loop()
        started: list[int] = []
        for page in pages:
            key = (page, scale)
            if key in self.rendered or key in self._in_flight or key in self._failed:
                continue
            self._in_flight[key] = loop.create_task(self._render(page, scale))
            started.append(page)

        if started:
            logger.debug("preload.requested", pages=started, scale=scale)
        return started

    def is_ready(self, spread: Spread, scale: float) -> bool:
        return spread_ready(
            spread.left_page,
            spread.right_page,
            self.rendered.pages_at(scale),
            self.page_count,
        )

    def surface(self, page: int, scale: float) -> RenderedPage | None:
        return self._surfaces.get((page, scale))

    def has_failed(self, page: int, scale: float) -> bool:
        return (page, scale) in self._failed

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def wait_idle(self) -> None:
        """Wait until every render scheduled so far has finished."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight.values()), return_exceptions=True)

    def close(self) -> None:
        """Cancel outstanding renders and drop cached surfaces."""
        for task in self._in_flight.values():
            task.cancel()
        self._in_flight.clear()
        self._surfaces.clear()
        self.rendered.clear()

    async def _render(self, page: int, scale: float) -> None:
        key = (page, scale)
        try:
            surface = await self.source.render_page(self.document, page, scale)
        except PdfSourceError as e:
            # The page stays "not ready"; the session continues
            self._failed.add(key)
            logger.warning("preload.render_failed", page=page, scale=scale, error=str(e))
            return
        finally:
            self._in_flight.pop(key, None)

        self._surfaces[key] = surface
        self.rendered.add(page, scale)
        logger.debug("preload.rendered", page=page, scale=scale)
        for listener in list(self._listeners):
            listener(page, scale)
