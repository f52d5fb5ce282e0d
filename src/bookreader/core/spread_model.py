"""Spread model: maps a linear page sequence onto book spreads.

Spread 0 is always the cover (page 1 alone). Spread s >= 1 shows pages
2s (left) and 2s+1 (right); when the right page falls past the end of the
document the right slot is empty.

Page numbers are 1-indexed. A right_page of 0 means "no right page".
"""

from __future__ import annotations

from dataclasses import dataclass


class SpreadOutOfRangeError(ValueError):
    """Raised when a spread index is outside [0, total_spreads - 1]."""

    def __init__(self, spread_index: int, total: int):
        self.spread_index = spread_index
        self.total = total
        super().__init__(
            f"Spread {spread_index} fuera de rango (total de spreads: {total})"
        )


@dataclass(frozen=True)
class Spread:
    """Pages shown together for one spread index."""

    index: int
    is_cover: bool
    left_page: int
    right_page: int
    total_spreads: int
    page_count: int

    @property
    def has_right_page(self) -> bool:
        return 0 < self.right_page <= self.page_count

    @property
    def visible_pages(self) -> list[int]:
        """Pages actually displayed (the empty right slot is dropped)."""
        if self.has_right_page:
            return [self.left_page, self.right_page]
        return [self.left_page]


def total_spreads(page_count: int) -> int:
    """Number of spreads for a document with page_count pages.

    >>> [total_spreads(n) for n in (0, 1, 2, 3, 48)]
    [0, 1, 2, 2, 25]
    """
    if page_count <= 0:
        return 0
    # 1 + ceil((page_count - 1) / 2)
    return 1 + page_count // 2


def compute_spread(page_count: int, spread_index: int) -> Spread:
    """Compute the pages displayed at spread_index.

    Raises:
        SpreadOutOfRangeError: If spread_index is not a valid spread,
            including any request against an empty document.
    """
    total = total_spreads(page_count)
    if not 0 <= spread_index < total:
        raise SpreadOutOfRangeError(spread_index, total)

    if spread_index == 0:
        return Spread(
            index=0,
            is_cover=True,
            left_page=1,
            right_page=0,
            total_spreads=total,
            page_count=page_count,
        )

    left = (spread_index - 1) * 2 + 2
    return Spread(
        index=spread_index,
        is_cover=False,
        left_page=left,
        right_page=left + 1,
        total_spreads=total,
        page_count=page_count,
    )


def spread_for_page(page_count: int, page: int) -> int:
    """Spread index that contains page (1-indexed).

    Raises:
        SpreadOutOfRangeError: If page is not inside the document.
    """
    if not 1 <= page <= page_count:
        raise SpreadOutOfRangeError(page, total_spreads(page_count))
    return page // 2


def page_range_label(spread: Spread) -> str:
    """Human-readable page range for the reader toolbar."""
    n = spread.page_count
    if spread.is_cover:
        return f"Capa (Página 1) de {n}"
    if spread.has_right_page:
        return f"Páginas {spread.left_page} - {spread.right_page} de {n}"
    return f"Página {spread.left_page} de {n}"
