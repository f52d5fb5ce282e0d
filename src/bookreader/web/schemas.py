"""Pydantic schemas for the reader Web API."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, Field


# =============================================================================
# READER SCHEMAS
# =============================================================================


class ReaderViewResponse(BaseModel):
    """Snapshot of a reader for the UI."""

    status: str
    book_id: str | None = None
    title: str = ""
    author: str = ""
    curriculum_component: str = ""
    class_groups: list[str] = Field(default_factory=list)
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
    css_classes: list[str] = Field(default_factory=list)


class ReaderSessionCreate(BaseModel):
    """Request to open a book."""

    book_id: str = Field(..., min_length=1)


class ReaderSessionResponse(BaseModel):
    """Response for a reader session."""

    session_id: str
    book_id: str
    created_at: str
    view: ReaderViewResponse


class KeyPressRequest(BaseModel):
    """A key press forwarded by the browser."""

    key: str = Field(..., min_length=1, max_length=32)
    ctrl: bool = False
    meta: bool = False
    shift: bool = False


class KeyPressResponse(BaseModel):
    """Result of a key press."""

    prevented: bool
    view: ReaderViewResponse


class ZoomRequest(BaseModel):
    action: Literal["in", "out", "reset"]


class FullscreenRequest(BaseModel):
    """Fullscreen change; omit `active` to toggle."""

    active: bool | None = None


# =============================================================================
# HEALTH SCHEMAS
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str = "0.1.0"
    timestamp: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
