"""Reader session endpoints."""

import structlog
from fastapi import APIRouter, HTTPException, Response, status

from bookreader.core.reader import KeyEvent
from bookreader.web.schemas import (
    FullscreenRequest,
    KeyPressRequest,
    KeyPressResponse,
    ReaderSessionCreate,
    ReaderSessionResponse,
    ReaderViewResponse,
    ZoomRequest,
)
from bookreader.web.sessions import ReaderSession, get_session_manager

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/reader/sessions", tags=["reader"])


async def _get_or_404(session_id: str) -> ReaderSession:
    session = await get_session_manager().get_session(session_id)
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session '{session_id}' not found",
        )
    return session


def _view(session: ReaderSession) -> ReaderViewResponse:
    return ReaderViewResponse(**session.shell.view().to_dict())


@router.post("", response_model=ReaderSessionResponse, status_code=status.HTTP_201_CREATED)
async def open_reader(request: ReaderSessionCreate) -> ReaderSessionResponse:
    """Open a book in a new reader session."""
    session = await get_session_manager().create_session(request.book_id)
    return ReaderSessionResponse(
        session_id=session.session_id,
        book_id=session.book_id,
        created_at=session.created_at,
        view=_view(session),
    )


@router.get("/{session_id}", response_model=ReaderSessionResponse)
async def get_reader(session_id: str) -> ReaderSessionResponse:
    """Get the current state of a reader."""
    session = await _get_or_404(session_id)
    return ReaderSessionResponse(
        session_id=session.session_id,
        book_id=session.book_id,
        created_at=session.created_at,
        view=_view(session),
    )


@router.delete("/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_reader(session_id: str) -> None:
    """Close a reader and release its document."""
    if not await get_session_manager().end_session(session_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Session '{session_id}' not found",
        )


@router.post("/{session_id}/keys", response_model=KeyPressResponse)
async def press_key(session_id: str, request: KeyPressRequest) -> KeyPressResponse:
    """Forward a key press to the reader."""
    session = await _get_or_404(session_id)
    prevented = session.shell.handle_key(
        KeyEvent(key=request.key, ctrl=request.ctrl, meta=request.meta, shift=request.shift)
    )
    return KeyPressResponse(prevented=prevented, view=_view(session))


@router.post("/{session_id}/zoom", response_model=ReaderViewResponse)
async def zoom(session_id: str, request: ZoomRequest) -> ReaderViewResponse:
    """Zoom in, out, or back to the default scale."""
    session = await _get_or_404(session_id)
    shell = session.shell
    if request.action == "in":
        shell.zoom_in()
    elif request.action == "out":
        shell.zoom_out()
    else:
        shell.zoom_reset()
    return _view(session)


@router.post("/{session_id}/fullscreen", response_model=ReaderViewResponse)
async def fullscreen(session_id: str, request: FullscreenRequest) -> ReaderViewResponse:
    """Toggle fullscreen, or sync it with the browser's fullscreenchange."""
    session = await _get_or_404(session_id)
    if request.active is None:
        session.shell.toggle_fullscreen()
    else:
        session.shell.on_fullscreen_change(request.active)
    return _view(session)


@router.get("/{session_id}/pages/{page_number}.png")
async def page_image(session_id: str, page_number: int) -> Response:
    """PNG of a page rendered at the reader's current scale.

    Returns 404 while the page is not rendered yet.
    """
    session = await _get_or_404(session_id)
    shell = session.shell
    preloader = shell.preloader
    surface = None
    if preloader is not None:
        surface = preloader.surface(page_number, shell.zoom.current_scale())

    if surface is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Page {page_number} not rendered",
        )

    return Response(
        content=surface.png,
        media_type="image/png",
        headers={"Cache-Control": "no-store"},
    )
