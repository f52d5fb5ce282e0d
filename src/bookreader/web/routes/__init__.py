"""Route handlers for the Web API."""

from bookreader.web.routes.health import router as health_router
from bookreader.web.routes.reader import router as reader_router

__all__ = [
    "health_router",
    "reader_router",
]
