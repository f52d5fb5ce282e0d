"""Book reader engine.

Modules:
- spread_model: page count / spread index mapping and page labels
- preload: pages to render, readiness, render cache
- flip: two-phase flip animation state machine
- clock: scheduler abstraction (asyncio and manual clock)
- zoom: discrete zoom levels
- pdf_source: PyMuPDF adapter
- reader: reader shell wiring everything together
"""

__all__ = [
    "spread_model",
    "preload",
    "flip",
    "clock",
    "zoom",
    "pdf_source",
    "reader",
]
