"""Discrete zoom controller."""

from __future__ import annotations

from typing import Callable, Sequence

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_ZOOM_LEVELS: tuple[float, ...] = (0.5, 0.75, 1.0, 1.25, 1.5)


class ZoomController:
    """Keeps a zoom index into an ascending list of scale factors.

    Changes are clamped to the ends of the list; they never wrap.
    """

    def __init__(
        self,
        levels: Sequence[float] = DEFAULT_ZOOM_LEVELS,
        default_index: int | None = None,
    ):
        if not levels:
            raise ValueError("Se requiere al menos un nivel de zoom")
        self.levels: tuple[float, ...] = tuple(sorted(levels))
        if default_index is None:
            default_index = self.levels.index(1.0) if 1.0 in self.levels else 0
        self.default_index = self._clamp(default_index)
        self._index = self.default_index
        self._listeners: list[Callable[[float], None]] = []

    @property
    def index(self) -> int:
        return self._index

    @property
    def can_zoom_in(self) -> bool:
        return self._index < len(self.levels) - 1

    @property
    def can_zoom_out(self) -> bool:
        return self._index > 0

    def current_scale(self) -> float:
        return self.levels[self._index]

    def on_change(self, listener: Callable[[float], None]) -> None:
        """Register a callback receiving the new scale after each change."""
        self._listeners.append(listener)

    def zoom_in(self) -> bool:
        return self._set(self._index + 1)

    def zoom_out(self) -> bool:
        return self._set(self._index - 1)

    def zoom_reset(self) -> bool:
        return self._set(self.default_index)

    def _set(self, index: int) -> bool:
        new_index = self._clamp(index)
        if new_index == self._index:
            return False
        self._index = new_index
        scale = self.current_scale()
        logger.debug("zoom.changed", index=new_index, scale=scale)
        for listener in list(self._listeners):
            listener(scale)
        return True

    def _clamp(self, index: int) -> int:
        return max(0, min(index, len(self.levels) - 1))
