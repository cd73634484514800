"""Viewport (pan/zoom) transform between simulation space and screen space.

screen = translate + scale * sim

The viewport never reads or writes simulation state; changing it only
changes where the renderer draws.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from loguru import logger

from ..config.defaults import DEFAULT_MAX_SCALE, DEFAULT_MIN_SCALE
from .models import ViewportState

Point = tuple[float, float]


@dataclass(frozen=True)
class ViewportTransform:
    translate_x: float = 0.0
    translate_y: float = 0.0
    scale: float = 1.0

    @classmethod
    def identity(cls) -> ViewportTransform:
        return cls()

    @property
    def is_identity(self) -> bool:
        return self == ViewportTransform.identity()

    def to_state(self) -> ViewportState:
        return ViewportState(
            translate_x=self.translate_x,
            translate_y=self.translate_y,
            scale=self.scale,
        )


class ViewportController:
    """Owns the current transform; scale is clamped to [min_scale, max_scale]."""

    def __init__(
        self, min_scale: float = DEFAULT_MIN_SCALE, max_scale: float = DEFAULT_MAX_SCALE
    ) -> None:
        if min_scale <= 0 or min_scale > max_scale:
            raise ValueError(f"Invalid scale extent [{min_scale}, {max_scale}]")
        self.min_scale = min_scale
        self.max_scale = max_scale
        self.transform = ViewportTransform.identity()

    def _clamp(self, scale: float) -> float:
        return max(self.min_scale, min(self.max_scale, scale))

    def apply_pan_zoom(
        self,
        delta_translate: Point = (0.0, 0.0),
        delta_scale: float = 1.0,
        pivot: Point | None = None,
    ) -> ViewportTransform:
        """Zoom by ``delta_scale`` about ``pivot`` then pan by ``delta_translate``.

        The sim-space point under ``pivot`` (a screen point) stays under it
        while the scale changes. Without a pivot, zoom is anchored at the
        screen origin.

        Args:
            delta_translate: Screen-space pan offset (dx, dy)
            delta_scale: Multiplicative zoom factor (> 0)
            pivot: Screen point held fixed during the zoom

        Returns:
            The updated transform
        """
        dx, dy = delta_translate
        if not (math.isfinite(delta_scale) and delta_scale > 0):
            logger.warning(f"Ignoring invalid zoom factor: {delta_scale}")
            delta_scale = 1.0
        if not (math.isfinite(dx) and math.isfinite(dy)):
            logger.warning(f"Ignoring invalid pan offset: {delta_translate}")
            dx = dy = 0.0

        t = self.transform
        new_scale = self._clamp(t.scale * delta_scale)
        px, py = pivot if pivot is not None else (0.0, 0.0)

        # Sim point currently under the pivot
        sx = (px - t.translate_x) / t.scale
        sy = (py - t.translate_y) / t.scale

        self.transform = ViewportTransform(
            translate_x=px - new_scale * sx + dx,
            translate_y=py - new_scale * sy + dy,
            scale=new_scale,
        )
        return self.transform

    def pan(self, dx: float, dy: float) -> ViewportTransform:
        return self.apply_pan_zoom((dx, dy), 1.0)

    def zoom(self, factor: float, pivot: Point | None = None) -> ViewportTransform:
        return self.apply_pan_zoom((0.0, 0.0), factor, pivot)

    def reset_to_identity(self) -> ViewportTransform:
        """Snap back to translate (0, 0), scale 1.

        Animating the transition is left to the renderer.
        """
        self.transform = ViewportTransform.identity()
        return self.transform

    def to_screen(self, point: Point) -> Point:
        t = self.transform
        return (t.translate_x + t.scale * point[0], t.translate_y + t.scale * point[1])

    def to_sim_space(self, point: Point) -> Point:
        t = self.transform
        return ((point[0] - t.translate_x) / t.scale, (point[1] - t.translate_y) / t.scale)
