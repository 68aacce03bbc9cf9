"""Capture package for camera handling, card detection and rectification."""

from .geometry import to_display_rect, to_pixel_quad, to_pixel_rect
from .warp import PerspectiveCorrector, RectangleDetector, perspective_corrector

__all__ = [
    "RectangleDetector",
    "PerspectiveCorrector",
    "perspective_corrector",
    "to_pixel_quad",
    "to_pixel_rect",
    "to_display_rect",
]
