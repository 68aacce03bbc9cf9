"""
Coordinate conversions between normalized quads, pixel space and display space.

Normalized coordinates follow the video convention: origin at the
bottom-left corner, y growing upwards. Sampling the pixel buffer only needs
a scale (the rectifier knows how the buffer is laid out); drawing on a
top-left origin display additionally needs a vertical flip. The two
conversions must not be mixed up or the overlay or the crop ends up
mirrored.
"""

from typing import Sequence

import numpy as np

from ..core.types import PixelQuad, Point, Quad, Rect, Size


def _scale_point(point: Point, size: Size) -> Point:
    return Point(point.x * size.width, point.y * size.height)


def to_pixel_quad(quad: Quad, image_size: Size) -> PixelQuad:
    """Scale a normalized quad to the pixel extent of an image (no flip)."""
    return PixelQuad(
        top_left=_scale_point(quad.top_left, image_size),
        top_right=_scale_point(quad.top_right, image_size),
        bottom_left=_scale_point(quad.bottom_left, image_size),
        bottom_right=_scale_point(quad.bottom_right, image_size),
    )


def to_pixel_rect(box: Rect, image_size: Size) -> Rect:
    """Scale a normalized box to pixel units, keeping the bottom-left origin."""
    return Rect(
        x=box.x * image_size.width,
        y=box.y * image_size.height,
        width=box.width * image_size.width,
        height=box.height * image_size.height,
    )


def to_display_rect(box: Rect, display_size: Size) -> Rect:
    """Scale a normalized box to a top-left origin display, flipping y."""
    scaled = to_pixel_rect(box, display_size)
    return Rect(
        x=scaled.x,
        y=display_size.height - scaled.max_y,
        width=scaled.width,
        height=scaled.height,
    )


def normalize_points(points: Sequence[Sequence[float]], image_size: Size) -> Quad:
    """
    Turn array-space corners into a normalized quad.

    Args:
        points: Corners ordered TL, TR, BR, BL in array coordinates
            (origin top-left, y down), e.g. straight from OpenCV.
        image_size: Size of the image the corners were found in.
    """
    pts = np.asarray(points, dtype=np.float64).reshape(4, 2)
    w, h = float(image_size.width), float(image_size.height)

    def to_norm(p: np.ndarray) -> Point:
        return Point(float(p[0] / w), float(1.0 - p[1] / h))

    tl, tr, br, bl = (to_norm(p) for p in pts)
    return Quad(top_left=tl, top_right=tr, bottom_left=bl, bottom_right=br)


def bounding_box(quad: Quad) -> Rect:
    """Axis-aligned box around a quad, in the quad's own coordinate space."""
    xs = [p.x for p in quad.corners]
    ys = [p.y for p in quad.corners]
    return Rect(x=min(xs), y=min(ys), width=max(xs) - min(xs), height=max(ys) - min(ys))
