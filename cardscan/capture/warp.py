"""Card rectangle detection and perspective correction."""

from typing import List, Optional, Tuple

import cv2
import numpy as np

from ..core.constants import (
    APPROX_EPSILON,
    CANNY_HIGH,
    CANNY_LOW,
    COLLINEARITY_TOLERANCE,
    HULL_APPROX_EPSILON,
    MAX_ASPECT_RATIO,
    MAXIMUM_OBSERVATIONS,
    MIN_ASPECT_RATIO,
    MIN_QUAD_AREA_PX,
    MIN_RELATIVE_SIZE,
)
from ..core.interfaces import RectangleFinder, Rectifier
from ..core.types import Frame, PixelFormat, PixelQuad, RectangleCandidate
from ..utils.error_handler import RectificationError
from ..utils.log import get_logger
from .geometry import bounding_box, normalize_points


def to_grayscale(image: np.ndarray, pixel_format: PixelFormat) -> np.ndarray:
    """Convert a frame buffer of the given format to a single channel image."""
    if pixel_format is PixelFormat.BGRA:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    if pixel_format is PixelFormat.BGR:
        return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return image


def order_corners(corners: np.ndarray) -> np.ndarray:
    """
    Order 4 array-space corners as top-left, top-right, bottom-right, bottom-left.

    Corners are sorted clockwise by angle around their centroid, then rotated
    so the one closest to the origin (smallest x + y) comes first. Unlike
    quadrant bucketing this also works for cards tilted by 45 degrees.
    """
    pts = np.asarray(corners, dtype=np.float32).reshape(4, 2)
    centroid = pts.mean(axis=0)
    angles = np.arctan2(pts[:, 1] - centroid[1], pts[:, 0] - centroid[0])
    clockwise = pts[np.argsort(angles)]
    start = int(np.argmin(clockwise.sum(axis=1)))
    return np.roll(clockwise, -start, axis=0)


def edge_lengths(ordered: np.ndarray) -> Tuple[float, float, float, float]:
    """Top, bottom, left and right edge lengths of TL, TR, BR, BL corners."""
    tl, tr, br, bl = ordered
    return (
        float(np.linalg.norm(tr - tl)),
        float(np.linalg.norm(br - bl)),
        float(np.linalg.norm(bl - tl)),
        float(np.linalg.norm(br - tr)),
    )


class RectangleDetector(RectangleFinder):
    """Finds the single best card-shaped quadrilateral in a frame."""

    def __init__(
        self,
        min_aspect_ratio: float = MIN_ASPECT_RATIO,
        max_aspect_ratio: float = MAX_ASPECT_RATIO,
        min_size: float = MIN_RELATIVE_SIZE,
        maximum_observations: int = MAXIMUM_OBSERVATIONS,
    ):
        self.logger = get_logger(__name__)
        self.min_aspect_ratio = min_aspect_ratio
        self.max_aspect_ratio = max_aspect_ratio
        self.min_size = min_size
        self.maximum_observations = maximum_observations

    def detect(self, frame: Frame) -> Optional[RectangleCandidate]:
        """Return the highest ranked candidate, or None when nothing card-shaped is visible."""
        candidates = self.find_rectangles(frame)
        return candidates[0] if candidates else None

    def find_rectangles(self, frame: Frame) -> List[RectangleCandidate]:
        """Find up to ``maximum_observations`` candidates, largest first."""
        try:
            edges = self._detect_edges(to_grayscale(frame.data, frame.pixel_format))
            contours, _ = cv2.findContours(
                edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE
            )
        except cv2.error as e:
            self.logger.error("Error detecting rectangles", error=str(e))
            return []

        min_side = self.min_size * min(frame.width, frame.height)
        # A quad whose long side is min_side has at least this area
        min_area = min_side * min_side / self.max_aspect_ratio

        candidates = []
        for contour in sorted(contours, key=cv2.contourArea, reverse=True):
            area = cv2.contourArea(contour)
            if area < min_area:
                break

            corners = self._extract_corners_from_contour(contour)
            if corners is None:
                continue

            ordered = order_corners(corners)
            if not self._is_card_shaped(ordered, min_side):
                continue

            candidates.append(self._to_candidate(area, ordered, frame))
            if len(candidates) >= self.maximum_observations:
                break

        return candidates

    def _detect_edges(self, gray: np.ndarray) -> np.ndarray:
        """Detect edges in the frame for contour detection."""
        blurred = cv2.GaussianBlur(gray, (5, 5), 0)
        edges = cv2.Canny(blurred, CANNY_LOW, CANNY_HIGH)

        # Dilate to connect broken edges
        kernel = np.ones((3, 3), np.uint8)
        return cv2.dilate(edges, kernel, iterations=1)

    def _extract_corners_from_contour(self, contour: np.ndarray) -> Optional[np.ndarray]:
        """Extract 4 convex corner points from a contour."""
        epsilon = APPROX_EPSILON * cv2.arcLength(contour, True)
        approx = cv2.approxPolyDP(contour, epsilon, True)

        if len(approx) == 4:
            if cv2.isContourConvex(approx):
                return approx.reshape(4, 2).astype(np.float32)
            return None

        # Rounded card corners often leave a few extra vertices
        if len(approx) > 4:
            hull = cv2.convexHull(contour)
            epsilon = HULL_APPROX_EPSILON * cv2.arcLength(hull, True)
            approx_hull = cv2.approxPolyDP(hull, epsilon, True)
            if len(approx_hull) == 4:
                return approx_hull.reshape(4, 2).astype(np.float32)

        return None

    def _is_card_shaped(self, ordered: np.ndarray, min_side: float) -> bool:
        """Check the aspect ratio band and the minimum size."""
        top, bottom, left, right = edge_lengths(ordered)
        short_side, long_side = sorted(((top + bottom) / 2, (left + right) / 2))
        if short_side <= 0:
            return False

        aspect_ratio = long_side / short_side
        if not self.min_aspect_ratio <= aspect_ratio <= self.max_aspect_ratio:
            return False

        return long_side >= min_side

    def _to_candidate(
        self, contour_area: float, ordered: np.ndarray, frame: Frame
    ) -> RectangleCandidate:
        quad_area = cv2.contourArea(ordered)
        confidence = min(contour_area / quad_area, 1.0) if quad_area > 0 else 0.0
        quad = normalize_points(ordered, frame.size)
        return RectangleCandidate(
            quad=quad, confidence=float(confidence), bounding_box=bounding_box(quad)
        )


class PerspectiveCorrector(Rectifier):
    """Warps a quadrilateral region of a frame into an upright image."""

    def __init__(
        self,
        min_area: float = MIN_QUAD_AREA_PX,
        collinearity_tolerance: float = COLLINEARITY_TOLERANCE,
    ):
        self.logger = get_logger(__name__)
        self.min_area = min_area
        self.collinearity_tolerance = collinearity_tolerance

    def rectify(self, frame: Frame, quad: PixelQuad) -> Optional[np.ndarray]:
        """
        Rectify the quad region of the frame.

        The quad is in image-extent coordinates (origin bottom-left), as
        produced by ``to_pixel_quad``. The output keeps the native resolution
        of the quad: its width is the longer of the top and bottom edges and
        its height the longer of the left and right edges.

        Returns:
            The rectified image in the frame's pixel format, or None if the
            quad is degenerate.
        """
        try:
            src = self._buffer_corners(quad, frame.height)
            self._validate_quad(src)

            top, bottom, left, right = edge_lengths(src)
            out_w = max(int(round(max(top, bottom))), 1)
            out_h = max(int(round(max(left, right))), 1)

            dst_points = np.array(
                [[0, 0], [out_w - 1, 0], [out_w - 1, out_h - 1], [0, out_h - 1]],
                dtype=np.float32,
            )
            matrix = cv2.getPerspectiveTransform(src, dst_points)
            return cv2.warpPerspective(
                frame.data, matrix, (out_w, out_h), flags=cv2.INTER_LINEAR
            )

        except RectificationError as e:
            self.logger.debug("Skipping degenerate quad", reason=e.message, **e.details)
            return None
        except cv2.error as e:
            self.logger.error("Error warping card", error=str(e))
            return None

    @staticmethod
    def _buffer_corners(quad: PixelQuad, height: int) -> np.ndarray:
        """Move TL, TR, BR, BL from the bottom-left origin extent into buffer rows."""
        return np.array(
            [[p.x, height - p.y] for p in quad.corners], dtype=np.float32
        )

    def _validate_quad(self, corners: np.ndarray) -> None:
        x, y = corners[:, 0].astype(np.float64), corners[:, 1].astype(np.float64)
        area = 0.5 * abs(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1)))
        if area < self.min_area:
            raise RectificationError("Quad area too small", details={"area": area})

        signs = set()
        for i in range(4):
            a, b, c = corners[i], corners[(i + 1) % 4], corners[(i + 2) % 4]
            e1, e2 = (b - a).astype(np.float64), (c - b).astype(np.float64)
            n1, n2 = np.linalg.norm(e1), np.linalg.norm(e2)
            if n1 == 0 or n2 == 0:
                raise RectificationError("Quad has coincident corners", details={"corner": i})

            sine = (e1[0] * e2[1] - e1[1] * e2[0]) / (n1 * n2)
            if abs(sine) < self.collinearity_tolerance:
                raise RectificationError("Quad has collinear corners", details={"corner": i})
            signs.add(sine > 0)

        if len(signs) != 1:
            raise RectificationError("Quad is not convex")


# Global singleton
perspective_corrector = PerspectiveCorrector()
