"""Preview overlay: rounded card outline and result banner."""

from enum import Enum
from typing import Optional, Tuple

import cv2
import numpy as np

from ..core.constants import (
    OVERLAY_BORDER_WIDTH,
    OVERLAY_COLOR,
    OVERLAY_CORNER_RADIUS,
    OVERLAY_OPACITY,
)
from ..core.types import Rect, ScanResult
from ..utils import LoggerMixin


class OverlayColor(Enum):
    """Colors for different overlay elements (BGR)."""

    CARD_OUTLINE = OVERLAY_COLOR
    RESULT = (0, 255, 0)  # Green
    TEXT_BG = (0, 0, 0)  # Black
    TEXT_FG = (255, 255, 255)  # White


class CameraOverlay(LoggerMixin):
    """Draws the detection outline and the scan result on preview frames."""

    def __init__(
        self,
        corner_radius: int = OVERLAY_CORNER_RADIUS,
        border_width: int = OVERLAY_BORDER_WIDTH,
        opacity: float = OVERLAY_OPACITY,
    ):
        self.corner_radius = corner_radius
        self.border_width = border_width
        self.opacity = opacity
        self.font = cv2.FONT_HERSHEY_SIMPLEX

    def draw_rounded_rect(
        self,
        frame: np.ndarray,
        rect: Rect,
        color: Tuple[int, ...] = OverlayColor.CARD_OUTLINE.value,
    ) -> np.ndarray:
        """Blend a rounded rectangle outline at a top-left origin pixel rect."""
        overlay_frame = frame.copy()
        layer = frame.copy()

        x1, y1 = int(round(rect.x)), int(round(rect.y))
        x2, y2 = int(round(rect.max_x)), int(round(rect.max_y))
        r = max(0, min(self.corner_radius, (x2 - x1) // 2, (y2 - y1) // 2))
        color = self._match_channels(color, frame)
        t = self.border_width

        # Straight edges
        cv2.line(layer, (x1 + r, y1), (x2 - r, y1), color, t)
        cv2.line(layer, (x1 + r, y2), (x2 - r, y2), color, t)
        cv2.line(layer, (x1, y1 + r), (x1, y2 - r), color, t)
        cv2.line(layer, (x2, y1 + r), (x2, y2 - r), color, t)

        # Corner arcs
        if r > 0:
            cv2.ellipse(layer, (x1 + r, y1 + r), (r, r), 180, 0, 90, color, t)
            cv2.ellipse(layer, (x2 - r, y1 + r), (r, r), 270, 0, 90, color, t)
            cv2.ellipse(layer, (x2 - r, y2 - r), (r, r), 0, 0, 90, color, t)
            cv2.ellipse(layer, (x1 + r, y2 - r), (r, r), 90, 0, 90, color, t)

        cv2.addWeighted(layer, self.opacity, overlay_frame, 1 - self.opacity, 0, overlay_frame)
        return overlay_frame

    def draw_result(self, frame: np.ndarray, result: ScanResult) -> np.ndarray:
        """Draw the detected card data with a dismissal hint."""
        overlay_frame = frame.copy()
        lines = result.summary().split("\n") + ["Press SPACE to continue"]

        y = 40
        for line in lines:
            self._draw_text_with_background(
                overlay_frame, line, (20, y), self._match_channels(OverlayColor.RESULT.value, frame)
            )
            y += 35

        return overlay_frame

    def render(
        self, frame: np.ndarray, rect: Optional[Rect], result: Optional[ScanResult]
    ) -> np.ndarray:
        """Compose the preview for one frame."""
        if rect is not None:
            frame = self.draw_rounded_rect(frame, rect)
        if result is not None:
            frame = self.draw_result(frame, result)
        return frame

    @staticmethod
    def _match_channels(color: Tuple[int, ...], frame: np.ndarray) -> Tuple[int, ...]:
        if frame.ndim == 3 and frame.shape[2] == 4:
            return tuple(color) + (255,)
        return tuple(color)

    def _draw_text_with_background(
        self,
        frame: np.ndarray,
        text: str,
        position: Tuple[int, int],
        color: Tuple[int, ...],
        scale: float = 0.7,
        thickness: int = 2,
    ) -> None:
        """Draw text with background for better visibility."""
        (text_width, text_height), baseline = cv2.getTextSize(
            text, self.font, scale, thickness
        )

        x, y = position
        cv2.rectangle(
            frame,
            (x - 2, y - text_height - 2),
            (x + text_width + 2, y + baseline + 2),
            self._match_channels(OverlayColor.TEXT_BG.value, frame),
            -1,
        )

        cv2.putText(
            frame, text, position, self.font, scale, color, thickness, cv2.LINE_AA
        )


# Global overlay instance
camera_overlay = CameraOverlay()
