from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

import numpy as np


class PixelFormat(Enum):
    BGRA = "BGRA"
    BGR = "BGR"
    GRAY = "GRAY"

    @property
    def channels(self) -> int:
        return {"BGRA": 4, "BGR": 3, "GRAY": 1}[self.value]


@dataclass(frozen=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True)
class Size:
    width: float
    height: float


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height


@dataclass(frozen=True, eq=False)
class Frame:
    """A single video frame. The pipeline only reads ``data``."""

    data: np.ndarray
    pixel_format: PixelFormat = PixelFormat.BGRA

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def size(self) -> Size:
        return Size(self.width, self.height)


@dataclass(frozen=True)
class Quad:
    """Four corners in normalized [0, 1] coordinates, origin bottom-left."""

    top_left: Point
    top_right: Point
    bottom_left: Point
    bottom_right: Point

    @property
    def corners(self) -> Tuple[Point, Point, Point, Point]:
        """Corners in drawing order: TL, TR, BR, BL."""
        return (self.top_left, self.top_right, self.bottom_right, self.bottom_left)


@dataclass(frozen=True)
class PixelQuad(Quad):
    """Quad scaled to the pixel extent of an image, origin bottom-left."""


@dataclass(frozen=True)
class RectangleCandidate:
    quad: Quad
    confidence: float
    bounding_box: Rect


@dataclass(frozen=True)
class TextLine:
    text: str
    confidence: float


class FieldKind(Enum):
    CARD_NUMBER = "card_number"
    EXPIRY_DATE = "expiry_date"
    CARD_HOLDER_NAME = "card_holder_name"
    UNCLASSIFIED = "unclassified"


@dataclass
class ScanResult:
    card_number: Optional[str] = None
    expiry_date: Optional[str] = None
    card_holder: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        """Only number and expiry are required; the holder is informational."""
        return self.card_number is not None and self.expiry_date is not None

    def summary(self) -> str:
        return "\n".join(
            [f"Card Number: {self.card_number}", f"Expiry Date: {self.expiry_date}"]
        )
