"""
Capability interfaces the scan pipeline is assembled from.

Each one can be swapped independently: the OpenCV and Tesseract backed
classes implement them for real use, tests plug in fakes.
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterator, List, Optional

import numpy as np

from .types import Frame, PixelQuad, Rect, RectangleCandidate, ScanResult, TextLine


class FrameSource(ABC):
    """Delivers frames one at a time from a capture device."""

    @abstractmethod
    def read_frame(self) -> Optional[Frame]:
        ...

    def frames(self) -> Iterator[Frame]:
        """Yield frames until the source stops delivering."""
        while True:
            frame = self.read_frame()
            if frame is None:
                return
            yield frame


class RectangleFinder(ABC):
    @abstractmethod
    def detect(self, frame: Frame) -> Optional[RectangleCandidate]:
        """Return the best card-shaped quad in the frame, or None."""


class Rectifier(ABC):
    @abstractmethod
    def rectify(self, frame: Frame, quad: PixelQuad) -> Optional[np.ndarray]:
        """Warp the quad region to an upright image, None if the quad is degenerate."""


class TextRecognizer(ABC):
    @abstractmethod
    def recognize(self, image: np.ndarray) -> List[TextLine]:
        """
        Recognize text lines in an image.

        Raises:
            RecognitionError: if the job cannot start or fails while running.
        """


class ScanPresenter(ABC):
    """
    Receives overlay updates and completed results.

    Called from the capture and recognition threads; implementations must
    hand the work off and return promptly.
    """

    @abstractmethod
    def show_overlay(self, rect: Rect) -> None:
        ...

    @abstractmethod
    def clear_overlay(self) -> None:
        ...

    @abstractmethod
    def present_result(self, result: ScanResult, acknowledge: Callable[[], None]) -> None:
        """Show a completed result; ``acknowledge`` is called once the user dismisses it."""
