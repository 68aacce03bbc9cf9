"""Pytest configuration and shared fixtures for card scanner tests."""

import threading
from typing import Callable, List, Optional

import cv2
import numpy as np
import pytest

from cardscan.core.interfaces import RectangleFinder, Rectifier, ScanPresenter, TextRecognizer
from cardscan.core.types import (
    Frame,
    PixelFormat,
    Point,
    Quad,
    Rect,
    RectangleCandidate,
    ScanResult,
    TextLine,
)


def make_card_frame(width=800, height=600, cards=((150, 130, 650, 450),),
                    pixel_format=PixelFormat.BGRA) -> Frame:
    """Black frame with white filled rectangles given as (x1, y1, x2, y2) array coordinates."""
    image = np.zeros((height, width, 3), dtype=np.uint8)
    for x1, y1, x2, y2 in cards:
        cv2.rectangle(image, (x1, y1), (x2, y2), (255, 255, 255), -1)

    if pixel_format is PixelFormat.BGRA:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2BGRA)
    elif pixel_format is PixelFormat.GRAY:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
    return Frame(image, pixel_format)


def make_candidate(x=0.25, y=0.25, width=0.5, height=0.4) -> RectangleCandidate:
    """Axis-aligned candidate from a normalized box (origin bottom-left)."""
    quad = Quad(
        top_left=Point(x, y + height),
        top_right=Point(x + width, y + height),
        bottom_left=Point(x, y),
        bottom_right=Point(x + width, y),
    )
    return RectangleCandidate(quad=quad, confidence=0.95, bounding_box=Rect(x, y, width, height))


class ScriptedDetector(RectangleFinder):
    """Returns scripted candidates, one per frame, then None."""

    def __init__(self, script: List[Optional[RectangleCandidate]]):
        self.script = list(script)
        self.calls = 0

    def detect(self, frame):
        self.calls += 1
        return self.script.pop(0) if self.script else None


class StubRectifier(Rectifier):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = 0

    def rectify(self, frame, quad):
        self.calls += 1
        if self.fail:
            return None
        return np.zeros((50, 80, 3), dtype=np.uint8)


class BlockingRecognizer(TextRecognizer):
    """Recognizer that waits for ``finish`` before returning its lines."""

    def __init__(self, lines: Optional[List[TextLine]] = None, error: Optional[Exception] = None,
                 block: bool = True):
        self.lines = lines or []
        self.error = error
        self.started = threading.Event()
        self.finish = threading.Event()
        if not block:
            self.finish.set()
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self._lock = threading.Lock()

    def recognize(self, image):
        with self._lock:
            self.calls += 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        self.started.set()
        try:
            self.finish.wait(timeout=5)
            if self.error is not None:
                raise self.error
            return list(self.lines)
        finally:
            with self._lock:
                self.active -= 1


class RecordingPresenter(ScanPresenter):
    def __init__(self, fail_on_result: bool = False):
        self.fail_on_result = fail_on_result
        self.events: List[str] = []
        self.overlays: List[Rect] = []
        self.results: List[ScanResult] = []
        self.acknowledgements: List[Callable[[], None]] = []

    def show_overlay(self, rect):
        self.events.append("show")
        self.overlays.append(rect)

    def clear_overlay(self):
        self.events.append("clear")

    def present_result(self, result, acknowledge):
        if self.fail_on_result:
            raise RuntimeError("presenter unavailable")
        self.events.append("result")
        self.results.append(result)
        self.acknowledgements.append(acknowledge)


@pytest.fixture(scope="function")
def card_frame():
    """800x600 BGRA frame with a 500x320 white card."""
    return make_card_frame()


@pytest.fixture(scope="function")
def card_lines():
    """Recognized lines of a typical card, at full confidence."""
    return [
        TextLine("BANK OF TESTING", 1.0),
        TextLine("4111 1111 1111 1111", 1.0),
        TextLine("09/27", 1.0),
        TextLine("JOHN SMITH", 1.0),
    ]


@pytest.fixture(scope="function")
def presenter():
    return RecordingPresenter()


# Configure pytest options
def pytest_configure(config):
    """Configure pytest with custom options."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "slow: marks tests as slow running"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        if "integration" in item.name.lower() or "end_to_end" in item.name.lower():
            item.add_marker(pytest.mark.integration)

        if not item.get_closest_marker('integration') and not item.get_closest_marker('slow'):
            item.add_marker(pytest.mark.unit)
