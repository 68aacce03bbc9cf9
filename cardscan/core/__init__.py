"""Core data model and capability interfaces."""

from .interfaces import FrameSource, Rectifier, RectangleFinder, ScanPresenter, TextRecognizer
from .types import (
    FieldKind,
    Frame,
    PixelFormat,
    PixelQuad,
    Point,
    Quad,
    Rect,
    RectangleCandidate,
    ScanResult,
    Size,
    TextLine,
)

__all__ = [
    "FieldKind",
    "Frame",
    "PixelFormat",
    "PixelQuad",
    "Point",
    "Quad",
    "Rect",
    "RectangleCandidate",
    "ScanResult",
    "Size",
    "TextLine",
    "FrameSource",
    "RectangleFinder",
    "Rectifier",
    "TextRecognizer",
    "ScanPresenter",
]
