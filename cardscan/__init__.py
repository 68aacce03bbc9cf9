"""Card Scanner - Read payment card number and expiry date from a camera feed."""

__version__ = "1.0.0"
__description__ = "Detects a card in a video feed, rectifies it and classifies recognized text"

from .capture.geometry import to_display_rect, to_pixel_quad
from .capture.warp import PerspectiveCorrector, RectangleDetector
from .core.types import FieldKind, Frame, PixelFormat, Quad, ScanResult, TextLine
from .ocr.extract import RecognitionLevel, TesseractTextRecognizer, extract_scan_result
from .ocr.regexes import classify, is_card_holder_name, is_card_number, is_expiry_date
from .pipeline import FrameOutcome, PipelineState, RecognitionGate, ScanPipeline
from .utils.config import settings
from .utils.log import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__description__",
    # Core components
    "configure_logging",
    "get_logger",
    "settings",
    "FieldKind",
    "Frame",
    "PixelFormat",
    "Quad",
    "ScanResult",
    "TextLine",
    "to_pixel_quad",
    "to_display_rect",
    "RectangleDetector",
    "PerspectiveCorrector",
    "RecognitionLevel",
    "TesseractTextRecognizer",
    "extract_scan_result",
    "classify",
    "is_card_number",
    "is_expiry_date",
    "is_card_holder_name",
    "RecognitionGate",
    "ScanPipeline",
    "FrameOutcome",
    "PipelineState",
]
