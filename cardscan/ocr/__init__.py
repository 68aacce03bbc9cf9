"""OCR package for text recognition and card field classification."""

from .extract import RecognitionLevel, TesseractTextRecognizer, extract_scan_result
from .regexes import (
    CARD_NUMBER_PATTERN,
    EXPIRY_DATE_PATTERN,
    classify,
    is_card_holder_name,
    is_card_number,
    is_expiry_date,
)

__all__ = [
    "RecognitionLevel",
    "TesseractTextRecognizer",
    "extract_scan_result",
    "classify",
    "is_card_number",
    "is_expiry_date",
    "is_card_holder_name",
    "CARD_NUMBER_PATTERN",
    "EXPIRY_DATE_PATTERN",
]
