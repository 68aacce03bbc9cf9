"""Text recognition on rectified card images and field extraction."""

from collections import OrderedDict
from enum import Enum
from typing import Iterable, List, Optional

import cv2
import numpy as np
import pytesseract

from ..core.constants import TEXT_CONFIDENCE_THRESHOLD
from ..core.interfaces import TextRecognizer
from ..core.types import FieldKind, ScanResult, TextLine
from ..utils.config import resolve_tesseract_path
from ..utils.error_handler import RecognitionError
from ..utils.log import LoggerMixin, get_logger
from .regexes import classify

logger = get_logger(__name__)


class RecognitionLevel(str, Enum):
    """Trade-off between recognition latency and accuracy."""

    FAST = "fast"
    ACCURATE = "accurate"


# Tesseract options per level: LSTM engine for both, page segmentation differs
TESSERACT_CONFIG = {
    RecognitionLevel.FAST: "--oem 1 --psm 6",
    RecognitionLevel.ACCURATE: "--oem 1 --psm 3",
}


class TesseractTextRecognizer(TextRecognizer, LoggerMixin):
    """Recognizes text lines in a rectified card image with Tesseract."""

    def __init__(
        self,
        recognition_level: RecognitionLevel = RecognitionLevel.ACCURATE,
        tesseract_cmd: Optional[str] = None,
        language: str = "eng",
    ):
        self.recognition_level = RecognitionLevel(recognition_level)
        self.language = language
        self.tesseract_cmd = tesseract_cmd or resolve_tesseract_path()
        pytesseract.pytesseract.tesseract_cmd = self.tesseract_cmd

        self.logger.info(
            "Text recognizer initialized",
            tesseract_path=self.tesseract_cmd,
            recognition_level=self.recognition_level.value,
        )

    def recognize(self, image: np.ndarray) -> List[TextLine]:
        """
        Recognize text lines in an image.

        Only the best candidate string of each line is kept. Its confidence
        is the confidence of the weakest word on the line, scaled to [0, 1].

        Raises:
            RecognitionError: if the image is malformed or Tesseract fails.
        """
        prepared = self._prepare_image(image)
        context = self.log_start(
            "Text recognition",
            image_size=f"{prepared.shape[1]}x{prepared.shape[0]}",
            recognition_level=self.recognition_level.value,
        )

        try:
            data = pytesseract.image_to_data(
                prepared,
                lang=self.language,
                config=TESSERACT_CONFIG[self.recognition_level],
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, OSError, RuntimeError) as e:
            self.log_error(context, e)
            raise RecognitionError(
                "Text recognition failed", details={"error": str(e)}
            ) from e

        lines = self._group_lines(data)
        self.log_success(context, line_count=len(lines))
        return lines

    def _prepare_image(self, image: np.ndarray) -> np.ndarray:
        """Validate the image and convert it to the recognition input."""
        if not isinstance(image, np.ndarray) or image.size == 0:
            raise RecognitionError("Cannot start text recognition on an empty image")
        if image.ndim not in (2, 3) or (image.ndim == 3 and image.shape[2] not in (3, 4)):
            raise RecognitionError(
                "Cannot start text recognition on a malformed image",
                details={"shape": tuple(image.shape)},
            )

        if image.ndim == 3:
            code = cv2.COLOR_BGRA2GRAY if image.shape[2] == 4 else cv2.COLOR_BGR2GRAY
            gray = cv2.cvtColor(image, code)
        else:
            gray = image

        if self.recognition_level is RecognitionLevel.FAST:
            return gray

        # Light denoising keeps embossed digits intact
        filtered = cv2.bilateralFilter(gray, 9, 75, 75)
        _, binary = cv2.threshold(filtered, 0, 255, cv2.THRESH_BINARY + cv2.THRESH_OTSU)
        return binary

    @staticmethod
    def _group_lines(data: dict) -> List[TextLine]:
        """Join Tesseract word boxes into lines, in reading order."""
        words_by_line = OrderedDict()
        for i, text in enumerate(data.get("text", [])):
            word = (text or "").strip()
            confidence = float(data["conf"][i])
            if not word or confidence < 0:
                continue

            key = (
                data["page_num"][i],
                data["block_num"][i],
                data["par_num"][i],
                data["line_num"][i],
            )
            words_by_line.setdefault(key, []).append((word, confidence))

        lines = []
        for words in words_by_line.values():
            text = " ".join(word for word, _ in words)
            confidence = min(conf for _, conf in words) / 100.0
            lines.append(TextLine(text=text, confidence=min(max(confidence, 0.0), 1.0)))
        return lines


def extract_scan_result(
    lines: Iterable[TextLine], min_confidence: float = TEXT_CONFIDENCE_THRESHOLD
) -> ScanResult:
    """
    Classify recognized lines into card fields.

    Lines below ``min_confidence`` are ignored; with the default of 1.0 only
    lines recognized with full confidence count. When several lines match
    the same field, the last one wins.
    """
    result = ScanResult()
    for line in lines:
        if line.confidence < min_confidence:
            continue

        kind = classify(line.text)
        if kind is FieldKind.CARD_NUMBER:
            result.card_number = line.text
        elif kind is FieldKind.EXPIRY_DATE:
            result.expiry_date = line.text
        elif kind is FieldKind.CARD_HOLDER_NAME:
            result.card_holder = line.text

    logger.debug(
        "Scan result extracted",
        has_card_number=result.card_number is not None,
        has_expiry_date=result.expiry_date is not None,
        complete=result.is_complete,
    )
    return result
