"""
Frame-processing pipeline.

Every frame goes through rectangle detection and, when a card is found,
perspective correction on the caller's (capture) thread. Text recognition
runs on a dedicated worker thread and is gated so that at most one job is
in flight; rectified frames arriving while the gate is closed are dropped.
"""

from concurrent.futures import Executor, Future, ThreadPoolExecutor, wait
from enum import Enum
from typing import Optional

import numpy as np

from ..capture.geometry import to_display_rect, to_pixel_quad
from ..core.constants import TEXT_CONFIDENCE_THRESHOLD
from ..core.interfaces import Rectifier, RectangleFinder, ScanPresenter, TextRecognizer
from ..core.types import Frame, ScanResult, Size
from ..ocr.extract import extract_scan_result
from ..utils.log import LoggerMixin
from .gate import GateTicket, RecognitionGate


class PipelineState(Enum):
    IDLE = "idle"
    AWAITING_RECOGNITION = "awaiting_recognition"


class FrameOutcome(Enum):
    """What happened to a single frame."""

    NO_CANDIDATE = "no_candidate"
    RECTIFICATION_FAILED = "rectification_failed"
    SUBMITTED = "submitted"
    DROPPED = "dropped"
    LAUNCH_FAILED = "launch_failed"


def _noop() -> None:
    pass


class ScanPipeline(LoggerMixin):
    """Wires detection, rectification, recognition and classification together."""

    def __init__(
        self,
        detector: RectangleFinder,
        rectifier: Rectifier,
        recognizer: TextRecognizer,
        presenter: ScanPresenter,
        executor: Optional[Executor] = None,
        min_confidence: float = TEXT_CONFIDENCE_THRESHOLD,
        release_on_acknowledge: bool = True,
        display_size: Optional[Size] = None,
    ):
        self.detector = detector
        self.rectifier = rectifier
        self.recognizer = recognizer
        self.presenter = presenter
        self.min_confidence = min_confidence
        self.release_on_acknowledge = release_on_acknowledge
        self.display_size = display_size
        self.gate = RecognitionGate()

        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="card-text-recognition"
        )
        self._pending: Optional[Future] = None

    @property
    def state(self) -> PipelineState:
        return PipelineState.IDLE if self.gate.is_open else PipelineState.AWAITING_RECOGNITION

    def process_frame(self, frame: Frame) -> FrameOutcome:
        """Run one frame through the pipeline on the calling thread."""
        candidate = self.detector.detect(frame)
        if candidate is None:
            self.presenter.clear_overlay()
            return FrameOutcome.NO_CANDIDATE

        display_size = self.display_size or frame.size
        self.presenter.show_overlay(to_display_rect(candidate.bounding_box, display_size))

        rectified = self.rectifier.rectify(frame, to_pixel_quad(candidate.quad, frame.size))
        if rectified is None:
            return FrameOutcome.RECTIFICATION_FAILED

        ticket = self.gate.try_acquire()
        if ticket is None:
            return FrameOutcome.DROPPED

        try:
            self._pending = self._executor.submit(self._run_recognition, ticket, rectified)
        except RuntimeError as e:
            self.logger.error("Failed to launch text recognition", error=str(e))
            ticket.release()
            return FrameOutcome.LAUNCH_FAILED

        self.logger.debug(
            "Text recognition submitted",
            candidate_confidence=round(candidate.confidence, 3),
            image_size=f"{rectified.shape[1]}x{rectified.shape[0]}",
        )
        return FrameOutcome.SUBMITTED

    def _run_recognition(self, ticket: GateTicket, image: np.ndarray) -> Optional[ScanResult]:
        """Recognition job; the ticket is released on every exit path."""
        handed_off = False
        try:
            lines = self.recognizer.recognize(image)
            result = extract_scan_result(lines, self.min_confidence)
            if not result.is_complete:
                return None

            self.logger.info("Card data detected", card_holder_found=result.card_holder is not None)
            if self.release_on_acknowledge:
                self.presenter.present_result(result, ticket.release)
                handed_off = True
            else:
                ticket.release()
                self.presenter.present_result(result, _noop)
            return result

        except Exception as e:
            self.logger.error(
                "Text recognition job failed", error=str(e), error_type=type(e).__name__
            )
            return None

        finally:
            if not handed_off:
                ticket.release()

    def wait_for_recognition(self, timeout: Optional[float] = None) -> bool:
        """Block until the last submitted job finished; True if none is running."""
        pending = self._pending
        if pending is None:
            return True
        done, _ = wait([pending], timeout=timeout)
        return bool(done)

    def close(self) -> None:
        """Stop the recognition worker after the running job completes."""
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def __enter__(self) -> "ScanPipeline":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
