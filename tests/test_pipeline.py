"""Tests for the gated scan pipeline."""

import threading
from unittest.mock import MagicMock

import numpy as np
import pytest

from cardscan.capture.warp import PerspectiveCorrector, RectangleDetector
from cardscan.core.types import Point, Quad, Rect, RectangleCandidate, ScanResult, Size, TextLine
from cardscan.pipeline.scanner import FrameOutcome, PipelineState, ScanPipeline
from cardscan.utils.error_handler import RecognitionError

from conftest import (
    BlockingRecognizer,
    RecordingPresenter,
    ScriptedDetector,
    StubRectifier,
    make_candidate,
    make_card_frame,
)

CARD_LINES = [TextLine("4111 1111 1111 1111", 1.0), TextLine("09/27", 1.0)]


def build_pipeline(detector=None, rectifier=None, recognizer=None, presenter=None, **kwargs):
    return ScanPipeline(
        detector=detector or ScriptedDetector([make_candidate()] * 10),
        rectifier=rectifier or StubRectifier(),
        recognizer=recognizer or BlockingRecognizer(CARD_LINES, block=False),
        presenter=presenter or RecordingPresenter(),
        **kwargs,
    )


class TestFrameProcessing:
    """Test per-frame transitions."""

    def test_no_candidate_clears_overlay(self, card_frame, presenter):
        rectifier = StubRectifier()
        with build_pipeline(ScriptedDetector([None]), rectifier, presenter=presenter) as pipeline:
            outcome = pipeline.process_frame(card_frame)

        assert outcome is FrameOutcome.NO_CANDIDATE
        assert presenter.events == ["clear"]
        assert rectifier.calls == 0
        assert pipeline.state is PipelineState.IDLE

    def test_candidate_draws_flipped_overlay(self, card_frame, presenter):
        detector = ScriptedDetector([make_candidate(0.25, 0.25, 0.5, 0.4)])
        with build_pipeline(detector, presenter=presenter) as pipeline:
            pipeline.process_frame(card_frame)
            pipeline.wait_for_recognition(timeout=5)

        rect = presenter.overlays[0]
        assert rect.x == pytest.approx(200)
        assert rect.y == pytest.approx(600 - 0.65 * 600)
        assert rect.width == pytest.approx(400)
        assert rect.height == pytest.approx(240)

    def test_overlay_uses_display_size(self, card_frame, presenter):
        detector = ScriptedDetector([make_candidate(0.25, 0.25, 0.5, 0.4)])

        with build_pipeline(detector, presenter=presenter, display_size=Size(400, 300)) as pipeline:
            pipeline.process_frame(card_frame)
            pipeline.wait_for_recognition(timeout=5)

        assert presenter.overlays[0].width == pytest.approx(200)

    def test_rectification_failure_keeps_gate_open(self, card_frame, presenter):
        recognizer = BlockingRecognizer(CARD_LINES, block=False)
        with build_pipeline(rectifier=StubRectifier(fail=True), recognizer=recognizer,
                            presenter=presenter) as pipeline:
            outcome = pipeline.process_frame(card_frame)

        assert outcome is FrameOutcome.RECTIFICATION_FAILED
        assert presenter.events == ["show"]
        assert recognizer.calls == 0
        assert pipeline.state is PipelineState.IDLE

    def test_collinear_quad_never_reaches_recognizer(self, card_frame, presenter):
        collinear = Quad(
            top_left=Point(0.2, 0.8),
            top_right=Point(0.5, 0.8),
            bottom_left=Point(0.2, 0.3),
            bottom_right=Point(0.8, 0.8),
        )
        candidate = RectangleCandidate(collinear, 0.9, Rect(0.2, 0.3, 0.6, 0.5))
        recognizer = MagicMock()

        with build_pipeline(ScriptedDetector([candidate]), PerspectiveCorrector(), recognizer,
                            presenter) as pipeline:
            outcome = pipeline.process_frame(card_frame)

        assert outcome is FrameOutcome.RECTIFICATION_FAILED
        recognizer.recognize.assert_not_called()
        assert pipeline.gate.is_open


class TestRecognitionGating:
    """Test the single-in-flight recognition invariant."""

    def test_frames_dropped_while_job_pending(self, card_frame, presenter):
        recognizer = BlockingRecognizer(CARD_LINES)
        pipeline = build_pipeline(recognizer=recognizer, presenter=presenter,
                                  release_on_acknowledge=False)

        outcomes = [pipeline.process_frame(card_frame) for _ in range(6)]

        assert outcomes[0] is FrameOutcome.SUBMITTED
        assert outcomes[1:] == [FrameOutcome.DROPPED] * 5
        assert pipeline.state is PipelineState.AWAITING_RECOGNITION

        recognizer.finish.set()
        assert pipeline.wait_for_recognition(timeout=5)
        pipeline.close()

        assert recognizer.calls == 1
        assert pipeline.state is PipelineState.IDLE

    def test_one_job_per_gate_open_period(self, card_frame, presenter):
        recognizer = BlockingRecognizer([TextLine("4111 1111 1111 1111", 1.0)], block=False)
        with build_pipeline(recognizer=recognizer, presenter=presenter) as pipeline:
            for _ in range(3):
                assert pipeline.process_frame(card_frame) is FrameOutcome.SUBMITTED
                assert pipeline.wait_for_recognition(timeout=5)

        assert recognizer.calls == 3
        assert recognizer.max_active == 1

    def test_concurrent_frames_start_one_job(self, card_frame, presenter):
        """Frames racing from several threads still launch a single job."""
        recognizer = BlockingRecognizer(CARD_LINES)
        detector = ScriptedDetector([make_candidate()] * 32)
        pipeline = build_pipeline(detector, recognizer=recognizer, presenter=presenter,
                                  release_on_acknowledge=False)
        barrier = threading.Barrier(8)
        outcomes = []
        lock = threading.Lock()

        def feed():
            barrier.wait()
            for _ in range(4):
                outcome = pipeline.process_frame(card_frame)
                with lock:
                    outcomes.append(outcome)

        threads = [threading.Thread(target=feed) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        recognizer.finish.set()
        pipeline.wait_for_recognition(timeout=5)
        pipeline.close()

        assert outcomes.count(FrameOutcome.SUBMITTED) == 1
        assert outcomes.count(FrameOutcome.DROPPED) == 31
        assert recognizer.calls == 1


class TestRecognitionOutcomes:
    """Test how recognition results release the gate."""

    def test_incomplete_result_is_silent(self, card_frame, presenter):
        recognizer = BlockingRecognizer([TextLine("4111 1111 1111 1111", 1.0)], block=False)
        with build_pipeline(recognizer=recognizer, presenter=presenter) as pipeline:
            pipeline.process_frame(card_frame)
            pipeline.wait_for_recognition(timeout=5)

        assert presenter.results == []
        assert pipeline.state is PipelineState.IDLE

    def test_empty_result_reopens_gate(self, card_frame, presenter):
        recognizer = BlockingRecognizer([], block=False)
        with build_pipeline(recognizer=recognizer, presenter=presenter) as pipeline:
            pipeline.process_frame(card_frame)
            pipeline.wait_for_recognition(timeout=5)

        assert pipeline.gate.is_open

    def test_low_confidence_lines_ignored(self, card_frame, presenter):
        lines = [TextLine("4111 1111 1111 1111", 0.99), TextLine("09/27", 1.0)]
        recognizer = BlockingRecognizer(lines, block=False)
        with build_pipeline(recognizer=recognizer, presenter=presenter) as pipeline:
            pipeline.process_frame(card_frame)
            pipeline.wait_for_recognition(timeout=5)

        assert presenter.results == []
        assert pipeline.gate.is_open

    def test_recognition_error_reopens_gate(self, card_frame, presenter):
        recognizer = BlockingRecognizer(error=RecognitionError("engine crashed"), block=False)
        with build_pipeline(recognizer=recognizer, presenter=presenter) as pipeline:
            assert pipeline.process_frame(card_frame) is FrameOutcome.SUBMITTED
            pipeline.wait_for_recognition(timeout=5)

            assert pipeline.gate.is_open
            assert pipeline.process_frame(card_frame) is FrameOutcome.SUBMITTED
            pipeline.wait_for_recognition(timeout=5)

        assert recognizer.calls == 2

    def test_unexpected_error_reopens_gate(self, card_frame, presenter):
        recognizer = BlockingRecognizer(error=ValueError("bad data"), block=False)
        with build_pipeline(recognizer=recognizer, presenter=presenter) as pipeline:
            pipeline.process_frame(card_frame)
            pipeline.wait_for_recognition(timeout=5)

        assert pipeline.gate.is_open

    def test_launch_failure_reopens_gate(self, card_frame, presenter):
        pipeline = build_pipeline(presenter=presenter)
        pipeline.close()

        outcome = pipeline.process_frame(card_frame)

        assert outcome is FrameOutcome.LAUNCH_FAILED
        assert pipeline.gate.is_open

    def test_gate_held_until_acknowledged(self, card_frame, presenter):
        with build_pipeline(presenter=presenter) as pipeline:
            pipeline.process_frame(card_frame)
            pipeline.wait_for_recognition(timeout=5)

            assert presenter.results == [ScanResult("4111 1111 1111 1111", "09/27")]
            assert pipeline.state is PipelineState.AWAITING_RECOGNITION
            assert pipeline.process_frame(card_frame) is FrameOutcome.DROPPED

            presenter.acknowledgements[0]()
            assert pipeline.state is PipelineState.IDLE

            # A second acknowledgment must not reopen a newer job's slot
            pipeline.process_frame(card_frame)
            pipeline.wait_for_recognition(timeout=5)
            presenter.acknowledgements[0]()
            assert pipeline.state is PipelineState.AWAITING_RECOGNITION

    def test_release_before_presenting(self, card_frame, presenter):
        with build_pipeline(presenter=presenter, release_on_acknowledge=False) as pipeline:
            pipeline.process_frame(card_frame)
            pipeline.wait_for_recognition(timeout=5)

            assert len(presenter.results) == 1
            assert pipeline.state is PipelineState.IDLE
            presenter.acknowledgements[0]()
            assert pipeline.state is PipelineState.IDLE

    def test_presenter_failure_reopens_gate(self, card_frame):
        presenter = RecordingPresenter(fail_on_result=True)
        with build_pipeline(presenter=presenter) as pipeline:
            pipeline.process_frame(card_frame)
            pipeline.wait_for_recognition(timeout=5)

        assert pipeline.gate.is_open


class TestEndToEnd:
    """Frame sequences through the whole pipeline."""

    def test_end_to_end_frame_sequence(self, card_frame, presenter):
        """No card, then a card, then more cards while recognition is pending."""
        detector = ScriptedDetector([None] + [make_candidate()] * 4)
        recognizer = BlockingRecognizer(CARD_LINES)
        pipeline = build_pipeline(detector, recognizer=recognizer, presenter=presenter)

        outcomes = [pipeline.process_frame(card_frame)]
        assert outcomes[0] is FrameOutcome.NO_CANDIDATE
        assert pipeline.state is PipelineState.IDLE

        outcomes.append(pipeline.process_frame(card_frame))
        assert pipeline.state is PipelineState.AWAITING_RECOGNITION
        assert recognizer.started.wait(timeout=5)

        outcomes.extend(pipeline.process_frame(card_frame) for _ in range(3))

        assert outcomes == [
            FrameOutcome.NO_CANDIDATE,
            FrameOutcome.SUBMITTED,
            FrameOutcome.DROPPED,
            FrameOutcome.DROPPED,
            FrameOutcome.DROPPED,
        ]
        assert presenter.events == ["clear", "show", "show", "show", "show"]

        recognizer.finish.set()
        assert pipeline.wait_for_recognition(timeout=5)

        assert presenter.results == [ScanResult("4111 1111 1111 1111", "09/27")]
        assert recognizer.calls == 1
        assert pipeline.state is PipelineState.AWAITING_RECOGNITION

        presenter.acknowledgements[0]()
        assert pipeline.state is PipelineState.IDLE
        pipeline.close()

    def test_real_detector_and_rectifier_integration(self, presenter):
        """A synthetic card frame flows through OpenCV detection and rectification."""
        recognizer = MagicMock()
        recognizer.recognize.return_value = CARD_LINES
        frame = make_card_frame()

        with ScanPipeline(RectangleDetector(), PerspectiveCorrector(), recognizer, presenter) as pipeline:
            assert pipeline.process_frame(frame) is FrameOutcome.SUBMITTED
            pipeline.wait_for_recognition(timeout=5)

        image = recognizer.recognize.call_args.args[0]
        assert isinstance(image, np.ndarray)
        assert image.shape[1] / image.shape[0] == pytest.approx(500 / 320, rel=0.03)
        assert presenter.results[0].card_number == "4111 1111 1111 1111"
