"""Gated frame-processing pipeline."""

from .gate import GateTicket, RecognitionGate
from .scanner import FrameOutcome, PipelineState, ScanPipeline

__all__ = [
    "GateTicket",
    "RecognitionGate",
    "FrameOutcome",
    "PipelineState",
    "ScanPipeline",
]
