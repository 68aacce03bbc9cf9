"""
Exception hierarchy for the card scanner.

Only CaptureError is ever surfaced to the user, and only at startup when no
camera can be opened. Every other error is raised by a component and
recovered inside the scan pipeline.
"""

from typing import Any, Dict, Optional


class CardScannerError(Exception):
    """Base exception class for all card scanner errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(CardScannerError):
    """Raised when there are configuration or environment variable issues."""
    pass


class CaptureError(CardScannerError):
    """Raised when the capture device is missing or cannot deliver frames."""
    pass


class RectificationError(CardScannerError):
    """Raised when a quad is degenerate and cannot be rectified."""
    pass


class RecognitionError(CardScannerError):
    """Raised when a text recognition job cannot start or fails while running."""
    pass
