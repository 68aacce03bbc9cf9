"""Result presentation for the live preview window."""

import subprocess
import sys
import threading
from typing import Callable, Optional

from ..core.interfaces import ScanPresenter
from ..core.types import Rect, ScanResult
from ..utils.log import get_logger


def masked_last4(card_number: Optional[str]) -> Optional[str]:
    """Last four digits of a card number, or None."""
    if not card_number:
        return None
    digits = "".join(c for c in card_number if c.isdigit())
    return digits[-4:] or None


class SimpleNotifier:
    """Simple notification system with beep and status messages."""

    def __init__(self):
        self.logger = get_logger(__name__)

    def beep(self) -> bool:
        """Play system beep sound without waiting for it to finish."""
        try:
            if sys.platform == "darwin":  # macOS
                subprocess.Popen(["afplay", "/System/Library/Sounds/Glass.aiff"],
                                 stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
            else:
                # Fallback to terminal bell
                print("\a", end="", flush=True)
            return True
        except OSError as e:
            self.logger.debug("Error playing beep", error=str(e))
            return False


class WindowPresenter(ScanPresenter):
    """
    Presenter backing the OpenCV preview window.

    The pipeline calls it from the capture and recognition threads; it only
    records state under a lock. The window loop reads that state with
    ``snapshot()`` and calls ``acknowledge_pending()`` when the user
    dismisses a result.
    """

    def __init__(self, notifier: Optional[SimpleNotifier] = None,
                 on_result: Optional[Callable[[ScanResult], None]] = None):
        self.logger = get_logger(__name__)
        self.notifier = notifier or SimpleNotifier()
        self.on_result = on_result
        self._lock = threading.Lock()
        self._overlay: Optional[Rect] = None
        self._result: Optional[ScanResult] = None
        self._acknowledge: Optional[Callable[[], None]] = None

    def show_overlay(self, rect: Rect) -> None:
        with self._lock:
            self._overlay = rect

    def clear_overlay(self) -> None:
        with self._lock:
            self._overlay = None

    def present_result(self, result: ScanResult, acknowledge: Callable[[], None]) -> None:
        with self._lock:
            self._result = result
            self._acknowledge = acknowledge

        # Never log the full card number
        self.logger.info("Card scanned", card_number_last4=masked_last4(result.card_number))
        self.notifier.beep()
        if self.on_result is not None:
            self.on_result(result)

    @property
    def has_pending_result(self) -> bool:
        with self._lock:
            return self._result is not None

    def snapshot(self):
        """Return the current overlay rect and pending result."""
        with self._lock:
            return self._overlay, self._result

    def acknowledge_pending(self) -> bool:
        """Dismiss the pending result; False if there was none."""
        with self._lock:
            acknowledge = self._acknowledge
            self._result = None
            self._acknowledge = None

        if acknowledge is None:
            return False
        acknowledge()
        return True
