"""User-facing presentation of scan results."""

from .notifier import SimpleNotifier, WindowPresenter

__all__ = ["SimpleNotifier", "WindowPresenter"]
