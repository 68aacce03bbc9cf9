"""Camera capture delivering BGRA frames to the scan pipeline."""

from typing import Optional

import cv2

from ..core.interfaces import FrameSource
from ..core.types import Frame, PixelFormat
from ..utils.config import settings
from ..utils.error_handler import CaptureError
from ..utils.log import LoggerMixin


class CameraCapture(FrameSource, LoggerMixin):
    """OpenCV camera wrapper that always hands out the newest frame."""

    def __init__(self, camera_index: Optional[int] = None):
        self.cap = None
        self.camera_index = settings.CAMERA_INDEX if camera_index is None else camera_index
        self.is_initialized = False

    def initialize(self) -> None:
        """
        Open the camera and verify it delivers frames.

        Raises:
            CaptureError: if no camera can be opened. The pipeline cannot
                start without one.
        """
        self.cap = cv2.VideoCapture(self.camera_index)
        if not self.cap.isOpened():
            self.cap.release()
            raise CaptureError(
                "No camera device found", details={"camera_index": self.camera_index}
            )

        self.cap.set(cv2.CAP_PROP_FRAME_WIDTH, 1920)
        self.cap.set(cv2.CAP_PROP_FRAME_HEIGHT, 1080)
        self.cap.set(cv2.CAP_PROP_AUTOFOCUS, 1)
        # Keep a single buffered frame so late frames are discarded, not queued
        self.cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        ret, frame = self.cap.read()
        if not ret:
            self.cap.release()
            raise CaptureError(
                "Camera opened but returned no frame",
                details={"camera_index": self.camera_index},
            )

        self.is_initialized = True
        self.logger.info(
            "Camera initialized successfully",
            camera_index=self.camera_index,
            frame_size=f"{frame.shape[1]}x{frame.shape[0]}",
        )

    def read_frame(self) -> Optional[Frame]:
        """Grab the current frame as packed BGRA, or None if the camera stopped."""
        if not self.is_initialized:
            return None

        ret, image = self.cap.read()
        if not ret:
            self.logger.debug("Unable to get image from camera")
            return None

        return Frame(cv2.cvtColor(image, cv2.COLOR_BGR2BGRA), PixelFormat.BGRA)

    def release(self):
        """Release camera resources."""
        if self.cap:
            self.cap.release()
            self.is_initialized = False
            self.logger.info("Camera released")

    def __enter__(self):
        self.initialize()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
