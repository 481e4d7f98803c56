"""
Camera Sources
==============

Frame acquisition for the detection worker.

Design Rules:
    - open() fails fast with CameraUnavailableError
    - read() returns None on a dropped frame instead of raising
    - All calls may block; callers run them off the event loop
"""

import logging
from typing import Optional, Protocol

import cv2
import numpy as np

from orb_presence.perception.errors import CameraUnavailableError


logger = logging.getLogger(__name__)


class CameraSource(Protocol):
    """Protocol for frame sources."""

    def open(self) -> None:
        """Acquire the device. Raises CameraUnavailableError on failure."""
        ...

    def read(self) -> Optional[np.ndarray]:
        """Return the next BGR frame, or None if no frame was available."""
        ...

    def release(self) -> None:
        """Release the device. Safe to call more than once."""
        ...


class OpenCVCamera:
    """
    Camera backed by cv2.VideoCapture.

    Attributes:
        device_index: Capture device index
        width, height: Requested capture size
    """

    def __init__(self, device_index: int = 0, width: int = 640, height: int = 480) -> None:
        self.device_index = device_index
        self.width = width
        self.height = height
        self._capture: Optional[cv2.VideoCapture] = None

    @property
    def is_open(self) -> bool:
        return self._capture is not None and self._capture.isOpened()

    def open(self) -> None:
        capture = cv2.VideoCapture(self.device_index)
        if not capture.isOpened():
            capture.release()
            raise CameraUnavailableError(f"Cannot open camera {self.device_index}")

        capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._capture = capture

        logger.info(
            f"Camera {self.device_index} opened: "
            f"{int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))}x"
            f"{int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))}"
        )

    def read(self) -> Optional[np.ndarray]:
        if self._capture is None:
            return None
        ok, frame = self._capture.read()
        if not ok:
            return None
        return frame

    def release(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info(f"Camera {self.device_index} released")


class SyntheticCamera:
    """Camera that yields black frames. Pairs with MockFaceDetector."""

    def __init__(self, width: int = 640, height: int = 480) -> None:
        self.width = width
        self.height = height
        self._frame: Optional[np.ndarray] = None

    def open(self) -> None:
        self._frame = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        logger.info(f"SyntheticCamera opened: {self.width}x{self.height}")

    def read(self) -> Optional[np.ndarray]:
        return self._frame

    def release(self) -> None:
        self._frame = None
