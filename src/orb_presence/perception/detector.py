"""
Face Detectors
==============

Face detection treated as a black-box binary oracle.

This module provides the FaceDetector protocol and its OpenCV and mock
implementations. The MediaPipe backend lives in mediapipe_detector.py
so that MediaPipe stays an optional dependency.

Design Rules:
    - detect() takes a BGR frame and returns a face count
    - detect() may block; callers run it off the event loop
    - Backends that cannot load raise DetectorUnavailableError
    - Mock provides deterministic, scripted output for testing
"""

import logging
from typing import Protocol

import cv2
import numpy as np

from orb_presence.config import DetectorConfig
from orb_presence.perception.errors import DetectorUnavailableError


logger = logging.getLogger(__name__)


class FaceDetector(Protocol):
    """
    Protocol for face detection backends.

    This interface is implemented by:
        - MediaPipeFaceDetector (default)
        - HaarFaceDetector (OpenCV only)
        - MockFaceDetector (testing, demos)
    """

    def detect(self, image: np.ndarray) -> int:
        """
        Count faces in a frame.

        Args:
            image: BGR frame, shape (H, W, 3), dtype uint8

        Returns:
            Number of faces found
        """
        ...

    def close(self) -> None:
        """Release backend resources."""
        ...


class MockFaceDetector:
    """
    Deterministic mock detector.

    Cycles through present_frames samples with a face followed by
    absent_frames samples without one. With flicker_every > 0, every
    N-th sample of the present phase reports no face, imitating the
    dropouts of a real detector.

    Attributes:
        present_frames: Samples with a face per cycle
        absent_frames: Samples without a face per cycle
        flicker_every: Dropout period inside the present phase (0 = never)
    """

    def __init__(
        self,
        present_frames: int = 900,
        absent_frames: int = 300,
        flicker_every: int = 0,
    ) -> None:
        """
        Initialize mock detector.

        Args:
            present_frames: Samples with a face per cycle
            absent_frames: Samples without a face per cycle
            flicker_every: Drop the face every N present samples
        """
        if present_frames < 0 or absent_frames < 0:
            raise ValueError("frame counts must be non-negative")
        if present_frames + absent_frames == 0:
            raise ValueError("cycle length must be positive")

        self.present_frames = present_frames
        self.absent_frames = absent_frames
        self.flicker_every = flicker_every
        self._calls = 0

        logger.info(
            f"MockFaceDetector initialized: present={present_frames}, "
            f"absent={absent_frames}, flicker_every={flicker_every}"
        )

    @property
    def calls(self) -> int:
        """Number of detect() calls so far."""
        return self._calls

    def detect(self, image: np.ndarray) -> int:
        position = self._calls % (self.present_frames + self.absent_frames)
        self._calls += 1

        if position >= self.present_frames:
            return 0
        if self.flicker_every and (position + 1) % self.flicker_every == 0:
            return 0
        return 1

    def close(self) -> None:
        pass


class HaarFaceDetector:
    """
    Frontal face detector using the Haar cascade bundled with OpenCV.

    Slower and noisier than MediaPipe, but needs nothing beyond
    opencv-python.
    """

    CASCADE_FILE = "haarcascade_frontalface_default.xml"

    def __init__(
        self,
        scale_factor: float = 1.1,
        min_neighbors: int = 5,
        min_size: int = 60,
    ) -> None:
        """
        Initialize Haar detector.

        Args:
            scale_factor: Image pyramid scale step
            min_neighbors: Neighbour rectangles needed to keep a detection
            min_size: Smallest face side length in pixels

        Raises:
            DetectorUnavailableError: If the cascade cannot be loaded
        """
        self.scale_factor = scale_factor
        self.min_neighbors = min_neighbors
        self.min_size = min_size

        if not hasattr(cv2, "CascadeClassifier"):
            raise DetectorUnavailableError(
                f"OpenCV {cv2.__version__} has no CascadeClassifier; "
                f"install opencv-python<5 or use the mediapipe backend"
            )

        data = getattr(cv2, "data", None)
        cascade_dir = getattr(data, "haarcascades", None)
        if cascade_dir is None:
            raise DetectorUnavailableError(
                f"OpenCV {cv2.__version__} ships no bundled Haar cascades"
            )

        path = cascade_dir + self.CASCADE_FILE
        self._cascade = cv2.CascadeClassifier(path)
        if self._cascade.empty():
            raise DetectorUnavailableError(f"Failed to load Haar cascade: {path}")

        logger.info(f"HaarFaceDetector initialized from: {path}")

    def detect(self, image: np.ndarray) -> int:
        gray = cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)
        faces = self._cascade.detectMultiScale(
            gray,
            scaleFactor=self.scale_factor,
            minNeighbors=self.min_neighbors,
            minSize=(self.min_size, self.min_size),
        )
        return len(faces)

    def close(self) -> None:
        pass


def create_detector(config: DetectorConfig) -> FaceDetector:
    """
    Create a face detector from configuration.

    Raises:
        DetectorUnavailableError: If the backend cannot be loaded
        ValueError: If the backend name is unknown
    """
    backend = config.backend.lower()

    if backend == "mock":
        logger.info("Using MockFaceDetector")
        return MockFaceDetector(
            present_frames=config.mock.present_frames,
            absent_frames=config.mock.absent_frames,
            flicker_every=config.mock.flicker_every,
        )

    elif backend == "haar":
        logger.info("Using HaarFaceDetector")
        return HaarFaceDetector()

    elif backend == "mediapipe":
        from orb_presence.perception.mediapipe_detector import MediaPipeFaceDetector

        logger.info(
            f"Using MediaPipeFaceDetector: model={config.model_selection}, "
            f"min_confidence={config.min_detection_confidence}"
        )
        return MediaPipeFaceDetector(
            model_selection=config.model_selection,
            min_detection_confidence=config.min_detection_confidence,
        )

    else:
        raise ValueError(f"Unknown detector backend: {config.backend}")
