"""
MediaPipe Face Detector
=======================

Face detection backend using MediaPipe's BlazeFace models.

This detector:
    - Uses the short-range model by default (faces within ~2 m)
    - Converts BGR frames to RGB before inference
    - Reports the number of detections above the confidence threshold

Design Rules:
    - MediaPipe is optional: import failures become DetectorUnavailableError
    - Never swallows inference errors; the detection worker handles them
"""

import logging

import cv2
import numpy as np

from orb_presence.perception.errors import DetectorUnavailableError


logger = logging.getLogger(__name__)


class MediaPipeFaceDetector:
    """
    MediaPipe face detection.

    Attributes:
        model_selection: 0 = short range, 1 = full range
        min_detection_confidence: Minimum score to count a face
    """

    def __init__(
        self,
        model_selection: int = 0,
        min_detection_confidence: float = 0.5,
    ) -> None:
        """
        Initialize MediaPipe detector.

        Args:
            model_selection: 0 = short range, 1 = full range
            min_detection_confidence: Minimum detection score

        Raises:
            DetectorUnavailableError: If MediaPipe is not installed or
                does not provide the face detection solution
        """
        self.model_selection = model_selection
        self.min_detection_confidence = min_detection_confidence
        self._detector = None
        self._init_detector()

        logger.info(
            f"MediaPipeFaceDetector initialized: model={model_selection}, "
            f"min_confidence={min_detection_confidence}"
        )

    def _init_detector(self) -> None:
        """Create the MediaPipe face detection graph."""
        try:
            import mediapipe as mp
        except ImportError:
            raise DetectorUnavailableError(
                "mediapipe is required for MediaPipeFaceDetector. "
                "Install with: pip install 'orb-presence[mediapipe]'"
            )

        try:
            self._detector = mp.solutions.face_detection.FaceDetection(
                model_selection=self.model_selection,
                min_detection_confidence=self.min_detection_confidence,
            )
        except AttributeError as e:
            raise DetectorUnavailableError(
                f"Installed mediapipe has no face_detection solution: {e}"
            )

    def detect(self, image: np.ndarray) -> int:
        rgb = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
        results = self._detector.process(rgb)
        return len(results.detections or [])

    def close(self) -> None:
        if self._detector is not None:
            self._detector.close()
            self._detector = None
