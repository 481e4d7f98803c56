"""
Perception Module
=================

Camera acquisition and face detection for the presence signal.

This module provides a black-box abstraction for perception.
The rest of the system consumes ONLY DetectionSample values, never
camera frames.

Components:
    - FaceDetector: Protocol for detection backends
    - MockFaceDetector: Deterministic mock for testing
    - HaarFaceDetector: OpenCV Haar cascade
    - MediaPipeFaceDetector: MediaPipe (optional dependency)
    - OpenCVCamera / SyntheticCamera: frame sources
    - DetectionWorker: camera + detector loop feeding the channel

Design Philosophy:
    Detection is a pluggable black box. The orb reacts to a boolean
    per sample, NOT to detector internals.
"""

from orb_presence.perception.camera import CameraSource, OpenCVCamera, SyntheticCamera
from orb_presence.perception.detector import (
    FaceDetector,
    HaarFaceDetector,
    MockFaceDetector,
    create_detector,
)
from orb_presence.perception.errors import (
    CameraUnavailableError,
    DetectorUnavailableError,
    PresenceError,
)
from orb_presence.perception.worker import DetectionWorker, DetectionWorkerMetrics

__all__ = [
    "CameraSource",
    "OpenCVCamera",
    "SyntheticCamera",
    "FaceDetector",
    "HaarFaceDetector",
    "MockFaceDetector",
    "create_detector",
    "CameraUnavailableError",
    "DetectorUnavailableError",
    "PresenceError",
    "DetectionWorker",
    "DetectionWorkerMetrics",
]
