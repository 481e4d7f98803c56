"""
Status Codes
============

Fixed set of camera/detector status codes shown on the diagnostic overlay.

Each code maps to exactly one human-readable message. RUNNING is the only
nominal status; every other status makes the overlay visible.
"""

from enum import Enum


class StatusCode(str, Enum):
    """
    Camera and detector status.

    Attributes:
        INITIALIZING: Nothing has been started yet
        STARTING_CAMERA: Camera is being opened
        RUNNING: Detection results are arriving
        DETECTOR_UNAVAILABLE: Detector backend could not be loaded
        CAMERA_UNAVAILABLE: Camera could not be opened
        DETECTOR_ERROR: A detection attempt failed
        STOPPED: Camera and detector were stopped
    """

    INITIALIZING = "INITIALIZING"
    STARTING_CAMERA = "STARTING_CAMERA"
    RUNNING = "RUNNING"
    DETECTOR_UNAVAILABLE = "DETECTOR_UNAVAILABLE"
    CAMERA_UNAVAILABLE = "CAMERA_UNAVAILABLE"
    DETECTOR_ERROR = "DETECTOR_ERROR"
    STOPPED = "STOPPED"

    @property
    def message(self) -> str:
        """Overlay text for this status."""
        return _MESSAGES[self]


_MESSAGES = {
    StatusCode.INITIALIZING: "Initializing...",
    StatusCode.STARTING_CAMERA: "Starting camera...",
    StatusCode.RUNNING: "Running",
    StatusCode.DETECTOR_UNAVAILABLE: "Face detector not loaded (check installed backend).",
    StatusCode.CAMERA_UNAVAILABLE: "Camera blocked/unavailable. Allow camera + restart.",
    StatusCode.DETECTOR_ERROR: "Face detector error. Try restarting.",
    StatusCode.STOPPED: "Camera stopped.",
}
