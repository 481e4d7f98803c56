"""
Perception Errors
=================

Exception types raised by camera and detector backends.

    PresenceError
    ├── DetectorUnavailableError   detector backend cannot be loaded
    └── CameraUnavailableError     camera cannot be opened

Per-sample detection failures are not wrapped: whatever the detector
raises is caught by the detection worker and surfaced as status.
"""


class PresenceError(Exception):
    """Base class for presence pipeline errors."""
    pass


class DetectorUnavailableError(PresenceError):
    """Raised when the requested detector backend cannot be loaded."""
    pass


class CameraUnavailableError(PresenceError):
    """Raised when the camera cannot be opened."""
    pass
