"""
Detection Models
================

Data model for a single result of the face detection oracle.

A DetectionSample is produced once per processed camera frame by the
detection worker and consumed once by the presence debouncer. It is
ephemeral: samples are never stored beyond the channel that carries them.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class DetectionSample:
    """
    Binary presence result for one camera frame.

    Attributes:
        faces_found: Whether at least one face was detected
        face_count: Number of faces the detector reported
        timestamp: Monotonic time when the sample was produced
    """

    faces_found: bool
    face_count: int = 0
    timestamp: float = 0.0

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.face_count < 0:
            raise ValueError("face_count must be non-negative")
        if self.face_count > 0 and not self.faces_found:
            raise ValueError("faces_found must be True when face_count > 0")

    @classmethod
    def from_count(cls, face_count: int, timestamp: float = 0.0) -> "DetectionSample":
        """Build a sample from a raw detector face count."""
        return cls(
            faces_found=face_count > 0,
            face_count=face_count,
            timestamp=timestamp,
        )

    def __repr__(self) -> str:
        return (
            f"DetectionSample(faces_found={self.faces_found}, "
            f"count={self.face_count}, t={self.timestamp:.3f})"
        )
