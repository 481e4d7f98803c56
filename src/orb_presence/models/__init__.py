"""
Data Models
===========

Data models for the presence orb.

This module re-exports all data models for convenient access.

Models:
    Input:
        - DetectionSample: One binary result from the face detector

    State:
        - PresenceState: Debounce counters and stable presence flag
        - EnergyState: Smoothed presence energy
        - AnimationClock: Animation time and hue phase
        - CameraState: Camera/detector status for the overlay
        - SessionState: All mutable session state

    Status:
        - StatusCode: Camera/detector status codes
"""

from orb_presence.models.detection import DetectionSample
from orb_presence.models.state import (
    AnimationClock,
    CameraState,
    EnergyState,
    PresenceState,
    SessionState,
)
from orb_presence.models.status import StatusCode

__all__ = [
    # Input
    "DetectionSample",
    # State
    "PresenceState",
    "EnergyState",
    "AnimationClock",
    "CameraState",
    "SessionState",
    # Status
    "StatusCode",
]
