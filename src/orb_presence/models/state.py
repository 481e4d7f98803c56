"""
Session State Models
====================

This module defines the mutable per-session state of the presence orb.

Core Concepts:
    - PresenceState: Debounce counters plus the stable presence flag
    - EnergyState: Smoothed presence energy in [0, max_presence]
    - AnimationClock: Global animation time and hue phase
    - CameraState: Camera/detector status surfaced on the overlay
    - SessionState: All of the above, owned by the frame driver

Ownership:
    Every field has a single writer. The presence debouncer writes
    PresenceState, the energy integrator writes EnergyState, the frame
    driver writes AnimationClock and the detection worker writes
    CameraState. All writes happen on the event loop thread.

Example:
    from orb_presence.models.state import SessionState

    session = SessionState()
    session.presence.presence       # False
    session.energy.value            # 0.0
    session.camera.status.message   # "Initializing..."
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from orb_presence.models.status import StatusCode


class PresenceState(BaseModel):
    """
    Debounced presence state.

    At most one of present_count / absent_count is nonzero at a time:
    each observation resets the opposite counter.

    Attributes:
        present_count: Consecutive positive samples seen
        absent_count: Consecutive negative samples seen
        presence: Stable (debounced) presence flag
    """

    present_count: int = Field(
        default=0,
        ge=0,
        description="Consecutive positive samples seen",
    )

    absent_count: int = Field(
        default=0,
        ge=0,
        description="Consecutive negative samples seen",
    )

    presence: bool = Field(
        default=False,
        description="Stable (debounced) presence flag",
    )


class EnergyState(BaseModel):
    """
    Smoothed presence energy.

    Rises slowly while presence holds and falls quickly otherwise.
    Always within [0, max_presence] of the integrator that owns it.
    """

    value: float = Field(
        default=0.0,
        ge=0.0,
        description="Accumulated presence energy",
    )


class AnimationClock(BaseModel):
    """
    Global animation clock.

    Advances once per rendered frame regardless of presence.

    Attributes:
        t: Monotonic animation time
        hue_shift: Base hue phase in degrees, wraps at 360
    """

    t: float = Field(default=0.0, ge=0.0, description="Animation time")
    hue_shift: float = Field(
        default=0.0,
        ge=0.0,
        lt=360.0,
        description="Base hue phase (degrees)",
    )
    frame_count: int = Field(default=0, ge=0, description="Frames rendered")

    def advance_hue(self, hue_speed: float) -> float:
        """Advance the hue phase by hue_speed degrees, wrapping at 360."""
        self.hue_shift = (self.hue_shift + hue_speed) % 360.0
        return self.hue_shift

    def advance_time(self, time_step: float) -> float:
        """Advance animation time by one frame step."""
        self.t += time_step
        self.frame_count += 1
        return self.t


class CameraState(BaseModel):
    """
    Camera and detector status.

    Display-only: nothing in the render path branches on it except the
    diagnostic overlay.

    Attributes:
        ready: At least one detection result has been received
        status: Current status code
        error: Last error raised by the camera or detector, if any
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    ready: bool = Field(default=False, description="Detection results are arriving")
    status: StatusCode = Field(
        default=StatusCode.INITIALIZING,
        description="Current camera/detector status",
    )
    error: Optional[BaseException] = Field(
        default=None,
        description="Last camera or detector error",
    )

    @property
    def nominal(self) -> bool:
        """True when running without any recorded error."""
        return self.ready and self.error is None and self.status == StatusCode.RUNNING


class SessionState(BaseModel):
    """
    Full mutable state of one orb session.

    Owned by the frame driver and handed by reference to the debouncer,
    integrator and detection worker.
    """

    presence: PresenceState = Field(default_factory=PresenceState)
    energy: EnergyState = Field(default_factory=EnergyState)
    clock: AnimationClock = Field(default_factory=AnimationClock)
    camera: CameraState = Field(default_factory=CameraState)
    last_sample_at: Optional[float] = Field(
        default=None,
        description="Monotonic time of the last observed detection sample",
    )
    samples_observed: int = Field(default=0, ge=0, description="Samples observed")
