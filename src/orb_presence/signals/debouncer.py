"""
Presence Debouncer
==================

Converts noisy per-sample face detections into a stable presence flag.

Raw detection flickers on and off even for a stationary subject. The
debouncer keeps two run-length counters and applies asymmetric
hysteresis:

    absent  -> present:  on_frames consecutive positive samples
    present -> absent:   off_frames consecutive negative samples

With the defaults (6 on, 12 off) presence is "sticky": it takes twice as
long to drop presence as to acquire it.

Counters are compared with >= on every call, so they never need an
explicit cap.
"""

import logging

from orb_presence.models.state import PresenceState


logger = logging.getLogger(__name__)


class PresenceDebouncer:
    """
    Hysteresis debouncer for the binary detection signal.

    Operates in place on a PresenceState owned by the session.

    Attributes:
        state: Presence state mutated by observe()
        on_frames: Consecutive positives needed to turn presence on
        off_frames: Consecutive negatives needed to turn presence off

    Example:
        debouncer = PresenceDebouncer(PresenceState(), on_frames=6, off_frames=12)

        for seen in samples:
            present = debouncer.observe(seen)
    """

    def __init__(
        self,
        state: PresenceState,
        on_frames: int = 6,
        off_frames: int = 12,
    ) -> None:
        """
        Initialize presence debouncer.

        Args:
            state: Presence state to mutate
            on_frames: Consecutive positive samples to turn presence on (>= 1)
            off_frames: Consecutive negative samples to turn presence off (>= 1)
        """
        if on_frames < 1:
            raise ValueError("on_frames must be >= 1")
        if off_frames < 1:
            raise ValueError("off_frames must be >= 1")

        self.state = state
        self.on_frames = on_frames
        self.off_frames = off_frames

        logger.info(
            f"PresenceDebouncer initialized: on_frames={on_frames}, "
            f"off_frames={off_frames}"
        )

    @property
    def presence(self) -> bool:
        """Current stable presence."""
        return self.state.presence

    def observe(self, faces_found: bool) -> bool:
        """
        Feed one detection result.

        Args:
            faces_found: Whether the detector saw a face in this sample

        Returns:
            The stable presence flag after this observation.
        """
        state = self.state

        if faces_found:
            state.present_count += 1
            state.absent_count = 0
        else:
            state.absent_count += 1
            state.present_count = 0

        if not state.presence and state.present_count >= self.on_frames:
            state.presence = True
            logger.info(f"Presence ON after {state.present_count} consecutive samples")
        elif state.presence and state.absent_count >= self.off_frames:
            state.presence = False
            logger.info(f"Presence OFF after {state.absent_count} consecutive samples")

        return state.presence

    def reset_counters(self) -> None:
        """Reset both run-length counters, keeping the presence flag."""
        self.state.present_count = 0
        self.state.absent_count = 0

    def reset(self) -> None:
        """Return to the initial state: no counts, no presence."""
        self.reset_counters()
        self.state.presence = False
        logger.debug("PresenceDebouncer reset")

    def force_absent(self) -> None:
        """Drop presence immediately, bypassing hysteresis."""
        if self.state.presence:
            logger.info("Presence forced OFF")
        self.reset()
