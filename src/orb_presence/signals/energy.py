"""
Presence Energy Integrator
==========================

Turns the stable presence flag into a smoothed scalar with asymmetric
attack and release.

    present:  value = min(previous + rise_rate, max_presence)
    absent:   value = max(previous - fall_rate, 0)
    pct     = value / max_presence

With the defaults (rise 0.08, fall 1.5, max 350) a full bloom takes
~4375 frames (~73 s at 60 Hz) of uninterrupted presence while a full
collapse takes ~234 frames (~4 s). All rates are per render frame.
"""

import logging

from orb_presence.models.state import EnergyState


logger = logging.getLogger(__name__)


class PresenceEnergyIntegrator:
    """
    Asymmetric integrator for presence energy.

    Attributes:
        max_presence: Energy ceiling
        rise_rate: Energy gained per tick while present
        fall_rate: Energy lost per tick while absent

    Example:
        integrator = PresenceEnergyIntegrator()
        state = EnergyState()

        pct = integrator.update(state, presence=True)
    """

    def __init__(
        self,
        max_presence: float = 350.0,
        rise_rate: float = 0.08,
        fall_rate: float = 1.5,
    ) -> None:
        """
        Initialize energy integrator.

        Args:
            max_presence: Energy ceiling (> 0)
            rise_rate: Per-frame increment while present (>= 0)
            fall_rate: Per-frame decrement while absent (>= 0)
        """
        if max_presence <= 0:
            raise ValueError("max_presence must be positive")
        if rise_rate < 0 or fall_rate < 0:
            raise ValueError("rise_rate and fall_rate must be non-negative")

        self.max_presence = max_presence
        self.rise_rate = rise_rate
        self.fall_rate = fall_rate

        logger.info(
            f"PresenceEnergyIntegrator initialized: max={max_presence}, "
            f"rise={rise_rate}, fall={fall_rate}"
        )

    def tick(self, presence: bool, previous: float) -> float:
        """
        Advance energy by one render frame.

        Args:
            presence: Stable presence flag for this frame
            previous: Energy value from the previous frame

        Returns:
            New energy value, clamped to [0, max_presence].
        """
        if presence:
            return min(previous + self.rise_rate, self.max_presence)
        return max(previous - self.fall_rate, 0.0)

    def normalize(self, value: float) -> float:
        """Map an energy value to pct in [0, 1]."""
        return min(max(value / self.max_presence, 0.0), 1.0)

    def update(self, state: EnergyState, presence: bool) -> float:
        """
        Tick the energy state in place.

        Args:
            state: Energy state to mutate
            presence: Stable presence flag for this frame

        Returns:
            Normalized energy (pct) after the tick.
        """
        state.value = self.tick(presence, state.value)
        return self.normalize(state.value)
