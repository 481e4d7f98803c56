"""
Signals Module
==============

Signal processing for the presence input.

This module provides the two stages that turn raw, noisy per-sample
detections into the single scalar that drives every visual parameter.
"""

from orb_presence.signals.debouncer import PresenceDebouncer
from orb_presence.signals.energy import PresenceEnergyIntegrator

__all__ = ["PresenceDebouncer", "PresenceEnergyIntegrator"]
