"""
Test Configuration
==================

Pytest fixtures and test configuration for the presence orb.
"""

import numpy as np
import pytest


@pytest.fixture
def session():
    """Provide a fresh SessionState."""
    from orb_presence.models.state import SessionState

    return SessionState()


@pytest.fixture
def debouncer(session):
    """Provide a debouncer bound to the session's presence state."""
    from orb_presence.signals.debouncer import PresenceDebouncer

    return PresenceDebouncer(session.presence, on_frames=6, off_frames=12)


@pytest.fixture
def integrator():
    """Provide an energy integrator with default rates."""
    from orb_presence.signals.energy import PresenceEnergyIntegrator

    return PresenceEnergyIntegrator()


@pytest.fixture
def channel():
    """Provide a detection channel with the default capacity."""
    from orb_presence.stream.channel import DetectionChannel

    return DetectionChannel()


@pytest.fixture
def small_orb():
    """Provide a cheap orb generator with a constant noise field."""
    from orb_presence.render.noise import ConstantNoiseField
    from orb_presence.render.orb import OrbGenerator

    return OrbGenerator(ConstantNoiseField(0.5), layers=8, angle_step=0.5)


@pytest.fixture
def driver(session, debouncer, integrator, small_orb, channel):
    """Provide a small frame driver (64x48, 10 particles, seeded)."""
    from orb_presence.runtime.driver import FrameDriver

    return FrameDriver(
        session,
        debouncer,
        integrator,
        small_orb,
        channel,
        64,
        48,
        particle_count=10,
        target_fps=1000.0,
        rng=np.random.default_rng(1),
    )


@pytest.fixture
def mock_settings():
    """Provide Settings for a small headless mock-backed run."""
    from orb_presence.config import Settings

    return Settings.model_validate({
        "detector": {"backend": "mock", "mock": {"present_frames": 20, "absent_frames": 5}},
        "camera": {"max_sample_rate": 500.0},
        "orb": {"layers": 6, "angle_step": 0.5, "noise_seed": 3},
        "particles": {"count": 12, "seed": 3},
        "animation": {"target_fps": 240.0},
        "display": {"width": 80, "height": 60, "headless": True},
    })
