"""
Orb Presence
============

A procedurally generated "orb" whose intensity follows a debounced
face-presence signal from a camera.

Pipeline per frame:
    detection sample -> PresenceDebouncer -> presence (bool)
    -> PresenceEnergyIntegrator -> pct in [0, 1]
    -> OrbGenerator + particle field -> composited frame

Components:
    - signals: presence debouncing and energy integration
    - render: noise field, drawing surface, orb, particles, status overlay
    - perception: camera, face detectors and the detection worker
    - stream: FIFO channel between detection and rendering
    - runtime: frame driver and display backends

Example:
    from orb_presence.config import settings
    from orb_presence.main import build_app

    app = build_app(settings)
"""

__version__ = "0.1.0"
__author__ = "Orb Presence Project"

__all__ = [
    "__version__",
]
