"""
Runtime Module
==============

Frame loop and display backends.

    - FrameDriver: per-frame orchestration at a fixed rate
    - WindowDisplay: OpenCV window
    - HeadlessDisplay: no window (tests, --headless)
"""

from orb_presence.runtime.display import Display, HeadlessDisplay, WindowDisplay
from orb_presence.runtime.driver import FrameDriver

__all__ = [
    "Display",
    "HeadlessDisplay",
    "WindowDisplay",
    "FrameDriver",
]
