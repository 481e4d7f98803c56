"""
Status Overlay
==============

Diagnostic text drawn over the frame while the camera/detector is not in
its steady running state.

The overlay is display-only: it reads presence and camera status and
never writes state.
"""

from typing import List

from orb_presence.models.state import CameraState
from orb_presence.render.canvas import BlendMode, Surface
from orb_presence.render.color import hsb


MAX_LINE_LENGTH = 120
BAND_HEIGHT = 90
TEXT_SIZE = 14
TEXT_ORIGIN = (12, 10)


def should_show_overlay(camera: CameraState) -> bool:
    """True unless the camera is ready, error-free and RUNNING."""
    return not camera.nominal


def overlay_lines(presence: bool, camera: CameraState) -> List[str]:
    """
    Build the overlay text.

    Returns:
        Two lines (presence, status) plus an error line when an error is
        recorded. The error line is cut to MAX_LINE_LENGTH characters.
    """
    lines = [
        f"presence: {str(presence).lower()}",
        f"status: {camera.status.message}",
    ]
    if camera.error is not None:
        message = str(camera.error) or type(camera.error).__name__
        lines.append(f"error: {message}"[:MAX_LINE_LENGTH])
    return lines


def draw_status_overlay(surface: Surface, presence: bool, camera: CameraState) -> bool:
    """
    Draw the overlay when it should be shown.

    Returns:
        Whether anything was drawn.
    """
    if not should_show_overlay(camera):
        return False

    with surface.blend(BlendMode.NORMAL):
        surface.fill_rect(0, 0, surface.width, BAND_HEIGHT, hsb(0, 0, 0, 65))
        surface.text(
            overlay_lines(presence, camera),
            TEXT_ORIGIN,
            TEXT_SIZE,
            hsb(0, 0, 100, 90),
        )
    return True
