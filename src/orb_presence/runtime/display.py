"""
Display Backends
================

Where finished frames go.

    - WindowDisplay: OpenCV HighGUI window (q / Esc quits, f toggles fullscreen)
    - HeadlessDisplay: no window; keeps the last frame, optional frame limit

The frame driver polls size() every frame, so resizing the window
resizes the canvas.
"""

import logging
from typing import Optional, Protocol, Tuple

import cv2

from orb_presence.render.canvas import Surface


logger = logging.getLogger(__name__)

_QUIT_KEYS = (ord("q"), ord("Q"), 27)
_FULLSCREEN_KEYS = (ord("f"), ord("F"))


class Display(Protocol):
    """Protocol for frame sinks."""

    def size(self) -> Tuple[int, int]:
        """Current canvas size (width, height)."""
        ...

    def present(self, surface: Surface) -> None:
        """Show a finished frame."""
        ...

    def poll(self) -> bool:
        """Process input. Returns False when the user asked to quit."""
        ...

    def close(self) -> None:
        ...


class WindowDisplay:
    """
    OpenCV window display.

    Attributes:
        title: Window title
        fullscreen: Whether the window is currently fullscreen
    """

    def __init__(
        self,
        title: str = "Presence Orb",
        width: int = 1280,
        height: int = 720,
        fullscreen: bool = True,
    ) -> None:
        self.title = title
        self.fullscreen = False
        self._size = (width, height)

        cv2.namedWindow(title, cv2.WINDOW_NORMAL)
        cv2.resizeWindow(title, width, height)
        if fullscreen:
            self.set_fullscreen(True)

        logger.info(f"WindowDisplay opened: '{title}' {width}x{height}, fullscreen={fullscreen}")

    def size(self) -> Tuple[int, int]:
        _, _, w, h = cv2.getWindowImageRect(self.title)
        if w > 0 and h > 0:
            self._size = (w, h)
        return self._size

    def present(self, surface: Surface) -> None:
        cv2.imshow(self.title, surface.to_bgr())

    def poll(self) -> bool:
        key = cv2.waitKey(1) & 0xFF
        if key in _QUIT_KEYS:
            logger.info("Quit key pressed")
            return False
        if key in _FULLSCREEN_KEYS:
            self.set_fullscreen(not self.fullscreen)
        if cv2.getWindowProperty(self.title, cv2.WND_PROP_VISIBLE) < 1:
            logger.info("Window closed")
            return False
        return True

    def set_fullscreen(self, enabled: bool) -> None:
        cv2.setWindowProperty(
            self.title,
            cv2.WND_PROP_FULLSCREEN,
            cv2.WINDOW_FULLSCREEN if enabled else cv2.WINDOW_NORMAL,
        )
        self.fullscreen = enabled
        logger.info(f"Fullscreen {'on' if enabled else 'off'}")

    def close(self) -> None:
        cv2.destroyWindow(self.title)


class HeadlessDisplay:
    """
    Display without a window.

    Attributes:
        max_frames: Quit after this many frames (None = never)
        frames_presented: Frames received so far
        last_frame: BGR image of the most recent frame
    """

    def __init__(self, width: int = 1280, height: int = 720, max_frames: Optional[int] = None) -> None:
        self._size = (width, height)
        self.max_frames = max_frames
        self.frames_presented = 0
        self.last_frame = None

    def size(self) -> Tuple[int, int]:
        return self._size

    def resize(self, width: int, height: int) -> None:
        """Simulate a window resize."""
        self._size = (width, height)

    def present(self, surface: Surface) -> None:
        self.frames_presented += 1
        self.last_frame = surface.to_bgr()

    def poll(self) -> bool:
        return self.max_frames is None or self.frames_presented < self.max_frames

    def close(self) -> None:
        pass
