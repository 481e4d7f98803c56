"""
Drawing Surface
===============

Immediate-mode 2-D drawing surface backed by a NumPy image.

This module is the ONLY place that rasterizes. Everything above it
(orb, particles, overlay) works in canvas coordinates and colours.

Design Rules:
    - Pixels are premultiplied RGBA uint8
    - Every draw call touches only the bounding box of its shape
    - Shapes are rasterized by OpenCV (anti-aliased, sub-pixel) into a
      scratch copy of that box, then blended back with OpenCV arithmetic
    - Two blend modes: NORMAL (source-over) and ADD (saturating add)
    - Fully transparent colours are no-ops
    - A surface may store fewer pixels than its canvas size (scale < 1);
      callers still draw in canvas coordinates, and draw() resamples

Example:
    screen = Surface(640, 480)
    screen.clear(BLACK)
    with screen.blend(BlendMode.ADD):
        screen.fill_circle((320, 240), 4, hsb(200, 30, 90, 40))
    cv2.imshow("orb", screen.to_bgr())
"""

import logging
from contextlib import contextmanager
from enum import Enum
from typing import Callable, Iterator, Optional, Sequence, Tuple

import cv2
import numpy as np

from orb_presence.render.color import Color


logger = logging.getLogger(__name__)

_SHIFT = 4
_SUBPIXEL = 1 << _SHIFT

# Draws one shape into a scratch region with the given OpenCV colour
Rasterizer = Callable[[np.ndarray, Tuple[float, float, float, float]], None]


class BlendMode(str, Enum):
    """Compositing mode for subsequent draw calls."""

    NORMAL = "NORMAL"
    ADD = "ADD"


def _opaque(color: Color) -> Tuple[float, float, float, float]:
    return (color.r * 255.0, color.g * 255.0, color.b * 255.0, 255.0)


def _premultiplied(color: Color) -> Tuple[float, float, float, float]:
    a = color.a * 255.0
    return (color.r * a, color.g * a, color.b * a, a)


class Surface:
    """
    Premultiplied RGBA drawing surface.

    Used both as the visible screen and as off-screen buffers.

    Attributes:
        width: Canvas width (drawing coordinates)
        height: Canvas height (drawing coordinates)
        scale: Stored pixels per canvas unit, in (0, 1]
        blend_mode: Blend mode applied by fill and draw calls
    """

    def __init__(self, width: int, height: int, scale: float = 1.0) -> None:
        """
        Create a fully transparent surface.

        Args:
            width: Canvas width (>= 1)
            height: Canvas height (>= 1)
            scale: Resolution of the stored image relative to the canvas
        """
        if width < 1 or height < 1:
            raise ValueError(f"surface size must be positive, got {width}x{height}")
        if not 0.0 < scale <= 1.0:
            raise ValueError(f"scale must be in (0, 1], got {scale}")

        self.width = int(width)
        self.height = int(height)
        self.scale = float(scale)
        self.blend_mode = BlendMode.NORMAL

        pixel_w = max(int(round(self.width * self.scale)), 1)
        pixel_h = max(int(round(self.height * self.scale)), 1)
        self._rgba = np.zeros((pixel_h, pixel_w, 4), dtype=np.uint8)

    def __repr__(self) -> str:
        return (
            f"Surface({self.width}x{self.height}, scale={self.scale}, "
            f"blend={self.blend_mode.value})"
        )

    @property
    def size(self) -> Tuple[int, int]:
        """(width, height) in canvas units."""
        return self.width, self.height

    @property
    def resolution(self) -> Tuple[int, int]:
        """(width, height) of the stored image in pixels."""
        return self._rgba.shape[1], self._rgba.shape[0]

    @property
    def pixels(self) -> np.ndarray:
        """Premultiplied RGBA pixels, shape (rows, cols, 4), uint8."""
        return self._rgba

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def clear(self, color: Optional[Color] = None) -> None:
        """Fill the whole surface with color, or make it transparent."""
        if color is None:
            self._rgba.fill(0)
            return
        self._rgba[...] = np.rint(_premultiplied(color)).astype(np.uint8)

    @contextmanager
    def blend(self, mode: BlendMode) -> Iterator["Surface"]:
        """Temporarily switch the blend mode."""
        previous = self.blend_mode
        self.blend_mode = mode
        try:
            yield self
        finally:
            self.blend_mode = previous

    # -------------------------------------------------------------------------
    # Shapes
    # -------------------------------------------------------------------------

    def fill_polygon(self, points: np.ndarray, color: Color) -> None:
        """
        Fill a closed polygon.

        Args:
            points: Vertices, shape (N, 2), in canvas coordinates
            color: Fill colour
        """
        if color.a <= 0.0:
            return

        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2) * self.scale
        if len(pts) < 3:
            return

        bounds = self._clip_bounds(
            pts[:, 0].min(), pts[:, 1].min(), pts[:, 0].max(), pts[:, 1].max()
        )
        if bounds is None:
            return
        x0, y0, x1, y1 = bounds

        fixed = np.round((pts - (x0, y0)) * _SUBPIXEL).astype(np.int32)

        def rasterize(region, value):
            cv2.fillPoly(region, [fixed], value, lineType=cv2.LINE_AA, shift=_SHIFT)

        self._composite(x0, y0, x1, y1, color, rasterize)

    def fill_circle(self, center: Sequence[float], diameter: float, color: Color) -> None:
        """
        Fill a disc.

        Args:
            center: (x, y) in canvas coordinates
            diameter: Disc diameter in canvas units
            color: Fill colour
        """
        if color.a <= 0.0 or diameter <= 0.0:
            return

        cx = float(center[0]) * self.scale
        cy = float(center[1]) * self.scale
        radius = diameter * self.scale / 2.0
        bounds = self._clip_bounds(cx - radius, cy - radius, cx + radius, cy + radius)
        if bounds is None:
            return
        x0, y0, x1, y1 = bounds

        fixed_center = (int(round((cx - x0) * _SUBPIXEL)), int(round((cy - y0) * _SUBPIXEL)))
        fixed_radius = max(int(round(radius * _SUBPIXEL)), 1)

        def rasterize(region, value):
            cv2.circle(
                region,
                fixed_center,
                fixed_radius,
                value,
                thickness=-1,
                lineType=cv2.LINE_AA,
                shift=_SHIFT,
            )

        self._composite(x0, y0, x1, y1, color, rasterize)

    def fill_rect(self, x: float, y: float, w: float, h: float, color: Color) -> None:
        """Fill an axis-aligned rectangle (pixel aligned)."""
        if color.a <= 0.0:
            return

        rows, cols = self._rgba.shape[:2]
        x0 = max(int(round(x * self.scale)), 0)
        y0 = max(int(round(y * self.scale)), 0)
        x1 = min(int(round((x + w) * self.scale)), cols)
        y1 = min(int(round((y + h) * self.scale)), rows)
        if x0 >= x1 or y0 >= y1:
            return

        def rasterize(region, value):
            region[...] = np.rint(value).astype(np.uint8)

        self._composite(x0, y0, x1, y1, color, rasterize)

    def text(
        self,
        lines: Sequence[str],
        origin: Tuple[float, float],
        size: float,
        color: Color,
        line_spacing: float = 1.3,
    ) -> None:
        """
        Draw left/top aligned lines of text.

        Args:
            lines: Text lines, drawn top to bottom
            origin: Top-left corner of the first line
            size: Approximate text height in canvas units
            color: Text colour
            line_spacing: Line advance as a multiple of size
        """
        if color.a <= 0.0 or not lines:
            return

        size = size * self.scale
        ox, oy = origin[0] * self.scale, origin[1] * self.scale
        font_scale = size / 28.0
        baselines = [int(round(oy + size + i * size * line_spacing)) for i in range(len(lines))]

        rows, cols = self._rgba.shape[:2]
        y0 = max(int(np.floor(oy)) - 2, 0)
        y1 = min(baselines[-1] + int(np.ceil(size * 0.5)) + 2, rows)
        if y0 >= y1:
            return

        def rasterize(region, value):
            for line, baseline in zip(lines, baselines):
                cv2.putText(
                    region,
                    line,
                    (int(round(ox)), baseline - y0),
                    cv2.FONT_HERSHEY_SIMPLEX,
                    font_scale,
                    value,
                    1,
                    cv2.LINE_AA,
                )

        self._composite(0, y0, cols, y1, color, rasterize)

    # -------------------------------------------------------------------------
    # Compositing
    # -------------------------------------------------------------------------

    def draw(self, other: "Surface", x: float = 0, y: float = 0) -> None:
        """
        Composite another surface onto this one at canvas position (x, y).

        A surface stored at a different scale is resampled first.
        """
        src_full = other.pixels
        if other.scale != self.scale:
            target = (
                max(int(round(other.width * self.scale)), 1),
                max(int(round(other.height * self.scale)), 1),
            )
            src_full = cv2.resize(src_full, target, interpolation=cv2.INTER_LINEAR)

        ox = int(round(x * self.scale))
        oy = int(round(y * self.scale))
        rows, cols = self._rgba.shape[:2]
        src_rows, src_cols = src_full.shape[:2]

        x0, y0 = max(ox, 0), max(oy, 0)
        x1 = min(ox + src_cols, cols)
        y1 = min(oy + src_rows, rows)
        if x0 >= x1 or y0 >= y1:
            return

        src = src_full[y0 - oy:y1 - oy, x0 - ox:x1 - ox]
        dst = self._rgba[y0:y1, x0:x1]

        if self.blend_mode is BlendMode.ADD:
            dst[...] = cv2.add(dst, src)
        else:
            transmit = 255 - src[..., 3]
            transmit4 = cv2.merge([transmit, transmit, transmit, transmit])
            dst[...] = cv2.add(cv2.multiply(dst, transmit4, scale=1.0 / 255.0), src)

    def to_bgr(self) -> np.ndarray:
        """Flatten onto black and convert to an 8-bit BGR image for OpenCV."""
        return cv2.cvtColor(self._rgba, cv2.COLOR_RGBA2BGR)

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _clip_bounds(
        self, min_x: float, min_y: float, max_x: float, max_y: float
    ) -> Optional[Tuple[int, int, int, int]]:
        """Integer pixel box (with AA margin) clipped to the stored image."""
        rows, cols = self._rgba.shape[:2]
        x0 = max(int(np.floor(min_x)) - 1, 0)
        y0 = max(int(np.floor(min_y)) - 1, 0)
        x1 = min(int(np.ceil(max_x)) + 2, cols)
        y1 = min(int(np.ceil(max_y)) + 2, rows)
        if x0 >= x1 or y0 >= y1:
            return None
        return x0, y0, x1, y1

    def _composite(
        self,
        x0: int,
        y0: int,
        x1: int,
        y1: int,
        color: Color,
        rasterize: Rasterizer,
    ) -> None:
        """
        Blend one shape into the pixel box [x0, x1) x [y0, y1).

        NORMAL: the shape is drawn opaque into a copy of the box, and the
        copy is mixed back with weight alpha. Pixels the shape misses are
        unchanged; anti-aliased edges get alpha * coverage.

        ADD: the shape is drawn premultiplied into a black box that is
        added with saturation.
        """
        region = self._rgba[y0:y1, x0:x1]

        if self.blend_mode is BlendMode.ADD:
            layer = np.zeros_like(region)
            rasterize(layer, _premultiplied(color))
            region[...] = cv2.add(region, layer)
        else:
            layer = region.copy()
            rasterize(layer, _opaque(color))
            region[...] = cv2.addWeighted(layer, color.a, region, 1.0 - color.a, 0.0)
