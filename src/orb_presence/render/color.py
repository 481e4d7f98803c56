"""
Colour Helpers
==============

HSB colours with alpha, in the ranges used throughout the
renderer: hue 0-360, saturation/brightness/alpha 0-100.
"""

import colorsys
from typing import NamedTuple


class Color(NamedTuple):
    """Straight (non-premultiplied) RGBA colour, every channel in [0, 1]."""

    r: float
    g: float
    b: float
    a: float = 1.0


BLACK = Color(0.0, 0.0, 0.0, 1.0)


def _unit(value: float, scale: float) -> float:
    return min(max(value / scale, 0.0), 1.0)


def hsb(hue: float, saturation: float, brightness: float, alpha: float = 100.0) -> Color:
    """
    Convert an HSB(A) colour to RGBA.

    Args:
        hue: Hue in degrees, wrapped into [0, 360)
        saturation: Saturation in [0, 100]
        brightness: Brightness in [0, 100]
        alpha: Opacity in [0, 100]

    Returns:
        Color with channels in [0, 1]. Out-of-range inputs are clamped.
    """
    r, g, b = colorsys.hsv_to_rgb(
        (hue % 360.0) / 360.0,
        _unit(saturation, 100.0),
        _unit(brightness, 100.0),
    )
    return Color(r, g, b, _unit(alpha, 100.0))
