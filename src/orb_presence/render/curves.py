"""
Curve Helpers
=============

Smooth closed curves through a ring of control points.

Orb outlines are sampled at a coarse angular step; filling them as a
plain polygon shows visible facets. A closed uniform Catmull-Rom spline
passes through every control point and is C1-continuous, including
across the seam between the last and first point.
"""

import numpy as np


def catmull_rom_closed(points: np.ndarray, samples_per_segment: int = 4) -> np.ndarray:
    """
    Interpolate a closed Catmull-Rom spline.

    Args:
        points: Control points, shape (N, 2), N >= 3, in ring order
        samples_per_segment: Output points per control segment (>= 1)

    Returns:
        Curve points, shape (N * samples_per_segment, 2). The first
        sample of each segment is the control point itself.
    """
    pts = np.asarray(points, dtype=np.float64)
    if pts.ndim != 2 or pts.shape[1] != 2:
        raise ValueError(f"points must have shape (N, 2), got {pts.shape}")
    if len(pts) < 3:
        raise ValueError("a closed curve needs at least 3 points")
    if samples_per_segment < 1:
        raise ValueError("samples_per_segment must be >= 1")

    if samples_per_segment == 1:
        return pts.copy()

    p0 = np.roll(pts, 1, axis=0)[:, None, :]
    p1 = pts[:, None, :]
    p2 = np.roll(pts, -1, axis=0)[:, None, :]
    p3 = np.roll(pts, -2, axis=0)[:, None, :]

    t = (np.arange(samples_per_segment) / samples_per_segment)[None, :, None]
    t2 = t * t
    t3 = t2 * t

    curve = 0.5 * (
        2.0 * p1
        + (p2 - p0) * t
        + (2.0 * p0 - 5.0 * p1 + 4.0 * p2 - p3) * t2
        + (3.0 * p1 - p0 - 3.0 * p2 + p3) * t3
    )
    return curve.reshape(-1, 2)
