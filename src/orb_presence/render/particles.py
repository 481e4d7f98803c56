"""
Particle Field
==============

Fixed-size pool of ambient drifting points.

The pool is a struct of NumPy arrays, one entry per particle. Particles
are never created or destroyed after the pool is built: a particle that
leaves the canvas is reset in place with fresh random state.

Design Rules:
    - Pool size is constant for the pool's lifetime
    - After update_particles() every particle is inside [0, w] x [0, h]
    - Rendering uses additive blending so overlaps brighten
    - Brightness and alpha scale with presence energy
"""

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple, Union

import numpy as np

from orb_presence.render.canvas import BlendMode, Surface
from orb_presence.render.color import hsb


logger = logging.getLogger(__name__)

Indices = Union[Sequence[int], np.ndarray]


@dataclass
class ParticlePool:
    """
    Struct-of-arrays particle storage.

    Attributes:
        x, y: Positions in canvas coordinates
        angle: Heading in radians
        speed: Pixels per frame
        size: Disc diameter in pixels
        hue: Hue in degrees
        width, height: Canvas bounds the pool lives in
        speed_range, size_range: Ranges used on reset
        saturation: Particle saturation (0-100)
    """

    x: np.ndarray
    y: np.ndarray
    angle: np.ndarray
    speed: np.ndarray
    size: np.ndarray
    hue: np.ndarray
    width: int
    height: int
    speed_range: Tuple[float, float] = (0.2, 0.6)
    size_range: Tuple[float, float] = (1.0, 2.0)
    saturation: float = 30.0

    @property
    def count(self) -> int:
        """Number of particles in the pool."""
        return len(self.x)

    def __len__(self) -> int:
        return self.count

    def outside(self) -> np.ndarray:
        """Boolean mask of particles outside the canvas rectangle."""
        return (
            (self.x < 0) | (self.x > self.width) |
            (self.y < 0) | (self.y > self.height)
        )


def create_pool(
    count: int,
    width: int,
    height: int,
    rng: Optional[np.random.Generator] = None,
    speed_range: Tuple[float, float] = (0.2, 0.6),
    size_range: Tuple[float, float] = (1.0, 2.0),
    saturation: float = 30.0,
) -> ParticlePool:
    """
    Allocate and randomize a particle pool.

    Args:
        count: Pool size (>= 0)
        width, height: Canvas bounds
        rng: Random generator (a fresh one when omitted)
        speed_range: (min, max) speed in pixels per frame
        size_range: (min, max) disc diameter in pixels
        saturation: Particle saturation

    Returns:
        A pool with every particle freshly reset.
    """
    if count < 0:
        raise ValueError("count must be non-negative")
    if rng is None:
        rng = np.random.default_rng()

    pool = ParticlePool(
        x=np.zeros(count),
        y=np.zeros(count),
        angle=np.zeros(count),
        speed=np.zeros(count),
        size=np.zeros(count),
        hue=np.zeros(count),
        width=width,
        height=height,
        speed_range=speed_range,
        size_range=size_range,
        saturation=saturation,
    )
    reset_particles(pool, np.arange(count), rng)

    logger.debug(f"Particle pool created: count={count}, bounds={width}x{height}")
    return pool


def reset_particles(pool: ParticlePool, indices: Indices, rng: np.random.Generator) -> None:
    """Give the particles at indices a fresh random position, heading, size and hue."""
    idx = np.asarray(indices, dtype=np.intp)
    n = len(idx)
    if n == 0:
        return

    pool.x[idx] = rng.uniform(0.0, pool.width, n)
    pool.y[idx] = rng.uniform(0.0, pool.height, n)
    pool.angle[idx] = rng.uniform(0.0, 2.0 * math.pi, n)
    pool.speed[idx] = rng.uniform(pool.speed_range[0], pool.speed_range[1], n)
    pool.size[idx] = rng.uniform(pool.size_range[0], pool.size_range[1], n)
    pool.hue[idx] = rng.uniform(0.0, 360.0, n)


def update_particles(pool: ParticlePool, rng: np.random.Generator) -> int:
    """
    Advance every particle one frame and reset the ones that left the canvas.

    Returns:
        Number of particles reset this frame.
    """
    pool.x += np.cos(pool.angle) * pool.speed
    pool.y += np.sin(pool.angle) * pool.speed

    escaped = np.flatnonzero(pool.outside())
    reset_particles(pool, escaped, rng)
    return len(escaped)


def render_particles(surface: Surface, pool: ParticlePool, pct: float) -> None:
    """
    Draw every particle as a small additive disc.

    Args:
        surface: Target surface
        pool: Particle pool
        pct: Normalized presence energy
    """
    alpha = 5.0 + pct * 30.0
    brightness = 80.0 + pct * 20.0

    with surface.blend(BlendMode.ADD):
        for i in range(pool.count):
            surface.fill_circle(
                (pool.x[i], pool.y[i]),
                pool.size[i],
                hsb(pool.hue[i], pool.saturation, brightness, alpha),
            )
