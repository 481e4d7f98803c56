"""
Noise Field
===========

Deterministic coherent 2-D noise used to perturb orb outlines.

The field is an injected capability: the orb generator only needs a pure
function noise(x, y) -> [0, 1], so tests can substitute a constant field.

PerlinNoiseField implements multi-octave lattice noise with cosine
interpolation over a fixed random table (the classic Processing-style
noise()):
    - negative coordinates are mirrored
    - each octave doubles frequency and multiplies amplitude by falloff
    - with 4 octaves and falloff 0.5 the output lies in [0, 0.9375)

Both scalars and NumPy arrays are accepted; arrays are evaluated in one
vectorized pass.
"""

import logging
from typing import Optional, Protocol, Union

import numpy as np


logger = logging.getLogger(__name__)

ArrayLike = Union[float, np.ndarray]

PERLIN_YWRAPB = 4
PERLIN_YWRAP = 1 << PERLIN_YWRAPB
PERLIN_SIZE = 4095


class NoiseField(Protocol):
    """
    Protocol for 2-D noise sources.

    Implementations must be pure: identical inputs give identical outputs
    for the lifetime of the object.
    """

    def __call__(self, x: ArrayLike, y: ArrayLike) -> ArrayLike:
        """Sample the field. Output lies in [0, 1]."""
        ...


def _scaled_cosine(i: np.ndarray) -> np.ndarray:
    return 0.5 * (1.0 - np.cos(i * np.pi))


class PerlinNoiseField:
    """
    Seeded multi-octave lattice noise.

    Attributes:
        seed: Seed of the random lattice table (None = nondeterministic)
        octaves: Number of octaves summed
        falloff: Amplitude multiplier between octaves
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        octaves: int = 4,
        falloff: float = 0.5,
    ) -> None:
        """
        Initialize noise field.

        Args:
            seed: Seed for the lattice table
            octaves: Number of octaves (>= 1)
            falloff: Amplitude falloff per octave in (0, 1)
        """
        if octaves < 1:
            raise ValueError("octaves must be >= 1")
        if not 0 < falloff < 1:
            raise ValueError("falloff must be in (0, 1)")

        self.seed = seed
        self.octaves = octaves
        self.falloff = falloff

        rng = np.random.default_rng(seed)
        self._table = rng.random(PERLIN_SIZE + 1)

        logger.debug(f"PerlinNoiseField initialized: seed={seed}, octaves={octaves}")

    def __call__(self, x: ArrayLike, y: ArrayLike) -> ArrayLike:
        x_arr, y_arr = np.broadcast_arrays(
            np.abs(np.asarray(x, dtype=np.float64)),
            np.abs(np.asarray(y, dtype=np.float64)),
        )

        xi = np.floor(x_arr).astype(np.int64)
        yi = np.floor(y_arr).astype(np.int64)
        xf = x_arr - xi
        yf = y_arr - yi

        table = self._table
        result = np.zeros(x_arr.shape, dtype=np.float64)
        amplitude = 0.5

        for _ in range(self.octaves):
            offset = xi + (yi << PERLIN_YWRAPB)
            rxf = _scaled_cosine(xf)
            ryf = _scaled_cosine(yf)

            n1 = table[offset & PERLIN_SIZE]
            n1 = n1 + rxf * (table[(offset + 1) & PERLIN_SIZE] - n1)
            n2 = table[(offset + PERLIN_YWRAP) & PERLIN_SIZE]
            n2 = n2 + rxf * (table[(offset + PERLIN_YWRAP + 1) & PERLIN_SIZE] - n2)
            n1 = n1 + ryf * (n2 - n1)

            result += n1 * amplitude
            amplitude *= self.falloff

            xi = xi << 1
            xf = xf * 2.0
            yi = yi << 1
            yf = yf * 2.0

            x_carry = xf >= 1.0
            xi = xi + x_carry
            xf = np.where(x_carry, xf - 1.0, xf)
            y_carry = yf >= 1.0
            yi = yi + y_carry
            yf = np.where(y_carry, yf - 1.0, yf)

        if result.ndim == 0:
            return float(result)
        return result


class ConstantNoiseField:
    """Noise field that returns the same value everywhere. For tests."""

    def __init__(self, value: float = 0.5) -> None:
        if not 0.0 <= value <= 1.0:
            raise ValueError("value must be in [0, 1]")
        self.value = value

    def __call__(self, x: ArrayLike, y: ArrayLike) -> ArrayLike:
        shape = np.broadcast(np.asarray(x), np.asarray(y)).shape
        if shape == ():
            return self.value
        return np.full(shape, self.value, dtype=np.float64)
